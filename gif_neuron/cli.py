import argparse, yaml
import numpy as np

from .network import Simulation, firing_stats
from .utils import setup_logging

def main(argv=None):
    ap = argparse.ArgumentParser(description="Simulate a stochastic GIF neuron with exponential PSCs.")
    ap.add_argument("--config", default="config/default.yaml")
    ap.add_argument("--seed", type=int, default=None, help="overrides sim.seed")
    ap.add_argument("--no-plot", action="store_true")
    args = ap.parse_args(argv)

    with open(args.config, "r") as f:
        cfg = yaml.safe_load(f)
    if args.seed is not None:
        cfg["sim"]["seed"] = args.seed
    setup_logging(cfg)

    sim = Simulation(cfg)
    out = sim.run()

    T = float(cfg["sim"]["T_ms"])
    rate, cv = firing_stats(out["spikes_ms"], T)
    print(f"[GIF] spikes={len(out['spikes_ms'])}  rate={rate:.2f} Hz  CV_ISI={cv:.3f}")

    if args.no_plot:
        return out

    import matplotlib.pyplot as plt
    fig, axes = plt.subplots(2, 1, figsize=(10, 5), sharex=True, height_ratios=[3, 1])
    ax = axes[0]
    if "V_m" in out:
        ax.plot(out["t"], out["V_m"], lw=0.8, label="V_m")
    if "V_T" in out:
        ax.plot(out["t"], out["V_T"], lw=0.8, label="threshold V_T")
    ax.set_ylabel("mV")
    ax.legend(loc="upper right")
    axes[1].eventplot(out["spikes_ms"], colors="k", lineoffsets=0.5, linelengths=0.8)
    axes[1].set_yticks([])
    axes[1].set_xlabel("Time (ms)")
    axes[0].set_title("GIF neuron (subset of recordables)")
    plt.tight_layout()
    plt.show()
    return out

if __name__ == "__main__":
    main()
