import logging
import numpy as np

from .neuron_gif import GIFNeuron, RECORDABLES
from .synapses import InputBuffer
from .utils import set_seed, SimClock

logger = logging.getLogger(__name__)

class Simulation:
    """
    Host loop around a single GIF neuron.
    Each step draws Poisson spike counts for the excitatory and inhibitory
    input populations, writes them into the neuron's InputBuffer `delay`
    steps ahead, adds the injected current for this step, updates the neuron
    and samples the requested recordables every `interval` steps.
    """
    def __init__(self, cfg: dict):
        self.cfg = cfg
        self.clock = SimClock(dt=float(cfg["sim"]["dt"]), T_ms=float(cfg["sim"]["T_ms"]))
        self.dt = self.clock.dt
        self.rng = set_seed(cfg["sim"].get("seed"))

        self.neuron = GIFNeuron(cfg.get("neuron"), dt=self.dt, rng=self.rng)

        inp = cfg.get("input") or {}
        self.n_exc = int(inp.get("n_exc", 0))
        self.n_inh = int(inp.get("n_inh", 0))
        self.rate_exc = float(inp.get("rate_exc_hz", 0.0))
        self.rate_inh = float(inp.get("rate_inh_hz", 0.0))
        self.w_exc = abs(float(inp.get("w_exc_pA", 0.0)))
        self.w_inh = -abs(float(inp.get("w_inh_pA", 0.0)))
        self.I_dc = float(inp.get("I_dc_pA", 0.0))
        stim = inp.get("stim") or {}
        self.stim_on = float(stim.get("on_ms", 0.0))
        self.stim_off = float(stim.get("off_ms", 0.0))
        self.stim_amp = float(stim.get("amp_pA", 0.0))
        self.delay = max(0, int(round(float(inp.get("delay_ms", 0.0)) / self.dt)))
        self.buffer = InputBuffer(max_delay=self.delay)

        rec = cfg.get("record") or {}
        self.probes = list(rec.get("recordables", ["V_m", "V_T"]))
        unknown = [name for name in self.probes if name not in RECORDABLES]
        if unknown:
            raise ValueError(f"unknown recordables {unknown}; choose from {sorted(RECORDABLES)}")
        self.interval = max(1, int(rec.get("interval_steps", 1)))

    def _drive(self, t: float):
        # presynaptic Poisson populations -> summed weights `delay` steps ahead
        if self.n_exc and self.rate_exc > 0:
            n = self.rng.binomial(self.n_exc, min(1.0, self.rate_exc * self.dt / 1000.0))
            if n:
                self.buffer.add_spike(self.w_exc, lag=self.delay, multiplicity=n)
        if self.n_inh and self.rate_inh > 0:
            n = self.rng.binomial(self.n_inh, min(1.0, self.rate_inh * self.dt / 1000.0))
            if n:
                self.buffer.add_spike(self.w_inh, lag=self.delay, multiplicity=n)
        I = self.I_dc
        if self.stim_on <= t < self.stim_off:
            I += self.stim_amp
        if I:
            self.buffer.add_current(I)

    def run(self) -> dict:
        # every run starts from rest with an empty input buffer
        self.neuron.reset()
        self.buffer.reset()
        t_all = self.clock.times()
        traces = {name: [] for name in self.probes}

        for k, t in enumerate(t_all):
            self._drive(t)
            self.neuron.update(self.buffer)
            if k % self.interval == 0:
                for name in self.probes:
                    traces[name].append(self.neuron.record(name))

        spikes_ms = (np.asarray(self.neuron.spike_steps, dtype=float) + 1.0) * self.dt
        logger.info("simulated %d steps (%.1f ms), %d spikes", len(t_all), len(t_all) * self.dt, len(spikes_ms))
        # samples are taken at the end of their step
        out = {"t": t_all[::self.interval] + self.dt, "spikes_ms": spikes_ms}
        out.update({name: np.asarray(v) for name, v in traces.items()})
        return out

def firing_stats(spikes_ms: np.ndarray, T_ms: float):
    """Mean rate (Hz) and coefficient of variation of the interspike intervals."""
    rate = len(spikes_ms) / (T_ms / 1000.0) if T_ms > 0 else float("nan")
    isi = np.diff(spikes_ms)
    cv = float(np.std(isi) / np.mean(isi)) if len(isi) > 1 else float("nan")
    return rate, cv
