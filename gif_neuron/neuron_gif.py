# neuron_gif.py
# Generalized integrate-and-fire neuron with escape noise and exponential PSCs
# (Mensi et al. 2012, Pozzorini et al. 2015).
#
#   C_m dV/dt = -g_L (V - E_L) - sum_i stc_i + I_syn_ex + I_syn_in + I_e + I_stim
#   tau_stc_i d(stc_i)/dt = -stc_i          stc_i += q_stc_i at each spike
#   tau_sfa_j d(sfa_j)/dt = -sfa_j          sfa_j += q_sfa_j at each spike
#   lambda(t) = lambda0 * exp((V - v_t_star - sum_j sfa_j) / delta_u)
#
# The subthreshold system is linear, so it is propagated exactly with the
# coefficients from calibration.calibrate(). Spikes are drawn once per step
# with probability 1 - exp(-lambda * h). After a spike V is held at V_reset
# for round(t_ref / h) steps.

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Callable, Optional, Tuple

import numpy as np

from .calibration import CalibrationError, Propagators, calibrate
from .params import ConfigurationError, GIFParams, apply_updates, load_params, validate
from .synapses import InputBuffer

logger = logging.getLogger(__name__)

# keeps exp() finite; the spike probability is 1 long before this
EXP_ARG_MAX = 700.0


def firing_intensity(V_m: float, E_sfa: float, p: GIFParams) -> float:
    """Escape rate in 1/s for absolute potential V_m and threshold offset E_sfa."""
    if p.lambda0 == 0.0:
        return 0.0
    arg = min((V_m - p.v_t_star - E_sfa) / p.delta_u, EXP_ARG_MAX)
    return p.lambda0 * math.exp(arg)


def spike_probability(V_m: float, E_sfa: float, p: GIFParams, h: float) -> float:
    """Probability of at least one event of a Poisson process at the current rate within h ms."""
    return -math.expm1(-firing_intensity(V_m, E_sfa, p) * h * 1e-3)


@dataclass
class GIFState:
    I_stim: float = 0.0     # pA, injected current of the previous step
    y3: float = 0.0         # mV, membrane potential relative to E_L
    E_sfa: float = 0.0      # mV, sum of sfa_elems
    stc: float = 0.0        # pA, sum of stc_elems
    sfa_elems: np.ndarray = field(default_factory=lambda: np.zeros(0))
    stc_elems: np.ndarray = field(default_factory=lambda: np.zeros(0))
    i_syn_ex: float = 0.0   # pA
    i_syn_in: float = 0.0   # pA
    r_ref: int = 0          # remaining refractory steps
    initialized: bool = False

    def copy(self) -> GIFState:
        return replace(self, sfa_elems=self.sfa_elems.copy(), stc_elems=self.stc_elems.copy())

    def sync_aggregates(self) -> None:
        self.E_sfa = float(self.sfa_elems.sum())
        self.stc = float(self.stc_elems.sum())


def fit_adaptation(s: GIFState, p: GIFParams) -> GIFState:
    """
    Size the adaptation vectors of `s` to the parameter vectors of `p`.
    A vector whose length changes (or that was never sized) starts from zero;
    one of unchanged length keeps its values.
    """
    if not s.initialized or len(s.sfa_elems) != len(p.tau_sfa):
        s.sfa_elems = np.zeros(len(p.tau_sfa))
    if not s.initialized or len(s.stc_elems) != len(p.tau_stc):
        s.stc_elems = np.zeros(len(p.tau_stc))
    s.initialized = True
    s.sync_aggregates()
    return s


class GIFNeuron:
    """
    Single GIF point neuron with exponential postsynaptic currents.

    One call to step() advances the neuron by one timestep. The random
    generator is injected so runs are reproducible under a fixed seed.
    """

    def __init__(self, params: Optional[GIFParams | dict] = None, dt: Optional[float] = None,
                 rng: Optional[np.random.Generator] = None,
                 on_spike: Optional[Callable[[int], None]] = None):
        if isinstance(params, dict):
            self.p = load_params(params)
        elif isinstance(params, GIFParams):
            self.p = validate(params)
        elif params is None:
            self.p = GIFParams()
        else:
            raise TypeError("params must be dict, GIFParams, or None")

        self.rng = rng if rng is not None else np.random.default_rng()
        self.on_spike = on_spike
        self.state = fit_adaptation(GIFState(), self.p)
        self.V: Optional[Propagators] = None
        self.t_step = 0
        self.spike_steps: list[int] = []
        self.intensity = 0.0
        if dt is not None:
            self.calibrate(dt)

    # ---------------- Configuration ----------------

    @property
    def dt(self) -> Optional[float]:
        return None if self.V is None else self.V.h

    def calibrate(self, dt: Optional[float] = None) -> Propagators:
        """(Re)derive propagators for dt, or for the current timestep if dt is None."""
        if dt is None:
            if self.V is None:
                raise CalibrationError("no timestep given and neuron was never calibrated")
            dt = self.V.h
        self.V = calibrate(self.p, dt)
        self.state.r_ref = min(self.state.r_ref, self.V.refractory_counts)
        return self.V

    def configure(self, updates: Optional[dict] = None, **kwargs) -> None:
        """
        Apply a partial parameter update (and optionally V_m) as one transaction.
        Everything is validated and recalibrated on copies first; on any error
        parameters, state and propagators are left exactly as they were.
        """
        updates = {**(updates or {}), **kwargs}
        V_m = updates.pop("V_m", None)

        p = apply_updates(self.p, updates)
        s = self.state.copy()
        if V_m is not None:
            try:
                V_m = float(V_m)
            except (TypeError, ValueError):
                raise ConfigurationError(f"V_m: expected a number, got {V_m!r}") from None
            if not math.isfinite(V_m):
                raise ConfigurationError("V_m must be finite")
            s.y3 = V_m - p.E_L
        else:
            # keep the absolute potential when the leak reversal moves
            s.y3 -= p.E_L - self.p.E_L
        fit_adaptation(s, p)

        props = calibrate(p, self.V.h) if self.V is not None else None
        if props is not None:
            s.r_ref = min(s.r_ref, props.refractory_counts)

        self.p, self.state = p, s
        if props is not None:
            self.V = props
        logger.debug("neuron reconfigured: %s", sorted(updates) + (["V_m"] if V_m is not None else []))

    def reset(self, V_m: Optional[float] = None) -> None:
        """Back to rest (or V_m) with cleared currents, adaptation and history."""
        self.state = fit_adaptation(GIFState(), self.p)
        if V_m is not None:
            self.state.y3 = float(V_m) - self.p.E_L
        self.t_step = 0
        self.spike_steps = []
        self.intensity = 0.0

    # ---------------- Dynamics ----------------

    @property
    def refractory(self) -> bool:
        return self.state.r_ref > 0

    def step(self, ex: float = 0.0, inh: float = 0.0, I_stim: float = 0.0) -> Tuple[float, bool]:
        """
        Advance by one timestep.
        ex / inh are the summed excitatory / inhibitory weights arriving this
        step (pA, inh carries its negative sign), I_stim the injected current,
        which acts from the next step on. Returns (V_m, spiked).
        """
        p, V, s = self.p, self.V, self.state
        if V is None:
            raise RuntimeError("GIFNeuron.step() called before calibrate()")
        if len(s.sfa_elems) != len(V.P_sfa) or len(s.stc_elems) != len(V.P_stc):
            raise RuntimeError("adaptation state does not match the calibrated parameters")

        refractory = s.r_ref > 0
        if refractory:
            s.y3 = p.V_reset - p.E_L
            s.r_ref -= 1
        else:
            s.y3 = (V.P30 * (s.I_stim + p.I_e - s.stc) + V.P33 * s.y3
                    + V.P21ex * s.i_syn_ex + V.P21in * s.i_syn_in)

        s.i_syn_ex = V.P11ex * s.i_syn_ex + ex
        s.i_syn_in = V.P11in * s.i_syn_in + inh
        s.I_stim = I_stim

        s.sfa_elems *= V.P_sfa
        s.stc_elems *= V.P_stc
        s.sync_aggregates()

        spiked = False
        if refractory:
            self.intensity = 0.0
        else:
            self.intensity = firing_intensity(self.V_m, s.E_sfa, p)
            if self.intensity > 0.0:
                spiked = bool(self.rng.random() < spike_probability(self.V_m, s.E_sfa, p, V.h))

        if spiked:
            s.y3 = p.V_reset - p.E_L
            s.sfa_elems += np.asarray(p.q_sfa, dtype=float)
            s.stc_elems += np.asarray(p.q_stc, dtype=float)
            s.r_ref = V.refractory_counts
            s.sync_aggregates()
            self.spike_steps.append(self.t_step)
            if self.on_spike is not None:
                self.on_spike(self.t_step)

        self.t_step += 1
        return self.V_m, spiked

    def update(self, buffer: InputBuffer) -> Tuple[float, bool]:
        """Consume the current slot of `buffer` and step."""
        ex, inh, I_stim = buffer.pop()
        return self.step(ex, inh, I_stim)

    # ---------------- Readout ----------------

    @property
    def V_m(self) -> float:
        return self.state.y3 + self.p.E_L

    def record(self, name: str) -> float:
        try:
            getter = RECORDABLES[name]
        except KeyError:
            raise KeyError(f"unknown recordable {name!r}; choose from {sorted(RECORDABLES)}") from None
        return getter(self)

    def get_observables(self) -> dict:
        return {name: getter(self) for name, getter in RECORDABLES.items()}


RECORDABLES: dict[str, Callable[[GIFNeuron], float]] = {
    "V_m": lambda n: n.V_m,
    "E_sfa": lambda n: n.state.E_sfa,
    "V_T": lambda n: n.p.v_t_star + n.state.E_sfa,
    "I_stc": lambda n: n.state.stc,
    "I_syn_ex": lambda n: n.state.i_syn_ex,
    "I_syn_in": lambda n: n.state.i_syn_in,
}
