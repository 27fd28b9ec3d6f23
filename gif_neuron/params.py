import logging
import math
from dataclasses import dataclass, fields, replace
from typing import Tuple

logger = logging.getLogger(__name__)

VECTOR_PAIRS = (("tau_stc", "q_stc"), ("tau_sfa", "q_sfa"))


class ConfigurationError(ValueError):
    """Raised when a parameter update violates a model constraint."""


@dataclass(frozen=True)
class GIFParams:
    # Membrane
    g_L: float = 4.0          # nS
    E_L: float = -70.0        # mV
    V_reset: float = -55.0    # mV
    C_m: float = 80.0         # pF
    t_ref: float = 4.0        # ms
    I_e: float = 0.0          # pA
    # Escape noise
    delta_u: float = 1.5      # mV
    v_t_star: float = -35.0   # mV
    lambda0: float = 1.0      # 1/s
    # Synapses
    tau_syn_ex: float = 2.0   # ms
    tau_syn_in: float = 2.0   # ms
    # Spike-triggered currents (pA) and threshold kernels (mV)
    tau_stc: Tuple[float, ...] = ()
    q_stc: Tuple[float, ...] = ()
    tau_sfa: Tuple[float, ...] = ()
    q_sfa: Tuple[float, ...] = ()

    @property
    def tau_m(self) -> float:
        return self.C_m / self.g_L


PARAM_NAMES = frozenset(f.name for f in fields(GIFParams))
_VECTOR_NAMES = frozenset(name for pair in VECTOR_PAIRS for name in pair)


def _coerce(name, value):
    try:
        if name in _VECTOR_NAMES:
            if isinstance(value, (str, bytes)):
                raise TypeError
            return tuple(float(v) for v in value)
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name}: expected {'a sequence of numbers' if name in _VECTOR_NAMES else 'a number'}, got {value!r}") from None


def validate(p: GIFParams) -> GIFParams:
    for f in fields(p):
        value = getattr(p, f.name)
        values = value if f.name in _VECTOR_NAMES else (value,)
        if not all(math.isfinite(v) for v in values):
            raise ConfigurationError(f"{f.name} must be finite, got {value!r}")
    for tau_name, q_name in VECTOR_PAIRS:
        taus, qs = getattr(p, tau_name), getattr(p, q_name)
        if len(taus) != len(qs):
            raise ConfigurationError(
                f"{tau_name} and {q_name} must have the same length ({len(taus)} != {len(qs)})")
        if any(tau <= 0.0 for tau in taus):
            raise ConfigurationError(f"all elements of {tau_name} must be > 0")
    for name in ("g_L", "C_m", "delta_u", "tau_syn_ex", "tau_syn_in"):
        if not getattr(p, name) > 0.0:
            raise ConfigurationError(f"{name} must be > 0")
    if not p.t_ref >= 0.0:
        raise ConfigurationError("t_ref must be >= 0")
    if not p.lambda0 >= 0.0:
        raise ConfigurationError("lambda0 must be >= 0")
    return p


def apply_updates(p: GIFParams, updates: dict) -> GIFParams:
    """
    Return a validated copy of `p` with `updates` applied.
    `p` itself is never touched; any violation raises ConfigurationError.
    """
    unknown = set(updates) - PARAM_NAMES
    if unknown:
        raise ConfigurationError(f"unknown parameter(s): {', '.join(sorted(unknown))}")
    candidate = replace(p, **{k: _coerce(k, v) for k, v in updates.items()})
    validate(candidate)
    logger.debug("parameter update accepted: %s", sorted(updates))
    return candidate


def load_params(section: dict | None) -> GIFParams:
    """Build parameters from a config section (e.g. cfg["neuron"])."""
    return apply_updates(GIFParams(), dict(section or {}))
