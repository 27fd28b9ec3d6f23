import logging
import math
from dataclasses import dataclass

import numpy as np

from .params import GIFParams

logger = logging.getLogger(__name__)


class CalibrationError(ValueError):
    """Raised when propagators cannot be derived for the requested timestep."""


@dataclass(frozen=True)
class Propagators:
    """
    Exact one-step propagators of the linear subthreshold system.

    P33          membrane decay
    P30          constant current -> potential
    P11ex/in     synaptic current decay
    P21ex/in     synaptic current -> potential
    P_sfa/P_stc  per-element decay of the adaptation vectors
    """
    h: float
    P33: float
    P30: float
    P11ex: float
    P11in: float
    P21ex: float
    P21in: float
    P_sfa: np.ndarray
    P_stc: np.ndarray
    refractory_counts: int


def propagator_32(tau_syn: float, tau_m: float, C_m: float, h: float) -> float:
    """
    Contribution of a unit exponential current (time constant tau_syn) to the
    membrane potential after one step of length h:

        tau_syn*tau_m / (C_m*(tau_m - tau_syn)) * (exp(-h/tau_m) - exp(-h/tau_syn))

    The slower exponential is factored out so only decaying terms appear,
    and expm1 keeps close time constants accurate.
    """
    tau_slow = max(tau_syn, tau_m)
    rate = abs(1.0 / tau_syn - 1.0 / tau_m)
    decay = math.exp(-h / tau_slow)
    if rate * h < 1e-12:
        # tau_syn == tau_m
        return h / C_m * decay
    return -decay * math.expm1(-rate * h) / (C_m * rate)


def calibrate(p: GIFParams, h: float) -> Propagators:
    try:
        h = float(h)
    except (TypeError, ValueError):
        raise CalibrationError(f"timestep must be a number, got {h!r}") from None
    if not (math.isfinite(h) and h > 0.0):
        raise CalibrationError(f"timestep must be finite and > 0, got {h}")

    refractory_counts = int(round(p.t_ref / h))
    if p.t_ref > 0.0 and refractory_counts < 1:
        raise CalibrationError(
            f"t_ref={p.t_ref} ms is shorter than one timestep (h={h} ms)")

    tau_m = p.tau_m
    P33 = math.exp(-h / tau_m)
    props = Propagators(
        h=h,
        P33=P33,
        P30=-math.expm1(-h / tau_m) * tau_m / p.C_m,
        P11ex=math.exp(-h / p.tau_syn_ex),
        P11in=math.exp(-h / p.tau_syn_in),
        P21ex=propagator_32(p.tau_syn_ex, tau_m, p.C_m, h),
        P21in=propagator_32(p.tau_syn_in, tau_m, p.C_m, h),
        P_sfa=np.exp(-h / np.asarray(p.tau_sfa, dtype=float)),
        P_stc=np.exp(-h / np.asarray(p.tau_stc, dtype=float)),
        refractory_counts=refractory_counts,
    )
    logger.debug("calibrated h=%.4g ms: tau_m=%.4g ms, refractory_counts=%d, "
                 "%d sfa / %d stc elements", h, tau_m, refractory_counts,
                 len(p.tau_sfa), len(p.tau_stc))
    return props
