import logging
import numpy as np
from dataclasses import dataclass

def set_seed(seed: int | None) -> np.random.Generator:
    # one generator per run; neurons get it injected
    if seed is None:
        return np.random.default_rng()
    return np.random.default_rng(int(seed))

@dataclass
class SimClock:
    dt: float
    T_ms: float
    def steps(self) -> int:
        return int(round(self.T_ms / self.dt))
    def times(self):
        return np.arange(self.steps()) * self.dt

def setup_logging(cfg: dict, default_level: int = logging.WARNING) -> int:
    """Configure root logging from cfg["logging"]["level"] (e.g. "DEBUG")."""
    level_name = (cfg.get("logging") or {}).get("level")
    level = getattr(logging, str(level_name).upper(), None) if level_name else None
    if not isinstance(level, int):
        level = default_level
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s: %(message)s")
    return level
