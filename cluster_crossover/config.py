# cluster_crossover/config.py
from __future__ import annotations
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Optional, Tuple


@dataclass
class CrossoverConfig:
    parallel: bool = False             # compute adjacent-pair tables concurrently
    n_jobs: Optional[int] = None       # worker threads when parallel; None = executor default
    verbose: bool = False
    timing: bool = False               # record per-operation timings in perf_monitor

    def __post_init__(self):
        if self.n_jobs is not None and self.n_jobs < 1:
            raise ValueError(f"n_jobs must be a positive integer or None, got {self.n_jobs}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SweepConfig:
    resolutions: Tuple[float, ...] = field(default_factory=tuple)
    warm_start: bool = True            # seed each run with the previous labels when supported

    def __post_init__(self):
        self.resolutions = tuple(float(r) for r in self.resolutions)

    @classmethod
    def uniform(cls, start: float = 0.0, stop: float = 1.0, step: float = 0.1, **kwargs) -> "SweepConfig":
        """Evenly spaced resolutions from ``start`` to ``stop`` inclusive."""
        if step <= 0:
            raise ValueError(f"step must be positive, got {step}")
        if stop < start:
            raise ValueError(f"stop ({stop}) must not be below start ({start})")
        n_steps = int(round((stop - start) / step))
        # round to shed float drift (0.30000000000000004 -> 0.3)
        resolutions = tuple(round(start + i * step, 10) for i in range(n_steps + 1))
        return cls(resolutions=resolutions, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        info = asdict(self)
        info['resolutions'] = list(self.resolutions)
        return info
