from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Dict


def elapsed_ms(start: float) -> float:
    """Milliseconds elapsed since `start`, a time.perf_counter() reading."""
    return (time.perf_counter() - start) * 1e3


@dataclass(slots=True)
class RunningStats:
    """
    Online mean/std using Welford's algorithm.
    """
    n: int = 0
    mean: float = 0.0
    m2: float = 0.0
    max: float = 0.0

    def add(self, x: float) -> None:
        self.n += 1
        d = x - self.mean
        self.mean += d / self.n
        d2 = x - self.mean
        self.m2 += d * d2
        if x > self.max:
            self.max = x

    @property
    def variance(self) -> float:
        return self.m2 / (self.n - 1) if self.n > 1 else 0.0

    @property
    def std(self) -> float:
        return self.variance ** 0.5

    def summary(self) -> Dict[str, float]:
        return {
            "count": self.n,
            "mean_ms": round(self.mean, 2),
            "std_ms": round(self.std, 2),
            "max_ms": round(self.max, 2),
        }
