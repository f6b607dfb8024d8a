"""
Cross-Run Statistics
====================

Each run contributes one sample per tracked metric. After all runs the
samples are reduced to a mean and an error estimate:

    mean  = sum(x) / N
    error = sqrt(sum((x - mean)^2) / N) / N

Note that the error divides the population standard deviation by N, not by
sqrt(N), so it is much tighter than the textbook standard error of the mean
(which is available as `StatsSummary.sem`). The figure is kept for
comparability with previously published results.
"""

from dataclasses import dataclass
from typing import List
import numpy as np

from .config import PoolSpec, from_atomic
from .network import Pool


class NoSamplesError(ValueError):
    """Raised when summarizing a metric that received no samples."""


@dataclass(frozen=True)
class StatsSummary:
    """Summary of one metric across all runs."""
    name: str
    n: int
    mean: float
    std: float

    @property
    def error(self) -> float:
        return self.std / self.n

    @property
    def sem(self) -> float:
        """Conventional standard error of the mean, std / sqrt(N)."""
        return self.std / np.sqrt(self.n)


class StatsSet:
    """Append-only collection of per-run samples for one metric."""

    def __init__(self, name: str):
        self.name = name
        self.values: List[float] = []

    def add_value(self, value: float) -> None:
        self.values.append(float(value))

    def __len__(self) -> int:
        return len(self.values)

    def summarize(self) -> StatsSummary:
        """
        Reduce the samples to mean and error (two-pass).

        Raises:
            NoSamplesError: if no run has contributed a sample yet
        """
        if not self.values:
            raise NoSamplesError(f"no samples recorded for {self.name!r}")

        values = np.asarray(self.values, dtype=np.float64)
        n = len(values)
        mean = values.sum() / n
        varsum = ((values - mean) ** 2).sum()
        std = np.sqrt(varsum / n)

        return StatsSummary(name=self.name, n=n, mean=float(mean), std=float(std))


class PoolStats:
    """Block count and reward statistics for one tracked pool."""

    def __init__(self, spec: PoolSpec):
        self.spec = spec
        self.block_counts = StatsSet("blocks")
        self.block_rewards = StatsSet("reward")

    @property
    def name(self) -> str:
        return self.spec.name

    def get_pool(self) -> Pool:
        """Fresh ledger for a new run."""
        return Pool.from_spec(self.spec)

    def accumulate(self, pool: Pool) -> None:
        """Record one finished run; rewards are stored in coins."""
        self.block_counts.add_value(pool.blocks)
        self.block_rewards.add_value(from_atomic(pool.rewards))

    @property
    def metrics(self) -> List[StatsSet]:
        return [self.block_counts, self.block_rewards]
