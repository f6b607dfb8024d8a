"""
Mining Simulation Configuration
===============================

Central configuration for the tail-emission mining simulation.

All reward quantities are integers in atomic units (the smallest indivisible
reward unit, 1e-12 of a coin). The defaults describe the Monero emission
curve and the chain state at height 2,082,536.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Tuple, Union
import numpy as np


class ConfigError(ValueError):
    """Raised when simulation parameters are rejected before any run starts."""


# =============================================================================
# REPRODUCIBILITY
# =============================================================================

FIRST_SEED = 1          # Seeds run first_seed .. first_seed + n_runs - 1
DEFAULT_RUNS = 1_000    # Monte Carlo run count (one seed per run)


# =============================================================================
# EMISSION PARAMETERS
# =============================================================================

ATOMIC_UNITS = 10 ** 12             # Atomic units per coin
MONEY_SUPPLY = 2 ** 64 - 1          # Asymptotic supply ceiling (UINT64_MAX)
EMISSION_SPEED_FACTOR = 18          # base reward = (ceiling - supply) >> 18
MAX_BLOCK_REWARD = 2 ** 63 - 1       # Rewards are stored as int64


def to_atomic(coins: Union[str, Decimal, float, int]) -> int:
    """
    Convert a coin amount to atomic units, rounding half up.

    Strings are parsed as decimals so that long literals such as
    "17532973.286521961314" convert exactly.
    """
    amount = Decimal(str(coins)) * ATOMIC_UNITS
    return int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_atomic(units: int) -> float:
    """Convert atomic units to coins."""
    return units / ATOMIC_UNITS


TAIL_EMISSION = to_atomic("0.6")    # Floor reward once the curve flattens


@dataclass(frozen=True)
class EmissionParams:
    """Reward curve parameters."""

    money_supply: int = MONEY_SUPPLY
    tail_emission: int = TAIL_EMISSION
    speed_factor: int = EMISSION_SPEED_FACTOR


# =============================================================================
# POOL PARAMETERS
# =============================================================================

@dataclass(frozen=True)
class PoolSpec:
    """A tracked mining pool and its fixed share of network hashrate."""
    name: str
    hashrate: float


DEFAULT_POOLS: Tuple[PoolSpec, ...] = (
    PoolSpec("A", 0.3),
    PoolSpec("B", 0.003),
)

# Tolerance for share sums such as 0.7 + 0.3 that round above 1.0
HASHRATE_SUM_TOLERANCE = 1e-9


# =============================================================================
# SIMULATION PARAMETERS
# =============================================================================

STARTING_HEIGHT = 2_082_536
STARTING_SUPPLY = 17_532_973_286_521_961_314    # 17532973.286521961314 XMR


@dataclass(frozen=True)
class SimulationConfig:
    """Everything a batch of seeded runs needs."""

    starting_height: int = STARTING_HEIGHT
    starting_supply: int = STARTING_SUPPLY
    pools: Tuple[PoolSpec, ...] = DEFAULT_POOLS
    n_runs: int = DEFAULT_RUNS
    first_seed: int = FIRST_SEED
    emission: EmissionParams = field(default_factory=EmissionParams)

    @property
    def seeds(self) -> range:
        return range(self.first_seed, self.first_seed + self.n_runs)

    @property
    def total_hashrate(self) -> float:
        """Sum of tracked shares; the rest belongs to the unmodelled network."""
        return sum(p.hashrate for p in self.pools)

    @property
    def residual_hashrate(self) -> float:
        return max(0.0, 1.0 - self.total_hashrate)

    def validate(self) -> None:
        """
        Reject configurations a run cannot be started from.

        Raises:
            ConfigError: describing the first violated constraint
        """
        if not self.pools:
            raise ConfigError("at least one pool must be tracked")

        names = [p.name for p in self.pools]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigError(f"duplicate pool names: {', '.join(duplicates)}")

        for pool in self.pools:
            if not 0.0 < pool.hashrate <= 1.0:
                raise ConfigError(
                    f"pool {pool.name!r} hashrate {pool.hashrate} outside (0, 1]"
                )

        if self.total_hashrate > 1.0 + HASHRATE_SUM_TOLERANCE:
            raise ConfigError(
                f"tracked hashrate sums to {self.total_hashrate:.6f} > 1"
            )

        if self.n_runs < 1:
            raise ConfigError(f"n_runs must be >= 1, got {self.n_runs}")
        if self.first_seed < 0:
            raise ConfigError(f"seeds must be non-negative, got {self.first_seed}")
        if self.starting_height < 0:
            raise ConfigError(f"starting height {self.starting_height} is negative")
        if self.starting_supply < 0:
            raise ConfigError(f"starting supply {self.starting_supply} is negative")
        if self.emission.tail_emission <= 0:
            raise ConfigError("tail emission must be positive")
        if self.emission.tail_emission >= (
            self.emission.money_supply >> self.emission.speed_factor
        ):
            raise ConfigError("tail emission must be below the reward at zero supply")
        if self.emission.money_supply >> self.emission.speed_factor > MAX_BLOCK_REWARD:
            raise ConfigError("reward at zero supply does not fit in 64 bits")
        if self.emission.money_supply <= self.starting_supply:
            raise ConfigError(
                f"supply ceiling {self.emission.money_supply} does not exceed "
                f"starting supply {self.starting_supply}"
            )


def parse_pool(text: str) -> PoolSpec:
    """
    Parse a NAME=SHARE pool argument, e.g. "A=0.3".

    Raises:
        ConfigError: if the text is not of that form
    """
    name, sep, share = text.partition("=")
    name = name.strip()
    if not sep or not name:
        raise ConfigError(f"pool must be given as NAME=SHARE, got {text!r}")
    try:
        hashrate = float(share)
    except ValueError:
        raise ConfigError(f"pool {name!r} share {share!r} is not a number") from None
    return PoolSpec(name, hashrate)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def get_rng(seed: int) -> np.random.Generator:
    """Get a reproducible random number generator."""
    return np.random.default_rng(seed)


def describe_pools(config: SimulationConfig) -> List[str]:
    """One line per pool plus the residual share, for report banners."""
    lines = [f"{p.name}: {p.hashrate:.2%}" for p in config.pools]
    lines.append(f"(rest of network): {config.residual_hashrate:.2%}")
    return lines
