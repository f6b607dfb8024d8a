"""
Mining Simulation Package
=========================

Monte Carlo simulation of block rewards collected by tracked mining pools
until a decaying emission curve reaches its tail emission floor.

Modules:
- config: Emission constants, pool and run parameters, validation
- emission: Reward curve and per-run emission schedule
- network: Pool ledgers and the per-block hashrate lottery
- stats: Cross-run mean and error accumulators
- mining_simulation: Seeded runs, batch driver and command line report
"""

from .config import (
    ATOMIC_UNITS,
    DEFAULT_RUNS,
    ConfigError,
    EmissionParams,
    PoolSpec,
    SimulationConfig,
    get_rng,
)

__version__ = "1.0.0"
