"""
Tail Emission Mining Simulation
===============================

Monte Carlo estimate of how many blocks, and how much reward, tracked mining
pools collect between a given chain state and the start of tail emission.

Each run:
1. Starts a fresh chain at the configured height and supply
2. Awards blocks by a hashrate-weighted lottery (residual share = rest of network)
3. Stops right after the first block paying no more than the tail emission

Per-pool block counts and rewards are aggregated over one run per seed.
"""

import argparse
import logging
import multiprocessing as mp
import time
from dataclasses import dataclass, replace
from decimal import InvalidOperation
from functools import partial
from typing import Callable, Dict, List, Optional
import numpy as np
from tabulate import tabulate

from .config import (
    ATOMIC_UNITS,
    DEFAULT_RUNS,
    FIRST_SEED,
    ConfigError,
    PoolSpec,
    SimulationConfig,
    describe_pools,
    from_atomic,
    get_rng,
    parse_pool,
    to_atomic,
)
from .emission import emission_schedule, reward_sum
from .network import Network, Pool, genesis_block
from .stats import NoSamplesError, PoolStats, StatsSet


log = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Terminal state of one seeded run."""

    seed: int
    pools: List[Pool]
    blocks_mined: int
    total_reward: int       # atomic units minted during the run
    final_height: int
    final_supply: int

    @property
    def pool_blocks(self) -> int:
        return sum(p.blocks for p in self.pools)

    @property
    def residual_blocks(self) -> int:
        """Blocks won by the untracked rest of the network."""
        return self.blocks_mined - self.pool_blocks


def _simulate_step(config: SimulationConfig, seed: int) -> RunResult:
    """Mine block by block through `Network.mine_block`."""
    pools = [Pool.from_spec(spec) for spec in config.pools]
    net = Network(
        get_rng(seed),
        config.starting_height,
        config.starting_supply,
        pools,
        config.emission,
    )

    tail_emission = config.emission.tail_emission
    blocks_mined = 0
    block = genesis_block(config.emission)
    while block.reward > tail_emission:
        block = net.mine_block()
        blocks_mined += 1

    return RunResult(
        seed=seed,
        pools=pools,
        blocks_mined=blocks_mined,
        total_reward=net.supply - config.starting_supply,
        final_height=net.height,
        final_supply=net.supply,
    )


def _simulate_vector(config: SimulationConfig, seed: int) -> RunResult:
    """
    Same lottery as `_simulate_step`, resolved for the whole run at once.

    The reward schedule does not depend on the winners, so the run length is
    known up front. Pivots come from the same generator stream in the same
    order, and searchsorted(side="left") picks the first pool whose
    cumulative share is >= pivot, which reproduces the step engine exactly.
    """
    schedule = emission_schedule(config.starting_supply, config.emission)
    n_blocks = len(schedule)

    pivots = get_rng(seed).random(n_blocks)
    cumulative = np.cumsum([spec.hashrate for spec in config.pools])
    winners = np.searchsorted(cumulative, pivots, side="left")

    pools = []
    for i, spec in enumerate(config.pools):
        won = winners == i
        pool = Pool.from_spec(spec)
        # Totals for the whole run at once; one add_block per block would
        # rebuild every Block and undo the vectorisation.
        pool.blocks = int(won.sum())
        pool.rewards = reward_sum(schedule[won])
        pools.append(pool)

    total_reward = reward_sum(schedule)
    return RunResult(
        seed=seed,
        pools=pools,
        blocks_mined=n_blocks,
        total_reward=total_reward,
        final_height=config.starting_height + n_blocks,
        final_supply=config.starting_supply + total_reward,
    )


ENGINES: Dict[str, Callable[[SimulationConfig, int], RunResult]] = {
    "vector": _simulate_vector,
    "step": _simulate_step,
}


def simulate_until_tail_emission(
    config: SimulationConfig,
    seed: int,
    engine: str = "vector",
) -> RunResult:
    """
    Run one independent trial under `seed`.

    Args:
        config: Validated simulation parameters
        seed: Seed of this run's private random generator
        engine: "vector" (fast) or "step" (block by block); both give
            identical results for the same seed

    Returns:
        RunResult with the terminal pool ledgers
    """
    try:
        simulate = ENGINES[engine]
    except KeyError:
        raise ConfigError(f"unknown engine {engine!r}") from None

    result = simulate(config, seed)
    log.debug(
        "seed %d: %d blocks, %s",
        seed,
        result.blocks_mined,
        ", ".join(f"{p.name}={p.blocks}" for p in result.pools),
    )
    return result


@dataclass
class ExperimentResult:
    """Accumulated statistics of a batch of runs."""

    config: SimulationConfig
    pool_stats: List[PoolStats]
    blocks_mined: StatsSet
    residual_blocks: StatsSet
    elapsed_s: float

    @property
    def runs(self) -> int:
        return len(self.blocks_mined)


def run_experiment(
    config: SimulationConfig,
    engine: str = "vector",
    workers: int = 1,
) -> ExperimentResult:
    """
    Run one simulation per seed and accumulate per-pool statistics.

    Runs are independent. With workers > 1 they are spread over a process
    pool; results still come back in seed order and only this process
    appends to the accumulators.

    Raises:
        ConfigError: if the configuration is invalid (before any run)
    """
    config.validate()
    if engine not in ENGINES:
        raise ConfigError(f"unknown engine {engine!r}")
    if workers < 1:
        raise ConfigError(f"workers must be >= 1, got {workers}")

    pool_stats = [PoolStats(spec) for spec in config.pools]
    blocks_mined = StatsSet("blocks mined")
    residual_blocks = StatsSet("rest of network")

    log.info(
        "running %d seeds (%d..%d) with %s engine on %d worker(s)",
        config.n_runs, config.seeds[0], config.seeds[-1], engine, workers,
    )
    start = time.time()

    def record(result: RunResult) -> None:
        for stats, pool in zip(pool_stats, result.pools):
            stats.accumulate(pool)
        blocks_mined.add_value(result.blocks_mined)
        residual_blocks.add_value(result.residual_blocks)

    simulate = partial(simulate_until_tail_emission, config, engine=engine)
    if workers == 1:
        for seed in config.seeds:
            record(simulate(seed))
    else:
        chunksize = max(1, config.n_runs // (workers * 4))
        with mp.Pool(processes=workers) as pool:
            for result in pool.imap(simulate, config.seeds, chunksize=chunksize):
                record(result)

    elapsed = time.time() - start
    log.info("finished %d runs in %.1f s", config.n_runs, elapsed)

    return ExperimentResult(
        config=config,
        pool_stats=pool_stats,
        blocks_mined=blocks_mined,
        residual_blocks=residual_blocks,
        elapsed_s=elapsed,
    )


def _format_stat(stats: StatsSet) -> List[str]:
    try:
        summary = stats.summarize()
    except NoSamplesError:
        return ["no data", ""]
    return [f"{summary.mean:.6g}", f"{summary.error:.6g}"]


def generate_pool_table(pool_stats: List[PoolStats]) -> str:
    """Per-pool block count and reward (coins), mean +/- error."""
    headers = ["Pool", "Hashrate", "Metric", "Mean", "+/- Error"]

    rows = []
    for stats in pool_stats:
        hashrate = f"{stats.spec.hashrate:.2%}"
        rows.append([stats.name, hashrate, "blocks"] + _format_stat(stats.block_counts))
        rows.append(["", "", "reward (XMR)"] + _format_stat(stats.block_rewards))

    return tabulate(rows, headers=headers, tablefmt="simple")


def build_config(args: argparse.Namespace) -> SimulationConfig:
    """Apply command line overrides to the default configuration."""
    config = SimulationConfig()

    emission = config.emission
    if args.tail_emission is not None:
        emission = replace(emission, tail_emission=args.tail_emission)

    overrides = dict(
        n_runs=args.runs,
        first_seed=args.first_seed,
        emission=emission,
    )
    if args.height is not None:
        overrides["starting_height"] = args.height
    if args.supply is not None:
        overrides["starting_supply"] = args.supply
    if args.pool:
        overrides["pools"] = tuple(args.pool)

    config = replace(config, **overrides)
    config.validate()
    return config


def _coins(text: str) -> int:
    try:
        return to_atomic(text)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid coin amount: {text!r}") from None


def _pool(text: str) -> PoolSpec:
    try:
        return parse_pool(text)
    except ConfigError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Tail emission mining simulation (blocks and rewards per pool)"
    )
    parser.add_argument(
        "--runs", "-n",
        type=int,
        default=DEFAULT_RUNS,
        help=f"Number of seeded runs (default: {DEFAULT_RUNS:,})"
    )
    parser.add_argument(
        "--first-seed", "-s",
        type=int,
        default=FIRST_SEED,
        help=f"Seed of the first run (default: {FIRST_SEED})"
    )
    parser.add_argument(
        "--height",
        type=int,
        help="Starting block height"
    )
    parser.add_argument(
        "--supply",
        type=_coins,
        help="Starting circulating supply in XMR"
    )
    parser.add_argument(
        "--tail-emission",
        type=_coins,
        help="Tail emission floor in XMR (default: 0.6)"
    )
    parser.add_argument(
        "--pool",
        type=_pool,
        action="append",
        metavar="NAME=SHARE",
        help="Tracked pool and its hashrate share; repeat for more pools "
             "(default: A=0.3 B=0.003)"
    )
    parser.add_argument(
        "--engine",
        choices=sorted(ENGINES),
        default="vector",
        help="Simulation engine (default: vector)"
    )
    parser.add_argument(
        "--workers", "-j",
        type=int,
        default=1,
        help="Worker processes (default: 1)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log every run and print detailed statistics"
    )
    return parser


def main(argv: Optional[List[str]] = None):
    """Run the simulation and print per-pool statistics."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = build_config(args)
    except ConfigError as exc:
        parser.error(str(exc))

    print(f"Tail Emission Mining Simulation")
    print(f"===============================")
    print(f"Runs: {config.n_runs:,} (seeds {config.seeds[0]}..{config.seeds[-1]})")
    print(f"Starting height: {config.starting_height:,}")
    print(f"Starting supply: {from_atomic(config.starting_supply):,.12f} XMR")
    print(f"Tail emission: {from_atomic(config.emission.tail_emission)} XMR")
    print("Hashrate:")
    for line in describe_pools(config):
        print(f"  {line}")
    print()

    result = run_experiment(config, engine=args.engine, workers=args.workers)

    print("Per-pool results until tail emission")
    print("=" * 60)
    print(generate_pool_table(result.pool_stats))
    print()

    blocks = result.blocks_mined.summarize()
    residual = result.residual_blocks.summarize()
    print("Summary:")
    print(f"  Blocks until tail emission: {blocks.mean:,.0f}")
    print(f"  Rest of network blocks: {residual.mean:,.1f} +/- {residual.error:.3g}")
    print(f"  Elapsed: {result.elapsed_s:.1f}s")

    if args.verbose:
        print()
        print("Detailed Statistics:")
        for stats in result.pool_stats:
            for metric in stats.metrics:
                summary = metric.summarize()
                print(
                    f"  {stats.name} {summary.name}: std={summary.std:.6g}, "
                    f"std/sqrt(N)={summary.sem:.6g}"
                )
        print(f"  Atomic units per XMR: {ATOMIC_UNITS:,}")


if __name__ == "__main__":
    main()
