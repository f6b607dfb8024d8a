"""
Block Reward Emission Curve
===========================

The reward of the next block depends only on the supply already minted:

    base = (money_supply - supply) >> speed_factor
    reward = max(base, tail_emission)

so every block removes a 2^-18 fraction of the remaining headroom until the
reward drops to the tail emission floor. The curve is pure; mining order never
changes it.
"""

from functools import lru_cache
import numpy as np

from .config import EmissionParams


DEFAULT_EMISSION = EmissionParams()


def base_reward(supply: int, params: EmissionParams = DEFAULT_EMISSION) -> int:
    """Decaying reward before the tail emission floor is applied."""
    return (params.money_supply - supply) >> params.speed_factor


def block_reward(supply: int, params: EmissionParams = DEFAULT_EMISSION) -> int:
    """Reward of the block mined on top of `supply` atomic units."""
    return max(base_reward(supply, params), params.tail_emission)


@lru_cache(maxsize=16)
def emission_schedule(
    starting_supply: int,
    params: EmissionParams = DEFAULT_EMISSION,
) -> np.ndarray:
    """
    Rewards of every block mined from `starting_supply` until tail emission.

    The last element is the first reward <= tail_emission; a run stops right
    after mining that block. The schedule is identical for every seed, so it
    is computed once with exact integer arithmetic and cached.

    Returns:
        Read-only int64 array of block rewards in mining order
    """
    rewards = []
    supply = starting_supply
    while True:
        reward = block_reward(supply, params)
        rewards.append(reward)
        supply += reward
        if reward <= params.tail_emission:
            break

    schedule = np.array(rewards, dtype=np.int64)
    schedule.flags.writeable = False
    return schedule


def reward_sum(rewards: np.ndarray) -> int:
    """
    Exact total of an int64 reward array as a Python int.

    A long run mints more than int64 can hold, so each reward is split into
    its high and low 32 bits and the two halves are summed separately. Each
    half-sum stays far below 2^63 for any run shorter than 2^31 blocks.
    """
    high = int((rewards >> 32).sum())
    low = int((rewards & 0xFFFFFFFF).sum())
    return (high << 32) + low
