"""
Mining Network Model
====================

Per-block lottery over a fixed, ordered set of tracked pools. Whatever
hashrate the tracked pools do not cover belongs to the rest of the network,
whose blocks are minted but credited to nobody.
"""

from dataclasses import dataclass
from typing import List, Optional
import numpy as np

from .config import EmissionParams, PoolSpec
from .emission import DEFAULT_EMISSION, block_reward


class Pool:
    """
    Running ledger of one tracked pool during a single run.

    `name` and `hashrate` are fixed for the run; `blocks` and `rewards`
    (atomic units) only ever grow.
    """

    def __init__(self, name: str, hashrate: float):
        self.name = name
        self.hashrate = hashrate
        self.blocks = 0
        self.rewards = 0

    @classmethod
    def from_spec(cls, spec: PoolSpec) -> "Pool":
        return cls(spec.name, spec.hashrate)

    def add_block(self, block: "Block") -> None:
        self.blocks += 1
        self.rewards += block.reward

    def __repr__(self) -> str:
        return (
            f"Pool({self.name!r}, hashrate={self.hashrate}, "
            f"blocks={self.blocks}, rewards={self.rewards})"
        )


@dataclass(frozen=True)
class Block:
    """Result of one award: reward, winning pool (None = rest of network), height."""
    reward: int
    miner: Optional[Pool]
    height: int


def genesis_block(params: EmissionParams = DEFAULT_EMISSION) -> Block:
    """
    Virtual block that precedes the first mined one.

    Its reward is the curve at zero supply, which always exceeds the tail
    emission, so a run mines at least one real block.
    """
    return Block(reward=block_reward(0, params), miner=None, height=0)


class Network:
    """
    Chain state (height, supply) plus the pools competing for its blocks.

    The pool list is shared with the caller and mutated in place as blocks
    are awarded. Pool order fixes lottery priority.
    """

    def __init__(
        self,
        rng: np.random.Generator,
        height: int,
        supply: int,
        pools: List[Pool],
        params: EmissionParams = DEFAULT_EMISSION,
    ):
        self.rng = rng
        self.height = height
        self.supply = supply
        self.pools = pools
        self.params = params

    def get_block_reward(self) -> int:
        return block_reward(self.supply, self.params)

    def pick_miner(self, pivot: float) -> Optional[Pool]:
        """
        First pool whose cumulative hashrate reaches `pivot`.

        Ties (probe == pivot) go to the pool being evaluated. Returns None
        when the pivot lands in the untracked remainder of the network.
        """
        probe = 0.0
        for pool in self.pools:
            probe += pool.hashrate
            if probe >= pivot:
                return pool
        return None

    def mine_block(self) -> Block:
        """Award the next block and advance height, supply and the winner's ledger."""
        pivot = self.rng.random()
        pool = self.pick_miner(pivot)

        self.height += 1
        block = Block(reward=self.get_block_reward(), miner=pool, height=self.height)

        self.supply += block.reward

        if pool is not None:
            pool.add_block(block)

        return block
