import pytest

from miningsim.config import TAIL_EMISSION, PoolSpec, get_rng
from miningsim.emission import block_reward
from miningsim.network import Block, Network, Pool, genesis_block

from conftest import NEAR_FLOOR_SUPPLY, ScriptedRng


def make_network(pivots, shares=(0.25, 0.25), height=100, supply=NEAR_FLOOR_SUPPLY):
    pools = [Pool(f"P{i}", share) for i, share in enumerate(shares)]
    return Network(ScriptedRng(pivots), height, supply, pools), pools


def test_pool_starts_empty():
    pool = Pool.from_spec(PoolSpec("A", 0.3))
    assert (pool.name, pool.hashrate, pool.blocks, pool.rewards) == ("A", 0.3, 0, 0)


def test_pool_add_block_accumulates():
    pool = Pool("A", 0.3)
    pool.add_block(Block(reward=5, miner=pool, height=1))
    pool.add_block(Block(reward=7, miner=pool, height=2))
    assert pool.blocks == 2
    assert pool.rewards == 12


def test_genesis_block_exceeds_tail_emission():
    block = genesis_block()
    assert block.miner is None
    assert block.reward == block_reward(0)
    assert block.reward > TAIL_EMISSION


@pytest.mark.parametrize(
    "pivot, winner",
    [
        (0.0, "P0"),
        (0.1, "P0"),
        (0.25, "P0"),   # tie goes to the pool being evaluated
        (0.2500001, "P1"),
        (0.5, "P1"),
        (0.5000001, None),
        (0.99, None),
    ],
)
def test_pick_miner_cumulative_inclusive(pivot, winner):
    net, _ = make_network([])
    pool = net.pick_miner(pivot)
    assert (pool.name if pool else None) == winner


def test_mine_block_advances_height_and_supply():
    net, _ = make_network([0.9])
    expected_reward = block_reward(NEAR_FLOOR_SUPPLY)

    block = net.mine_block()

    assert block.height == 101
    assert net.height == 101
    assert block.reward == expected_reward
    assert net.supply == NEAR_FLOOR_SUPPLY + expected_reward


def test_mine_block_credits_winner_only():
    net, pools = make_network([0.3])

    block = net.mine_block()

    assert block.miner is pools[1]
    assert (pools[0].blocks, pools[0].rewards) == (0, 0)
    assert (pools[1].blocks, pools[1].rewards) == (1, block.reward)


def test_mine_block_residual_share_credits_nobody():
    net, pools = make_network([0.75])

    block = net.mine_block()

    assert block.miner is None
    assert net.supply == NEAR_FLOOR_SUPPLY + block.reward
    assert all(p.blocks == 0 and p.rewards == 0 for p in pools)


def test_consecutive_blocks_follow_reward_curve():
    net, pools = make_network([0.1, 0.4, 0.9, 0.2])
    blocks = [net.mine_block() for _ in range(4)]

    assert [b.height for b in blocks] == [101, 102, 103, 104]
    assert net.supply == NEAR_FLOOR_SUPPLY + sum(b.reward for b in blocks)
    assert all(a.reward >= b.reward for a, b in zip(blocks, blocks[1:]))
    assert pools[0].rewards == blocks[0].reward + blocks[3].reward
    assert pools[1].rewards == blocks[1].reward


def test_full_share_pool_wins_every_block():
    pool = Pool("solo", 1.0)
    net = Network(get_rng(7), 0, NEAR_FLOOR_SUPPLY, [pool])

    blocks = [net.mine_block() for _ in range(200)]

    assert all(b.miner is pool for b in blocks)
    assert pool.blocks == 200
    assert pool.rewards == net.supply - NEAR_FLOOR_SUPPLY
