import numpy as np
import pytest

from miningsim.config import (
    MONEY_SUPPLY,
    STARTING_SUPPLY,
    TAIL_EMISSION,
    EmissionParams,
    to_atomic,
)
from miningsim.emission import base_reward, block_reward, emission_schedule, reward_sum

from conftest import NEAR_FLOOR_SUPPLY, supply_for_reward


def test_base_reward_is_shifted_headroom():
    assert base_reward(0) == MONEY_SUPPLY >> 18
    assert base_reward(MONEY_SUPPLY) == 0
    assert base_reward(supply_for_reward(123_456_789)) == 123_456_789


def test_reward_at_default_start_is_about_3_5_xmr():
    reward = block_reward(STARTING_SUPPLY)
    assert to_atomic("3.48") < reward < to_atomic("3.49")


def test_block_reward_never_below_tail_emission():
    assert block_reward(MONEY_SUPPLY - 1) == TAIL_EMISSION
    assert block_reward(supply_for_reward(TAIL_EMISSION - 1)) == TAIL_EMISSION
    assert block_reward(supply_for_reward(TAIL_EMISSION + 1)) == TAIL_EMISSION + 1


def test_block_reward_non_increasing_in_supply():
    supplies = sorted(
        set(range(0, MONEY_SUPPLY, MONEY_SUPPLY // 997))
        | {STARTING_SUPPLY, NEAR_FLOOR_SUPPLY, MONEY_SUPPLY - 1}
    )
    rewards = [block_reward(s) for s in supplies]

    assert all(r >= TAIL_EMISSION for r in rewards)
    assert all(a >= b for a, b in zip(rewards, rewards[1:]))


def test_custom_emission_params():
    params = EmissionParams(money_supply=2 ** 40, tail_emission=10, speed_factor=4)
    assert base_reward(0, params) == 2 ** 36
    assert block_reward(2 ** 40 - 16, params) == 10


def test_schedule_stops_at_first_floor_block():
    schedule = emission_schedule(NEAR_FLOOR_SUPPLY)

    assert schedule[-1] <= TAIL_EMISSION
    assert np.all(schedule[:-1] > TAIL_EMISSION)
    assert schedule[0] == block_reward(NEAR_FLOOR_SUPPLY)


def test_schedule_follows_supply():
    schedule = emission_schedule(NEAR_FLOOR_SUPPLY)

    supply = NEAR_FLOOR_SUPPLY
    for reward in schedule:
        assert reward == block_reward(supply)
        supply += int(reward)


def test_schedule_is_read_only():
    schedule = emission_schedule(NEAR_FLOOR_SUPPLY)
    with pytest.raises(ValueError):
        schedule[0] = 0


def test_schedule_already_at_floor_mines_one_block():
    schedule = emission_schedule(supply_for_reward(TAIL_EMISSION // 2))
    assert list(schedule) == [TAIL_EMISSION]


def test_default_schedule_length():
    schedule = emission_schedule(STARTING_SUPPLY)
    # 2^18 * ln(3.486 / 0.6) blocks of decay
    assert 455_000 < len(schedule) < 468_000
    assert int(schedule.sum()) + STARTING_SUPPLY < MONEY_SUPPLY


def test_reward_sum_exact_beyond_int64():
    rewards = np.full(3, 2 ** 62 + 12345, dtype=np.int64)
    assert reward_sum(rewards) == 3 * (2 ** 62 + 12345)
    assert reward_sum(np.array([], dtype=np.int64)) == 0


def test_schedule_from_zero_supply_totals_exactly():
    schedule = emission_schedule(0)
    total = reward_sum(schedule)

    assert total > np.iinfo(np.int64).max
    assert total == sum(int(r) for r in schedule)
    assert total < MONEY_SUPPLY
