import pytest

from miningsim.config import EmissionParams, PoolSpec, SimulationConfig, TAIL_EMISSION


def supply_for_reward(reward: int, params: EmissionParams = EmissionParams()) -> int:
    """Supply at which the next base reward is exactly `reward`."""
    return params.money_supply - (reward << params.speed_factor)


# Roughly 90 blocks before the reward reaches the floor
NEAR_FLOOR_SUPPLY = supply_for_reward(TAIL_EMISSION + 200_000_000)


class ScriptedRng:
    """Stands in for a numpy Generator, returning preset pivots."""

    def __init__(self, values):
        self.values = list(values)

    def random(self):
        return self.values.pop(0)


@pytest.fixture
def near_floor_config():
    return SimulationConfig(starting_supply=NEAR_FLOOR_SUPPLY, n_runs=50)


@pytest.fixture
def single_pool_config():
    return SimulationConfig(
        starting_supply=NEAR_FLOOR_SUPPLY,
        pools=(PoolSpec("solo", 1.0),),
        n_runs=10,
    )
