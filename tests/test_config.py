import dataclasses

import numpy as np
import pytest

from gatesim.config import SimulationConfig
from gatesim.errors import InvalidConfig


class TestSimulationConfig:

    def test_defaults(self):
        cfg = SimulationConfig(passenger_count=10, gate_count=2)
        assert cfg.break_chance == 0.0
        assert cfg.repair_time == 0
        assert cfg.processing_time == 1
        assert not cfg.jitter_repair
        assert cfg.max_time is None and cfg.max_steps is None

    @pytest.mark.parametrize(
        "overrides",
        [
            {"passenger_count": 0},
            {"passenger_count": -5},
            {"gate_count": 0},
            {"break_chance": -0.01},
            {"break_chance": 1.01},
            {"repair_time": -1},
            {"processing_time": 0},
            {"max_time": 0},
            {"max_steps": -3},
            {"passenger_count": 10.5},
            {"gate_count": 2.0},
            {"gate_count": True},
            {"repair_time": 1.5},
            {"processing_time": 5.0},
            {"max_time": 10.0},
            {"max_steps": 2.5},
            {"break_chance": "0.1"},
        ],
    )
    def test_rejects_invalid(self, overrides):
        kwargs = dict(passenger_count=10, gate_count=2, processing_time=5)
        kwargs.update(overrides)
        with pytest.raises(InvalidConfig):
            SimulationConfig(**kwargs)

    def test_invalid_config_is_a_value_error(self):
        with pytest.raises(ValueError):
            SimulationConfig(passenger_count=10, gate_count=-1)

    def test_accepts_numpy_integers(self):
        cfg = SimulationConfig(passenger_count=np.int64(10), gate_count=np.int32(2))
        assert cfg.ideal_time == 5

    @pytest.mark.parametrize("chance", [0.0, 1.0])
    def test_accepts_probability_bounds(self, chance):
        assert SimulationConfig(passenger_count=1, gate_count=1, break_chance=chance)

    def test_frozen(self):
        cfg = SimulationConfig(passenger_count=10, gate_count=2)
        with pytest.raises(dataclasses.FrozenInstanceError):
            cfg.gate_count = 3

    def test_ideal_time(self):
        assert SimulationConfig(passenger_count=10, gate_count=2, processing_time=5).ideal_time == 25
        assert SimulationConfig(passenger_count=11, gate_count=2, processing_time=5).ideal_time == 30
