import numbers
from dataclasses import dataclass
from typing import Optional

from .errors import InvalidConfig


def _require_int(name, value):
    # bool is an Integral but never a count; numpy integers pass
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidConfig(f"{name} must be an integer, got {value!r}")


@dataclass(frozen=True)
class SimulationConfig:
    passenger_count: int
    gate_count: int
    break_chance: float = 0.0
    repair_time: int = 0
    processing_time: int = 1
    # draw each repair around repair_time instead of using it verbatim (tick model)
    jitter_repair: bool = False
    # give up once simulated time passes this, or after this many loop steps
    max_time: Optional[int] = None
    max_steps: Optional[int] = None

    def __post_init__(self):
        for name in ("passenger_count", "gate_count", "repair_time", "processing_time"):
            _require_int(name, getattr(self, name))
        for name in ("max_time", "max_steps"):
            if getattr(self, name) is not None:
                _require_int(name, getattr(self, name))
        if isinstance(self.break_chance, bool) or not isinstance(self.break_chance, numbers.Real):
            raise InvalidConfig(f"break_chance must be a number, got {self.break_chance!r}")

        if self.passenger_count <= 0:
            raise InvalidConfig(f"passenger_count must be positive, got {self.passenger_count}")
        if self.gate_count <= 0:
            raise InvalidConfig(f"gate_count must be positive, got {self.gate_count}")
        if not 0.0 <= self.break_chance <= 1.0:
            raise InvalidConfig(f"break_chance must be within [0, 1], got {self.break_chance}")
        if self.repair_time < 0:
            raise InvalidConfig(f"repair_time must be non-negative, got {self.repair_time}")
        if self.processing_time <= 0:
            raise InvalidConfig(f"processing_time must be positive, got {self.processing_time}")
        if self.max_time is not None and self.max_time <= 0:
            raise InvalidConfig(f"max_time must be positive when set, got {self.max_time}")
        if self.max_steps is not None and self.max_steps <= 0:
            raise InvalidConfig(f"max_steps must be positive when set, got {self.max_steps}")

    @property
    def ideal_time(self) -> int:
        """Time to clear the volume with no breakage and constant processing."""
        batches = -(-self.passenger_count // self.gate_count)
        return batches * self.processing_time
