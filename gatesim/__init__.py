from .config import SimulationConfig
from .errors import (
    DidNotConverge,
    InvalidConfig,
    InvariantViolation,
    QueueEmpty,
    QueueFull,
    QueueOrderError,
    SimulationError,
)
from .events import Event, EventKind, HeapEventQueue, RingEventQueue
from .models import MODELS, EventModel, ProcessModel, SimulationState, TickModel, simulate
from .percentiles import UNSET, DensePercentiles, SparsePercentiles, make_sampler
from .runner import run_many
from .variates import VariateGenerator

__version__ = "0.1.0"
