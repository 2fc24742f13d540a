class SimulationError(Exception):
    """Base class for every fatal, run-local simulation failure."""


class QueueFull(SimulationError):
    pass


class QueueEmpty(SimulationError):
    pass


class InvalidConfig(SimulationError, ValueError):
    pass


class QueueOrderError(SimulationError, ValueError):
    """An event would be popped before one already queued ahead of it."""


class InvariantViolation(SimulationError):
    pass


class DidNotConverge(SimulationError):
    """
    Simulated time passed the configured ceiling before all units were cleared.

    The partial percentile record and the last state are kept so the caller
    can report how far the run got.
    """

    def __init__(self, message, record=None, state=None):
        super().__init__(message)
        self.record = record
        self.state = state
