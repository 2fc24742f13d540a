import heapq
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol

from .errors import QueueEmpty, QueueFull, QueueOrderError

logger = logging.getLogger(__name__)


class EventKind(Enum):
    # value is the rank among events sharing a timestamp
    REPAIR = 0
    COMPLETION = 1


@dataclass(order=True)
class Event:
    t: int
    rank: int = field(init=False, repr=False)
    seq: int = field(default=0)
    kind: EventKind = field(compare=False, default=EventKind.REPAIR)

    def __post_init__(self):
        self.rank = self.kind.value


def repair(t: int) -> Event:
    return Event(t, kind=EventKind.REPAIR)


def completion(t: int) -> Event:
    return Event(t, kind=EventKind.COMPLETION)


class EventQueue(Protocol):
    capacity: int

    def push(self, event: Event) -> None: ...

    def pop(self) -> Event: ...

    def peek(self) -> Event: ...

    def size(self) -> int: ...


class HeapEventQueue:
    """
    Bounded binary min-heap of events.

    Events pop in (time, kind, insertion) order: at equal time repairs come
    before completions, and equal events come out first-in first-out.
    """

    def __init__(self, capacity: int):
        self.capacity = capacity
        self.q: List[Event] = []
        self.seq = 0

    def push(self, event: Event) -> None:
        if len(self.q) >= self.capacity:
            logger.error("event queue full (capacity %d)", self.capacity)
            raise QueueFull(f"heap queue full at capacity {self.capacity}")
        self.seq += 1
        event.seq = self.seq
        heapq.heappush(self.q, event)

    def pop(self) -> Event:
        if not self.q:
            raise QueueEmpty("pop from empty heap queue")
        return heapq.heappop(self.q)

    def peek(self) -> Event:
        if not self.q:
            raise QueueEmpty("peek into empty heap queue")
        return self.q[0]

    def size(self) -> int:
        return len(self.q)

    def __len__(self):
        return len(self.q)


class RingEventQueue:
    """
    Fixed-capacity FIFO ring buffer.

    Only valid when events are pushed in time order, which holds for
    repair-only queues with a constant repair duration. An out-of-order push
    raises QueueOrderError instead of quietly breaking min-time ordering.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"ring capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.buf: List[Optional[Event]] = [None] * capacity
        self.head = 0
        self.count = 0
        self.seq = 0
        self.last_t: Optional[int] = None

    def push(self, event: Event) -> None:
        if self.count >= self.capacity:
            logger.error("event queue full (capacity %d)", self.capacity)
            raise QueueFull(f"ring queue full at capacity {self.capacity}")
        if self.count and event.t < self.last_t:
            raise QueueOrderError(
                f"out-of-order push into ring queue: {event.t} after {self.last_t}"
            )
        self.seq += 1
        event.seq = self.seq
        self.buf[(self.head + self.count) % self.capacity] = event
        self.count += 1
        self.last_t = event.t

    def pop(self) -> Event:
        if not self.count:
            raise QueueEmpty("pop from empty ring queue")
        event = self.buf[self.head]
        self.buf[self.head] = None
        self.head = (self.head + 1) % self.capacity
        self.count -= 1
        return event

    def peek(self) -> Event:
        if not self.count:
            raise QueueEmpty("peek into empty ring queue")
        return self.buf[self.head]

    def size(self) -> int:
        return self.count

    def __len__(self):
        return self.count
