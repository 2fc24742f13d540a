# models.py
# Gate-bank simulation: N parallel gates clear a fixed volume of units while
# randomly breaking down and getting repaired.
#
# Three interchangeable scheduling strategies share one contract,
# Model(config).run(seed, sampler) -> percentile record:
#   - TickModel:    fixed-tick, lock-step batch processing (ring or heap queue)
#   - EventModel:   event-driven, jittered durations, time jumps event to event
#   - ProcessModel: the event-driven model written as SimPy gate processes

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import simpy

from .config import SimulationConfig
from .errors import DidNotConverge, InvariantViolation
from .events import (
    EventKind,
    EventQueue,
    HeapEventQueue,
    RingEventQueue,
    completion,
    repair,
)
from .percentiles import Sampler, make_sampler
from .variates import VariateGenerator

logger = logging.getLogger(__name__)

QueueFactory = Callable[[int], EventQueue]


# ---------- State ----------


@dataclass
class SimulationState:
    time: int = 0
    completed: int = 0
    in_flight: int = 0
    broken: int = 0

    def advance(self, t: int) -> None:
        if t < self.time:
            raise InvariantViolation(f"time moved backwards: {self.time} -> {t}")
        self.time = t

    def check(self, config: SimulationConfig) -> None:
        if not 0 <= self.broken <= config.gate_count:
            raise InvariantViolation(
                f"broken={self.broken} outside [0, {config.gate_count}]"
            )
        if not 0 <= self.in_flight <= config.gate_count - self.broken:
            raise InvariantViolation(
                f"in_flight={self.in_flight} with broken={self.broken} "
                f"exceeds {config.gate_count} gates"
            )
        if not 0 <= self.completed <= config.passenger_count:
            raise InvariantViolation(
                f"completed={self.completed} outside [0, {config.passenger_count}]"
            )


# ---------- Models ----------


class Model:
    default_percentiles = "sparse"

    def __init__(
        self, config: SimulationConfig, queue_factory: Optional[QueueFactory] = None
    ):
        self.config = config
        self.queue_factory = queue_factory or self.default_queue_factory()

    def default_queue_factory(self) -> QueueFactory:
        return HeapEventQueue

    def run(self, seed: int, sampler: Optional[Sampler] = None):
        raise NotImplementedError

    def _ceiling_hit(self, state: SimulationState, steps: int) -> bool:
        cfg = self.config
        if state.completed >= cfg.passenger_count:
            return False
        if cfg.max_time is not None and state.time > cfg.max_time:
            return True
        return cfg.max_steps is not None and steps >= cfg.max_steps

    def _did_not_converge(self, state: SimulationState, steps: int, sampler: Sampler):
        msg = (
            f"{type(self).__name__} did not converge: {state.completed}/"
            f"{self.config.passenger_count} done at t={state.time} after {steps} steps"
        )
        return DidNotConverge(msg, record=sampler.record, state=state)


class TickModel(Model):
    """
    Fixed-tick batch model.

    Every tick each healthy gate finishes exactly one unit, then rolls for a
    breakdown. A gate that breaks during a tick has already finished that
    tick's unit (complete-before-roll).
    """

    default_percentiles = "dense"

    def default_queue_factory(self) -> QueueFactory:
        # constant repairs mature in push order, jittered ones do not
        if self.config.jitter_repair:
            return HeapEventQueue
        return RingEventQueue

    def _repair_time(self, variates: VariateGenerator) -> int:
        if self.config.jitter_repair:
            return variates.jittered(self.config.repair_time)
        return self.config.repair_time

    def run(self, seed: int, sampler: Optional[Sampler] = None):
        cfg = self.config
        variates = VariateGenerator(cfg.break_chance, seed)
        if sampler is None:
            sampler = make_sampler(self.default_percentiles)
        repairs = self.queue_factory(cfg.gate_count)
        state = SimulationState()
        steps = 0
        logger.debug("tick run seed=%s config=%s", seed, cfg)

        while state.completed < cfg.passenger_count:
            # fix broken
            while repairs.size() > 0 and repairs.peek().t <= state.time:
                repairs.pop()
                state.broken -= 1

            # process through all healthy gates
            healthy = cfg.gate_count - state.broken
            state.advance(state.time + cfg.processing_time)
            state.completed = min(cfg.passenger_count, state.completed + healthy)

            # roll a breakage trial for every gate that worked this tick
            for _ in range(healthy):
                if variates.breaks():
                    state.broken += 1
                    repairs.push(repair(state.time + self._repair_time(variates)))

            state.check(cfg)
            sampler.observe(state.completed, cfg.passenger_count, state.time)
            steps += 1
            if self._ceiling_hit(state, steps):
                raise self._did_not_converge(state, steps, sampler)

        logger.debug("tick run seed=%s finished at t=%d in %d ticks", seed, state.time, steps)
        return sampler.record


class EventModel(Model):
    """
    Event-driven model with jittered repair and processing durations.

    Breakage is rolled only for idle healthy gates that are about to start a
    unit (break-before-start), so a gate never breaks with a unit in flight
    and in_flight + broken never exceeds gate_count.
    """

    def run(self, seed: int, sampler: Optional[Sampler] = None):
        cfg = self.config
        variates = VariateGenerator(cfg.break_chance, seed)
        if sampler is None:
            sampler = make_sampler(self.default_percentiles)
        # at most one pending repair or completion per gate; 2x is the safe bound
        queue = self.queue_factory(2 * cfg.gate_count)
        state = SimulationState()
        steps = 0
        logger.debug("event run seed=%s config=%s", seed, cfg)

        while state.completed < cfg.passenger_count:
            idle = cfg.gate_count - state.broken - state.in_flight
            unstarted = cfg.passenger_count - state.completed - state.in_flight
            for _ in range(min(idle, unstarted)):
                if variates.breaks():
                    state.broken += 1
                    queue.push(repair(state.time + variates.jittered(cfg.repair_time)))

            while (
                state.in_flight < cfg.gate_count - state.broken
                and state.completed + state.in_flight < cfg.passenger_count
            ):
                state.in_flight += 1
                queue.push(
                    completion(state.time + variates.jittered(cfg.processing_time))
                )

            ev = queue.pop()
            state.advance(ev.t)
            if ev.kind is EventKind.REPAIR:
                state.broken -= 1
            else:
                state.in_flight -= 1
                state.completed += 1

            state.check(cfg)
            sampler.observe(state.completed, cfg.passenger_count, state.time)
            steps += 1
            if self._ceiling_hit(state, steps):
                raise self._did_not_converge(state, steps, sampler)

        logger.debug("event run seed=%s finished at t=%d in %d events", seed, state.time, steps)
        return sampler.record


class ProcessModel(Model):
    """
    The event-driven model as one SimPy process per gate.

    Each gate loops: claim a unit, roll for a breakdown (repair and retry on
    failure), otherwise process the unit. Ordering of simultaneous events is
    left to SimPy's scheduler, so traces match EventModel statistically but
    not draw for draw.
    """

    def run(self, seed: int, sampler: Optional[Sampler] = None):
        cfg = self.config
        variates = VariateGenerator(cfg.break_chance, seed)
        if sampler is None:
            sampler = make_sampler(self.default_percentiles)
        env = simpy.Environment()
        state = SimulationState()
        stop = env.event()
        steps = 0

        def changed():
            nonlocal steps
            state.advance(int(env.now))
            state.check(cfg)
            sampler.observe(state.completed, cfg.passenger_count, state.time)
            steps += 1
            if state.completed >= cfg.passenger_count or self._ceiling_hit(state, steps):
                if not stop.triggered:
                    stop.succeed()

        def gate():
            while state.completed + state.in_flight < cfg.passenger_count:
                if variates.breaks():
                    state.broken += 1
                    yield env.timeout(variates.jittered(cfg.repair_time))
                    state.broken -= 1
                    changed()
                    continue
                state.in_flight += 1
                yield env.timeout(variates.jittered(cfg.processing_time))
                state.in_flight -= 1
                state.completed += 1
                changed()

        logger.debug("process run seed=%s config=%s", seed, cfg)
        for _ in range(cfg.gate_count):
            env.process(gate())
        env.run(until=stop)

        if state.completed < cfg.passenger_count:
            raise self._did_not_converge(state, steps, sampler)
        logger.debug("process run seed=%s finished at t=%d in %d steps", seed, state.time, steps)
        return sampler.record


MODELS = {
    "tick": TickModel,
    "event": EventModel,
    "process": ProcessModel,
}


def simulate(config: SimulationConfig, seed: int, model: str = "event", percentiles=None):
    """
    Run one simulation and return its percentile record.

    A pure function of its arguments, so it can be shipped to worker
    processes. percentiles is a policy accepted by make_sampler; None picks
    the model's default (dense for the tick model, sparse otherwise).
    """
    try:
        cls = MODELS[model]
    except KeyError:
        raise ValueError(f"unknown model {model!r}, expected one of {sorted(MODELS)}") from None
    m = cls(config)
    sampler = make_sampler(percentiles if percentiles is not None else cls.default_percentiles)
    return m.run(seed, sampler)
