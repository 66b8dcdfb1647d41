import random
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, List, Optional

from localsearch.base_model.compatibility_checks import calculate_compatible_resources
from localsearch.base_model.cost import Cost
from localsearch.base_model.problem_instance import ProblemInstance
from localsearch.base_model.resource import Resource
from localsearch.base_model.schedule import Schedule
from localsearch.construction.initial_assignment import build_initial_schedule, random_assignment
from localsearch.local_search.move import Move, do_move
from localsearch.local_search.move_generator import generate_full_neighborhood, generate_list_of_random_moves
from localsearch.local_search.rules_engine import calculate_delta_cost, calculate_full_cost, calculate_hard_weight
from localsearch.local_search.schedule_snapshot import ScheduleSnapshot
from localsearch.local_search.search_config import SearchConfig, StrategyKind
from localsearch.local_search.strategies import RandomRestart, SearchContext, SearchState, make_strategy
from localsearch.util.search_logger import SearchLogger


class TerminationReason(Enum):
    TARGET_REACHED = "TargetReached"
    MAX_ITERATIONS = "MaxIterations"
    TIMED_OUT = "TimedOut"
    CONVERGED = "Converged"
    STUCK = "Stuck"
    CANCELLED = "Cancelled"

    def __str__(self):
        return self.value


class CancellationToken:
    """Cooperative cancellation. The controller looks at it once per iteration."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class ProgressSnapshot:
    iteration: int
    best_cost: Cost
    current_cost: Cost
    state: SearchState
    temperature: Optional[float] = None
    restarts: int = 0
    elapsed_seconds: float = 0.0
    is_final: bool = False


@dataclass(frozen=True)
class TraceEntry:
    iteration: int
    current_cost: Cost
    best_cost: Cost
    accepted: bool


@dataclass
class SearchResult:
    best_schedule: Schedule
    best_cost: Cost
    initial_cost: Cost
    iterations: int
    restarts: int
    termination_reason: TerminationReason
    strategy: StrategyKind
    elapsed_seconds: float
    trace: List[TraceEntry] = field(default_factory=list)

    @property
    def assignment(self) -> dict[int, Resource]:
        return dict(self.best_schedule.iter_assignments())

    def to_json(self) -> dict:
        return {
            "strategy": str(self.strategy),
            "termination_reason": str(self.termination_reason),
            "iterations": self.iterations,
            "restarts": self.restarts,
            "elapsed_seconds": self.elapsed_seconds,
            "initial_cost": self.initial_cost.to_json(),
            "best_cost": self.best_cost.to_json(),
            "schedule": self.best_schedule.to_json(),
        }


class SearchController:
    """
    Drives one search run.

    The controller owns the schedule for the whole run. Each iteration it checks the
    termination conditions, asks the move generator for a candidate, scores it with the
    rules engine, lets the strategy decide, applies accepted moves and tracks the best
    schedule seen. A controller runs once; start a new one for another run.
    """

    def __init__(self, instance: ProblemInstance, config: SearchConfig,
                 cancel_token: Optional[CancellationToken] = None,
                 logger: Optional[SearchLogger] = None,
                 clock: Callable[[], float] = time.monotonic):
        config.validate()
        self.instance = instance
        self.config = config
        self.cancel_token = cancel_token
        self.logger = logger
        self.clock = clock

        self.rng = random.Random(config.seed)
        self.strategy = make_strategy(config)
        self.hard_weight = config.hard_weight if config.hard_weight is not None else calculate_hard_weight(instance)
        self.compatible_resources = calculate_compatible_resources(instance)

        self.schedule: Optional[Schedule] = None
        self.best_snapshot: Optional[ScheduleSnapshot] = None
        self.iteration = 0
        self.trace: List[TraceEntry] = []
        self.result: Optional[SearchResult] = None
        self._started = False
        self._start_time = 0.0
        self._initial_cost = Cost.zero()

    def _log(self, message: str) -> None:
        if self.logger is not None:
            self.logger.log_output(message)

    @property
    def best_cost(self) -> Cost:
        return self.best_snapshot.cost

    @property
    def restarts(self) -> int:
        return self.strategy.restarts if isinstance(self.strategy, RandomRestart) else 0

    def _elapsed_seconds(self) -> float:
        return self.clock() - self._start_time

    def _context(self) -> SearchContext:
        return SearchContext(self.iteration, self.schedule.cost, self.best_snapshot.cost, self.rng, self.hard_weight)

    def _progress(self, is_final: bool = False) -> ProgressSnapshot:
        return ProgressSnapshot(
            iteration=self.iteration,
            best_cost=self.best_snapshot.cost,
            current_cost=self.schedule.cost,
            state=self.strategy.state,
            temperature=self.strategy.temperature,
            restarts=self.restarts,
            elapsed_seconds=self._elapsed_seconds(),
            is_final=is_final,
        )

    def _start(self) -> None:
        if self._started:
            raise RuntimeError("A SearchController can only run once.")
        self._started = True
        self._start_time = self.clock()

        self.schedule = build_initial_schedule(self.instance, self.config.initial_assignment, self.rng, self.compatible_resources)
        self.schedule.cost = calculate_full_cost(self.schedule)
        self._initial_cost = self.schedule.cost
        self.best_snapshot = ScheduleSnapshot(self.schedule)

        self._log(f"Starting {self.config.strategy} on {self.instance}")
        self._log(f"Max iterations: {self.config.max_iterations}, time budget: {self.config.time_budget_ms} ms, seed: {self.config.seed}")
        self._log(f"Initial cost: {self.schedule.cost}")

    def _check_termination(self) -> Optional[TerminationReason]:
        if self.cancel_token is not None and self.cancel_token.is_cancelled():
            return TerminationReason.CANCELLED
        if self.config.time_budget_ms is not None and self._elapsed_seconds() * 1000 >= self.config.time_budget_ms:
            return TerminationReason.TIMED_OUT
        best = self.best_snapshot.cost
        if best.hard == 0 and best.soft <= self.config.soft_target:
            return TerminationReason.TARGET_REACHED
        if self.iteration >= self.config.max_iterations:
            return TerminationReason.MAX_ITERATIONS
        if self.strategy.state is SearchState.CONVERGED:
            return TerminationReason.CONVERGED
        if self.strategy.state is SearchState.STUCK:
            return TerminationReason.STUCK
        return None

    def _propose(self) -> tuple[Optional[Move], Cost]:
        """One candidate per iteration. With a sample size above 1 the best sampled move is proposed."""
        moves = generate_list_of_random_moves(
            self.schedule, self.compatible_resources, self.rng,
            self.config.neighborhood_sample_size, self.config.conflict_bias, self.config.swap_probability)
        if not moves:
            return None, Cost.zero()

        best_move, best_delta = None, None
        for move in moves:
            delta = calculate_delta_cost(self.schedule, move)
            if best_delta is None or delta < best_delta:
                best_move, best_delta = move, delta
        return best_move, best_delta

    def _apply(self, move: Move, delta: Cost) -> None:
        do_move(move, self.schedule)
        self.schedule.cost = self.schedule.cost + delta
        if self.schedule.cost < self.best_snapshot.cost:
            self.best_snapshot = ScheduleSnapshot(self.schedule)

    def _full_scan(self) -> None:
        """Steepest descent step over the whole neighborhood. Decides whether the strategy is stuck."""
        best_move, best_delta = None, None
        for move in generate_full_neighborhood(self.schedule, self.compatible_resources):
            delta = calculate_delta_cost(self.schedule, move)
            if best_delta is None or delta < best_delta:
                best_move, best_delta = move, delta

        improving = best_move is not None and best_delta < Cost.zero()
        if improving:
            self._apply(best_move, best_delta)
        state = self.strategy.on_full_scan(improving)
        if self.logger is not None:
            self.logger.log_state(self.iteration, self.schedule, self.schedule.cost, self.strategy.temperature,
                                  "full_scan", improving, event_type="full_scan")
        if state is SearchState.STUCK:
            self._log(f"Iteration {self.iteration}: no improving move in the full neighborhood, local optimum at {self.schedule.cost}")

    def _restart(self) -> None:
        random_assignment(self.instance, self.rng, self.compatible_resources, schedule=self.schedule)
        self.schedule.cost = calculate_full_cost(self.schedule)
        self.strategy.restart()
        if self.schedule.cost < self.best_snapshot.cost:
            self.best_snapshot = ScheduleSnapshot(self.schedule)
        self._log(f"Random restart {self.strategy.restarts}/{self.strategy.max_restarts}: "
                  f"new cost {self.schedule.cost}, best {self.best_snapshot.cost}")
        if self.logger is not None:
            self.logger.log_state(self.iteration, self.schedule, self.schedule.cost, self.strategy.temperature,
                                  "restart", True, event_type="restart")

    def _step(self) -> None:
        self.iteration += 1
        accepted = False

        move, delta = self._propose()
        if move is None:
            self.strategy.on_no_move()
        else:
            decision = self.strategy.propose_and_decide(self.schedule, move, delta, self._context())
            if decision.accept:
                self._apply(move, delta)
                accepted = True
            if self.logger is not None:
                move_type = "swap" if move.is_swap_move else "reassign"
                self.logger.log_state(self.iteration, self.schedule, self.schedule.cost,
                                      self.strategy.temperature, move_type, accepted)

        if self.strategy.needs_full_scan():
            self._full_scan()

        self.strategy.on_iteration_end(self._context())

        if isinstance(self.strategy, RandomRestart) and self.strategy.can_restart():
            self._restart()

        self.trace.append(TraceEntry(self.iteration, self.schedule.cost, self.best_snapshot.cost, accepted))

    def _finish(self, reason: TerminationReason) -> SearchResult:
        if reason is TerminationReason.TIMED_OUT:
            self.strategy.time_out()
        elapsed = self._elapsed_seconds()
        self._log(f"Terminated after {self.iteration} iterations ({elapsed:.2f}s): {reason}")
        self._log(f"Initial cost {self._initial_cost}, best cost {self.best_snapshot.cost}")

        self.result = SearchResult(
            best_schedule=self.best_snapshot.restore_schedule(self.instance),
            best_cost=self.best_snapshot.cost,
            initial_cost=self._initial_cost,
            iterations=self.iteration,
            restarts=self.restarts,
            termination_reason=reason,
            strategy=self.config.strategy,
            elapsed_seconds=elapsed,
            trace=self.trace,
        )
        return self.result

    def iter_progress(self) -> Iterator[ProgressSnapshot]:
        """
        Run the search, yielding a progress snapshot every `progress_every` iterations
        and a final one when the run ends. The result is in `self.result` afterwards.
        """
        self._start()
        while True:
            reason = self._check_termination()
            if reason is not None:
                break
            self._step()
            if self.iteration % self.config.progress_every == 0:
                self._log(f"Iteration: {self.iteration}, Time: {self._elapsed_seconds():.1f}s, "
                          f"State: {self.strategy.state}, Current: {self.schedule.cost}, Best: {self.best_snapshot.cost}"
                          + (f", Temp: {self.strategy.temperature:.3f}" if self.strategy.temperature is not None else ""))
                yield self._progress()

        self._finish(reason)
        yield self._progress(is_final=True)

    def run(self, on_progress: Optional[Callable[[ProgressSnapshot], None]] = None) -> SearchResult:
        for snapshot in self.iter_progress():
            if on_progress is not None:
                on_progress(snapshot)
        return self.result


def solve(instance: ProblemInstance, config: SearchConfig,
          cancel_token: Optional[CancellationToken] = None,
          logger: Optional[SearchLogger] = None,
          on_progress: Optional[Callable[[ProgressSnapshot], None]] = None) -> SearchResult:
    return SearchController(instance, config, cancel_token=cancel_token, logger=logger).run(on_progress)
