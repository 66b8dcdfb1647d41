"""
Search strategies.

The set of strategies is closed: HillClimbing, SimulatedAnnealing and RandomRestart.
All three answer the same question through propose_and_decide: given the current schedule,
a candidate move and its delta cost, should the move be accepted, and what state is the
search in afterwards. make_strategy is the only place that turns a StrategyKind into one.
"""

import math
import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from localsearch.base_model.cost import Cost
from localsearch.base_model.schedule import Schedule
from localsearch.local_search.move import Move
from localsearch.local_search.search_config import SearchConfig, StrategyKind


class SearchState(Enum):
    EXPLORING = "Exploring"
    ACCEPTING = "Accepting"
    STUCK = "Stuck"
    CONVERGED = "Converged"
    TIMED_OUT = "TimedOut"

    def __str__(self):
        return self.value


@dataclass
class SearchContext:
    """What a strategy may look at besides the move itself."""
    iteration: int
    current_cost: Cost
    best_cost: Cost
    rng: random.Random
    hard_weight: int


@dataclass(frozen=True)
class Decision:
    accept: bool
    state: SearchState


class HillClimbing:
    kind = StrategyKind.HILL_CLIMBING

    def __init__(self, accept_plateau: bool = False, stagnation_limit: int = 200):
        self.accept_plateau = accept_plateau
        self.stagnation_limit = stagnation_limit
        self.state = SearchState.EXPLORING
        self.rejections_in_a_row = 0

    def reset(self) -> None:
        self.state = SearchState.EXPLORING
        self.rejections_in_a_row = 0

    @property
    def temperature(self) -> Optional[float]:
        return None

    def is_acceptable(self, delta: Cost) -> bool:
        zero = Cost.zero()
        return delta < zero or (self.accept_plateau and delta <= zero)

    def propose_and_decide(self, schedule: Schedule, move: Move, delta: Cost, context: SearchContext) -> Decision:
        if self.is_acceptable(delta):
            self.rejections_in_a_row = 0
            self.state = SearchState.ACCEPTING
        else:
            self.rejections_in_a_row += 1
            self.state = SearchState.EXPLORING
        return Decision(self.state is SearchState.ACCEPTING, self.state)

    def on_no_move(self) -> None:
        self.rejections_in_a_row += 1
        self.state = SearchState.EXPLORING

    def needs_full_scan(self) -> bool:
        return self.rejections_in_a_row >= self.stagnation_limit

    def on_full_scan(self, improving_move_found: bool) -> SearchState:
        # a plateau move does not get us out of a local optimum, only strict improvement counts here
        if improving_move_found:
            self.rejections_in_a_row = 0
            self.state = SearchState.ACCEPTING
        else:
            self.state = SearchState.STUCK
        return self.state

    def on_iteration_end(self, context: SearchContext) -> SearchState:
        return self.state

    def time_out(self) -> None:
        self.state = SearchState.TIMED_OUT


class SimulatedAnnealing:
    kind = StrategyKind.SIMULATED_ANNEALING

    def __init__(self, initial_temperature: float = 100.0, cooling_rate: float = 0.995, min_temperature: float = 0.01):
        self.initial_temperature = initial_temperature
        self.cooling_rate = cooling_rate
        self.min_temperature = min_temperature
        self.current_temperature = initial_temperature
        self.state = SearchState.EXPLORING

    def reset(self) -> None:
        self.current_temperature = self.initial_temperature
        self.state = SearchState.EXPLORING

    @property
    def temperature(self) -> Optional[float]:
        return self.current_temperature

    def acceptance_probability(self, delta: Cost, hard_weight: int) -> float:
        if delta <= Cost.zero():
            return 1.0
        scalar_delta = delta.scalar(hard_weight)
        if scalar_delta <= 0:
            return 1.0
        return math.exp(-scalar_delta / self.current_temperature)

    def propose_and_decide(self, schedule: Schedule, move: Move, delta: Cost, context: SearchContext) -> Decision:
        if delta <= Cost.zero():
            accept = True
        else:
            accept = context.rng.random() < self.acceptance_probability(delta, context.hard_weight)
        self.state = SearchState.ACCEPTING if accept else SearchState.EXPLORING
        return Decision(accept, self.state)

    def on_no_move(self) -> None:
        self.state = SearchState.EXPLORING

    def needs_full_scan(self) -> bool:
        return False

    def on_full_scan(self, improving_move_found: bool) -> SearchState:
        return self.state

    def on_iteration_end(self, context: SearchContext) -> SearchState:
        self.current_temperature *= self.cooling_rate
        if self.current_temperature < self.min_temperature:
            self.state = SearchState.CONVERGED if context.best_cost.hard == 0 else SearchState.STUCK
        return self.state

    def time_out(self) -> None:
        self.state = SearchState.TIMED_OUT


class RandomRestart:
    """
    Runs a base strategy and, whenever it gets stuck, asks for a fresh random assignment.
    The controller keeps the best schedule seen across restarts.
    """
    kind = StrategyKind.RANDOM_RESTART

    def __init__(self, base: Union[HillClimbing, SimulatedAnnealing], max_restarts: int = 10):
        self.base = base
        self.max_restarts = max_restarts
        self.restarts = 0

    @property
    def state(self) -> SearchState:
        return self.base.state

    @property
    def temperature(self) -> Optional[float]:
        return self.base.temperature

    def reset(self) -> None:
        self.base.reset()
        self.restarts = 0

    def can_restart(self) -> bool:
        return self.base.state is SearchState.STUCK and self.restarts < self.max_restarts

    def restart(self) -> None:
        """Called by the controller after it re-randomized the assignment."""
        if not self.can_restart():
            raise RuntimeError("Random restart requested while not stuck or out of restarts")
        self.restarts += 1
        self.base.reset()

    def propose_and_decide(self, schedule: Schedule, move: Move, delta: Cost, context: SearchContext) -> Decision:
        return self.base.propose_and_decide(schedule, move, delta, context)

    def on_no_move(self) -> None:
        self.base.on_no_move()

    def needs_full_scan(self) -> bool:
        return self.base.needs_full_scan()

    def on_full_scan(self, improving_move_found: bool) -> SearchState:
        return self.base.on_full_scan(improving_move_found)

    def on_iteration_end(self, context: SearchContext) -> SearchState:
        return self.base.on_iteration_end(context)

    def time_out(self) -> None:
        self.base.time_out()


Strategy = Union[HillClimbing, SimulatedAnnealing, RandomRestart]


def _make_base_strategy(kind: StrategyKind, config: SearchConfig) -> Union[HillClimbing, SimulatedAnnealing]:
    if kind is StrategyKind.HILL_CLIMBING:
        return HillClimbing(config.accept_plateau, config.stagnation_limit)
    if kind is StrategyKind.SIMULATED_ANNEALING:
        return SimulatedAnnealing(config.initial_temperature, config.cooling_rate, config.min_temperature)
    raise ValueError(f"{kind} cannot be used as a base strategy")

def make_strategy(config: SearchConfig) -> Strategy:
    if config.strategy is StrategyKind.RANDOM_RESTART:
        return RandomRestart(_make_base_strategy(config.restart_strategy, config), config.max_restarts)
    return _make_base_strategy(config.strategy, config)
