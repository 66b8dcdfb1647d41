from dataclasses import dataclass, fields, asdict
from enum import Enum
from typing import Any, Optional

from localsearch.errors import ConfigurationError


class StrategyKind(Enum):
    """The closed set of search strategies."""
    HILL_CLIMBING = "HillClimbing"
    SIMULATED_ANNEALING = "SimulatedAnnealing"
    RANDOM_RESTART = "RandomRestart"

    def __str__(self):
        return self.value

    @classmethod
    def from_string(cls, strategy_string: str) -> 'StrategyKind':
        normalized = strategy_string.replace("_", "").replace("-", "").replace(" ", "").lower()
        for kind in cls:
            if kind.value.lower() == normalized:
                return kind
        raise ConfigurationError(f"Unknown strategy: {strategy_string}")


# option names as the presentation layer sends them
_CAMEL_CASE_KEYS = {
    "maxIterations": "max_iterations",
    "timeBudgetMs": "time_budget_ms",
    "initialTemperature": "initial_temperature",
    "coolingRate": "cooling_rate",
    "minTemperature": "min_temperature",
    "acceptPlateau": "accept_plateau",
    "maxRestarts": "max_restarts",
    "restartStrategy": "restart_strategy",
    "softTarget": "soft_target",
    "conflictBias": "conflict_bias",
    "swapProbability": "swap_probability",
    "neighborhoodSampleSize": "neighborhood_sample_size",
    "stagnationLimit": "stagnation_limit",
    "progressEvery": "progress_every",
    "initialAssignment": "initial_assignment",
    "hardWeight": "hard_weight",
}

INITIAL_ASSIGNMENTS = ("random", "greedy")


@dataclass
class SearchConfig:
    """Parameters of one search run."""
    strategy: StrategyKind = StrategyKind.HILL_CLIMBING
    max_iterations: int = 10000
    time_budget_ms: Optional[int] = None  # None means no wall-clock limit
    seed: int = 13062025
    initial_temperature: float = 100.0
    cooling_rate: float = 0.995  # geometric, applied once per iteration
    min_temperature: float = 0.01
    accept_plateau: bool = False  # hill climbing accepts delta <= 0 instead of delta < 0
    max_restarts: int = 10
    restart_strategy: StrategyKind = StrategyKind.HILL_CLIMBING  # base strategy for random restart
    soft_target: int = 0  # stop once hard == 0 and soft <= soft_target
    conflict_bias: float = 0.8
    swap_probability: float = 0.2
    neighborhood_sample_size: int = 1  # moves sampled per hill climbing iteration, best one is proposed
    stagnation_limit: int = 200  # rejected iterations before a full neighborhood scan
    progress_every: int = 100
    initial_assignment: str = "random"
    hard_weight: Optional[int] = None  # None means derived from the instance

    def __post_init__(self):
        if isinstance(self.strategy, str):
            self.strategy = StrategyKind.from_string(self.strategy)
        if isinstance(self.restart_strategy, str):
            self.restart_strategy = StrategyKind.from_string(self.restart_strategy)

    @classmethod
    def from_dict(cls, options: dict[str, Any]) -> 'SearchConfig':
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in options.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name not in known:
                raise ConfigurationError(f"Unknown configuration option: {key}")
            kwargs[name] = value
        config = cls(**kwargs)
        config.validate()
        return config

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["strategy"] = str(self.strategy)
        data["restart_strategy"] = str(self.restart_strategy)
        return data

    def validate(self) -> None:
        if not isinstance(self.strategy, StrategyKind):
            raise ConfigurationError(f"Unknown strategy: {self.strategy!r}")
        if self.restart_strategy not in (StrategyKind.HILL_CLIMBING, StrategyKind.SIMULATED_ANNEALING):
            raise ConfigurationError(f"Random restart needs HillClimbing or SimulatedAnnealing as base, got {self.restart_strategy}")

        _require_int("max_iterations", self.max_iterations, minimum=1)
        if self.time_budget_ms is not None:
            _require_int("time_budget_ms", self.time_budget_ms, minimum=0)
        _require_int("seed", self.seed)
        _require_int("max_restarts", self.max_restarts, minimum=0)
        _require_int("soft_target", self.soft_target, minimum=0)
        _require_int("neighborhood_sample_size", self.neighborhood_sample_size, minimum=1)
        _require_int("stagnation_limit", self.stagnation_limit, minimum=1)
        _require_int("progress_every", self.progress_every, minimum=1)
        if self.hard_weight is not None:
            _require_int("hard_weight", self.hard_weight, minimum=1)

        for name in ("initial_temperature", "min_temperature", "cooling_rate", "conflict_bias", "swap_probability"):
            _require_number(name, getattr(self, name))
        if not self.initial_temperature > 0:
            raise ConfigurationError(f"initial_temperature must be positive, got {self.initial_temperature}")
        if not self.min_temperature > 0:
            raise ConfigurationError(f"min_temperature must be positive, got {self.min_temperature}")
        if not 0 < self.cooling_rate < 1:
            raise ConfigurationError(f"cooling_rate must be in (0, 1), got {self.cooling_rate}")
        for name in ("conflict_bias", "swap_probability"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise ConfigurationError(f"{name} must be a probability, got {value}")
        if not isinstance(self.accept_plateau, bool):
            raise ConfigurationError(f"accept_plateau must be a boolean, got {self.accept_plateau!r}")
        if self.initial_assignment not in INITIAL_ASSIGNMENTS:
            raise ConfigurationError(f"initial_assignment must be one of {INITIAL_ASSIGNMENTS}, got {self.initial_assignment!r}")


def _require_int(name: str, value, minimum: Optional[int] = None) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if minimum is not None and value < minimum:
        raise ConfigurationError(f"{name} must be at least {minimum}, got {value}")


def _require_number(name: str, value) -> None:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
