import numpy as np
from dataclasses import dataclass
from typing import List, Optional
import json


@dataclass
class LoggedState:
    """Represents a state in the search process"""
    iteration: int
    hard: int
    soft: int
    temperature: Optional[float]
    schedule_features: np.ndarray  # Feature vector representing schedule
    move_type: str
    is_accepted: bool
    is_best: bool
    event_type: Optional[str] = None  # 'restart', 'full_scan', etc.


def extract_schedule_features(schedule) -> np.ndarray:
    """Number of events occupying each period of the instance, in period order."""
    periods = schedule.instance.periods
    return np.array([len(schedule.events_in_period(period)) for period in periods], dtype=float)


class SearchLogger:
    """
    Logger for a search run.

    Messages go to stdout (when verbose) and to the log file, if one is given.
    Search states are captured every n iterations, plus every new best and every special event.
    """

    def __init__(self, log_every_n_iterations: int = 10, log_file_path: Optional[str] = None, verbose: bool = True):
        self.states: List[LoggedState] = []
        self.log_every_n_iterations = log_every_n_iterations
        self.verbose = verbose
        self.best_cost = None
        self.log_file_path = log_file_path
        self._log_file = None

    def open(self) -> None:
        if self.log_file_path and self._log_file is None:
            self._log_file = open(self.log_file_path, 'w')

    def close(self) -> None:
        if self._log_file is not None:
            self._log_file.close()
            self._log_file = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def log_output(self, message: str) -> None:
        if self.verbose:
            print(message)
        if self._log_file is not None:
            self._log_file.write(message + "\n")
            self._log_file.flush()  # Ensure data is written immediately

    def log_state(self,
                  iteration: int,
                  schedule,
                  cost,
                  temperature: Optional[float],
                  move_type: str,
                  is_accepted: bool,
                  event_type: Optional[str] = None) -> None:
        """Log a search state"""
        is_best = self.best_cost is None or cost < self.best_cost

        # Only log every n iterations to avoid too much data
        if iteration % self.log_every_n_iterations != 0:
            # But always log special events and best solutions
            if event_type is None and not is_best:
                return

        if is_best:
            self.best_cost = cost

        state = LoggedState(
            iteration=iteration,
            hard=cost.hard,
            soft=cost.soft,
            temperature=temperature,
            schedule_features=extract_schedule_features(schedule),
            move_type=move_type,
            is_accepted=is_accepted,
            is_best=is_best,
            event_type=event_type
        )

        self.states.append(state)

    def feature_matrix(self) -> np.ndarray:
        """One row per logged state."""
        if not self.states:
            return np.empty((0, 0))
        return np.vstack([state.schedule_features for state in self.states])

    def save_log(self, filepath: str):
        """Save the log data to a JSON file"""
        data = []
        for state in self.states:
            data.append({
                'iteration': state.iteration,
                'hard': state.hard,
                'soft': state.soft,
                'temperature': state.temperature,
                'features': state.schedule_features.tolist(),
                'move_type': state.move_type,
                'is_accepted': state.is_accepted,
                'is_best': state.is_best,
                'event_type': state.event_type
            })

        with open(filepath, 'w') as f:
            json.dump(data, f, indent=2)

    @staticmethod
    def load_log(filepath: str) -> 'SearchLogger':
        """Load log data from a JSON file"""
        logger = SearchLogger(verbose=False)

        with open(filepath, 'r') as f:
            data = json.load(f)

        for item in data:
            state = LoggedState(
                iteration=item['iteration'],
                hard=item['hard'],
                soft=item['soft'],
                temperature=item['temperature'],
                schedule_features=np.array(item['features']),
                move_type=item['move_type'],
                is_accepted=item['is_accepted'],
                is_best=item['is_best'],
                event_type=item.get('event_type')
            )
            logger.states.append(state)

        return logger
