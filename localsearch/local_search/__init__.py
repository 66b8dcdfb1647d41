"""
Local search for assigning events to (period, location) resources.
Includes moves, the rules engine and the hill climbing, simulated annealing and random restart strategies.
The loop that drives them lives in search_controller.
"""

from localsearch.local_search.move import Move, do_move, undo_move
from localsearch.local_search.move_generator import generate_single_random_move, generate_full_neighborhood
from localsearch.local_search.rules_engine import calculate_full_cost, calculate_delta_cost
from localsearch.local_search.search_config import SearchConfig, StrategyKind
from localsearch.local_search.strategies import HillClimbing, SimulatedAnnealing, RandomRestart, make_strategy

__all__ = [
    'Move',
    'do_move',
    'undo_move',
    'generate_single_random_move',
    'generate_full_neighborhood',
    'calculate_full_cost',
    'calculate_delta_cost',
    'SearchConfig',
    'StrategyKind',
    'HillClimbing',
    'SimulatedAnnealing',
    'RandomRestart',
    'make_strategy',
]
