import random
from typing import Dict, Iterator, List, Optional

from localsearch.base_model.resource import Resource
from localsearch.base_model.schedule import Schedule
from localsearch.local_search.move import Move
from localsearch.local_search.rules_engine import get_conflicted_events


def choose_event(schedule: Schedule, rng: random.Random, conflict_bias: float = 0.0) -> int:
    """
    Pick the event to move next.

    With probability conflict_bias the pick is restricted to the most conflicted events
    (min-conflicts heuristic), ties broken by rng. Otherwise the pick is uniform.
    """
    event_ids = [event.event_id for event in schedule.instance.events]
    if not event_ids:
        raise ValueError("No events found in the schedule.")

    if conflict_bias > 0 and rng.random() < conflict_bias:
        conflicted = get_conflicted_events(schedule)
        if conflicted:
            most_violations = max(conflicted.values())
            candidates = [event_id for event_id, n in conflicted.items() if n == most_violations]
            return rng.choice(candidates)

    return rng.choice(event_ids)

def generate_specific_reassign_move(schedule: Schedule, event_id: int, new_resource: Resource) -> Move:
    """
    Generate a reassign move for a specific event.
    """
    if event_id not in schedule.assigned_resources:
        raise ValueError(f"Event {event_id} is not placed in the schedule.")
    return Move(event_id, schedule.resource_of(event_id), new_resource)

def generate_specific_swap_move(schedule: Schedule, event_id: int, other_event_id: int) -> Move:
    """
    Generate a swap move between two specific events.
    """
    if event_id == other_event_id:
        raise ValueError("Cannot swap an event with itself.")
    return Move(event_id, schedule.resource_of(event_id), schedule.resource_of(other_event_id),
                other_event_id=other_event_id, is_swap_move=True)

def generate_random_reassign_move(schedule: Schedule, event_id: int,
                                  compatible_resources_dict: Dict[int, List[Resource]],
                                  rng: random.Random) -> Optional[Move]:
    current = schedule.resource_of(event_id)
    valid_resources = [r for r in compatible_resources_dict.get(event_id, []) if r != current]
    if not valid_resources:
        return None
    return Move(event_id, current, rng.choice(valid_resources))

def generate_random_swap_move(schedule: Schedule, event_id: int, rng: random.Random) -> Optional[Move]:
    current = schedule.resource_of(event_id)
    # swapping with an event at the same resource changes nothing
    valid_partners = [other_id for other_id, resource in schedule.iter_assignments()
                      if other_id != event_id and resource != current]
    if not valid_partners:
        return None
    return generate_specific_swap_move(schedule, event_id, rng.choice(valid_partners))

def generate_single_random_move(
    schedule: Schedule,
    compatible_resources_dict: Dict[int, List[Resource]],
    rng: random.Random,
    conflict_bias: float = 0.0,
    swap_probability: float = 0.0
) -> Optional[Move]:
    """Generate a random reassign or swap move. None if the chosen event cannot move at all."""
    event_id = choose_event(schedule, rng, conflict_bias)

    if swap_probability > 0 and rng.random() < swap_probability:
        move = generate_random_swap_move(schedule, event_id, rng)
        if move is not None:
            return move

    move = generate_random_reassign_move(schedule, event_id, compatible_resources_dict, rng)
    if move is None:
        move = generate_random_swap_move(schedule, event_id, rng)
    return move

def generate_list_of_random_moves(
    schedule: Schedule,
    compatible_resources_dict: Dict[int, List[Resource]],
    rng: random.Random,
    n_moves: int,
    conflict_bias: float = 0.0,
    swap_probability: float = 0.0
) -> List[Move]:
    moves = []
    for _ in range(n_moves):
        move = generate_single_random_move(schedule, compatible_resources_dict, rng, conflict_bias, swap_probability)
        if move is not None:
            moves.append(move)
    return moves

def generate_full_neighborhood(schedule: Schedule,
                               compatible_resources_dict: Dict[int, List[Resource]],
                               include_swaps: bool = True) -> Iterator[Move]:
    """
    Every reassign move, then every swap move, in catalog order.
    """
    placed = list(schedule.iter_assignments())

    for event_id, current in placed:
        for resource in compatible_resources_dict.get(event_id, []):
            if resource != current:
                yield Move(event_id, current, resource)

    if not include_swaps:
        return

    for i, (event_id, resource) in enumerate(placed):
        for other_id, other_resource in placed[i + 1:]:
            if resource != other_resource:
                yield Move(event_id, resource, other_resource, other_event_id=other_id, is_swap_move=True)
