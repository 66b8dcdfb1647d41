import random
from typing import Dict, List, Optional

from localsearch.base_model.problem_instance import ProblemInstance
from localsearch.base_model.resource import Resource
from localsearch.base_model.schedule import Schedule
from localsearch.base_model.compatibility_checks import calculate_compatible_resources
from localsearch.local_search.rules_engine import count_event_violations


def random_assignment(instance: ProblemInstance, rng: random.Random,
                      compatible_resources: Optional[Dict[int, List[Resource]]] = None,
                      schedule: Optional[Schedule] = None) -> Schedule:
    """
    Place every event at a uniformly chosen compatible resource.

    Passing a schedule clears and refills it in place, which is how random restarts reuse the search state.
    """
    if compatible_resources is None:
        compatible_resources = calculate_compatible_resources(instance)
    if schedule is None:
        schedule = Schedule(instance)
    else:
        schedule.clear()

    for event in instance.events:
        schedule.place(event.event_id, rng.choice(compatible_resources[event.event_id]))

    return schedule


def greedy_assignment(instance: ProblemInstance, rng: random.Random,
                      compatible_resources: Optional[Dict[int, List[Resource]]] = None) -> Schedule:
    """
    Generate a schedule by placing the most constrained events first,
    each at the compatible resource where it takes part in the fewest hard violations.
    Ties are broken by the random source.
    """
    if compatible_resources is None:
        compatible_resources = calculate_compatible_resources(instance)
    schedule = Schedule(instance)

    # fewest options first, then the events with the most peers
    order = sorted(instance.events,
                   key=lambda e: (len(compatible_resources[e.event_id]), -len(instance.peers_of(e.event_id)), e.event_id))

    for event in order:
        best_resources = []
        best_violations = None
        for resource in compatible_resources[event.event_id]:
            schedule.place(event.event_id, resource)
            violations = count_event_violations(schedule, event.event_id)
            schedule.remove(event.event_id)

            if best_violations is None or violations < best_violations:
                best_violations = violations
                best_resources = [resource]
            elif violations == best_violations:
                best_resources.append(resource)

        schedule.place(event.event_id, rng.choice(best_resources))

    return schedule


def build_initial_schedule(instance: ProblemInstance, method: str, rng: random.Random,
                           compatible_resources: Optional[Dict[int, List[Resource]]] = None) -> Schedule:
    if method == "random":
        return random_assignment(instance, rng, compatible_resources)
    if method == "greedy":
        return greedy_assignment(instance, rng, compatible_resources)
    raise ValueError(f"Unknown initial assignment method: {method}")
