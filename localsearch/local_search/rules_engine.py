import math

from localsearch.base_model.cost import Cost
from localsearch.base_model.problem_instance import ProblemInstance
from localsearch.base_model.schedule import Schedule
from localsearch.local_search.move import Move, do_move, undo_move
from localsearch.local_search.rules_engine_helpers import (
    cell_overflow, count_conflicting_pairs, count_location_changes, count_violated_prerequisites,
    event_fits_resource, event_in_preferred_period, events_overlap, get_affected_cells,
    get_affected_conflict_pairs, get_affected_periods, get_affected_prerequisite_pairs,
    period_load_penalty, prerequisite_violated,
)


def calculate_hard_weight(instance: ProblemInstance) -> int:
    """
    Weight of one hard violation when a cost has to be collapsed to a single number.
    Rounded up to a power of 10 for readability.

    Ensures the constraint hierarchy is kept: all soft penalty combined < one hard violation.
    """
    weights = instance.weights
    n_events = len(instance.events)
    total_occupancy = sum(event.duration for event in instance.events)
    n_prerequisite_pairs = sum(len(instance.prerequisites_of(event.event_id)) for event in instance.events)

    max_soft_penalty = (weights.preferred_period * n_events
                        + weights.load_balance * total_occupancy * total_occupancy
                        + weights.location_stability * n_prerequisite_pairs)

    exact_hard_weight = max(max_soft_penalty, 1) * 10
    hard_log = math.ceil(math.log10(exact_hard_weight))
    return 10 ** hard_log


def calculate_full_cost(schedule: Schedule) -> Cost:
    # Hard
    hard_violations = 0
    hard_violations += nr1_peer_conflict_full(schedule)
    hard_violations += nr2_incompatible_resource_full(schedule)
    hard_violations += nr3_capacity_exceeded_full(schedule)
    hard_violations += nr4_prerequisite_order_full(schedule)

    # Soft
    weights = schedule.instance.weights
    soft_penalty = 0
    soft_penalty += weights.preferred_period * nr5_preferred_period_full(schedule)
    soft_penalty += weights.load_balance * nr6_load_balance_full(schedule)
    soft_penalty += weights.location_stability * nr7_location_stability_full(schedule)

    return Cost(hard_violations, soft_penalty)

def calculate_delta_cost(schedule: Schedule, move: Move) -> Cost:
    """
    do the move AFTER calling this function.
    NOT BEFORE!!!
    """
    if move is None or move.is_applied:
        raise ValueError("Move is None or already applied.")

    # Hard rules
    hard_violations = 0
    hard_violations += nr1_peer_conflict_delta(schedule, move)
    hard_violations += nr2_incompatible_resource_delta(schedule, move)
    hard_violations += nr3_capacity_exceeded_delta(schedule, move)
    hard_violations += nr4_prerequisite_order_delta(schedule, move)

    # Soft rules
    weights = schedule.instance.weights
    soft_penalty = 0
    soft_penalty += weights.preferred_period * nr5_preferred_period_delta(schedule, move)
    soft_penalty += weights.load_balance * nr6_load_balance_delta(schedule, move)
    soft_penalty += weights.location_stability * nr7_location_stability_delta(schedule, move)

    return Cost(hard_violations, soft_penalty)


def nr1_peer_conflict_full(schedule: Schedule) -> int:
    """
    Counts pairs of conflicting events that collide. Each unordered pair counts once.
    """
    violations = 0
    for event_id in schedule.assigned_resources:
        for peer_id in schedule.instance.peers_of(event_id):
            if event_id < peer_id and events_overlap(schedule, event_id, peer_id):
                violations += 1
    return violations

def nr1_peer_conflict_delta(schedule: Schedule, move: Move) -> int:
    affected_pairs = get_affected_conflict_pairs(schedule, move)
    if not affected_pairs:
        return 0

    violations_before = count_conflicting_pairs(schedule, affected_pairs)
    do_move(move, schedule)
    violations_after = count_conflicting_pairs(schedule, affected_pairs)
    undo_move(move, schedule)

    return violations_after - violations_before


def nr2_incompatible_resource_full(schedule: Schedule) -> int:
    violations = 0
    for event_id, resource in schedule.assigned_resources.items():
        if not event_fits_resource(schedule, event_id, resource):
            violations += 1
    return violations

def nr2_incompatible_resource_delta(schedule: Schedule, move: Move) -> int:
    # only the moved events change their resource, so no need to touch the schedule
    violations_before = sum(1 for event_id, resource in move.placements_before().items()
                            if not event_fits_resource(schedule, event_id, resource))
    violations_after = sum(1 for event_id, resource in move.placements_after().items()
                           if not event_fits_resource(schedule, event_id, resource))
    return violations_after - violations_before


def nr3_capacity_exceeded_full(schedule: Schedule) -> int:
    """
    Seats missing over all (location, period) cells.
    """
    return sum(cell_overflow(schedule, cell) for cell in schedule.load_by_cell)

def nr3_capacity_exceeded_delta(schedule: Schedule, move: Move) -> int:
    affected_cells = get_affected_cells(schedule, move)

    violations_before = sum(cell_overflow(schedule, cell) for cell in affected_cells)
    do_move(move, schedule)
    violations_after = sum(cell_overflow(schedule, cell) for cell in affected_cells)
    undo_move(move, schedule)

    return violations_after - violations_before


def nr4_prerequisite_order_full(schedule: Schedule) -> int:
    violations = 0
    for event_id in schedule.assigned_resources:
        for prereq_id, concurrent in schedule.instance.prerequisites_of(event_id):
            if prerequisite_violated(schedule, event_id, prereq_id, concurrent):
                violations += 1
    return violations

def nr4_prerequisite_order_delta(schedule: Schedule, move: Move) -> int:
    affected_pairs = get_affected_prerequisite_pairs(schedule, move)
    if not affected_pairs:
        return 0

    violations_before = count_violated_prerequisites(schedule, affected_pairs)
    do_move(move, schedule)
    violations_after = count_violated_prerequisites(schedule, affected_pairs)
    undo_move(move, schedule)

    return violations_after - violations_before


def nr5_preferred_period_full(schedule: Schedule) -> int:
    violations = 0
    for event_id, resource in schedule.assigned_resources.items():
        if not event_in_preferred_period(schedule, event_id, resource):
            violations += 1
    return violations

def nr5_preferred_period_delta(schedule: Schedule, move: Move) -> int:
    violations_before = sum(1 for event_id, resource in move.placements_before().items()
                            if not event_in_preferred_period(schedule, event_id, resource))
    violations_after = sum(1 for event_id, resource in move.placements_after().items()
                           if not event_in_preferred_period(schedule, event_id, resource))
    return violations_after - violations_before


def nr6_load_balance_full(schedule: Schedule) -> int:
    """
    Sum of squared event counts per period. Spreading events evenly over the periods minimises it.
    """
    return sum(period_load_penalty(schedule, period) for period in schedule.events_by_period)

def nr6_load_balance_delta(schedule: Schedule, move: Move) -> int:
    affected_periods = get_affected_periods(schedule, move)

    penalty_before = sum(period_load_penalty(schedule, period) for period in affected_periods)
    do_move(move, schedule)
    penalty_after = sum(period_load_penalty(schedule, period) for period in affected_periods)
    undo_move(move, schedule)

    return penalty_after - penalty_before


def nr7_location_stability_full(schedule: Schedule) -> int:
    triples = set()
    for event_id in schedule.assigned_resources:
        for prereq_id, concurrent in schedule.instance.prerequisites_of(event_id):
            triples.add((event_id, prereq_id, concurrent))
    return count_location_changes(schedule, triples)

def nr7_location_stability_delta(schedule: Schedule, move: Move) -> int:
    if schedule.instance.weights.location_stability == 0:
        return 0

    affected_pairs = get_affected_prerequisite_pairs(schedule, move)
    if not affected_pairs:
        return 0

    changes_before = count_location_changes(schedule, affected_pairs)
    do_move(move, schedule)
    changes_after = count_location_changes(schedule, affected_pairs)
    undo_move(move, schedule)

    return changes_after - changes_before


def count_event_violations(schedule: Schedule, event_id: int) -> int:
    """
    Hard violations the event takes part in. Used to pick events for the min-conflicts heuristic.
    """
    if event_id not in schedule.assigned_resources:
        return 0

    violations = 0
    resource = schedule.assigned_resources[event_id]

    for peer_id in schedule.instance.peers_of(event_id):
        if events_overlap(schedule, event_id, peer_id):
            violations += 1

    if not event_fits_resource(schedule, event_id, resource):
        violations += 1

    for cell in schedule.occupied_cells(event_id):
        if cell_overflow(schedule, cell) > 0:
            violations += 1

    for prereq_id, concurrent in schedule.instance.prerequisites_of(event_id):
        if prerequisite_violated(schedule, event_id, prereq_id, concurrent):
            violations += 1
    for dependent_id, concurrent in schedule.instance.dependents_of(event_id):
        if prerequisite_violated(schedule, dependent_id, event_id, concurrent):
            violations += 1

    return violations

def get_conflicted_events(schedule: Schedule) -> dict[int, int]:
    """
    Event id -> hard violation count, for every event currently in violation. Catalog order.

    The first call scans every event and keeps the counts on the schedule. Later calls only
    recount the events the schedule marked as touched since then.
    """
    if schedule.violation_counts is None:
        schedule.violation_counts = {}
        touched = schedule.assigned_resources.keys()
    else:
        touched = schedule.touched_events

    counts = schedule.violation_counts
    for event_id in touched:
        violations = count_event_violations(schedule, event_id)
        if violations > 0:
            counts[event_id] = violations
        else:
            counts.pop(event_id, None)
    schedule.touched_events.clear()

    order = schedule.instance.position_of
    return {event_id: counts[event_id] for event_id in sorted(counts, key=order)}
