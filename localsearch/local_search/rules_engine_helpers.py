from localsearch.base_model.resource import Resource
from localsearch.base_model.schedule import Schedule
from localsearch.local_search.move import Move


def periods_overlap(start1: int, duration1: int, start2: int, duration2: int) -> bool:
    return start1 <= start2 + duration2 - 1 and start2 <= start1 + duration1 - 1

def events_overlap(schedule: Schedule, event_id1: int, event_id2: int) -> bool:
    """Do two placed events collide under the instance's conflict scope?"""
    resource1 = schedule.assigned_resources.get(event_id1)
    resource2 = schedule.assigned_resources.get(event_id2)
    if resource1 is None or resource2 is None:
        return False

    if schedule.instance.conflict_scope == "resource" and resource1.location != resource2.location:
        return False

    event1 = schedule.instance.get_event(event_id1)
    event2 = schedule.instance.get_event(event_id2)
    return periods_overlap(resource1.period, event1.duration, resource2.period, event2.duration)

def prerequisite_violated(schedule: Schedule, event_id: int, prereq_id: int, concurrent: bool) -> bool:
    resource = schedule.assigned_resources.get(event_id)
    prereq_resource = schedule.assigned_resources.get(prereq_id)
    if resource is None or prereq_resource is None:
        return False

    if concurrent:
        return prereq_resource.period > resource.period

    prereq = schedule.instance.get_event(prereq_id)
    return prereq.last_period(prereq_resource.period) >= resource.period

def cell_overflow(schedule: Schedule, cell: tuple[str, int]) -> int:
    location, period = cell
    load = schedule.cell_load(location, period)
    if load == 0:
        return 0
    return max(0, load - schedule.instance.cell_capacity(location, period))

def period_load_penalty(schedule: Schedule, period: int) -> int:
    n_events = len(schedule.events_in_period(period))
    return n_events * n_events

def event_fits_resource(schedule: Schedule, event_id: int, resource: Resource) -> bool:
    return schedule.instance.fits(schedule.instance.get_event(event_id), resource)

def event_in_preferred_period(schedule: Schedule, event_id: int, resource: Resource) -> bool:
    event = schedule.instance.get_event(event_id)
    return not event.preferred_periods or resource.period in event.preferred_periods

def cells_of_placement(schedule: Schedule, event_id: int, resource: Resource) -> list[tuple[str, int]]:
    return schedule.occupied_cells(event_id, resource)


def get_affected_conflict_pairs(schedule: Schedule, move: Move) -> set[tuple[int, int]]:
    """Unordered peer pairs that involve at least one moved event."""
    affected_pairs = set()
    for event_id in move.moved_event_ids():
        for peer_id in schedule.instance.peers_of(event_id):
            affected_pairs.add((min(event_id, peer_id), max(event_id, peer_id)))
    return affected_pairs

def get_affected_prerequisite_pairs(schedule: Schedule, move: Move) -> set[tuple[int, int, bool]]:
    """(event, prerequisite, concurrent) triples that involve at least one moved event."""
    affected_pairs = set()
    for event_id in move.moved_event_ids():
        for prereq_id, concurrent in schedule.instance.prerequisites_of(event_id):
            affected_pairs.add((event_id, prereq_id, concurrent))
        for dependent_id, concurrent in schedule.instance.dependents_of(event_id):
            affected_pairs.add((dependent_id, event_id, concurrent))
    return affected_pairs

def get_affected_cells(schedule: Schedule, move: Move) -> set[tuple[str, int]]:
    affected_cells = set()
    for placements in (move.placements_before(), move.placements_after()):
        for event_id, resource in placements.items():
            affected_cells.update(cells_of_placement(schedule, event_id, resource))
    return affected_cells

def get_affected_periods(schedule: Schedule, move: Move) -> set[int]:
    return {period for _, period in get_affected_cells(schedule, move)}


def count_conflicting_pairs(schedule: Schedule, pairs) -> int:
    return sum(1 for event_id1, event_id2 in pairs if events_overlap(schedule, event_id1, event_id2))

def count_violated_prerequisites(schedule: Schedule, triples) -> int:
    return sum(1 for event_id, prereq_id, concurrent in triples
               if prerequisite_violated(schedule, event_id, prereq_id, concurrent))

def count_location_changes(schedule: Schedule, triples) -> int:
    changes = 0
    for event_id, prereq_id, _ in triples:
        resource = schedule.assigned_resources.get(event_id)
        prereq_resource = schedule.assigned_resources.get(prereq_id)
        if resource is not None and prereq_resource is not None and resource.location != prereq_resource.location:
            changes += 1
    return changes
