from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from localsearch.base_model.cost import Cost
from localsearch.base_model.problem_instance import ProblemInstance
from localsearch.base_model.resource import Resource


class Schedule:
    """
    Class that holds the mutable search state: the assignment of events to resources.

    Besides the assignment it keeps reverse indexes so conflict lookups do not have to scan
    every event. All mutations go through place/remove/reassign, which keep the indexes and
    the assignment in sync. A schedule is owned by exactly one search run.
    """

    def __init__(self, instance: ProblemInstance):
        self.instance: ProblemInstance = instance
        self.assigned_resources: dict[int, Resource] = {} # the main assignment. Key is the event id
        self.events_by_resource: dict[Resource, set[int]] = {} # events starting at a resource
        self.events_by_cell: dict[tuple[str, int], set[int]] = {} # events occupying a (location, period) cell
        self.events_by_period: dict[int, set[int]] = {} # events occupying a period at any location
        self.load_by_cell: dict[tuple[str, int], int] = {} # summed event size per cell
        self.cost: Optional[Cost] = None # cached cost, maintained by the search controller
        self.violation_counts: Optional[dict[int, int]] = None # hard violations per conflicted event, see rules_engine.get_conflicted_events
        self.touched_events: set[int] = set() # events whose violation count may be stale

    def __eq__(self, other):
        if not isinstance(other, Schedule):
            return False
        return self.instance is other.instance and self.assigned_resources == other.assigned_resources

    def __len__(self):
        return len(self.assigned_resources)

    def occupied_cells(self, event_id: int, resource: Resource = None) -> list[tuple[str, int]]:
        """Cells the event occupies at the given resource (default: where it is now)."""
        if resource is None:
            resource = self.assigned_resources[event_id]
        event = self.instance.get_event(event_id)
        return [(resource.location, period) for period in event.spanned_periods(resource.period)]

    def place(self, event_id: int, resource: Resource) -> None:
        if event_id in self.assigned_resources:
            raise ValueError(f"Event {event_id} is already placed at {self.assigned_resources[event_id]}")
        event = self.instance.get_event(event_id)

        self.assigned_resources[event_id] = resource
        self.events_by_resource.setdefault(resource, set()).add(event_id)
        for cell in self.occupied_cells(event_id, resource):
            self.events_by_cell.setdefault(cell, set()).add(event_id)
            self.load_by_cell[cell] = self.load_by_cell.get(cell, 0) + event.size
            self.events_by_period.setdefault(cell[1], set()).add(event_id)
        self._touch(event_id, resource)

    def remove(self, event_id: int) -> Resource:
        if event_id not in self.assigned_resources:
            raise ValueError(f"Event {event_id} is not placed")
        event = self.instance.get_event(event_id)
        resource = self.assigned_resources[event_id]

        self._touch(event_id, resource)
        for cell in self.occupied_cells(event_id, resource):
            self.events_by_cell[cell].discard(event_id)
            if not self.events_by_cell[cell]:
                del self.events_by_cell[cell]
            self.load_by_cell[cell] -= event.size
            if self.load_by_cell[cell] == 0:
                del self.load_by_cell[cell]
            self._discard_from_period(event_id, cell[1])

        self.events_by_resource[resource].discard(event_id)
        if not self.events_by_resource[resource]:
            del self.events_by_resource[resource]
        del self.assigned_resources[event_id]
        return resource

    def _touch(self, event_id: int, resource: Resource) -> None:
        """Mark the events whose violation count can change when event_id enters or leaves resource."""
        if self.violation_counts is None:
            return
        self.touched_events.add(event_id)
        self.touched_events.update(self.instance.related_events(event_id))
        for cell in self.occupied_cells(event_id, resource):
            self.touched_events.update(self.events_by_cell.get(cell, ()))

    def _discard_from_period(self, event_id: int, period: int) -> None:
        events = self.events_by_period.get(period)
        if events is None:
            return
        events.discard(event_id)
        if not events:
            del self.events_by_period[period]

    def reassign(self, event_id: int, resource: Resource) -> Resource:
        old_resource = self.remove(event_id)
        self.place(event_id, resource)
        return old_resource

    def clear(self) -> None:
        self.assigned_resources.clear()
        self.events_by_resource.clear()
        self.events_by_cell.clear()
        self.events_by_period.clear()
        self.load_by_cell.clear()
        self.cost = None
        self.violation_counts = None
        self.touched_events.clear()

    def resource_of(self, event_id: int) -> Resource:
        return self.assigned_resources[event_id]

    def events_at(self, resource: Resource) -> frozenset[int]:
        return frozenset(self.events_by_resource.get(resource, ()))

    def events_in_cell(self, location: str, period: int) -> set[int]:
        return self.events_by_cell.get((location, period), set())

    def events_in_period(self, period: int) -> set[int]:
        return self.events_by_period.get(period, set())

    def cell_load(self, location: str, period: int) -> int:
        return self.load_by_cell.get((location, period), 0)

    def iter_assignments(self) -> Iterator[tuple[int, Resource]]:
        """Iterate (event id, resource) pairs in catalog order."""
        for event in self.instance.events:
            if event.event_id in self.assigned_resources:
                yield event.event_id, self.assigned_resources[event.event_id]

    def assignment(self) -> Mapping[int, Resource]:
        return MappingProxyType(self.assigned_resources)

    def is_complete(self) -> bool:
        return len(self.assigned_resources) == len(self.instance.events)

    def copy(self) -> 'Schedule':
        new_schedule = Schedule(self.instance)
        for event_id, resource in self.iter_assignments():
            new_schedule.place(event_id, resource)
        new_schedule.cost = self.cost
        return new_schedule

    def check_consistency(self) -> None:
        """Rebuild the indexes from the assignment and compare. Raises AssertionError on drift."""
        rebuilt = Schedule(self.instance)
        for event_id, resource in self.assigned_resources.items():
            rebuilt.place(event_id, resource)

        if rebuilt.events_by_resource != self.events_by_resource:
            raise AssertionError("Resource index is out of sync with the assignment")
        if rebuilt.events_by_cell != self.events_by_cell:
            raise AssertionError("Cell index is out of sync with the assignment")
        if rebuilt.events_by_period != self.events_by_period:
            raise AssertionError("Period index is out of sync with the assignment")
        if rebuilt.load_by_cell != self.load_by_cell:
            raise AssertionError("Cell loads are out of sync with the assignment")

    def to_json(self) -> dict:
        return {
            "assignments": [
                {"event": event_id, "period": resource.period, "location": resource.location}
                for event_id, resource in self.iter_assignments()
            ],
            "cost": self.cost.to_json() if self.cost is not None else None,
        }
