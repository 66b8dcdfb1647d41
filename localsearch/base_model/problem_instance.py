from dataclasses import dataclass
from typing import Iterable, Optional

from localsearch.base_model.event import Event
from localsearch.base_model.resource import Resource
from localsearch.errors import InvalidInstanceError

CONFLICT_SCOPES = ("resource", "period")


@dataclass(frozen=True)
class ConstraintWeights:
    """Weights of the soft constraints. Hard constraints are never weighted."""
    preferred_period: int = 1
    load_balance: int = 1
    location_stability: int = 0

    def __post_init__(self):
        for name in ("preferred_period", "load_balance", "location_stability"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise InvalidInstanceError(f"Weight {name} must be a non-negative integer, got {value!r}")


class ProblemInstance:
    """
    Read-only catalogs of events and resources.

    Built once per run and shared by reference between concurrent runs,
    so nothing here may be mutated after construction.
    """

    def __init__(self, events: Iterable[Event], resources: Iterable[Resource],
                 weights: Optional[ConstraintWeights] = None, conflict_scope: str = "resource"):
        events = list(events)
        resources = list(resources)

        if not events:
            raise InvalidInstanceError("The event catalog is empty.")
        if not resources:
            raise InvalidInstanceError("The resource catalog is empty.")
        if conflict_scope not in CONFLICT_SCOPES:
            raise InvalidInstanceError(f"Unknown conflict scope {conflict_scope!r}, expected one of {CONFLICT_SCOPES}")

        self.weights: ConstraintWeights = weights or ConstraintWeights()
        self.conflict_scope: str = conflict_scope

        self._events_by_id: dict[int, Event] = {}
        for event in events:
            if event.event_id in self._events_by_id:
                raise InvalidInstanceError(f"Duplicate event id {event.event_id}")
            if event.duration < 1 or event.size < 1:
                raise InvalidInstanceError(f"Event {event.event_id} must have positive duration and size")
            self._events_by_id[event.event_id] = event

        self._resources_by_key: dict[tuple[int, str], Resource] = {}
        for resource in resources:
            if resource.key in self._resources_by_key:
                raise InvalidInstanceError(f"Duplicate resource {resource}")
            if resource.capacity < 0:
                raise InvalidInstanceError(f"Resource {resource} has negative capacity")
            self._resources_by_key[resource.key] = resource

        self.events: tuple[Event, ...] = tuple(events)
        self._positions: dict[int, int] = {event.event_id: i for i, event in enumerate(events)}
        self.resources: tuple[Resource, ...] = tuple(resources)
        self.periods: tuple[int, ...] = tuple(sorted({r.period for r in resources}))
        self.locations: tuple[str, ...] = tuple(sorted({r.location for r in resources}))

        self._peers: dict[int, frozenset[int]] = self._symmetrise_conflicts()
        self._dependents: dict[int, list[tuple[int, bool]]] = self._collect_dependents()
        self._check_satisfiable()

    def _symmetrise_conflicts(self) -> dict[int, frozenset[int]]:
        peers = {event_id: set() for event_id in self._events_by_id}
        for event in self.events:
            for other_id in event.conflicts:
                if other_id not in self._events_by_id:
                    raise InvalidInstanceError(f"Event {event.event_id} conflicts with unknown event {other_id}")
                if other_id == event.event_id:
                    continue
                peers[event.event_id].add(other_id)
                peers[other_id].add(event.event_id)
        return {event_id: frozenset(ids) for event_id, ids in peers.items()}

    def _collect_dependents(self) -> dict[int, list[tuple[int, bool]]]:
        dependents = {event_id: [] for event_id in self._events_by_id}
        for event in self.events:
            for prereq_id, concurrent in self.prerequisites_of(event.event_id):
                if prereq_id not in self._events_by_id:
                    raise InvalidInstanceError(f"Event {event.event_id} requires unknown event {prereq_id}")
                if prereq_id == event.event_id:
                    raise InvalidInstanceError(f"Event {event.event_id} cannot be its own prerequisite")
                dependents[prereq_id].append((event.event_id, concurrent))
        return dependents

    def _check_satisfiable(self) -> None:
        for event in self.events:
            if not any(self.fits(event, resource) for resource in self.resources):
                raise InvalidInstanceError(f"Event {event} has no compatible resource")

    def fits(self, event: Event, resource: Resource) -> bool:
        """Can the event be placed at this resource without breaking its requirements?"""
        if not event.requirements.issubset(resource.characteristics):
            return False
        if event.size > resource.capacity:
            return False
        if event.allowed_periods and resource.period not in event.allowed_periods:
            return False
        if resource.period in event.excluded_periods:
            return False
        # the whole duration has to be available at the same location
        for period in event.spanned_periods(resource.period):
            if (period, resource.location) not in self._resources_by_key:
                return False
        return True

    def get_event(self, event_id: int) -> Event:
        try:
            return self._events_by_id[event_id]
        except KeyError:
            raise KeyError(f"Unknown event id {event_id}")

    def position_of(self, event_id: int) -> int:
        """Index of the event in the catalog."""
        return self._positions[event_id]

    def has_event(self, event_id: int) -> bool:
        return event_id in self._events_by_id

    def get_resource(self, period: int, location: str) -> Optional[Resource]:
        return self._resources_by_key.get((period, location))

    def has_resource(self, resource: Resource) -> bool:
        return self._resources_by_key.get(resource.key) == resource

    def peers_of(self, event_id: int) -> frozenset[int]:
        return self._peers[event_id]

    def prerequisites_of(self, event_id: int) -> list[tuple[int, bool]]:
        """(prerequisite id, is_concurrent) pairs of an event."""
        event = self._events_by_id[event_id]
        pairs = [(p, False) for p in sorted(event.prerequisites)]
        pairs.extend((p, True) for p in sorted(event.concurrent_prerequisites))
        return pairs

    def dependents_of(self, event_id: int) -> list[tuple[int, bool]]:
        """(dependent id, is_concurrent) pairs of events that require this one."""
        return self._dependents[event_id]

    def related_events(self, event_id: int) -> set[int]:
        """Peers, prerequisites and dependents of an event."""
        related = set(self._peers[event_id])
        event = self._events_by_id[event_id]
        related.update(event.prerequisites)
        related.update(event.concurrent_prerequisites)
        related.update(dependent_id for dependent_id, _ in self._dependents[event_id])
        return related

    def cell_capacity(self, location: str, period: int) -> int:
        resource = self._resources_by_key.get((period, location))
        # a swap can push a long event past the end of the horizon
        return resource.capacity if resource is not None else 0

    def __str__(self):
        return (f"ProblemInstance(events={len(self.events)}, resources={len(self.resources)}, "
                f"periods={len(self.periods)}, locations={len(self.locations)})")
