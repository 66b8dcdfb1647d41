from dataclasses import dataclass, field
from typing import FrozenSet

from localsearch.base_model.attribute_enum import Attribute

@dataclass(frozen=True)
class Event:
    """Class representing a schedulable unit, e.g. a course section or an exam"""
    event_id: int
    duration: int = 1  # in periods
    size: int = 1  # seats needed
    requirements: FrozenSet[Attribute] = field(default_factory=frozenset)
    conflicts: FrozenSet[int] = field(default_factory=frozenset)  # ids of mutually exclusive peers
    preferred_periods: FrozenSet[int] = field(default_factory=frozenset)
    allowed_periods: FrozenSet[int] = field(default_factory=frozenset)  # empty means any period
    excluded_periods: FrozenSet[int] = field(default_factory=frozenset)
    prerequisites: FrozenSet[int] = field(default_factory=frozenset)  # must end before this event starts
    concurrent_prerequisites: FrozenSet[int] = field(default_factory=frozenset)  # must start no later than this event
    name: str = ""
    
    def __str__(self):
        return self.name or f"{self.event_id}"
    
    def last_period(self, start_period: int) -> int:
        return start_period + self.duration - 1
    
    def spanned_periods(self, start_period: int) -> range:
        return range(start_period, start_period + self.duration)
