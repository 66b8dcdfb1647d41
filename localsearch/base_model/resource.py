from dataclasses import dataclass, field
from typing import FrozenSet

from localsearch.base_model.attribute_enum import Attribute

@dataclass(frozen=True)
class Resource:
    """Class representing a schedulable slot: a location during a time period"""
    period: int  # 1-indexed
    location: str
    capacity: int = 1
    characteristics: FrozenSet[Attribute] = field(default_factory=frozenset)
    
    @property
    def key(self) -> tuple[int, str]:
        return (self.period, self.location)
    
    def __str__(self):
        return f"{self.location}@{self.period}"
