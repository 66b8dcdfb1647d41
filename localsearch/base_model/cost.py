from dataclasses import dataclass

@dataclass(frozen=True, order=True)
class Cost:
    """
    Cost of a schedule, or the change in cost caused by a move.
    
    Ordering is lexicographic: fewer hard violations always wins,
    and the soft penalty only breaks ties between equal hard counts.
    """
    hard: int = 0
    soft: int = 0
    
    @staticmethod
    def zero() -> 'Cost':
        return Cost(0, 0)
    
    def __add__(self, other: 'Cost') -> 'Cost':
        return Cost(self.hard + other.hard, self.soft + other.soft)
    
    def __sub__(self, other: 'Cost') -> 'Cost':
        return Cost(self.hard - other.hard, self.soft - other.soft)
    
    def __neg__(self) -> 'Cost':
        return Cost(-self.hard, -self.soft)
    
    def is_feasible(self) -> bool:
        return self.hard == 0
    
    def scalar(self, hard_weight: int) -> int:
        """Collapse to a single number, used where a magnitude is needed (annealing acceptance)."""
        return self.hard * hard_weight + self.soft
    
    def to_json(self) -> dict:
        return {"hard": self.hard, "soft": self.soft}
    
    def __str__(self):
        return f"[hard={self.hard}, soft={self.soft}]"
