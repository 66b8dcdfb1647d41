from typing import Optional

from localsearch.base_model.resource import Resource
from localsearch.base_model.schedule import Schedule
from localsearch.errors import StaleMoveError

class Move:
    def __init__(self, event_id: int, old_resource: Resource, new_resource: Resource,
                 other_event_id: Optional[int] = None, is_swap_move: bool = False):
        self.event_id = event_id
        self.old_resource = old_resource
        self.new_resource = new_resource  # for swaps this is the other event's resource
        self.other_event_id = other_event_id
        self.is_swap_move = is_swap_move
        self.is_applied = False

        if is_swap_move and other_event_id is None:
            raise ValueError("A swap move needs a second event.")

    def __str__(self):
        if self.is_swap_move:
            return (f"Move(swap event {self.event_id} @ {self.old_resource} "
                    f"<-> event {self.other_event_id} @ {self.new_resource})")
        return f"Move(event {self.event_id}: {self.old_resource} → {self.new_resource})"

    __repr__ = __str__

    def moved_event_ids(self) -> tuple[int, ...]:
        if self.is_swap_move:
            return (self.event_id, self.other_event_id)
        return (self.event_id,)

    def placements_before(self) -> dict[int, Resource]:
        if self.is_swap_move:
            return {self.event_id: self.old_resource, self.other_event_id: self.new_resource}
        return {self.event_id: self.old_resource}

    def placements_after(self) -> dict[int, Resource]:
        if self.is_swap_move:
            return {self.event_id: self.new_resource, self.other_event_id: self.old_resource}
        return {self.event_id: self.new_resource}


def inverse_move(move: Move) -> Move:
    """The move that takes the schedule back to where it was before `move`."""
    if move.is_swap_move:
        # a swap is its own inverse
        return Move(move.event_id, move.new_resource, move.old_resource,
                    other_event_id=move.other_event_id, is_swap_move=True)
    return Move(move.event_id, move.new_resource, move.old_resource)


def _check_placements(schedule: Schedule, placements: dict[int, Resource], move: Move) -> None:
    for event_id, resource in placements.items():
        if not schedule.instance.has_event(event_id):
            raise StaleMoveError(f"{move} references unknown event {event_id}")
        current = schedule.assigned_resources.get(event_id)
        if current != resource:
            raise StaleMoveError(f"{move} expects event {event_id} at {resource}, but it is at {current}")


def do_move(move: Move, schedule: Schedule) -> None:
    """Update the schedule and its indexes"""
    if move.is_applied:
        return

    _check_placements(schedule, move.placements_before(), move)
    if not schedule.instance.has_resource(move.new_resource):
        raise StaleMoveError(f"{move} targets unknown resource {move.new_resource}")

    for event_id in move.moved_event_ids():
        schedule.remove(event_id)
    for event_id, resource in move.placements_after().items():
        schedule.place(event_id, resource)

    move.is_applied = True

def undo_move(move: Move, schedule: Schedule) -> None:
    """Undo a move and update the schedule and its indexes"""
    if not move.is_applied:
        return

    _check_placements(schedule, move.placements_after(), move)

    for event_id in move.moved_event_ids():
        schedule.remove(event_id)
    for event_id, resource in move.placements_before().items():
        schedule.place(event_id, resource)

    move.is_applied = False
