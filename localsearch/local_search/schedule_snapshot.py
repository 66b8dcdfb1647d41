from localsearch.base_model.cost import Cost
from localsearch.base_model.problem_instance import ProblemInstance
from localsearch.base_model.resource import Resource
from localsearch.base_model.schedule import Schedule

class ScheduleSnapshot:
    def __init__(self, schedule: Schedule, cost: Cost = None):
        self.cost = cost if cost is not None else schedule.cost

        # Store assignments as (event_id, period, location), in catalog order
        self.assignments = []
        for event_id, resource in schedule.iter_assignments():
            self.assignments.append((event_id, resource.period, resource.location))

    def assignment(self, instance: ProblemInstance) -> dict[int, Resource]:
        return {event_id: instance.get_resource(period, location)
                for event_id, period, location in self.assignments}

    def restore_schedule(self, instance: ProblemInstance) -> Schedule:
        """Reconstruct a full Schedule object from this snapshot"""
        new_schedule = Schedule(instance)
        for event_id, resource in self.assignment(instance).items():
            new_schedule.place(event_id, resource)
        new_schedule.cost = self.cost
        return new_schedule
