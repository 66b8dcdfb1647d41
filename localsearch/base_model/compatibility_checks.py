from localsearch.base_model.resource import Resource
from localsearch.base_model.problem_instance import ProblemInstance


def calculate_compatible_resources(instance: ProblemInstance) -> dict[int, list[Resource]]:
    """
    For each event, the resources it fits, in catalog order.

    The order matters: move generation draws from these lists with a seeded random source,
    so a stable order is what makes two runs with the same seed identical.
    """
    compatible_resources = {}
    for event in instance.events:
        compatible_resources[event.event_id] = [resource for resource in instance.resources
                                                if instance.fits(event, resource)]

    return compatible_resources
