import json
from pathlib import Path
from typing import Any, Dict, Optional

from localsearch.base_model.attribute_enum import Attribute
from localsearch.base_model.event import Event
from localsearch.base_model.problem_instance import ConstraintWeights, ProblemInstance
from localsearch.base_model.resource import Resource
from localsearch.errors import InvalidInstanceError
from localsearch.local_search.search_config import SearchConfig


def _id_set(values) -> frozenset:
    return frozenset(int(v) for v in values or [])


def _attribute_set(values) -> frozenset:
    return frozenset(Attribute.from_string(v) for v in values or [])


def parse_event(data: Dict[str, Any]) -> Event:
    return Event(
        event_id=int(data["id"]),
        duration=int(data.get("duration", 1)),
        size=int(data.get("size", 1)),
        requirements=_attribute_set(data.get("requirements")),
        conflicts=_id_set(data.get("conflicts")),
        preferred_periods=_id_set(data.get("preferred_periods")),
        allowed_periods=_id_set(data.get("allowed_periods")),
        excluded_periods=_id_set(data.get("excluded_periods")),
        prerequisites=_id_set(data.get("prerequisites")),
        concurrent_prerequisites=_id_set(data.get("concurrent_prerequisites")),
        name=data.get("name", ""),
    )


def parse_resource(data: Dict[str, Any]) -> Resource:
    return Resource(
        period=int(data["period"]),
        location=str(data["location"]),
        capacity=int(data.get("capacity", 1)),
        characteristics=_attribute_set(data.get("characteristics")),
    )


def parse_instance(data: Dict[str, Any]) -> ProblemInstance:
    """Build a ProblemInstance from an already loaded JSON document."""
    try:
        events = [parse_event(e) for e in data["events"]]
        resources = [parse_resource(r) for r in data["resources"]]
        weights = ConstraintWeights(**data["weights"]) if "weights" in data else None
    except KeyError as e:
        raise InvalidInstanceError(f"Missing field in input: {e}") from e
    except (ValueError, TypeError) as e:
        if isinstance(e, InvalidInstanceError):
            raise
        raise InvalidInstanceError(f"Malformed input: {e}") from e

    return ProblemInstance(events, resources, weights=weights,
                           conflict_scope=data.get("conflict_scope", "resource"))


def parse_input(input_path: Path) -> Dict:
    """
    Parse the input JSON file into a structured data dictionary.

    Args:
        input_path: Path to the input JSON file

    Returns:
        Dictionary with the "instance" and the search "config" (defaults when the file has none)
    """
    with open(input_path, 'r') as f:
        data = json.load(f)

    parsed_data = {
        "instance": parse_instance(data),
        "config": SearchConfig.from_dict(data.get("config", {})),
    }
    return parsed_data


def instance_to_json(instance: ProblemInstance, config: Optional[SearchConfig] = None) -> Dict[str, Any]:
    """Inverse of parse_instance. Empty fields are left out."""
    events = []
    for event in instance.events:
        entry = {"id": event.event_id}
        if event.name:
            entry["name"] = event.name
        if event.duration != 1:
            entry["duration"] = event.duration
        if event.size != 1:
            entry["size"] = event.size
        if event.requirements:
            entry["requirements"] = sorted(Attribute.to_string(a) for a in event.requirements)
        for field_name in ("conflicts", "preferred_periods", "allowed_periods", "excluded_periods",
                           "prerequisites", "concurrent_prerequisites"):
            values = getattr(event, field_name)
            if values:
                entry[field_name] = sorted(values)
        events.append(entry)

    resources = []
    for resource in instance.resources:
        entry = {"period": resource.period, "location": resource.location, "capacity": resource.capacity}
        if resource.characteristics:
            entry["characteristics"] = sorted(Attribute.to_string(a) for a in resource.characteristics)
        resources.append(entry)

    data = {
        "conflict_scope": instance.conflict_scope,
        "weights": {
            "preferred_period": instance.weights.preferred_period,
            "load_balance": instance.weights.load_balance,
            "location_stability": instance.weights.location_stability,
        },
        "events": events,
        "resources": resources,
    }
    if config is not None:
        data["config"] = config.to_dict()
    return data


def write_input(output_path: Path, instance: ProblemInstance, config: Optional[SearchConfig] = None) -> None:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w') as f:
        json.dump(instance_to_json(instance, config), f, indent=2)
