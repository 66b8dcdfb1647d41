import random
from typing import Any, Dict, List

from localsearch.base_model.attribute_enum import Attribute
from localsearch.base_model.event import Event
from localsearch.base_model.problem_instance import ConstraintWeights, ProblemInstance
from localsearch.base_model.resource import Resource
from localsearch.local_search.search_config import SearchConfig
from localsearch.util.parser import parse_instance

DEGREE_PLAN_SEMESTERS = [
    (1, True),  # (semester, is_summer)
    (2, False),
    (3, False),
    (4, True),
    (5, False),
    (6, False),
    (7, True),
]

DEGREE_PLAN_COURSES = [
    ("MATH", 120), ("MATH", 210), ("MATH", 215),
    ("LIBS", 998), ("LIBS", 999),
    ("ICS", 140), ("ICS", 141), ("ICS", 232), ("ICS", 240), ("ICS", 311),
    ("ICS", 340), ("ICS", 365), ("ICS", 372), ("ICS", 440), ("ICS", 460),
    ("ICS", 462), ("ICS", 490), ("ICS", 492), ("ICS", 499),
]

# (course, prerequisite, concurrent)
DEGREE_PLAN_PREREQUISITES = [
    (("MATH", 210), ("MATH", 120), False),
    (("MATH", 215), ("MATH", 120), False),
    (("ICS", 140), ("MATH", 120), True),
    (("ICS", 141), ("MATH", 215), True),
    (("ICS", 141), ("ICS", 140), False),
    (("ICS", 232), ("ICS", 141), False),
    (("ICS", 240), ("ICS", 141), False),
    (("ICS", 311), ("ICS", 141), False),
    (("ICS", 311), ("ICS", 240), False),
    (("ICS", 340), ("ICS", 240), False),
    (("ICS", 365), ("ICS", 240), False),
    (("ICS", 372), ("ICS", 240), False),
    (("ICS", 440), ("ICS", 340), False),
    (("ICS", 499), ("ICS", 372), False),
]

# every course below 300 has to be done before any of these
DEGREE_PLAN_CAPSTONE = [("ICS", 440), ("ICS", 460), ("ICS", 462), ("ICS", 490), ("ICS", 492), ("ICS", 499)]

COURSES_PER_SEMESTER = 3
TERM_LOCATION = "term"


def degree_plan_instance() -> ProblemInstance:
    """
    The ICS degree plan: 19 courses over 7 semesters, at most 3 courses per semester.

    Semesters 1, 4 and 7 are summer semesters. ICS 492 is only offered in the summer,
    ICS 490 never is, and ICS 499 has to be taken in the last semester.
    There is no soft objective, so any schedule without hard violations is a solution.
    """
    course_ids = {course: index for index, course in enumerate(DEGREE_PLAN_COURSES, start=1)}
    summer_semesters = frozenset(semester for semester, is_summer in DEGREE_PLAN_SEMESTERS if is_summer)
    last_semester = DEGREE_PLAN_SEMESTERS[-1][0]

    prerequisites = {course: set() for course in DEGREE_PLAN_COURSES}
    concurrent_prerequisites = {course: set() for course in DEGREE_PLAN_COURSES}
    for course, prerequisite, concurrent in DEGREE_PLAN_PREREQUISITES:
        target = concurrent_prerequisites if concurrent else prerequisites
        target[course].add(course_ids[prerequisite])
    for capstone in DEGREE_PLAN_CAPSTONE:
        for course in DEGREE_PLAN_COURSES:
            if course[1] < 300:
                prerequisites[capstone].add(course_ids[course])

    events = []
    for course in DEGREE_PLAN_COURSES:
        requirements = frozenset()
        allowed_periods = frozenset()
        excluded_periods = frozenset()
        if course == ("ICS", 492):
            requirements = frozenset({Attribute.SUMMER})
        elif course == ("ICS", 490):
            excluded_periods = summer_semesters
        elif course == ("ICS", 499):
            allowed_periods = frozenset({last_semester})

        events.append(Event(
            event_id=course_ids[course],
            requirements=requirements,
            allowed_periods=allowed_periods,
            excluded_periods=excluded_periods,
            prerequisites=frozenset(prerequisites[course]),
            concurrent_prerequisites=frozenset(concurrent_prerequisites[course]),
            name=f"{course[0]} {course[1]}",
        ))

    resources = [
        Resource(period=semester, location=TERM_LOCATION, capacity=COURSES_PER_SEMESTER,
                 characteristics=frozenset({Attribute.SUMMER}) if is_summer else frozenset())
        for semester, is_summer in DEGREE_PLAN_SEMESTERS
    ]

    weights = ConstraintWeights(preferred_period=0, load_balance=0, location_stability=0)
    return ProblemInstance(events, resources, weights=weights)


def generate_test_data(n_events: int, n_periods: int, n_locations: int,
                       conflict_density: float = 0.1, seed: int = 13062025) -> Dict[str, Any]:
    """Generate a random instance as an input document, in the format parse_instance reads."""
    gen = random.Random(seed)

    # every other location is a lab, the first one always a lecture hall
    locations: List[Dict[str, Any]] = []
    for i in range(1, n_locations + 1):
        kind = "LAB" if i % 2 == 0 else "LECTURE"
        characteristics = [kind]
        if gen.random() < 0.5:
            characteristics.append("PROJECTOR")
        locations.append({"name": f"L{i}", "capacity": gen.randint(1, 3), "characteristics": characteristics})

    resources = []
    for period in range(1, n_periods + 1):
        for location in locations:
            resources.append({
                "period": period,
                "location": location["name"],
                "capacity": location["capacity"],
                "characteristics": location["characteristics"],
            })

    has_lab = any("LAB" in location["characteristics"] for location in locations)
    events = []
    for event_id in range(1, n_events + 1):
        event = {"id": event_id, "name": f"E{event_id}"}

        if n_periods > 1 and gen.random() < 0.1:
            event["duration"] = 2
        if has_lab and gen.random() < 0.25:
            event["requirements"] = ["LAB"]
        if gen.random() < 0.5:
            event["preferred_periods"] = sorted(gen.sample(range(1, n_periods + 1), k=min(2, n_periods)))

        conflicts = [other for other in range(1, event_id) if gen.random() < conflict_density]
        if conflicts:
            event["conflicts"] = conflicts
        if event_id > 1 and n_periods > 1 and gen.random() < 0.05:
            event["prerequisites"] = [gen.randint(1, event_id - 1)]

        events.append(event)

    return {
        "conflict_scope": "period",
        "events": events,
        "resources": resources,
    }


def generate_test_data_parsed(n_events: int, n_periods: int, n_locations: int,
                              conflict_density: float = 0.1, seed: int = 13062025) -> Dict:
    """Generate and parse test data into model objects."""
    test_data = generate_test_data(n_events, n_periods, n_locations, conflict_density, seed)

    parsed_data = {
        "instance": parse_instance(test_data),
        "config": SearchConfig(seed=seed),
    }
    return parsed_data
