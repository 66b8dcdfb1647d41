from localsearch.base_model.schedule import Schedule
from localsearch.base_model.attribute_enum import Attribute


def visualize(schedule: Schedule, col_width: int = 18):
    """
    Print the schedule as a calendar with one row per period and one column per location.

    An event that spans several periods is written in its first period and marked
    with "#" in the periods it continues into. Events in a cell that is over capacity
    are marked with "!".
    """
    instance = schedule.instance
    locations = instance.locations
    periods = instance.periods

    header_line = "+" + "+".join(["-" * col_width for _ in range(len(locations) + 1)]) + "+"
    print(header_line)

    print("|" + f"{'Period':^{col_width}}" + "|", end="")
    for location in locations:
        print(f"{location:^{col_width}}" + "|", end="")
    print()
    print(header_line)

    for period in periods:
        print("|" + f"{period_label(schedule, period):^{col_width}}" + "|", end="")
        for location in locations:
            cell_content = cell_text(schedule, location, period)
            print(f"{cell_content:^{col_width}}" + "|", end="")
        print()

    print(header_line)
    if schedule.cost is not None:
        print(f"Cost: {schedule.cost}")
    print()


def period_label(schedule: Schedule, period: int) -> str:
    """Period number, with S (summer) or E (evening) if every resource of the period has that attribute"""
    resources = [r for r in schedule.instance.resources if r.period == period]
    abbr = []
    if resources and all(Attribute.SUMMER in r.characteristics for r in resources):
        abbr.append("S")
    if resources and all(Attribute.EVENING in r.characteristics for r in resources):
        abbr.append("E")
    return f"{period} {''.join(abbr)}".strip()


def cell_text(schedule: Schedule, location: str, period: int) -> str:
    instance = schedule.instance
    entries = []
    for event_id in sorted(schedule.events_in_cell(location, period)):
        event = instance.get_event(event_id)
        if schedule.resource_of(event_id).period == period:
            entries.append(str(event))
        else:
            entries.append("#")

    text = ",".join(entries)
    if schedule.cell_load(location, period) > instance.cell_capacity(location, period):
        text = "!" + text
    return text
