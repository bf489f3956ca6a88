"""
Human-readable office hours.
"""

from gemeinde_info.core.models import WEEKDAYS, DayHours

DAY_LABELS = {day: day.capitalize() for day in WEEKDAYS}

WORKING_DAYS = WEEKDAYS[:5]


def _ranges(day: DayHours) -> str:
    return ", ".join(part for part in (day.morning, day.afternoon) if part)


def format_office_hours(hours: dict[str, DayHours]) -> str:
    """
    "Monday - Friday: 08:00-12:00, 14:00-17:00" when all working days agree,
    otherwise one line per day ("Saturday: Closed").
    """
    monday = hours.get("monday")
    if (
        monday is not None
        and not monday.closed
        and monday.morning
        and all(hours.get(day) == monday for day in WORKING_DAYS)
    ):
        return f"Monday - Friday: {_ranges(monday)}"

    lines = []
    for day in WEEKDAYS:
        day_hours = hours.get(day)
        if day_hours is None:
            continue
        if day_hours.closed:
            lines.append(f"{DAY_LABELS[day]}: Closed")
        else:
            lines.append(f"{DAY_LABELS[day]}: {_ranges(day_hours) or 'n/a'}")
    return "\n".join(lines)
