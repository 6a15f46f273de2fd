import datetime

DayNames = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def calculate_end_time(start_time: datetime.time, minutes: int = 45) -> datetime.time:
    """End of a lesson starting at `start_time`; wraps past midnight."""
    start = datetime.datetime.combine(datetime.date.min, start_time)
    return (start + datetime.timedelta(minutes=minutes)).time()


def day_name(day_of_week: int) -> str:
    """Name of a day, where 0 is Sunday."""
    if not 0 <= day_of_week <= 6:
        raise ValueError(f"day_of_week must be between 0 and 6, got {day_of_week}")
    return DayNames[day_of_week]


def validate_slot(*, day_of_week: int, start_time: datetime.time, end_time: datetime.time, week_number: int) -> None:
    """Raise ValueError naming the first invalid scheduling field."""
    if not 0 <= day_of_week <= 6:
        raise ValueError("day_of_week must be between 0 and 6")
    if not 1 <= week_number <= 52:
        raise ValueError("week_number must be between 1 and 52")
    if end_time <= start_time:
        raise ValueError("End time must be after start time")
