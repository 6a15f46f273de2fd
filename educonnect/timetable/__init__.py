__all__ = [
    "ConflictCheckError",
    "calculate_end_time",
    "check_conflict",
    "day_name",
    "validate_slot",
]

from .conflict import check_conflict, ConflictCheckError
from .schedule import calculate_end_time, day_name, validate_slot
