import importlib
import sys
import types
import typing as t

from sqlalchemy.orm import Session, SessionTransaction

__all__ = [
    "Session",
    "SessionTransaction",
    # Repository modules
    "user",
    "school",
    "classroom",
    "schoolclass",
    "timetable",
    "grade",
    "audit",
    "leave",
    "notification",
    "feedback",
]

if t.TYPE_CHECKING:
    from . import audit, classroom, feedback, grade, leave, notification, school, schoolclass, timetable, user


def __getattr__(name: str) -> types.ModuleType:
    if name in __all__:
        module = importlib.import_module(f"{__name__}.{name}")
        setattr(sys.modules[__name__], name, module)
        return module
    raise AttributeError(f"module {__name__} has no attribute {name}")
