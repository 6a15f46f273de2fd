__all__ = [
    "AuditNotPendingError",
    "GradeEntry",
    "GradeOverrideError",
    "OverrideOutcome",
    "approve_audit",
    "detect_overrides",
    "process_overrides",
    "reject_audit",
    "subject_average",
]

from .approval import approve_audit, AuditNotPendingError, reject_audit
from .average import subject_average
from .override import detect_overrides, GradeEntry, GradeOverrideError, OverrideOutcome, process_overrides
