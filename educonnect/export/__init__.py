__all__ = [
    "ClassSummary",
    "GradeImportError",
    "GradeSheet",
    "GradeSheetRow",
    "ImportedRow",
    "StudentSummary",
    "SubjectScore",
    "assemble_class_summary",
    "build_class_summary_workbook",
    "build_grade_sheet_workbook",
    "parse_grade_sheet",
    "rank_students",
    "sheet_title",
]

from .gradesheet import build_grade_sheet_workbook, GradeImportError, GradeSheet, GradeSheetRow, ImportedRow, \
    parse_grade_sheet
from .summary import assemble_class_summary, ClassSummary, rank_students, StudentSummary, SubjectScore
from .workbook import build_class_summary_workbook, sheet_title
