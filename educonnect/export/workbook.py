"""xlsx rendering of class grade summaries."""

from __future__ import annotations

import io
import re as regex
import typing as t

import openpyxl
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from .summary import ClassSummary, StudentSummary

# students beyond this many get no sheet of their own
MaxStudentSheets: t.Final = 10
MaxSheetTitle: t.Final = 31

TitleFont = Font(bold=True, size=16)
TitleFill = PatternFill(start_color="DDEBF7", end_color="DDEBF7", fill_type="solid")
SubtitleFont = Font(bold=True, size=11)
HeaderFont = Font(bold=True, color="FFFFFF")
HeaderFill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
Thin = Side(style="thin")
CellBorder = Border(left=Thin, right=Thin, top=Thin, bottom=Thin)
Centered = Alignment(horizontal="center", vertical="center")
LeftAligned = Alignment(horizontal="left", vertical="center")

_forbidden = regex.compile(r"[\[\]:*?/\\]")


def sheet_title(student_code: str | None, full_name: str) -> str:
    """`<code>_<name>`, without the characters Excel forbids, at most 31 long."""
    title = _forbidden.sub("", f"{student_code or ''}_{full_name}")
    return title[:MaxSheetTitle]


def _format(value: float | None) -> float | str:
    return value if value is not None else "-"


def _write_titles(ws: Worksheet, lines: t.Sequence[str], width: int) -> int:
    """Write merged title rows; returns the next free row."""
    for i, line in enumerate(lines, start=1):
        ws.merge_cells(start_row=i, start_column=1, end_row=i, end_column=width)
        cell = ws.cell(row=i, column=1, value=line)
        cell.alignment = Centered
        if i == 1:
            cell.font = TitleFont
            cell.fill = TitleFill
        else:
            cell.font = SubtitleFont
    # one blank row below the titles
    return len(lines) + 2


def _write_header(ws: Worksheet, row: int, headers: t.Sequence[str]) -> None:
    for col, text in enumerate(headers, start=1):
        cell = ws.cell(row=row, column=col, value=text)
        cell.font = HeaderFont
        cell.fill = HeaderFill
        cell.border = CellBorder
        cell.alignment = Centered


def _write_row(ws: Worksheet, row: int, values: t.Sequence[t.Any], left: t.Collection[int] = ()) -> None:
    for col, value in enumerate(values, start=1):
        cell = ws.cell(row=row, column=col, value=value)
        cell.border = CellBorder
        cell.alignment = LeftAligned if col in left else Centered


def _size_columns(ws: Worksheet, widths: t.Sequence[int]) -> None:
    for col, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(col)].width = width


def _summary_sheet(ws: Worksheet, summary: ClassSummary) -> None:
    headers = ["No.", "Student code", "Full name", *(f"{s} (avg)" for s in summary.subjects), "Average", "Rank"]
    row = _write_titles(
        ws,
        [
            f"CLASS GRADE SUMMARY {summary.class_name}",
            f"Academic year: {summary.academic_year} - {summary.semester}",
            f"Homeroom teacher: {summary.homeroom_teacher or '-'}",
            f"Exported: {summary.exported_on.strftime('%d/%m/%Y')}",
        ],
        len(headers),
    )
    _write_header(ws, row, headers)
    for n, student in enumerate(summary.students, start=1):
        scores = [
            _format(student.subjects[s].average if s in student.subjects else None) for s in summary.subjects
        ]
        _write_row(
            ws,
            row + n,
            [n, student.student_code or "", student.full_name, *scores, _format(student.average), student.rank or "-"],
            left={3},
        )
    _size_columns(ws, [6, 14, 28, *(14 for _ in summary.subjects), 10, 8])


def _student_sheet(ws: Worksheet, summary: ClassSummary, student: StudentSummary) -> None:
    headers = ["No.", "Subject", "Midterm", "Final", "Average"]
    row = _write_titles(
        ws,
        [
            f"{student.full_name} ({student.student_code or '-'})",
            f"Class: {summary.class_name}",
            f"Academic year: {summary.academic_year} - {summary.semester}",
        ],
        len(headers),
    )
    _write_header(ws, row, headers)
    n = 0
    for n, name in enumerate(summary.subjects, start=1):
        score = student.subjects.get(name)
        _write_row(
            ws,
            row + n,
            [
                n,
                name,
                _format(score.midterm if score else None),
                _format(score.final if score else None),
                _format(score.average if score else None),
            ],
            left={2},
        )
    row += n + 2
    ws.cell(row=row, column=2, value="Overall average").font = SubtitleFont
    ws.cell(row=row, column=5, value=_format(student.average)).alignment = Centered
    ws.cell(row=row + 1, column=2, value="Class rank").font = SubtitleFont
    rank = f"{student.rank}/{len(summary.students)}" if student.rank else "-"
    ws.cell(row=row + 1, column=5, value=rank).alignment = Centered
    _size_columns(ws, [6, 28, 10, 10, 10])


def build_class_summary_workbook(summary: ClassSummary) -> bytes:
    """Render a class summary as an xlsx document."""
    wb = openpyxl.Workbook()
    ws = wb.active
    assert ws is not None
    ws.title = "Class summary"
    _summary_sheet(ws, summary)

    for student in summary.students[:MaxStudentSheets]:
        _student_sheet(wb.create_sheet(sheet_title(student.student_code, student.full_name)), summary, student)

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
