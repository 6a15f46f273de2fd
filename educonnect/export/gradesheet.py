"""xlsx grade sheets for one subject of a class: the template teachers fill in, and its parser."""

from __future__ import annotations

import io
import math
import typing as t
import zipfile

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from educonnect.model import BaseModel, ComponentType

from .workbook import _format, _size_columns, _write_header, _write_row, _write_titles

StudentCodeHeader: t.Final = "Student code"

# header label of each grade column, in sheet order
ComponentHeaders: t.Final[dict[ComponentType, str]] = {
    ComponentType.Regular1: "Regular 1",
    ComponentType.Regular2: "Regular 2",
    ComponentType.Regular3: "Regular 3",
    ComponentType.Regular4: "Regular 4",
    ComponentType.Midterm: "Midterm",
    ComponentType.Final: "Final",
}
_components_by_header = {h.lower(): c for c, h in ComponentHeaders.items()} | {"regular": ComponentType.Regular}


class GradeSheetRow(BaseModel):
    student_code: str | None = None
    full_name: str
    grades: dict[ComponentType, float | None] = {}


class GradeSheet(BaseModel):
    class_name: str
    subject_name: str
    academic_year: str
    semester: str
    rows: list[GradeSheetRow]


class ImportedRow(BaseModel):
    row_number: int
    student_code: str
    full_name: str | None = None
    # only the cells that held a value
    grades: dict[ComponentType, float]


class GradeImportError(ValueError):
    """The workbook could not be read as a grade sheet.

    `errors` lists every problem found, one per offending cell or row.
    """

    def __init__(self, errors: t.Sequence[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


def build_grade_sheet_workbook(sheet: GradeSheet) -> bytes:
    """Render a subject's grades as a fillable xlsx sheet."""
    headers = ["No.", StudentCodeHeader, "Full name", *ComponentHeaders.values()]
    wb = openpyxl.Workbook()
    ws = wb.active
    assert ws is not None
    ws.title = "Grades"
    row = _write_titles(
        ws,
        [
            f"GRADE SHEET {sheet.subject_name} - {sheet.class_name}",
            f"Academic year: {sheet.academic_year} - {sheet.semester}",
        ],
        len(headers),
    )
    _write_header(ws, row, headers)
    for n, student in enumerate(sheet.rows, start=1):
        values = [_format(student.grades.get(c)) for c in ComponentHeaders]
        _write_row(ws, row + n, [n, student.student_code or "", student.full_name, *values], left={3})
    _size_columns(ws, [6, 14, 28, *(11 for _ in ComponentHeaders)])

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def _parse_value(raw: t.Any, label: str, row_number: int) -> tuple[float | None, str | None]:
    if raw is None:
        return None, None
    if isinstance(raw, bool):
        return None, f"Row {row_number}: {label} '{raw}' is not a number"
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = str(raw).strip()
        if text in ("", "-"):
            return None, None
        try:
            value = float(text.replace(",", "."))
        except ValueError:
            return None, f"Row {row_number}: {label} '{text}' is not a number"
    if math.isnan(value) or not 0 <= value <= 10:
        return None, f"Row {row_number}: {label} {raw} must be between 0 and 10"
    if round(value, 1) != value:
        return None, f"Row {row_number}: {label} {raw} has more than one decimal place"
    return value, None


def parse_grade_sheet(data: bytes) -> list[ImportedRow]:
    """Read the filled-in rows of a grade sheet.

    The header row is the first row with a "Student code" cell; rows above it
    are titles. Grade columns are recognised by their header label. Blank or
    "-" cells are left out of the result. Values must lie in 0-10 with at most
    one decimal place.

    Raises:
        GradeImportError: listing every problem found in the workbook
    """
    try:
        wb = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
        raise GradeImportError(["File is not a readable xlsx workbook"]) from e

    try:
        if not wb.worksheets:
            raise GradeImportError(["Workbook has no sheets"])
        return _read_rows(wb.worksheets[0])
    finally:
        wb.close()


def _read_rows(ws: t.Any) -> list[ImportedRow]:
    rows = enumerate(ws.iter_rows(min_row=1, values_only=True), start=1)
    code_col: int | None = None
    name_col: int | None = None
    columns: dict[int, ComponentType] = {}
    for _, header in rows:
        labels = [str(c).strip().lower() if c is not None else "" for c in header]
        if StudentCodeHeader.lower() in labels:
            code_col = labels.index(StudentCodeHeader.lower())
            name_col = labels.index("full name") if "full name" in labels else None
            columns = {
                i: _components_by_header[label] for i, label in enumerate(labels) if label in _components_by_header
            }
            break
    if code_col is None:
        raise GradeImportError([f"No '{StudentCodeHeader}' column found"])
    if not columns:
        raise GradeImportError(["No grade columns found"])

    imported: list[ImportedRow] = []
    errors: list[str] = []
    seen: set[str] = set()
    for row_number, cells in rows:
        if all(c is None or str(c).strip() == "" for c in cells):
            continue
        code = str(cells[code_col]).strip() if code_col < len(cells) and cells[code_col] is not None else ""
        if not code:
            errors.append(f"Row {row_number}: student code is missing")
            continue
        if code in seen:
            errors.append(f"Row {row_number}: student {code} appears more than once")
            continue
        seen.add(code)

        grades: dict[ComponentType, float] = {}
        for col, component in columns.items():
            raw = cells[col] if col < len(cells) else None
            value, error = _parse_value(raw, ComponentHeaders.get(component, "Regular"), row_number)
            if error:
                errors.append(error)
            elif value is not None:
                grades[component] = value

        name = cells[name_col] if name_col is not None and name_col < len(cells) else None
        imported.append(
            ImportedRow(
                row_number=row_number,
                student_code=code,
                full_name=str(name).strip() if name is not None else None,
                grades=grades,
            )
        )

    if errors:
        raise GradeImportError(errors)
    return imported
