import typing as t

from educonnect.model import ComponentType, Grade

# exam components count for more than the regular checks
Weights: t.Final = {ComponentType.Midterm: 2, ComponentType.Final: 3}


def subject_average(grades: t.Iterable[Grade]) -> float | None:
    """Weighted average of one student's grades in one subject.

    Each regular component weighs 1, the midterm 2 and the final 3. Empty
    components are skipped. None when no component has a value.
    """
    total = weight = 0.0
    for grade in grades:
        if grade.grade_value is None:
            continue
        w = Weights.get(grade.component_type, 1)
        total += grade.grade_value * w
        weight += w
    if not weight:
        return None
    return round(total / weight, 1)
