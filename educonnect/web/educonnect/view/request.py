import typing as t

from educonnect.model import BaseModel


def changes(request: BaseModel, *nullable: str) -> dict[str, t.Any]:
    """The fields a partial update sets.

    An explicit null only counts for the `nullable` fields; elsewhere it means
    "leave unchanged".
    """
    values = request.model_dump(exclude_unset=True, by_alias=False)
    return {k: v for k, v in values.items() if v is not None or k in nullable}
