from __future__ import annotations

import typing as t

import annotated_types as ant
import pydantic as p
import pydantic_core.core_schema as core_schema
import shortuuid


class ShortUUIDKey(str):
    """A prefixed shortuuid, e.g. `user$mhvXdrZT4jP5T8vBxuvm75`.

    Only the 22-character key part is stored in the database; the prefix
    names the entity and is restored when the row is read back.
    """

    prefix: t.ClassVar[str]
    separator: t.ClassVar[str]

    @classmethod
    def validate_str(cls, v: ShortUUIDKey | str | None, _: p.ValidationInfo) -> ShortUUIDKey | None:
        return cls(v) if v is not None else v

    @classmethod
    def __get_pydantic_json_schema__(cls, src: t.Any, handler: p.GetJsonSchemaHandler) -> p.json_schema.JsonSchemaValue:
        return {
            "type": "string",
        }

    @classmethod
    def __get_pydantic_core_schema__(cls, src: t.Any, handler: p.GetCoreSchemaHandler) -> core_schema.CoreSchema:
        from_str_schema = core_schema.chain_schema([
            core_schema.str_schema(),
            core_schema.with_info_after_validator_function(cls.validate_str, schema=core_schema.str_schema()),
        ])
        to_str = core_schema.plain_serializer_function_ser_schema(cls.__str__)

        return core_schema.json_or_python_schema(
            json_schema=from_str_schema,
            python_schema=core_schema.union_schema([
                core_schema.is_instance_schema(cls),
                from_str_schema,
            ]),
            serialization=to_str,
        )

    @p.validate_call
    def __init_subclass__(cls, prefix: t.Annotated[str, ant.Len(4)], separator: t.Annotated[str, ant.Len(1)] = "$"):
        super().__init_subclass__()
        cls.prefix = prefix
        cls.separator = separator

    def __new__(
        cls,
        s: str | None = None,
        /,
        key: t.Annotated[str, ant.Len(22)] | None = None,
    ) -> t.Self:
        """
        `s` is a complete, prefixed key and is validated
        `key` is the shortuuid part only and is trusted (row marshaling)
        with neither, a new key is generated
        """
        if key is None:
            if s is not None:
                if not s.startswith(cls.prefix + cls.separator):
                    raise ValueError(f"invalid {cls.__name__}: key must begin with {cls.prefix}")
                lpre = len(cls.prefix) + len(cls.separator)
                if len(s) != 22 + lpre:
                    raise ValueError(f"invalid {cls.__name__}: key must have length 22")
                alphabet = shortuuid.get_alphabet()
                if any((c not in alphabet) for c in s[lpre:]):
                    raise ValueError(f"invalid {cls.__name__}: key must comprise only {alphabet}")
                return super().__new__(cls, s)
            key = shortuuid.uuid()
        prefixed = cls.separator.join((cls.prefix, key))
        return super().__new__(cls, prefixed)

    @property
    def key(self) -> str:
        i = len(self.prefix) + len(self.separator)
        return self[i:]

    def __hash__(self) -> int:
        return str.__hash__(self)

    def __str__(self) -> str:
        return str.__str__(self)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.key!s}>"


# fmt: off
class UserID(ShortUUIDKey, prefix="user"): ...
class AcademicYearID(ShortUUIDKey, prefix="year"): ...
class SemesterID(ShortUUIDKey, prefix="semr"): ...
class SubjectID(ShortUUIDKey, prefix="subj"): ...
class ClassroomID(ShortUUIDKey, prefix="room"): ...
class ClassID(ShortUUIDKey, prefix="clss"): ...
class EnrollmentID(ShortUUIDKey, prefix="enrl"): ...
class TeachingAssignmentID(ShortUUIDKey, prefix="tchg"): ...
class SlotID(ShortUUIDKey, prefix="slot"): ...
class GradeID(ShortUUIDKey, prefix="grde"): ...
class AuditID(ShortUUIDKey, prefix="audt"): ...
class LeaveID(ShortUUIDKey, prefix="leav"): ...
class NotificationID(ShortUUIDKey, prefix="ntfy"): ...
class FeedbackID(ShortUUIDKey, prefix="fdbk"): ...
# fmt: on
