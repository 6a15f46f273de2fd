from __future__ import annotations

import base64
import datetime
import decimal
import enum
import functools
import json as pyjson
import typing as t

import pydantic as p

JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]


# encoders
def encode_bytes(obj: bytes) -> str:
    return base64.b64encode(obj).decode("utf8")


def encode_set(obj: set[t.Any] | frozenset[t.Any]) -> list[t.Any]:
    return sorted(obj, key=str)


def encode_datetime(obj: datetime.datetime) -> str:
    return obj.isoformat()


def encode_date(obj: datetime.date) -> str:
    return obj.isoformat()


def encode_time(obj: datetime.time) -> str:
    # lesson times travel as HH:MM
    return obj.strftime("%H:%M")


def encode_decimal(obj: decimal.Decimal) -> str:
    return str(obj)


def encode_enum(obj: enum.Enum) -> str:
    return obj.value


def encode_pydantic(obj: p.BaseModel) -> dict[str, JSONValue]:
    return obj.model_dump(mode="json")


@functools.cache  # noqa: E302
def _encoder_map() -> dict[type, t.Callable[[t.Any], JSONValue]]:
    # datetime precedes date: isinstance(datetime, date) holds
    return {
        bytes: encode_bytes,
        datetime.datetime: encode_datetime,
        datetime.date: encode_date,
        datetime.time: encode_time,
        decimal.Decimal: encode_decimal,
        enum.Enum: encode_enum,
        set: encode_set,
        frozenset: encode_set,
    }


class JSONEncoder(pyjson.JSONEncoder):
    """Encodes the values stored in JSON columns and written to logs."""

    def get_encoders(self) -> dict[type, t.Callable[[t.Any], JSONValue]]:
        return _encoder_map()

    def default(self, o: t.Any) -> JSONValue:
        if isinstance(o, p.BaseModel):
            return encode_pydantic(o)

        encoders = self.get_encoders()
        for tp, encoder in encoders.items():
            if isinstance(o, tp):
                return encoder(o)

        return pyjson.JSONEncoder.default(self, o)


def dumps(obj: t.Any, *, cls: type[pyjson.JSONEncoder] = JSONEncoder, **kw: t.Any) -> str:
    return pyjson.dumps(obj, cls=cls, **kw)


def loads(s: str | bytes | bytearray, **kw: t.Any) -> t.Any:
    return pyjson.loads(s, **kw)
