from __future__ import annotations

import typing as t
from pathlib import Path

import pydantic as p

from .base import BaseSettings


class StorageSettings(BaseSettings):
    persistent: PersistentSettings


class PersistentSettings(BaseSettings):
    """Relational store; exactly one backend is configured."""

    postgresql: PostgresqlSettings | None = None
    sqlite: SqliteSettings | None = None

    @p.model_validator(mode="after")
    def check_one_backend(self) -> t.Self:
        if (self.postgresql is None) == (self.sqlite is None):
            raise ValueError("exactly one of storage.persistent.postgresql or storage.persistent.sqlite must be set")
        return self


class PostgresqlSettings(BaseSettings):
    host: p.IPvAnyAddress | str | None = None
    port: int = 5432
    database: str
    driver: t.Literal["postgresql+psycopg"] = "postgresql+psycopg"


class SqliteSettings(BaseSettings):
    # ":memory:" keeps the database in-process
    path: t.Literal[":memory:"] | Path = ":memory:"
    driver: t.Literal["sqlite+pysqlite"] = "sqlite+pysqlite"

    @property
    def in_memory(self) -> bool:
        return self.path == ":memory:"
