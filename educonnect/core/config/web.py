from __future__ import annotations

import typing as t

import annotated_types as ant
import pydantic as p

from .base import BaseSettings


class WebSettings(BaseSettings):
    educonnect: EduConnectWebSettings


class ServeSettings(BaseSettings):
    host: p.IPvAnyAddress
    port: t.Annotated[int, ant.Gt(0), ant.Le(65535)]


class AuthSettings(BaseSettings):
    """Authentication settings for JWT tokens."""

    jwt_algorithm: t.Literal["HS256", "HS384", "HS512"] = "HS256"
    access_token_expire_minutes: t.Annotated[int, ant.Gt(1)] = 30


class EduConnectWebSettings(BaseSettings):
    """Settings for the EduConnect API backend."""

    backend: ServeSettings
    frontend: ServeSettings | None = None
    auth: AuthSettings = AuthSettings()
