from __future__ import annotations

import pydantic as p
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from educonnect.model import BaseModel, DeploymentEnvironment

from .base import BaseSecrets
from .source import AnsibleVaultSecretsSource


class PostgresqlSecrets(BaseSecrets):
    username: p.Secret[str] | None = None
    password: p.Secret[str] | None = None


class AuthSecrets(BaseSecrets):
    """Authentication secrets."""

    jwt: p.Secret[str]


class OpenAISecrets(BaseSecrets):
    """OpenAI API secrets."""

    secret_key: p.Secret[str]


class AnthropicSecrets(BaseSecrets):
    """Anthropic API secrets."""

    api_key: p.Secret[str]


class LLMSecrets(BaseSecrets):
    """LLM vendor API secrets."""

    openai: OpenAISecrets | None = None
    anthropic: AnthropicSecrets | None = None


class Secrets(BaseSecrets, BaseModel):  # pyright: ignore [reportIncompatibleVariableOverride]
    root: p.AnyUrl
    env: DeploymentEnvironment

    auth: AuthSecrets | None = None
    llm: LLMSecrets | None = None
    postgresql: PostgresqlSecrets = PostgresqlSecrets()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, AnsibleVaultSecretsSource(settings_cls)
