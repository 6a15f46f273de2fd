"""LLM configuration settings."""

from __future__ import annotations

import enum

from .base import BaseSettings


class ProviderType(enum.Enum):
    """Supported chat model vendors."""

    OpenAI = "openai"
    Anthropic = "anthropic"


class ModelSettings(BaseSettings):
    """Settings for a specific model."""

    provider: ProviderType = ProviderType.OpenAI
    model: str = "gpt-4o-mini"
    max_tokens: int = 1024
    temperature: float = 1.0
    max_retries: int = 3
    timeout_seconds: float = 60.0


class EduConnectModels(BaseSettings):
    """Model configuration per task."""

    # parent-facing feedback summaries are one or two sentences
    summary: ModelSettings = ModelSettings(
        provider=ProviderType.OpenAI,
        model="gpt-4o-mini",
        max_tokens=80,
        temperature=0.5,
    )


class LLMSettings(BaseSettings):
    """Root LLM configuration."""

    models: EduConnectModels = EduConnectModels()
