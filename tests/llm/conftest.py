"""Fixtures for LLM tests."""

from __future__ import annotations

import jinja2
import pytest

from educonnect.core import EduConnectContainer


@pytest.fixture(scope="session")
def llm_env(container: EduConnectContainer) -> jinja2.Environment:
    """Provide the LLM Jinja2 environment from the DI container."""
    return container.template().llm()
