"""
Unit test configuration.

Patches dotenv so pydantic-settings never reads a local .env file during unit
tests, and clears signing-key variables from the process environment so a
developer's shell cannot switch JwtCodec to RS256 behind a test's back.
Tests control config exclusively through monkeypatch.setenv() or explicit
constructor arguments.
"""

import pytest


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


@pytest.fixture(autouse=True)
def isolate_signing_keys(monkeypatch):
    for var in ("JWT_PRIVATE_KEY", "JWT_PUBLIC_KEY", "JWT_SECRET", "SECRET_KEY"):
        monkeypatch.delenv(var, raising=False)
