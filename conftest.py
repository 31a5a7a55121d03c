"""Global test configuration and shared fixtures."""

from __future__ import annotations

import typing as t

import pytest

from objmox.redirects import RedirectTable
from objmox.settings import STRICT_ENV

pytest_plugins = ("objmox.pytest_plugin", "pytester")


@pytest.fixture(autouse=True)
def reset_redirect_table() -> t.Generator[None, None, None]:
    """Ensure no redirect leaks from one test into the next."""
    RedirectTable.reset()
    yield
    RedirectTable.reset()


@pytest.fixture(autouse=True)
def clear_strict_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test with the default strictness unless it opts out."""
    monkeypatch.delenv(STRICT_ENV, raising=False)
