"""Environment-driven defaults shared across objmox modules.

Centralising the lookup keeps the pytest plug-in and direct library use
consistent about how a mock behaves when no explicit option is given.
"""

from __future__ import annotations

import os
import typing as t

# Selects the strictness of mocks created without an explicit ``strict``
# argument. Strict mocks reject calls to undeclared methods.
STRICT_ENV: t.Final[str] = "OBJMOX_STRICT"

_FALSY: t.Final[frozenset[str]] = frozenset({"0", "false", "no", "off"})


def _normalise(value: str) -> str:
    """Return a lowercase version of *value* suitable for comparisons."""
    return value.strip().lower()


def default_strict() -> bool:
    """Return the default strictness, honouring :data:`STRICT_ENV`."""
    raw = os.getenv(STRICT_ENV)
    if not raw:
        return True
    return _normalise(raw) not in _FALSY


def resolve_strict(strict: bool | None) -> bool:
    """Return *strict* when given, otherwise the environment default."""
    if strict is None:
        return default_strict()
    return bool(strict)


__all__ = ["STRICT_ENV", "default_strict", "resolve_strict"]
