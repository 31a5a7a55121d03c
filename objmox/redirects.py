"""Reversible redirection of free functions to mock methods.

A redirect replaces ``target.attribute`` with a callable that dispatches to a
mock until the redirect is restored. Active redirects live in a process-wide
table so the same attribute cannot be taken over twice.
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as t

from .errors import UsageError

logger = logging.getLogger(__name__)

_MISSING = object()


@dc.dataclass(slots=True)
class Redirect:
    """Record of an attribute replaced for the duration of a test."""

    target: object
    attribute: str
    original: object
    owned: bool
    owner: str

    @property
    def key(self) -> tuple[int, str]:
        """Return the table key identifying the redirected attribute."""
        return (id(self.target), self.attribute)


class RedirectTable:
    """Track active redirects and restore them on request."""

    _active: t.ClassVar[dict[tuple[int, str], Redirect]] = {}

    @classmethod
    def active(cls) -> tuple[Redirect, ...]:
        """Return the currently installed redirects."""
        return tuple(cls._active.values())

    @classmethod
    def install(
        cls,
        target: object,
        attribute: str,
        replacement: t.Callable[..., object],
        *,
        owner: str,
    ) -> Redirect:
        """Replace ``target.attribute`` with *replacement*."""
        key = (id(target), attribute)
        existing = cls._active.get(key)
        if existing is not None:
            msg = (
                f"{target!r}.{attribute} is already redirected to mock "
                f"'{existing.owner}'"
            )
            raise UsageError(msg)

        namespace = getattr(target, "__dict__", None)
        owned = namespace is None or attribute in namespace
        if namespace is not None and attribute in namespace:
            # Keep the raw descriptor so staticmethods and classmethods survive.
            original = namespace[attribute]
        else:
            original = getattr(target, attribute, _MISSING)

        try:
            setattr(target, attribute, replacement)
        except (AttributeError, TypeError) as exc:
            msg = (
                f"Cannot redirect {target!r}.{attribute}; builtin objects do "
                "not allow attribute updates"
            )
            raise UsageError(msg) from exc

        redirect = Redirect(target, attribute, original, owned, owner)
        cls._active[key] = redirect
        logger.debug("Redirected %r.%s to mock '%s'", target, attribute, owner)
        return redirect

    @classmethod
    def restore(cls, redirect: Redirect) -> None:
        """Put back the attribute replaced by *redirect*."""
        if cls._active.get(redirect.key) is not redirect:
            return
        del cls._active[redirect.key]
        if redirect.owned and redirect.original is not _MISSING:
            setattr(redirect.target, redirect.attribute, redirect.original)
        else:
            delattr(redirect.target, redirect.attribute)
        logger.debug("Restored %r.%s", redirect.target, redirect.attribute)

    @classmethod
    def reset(cls) -> None:
        """Restore every active redirect."""
        for redirect in reversed(cls.active()):
            cls.restore(redirect)


__all__ = ["Redirect", "RedirectTable"]
