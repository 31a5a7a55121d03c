"""Verification and diagnostic helpers for :mod:`objmox`."""

from __future__ import annotations

import logging
import typing as t
from textwrap import indent

from .comparators import display_value
from .errors import CardinalityError, NoMatchingHandlerError

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .expectations import Cardinality, Expectation

logger = logging.getLogger(__name__)


def format_args(args: t.Sequence[object], kwargs: t.Mapping[str, object]) -> str:
    """Return ``args`` and ``kwargs`` joined the way a call is written."""
    parts = [display_value(arg) for arg in args]
    parts.extend(f"{key}={display_value(value)}" for key, value in kwargs.items())
    return ", ".join(parts)


def format_call(
    name: str,
    args: t.Sequence[object] = (),
    kwargs: t.Mapping[str, object] | None = None,
) -> str:
    """Return a readable ``name(args)`` representation."""
    return f"{name}({format_args(args, kwargs or {})})"


def _numbered(entries: t.Sequence[str], *, start: int = 1) -> str:
    if not entries:
        return "(none)"
    lines: list[str] = []
    for index, entry in enumerate(entries, start=start):
        entry_lines = entry.splitlines() or [""]
        lines.append(f"{index}. {entry_lines[0]}")
        lines.extend(f"   {extra}" for extra in entry_lines[1:])
    return "\n".join(lines)


def format_sections(title: str, sections: list[tuple[str, str]]) -> str:
    """Return *title* followed by indented ``label: body`` sections."""
    parts = [title]
    for label, body in sections:
        if not body:
            continue
        parts.append("")
        parts.append(f"{label}:")
        parts.append(indent(body, "  "))
    return "\n".join(parts)


def _describe_with_count(exp: Expectation) -> str:
    return f"{exp} (called {exp.call_count} times)"


def no_matching_handler(
    mock_name: str,
    method: str,
    call: tuple[tuple[object, ...], dict[str, object]],
    expectations: t.Sequence[Expectation],
) -> NoMatchingHandlerError:
    """Build the error raised when *call* matches none of *expectations*."""
    args, kwargs = call
    msg = format_sections(
        f"Call '{mock_name}.{format_call(method, args, kwargs)}' "
        "found no matching handler.",
        [
            ("Actual call", format_call(method, args, kwargs)),
            (
                "Declared expectations",
                _numbered([_describe_with_count(exp) for exp in expectations]),
            ),
        ],
    )
    return NoMatchingHandlerError(msg)


def _describe_bounds(cardinality: Cardinality) -> str:
    low, high = cardinality.minimum, cardinality.maximum
    if cardinality.is_exact:
        return f"exactly {low}"
    if low and high is not None:
        return f"between {low} and {high}"
    if low:
        return f"at least {low}"
    if high is not None:
        return f"at most {high}"
    return "any number of times"


class CardinalityVerifier:
    """Check that an expectation was called an acceptable number of times."""

    def verify(self, mock_name: str, exp: Expectation) -> None:
        """Raise :class:`CardinalityError` when *exp*'s count is out of range."""
        cardinality = exp.cardinality
        actual = exp.call_count
        if cardinality.accepts(actual):
            return
        label = f"'{mock_name}.{exp}'"
        if cardinality.is_exact:
            title = f"Method {label} called incorrect number of times."
        elif cardinality.minimum is not None and actual < cardinality.minimum:
            title = (
                f"Method {label} should be called at least "
                f"{cardinality.minimum} times."
            )
        else:
            title = (
                f"Method {label} should be called at most "
                f"{cardinality.maximum} times."
            )
        msg = format_sections(
            title,
            [
                ("Expected calls", _describe_bounds(cardinality)),
                ("Observed calls", str(actual)),
            ],
        )
        logger.debug("Cardinality check failed for %s: %d calls", label, actual)
        raise CardinalityError(msg)


__all__ = [
    "CardinalityVerifier",
    "format_args",
    "format_call",
    "format_sections",
    "no_matching_handler",
]
