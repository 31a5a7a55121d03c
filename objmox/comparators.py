"""Comparator classes used for argument matching."""

from __future__ import annotations

import abc
import dataclasses as dc
import inspect
import re
import typing as t


class Comparator(t.Protocol):
    """Callable returning ``True`` when a value matches."""

    def __call__(self, value: object) -> bool:
        """Return ``True`` if *value* satisfies the comparison."""
        ...


class Matcher(abc.ABC):
    """Base class marking objects that ``with_args`` must not wrap."""

    __slots__ = ()

    @abc.abstractmethod
    def __call__(self, value: object) -> bool:
        """Return ``True`` if *value* satisfies the comparison."""


@dc.dataclass(frozen=True, slots=True)
class Any(Matcher):
    """Match any value."""

    def __call__(self, value: object) -> bool:
        """Return ``True`` for any input."""
        return True


@dc.dataclass(frozen=True, slots=True)
class Eq(Matcher):
    """Match values equal to ``expected``, with no type or pattern magic."""

    expected: object

    def __call__(self, value: object) -> bool:
        """Return ``True`` when ``value == expected``."""
        return bool(value == self.expected)


@dc.dataclass(frozen=True, slots=True)
class IsA(Matcher):
    """Match instances of ``typ`` or one of its subclasses."""

    typ: type

    def __call__(self, value: object) -> bool:
        """Return ``True`` when ``value`` is an instance of ``typ``."""
        return isinstance(value, self.typ)


@dc.dataclass(frozen=True, slots=True)
class Regex(Matcher):
    """Match if the text form of *value* matches ``pattern``."""

    pattern: str
    _compiled: re.Pattern[str] = dc.field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_compiled", re.compile(self.pattern))

    def __call__(self, value: object) -> bool:
        """Return ``True`` if the regex matches ``str(value)``."""
        return self._compiled.search(str(value)) is not None


@dc.dataclass(frozen=True, slots=True)
class Contains(Matcher):
    """Match if ``substring`` is found in the text form of *value*."""

    substring: str

    def __call__(self, value: object) -> bool:
        """Return ``True`` if ``substring`` is in ``str(value)``."""
        return self.substring in str(value)


@dc.dataclass(frozen=True, slots=True)
class StartsWith(Matcher):
    """Match if the text form of *value* begins with ``prefix``."""

    prefix: str

    def __call__(self, value: object) -> bool:
        """Return ``True`` if ``str(value)`` starts with ``prefix``."""
        return str(value).startswith(self.prefix)


@dc.dataclass(frozen=True, slots=True)
class Predicate(Matcher):
    """Use a custom ``func`` to determine a match."""

    func: t.Callable[[t.Any], object]

    def __call__(self, value: object) -> bool:
        """Return ``True`` if ``func(value)`` is truthy."""
        return bool(self.func(value))


@dc.dataclass(frozen=True, slots=True)
class Literal(Matcher):
    """Match a plain value passed to ``with_args``.

    Equality is tried first. A class additionally matches its instances and a
    compiled pattern matches any value whose text form it finds.
    """

    value: object

    def __call__(self, value: object) -> bool:
        """Return ``True`` when *value* satisfies the literal."""
        if value == self.value:
            return True
        expected = self.value
        if inspect.isclass(expected):
            return isinstance(value, expected)
        if isinstance(expected, re.Pattern):
            return expected.search(str(value)) is not None
        return False

    def __str__(self) -> str:
        return display_value(self.value)


def anything() -> Any:
    """Return a matcher accepting any argument."""
    return Any()


def equal_to(value: object) -> Eq:
    """Return a matcher accepting arguments equal to *value*."""
    return Eq(value)


def matching(func: t.Callable[[t.Any], object]) -> Predicate:
    """Return a matcher accepting arguments for which *func* is truthy."""
    return Predicate(func)


def of_type(typ: type) -> IsA:
    """Return a matcher accepting instances of *typ*."""
    return IsA(typ)


def to_comparator(value: object) -> Matcher:
    """Return *value* as a matcher, wrapping plain values in :class:`Literal`."""
    if isinstance(value, Matcher):
        return value
    return Literal(value)


def display_value(value: object) -> str:
    """Return the form used for *value* in call descriptions."""
    if isinstance(value, Literal):
        return display_value(value.value)
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, re.Pattern):
        return f"/{value.pattern}/"
    if inspect.isclass(value):
        return value.__name__
    return repr(value)


__all__ = [
    "Any",
    "Comparator",
    "Contains",
    "Eq",
    "IsA",
    "Literal",
    "Matcher",
    "Predicate",
    "Regex",
    "StartsWith",
    "anything",
    "display_value",
    "equal_to",
    "matching",
    "of_type",
    "to_comparator",
]
