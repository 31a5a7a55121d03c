"""Expectation declarations for mock methods."""

from __future__ import annotations

import dataclasses as dc
import enum
import inspect
import logging
import typing as t

from ._validators import validate_call_count
from .comparators import Matcher, to_comparator
from .errors import BlockRequiredError, UsageError
from .verifiers import CardinalityVerifier, format_args, format_sections

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .controller import MockState
    from .ordering import Group

logger = logging.getLogger(__name__)

Call = tuple[tuple[object, ...], dict[str, object]]


class ArgRule(enum.Enum):
    """How an expectation decides whether call arguments are acceptable."""

    ANY = "any"
    NONE = "none"
    MATCH = "match"


class _Bound(enum.Enum):
    MINIMUM = "minimum"
    MAXIMUM = "maximum"


@dc.dataclass(slots=True)
class Cardinality:
    """Allowed range of calls; ``None`` means unbounded on that side."""

    minimum: int | None = None
    maximum: int | None = None

    @property
    def is_exact(self) -> bool:
        """Return ``True`` when exactly one call count is acceptable."""
        return self.minimum is not None and self.minimum == self.maximum

    def is_eligible(self, count: int) -> bool:
        """Return ``True`` while another call stays within the maximum."""
        return self.maximum is None or count < self.maximum

    def accepts(self, count: int) -> bool:
        """Return ``True`` when *count* lies inside the allowed range."""
        low = self.minimum or 0
        return count >= low and (self.maximum is None or count <= self.maximum)


@dc.dataclass(frozen=True, slots=True)
class _ReturnValue:
    value: object

    def __call__(self, args: tuple[object, ...], kwargs: dict[str, object]) -> object:
        return self.value


@dc.dataclass(frozen=True, slots=True)
class _Computed:
    func: t.Callable[..., object]

    def __call__(self, args: tuple[object, ...], kwargs: dict[str, object]) -> object:
        return self.func(*args, **kwargs)


@dc.dataclass(frozen=True, slots=True)
class _Raise:
    error: type[BaseException] | BaseException
    args: tuple[object, ...] = ()
    kwargs: dict[str, object] = dc.field(default_factory=dict)

    def __call__(self, args: tuple[object, ...], kwargs: dict[str, object]) -> object:
        if inspect.isclass(self.error):
            raise self.error(*self.args, **self.kwargs)
        raise self.error


_Step = _ReturnValue | _Computed | _Raise
_S = t.TypeVar("_S")


def _next_step(queue: list[_S]) -> _S | None:
    """Consume the head of *queue*, keeping the final entry forever."""
    if not queue:
        return None
    if len(queue) > 1:
        return queue.pop(0)
    return queue[0]


class Expectation:
    """A declared call on a mock together with its constraints and response.

    Configuration methods return ``self`` so they can be chained::

        mock.should_receive("fetch").with_args(1).and_return("a").once()
    """

    def __init__(self, name: str, state: MockState) -> None:
        self.name = name
        self._state = state
        self._arg_rule = ArgRule.ANY
        self._matchers: tuple[Matcher, ...] = ()
        self._kwarg_matchers: dict[str, Matcher] = {}
        self._cardinality = Cardinality()
        self._pending_bound: _Bound | None = None
        self._call_count = 0
        self._returns: list[_Step] = []
        self._yields: list[tuple[object, ...]] = []
        self._global = False
        self._order_number: int | None = None
        self._global_order_number: int | None = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def call_count(self) -> int:
        """Return the number of calls dispatched to this expectation."""
        return self._call_count

    @property
    def cardinality(self) -> Cardinality:
        """Return the allowed call range."""
        return self._cardinality

    @property
    def order_number(self) -> int | None:
        """Return the per-mock order number, else the container one."""
        if self._order_number is not None:
            return self._order_number
        return self._global_order_number

    @property
    def global_order_number(self) -> int | None:
        """Return the order number within the mock's container, if any."""
        return self._global_order_number

    @property
    def is_global(self) -> bool:
        """Return ``True`` when ordering spans the mock's container."""
        return self._global_order_number is not None

    def __str__(self) -> str:
        if self._arg_rule is ArgRule.ANY:
            return f"{self.name}(...)"
        return f"{self.name}({format_args(self._matchers, self._kwarg_matchers)})"

    def __repr__(self) -> str:
        return f"<Expectation {self._state.name}.{self}>"

    # ------------------------------------------------------------------
    # Argument rules
    # ------------------------------------------------------------------
    def with_args(self, *args: object, **kwargs: object) -> Expectation:
        """Require each argument to match the corresponding pattern.

        Plain values match by equality, classes match their instances and
        compiled patterns match the text form of the argument. Matchers from
        :mod:`objmox.comparators` are used as given.
        """
        self._arg_rule = ArgRule.MATCH
        self._matchers = tuple(to_comparator(arg) for arg in args)
        self._kwarg_matchers = {
            key: to_comparator(value) for key, value in kwargs.items()
        }
        return self

    def with_no_args(self) -> Expectation:
        """Accept only calls made without arguments."""
        self._arg_rule = ArgRule.NONE
        self._matchers = ()
        self._kwarg_matchers = {}
        return self

    def with_any_args(self) -> Expectation:
        """Accept calls with any arguments (the default)."""
        self._arg_rule = ArgRule.ANY
        self._matchers = ()
        self._kwarg_matchers = {}
        return self

    def matches(self, args: tuple[object, ...], kwargs: dict[str, object]) -> bool:
        """Return ``True`` if the call arguments satisfy this expectation."""
        if self._arg_rule is ArgRule.ANY:
            return True
        if self._arg_rule is ArgRule.NONE:
            return not args and not kwargs
        if len(args) != len(self._matchers):
            return False
        if kwargs.keys() != self._kwarg_matchers.keys():
            return False
        for arg, matcher in zip(args, self._matchers, strict=True):
            if not matcher(arg):
                return False
        return all(self._kwarg_matchers[key](value) for key, value in kwargs.items())

    # ------------------------------------------------------------------
    # Cardinality
    # ------------------------------------------------------------------
    def times(self, count: int) -> Expectation:
        """Expect exactly *count* calls, or apply a pending bound modifier."""
        count = validate_call_count(count)
        bound, self._pending_bound = self._pending_bound, None
        if bound is _Bound.MINIMUM:
            self._cardinality.minimum = count
        elif bound is _Bound.MAXIMUM:
            self._cardinality.maximum = count
        else:
            self._cardinality.minimum = count
            self._cardinality.maximum = count
        return self

    def once(self) -> Expectation:
        """Expect a single call."""
        return self.times(1)

    def twice(self) -> Expectation:
        """Expect two calls."""
        return self.times(2)

    def never(self) -> Expectation:
        """Expect no calls at all."""
        return self.times(0)

    def zero_or_more_times(self) -> Expectation:
        """Allow any number of calls (the default)."""
        self._pending_bound = None
        self._cardinality.minimum = None
        self._cardinality.maximum = None
        return self

    def at_least(self) -> Expectation:
        """Make the next count call set only the minimum."""
        self._pending_bound = _Bound.MINIMUM
        return self

    def at_most(self) -> Expectation:
        """Make the next count call set only the maximum."""
        self._pending_bound = _Bound.MAXIMUM
        return self

    def is_eligible(self) -> bool:
        """Return ``True`` while the maximum call count is not yet reached."""
        return self._cardinality.is_eligible(self._call_count)

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------
    def and_return(self, *values: object) -> Expectation:
        """Queue *values*; each is returned once and the last one forever."""
        self._returns.extend(_ReturnValue(value) for value in values or (None,))
        return self

    returns = and_return

    def and_run(self, func: t.Callable[..., object]) -> Expectation:
        """Queue a step returning ``func(*args, **kwargs)`` for the call."""
        self._returns.append(_Computed(func))
        return self

    runs = and_run

    def and_raise(
        self,
        error: type[BaseException] | BaseException,
        *args: object,
        **kwargs: object,
    ) -> Expectation:
        """Queue a step raising *error*.

        A class is instantiated with ``args`` and ``kwargs`` on each call; an
        instance is raised as-is.
        """
        self._returns.append(_Raise(error, args, kwargs))
        return self

    raises = and_raise

    def and_yield(self, *values: object) -> Expectation:
        """Queue *values* to pass to the block given as the last argument."""
        self._yields.append(values)
        return self

    yields = and_yield

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------
    def globally(self) -> Expectation:
        """Make the next ``ordered`` call use the container's ordering."""
        if self._state.container is None:
            msg = (
                f"Mock '{self._state.name}' is not in a container and cannot "
                "be globally ordered."
            )
            raise UsageError(msg)
        self._global = True
        return self

    def ordered(self, group: Group | None = None) -> Expectation:
        """Require this expectation to be called in declaration order.

        Expectations sharing *group* occupy a single position in the sequence
        and may be called in any order relative to each other.
        """
        if self._global:
            container = self._state.container
            if container is None:  # pragma: no cover - guarded by globally()
                msg = f"Mock '{self._state.name}' is not in a container"
                raise UsageError(msg)
            self._global_order_number = container.ordering.allocate_order(group)
            self._global = False
        else:
            self._order_number = self._state.ordering.allocate_order(group)
        return self

    def validate_order(self) -> None:
        """Check this call against the per-mock and container watermarks."""
        description = f"{self._state.name}.{self}"
        if self._order_number is not None:
            self._state.ordering.check_and_advance(self._order_number, description)
        container = self._state.container
        if self._global_order_number is not None and container is not None:
            container.ordering.check_and_advance(
                self._global_order_number, description
            )

    # ------------------------------------------------------------------
    # Dispatch and verification
    # ------------------------------------------------------------------
    def invoke(self, args: tuple[object, ...], kwargs: dict[str, object]) -> object:
        """Count the call and produce the configured response."""
        self._call_count += 1
        logger.debug(
            "Dispatching %s.%s (call %d)", self._state.name, self, self._call_count
        )
        yielded = self._perform_yield(args)
        step = _next_step(self._returns)
        if step is None:
            return yielded
        return step(args, kwargs)

    def _perform_yield(self, args: tuple[object, ...]) -> object:
        values = _next_step(self._yields)
        if values is None:
            return None
        block = args[-1] if args else None
        if not callable(block):
            msg = format_sections(
                f"Method '{self._state.name}.{self}' yields values but "
                "no block given.",
                [("Values to yield", format_args(values, {}))],
            )
            raise BlockRequiredError(msg)
        return block(*values)

    def verify(self) -> None:
        """Raise :class:`~objmox.errors.CardinalityError` on a bad call count."""
        CardinalityVerifier().verify(self._state.name, self)


class CompositeExpectation:
    """Expectations for several method names configured together.

    Every configuration call is applied to each member; each member keeps its
    own call count.
    """

    def __init__(self, expectations: t.Sequence[Expectation]) -> None:
        self.expectations = tuple(expectations)

    @property
    def order_number(self) -> int | None:
        """Return the order number of the first member."""
        return self.expectations[0].order_number

    def __str__(self) -> str:
        return "[" + ", ".join(str(exp) for exp in self.expectations) + "]"

    def __repr__(self) -> str:
        return f"<CompositeExpectation {self}>"

    def __getattr__(self, name: str) -> t.Any:
        if name.startswith("_") or not callable(getattr(Expectation, name, None)):
            raise AttributeError(name)
        if name in _NON_CHAINABLE:
            raise AttributeError(name)

        def forward(*args: object, **kwargs: object) -> CompositeExpectation:
            for exp in self.expectations:
                getattr(exp, name)(*args, **kwargs)
            return self

        forward.__name__ = name
        return forward


_NON_CHAINABLE: t.Final[frozenset[str]] = frozenset(
    {"matches", "invoke", "verify", "validate_order", "is_eligible"}
)


__all__ = ["ArgRule", "Cardinality", "CompositeExpectation", "Expectation"]
