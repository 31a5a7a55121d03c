"""Mock objects, their containers and scoped entry points."""

from __future__ import annotations

import contextlib
import dataclasses as dc
import enum
import itertools
import logging
import types  # noqa: TC003
import typing as t

from .director import ExpectationDirector
from .errors import LifecycleError, NoSuchExpectationError, UsageError
from .expectations import CompositeExpectation, Expectation
from .ordering import OrderingManager
from .redirects import Redirect, RedirectTable
from .settings import resolve_strict
from .verifiers import format_call, format_sections

logger = logging.getLogger(__name__)

_T = t.TypeVar("_T")

# Attribute names that are never routed to expectations. Dunder lookups belong
# to the interpreter and ``_mox`` names hold the mock's own state.
_RESERVED_PREFIXES: t.Final[tuple[str, ...]] = ("__", "_mox")


class Phase(enum.StrEnum):
    """Lifecycle phases for :class:`MockContainer`."""

    ACTIVE = "ACTIVE"
    VERIFIED = "VERIFIED"


@dc.dataclass(slots=True)
class MockState:
    """Internal bookkeeping for a single :class:`Mock`."""

    name: str
    strict: bool
    container: MockContainer | None = None
    directors: dict[str, ExpectationDirector] = dc.field(default_factory=dict)
    redirects: list[Redirect] = dc.field(default_factory=list)
    ordering: OrderingManager = dc.field(init=False)

    def __post_init__(self) -> None:
        self.ordering = OrderingManager(self.name)

    def restore_redirects(self) -> None:
        """Undo every redirect installed for this mock, newest first."""
        while self.redirects:
            RedirectTable.restore(self.redirects.pop())


def _state(mock: Mock) -> MockState:
    return object.__getattribute__(mock, "_mox_state")


def _dispatcher(mock: Mock, method: str) -> t.Callable[..., object]:
    """Return a callable routing calls of *method* to *mock*."""

    def dispatch(*args: object, **kwargs: object) -> object:
        return Mock.mock_invoke(mock, method, *args, **kwargs)

    dispatch.__name__ = method
    dispatch.__qualname__ = f"{_state(mock).name}.{method}"
    return dispatch


def _declare(state: MockState, method: str) -> Expectation:
    if not isinstance(method, str) or not method:
        msg = f"method name must be a non-empty string, got {method!r}"
        raise UsageError(msg)
    if method.startswith(_RESERVED_PREFIXES):
        msg = f"method name {method!r} is reserved and cannot be mocked"
        raise UsageError(msg)
    director = state.directors.get(method)
    if director is None:
        director = ExpectationDirector(method, state)
        state.directors[method] = director
    expectation = Expectation(method, state)
    director.add(expectation)
    logger.debug("Declared expectation %s.%s", state.name, method)
    return expectation


class Mock:
    """Stand-in object that answers calls according to declared expectations.

    Any method name can be declared, including names the mock's class already
    defines; a declaration only affects the instance it was made on. Calls to
    undeclared names raise :class:`~objmox.errors.NoSuchExpectationError`
    unless the mock is lenient, in which case they return ``None``.
    """

    _mox_counter: t.ClassVar[t.Iterator[int]] = itertools.count(1)

    def __init__(
        self,
        name: str | None = None,
        *,
        strict: bool | None = None,
        container: MockContainer | None = None,
    ) -> None:
        """Create a new mock.

        Parameters
        ----------
        name:
            Label used in diagnostics. Defaults to ``mock-<n>``.
        strict:
            Whether calls to undeclared methods fail. ``None`` defers to the
            ``OBJMOX_STRICT`` environment variable, which defaults to strict.
        container:
            Container the mock belongs to; required for global ordering. The
            mock is registered with it and verified at its teardown.
        """
        label = name if name is not None else f"mock-{next(Mock._mox_counter)}"
        state = MockState(label, resolve_strict(strict), container)
        object.__setattr__(self, "_mox_state", state)
        if container is not None:
            container._adopt(self)

    def __getattribute__(self, name: str) -> t.Any:
        if not name.startswith(_RESERVED_PREFIXES):
            state = object.__getattribute__(self, "_mox_state")
            if name in state.directors:
                return _dispatcher(self, name)
        return object.__getattribute__(self, name)

    def __getattr__(self, name: str) -> t.Any:
        # Undeclared private names are never dispatched.
        if name.startswith("_"):
            raise AttributeError(name)
        return _dispatcher(self, name)

    def __repr__(self) -> str:
        return f"<Mock {_state(self).name!r}>"

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def mock_name(self) -> str:
        """Return the label used in diagnostics."""
        return _state(self).name

    @property
    def mock_strict(self) -> bool:
        """Return ``True`` when undeclared calls fail."""
        return _state(self).strict

    @property
    def mock_container(self) -> MockContainer | None:
        """Return the container this mock belongs to, if any."""
        return _state(self).container

    @property
    def mock_expectations(self) -> dict[str, tuple[Expectation, ...]]:
        """Return declared expectations keyed by method name."""
        return {
            method: tuple(director.expectations)
            for method, director in _state(self).directors.items()
        }

    # ------------------------------------------------------------------
    # Declaration
    # ------------------------------------------------------------------
    def should_receive(self, *methods: str) -> Expectation | CompositeExpectation:
        """Declare that this mock should receive calls to *methods*.

        A single name returns its :class:`Expectation`; several names return a
        :class:`CompositeExpectation` configuring all of them at once.
        """
        if not methods:
            msg = "should_receive() requires at least one method name"
            raise UsageError(msg)
        state = _state(self)
        expectations = [_declare(state, method) for method in methods]
        if len(expectations) == 1:
            return expectations[0]
        return CompositeExpectation(expectations)

    def expect(self, method: str) -> Expectation:
        """Declare a single expected method and return its expectation."""
        return _declare(_state(self), method)

    def redirect(
        self, target: object, attribute: str, *, method: str | None = None
    ) -> Expectation:
        """Route calls of ``target.attribute`` to this mock until teardown.

        The calls are handled by expectations for *method*, which defaults to
        *attribute*. A new expectation for it is declared and returned.
        """
        state = _state(self)
        method_name = method if method is not None else attribute
        expectation = _declare(state, method_name)
        redirect = RedirectTable.install(
            target, attribute, _dispatcher(self, method_name), owner=state.name
        )
        state.redirects.append(redirect)
        return expectation

    # ------------------------------------------------------------------
    # Dispatch and verification
    # ------------------------------------------------------------------
    def mock_invoke(self, method: str, /, *args: object, **kwargs: object) -> object:
        """Handle a call of *method* with the given arguments."""
        state = _state(self)
        director = state.directors.get(method)
        if director is None:
            if not state.strict:
                logger.debug(
                    "Lenient mock %s ignored undeclared call %s",
                    state.name,
                    format_call(method, args, kwargs),
                )
                return None
            declared = ", ".join(repr(name) for name in state.directors) or "(none)"
            msg = format_sections(
                f"Mock '{state.name}' has no expectation for '{method}'.",
                [
                    ("Actual call", format_call(method, args, kwargs)),
                    ("Declared methods", declared),
                ],
            )
            raise NoSuchExpectationError(msg)
        return director.call(args, kwargs)

    def mock_verify(self) -> None:
        """Check every expectation's call count, raising on the first failure."""
        state = _state(self)
        logger.debug("Verifying mock %s", state.name)
        for director in state.directors.values():
            director.verify()

    def mock_teardown(self) -> None:
        """Verify this mock and restore any redirects it installed."""
        try:
            Mock.mock_verify(self)
        finally:
            _state(self).restore_redirects()


class MockContainer:
    """Group of mocks sharing one global ordering and one teardown.

    Used as a context manager, the container verifies every mock on exit.
    Verification runs even when the body raised: the body's exception
    propagates unless verification fails too, in which case the verification
    failure is raised instead.
    """

    def __init__(
        self,
        *,
        verify_on_exit: bool = True,
        strict: bool | None = None,
        label: str = "container",
    ) -> None:
        self.ordering = OrderingManager(label)
        self._mocks: list[Mock] = []
        self._phase = Phase.ACTIVE
        self._verify_on_exit = verify_on_exit
        self._strict = strict

    @property
    def phase(self) -> Phase:
        """Return the current lifecycle phase."""
        return self._phase

    @property
    def mocks(self) -> tuple[Mock, ...]:
        """Return the mocks created by this container in creation order."""
        return tuple(self._mocks)

    # ------------------------------------------------------------------
    # Context manager protocol
    # ------------------------------------------------------------------
    def __enter__(self) -> MockContainer:
        """Enter the container scope."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        """Exit the scope, verifying the mocks when configured to."""
        if self._phase is not Phase.ACTIVE:
            return
        if not self._verify_on_exit:
            self._restore_redirects()
            return
        if exc_type is not None:
            logger.debug(
                "Verifying container after body raised %s", exc_type.__name__
            )
        self.verify()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def mock(self, name: str | None = None, *, strict: bool | None = None) -> Mock:
        """Create a mock that takes part in this container's global ordering."""
        effective = strict if strict is not None else self._strict
        return Mock(name, strict=effective, container=self)

    def verify(self) -> None:
        """Verify all mocks in creation order and restore their redirects."""
        self._require_active("verify")
        try:
            for mock in self._mocks:
                Mock.mock_verify(mock)
        finally:
            self._restore_redirects()
            self._phase = Phase.VERIFIED

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _require_active(self, action: str) -> None:
        if self._phase is not Phase.ACTIVE:
            msg = f"Cannot call {action}(): container already verified"
            raise LifecycleError(msg)

    def _adopt(self, mock: Mock) -> None:
        self._require_active("mock")
        self._mocks.append(mock)
        logger.debug("Container %s adopted mock %s", self.ordering.label, mock)

    def _restore_redirects(self) -> None:
        for mock in reversed(self._mocks):
            _state(mock).restore_redirects()


def create_mock(name: str | None = None, *, strict: bool | None = None) -> Mock:
    """Create a standalone mock that is not part of any container."""
    return Mock(name, strict=strict)


def with_mocks(
    *names: str,
    body: t.Callable[..., _T],
    strict: bool | None = None,
) -> _T:
    """Call ``body(*mocks)`` with one mock per name, then verify them all.

    With no names a single anonymous mock is passed.
    """
    with MockContainer(strict=strict) as container:
        mocks = [container.mock(name) for name in names] or [container.mock()]
        return body(*mocks)


@contextlib.contextmanager
def use(*names: str, strict: bool | None = None) -> t.Iterator[t.Any]:
    """Provide mocks for a ``with`` block and verify them when it ends.

    Yields the mock itself for zero or one name, otherwise a tuple of mocks in
    the order the names were given.
    """
    with MockContainer(strict=strict) as container:
        mocks = tuple(container.mock(name) for name in names) or (container.mock(),)
        yield mocks[0] if len(mocks) == 1 else mocks


__all__ = [
    "Mock",
    "MockContainer",
    "MockState",
    "Phase",
    "create_mock",
    "use",
    "with_mocks",
]
