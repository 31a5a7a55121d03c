"""Per-method registry selecting the expectation that handles a call."""

from __future__ import annotations

import logging
import typing as t

from .verifiers import no_matching_handler

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .controller import MockState
    from .expectations import Expectation

logger = logging.getLogger(__name__)


class ExpectationDirector:
    """Route calls of one method name to its declared expectations."""

    def __init__(self, name: str, state: MockState) -> None:
        self.name = name
        self._state = state
        self.expectations: list[Expectation] = []

    def add(self, expectation: Expectation) -> None:
        """Register *expectation* after those already declared."""
        self.expectations.append(expectation)

    def find_expectation(
        self, args: tuple[object, ...], kwargs: dict[str, object]
    ) -> Expectation | None:
        """Return the expectation that should handle the call.

        The first matching expectation that can still accept calls wins, in
        declaration order. When every match is exhausted the first match is
        returned anyway so the excess call is reported at verification.
        """
        matching = [exp for exp in self.expectations if exp.matches(args, kwargs)]
        eligible = next((exp for exp in matching if exp.is_eligible()), None)
        if eligible is not None:
            return eligible
        if matching:
            logger.debug(
                "All matches for %s.%s are exhausted; using %s",
                self._state.name,
                self.name,
                matching[0],
            )
            return matching[0]
        return None

    def call(self, args: tuple[object, ...], kwargs: dict[str, object]) -> object:
        """Dispatch a call to the selected expectation and return its result."""
        expectation = self.find_expectation(args, kwargs)
        if expectation is None:
            raise no_matching_handler(
                self._state.name, self.name, (args, kwargs), self.expectations
            )
        expectation.validate_order()
        return expectation.invoke(args, kwargs)

    def verify(self) -> None:
        """Verify every expectation, stopping at the first failure."""
        for expectation in self.expectations:
            expectation.verify()


__all__ = ["ExpectationDirector"]
