"""Order number allocation and call-order validation."""

from __future__ import annotations

import logging
import typing as t

from .errors import OutOfOrderError
from .verifiers import format_sections

logger = logging.getLogger(__name__)

Group = t.Hashable


class OrderingManager:
    """Allocate order numbers and track the highest one satisfied so far.

    Each mock owns a manager for its own ordered expectations and each
    container owns one for expectations ordered across its mocks, so the two
    kinds of ordering keep separate watermarks.
    """

    def __init__(self, label: str) -> None:
        self.label = label
        self._last_allocated = 0
        self._groups: dict[Group, int] = {}
        self._current = 0

    @property
    def current_order(self) -> int:
        """Return the highest order number called so far."""
        return self._current

    def allocate_order(self, group: Group | None = None) -> int:
        """Return the order number for *group*, allocating one if needed.

        Ungrouped requests always receive a fresh number. The first request
        for a group fixes its position; later requests share that number.
        """
        if group is not None and group in self._groups:
            return self._groups[group]
        self._last_allocated += 1
        number = self._last_allocated
        if group is not None:
            self._groups[group] = number
        logger.debug(
            "Allocated order %d on %s (group=%r)", number, self.label, group
        )
        return number

    def check_and_advance(self, order_number: int, description: str) -> None:
        """Record a call at *order_number*, rejecting it if already passed."""
        if order_number < self._current:
            msg = format_sections(
                f"Method '{description}' called out of order.",
                [
                    ("Ordering scope", self.label),
                    ("Order number", str(order_number)),
                    ("Already reached", str(self._current)),
                ],
            )
            raise OutOfOrderError(msg)
        self._current = max(self._current, order_number)


__all__ = ["OrderingManager"]
