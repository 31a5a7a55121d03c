"""Unit tests for :mod:`objmox.ordering`."""

from __future__ import annotations

import pytest

from objmox.errors import OutOfOrderError
from objmox.ordering import OrderingManager


def test_allocation_is_monotonic() -> None:
    """Ungrouped requests always get a new number."""
    manager = OrderingManager("m")
    assert [manager.allocate_order() for _ in range(3)] == [1, 2, 3]


def test_groups_share_their_first_number() -> None:
    """A group keeps the position of its first allocation."""
    manager = OrderingManager("m")
    first = manager.allocate_order("a")
    middle = manager.allocate_order()
    again = manager.allocate_order("a")
    other = manager.allocate_order(("tuple", 1))
    assert (first, middle, again, other) == (1, 2, 1, 3)


def test_watermark_accepts_repeats_and_skips() -> None:
    """Calls may repeat a position or jump ahead."""
    manager = OrderingManager("m")
    manager.check_and_advance(1, "a")
    manager.check_and_advance(1, "a")
    manager.check_and_advance(3, "c")
    assert manager.current_order == 3


def test_going_back_raises() -> None:
    """A lower order number than already reached is rejected."""
    manager = OrderingManager("container")
    manager.check_and_advance(2, "m.lo()")
    with pytest.raises(OutOfOrderError) as excinfo:
        manager.check_and_advance(1, "m.hi()")
    message = str(excinfo.value)
    assert message.startswith("Method 'm.hi()' called out of order.")
    assert "Ordering scope:\n  container" in message
    assert "Already reached:\n  2" in message
    assert manager.current_order == 2


def test_managers_are_independent() -> None:
    """Separate managers keep separate watermarks."""
    first = OrderingManager("x")
    second = OrderingManager("y")
    first.check_and_advance(4, "x.a()")
    second.check_and_advance(1, "y.b()")
    assert (first.current_order, second.current_order) == (4, 1)
