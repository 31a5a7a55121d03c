"""Exception hierarchy raised by objmox."""

from __future__ import annotations


class ObjMoxError(Exception):
    """Base class for every error raised by objmox itself."""


class UsageError(ObjMoxError):
    """Raised when an expectation is configured in an unsupported way."""


class LifecycleError(ObjMoxError):
    """Raised when a container is used outside its active phase."""


class VerificationError(ObjMoxError, AssertionError):
    """Base class for failed mock assertions.

    Deriving from :class:`AssertionError` lets test runners report these as
    ordinary test failures rather than errors.
    """


class NoMatchingHandlerError(VerificationError):
    """Raised when a call matches none of its method's expectations."""


class NoSuchExpectationError(VerificationError):
    """Raised when a strict mock receives a call for an undeclared method."""


class CardinalityError(VerificationError):
    """Raised at teardown when an expectation's call count is out of range."""


class OutOfOrderError(VerificationError):
    """Raised when an ordered expectation is called too early."""


class BlockRequiredError(VerificationError):
    """Raised when a yielding expectation is called without a block."""


__all__ = [
    "BlockRequiredError",
    "CardinalityError",
    "LifecycleError",
    "NoMatchingHandlerError",
    "NoSuchExpectationError",
    "ObjMoxError",
    "OutOfOrderError",
    "UsageError",
    "VerificationError",
]
