"""Python-native mock objects built around a declare-call-verify lifecycle.

Declare expected calls with :meth:`Mock.should_receive`, hand the mock to the
code under test, and let :func:`use`, :func:`with_mocks` or the ``objmox``
pytest fixture verify call counts and ordering when the test ends.
"""

from __future__ import annotations

from .comparators import (
    Any,
    Contains,
    Eq,
    IsA,
    Predicate,
    Regex,
    StartsWith,
    anything,
    equal_to,
    matching,
    of_type,
)
from .controller import Mock, MockContainer, Phase, create_mock, use, with_mocks
from .errors import (
    BlockRequiredError,
    CardinalityError,
    LifecycleError,
    NoMatchingHandlerError,
    NoSuchExpectationError,
    ObjMoxError,
    OutOfOrderError,
    UsageError,
    VerificationError,
)
from .expectations import Cardinality, CompositeExpectation, Expectation
from .pytest_plugin import objmox as objmox_fixture
from .settings import STRICT_ENV

__all__ = [
    "STRICT_ENV",
    "Any",
    "BlockRequiredError",
    "Cardinality",
    "CardinalityError",
    "CompositeExpectation",
    "Contains",
    "Eq",
    "Expectation",
    "IsA",
    "LifecycleError",
    "Mock",
    "MockContainer",
    "NoMatchingHandlerError",
    "NoSuchExpectationError",
    "ObjMoxError",
    "OutOfOrderError",
    "Phase",
    "Predicate",
    "Regex",
    "StartsWith",
    "UsageError",
    "VerificationError",
    "anything",
    "create_mock",
    "equal_to",
    "matching",
    "objmox_fixture",
    "of_type",
    "use",
    "with_mocks",
]
