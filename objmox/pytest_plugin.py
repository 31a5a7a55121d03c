"""Pytest plugin providing the ``objmox`` fixture."""

from __future__ import annotations

import logging
import typing as t

import pytest

from .controller import MockContainer, Phase
from .settings import default_strict

logger = logging.getLogger(__name__)


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line and ini options for the plugin."""
    group = parser.getgroup("objmox")
    group.addoption(
        "--objmox-strict",
        action="store_true",
        dest="objmox_strict",
        default=None,
        help=(
            "Make mocks from the objmox fixture reject calls to undeclared "
            "methods. Overrides the pytest.ini setting."
        ),
    )
    group.addoption(
        "--objmox-lenient",
        action="store_false",
        dest="objmox_strict",
        default=None,
        help=(
            "Make mocks from the objmox fixture return None for undeclared "
            "methods. Overrides the pytest.ini setting."
        ),
    )
    parser.addini(
        "objmox_strict",
        "Reject calls to undeclared methods on mocks from the objmox fixture.",
        type="bool",
        default=default_strict(),
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register plugin-specific markers."""
    config.addinivalue_line(
        "markers",
        (
            "objmox(strict: bool = True): override how mocks from the objmox "
            "fixture treat undeclared methods for a single test."
        ),
    )


class _ObjMoxItem(t.Protocol):
    """pytest item carrying objmox teardown metadata."""

    _objmox_container: MockContainer | None
    _objmox_verify_error: Exception | None


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[t.Any]
) -> t.Generator[None, None, None]:
    """Attach the report for each phase to its test item.

    The fixture teardown uses the call report to decide whether a
    verification failure should fail the test or only be reported.
    """
    del call
    outcome = yield
    rep = outcome.get_result()
    setattr(item, f"rep_{rep.when}", rep)
    if rep.when == "teardown":
        _apply_deferred_verify_failure(item, rep)


def _strict_enabled(request: pytest.FixtureRequest) -> bool:
    """Return whether the fixture's mocks reject undeclared calls."""
    # Priority order: marker > fixture param > CLI option > INI setting

    marker_value = _get_marker_strict(request)
    if marker_value is not None:
        return marker_value

    param_value = _get_param_strict(request)
    if param_value is not None:
        return param_value

    config = request.config
    cli_value = config.getoption("objmox_strict")
    if cli_value is not None:
        return bool(cli_value)

    return bool(config.getini("objmox_strict"))


def _get_marker_strict(request: pytest.FixtureRequest) -> bool | None:
    """Return marker override for strictness if present."""
    marker = request.node.get_closest_marker("objmox")
    if marker is None or "strict" not in marker.kwargs:
        return None
    return bool(marker.kwargs["strict"])


def _get_param_strict(request: pytest.FixtureRequest) -> bool | None:
    """Return fixture parameter override for strictness if present."""
    param = getattr(request, "param", None)
    if param is None:
        return None
    if isinstance(param, dict):
        if "strict" in param:
            return bool(param["strict"])
        keys = list(param.keys())
        msg = f"objmox fixture param dict must contain 'strict' key, got keys: {keys}"
        raise TypeError(msg)
    if isinstance(param, bool):
        return param
    msg = (
        "objmox fixture param must be a bool or dict with 'strict' key, "
        f"got {type(param).__name__}"
    )
    raise TypeError(msg)


def _apply_deferred_verify_failure(
    item: pytest.Item, report: pytest.TestReport
) -> None:
    """Report a verification error that was hidden by an earlier failure."""
    err: Exception | None = getattr(item, "_objmox_verify_error", None)
    if err is None:
        return
    delattr(item, "_objmox_verify_error")
    report.sections.append(("objmox verification", f"{type(err).__name__}: {err}"))


@pytest.fixture
def objmox(request: pytest.FixtureRequest) -> t.Generator[MockContainer, None, None]:
    """Provide a :class:`MockContainer` that is verified after the test."""
    container = MockContainer(verify_on_exit=False, strict=_strict_enabled(request))
    typed_item = t.cast("_ObjMoxItem", request.node)
    typed_item._objmox_container = container
    try:
        yield container
    except Exception:
        logger.exception("Error during objmox fixture setup or test execution")
        raise
    finally:
        _teardown_objmox(request.node, container)


def _teardown_objmox(item: pytest.Item, container: MockContainer) -> None:
    """Verify the container and surface failures appropriately."""
    typed_item = t.cast("_ObjMoxItem", item)
    if getattr(typed_item, "_objmox_container", None) is container:
        delattr(typed_item, "_objmox_container")
    if container.phase is not Phase.ACTIVE:
        return
    try:
        container.verify()
    except Exception as err:
        logger.exception("Error during objmox verification")
        if _call_stage_failed(item):
            # The test already failed; keep its report and attach ours.
            typed_item._objmox_verify_error = err
            return
        pytest.fail(f"{type(err).__name__}: {err}")


def _call_stage_failed(item: pytest.Item) -> bool:
    """Return ``True`` when the test body has already failed."""
    rep_call = getattr(item, "rep_call", None)
    return bool(rep_call and rep_call.failed)
