"""Unit tests for the pytest plugin."""

from __future__ import annotations

import dataclasses as dc
import textwrap
import types
import typing as t

import pytest

from objmox import pytest_plugin
from objmox.controller import MockContainer, Phase
from objmox.errors import CardinalityError

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from pathlib import Path


@dc.dataclass(slots=True, frozen=True)
class StrictnessTestCase:
    """Test case data for strictness configuration scenarios."""

    config_method: str
    ini_setting: str | None
    cli_args: tuple[str, ...]
    test_decorator: str
    expected_strict: bool


pytest_plugins = ("objmox.pytest_plugin", "pytester")


def test_fixture_basic(objmox: MockContainer) -> None:
    """Fixture yields an active container."""
    assert objmox.phase is Phase.ACTIVE
    greeter = objmox.mock("greeter")
    greeter.should_receive("hello").and_return("hi").once()
    assert greeter.hello() == "hi"


def _write_module(pytester: pytest.Pytester, source: str) -> Path:
    return pytester.makepyfile(textwrap.dedent(source))


def test_unmet_expectation_fails_during_teardown(pytester: pytest.Pytester) -> None:
    """Verification failures error the test even without explicit checks."""
    test_file = _write_module(
        pytester,
        """
        pytest_plugins = ("objmox.pytest_plugin",)

        def test_missing_call(objmox):
            objmox.mock("db").should_receive("save").once()
        """,
    )

    result = pytester.runpytest(str(test_file))
    result.assert_outcomes(passed=1, errors=1)
    result.stdout.fnmatch_lines(["*CardinalityError*db.save(...)*"])


def test_verification_error_suppressed_on_test_failure(
    pytester: pytest.Pytester,
) -> None:
    """Primary test failures are reported instead of verification errors."""
    test_file = _write_module(
        pytester,
        """
        pytest_plugins = ("objmox.pytest_plugin",)

        def test_failure(objmox):
            objmox.mock("db").should_receive("save").once()
            assert False
        """,
    )

    result = pytester.runpytest(str(test_file))
    result.assert_outcomes(failed=1)
    result.stdout.fnmatch_lines(["*assert False*"])


def test_explicit_verify_skips_teardown_check(pytester: pytest.Pytester) -> None:
    """A container verified by the test is not verified again."""
    test_file = _write_module(
        pytester,
        """
        pytest_plugins = ("objmox.pytest_plugin",)

        def test_explicit(objmox):
            db = objmox.mock("db")
            db.should_receive("save").once()
            db.save()
            objmox.verify()
        """,
    )

    result = pytester.runpytest(str(test_file))
    result.assert_outcomes(passed=1)


def test_fixture_restores_redirects(pytester: pytest.Pytester) -> None:
    """Redirects installed through the fixture do not outlive the test."""
    test_file = _write_module(
        pytester,
        """
        import types

        pytest_plugins = ("objmox.pytest_plugin",)

        clock = types.SimpleNamespace(now=lambda: "real")

        def test_redirect(objmox):
            objmox.mock("clock").redirect(clock, "now").and_return("fake")
            assert clock.now() == "fake"

        def test_after():
            assert clock.now() == "real"
        """,
    )

    result = pytester.runpytest(str(test_file))
    result.assert_outcomes(passed=2)


def _strictness_module(decorator: str, *, expected: bool) -> str:
    lines = [
        "import pytest",
        "",
        'pytest_plugins = ("objmox.pytest_plugin",)',
        "",
    ]
    if decorator:
        lines.append(decorator)
    lines.extend(
        [
            "def test_strictness(objmox):",
            f"    assert objmox.mock().mock_strict is {expected}",
            "",
        ]
    )
    return "\n".join(lines)


@pytest.mark.parametrize(
    "test_case",
    [
        pytest.param(
            StrictnessTestCase(
                config_method="default_is_strict",
                ini_setting=None,
                cli_args=(),
                test_decorator="",
                expected_strict=True,
            ),
            id="default",
        ),
        pytest.param(
            StrictnessTestCase(
                config_method="ini_disables",
                ini_setting="objmox_strict = false",
                cli_args=(),
                test_decorator="",
                expected_strict=False,
            ),
            id="ini-disables",
        ),
        pytest.param(
            StrictnessTestCase(
                config_method="cli_disables",
                ini_setting=None,
                cli_args=("--objmox-lenient",),
                test_decorator="",
                expected_strict=False,
            ),
            id="cli-disables",
        ),
        pytest.param(
            StrictnessTestCase(
                config_method="cli_overrides_ini",
                ini_setting="objmox_strict = false",
                cli_args=("--objmox-strict",),
                test_decorator="",
                expected_strict=True,
            ),
            id="cli-overrides-ini",
        ),
        pytest.param(
            StrictnessTestCase(
                config_method="marker_overrides_cli",
                ini_setting=None,
                cli_args=("--objmox-lenient",),
                test_decorator="@pytest.mark.objmox(strict=True)",
                expected_strict=True,
            ),
            id="marker-overrides-cli",
        ),
        pytest.param(
            StrictnessTestCase(
                config_method="fixture_param_bool",
                ini_setting=None,
                cli_args=(),
                test_decorator=(
                    '@pytest.mark.parametrize("objmox", [False], indirect=True)'
                ),
                expected_strict=False,
            ),
            id="fixture-param-bool",
        ),
        pytest.param(
            StrictnessTestCase(
                config_method="fixture_param_dict",
                ini_setting="objmox_strict = false",
                cli_args=(),
                test_decorator=(
                    '@pytest.mark.parametrize("objmox", [{"strict": True}], '
                    "indirect=True)"
                ),
                expected_strict=True,
            ),
            id="fixture-param-dict",
        ),
    ],
)
def test_strictness_configuration(
    pytester: pytest.Pytester,
    test_case: StrictnessTestCase,
) -> None:
    """Exercise strictness precedence without duplicating module scaffolding."""
    if test_case.ini_setting:
        pytester.makeini(
            textwrap.dedent(
                f"""
                [pytest]
                {test_case.ini_setting}
                """
            )
        )

    module = _strictness_module(
        test_case.test_decorator, expected=test_case.expected_strict
    )
    test_file = pytester.makepyfile(**{f"test_{test_case.config_method}.py": module})

    plugins: tuple[str, ...] = ("objmox.pytest_plugin",) if test_case.cli_args else ()
    result = pytester.runpytest(*test_case.cli_args, str(test_file), plugins=plugins)
    result.assert_outcomes(passed=1)


class _StubRequest:
    """Minimal fixture request exposing ``node`` and ``param``."""

    def __init__(self, *, param: object) -> None:
        self.node = types.SimpleNamespace(get_closest_marker=lambda name: None)
        self.param = param


@pytest.mark.parametrize(
    ("param", "message"),
    [
        ({"lenient": True}, "must contain 'strict' key"),
        ("yes", "must be a bool or dict"),
    ],
)
def test_invalid_fixture_params(param: object, message: str) -> None:
    """Unsupported fixture parameters are rejected."""
    request = t.cast("pytest.FixtureRequest", _StubRequest(param=param))
    with pytest.raises(TypeError, match=message):
        pytest_plugin._strict_enabled(request)


def test_deferred_verification_error_is_reported() -> None:
    """A stored verification error becomes a section of the teardown report."""
    item = types.SimpleNamespace(_objmox_verify_error=CardinalityError("late"))
    report = types.SimpleNamespace(sections=[])
    pytest_plugin._apply_deferred_verify_failure(
        t.cast("pytest.Item", item), t.cast("pytest.TestReport", report)
    )
    assert report.sections == [("objmox verification", "CardinalityError: late")]
    assert not hasattr(item, "_objmox_verify_error")
