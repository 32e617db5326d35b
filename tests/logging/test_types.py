"""Test Logging Types."""

import logging

import pytest

from tracelog.logging import InvalidSeverityError, Severity


def test_severity_order() -> None:
    """Test severities are totally ordered."""
    # Assert
    assert Severity.DEBUG < Severity.INFO < Severity.WARNING < Severity.ERROR
    assert sorted(Severity, reverse=True)[0] is Severity.ERROR


def test_severity_matches_stdlib_levels() -> None:
    """Test severities use the stdlib logging level numbers."""
    # Assert
    assert Severity.DEBUG == logging.DEBUG
    assert Severity.INFO == logging.INFO
    assert Severity.WARNING == logging.WARNING
    assert Severity.ERROR == logging.ERROR


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("debug", Severity.DEBUG),
        (" Info ", Severity.INFO),
        ("warn", Severity.WARNING),
        ("WARNING", Severity.WARNING),
        (logging.ERROR, Severity.ERROR),
        (Severity.INFO, Severity.INFO),
    ],
)
def test_severity_parse(value: object, expected: Severity) -> None:
    """Test Severity.parse."""
    # Act / Assert
    assert Severity.parse(value) is expected


@pytest.mark.parametrize("value", ["CRITICAL", "", 0, 35, False, 1.0, None])
def test_severity_parse_invalid(value: object) -> None:
    """Test Severity.parse rejects unknown values."""
    # Act / Assert
    with pytest.raises(InvalidSeverityError) as excinfo:
        Severity.parse(value)

    assert excinfo.value.level == value
    assert isinstance(excinfo.value, ValueError)
