"""Test Errors."""

import pytest
from pydantic import BaseModel, PositiveFloat, ValidationError

from tracelog.errors import DependencyNotFoundError, SettingsValidationError


class _Settings(BaseModel):
    TIMEOUT: PositiveFloat
    NAME: str


def test_settings_validation_error_from_pydantic() -> None:
    """Test each invalid field is listed on its own line."""
    # Arrange
    with pytest.raises(ValidationError) as excinfo:
        _Settings(TIMEOUT=-1, NAME=None)  # type: ignore[arg-type]

    # Act
    error = SettingsValidationError(excinfo.value)

    # Assert
    assert str(error) == (
        "Could not validate environment variables settings:\n"
        "- TIMEOUT: Input should be greater than 0 [input=-1]\n"
        "- NAME: Input should be a valid string [input=None]"
    )
    assert isinstance(error, ValueError)


def test_settings_validation_error_from_str() -> None:
    """Test a plain message is kept as is."""
    # Act
    error = SettingsValidationError("LOG_LEVEL must be set")

    # Assert
    assert str(error) == (
        "Could not validate environment variables settings:\nLOG_LEVEL must be set"
    )


def test_dependency_not_found_error() -> None:
    """Test the message suggests installing the module."""
    # Act
    error = DependencyNotFoundError(module="orjson")

    # Assert
    assert error.module == "orjson"
    assert isinstance(error, ImportError)
    assert str(error) == (
        "Could not import module orjson, try running 'pip install orjson'"
    )
