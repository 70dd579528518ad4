"""Unit tests for repository errors and result models."""

from repokit.errors import (
    EntityValidationError,
    MultipleResultsError,
    NotFoundError,
    RepositoryError,
)
from repokit.models.entity_state import EntityState
from repokit.models.validation import FieldError, ValidationResult
from tests.entities import Widget


def test_entity_validation_error_carries_full_result():
    """Test the error keeps every field error in order."""
    result = ValidationResult()
    result.add_error("id", "The id field is required.")
    result.add_error("name", "The name field is required.")

    error = EntityValidationError(result)

    assert isinstance(error, RepositoryError)
    assert error.result is result
    assert error.errors == [
        FieldError(field="id", message="The id field is required."),
        FieldError(field="name", message="The name field is required."),
    ]
    assert "id: The id field is required." in str(error)
    assert "name: The name field is required." in str(error)


def test_add_error_ignores_exact_duplicates():
    """Test the same field error is only reported once."""
    result = ValidationResult()
    result.add_error("name", "bad")
    result.add_error("name", "bad")
    result.add_error("name", "worse")

    assert [error.message for error in result.errors] == ["bad", "worse"]


def test_not_found_error_message():
    """Test the message names the type and identity."""
    error = NotFoundError(Widget, (7,))

    assert error.identity == (7,)
    assert "Widget" in str(error)
    assert "7" in str(error)


def test_multiple_results_error_message():
    """Test the message names the type."""
    assert "Widget" in str(MultipleResultsError(Widget))


def test_mutating_states():
    """Test which lifecycle states cause writes."""
    assert EntityState.ADDED.is_mutating
    assert EntityState.MODIFIED.is_mutating
    assert EntityState.DELETED.is_mutating
    assert not EntityState.UNCHANGED.is_mutating
    assert not EntityState.DETACHED.is_mutating
