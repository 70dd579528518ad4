"""Unit tests for entity validation rules."""

from pydantic import BaseModel, Field

from repokit.services.entity_validation import Validator
from tests.entities import Gadget, Widget


def test_valid_widget_has_no_errors():
    """Test a complete widget passes."""
    result = Validator().get_validation_errors(Widget(id=1, name="A"))

    assert result.is_valid
    assert result.errors == []


def test_required_column_rejects_blank_string():
    """Test a non-nullable string column rejects empty and whitespace values."""
    validator = Validator()

    for blank in ("", "   ", None):
        result = validator.get_validation_errors(Widget(id=1, name=blank))
        assert not result.is_valid
        assert result.fields == ["name"]
        assert result.errors[0].message == "The name field is required."


def test_caller_assigned_key_is_required():
    """Test a non-autoincrement primary key must be set."""
    result = Validator().get_validation_errors(Widget(name="A"))

    assert result.fields == ["id"]


def test_generated_key_is_not_required():
    """Test an integer autoincrement primary key may be left unset."""
    result = Validator().get_validation_errors(Gadget(name="Sprocket", quantity=1))

    assert result.is_valid


def test_string_max_length():
    """Test values longer than the column length are rejected."""
    result = Validator().get_validation_errors(Widget(id=1, name="x" * 51))

    assert result.fields == ["name"]
    assert "maximum length of 50" in result.errors[0].message


def test_nullable_column_may_be_empty():
    """Test nullable columns accept None."""
    result = Validator().get_validation_errors(Widget(id=1, name="A", description=None))

    assert result.is_valid


def test_reports_every_error_in_column_order():
    """Test all failures are collected, not just the first."""
    result = Validator().get_validation_errors(Widget(name="", description="d" * 201))

    assert result.fields == ["id", "name", "description"]


def test_schema_rules_follow_column_rules():
    """Test pydantic schema errors are appended after column errors."""
    result = Validator().get_validation_errors(Gadget(name="", quantity=-1))

    assert result.fields == ["name", "name", "quantity"]
    assert result.errors[0].message == "The name field is required."
    assert "at least 3 characters" in result.errors[1].message


def test_schema_rules_only():
    """Test a column-valid entity can still break schema rules."""
    result = Validator().get_validation_errors(Gadget(name="ab", quantity=2))

    assert result.fields == ["name"]


def test_unset_defaulted_column_checked_with_default():
    """Test schema rules see the column default for an attribute never assigned."""
    validator = Validator()

    assert validator.get_validation_errors(Gadget(name="Sprocket")).is_valid
    assert validator.get_validation_errors(Gadget(name="Sprocket", quantity=None)).fields == ["quantity"]


def test_unmapped_entity_with_schema():
    """Test plain classes are validated by their schema alone."""

    class NoteSchema(BaseModel):
        title: str = Field(max_length=5)

    class Note:
        __schema__ = NoteSchema

        def __init__(self, title):
            self.title = title

    validator = Validator()

    assert validator.get_validation_errors(Note("short")).is_valid
    assert validator.get_validation_errors(Note("too long")).fields == ["title"]


def test_validation_does_not_mutate_entity():
    """Test validating leaves field values untouched."""
    widget = Widget(id=1, name="", description="keep")

    Validator().get_validation_errors(widget)

    assert widget.id == 1
    assert widget.name == ""
    assert widget.description == "keep"
