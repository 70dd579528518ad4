"""Entity validation service.

Validates entities against the declarative rules defined on their type:
- Required columns (non-nullable, no default)
- String column maximum length
- An optional pydantic ``__schema__`` declared on the entity class

Validation never touches the store and never mutates the entity.
"""

from typing import Any, Optional

from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import Column, Integer, String, inspect
from sqlalchemy.orm import ColumnProperty, Mapper

from repokit.logging import get_logger
from repokit.models.validation import ValidationResult

logger = get_logger(__name__)

REQUIRED_MESSAGE = "The {field} field is required."
MAX_LENGTH_MESSAGE = "The field {field} must be a string with a maximum length of {length}."


def _is_required(column: Column) -> bool:
    """Check if a column must hold a non-blank value before insert."""
    if column.nullable or column.default is not None or column.server_default is not None:
        return False
    # Integer surrogate keys are generated by the store
    if column.primary_key and isinstance(column.type, Integer) and column.autoincrement in (True, "auto"):
        return False
    return True


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def column_value(entity: Any, prop: ColumnProperty) -> Any:
    """
    Value a column would be written with, without loading anything.

    An attribute never assigned resolves to the column's scalar Python
    default when it has one, otherwise to None.
    """
    values = inspect(entity).dict
    if prop.key in values:
        return values[prop.key]

    default = prop.columns[0].default
    if default is not None and default.is_scalar:
        return default.arg
    return None


class Validator:
    """Validates entities against declarative rules."""

    def get_validation_errors(self, entity: Any) -> ValidationResult:
        """
        Validate an entity's current field values.

        Args:
            entity: Mapped entity instance to validate

        Returns:
            ValidationResult with every field error, column rules first
        """
        result = ValidationResult()

        mapper: Optional[Mapper] = inspect(type(entity), raiseerr=False)
        if mapper is not None:
            self._apply_column_rules(entity, mapper, result)

        schema: Optional[type[BaseModel]] = getattr(type(entity), "__schema__", None)
        if schema is not None:
            self._apply_schema_rules(entity, schema, mapper, result)

        if not result.is_valid:
            logger.debug(
                "entity_rules_failed",
                entity_type=type(entity).__name__,
                fields=result.fields,
            )

        return result

    def _apply_column_rules(self, entity: Any, mapper: Mapper, result: ValidationResult) -> None:
        # Read loaded values only; an expired attribute must not trigger a load
        values = inspect(entity).dict

        for prop in mapper.column_attrs:
            column = prop.columns[0]
            if not isinstance(column, Column):
                continue

            value = values.get(prop.key)

            if _is_required(column) and _is_blank(value):
                result.add_error(prop.key, REQUIRED_MESSAGE.format(field=prop.key))
                continue

            length = getattr(column.type, "length", None)
            if isinstance(column.type, String) and length and isinstance(value, str) and len(value) > length:
                result.add_error(
                    prop.key, MAX_LENGTH_MESSAGE.format(field=prop.key, length=length)
                )

    def _apply_schema_rules(
        self,
        entity: Any,
        schema: type[BaseModel],
        mapper: Optional[Mapper],
        result: ValidationResult,
    ) -> None:
        if mapper is None:
            data: Any = entity
        else:
            # Unset columns are checked with the default the insert will use
            data = {
                name: column_value(entity, mapper.column_attrs[name])
                if name in mapper.column_attrs
                else getattr(entity, name, None)
                for name in schema.model_fields
            }

        try:
            schema.model_validate(data, from_attributes=True)
        except SchemaValidationError as exc:
            for error in exc.errors():
                field = ".".join(str(part) for part in error["loc"]) or type(entity).__name__
                result.add_error(field, error["msg"])
