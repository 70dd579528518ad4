"""Validation result models."""

from pydantic import BaseModel, ConfigDict, Field


class FieldError(BaseModel):
    """A single validation failure on one entity field."""

    model_config = ConfigDict(frozen=True)

    field: str = Field(min_length=1)
    message: str


class ValidationResult(BaseModel):
    """Result of validating one entity."""

    errors: list[FieldError] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """Check if validation passed."""
        return len(self.errors) == 0

    def add_error(self, field: str, message: str) -> None:
        """Add validation error, ignoring exact duplicates."""
        error = FieldError(field=field, message=message)
        if error not in self.errors:
            self.errors.append(error)

    @property
    def fields(self) -> list[str]:
        """Names of the fields with errors, in report order."""
        return [error.field for error in self.errors]
