"""Typed exceptions for local billing validation and submission state."""

from dataclasses import dataclass

from pydantic import ValidationError


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation failure."""

    field: str
    message: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


class BillingValidationError(ValueError):
    """
    Local validation failed. Nothing was sent to the backend.

    Carries every field error found so the caller can report them
    field-by-field instead of one at a time.
    """

    def __init__(self, errors: list[FieldError]):
        if not errors:
            raise ValueError("BillingValidationError requires at least one FieldError")
        self.errors = list(errors)
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in self.errors))

    @classmethod
    def single(cls, field: str, message: str) -> "BillingValidationError":
        return cls([FieldError(field, message)])

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "BillingValidationError":
        """Convert a pydantic ValidationError, keeping dotted field paths."""
        errors = []
        for err in exc.errors():
            field = ".".join(str(part) for part in err["loc"]) or "__root__"
            errors.append(FieldError(field, err["msg"]))
        return cls(errors)

    def fields(self) -> set[str]:
        return {e.field for e in self.errors}


class SubmissionInProgressError(RuntimeError):
    """A submission for this document is already in flight."""


class ReferenceDataUnavailableError(RuntimeError):
    """Reference data (customers, service types, invoices) failed to load."""

    def __init__(self, kind: str, reason: str | None = None):
        self.kind = kind
        self.reason = reason
        message = f"{kind} unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
