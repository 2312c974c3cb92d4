"""Exceptions raised by the schema and CRUD services.

Every error names the entity it concerns and, where relevant, the step
that failed. ``payload`` holds the data the caller originally submitted
so that a form can be redisplayed for re-submission.
"""

from typing import Any


class BreadBaseError(Exception):
    """Base class for all BreadBase errors."""

    code = "breadbase_error"

    def __init__(self, message: str, payload: Any = None) -> None:
        self.message = message
        self.payload = payload
        super().__init__(message)

    def with_payload(self, payload: Any) -> "BreadBaseError":
        """Attach the originally submitted payload and return self."""
        self.payload = payload
        return self

    def details(self) -> dict[str, Any]:
        """Structured detail for the error response."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details(),
            "payload": self.payload,
        }


class InvalidIdentifier(BreadBaseError):
    """Raised when a schema object name fails identifier validation."""

    code = "invalid_identifier"

    def __init__(self, name: Any, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid identifier {name!r}: {reason}")

    def details(self) -> dict[str, Any]:
        return {"name": str(self.name), "reason": self.reason}


class DuplicateColumn(BreadBaseError):
    """Raised when a column name is added twice to the same table."""

    code = "duplicate_column"

    def __init__(self, table: str, column: str) -> None:
        self.table = table
        self.column = column
        super().__init__(f"Column '{column}' already exists on table '{table}'")

    def details(self) -> dict[str, Any]:
        return {"table": self.table, "column": self.column}


class UnknownColumn(BreadBaseError):
    """Raised when a key or index references a column the table lacks."""

    code = "unknown_column"

    def __init__(self, table: str, column: str) -> None:
        self.table = table
        self.column = column
        super().__init__(f"Column '{column}' does not exist on table '{table}'")

    def details(self) -> dict[str, Any]:
        return {"table": self.table, "column": self.column}


class DuplicateIndex(BreadBaseError):
    code = "duplicate_index"

    def __init__(self, table: str, index: str) -> None:
        self.table = table
        self.index = index
        super().__init__(f"Index '{index}' already exists on table '{table}'")

    def details(self) -> dict[str, Any]:
        return {"table": self.table, "index": self.index}


class TableAlreadyExists(BreadBaseError):
    code = "table_already_exists"

    def __init__(self, table: str) -> None:
        self.table = table
        super().__init__(f"Table '{table}' already exists")

    def details(self) -> dict[str, Any]:
        return {"table": self.table}


class CrudAlreadyExists(BreadBaseError):
    """Raised when a table already has CRUD metadata."""

    code = "crud_already_exists"

    def __init__(self, table: str) -> None:
        self.table = table
        super().__init__(f"Table '{table}' already has a BREAD definition")

    def details(self) -> dict[str, Any]:
        return {"table": self.table}


class SchemaNotFound(BreadBaseError):
    code = "schema_not_found"

    def __init__(self, table: str) -> None:
        self.table = table
        super().__init__(f"Table '{table}' does not exist")

    def details(self) -> dict[str, Any]:
        return {"table": self.table}


class UnsupportedType(BreadBaseError):
    """Raised when a type has no mapping in the type registry."""

    code = "unsupported_type"

    def __init__(self, type_name: str, dialect: str, column: str | None = None) -> None:
        self.type_name = type_name
        self.dialect = dialect
        self.column = column
        target = f" for column '{column}'" if column else ""
        super().__init__(f"Type '{type_name}' is not supported on {dialect}{target}")

    def details(self) -> dict[str, Any]:
        return {"type": self.type_name, "dialect": self.dialect, "column": self.column}


class SchemaUpdateFailed(BreadBaseError):
    """Raised when a DDL operation fails part-way through a schema change.

    Attributes:
        table: The table being changed.
        failed_operation: Description of the operation that failed.
        applied_operations: Operations that completed and remain applied.
        rolled_back: True when the engine rolled every operation back.
    """

    code = "schema_update_failed"

    def __init__(
        self,
        table: str,
        failed_operation: str,
        applied_operations: list[str] | None = None,
        rolled_back: bool = False,
        cause: str | None = None,
    ) -> None:
        self.table = table
        self.failed_operation = failed_operation
        self.applied_operations = applied_operations or []
        self.rolled_back = rolled_back
        self.cause = cause
        message = f"Schema update of '{table}' failed at: {failed_operation}"
        if cause:
            message = f"{message} ({cause})"
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "failed_operation": self.failed_operation,
            "applied_operations": self.applied_operations,
            "rolled_back": self.rolled_back,
            "cause": self.cause,
        }


class PartialDeleteFailure(BreadBaseError):
    """Raised when one step of a CRUD metadata cascade delete fails.

    ``completed_steps`` lists the sub-removals that had succeeded before
    ``failed_step``; ``rolled_back`` is True once the metadata store
    transaction has undone them.
    """

    code = "partial_delete_failure"

    def __init__(
        self,
        name: str,
        completed_steps: list[str],
        failed_step: str,
        rolled_back: bool = False,
        cause: str | None = None,
    ) -> None:
        self.name = name
        self.completed_steps = completed_steps
        self.failed_step = failed_step
        self.rolled_back = rolled_back
        self.cause = cause
        super().__init__(
            f"Deleting CRUD metadata for '{name}' failed at '{failed_step}' "
            f"after completing {', '.join(completed_steps) or 'nothing'}"
        )

    def details(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "completed_steps": self.completed_steps,
            "failed_step": self.failed_step,
            "rolled_back": self.rolled_back,
            "cause": self.cause,
        }


class InvalidTarget(BreadBaseError):
    """Raised when a relationship names a model that cannot be resolved."""

    code = "invalid_target"

    def __init__(self, model: str) -> None:
        self.model = model
        super().__init__(
            f"Model '{model}' does not exist. Please create the model before creating the relationship."
        )

    def details(self) -> dict[str, Any]:
        return {"model": self.model}


class NotFound(BreadBaseError):
    code = "not_found"

    def __init__(self, entity: str, key: Any) -> None:
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} '{key}' not found")

    def details(self) -> dict[str, Any]:
        return {"entity": self.entity, "key": self.key}


class CapabilityDenied(BreadBaseError):
    """Raised by the capability check before an operation has any effect."""

    code = "capability_denied"

    def __init__(self, ability: str) -> None:
        self.ability = ability
        super().__init__(f"Missing permission '{ability}'")

    def details(self) -> dict[str, Any]:
        return {"ability": self.ability}
