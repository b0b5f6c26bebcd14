"""Pydantic models for validation results."""

from enum import Enum

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Closed set of structural findings the validator can report."""

    SchemaNameCollisions = "SchemaNameCollisions"
    SchemaEntityNameCollisions = "SchemaEntityNameCollisions"
    SchemaConstraintNameCollisions = "SchemaConstraintNameCollisions"
    EnumValueCollisions = "EnumValueCollisions"
    SequenceIncrementByZero = "SequenceIncrementByZero"
    SequenceInvalidMinMax = "SequenceInvalidMinMax"
    TableColumnNameCollisions = "TableColumnNameCollisions"
    UnresolvedColumnReference = "UnresolvedColumnReference"
    ForeignKeyMismatchingColumnCount = "ForeignKeyMismatchingColumnCount"
    ForeignKeyMismatchingDataTypes = "ForeignKeyMismatchingDataTypes"
    ForeignKeyColumnsMixingTables = "ForeignKeyColumnsMixingTables"
    ForeignKeyForeignColumnsMixingTables = "ForeignKeyForeignColumnsMixingTables"
    PrimaryKeyColumnsMixingTables = "PrimaryKeyColumnsMixingTables"
    IndexRequiresName = "IndexRequiresName"
    IndexVectorColumnRequiresOp = "IndexVectorColumnRequiresOp"


class ValidationResult(BaseModel):
    """Result of snapshot validation.

    ``messages`` and ``codes`` are parallel: one entry per finding.

    Example:
        >>> result = ValidationResult()
        >>> result.valid
        True
        >>> result.format_report()
        'Schema valid'
    """

    messages: list[str] = Field(default_factory=list)
    codes: list[ErrorCode] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.messages

    @property
    def error_count(self) -> int:
        """Number of findings."""
        return len(self.messages)

    def add(self, code: ErrorCode, message: str) -> None:
        self.codes.append(code)
        self.messages.append(message)

    def format_report(self) -> str:
        """Format validation result as human-readable report."""
        if self.valid:
            return "Schema valid"

        plural = "s" if self.error_count > 1 else ""
        lines = [f"Found {self.error_count} error{plural} in your schema:"]
        for code, message in zip(self.codes, self.messages):
            lines.append(f"  - [{code.value}] {message}")
        return "\n".join(lines)
