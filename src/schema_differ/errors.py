"""Exceptions raised by the differ, planner and renderers.

The validator never raises; everything here signals a caller bug (a stale
rename hint, an unknown dialect) or an entry a dialect cannot express.

Usage:
    from schema_differ.errors import SchemaDiffError, RenameHintError

    try:
        result = generate_migration(old, new, ["public.users->public.accounts"])
    except RenameHintError as e:
        print(f"Bad hint: {e}")
"""


class SchemaDiffError(Exception):
    """Base class for all schema-differ errors."""


class RenameHintError(SchemaDiffError, ValueError):
    """Raised when a rename hint is malformed or does not match the snapshots."""


class DiffError(SchemaDiffError):
    """Raised when a snapshot pair breaks an invariant the differ relies on."""


class UnsupportedStatementError(SchemaDiffError):
    """Raised when a dialect cannot express a diff entry."""

    def __init__(self, dialect: str, entry_type: str, reason: str = ""):
        self.dialect = dialect
        self.entry_type = entry_type
        message = f"{dialect} cannot render '{entry_type}' statements"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class UnknownDialectError(SchemaDiffError, KeyError):
    """Raised when a dialect name is not registered."""

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        super().__init__(
            f"Unknown dialect '{name}'. Available: {', '.join(available)}"
        )

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]
