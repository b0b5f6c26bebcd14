"""schema-differ: Snapshot diffing and ordered DDL migration generation.

Compares two immutable snapshots of a database structure, honours rename
hints, orders the resulting changes so they can run in sequence, and
renders them as SQL for PostgreSQL, MySQL, SingleStore, SQLite, MSSQL or
Gel. Snapshots can also be validated on their own.

Usage:
    from schema_differ import Snapshot, load_snapshot, validate
    from schema_differ import diff, plan, render, generate_migration
    from schema_differ import load_differ_config, get_dialect
"""

__version__ = "0.1.0"

# Snapshot
from schema_differ.snapshot import Snapshot, dump_snapshot, load_snapshot

# Validation
from schema_differ.validation import ErrorCode, ValidationResult, validate

# Diff and plan
from schema_differ.diff import diff, parse_rename_hint, plan

# Dialects
from schema_differ.dialects import DIALECTS, get_dialect, render

# Migration facade
from schema_differ.migration import DiffResult, generate_migration

# Config
from schema_differ.config import DifferConfig, TargetProfile, load_differ_config

# Errors
from schema_differ.errors import (
    DiffError,
    RenameHintError,
    SchemaDiffError,
    UnknownDialectError,
    UnsupportedStatementError,
)

__all__ = [
    # Snapshot
    "Snapshot",
    "load_snapshot",
    "dump_snapshot",
    # Validation
    "validate",
    "ValidationResult",
    "ErrorCode",
    # Diff and plan
    "diff",
    "plan",
    "parse_rename_hint",
    # Dialects
    "DIALECTS",
    "get_dialect",
    "render",
    # Migration
    "generate_migration",
    "DiffResult",
    # Config
    "load_differ_config",
    "DifferConfig",
    "TargetProfile",
    # Errors
    "SchemaDiffError",
    "RenameHintError",
    "DiffError",
    "UnsupportedStatementError",
    "UnknownDialectError",
]
