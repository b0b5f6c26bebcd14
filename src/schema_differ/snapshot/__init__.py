"""Snapshot model: the immutable description of a database structure.

Usage:
    from schema_differ.snapshot import Snapshot, Table, Column, Policy
    from schema_differ.snapshot import load_snapshot, apply_casing
"""

from schema_differ.snapshot.casing import (
    CASING_STRATEGIES,
    apply_casing,
    to_camel_case,
    to_snake_case,
)
from schema_differ.snapshot.loader import dump_snapshot, load_snapshot
from schema_differ.snapshot.models import (
    DEFAULT_NAMESPACE,
    CheckConstraint,
    Column,
    ColumnDefault,
    ColumnRef,
    EnumType,
    ForeignKey,
    GeneratedSpec,
    IdentitySpec,
    Index,
    IndexTarget,
    Policy,
    PrimaryKey,
    Role,
    SequenceDef,
    Snapshot,
    Table,
    UniqueConstraint,
    View,
    qualify,
    split_key,
)

__all__ = [
    "DEFAULT_NAMESPACE",
    "qualify",
    "split_key",
    "Snapshot",
    "Table",
    "Column",
    "ColumnDefault",
    "ColumnRef",
    "GeneratedSpec",
    "IdentitySpec",
    "Index",
    "IndexTarget",
    "PrimaryKey",
    "UniqueConstraint",
    "CheckConstraint",
    "ForeignKey",
    "Policy",
    "EnumType",
    "SequenceDef",
    "Role",
    "View",
    "load_snapshot",
    "dump_snapshot",
    "apply_casing",
    "to_snake_case",
    "to_camel_case",
    "CASING_STRATEGIES",
]
