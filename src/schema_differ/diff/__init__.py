"""Differ and statement planner.

Usage:
    from schema_differ.diff import diff, plan

    entries = diff(old_snapshot, new_snapshot, ["public.users->public.accounts"])
    planned = plan(entries)
"""

from schema_differ.diff.differ import diff
from schema_differ.diff.hints import (
    ChildRename,
    RenameHint,
    SchemaRename,
    TableRename,
    parse_rename_hint,
    parse_rename_hints,
)
from schema_differ.diff.planner import PLAN_ORDER, RECREATE_FIELDS, needs_recreate, plan
from schema_differ.diff.statements import (
    Change,
    ColumnType,
    DiffEntry,
    EntryListAdapter,
    PlannedEntry,
)

__all__ = [
    "diff",
    "plan",
    "needs_recreate",
    "PLAN_ORDER",
    "RECREATE_FIELDS",
    "parse_rename_hint",
    "parse_rename_hints",
    "RenameHint",
    "SchemaRename",
    "TableRename",
    "ChildRename",
    "Change",
    "ColumnType",
    "DiffEntry",
    "PlannedEntry",
    "EntryListAdapter",
]
