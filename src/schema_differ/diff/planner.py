"""Statement planner: turns an unordered diff into an executable sequence.

Three passes over the differ's output:
1. Recreate substitution -- alter entries that change a field the database
   cannot alter in place become a drop followed by a create of the whole
   new definition. View alters get the same treatment on dialects that
   cannot render them.
2. Ordering -- a stable sort by ``PLAN_ORDER``; each dropped table's
   policies are then emitted as explicit ``drop_policy`` entries right
   before its ``drop_table``.
3. Fusion -- on dialects whose rules allow it, consecutive ``add_column``
   entries on one table merge into a single ``fused_alter_table``.

Usage:
    from schema_differ.diff import diff, plan
    from schema_differ.dialects import get_dialect

    planned = plan(diff(old, new), rules=get_dialect("mysql"))
"""

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from schema_differ.diff.statements import (
    AddColumn,
    AlterColumn,
    AlterPolicy,
    AlterView,
    CreatePolicy,
    CreateView,
    DiffEntry,
    DropColumn,
    DropPolicy,
    DropView,
    FusedAlterTable,
    MoveView,
    PlannedEntry,
    RenameView,
)

if TYPE_CHECKING:
    from schema_differ.dialects.base import DialectRules

logger = logging.getLogger(__name__)


# ============================================================================
# Ordering
# ============================================================================

PLAN_ORDER: tuple[str, ...] = (
    "create_schema",
    "rename_schema",
    "drop_view",
    "drop_table",
    # Container renames; later drops address post-rename names
    "rename_role",
    "move_enum",
    "rename_enum",
    "move_sequence",
    "rename_sequence",
    "move_table",
    "rename_table",
    "move_view",
    "rename_view",
    "drop_foreign_key",
    "disable_rls",
    "drop_policy",
    "drop_index",
    "drop_check",
    "drop_unique",
    "drop_primary_key",
    "drop_column",
    "create_enum",
    "alter_enum",
    "recreate_enum",
    "create_sequence",
    "alter_sequence",
    "create_role",
    "alter_role",
    "create_table",
    "rename_column",
    "rename_constraint",
    "rename_index",
    "rename_policy",
    "add_column",
    "fused_alter_table",
    "alter_column",
    "create_primary_key",
    "create_unique",
    "create_check",
    "create_index",
    "enable_rls",
    "alter_policy",
    "create_policy",
    "create_foreign_key",
    "alter_view",
    "create_view",
    "drop_sequence",
    "drop_role",
    "drop_enum",
    "drop_schema",
)

_PRIORITY = {entry_type: i for i, entry_type in enumerate(PLAN_ORDER)}


# ============================================================================
# Recreate substitution
# ============================================================================

# Alter fields the database cannot change in place, per alter entry type.
# Any other changed field is rendered as an in-place ALTER.
RECREATE_FIELDS: dict[str, frozenset[str]] = {
    "alter_policy": frozenset({"as_", "for_"}),
    "alter_column": frozenset({"generated"}),
}


def needs_recreate(entry: DiffEntry) -> bool:
    """True if *entry* must be replaced by a drop and a create.

    A policy losing its ``USING`` or ``WITH CHECK`` expression is also
    recreated, since ``ALTER POLICY`` can only replace them.

    Example:
        >>> from schema_differ.diff.statements import AlterPolicy
        >>> from schema_differ.snapshot import Policy
        >>> entry = AlterPolicy(
        ...     table="users",
        ...     policy=Policy(name="p", as_="restrictive"),
        ...     as_={"old": "permissive", "new": "restrictive"},
        ... )
        >>> needs_recreate(entry)
        True
    """
    fields = RECREATE_FIELDS.get(entry.type)
    if not fields:
        return False
    if any(name in fields for name in entry.changed_fields()):
        return True
    if isinstance(entry, AlterPolicy):
        return any(
            change is not None and change.new is None
            for change in (entry.using, entry.with_check)
        )
    return False


def _recreate(entry: AlterColumn | AlterPolicy, old_name: str) -> list[DiffEntry]:
    scope = {"table": entry.table, "namespace": entry.namespace}
    if isinstance(entry, AlterPolicy):
        return [
            DropPolicy(name=old_name, **scope),
            CreatePolicy(policy=entry.policy, **scope),
        ]
    return [
        DropColumn(column=old_name, **scope),
        AddColumn(column=entry.column, **scope),
    ]


def _substitute_recreates(entries: list[DiffEntry]) -> list[DiffEntry]:
    """Replace recreate-forcing alters, absorbing the rename of the same object.

    The drop runs before any rename, so a recreated object that was also
    renamed is dropped under its old name and its rename entry is removed.
    """
    renames = {
        (entry.type, entry.table_key, entry.new_name): entry
        for entry in entries
        if entry.type in ("rename_column", "rename_policy")
    }
    absorbed: set[int] = set()
    result: list[DiffEntry] = []

    for entry in entries:
        if not needs_recreate(entry):
            result.append(entry)
            continue
        if isinstance(entry, AlterPolicy):
            name, rename_type = entry.policy.name, "rename_policy"
        else:
            name, rename_type = entry.column.name, "rename_column"
        rename = renames.get((rename_type, entry.table_key, name))
        if rename is not None:
            absorbed.add(id(rename))
            name = rename.old_name
        logger.debug(
            f"Recreating {entry.type.removeprefix('alter_')} {name} on "
            f"{entry.table_key}: changed {', '.join(entry.changed_fields())}"
        )
        result.extend(_recreate(entry, name))

    return [entry for entry in result if id(entry) not in absorbed]


# ============================================================================
# Planning
# ============================================================================


def plan(
    entries: Iterable[DiffEntry], rules: "DialectRules | None" = None
) -> list[PlannedEntry]:
    """Order diff entries for execution.

    Args:
        entries: The differ's output, in any order.
        rules: Dialect rules deciding fusion and inline foreign keys.
            ``None`` plans without any dialect-specific pass. Dialects that
            cannot alter a view in place get a drop and a create for it.

    Returns:
        Entries in executable order: for every table gaining its first
        policy ``enable_rls`` precedes its ``create_policy`` entries, and
        ``disable_rls`` precedes the drop of its last policy.

    Raises:
        KeyError: If an entry type has no place in ``PLAN_ORDER``.
    """
    planned = _substitute_recreates(list(entries))

    if rules is not None and not rules.supports("alter_view"):
        planned = _replace_view_alters(planned)

    if rules is not None and rules.inline_foreign_keys:
        created = {e.table_key for e in planned if e.type == "create_table"}
        planned = [
            e
            for e in planned
            if not (e.type == "create_foreign_key" and e.table_key in created)
        ]

    planned.sort(key=lambda entry: _PRIORITY[entry.type])
    planned = _explode_table_drops(planned)

    if rules is not None and rules.can_fuse:
        planned = _fuse_column_additions(planned)

    logger.info(f"Planned {len(planned)} statements")
    return planned


def _replace_view_alters(entries: list[DiffEntry]) -> list[DiffEntry]:
    """Turn view alters into drop + create, absorbing the view's move and rename.

    The drop runs before any move or rename, so it addresses the view by
    the name and namespace it has in the old snapshot.
    """
    renames = {
        (entry.namespace, entry.new_name): entry
        for entry in entries
        if isinstance(entry, RenameView)
    }
    moves = {
        (entry.new_namespace, entry.name): entry
        for entry in entries
        if isinstance(entry, MoveView)
    }
    absorbed: set[int] = set()
    result: list[DiffEntry] = []

    for entry in entries:
        if not isinstance(entry, AlterView):
            result.append(entry)
            continue
        view = entry.view
        namespace, name = view.namespace, view.name
        rename = renames.get((namespace, name))
        if rename is not None:
            absorbed.add(id(rename))
            name = rename.old_name
        move = moves.get((namespace, name))
        if move is not None:
            absorbed.add(id(move))
            namespace = move.old_namespace
        logger.debug(f"Recreating view {view.key}: no in-place ALTER VIEW")
        result.append(
            DropView(name=name, namespace=namespace, materialized=view.materialized)
        )
        result.append(CreateView(view=view))

    return [entry for entry in result if id(entry) not in absorbed]


def _explode_table_drops(entries: list[DiffEntry]) -> list[DiffEntry]:
    result: list[DiffEntry] = []
    for entry in entries:
        if entry.type == "drop_table":
            result.extend(
                DropPolicy(table=entry.table, namespace=entry.namespace, name=name)
                for name in entry.policies
            )
        result.append(entry)
    return result


def _fuse_column_additions(entries: list[PlannedEntry]) -> list[PlannedEntry]:
    result: list[PlannedEntry] = []
    run: list[AddColumn] = []

    def flush() -> None:
        if len(run) == 1:
            result.append(run[0])
        elif run:
            result.append(
                FusedAlterTable(
                    table=run[0].table, namespace=run[0].namespace, entries=tuple(run)
                )
            )
        run.clear()

    for entry in entries:
        if isinstance(entry, AddColumn):
            if run and run[0].table_key != entry.table_key:
                flush()
            run.append(entry)
            continue
        flush()
        result.append(entry)
    flush()
    return result
