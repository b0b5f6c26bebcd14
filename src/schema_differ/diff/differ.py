"""Structural diff of two snapshots.

Pure logic -- no I/O. Pairs the entities of ``from`` and ``to`` by
qualified name (after applying rename hints), then emits one DiffEntry per
creation, drop, rename or in-place change. The result is unordered in the
dependency sense; ``schema_differ.diff.planner.plan`` orders it.

Usage:
    from schema_differ.diff import diff

    entries = diff(old_snapshot, new_snapshot, ["public.users->public.accounts"])
    for entry in entries:
        print(entry.type)
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from pydantic import BaseModel

from schema_differ.diff.hints import (
    CHILD_KINDS,
    ChildRename,
    RenameHint,
    SchemaRename,
    TableRename,
    parse_rename_hints,
)
from schema_differ.diff.statements import (
    AddColumn,
    AlterColumn,
    AlterEnum,
    AlterPolicy,
    AlterRole,
    AlterSequence,
    AlterView,
    ColumnType,
    CreateCheck,
    CreateEnum,
    CreateForeignKey,
    CreateIndex,
    CreatePolicy,
    CreatePrimaryKey,
    CreateRole,
    CreateSchema,
    CreateSequence,
    CreateTable,
    CreateUnique,
    CreateView,
    DiffEntry,
    DisableRls,
    DropCheck,
    DropColumn,
    DropEnum,
    DropForeignKey,
    DropIndex,
    DropPolicy,
    DropPrimaryKey,
    DropRole,
    DropSchema,
    DropSequence,
    DropTable,
    DropUnique,
    DropView,
    EnableRls,
    EnumColumnUse,
    MoveEnum,
    MoveSequence,
    MoveTable,
    MoveView,
    RecreateEnum,
    RenameColumn,
    RenameConstraint,
    RenameEnum,
    RenameIndex,
    RenamePolicy,
    RenameRole,
    RenameSchema,
    RenameSequence,
    RenameTable,
    RenameView,
)
from schema_differ.errors import DiffError, RenameHintError
from schema_differ.snapshot.models import (
    DEFAULT_NAMESPACE,
    Column,
    ColumnRef,
    EnumType,
    ForeignKey,
    Index,
    Role,
    SequenceDef,
    Snapshot,
    Table,
    View,
    qualify,
    split_key,
)

logger = logging.getLogger(__name__)

COLUMN_FIELDS = ("nullable", "default", "primary_key", "identity", "generated")
POLICY_FIELDS = ("as_", "for_", "to", "using", "with_check")
ROLE_FIELDS = ("inherit", "create_db", "create_role")
SEQUENCE_FIELDS = ("increment", "min_value", "max_value", "start", "cache", "cycle")
VIEW_OPTION_FIELDS = ("options", "using")


def diff(
    from_snapshot: Snapshot,
    to_snapshot: Snapshot,
    rename_hints: Iterable[str | RenameHint] = (),
) -> list[DiffEntry]:
    """Compute the structural changes that turn *from_snapshot* into *to_snapshot*.

    Args:
        from_snapshot: The current structure.
        to_snapshot: The desired structure.
        rename_hints: ``"old->new"`` strings or parsed hints marking entities
            that were renamed rather than dropped and recreated.

    Returns:
        DiffEntry values in a deterministic (but not dependency) order.
        Identical snapshots give an empty list.

    Raises:
        RenameHintError: If a hint is malformed, or its old name does not
            exist only in *from_snapshot* and its new name only in
            *to_snapshot*.
        DiffError: If a snapshot holds duplicate keys or an unnamed index.

    Examples:
        >>> from schema_differ.snapshot import Snapshot, Table
        >>> old = Snapshot(tables=[Table(name="users")])
        >>> diff(old, old)
        []
        >>> [e.type for e in diff(old, Snapshot(tables=[Table(name="people")]),
        ...                       ["public.users->public.people"])]
        ['rename_table']
    """
    hints = parse_rename_hints(rename_hints)
    entries = _SnapshotDiffer(from_snapshot, to_snapshot, hints).run()
    logger.info(f"Diff produced {len(entries)} entries")
    return entries


# ============================================================================
# Helpers
# ============================================================================


def _keyed(
    items: Iterable[Any], what: str, key: Callable[[Any], str] = lambda item: item.key
) -> dict[str, Any]:
    keyed: dict[str, Any] = {}
    for item in items:
        item_key = key(item)
        if item_key in keyed:
            raise DiffError(f"Duplicate {what} '{item_key}'")
        keyed[item_key] = item
    return keyed


def _pair(
    old: dict[str, Any], new: dict[str, Any], renames: dict[str, str]
) -> tuple[list[tuple[str, Any, Any]], list[tuple[str, Any]], list[Any]]:
    """Split two keyed pools into matched, dropped and created entities.

    Returns ``(matched, dropped, created)`` where matched items are
    ``(old_key, old_item, new_item)`` and dropped items ``(old_key, old_item)``.
    """
    matched = []
    dropped = []
    claimed = set()
    for key, item in old.items():
        target = renames.get(key, key)
        if target in new:
            matched.append((key, item, new[target]))
            claimed.add(target)
        else:
            dropped.append((key, item))
    created = [item for key, item in new.items() if key not in claimed]
    return matched, dropped, created


def _same(old: BaseModel, new: BaseModel, ignore: Sequence[str] = ("name",)) -> bool:
    return old.model_dump(exclude=set(ignore)) == new.model_dump(exclude=set(ignore))


def _changes(old: BaseModel, new: BaseModel, fields: Sequence[str]) -> dict[str, dict]:
    changes = {}
    for name in fields:
        before, after = getattr(old, name), getattr(new, name)
        if before != after:
            changes[name] = {"old": before, "new": after}
    return changes


def _type_key(column: Column) -> str:
    return qualify(column.type, column.type_schema or DEFAULT_NAMESPACE)


def _same_type(old: ColumnType, new: ColumnType) -> bool:
    return (
        old.type == new.type
        and old.dimensions == new.dimensions
        and (old.type_schema or DEFAULT_NAMESPACE)
        == (new.type_schema or DEFAULT_NAMESPACE)
    )


def _child_names(table: Table) -> dict[str, list[str]]:
    for index in table.indexes:
        if index.name is None:
            raise DiffError(
                f"Index on '{table.key}' contains expressions and has no name"
            )
    names = {
        "column": [col.name for col in table.columns],
        "policy": [policy.name for policy in table.policies],
        "index": [index.name for index in table.indexes],
        "unique": [unique.name for unique in table.uniques],
        "check": [check.name for check in table.checks],
        "foreign_key": [fk.name for fk in table.foreign_keys],
        "primary_key": [table.primary_key.name] if table.primary_key else [],
    }
    for kind, kind_names in names.items():
        _keyed(kind_names, f"{kind} on table '{table.key}'", key=lambda name: name)
    return names


# ============================================================================
# Differ
# ============================================================================


class _SnapshotDiffer:
    """Holds the rename bookkeeping for one ``diff()`` call."""

    def __init__(self, old: Snapshot, new: Snapshot, hints: list[RenameHint]) -> None:
        self.old = old
        self.new = new
        self.schema_hints = [h for h in hints if isinstance(h, SchemaRename)]
        self.table_hints = [h for h in hints if isinstance(h, TableRename)]
        self.child_hints = [h for h in hints if isinstance(h, ChildRename)]
        self.entries: list[DiffEntry] = []

        # Old keys below are "effective": schema renames already applied
        self.schema_renames: dict[str, str] = {}
        self.role_renames: dict[str, str] = {}
        self.table_renames: dict[str, str] = {}
        self.enum_renames: dict[str, str] = {}
        self.sequence_renames: dict[str, str] = {}
        self.view_renames: dict[str, str] = {}
        # New table key -> child kind -> old name -> new name
        self.child_renames: dict[str, dict[str, dict[str, str]]] = {}
        self.table_pairs: list[tuple[str, Table, Table]] = []
        self.dropped_tables: set[str] = set()
        self.old_enum_keys = {enum.key for enum in old.enums}

    def run(self) -> list[DiffEntry]:
        unmanaged_roles = {
            role.name for role in (*self.old.roles, *self.new.roles) if role.existing
        }
        old_roles = self._managed_roles(self.old, unmanaged_roles)
        new_roles = self._managed_roles(self.new, unmanaged_roles)

        self._diff_schemas(old_roles, new_roles)

        old_tables = self._rekey(_keyed(self.old.tables, "table"))
        new_tables = _keyed(self.new.tables, "table")
        old_enums = self._rekey(_keyed(self.old.enums, "enum"))
        new_enums = _keyed(self.new.enums, "enum")
        old_sequences = self._rekey(_keyed(self.old.sequences, "sequence"))
        new_sequences = _keyed(self.new.sequences, "sequence")
        old_views, new_views = self._managed_views()
        self._match_table_hints(
            [
                ("table", old_tables, new_tables, self.table_renames),
                ("enum", old_enums, new_enums, self.enum_renames),
                ("sequence", old_sequences, new_sequences, self.sequence_renames),
                ("view", old_views, new_views, self.view_renames),
            ]
        )

        self._diff_roles(old_roles, new_roles)
        table_matches, dropped_tables, created_tables = _pair(
            old_tables, new_tables, self.table_renames
        )
        self.table_pairs = table_matches
        self.dropped_tables = {key for key, _ in dropped_tables}
        self._match_child_hints()

        self._diff_enums(old_enums, new_enums)
        self._diff_sequences(old_sequences, new_sequences)
        self._diff_tables(table_matches, dropped_tables, created_tables)
        self._diff_views(old_views, new_views)
        return self.entries

    # ------------------------------------------------------------------
    # Key mapping
    # ------------------------------------------------------------------

    def _effective(self, key: str) -> str:
        """Return an old key with its namespace renamed, if it was."""
        namespace, name = split_key(key)
        return f"{self.schema_renames.get(namespace, namespace)}.{name}"

    def _rekey(self, keyed: dict[str, Any]) -> dict[str, Any]:
        return {self._effective(key): item for key, item in keyed.items()}

    def _table_key(self, key: str) -> str:
        """Map a table key of the old snapshot to its identity in the new one."""
        effective = self._effective(key)
        return self.table_renames.get(effective, effective)

    def _ref(self, ref: ColumnRef, owner: str) -> ColumnRef:
        """Map an old column reference onto new table and column names."""
        table = self._table_key(ref.table) if ref.table is not None else None
        renames = self.child_renames.get(table or owner, {}).get("column", {})
        return ColumnRef(column=renames.get(ref.column, ref.column), table=table)

    def _column_type(self, column: Column) -> ColumnType:
        """Type of an old column, following enum renames and moves."""
        column_type = ColumnType.of(column)
        if _type_key(column) not in self.old_enum_keys:
            return column_type
        key = self._effective(_type_key(column))
        namespace, name = split_key(self.enum_renames.get(key, key))
        return column_type.model_copy(update={"type": name, "type_schema": namespace})

    # ------------------------------------------------------------------
    # Hint matching
    # ------------------------------------------------------------------

    def _match_table_hints(self, pools: list[tuple[str, dict, dict, dict]]) -> None:
        for hint in self.table_hints:
            old_key = self._effective(hint.old_key)
            for kind, old, new, renames in pools:
                if (
                    old_key in old
                    and old_key not in new
                    and old_key not in renames
                    and hint.new_key in new
                    and hint.new_key not in old
                    and hint.new_key not in renames.values()
                ):
                    renames[old_key] = hint.new_key
                    logger.debug(f"Matched {kind} rename {old_key} -> {hint.new_key}")
                    break
            else:
                raise RenameHintError(
                    f"Rename hint '{hint}' does not match a table, enum, sequence "
                    f"or view that exists only in the old and only in the new snapshot"
                )

    def _match_child_hints(self) -> None:
        pending: dict[str, list[ChildRename]] = {}
        for hint in self.child_hints:
            pending.setdefault(hint.table_key, []).append(hint)

        for _, old, new in self.table_pairs:
            old_names, new_names = _child_names(old), _child_names(new)
            renames: dict[str, dict[str, str]] = {kind: {} for kind in CHILD_KINDS}
            for hint in pending.pop(new.key, []):
                if hint.kind is not None and hint.kind not in CHILD_KINDS:
                    raise RenameHintError(
                        f"Unknown child kind '{hint.kind}' in rename hint '{hint}'"
                    )
                for kind in (hint.kind,) if hint.kind else CHILD_KINDS:
                    if (
                        hint.old in old_names[kind]
                        and hint.old not in new_names[kind]
                        and hint.old not in renames[kind]
                        and hint.new in new_names[kind]
                        and hint.new not in old_names[kind]
                    ):
                        renames[kind][hint.old] = hint.new
                        logger.debug(
                            f"Matched {kind} rename on {new.key}: "
                            f"{hint.old} -> {hint.new}"
                        )
                        break
                else:
                    raise RenameHintError(
                        f"Rename hint '{hint}' does not match a child of "
                        f"'{new.key}' that exists only in the old and only in "
                        f"the new snapshot"
                    )
            self.child_renames[new.key] = renames

        if pending:
            hint = next(iter(pending.values()))[0]
            raise RenameHintError(
                f"Rename hint '{hint}' names table '{hint.table_key}', "
                f"which is not present in both snapshots"
            )

    # ------------------------------------------------------------------
    # Schemas and roles
    # ------------------------------------------------------------------

    def _managed_roles(
        self, snapshot: Snapshot, unmanaged: set[str]
    ) -> dict[str, Role]:
        for role in snapshot.roles:
            if role.name in unmanaged and not role.existing:
                logger.warning(
                    f"Role '{role.name}' is marked existing; leaving it alone"
                )
        return _keyed(
            (role for role in snapshot.roles if role.name not in unmanaged), "role"
        )

    def _diff_schemas(
        self, old_roles: dict[str, Role], new_roles: dict[str, Role]
    ) -> None:
        old = _keyed(self.old.schemas, "schema", key=lambda name: name)
        new = _keyed(self.new.schemas, "schema", key=lambda name: name)
        old.pop(DEFAULT_NAMESPACE, None)
        new.pop(DEFAULT_NAMESPACE, None)

        for hint in self.schema_hints:
            if (
                hint.old in old
                and hint.old not in new
                and hint.old not in self.schema_renames
                and hint.new in new
                and hint.new not in old
            ):
                self.schema_renames[hint.old] = hint.new
                self.entries.append(RenameSchema(old_name=hint.old, new_name=hint.new))
                logger.debug(f"Matched schema rename {hint.old} -> {hint.new}")
            elif (
                hint.old in old_roles
                and hint.old not in new_roles
                and hint.old not in self.role_renames
                and hint.new in new_roles
                and hint.new not in old_roles
            ):
                self.role_renames[hint.old] = hint.new
                logger.debug(f"Matched role rename {hint.old} -> {hint.new}")
            else:
                raise RenameHintError(
                    f"Rename hint '{hint}' does not match a schema or role that "
                    f"exists only in the old and only in the new snapshot"
                )

        renamed = set(self.schema_renames.values())
        for name in new:
            if name not in old and name not in renamed:
                self.entries.append(CreateSchema(name=name))
        for name in old:
            if name not in new and name not in self.schema_renames:
                self.entries.append(DropSchema(name=name))

    def _diff_roles(self, old: dict[str, Role], new: dict[str, Role]) -> None:
        matched, dropped, created = _pair(old, new, self.role_renames)
        for role in created:
            self.entries.append(CreateRole(role=role))
        for name, _ in dropped:
            self.entries.append(DropRole(name=name))
        for name, old_role, new_role in matched:
            if name != new_role.name:
                self.entries.append(RenameRole(old_name=name, new_name=new_role.name))
            changes = _changes(old_role, new_role, ROLE_FIELDS)
            if changes:
                self.entries.append(AlterRole(name=new_role.name, **changes))

    # ------------------------------------------------------------------
    # Enums
    # ------------------------------------------------------------------

    def _diff_enums(self, old: dict[str, EnumType], new: dict[str, EnumType]) -> None:
        matched, dropped, created = _pair(old, new, self.enum_renames)
        for enum in created:
            self.entries.append(CreateEnum(enum=enum))
        for key, _ in dropped:
            namespace, name = split_key(key)
            self.entries.append(DropEnum(name=name, namespace=namespace))

        for key, old_enum, new_enum in matched:
            self._relocate(
                key,
                new_enum,
                move=lambda name, old_ns, new_ns: MoveEnum(
                    name=name, old_namespace=old_ns, new_namespace=new_ns
                ),
                rename=lambda ns, old_name, new_name: RenameEnum(
                    namespace=ns, old_name=old_name, new_name=new_name
                ),
            )
            if old_enum.values == new_enum.values:
                continue
            added = _added_values(old_enum.values, new_enum.values)
            if added is None:
                logger.debug(f"Recreating enum {new_enum.key}: values removed")
                self.entries.append(
                    RecreateEnum(
                        enum=new_enum, columns=self._enum_columns(new_enum.key)
                    )
                )
                continue
            for value, before in added:
                self.entries.append(
                    AlterEnum(
                        name=new_enum.name,
                        namespace=new_enum.namespace,
                        value=value,
                        before=before,
                    )
                )

    def _enum_columns(self, enum_key: str) -> tuple[EnumColumnUse, ...]:
        """Kept columns typed with *enum_key*, addressed by their pre-rename name."""
        uses = []
        for _, old_table, new_table in self.table_pairs:
            renames = self.child_renames[new_table.key]["column"]
            kept = new_table.column_map()
            for col in old_table.columns:
                if _type_key(col) not in self.old_enum_keys:
                    continue
                column_type = self._column_type(col)
                if f"{column_type.type_schema}.{column_type.type}" != enum_key:
                    continue
                if renames.get(col.name, col.name) not in kept:
                    continue
                uses.append(
                    EnumColumnUse(
                        table=new_table.name,
                        namespace=new_table.namespace,
                        column=col.name,
                        dimensions=col.dimensions,
                        default=col.default,
                    )
                )
        return tuple(uses)

    # ------------------------------------------------------------------
    # Sequences
    # ------------------------------------------------------------------

    def _diff_sequences(
        self, old: dict[str, SequenceDef], new: dict[str, SequenceDef]
    ) -> None:
        matched, dropped, created = _pair(old, new, self.sequence_renames)
        for sequence in created:
            self.entries.append(CreateSequence(sequence=sequence))
        for key, _ in dropped:
            namespace, name = split_key(key)
            self.entries.append(DropSequence(name=name, namespace=namespace))

        for key, old_sequence, new_sequence in matched:
            self._relocate(
                key,
                new_sequence,
                move=lambda name, old_ns, new_ns: MoveSequence(
                    name=name, old_namespace=old_ns, new_namespace=new_ns
                ),
                rename=lambda ns, old_name, new_name: RenameSequence(
                    namespace=ns, old_name=old_name, new_name=new_name
                ),
            )
            changes = _changes(old_sequence, new_sequence, SEQUENCE_FIELDS)
            if changes:
                self.entries.append(AlterSequence(sequence=new_sequence, **changes))

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def _diff_tables(
        self,
        matched: list[tuple[str, Table, Table]],
        dropped: list[tuple[str, Table]],
        created: list[Table],
    ) -> None:
        for table in created:
            _child_names(table)
            self._create_table(table)

        for key, table in dropped:
            namespace, name = split_key(key)
            self.entries.append(
                DropTable(
                    table=name,
                    namespace=namespace,
                    policies=tuple(policy.name for policy in table.policies),
                )
            )

        for key, old, new in matched:
            self._relocate(
                key,
                new,
                move=lambda name, old_ns, new_ns: MoveTable(
                    table=name, namespace=new_ns, old_namespace=old_ns
                ),
                rename=lambda ns, old_name, new_name: RenameTable(
                    table=new_name, namespace=ns, old_name=old_name
                ),
            )
            self._diff_columns(old, new)
            self._diff_rls(old, new)
            self._diff_policies(old, new)
            self._diff_constraints(old, new)

    def _create_table(self, table: Table) -> None:
        scope = {"table": table.name, "namespace": table.namespace}
        self.entries.append(CreateTable(definition=table))
        for index in table.indexes:
            self.entries.append(CreateIndex(index=index, **scope))
        for fk in table.foreign_keys:
            self.entries.append(CreateForeignKey(foreign_key=fk, **scope))
        if table.has_rls():
            self.entries.append(EnableRls(**scope))
        for policy in table.policies:
            self.entries.append(CreatePolicy(policy=policy, **scope))

    def _diff_columns(self, old: Table, new: Table) -> None:
        scope = {"table": new.name, "namespace": new.namespace}
        renames = self.child_renames[new.key]["column"]
        new_columns = new.column_map()
        kept = set()

        for old_col in old.columns:
            name = renames.get(old_col.name, old_col.name)
            new_col = new_columns.get(name)
            if new_col is None:
                self.entries.append(DropColumn(column=old_col.name, **scope))
                continue
            kept.add(name)
            if name != old_col.name:
                self.entries.append(
                    RenameColumn(old_name=old_col.name, new_name=name, **scope)
                )
            changes = _changes(old_col, new_col, COLUMN_FIELDS)
            old_type, new_type = self._column_type(old_col), ColumnType.of(new_col)
            if not _same_type(old_type, new_type):
                changes["data_type"] = {"old": old_type, "new": new_type}
            if changes:
                changes.update(_original_names(old, old_col, changes))
                self.entries.append(AlterColumn(column=new_col, **changes, **scope))

        for name, col in new_columns.items():
            if name not in kept:
                self.entries.append(AddColumn(column=col, **scope))

    def _diff_rls(self, old: Table, new: Table) -> None:
        scope = {"table": new.name, "namespace": new.namespace}
        if not old.has_rls() and new.has_rls():
            self.entries.append(EnableRls(**scope))
        elif old.has_rls() and not new.has_rls():
            self.entries.append(DisableRls(**scope))

    def _diff_policies(self, old: Table, new: Table) -> None:
        scope = {"table": new.name, "namespace": new.namespace}
        renames = self.child_renames[new.key]["policy"]
        new_policies = {policy.name: policy for policy in new.policies}
        kept = set()

        for old_policy in old.policies:
            name = renames.get(old_policy.name, old_policy.name)
            new_policy = new_policies.get(name)
            if new_policy is None:
                self.entries.append(DropPolicy(name=old_policy.name, **scope))
                continue
            kept.add(name)
            if name != old_policy.name:
                self.entries.append(
                    RenamePolicy(old_name=old_policy.name, new_name=name, **scope)
                )
            changes = _changes(old_policy, new_policy, POLICY_FIELDS)
            if changes:
                self.entries.append(AlterPolicy(policy=new_policy, **changes, **scope))

        for name, policy in new_policies.items():
            if name not in kept:
                self.entries.append(CreatePolicy(policy=policy, **scope))

    def _diff_constraints(self, old: Table, new: Table) -> None:
        scope = {"table": new.name, "namespace": new.namespace}
        renames = self.child_renames[new.key]
        owner = new.key

        def rename_constraint(kind: str) -> Callable[[str, str], RenameConstraint]:
            return lambda old_name, new_name: RenameConstraint(
                kind=kind, old_name=old_name, new_name=new_name, **scope
            )

        self._diff_children(
            [self._old_index(index, owner) for index in old.indexes],
            new.indexes,
            renames["index"],
            ignore=("name", "concurrently"),
            drop=lambda name: DropIndex(name=name, **scope),
            create=lambda index: CreateIndex(index=index, **scope),
            rename=lambda a, b: RenameIndex(old_name=a, new_name=b, **scope),
        )
        self._diff_children(
            [
                pk.model_copy(update={"columns": self._refs(pk.columns, owner)})
                for pk in (old.primary_key,)
                if pk is not None
            ],
            [new.primary_key] if new.primary_key is not None else [],
            renames["primary_key"],
            drop=lambda name: DropPrimaryKey(name=name, **scope),
            create=lambda pk: CreatePrimaryKey(primary_key=pk, **scope),
            rename=rename_constraint("primary_key"),
        )
        self._diff_children(
            [
                unique.model_copy(update={"columns": self._refs(unique.columns, owner)})
                for unique in old.uniques
            ],
            new.uniques,
            renames["unique"],
            drop=lambda name: DropUnique(name=name, **scope),
            create=lambda unique: CreateUnique(unique=unique, **scope),
            rename=rename_constraint("unique"),
        )
        self._diff_children(
            old.checks,
            new.checks,
            renames["check"],
            drop=lambda name: DropCheck(name=name, **scope),
            create=lambda check: CreateCheck(check=check, **scope),
            rename=rename_constraint("check"),
        )
        # Foreign keys into a dropped table go away with its DROP ... CASCADE
        self._diff_children(
            [self._old_foreign_key(fk, owner) for fk in old.foreign_keys],
            new.foreign_keys,
            renames["foreign_key"],
            drop=lambda name: DropForeignKey(name=name, **scope),
            create=lambda fk: CreateForeignKey(foreign_key=fk, **scope),
            rename=rename_constraint("foreign_key"),
            skip_drop=lambda fk: fk.foreign_table in self.dropped_tables,
        )

    def _diff_children(
        self,
        old_items: Sequence[Any],
        new_items: Sequence[Any],
        renames: dict[str, str],
        drop: Callable[[str], DiffEntry],
        create: Callable[[Any], DiffEntry],
        rename: Callable[[str, str], DiffEntry],
        ignore: Sequence[str] = ("name",),
        skip_drop: Callable[[Any], bool] = lambda item: False,
    ) -> None:
        """Diff named children that are never altered in place.

        A changed child is dropped and created again. A renamed child that
        also changed is dropped under its old name instead of renamed.
        """
        new_by_name = {item.name: item for item in new_items}
        kept = set()
        for old_item in old_items:
            name = renames.get(old_item.name, old_item.name)
            new_item = new_by_name.get(name)
            if new_item is not None and _same(old_item, new_item, ignore):
                kept.add(name)
                if name != old_item.name:
                    self.entries.append(rename(old_item.name, name))
                continue
            if not skip_drop(old_item):
                self.entries.append(drop(old_item.name))
        for name, new_item in new_by_name.items():
            if name not in kept:
                self.entries.append(create(new_item))

    def _refs(self, refs: tuple[ColumnRef, ...], owner: str) -> tuple[ColumnRef, ...]:
        return tuple(self._ref(ref, owner) for ref in refs)

    def _old_index(self, index: Index, owner: str) -> Index:
        renames = self.child_renames[owner]["column"]
        targets = tuple(
            target
            if target.is_expression
            else target.model_copy(
                update={"value": renames.get(target.value, target.value)}
            )
            for target in index.targets
        )
        return index.model_copy(update={"targets": targets})

    def _old_foreign_key(self, fk: ForeignKey, owner: str) -> ForeignKey:
        foreign_table = self._table_key(fk.foreign_table)
        return fk.model_copy(
            update={
                "columns": self._refs(fk.columns, owner),
                "foreign_table": foreign_table,
                "foreign_columns": self._refs(fk.foreign_columns, foreign_table),
            }
        )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def _managed_views(self) -> tuple[dict[str, View], dict[str, View]]:
        old = self._rekey(_keyed(self.old.views, "view"))
        new = _keyed(self.new.views, "view")
        unmanaged = {key for key, view in (*old.items(), *new.items()) if view.existing}
        for key in sorted(unmanaged):
            old_view, new_view = old.get(key), new.get(key)
            if old_view is None or new_view is None or old_view != new_view:
                logger.warning(f"View '{key}' is marked existing; leaving it alone")
        return (
            {key: view for key, view in old.items() if key not in unmanaged},
            {key: view for key, view in new.items() if key not in unmanaged},
        )

    def _diff_views(self, old: dict[str, View], new: dict[str, View]) -> None:
        matched, dropped, created = _pair(old, new, self.view_renames)
        for key, old_view, new_view in matched:
            if not _same(
                old_view, new_view, ignore=("name", "namespace", *VIEW_OPTION_FIELDS)
            ):
                dropped.append((key, old_view))
                created.append(new_view)
                continue
            self._relocate(
                key,
                new_view,
                move=lambda name, old_ns, new_ns: MoveView(
                    name=name,
                    old_namespace=old_ns,
                    new_namespace=new_ns,
                    materialized=new_view.materialized,
                ),
                rename=lambda ns, old_name, new_name: RenameView(
                    namespace=ns,
                    old_name=old_name,
                    new_name=new_name,
                    materialized=new_view.materialized,
                ),
            )
            changes = _changes(old_view, new_view, VIEW_OPTION_FIELDS)
            if not new_view.materialized:
                # Only materialized views have an access method
                changes.pop("using", None)
            if changes:
                self.entries.append(AlterView(view=new_view, **changes))

        for key, view in dropped:
            namespace, name = split_key(key)
            self.entries.append(
                DropView(name=name, namespace=namespace, materialized=view.materialized)
            )
        for view in created:
            self.entries.append(CreateView(view=view))

    # ------------------------------------------------------------------

    def _relocate(
        self,
        old_key: str,
        new: Any,
        move: Callable[[str, str, str], DiffEntry],
        rename: Callable[[str, str, str], DiffEntry],
    ) -> None:
        """Emit the move then the rename that take *old_key* to *new*."""
        namespace, name = split_key(old_key)
        if namespace != new.namespace:
            self.entries.append(move(name, namespace, new.namespace))
        if name != new.name:
            self.entries.append(rename(new.namespace, name, new.name))


def _original_names(table: Table, column: Column, changes: dict) -> dict[str, str]:
    """Names PostgreSQL derived for the column's constraints when it was created."""
    names = {}
    if "primary_key" in changes and column.primary_key:
        names["primary_key_name"] = f"{table.name}_pkey"
    if "identity" in changes and column.identity is not None:
        names["sequence_name"] = (
            column.identity.sequence_name or f"{table.name}_{column.name}_seq"
        )
    return names


def _added_values(
    old: tuple[str, ...], new: tuple[str, ...]
) -> list[tuple[str, str | None]] | None:
    """Values *new* adds to *old*, each with the old value it is placed before.

    Returns None when *new* drops or reorders any old value.
    """
    if [value for value in new if value in old] != list(old):
        return None
    added = []
    for i, value in enumerate(new):
        if value in old:
            continue
        before = next((v for v in new[i + 1 :] if v in old), None)
        added.append((value, before))
    return added
