"""Structural validation of a single snapshot.

Pure logic -- no I/O, never raises. Every check runs independently and
appends zero or more findings to the result; callers decide whether a
finding should abort a migration.

Usage:
    from schema_differ.validation import validate

    result = validate(snapshot, casing="snake_case")
    if not result.valid:
        print(result.format_report())
"""

import logging
from collections import Counter
from collections.abc import Iterable

from schema_differ.snapshot.casing import CASING_STRATEGIES, apply_casing
from schema_differ.snapshot.models import (
    DEFAULT_NAMESPACE,
    Column,
    ColumnRef,
    ForeignKey,
    QualifiedModel,
    Snapshot,
    Table,
)
from schema_differ.validation.models import ErrorCode, ValidationResult

logger = logging.getLogger(__name__)


def validate(snapshot: Snapshot, casing: str | None = None) -> ValidationResult:
    """Validate the structural invariants of *snapshot*.

    Checks, in order:
    - Schema names are unique
    - Per namespace: entity names (tables, views, enums, sequences) and constraint
      names (indexes, foreign keys, checks, primary keys, uniques) are unique
    - Enum values are unique within each enum
    - Per table: final column names are unique after *casing*, identity
      options are coherent, and every column reference resolves
    - Foreign keys: column counts and base data types match, and neither
      side mixes tables
    - Primary keys do not mix tables
    - Indexes are named when they contain expressions, and vector columns
      carry an operator class

    Args:
        snapshot: The snapshot to check.
        casing: Optional casing strategy (``"snake_case"`` or ``"camelCase"``)
            applied to column names before looking for collisions. Unknown
            strategies are ignored with a warning.

    Returns:
        ``ValidationResult`` with one message and one code per finding.

    Examples:
        >>> from schema_differ.snapshot import Snapshot, Table, Column
        >>> table = Table(name="test", columns=[
        ...     Column(name="first_name", type="text"),
        ...     Column(name="firstName", type="text"),
        ... ])
        >>> validate(Snapshot(tables=[table])).valid
        True
        >>> validate(Snapshot(tables=[table]), casing="snake_case").codes
        [<ErrorCode.TableColumnNameCollisions: 'TableColumnNameCollisions'>]
    """
    if casing is not None and casing not in CASING_STRATEGIES:
        logger.warning(f"Ignoring unknown casing strategy '{casing}'")
        casing = None

    result = ValidationResult()
    tables = snapshot.table_map()

    _check_schema_names(snapshot, result)

    for namespace in _namespaces(snapshot):
        _check_entity_names(snapshot, namespace, result)
        _check_constraint_names(snapshot, namespace, result)

    for enum in snapshot.enums:
        for value, count in Counter(enum.values).items():
            if count > 1:
                result.add(
                    ErrorCode.EnumValueCollisions,
                    f'Enum "{enum.key}" has duplicate value "{value}"',
                )

    for table in snapshot.tables:
        _check_column_names(table, casing, result)
        _check_identities(table, result)
        _check_references(table, tables, result)

        for fk in table.foreign_keys:
            _check_foreign_key(table, fk, tables, result)

        if table.primary_key is not None:
            pk_tables = {ref.resolve(table.key) for ref in table.primary_key.columns}
            if len(pk_tables) > 1:
                result.add(
                    ErrorCode.PrimaryKeyColumnsMixingTables,
                    f'Primary key "{table.primary_key.name}" on "{table.key}" '
                    f"references columns from tables {_quoted(sorted(pk_tables))}",
                )

        _check_indexes(table, result)

    return result


# ============================================================================
# Namespace-level checks
# ============================================================================


def _entities(snapshot: Snapshot) -> tuple[QualifiedModel, ...]:
    return (*snapshot.tables, *snapshot.views, *snapshot.enums, *snapshot.sequences)


def _namespaces(snapshot: Snapshot) -> list[str]:
    found = [DEFAULT_NAMESPACE, *snapshot.schemas]
    for entity in _entities(snapshot):
        found.append(entity.namespace)
    return list(dict.fromkeys(found))


def _check_schema_names(snapshot: Snapshot, result: ValidationResult) -> None:
    for name, count in Counter(snapshot.schemas).items():
        if count > 1:
            result.add(
                ErrorCode.SchemaNameCollisions,
                f'Schema name "{name}" is declared {count} times',
            )


def _check_entity_names(
    snapshot: Snapshot, namespace: str, result: ValidationResult
) -> None:
    names = Counter(
        entity.name
        for entity in _entities(snapshot)
        if entity.namespace == namespace
    )
    for name, count in names.items():
        if count > 1:
            result.add(
                ErrorCode.SchemaEntityNameCollisions,
                f'Name "{name}" is used by {count} entities in schema "{namespace}"',
            )


def _constraint_names(table: Table) -> Iterable[str]:
    for index in table.indexes:
        if index.name is not None:
            yield index.name
    for fk in table.foreign_keys:
        yield fk.name
    for check in table.checks:
        yield check.name
    if table.primary_key is not None:
        yield table.primary_key.name
    for unique in table.uniques:
        yield unique.name


def _check_constraint_names(
    snapshot: Snapshot, namespace: str, result: ValidationResult
) -> None:
    names: Counter[str] = Counter()
    for table in snapshot.tables:
        if table.namespace == namespace:
            names.update(_constraint_names(table))
    for name, count in names.items():
        if count > 1:
            result.add(
                ErrorCode.SchemaConstraintNameCollisions,
                f'Constraint or index name "{name}" is used {count} times '
                f'in schema "{namespace}"',
            )


# ============================================================================
# Table-level checks
# ============================================================================


def _check_column_names(
    table: Table, casing: str | None, result: ValidationResult
) -> None:
    final_names = Counter(apply_casing(col.name, casing) for col in table.columns)
    for name, count in final_names.items():
        if count > 1:
            result.add(
                ErrorCode.TableColumnNameCollisions,
                f'Table "{table.key}" has {count} columns named "{name}"',
            )


def _check_identities(table: Table, result: ValidationResult) -> None:
    for col in table.columns:
        identity = col.identity
        if identity is None:
            continue
        if identity.increment == 0:
            result.add(
                ErrorCode.SequenceIncrementByZero,
                f'Identity of "{table.key}"."{col.name}" has an increment of 0',
            )
        if (
            identity.min_value is not None
            and identity.max_value is not None
            and identity.min_value > identity.max_value
        ):
            result.add(
                ErrorCode.SequenceInvalidMinMax,
                f'Identity of "{table.key}"."{col.name}" has a minimum value '
                f"greater than its maximum",
            )


def _resolve(
    ref: ColumnRef, owner: str, tables: dict[str, Table]
) -> Column | None:
    table = tables.get(ref.resolve(owner))
    return table.column(ref.column) if table is not None else None


def _check_references(
    table: Table, tables: dict[str, Table], result: ValidationResult
) -> None:
    refs: list[tuple[str, ColumnRef, str]] = []
    if table.primary_key is not None:
        refs += [
            (table.primary_key.name, ref, table.key)
            for ref in table.primary_key.columns
        ]
    for unique in table.uniques:
        refs += [(unique.name, ref, table.key) for ref in unique.columns]
    for fk in table.foreign_keys:
        refs += [(fk.name, ref, table.key) for ref in fk.columns]
        refs += [(fk.name, ref, fk.foreign_table) for ref in fk.foreign_columns]
    for index in table.indexes:
        refs += [
            (index.name or "<unnamed>", ColumnRef(column=target.value), table.key)
            for target in index.targets
            if not target.is_expression
        ]

    for constraint, ref, owner in refs:
        if _resolve(ref, owner, tables) is None:
            result.add(
                ErrorCode.UnresolvedColumnReference,
                f'"{constraint}" on "{table.key}" references unknown column '
                f'"{ref.resolve(owner)}"."{ref.column}"',
            )


def _check_foreign_key(
    table: Table, fk: ForeignKey, tables: dict[str, Table], result: ValidationResult
) -> None:
    local_tables = {ref.resolve(table.key) for ref in fk.columns}
    if local_tables - {table.key}:
        result.add(
            ErrorCode.ForeignKeyColumnsMixingTables,
            f'Foreign key "{fk.name}" on "{table.key}" uses columns from '
            f"tables {_quoted(sorted(local_tables))}",
        )

    foreign_tables = {ref.resolve(fk.foreign_table) for ref in fk.foreign_columns}
    if foreign_tables and foreign_tables != {fk.foreign_table}:
        result.add(
            ErrorCode.ForeignKeyForeignColumnsMixingTables,
            f'Foreign key "{fk.name}" on "{table.key}" references columns from '
            f"tables {_quoted(sorted(foreign_tables | {fk.foreign_table}))}",
        )

    if len(fk.columns) != len(fk.foreign_columns):
        result.add(
            ErrorCode.ForeignKeyMismatchingColumnCount,
            f'Foreign key "{fk.name}" on "{table.key}" has {len(fk.columns)} '
            f"columns but references {len(fk.foreign_columns)}",
        )
        return

    mismatched = []
    for ref, foreign_ref in zip(fk.columns, fk.foreign_columns):
        local = _resolve(ref, table.key, tables)
        foreign = _resolve(foreign_ref, fk.foreign_table, tables)
        if local is None or foreign is None:
            continue
        if local.base_type != foreign.base_type:
            mismatched.append(
                f"{local.name} ({local.base_type}) -> "
                f"{foreign.name} ({foreign.base_type})"
            )
    if mismatched:
        result.add(
            ErrorCode.ForeignKeyMismatchingDataTypes,
            f'Foreign key "{fk.name}" on "{table.key}" has mismatching data '
            f"types: {', '.join(mismatched)}",
        )


def _check_indexes(table: Table, result: ValidationResult) -> None:
    columns = table.column_map()
    for index in table.indexes:
        if index.name is None:
            result.add(
                ErrorCode.IndexRequiresName,
                f'An index on "{table.key}" contains expressions and needs '
                f"an explicit name",
            )
        for target in index.targets:
            if target.is_expression or target.opclass is not None:
                continue
            col = columns.get(target.value)
            if col is not None and col.base_type == "vector":
                result.add(
                    ErrorCode.IndexVectorColumnRequiresOp,
                    f'Index "{index.name or "<unnamed>"}" on "{table.key}" needs '
                    f'an operator class for vector column "{col.name}"',
                )


def _quoted(names: Iterable[str]) -> str:
    return ", ".join(f'"{name}"' for name in names)
