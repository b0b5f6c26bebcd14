"""Microsoft SQL Server rendering rules.

Identifiers are bracketed and ``dbo`` is the implicit schema (snapshots
use ``public``; both are left out). Renames go through ``sp_rename`` and
moves through ``ALTER SCHEMA ... TRANSFER``.
"""

from typing import ClassVar

from schema_differ.diff.statements import (
    AddColumn,
    AlterColumn,
    CreateCheck,
    CreateForeignKey,
    CreateIndex,
    CreatePrimaryKey,
    CreateSchema,
    CreateTable,
    CreateUnique,
    CreateView,
    DropCheck,
    DropColumn,
    DropForeignKey,
    DropIndex,
    DropPrimaryKey,
    DropSchema,
    DropTable,
    DropUnique,
    DropView,
    FusedAlterTable,
    MoveTable,
    MoveView,
    RenameColumn,
    RenameConstraint,
    RenameIndex,
    RenameTable,
    RenameView,
    TableEntry,
)
from schema_differ.dialects.base import DialectRules
from schema_differ.errors import UnsupportedStatementError
from schema_differ.snapshot.models import (
    DEFAULT_NAMESPACE,
    Column,
    ColumnDefault,
    OptionValue,
)

MSSQL_DEFAULT_SCHEMA = "dbo"


class MssqlRules(DialectRules):
    """SQL Server DDL."""

    name = "mssql"
    quotes = ("[", "]")
    implicit_namespaces: ClassVar[frozenset[str]] = frozenset(
        {"", DEFAULT_NAMESPACE, MSSQL_DEFAULT_SCHEMA}
    )
    can_fuse = True

    def schema_name(self, namespace: str) -> str:
        """Quoted schema, mapping the implicit namespaces to ``dbo``."""
        if namespace in self.implicit_namespaces:
            namespace = MSSQL_DEFAULT_SCHEMA
        return self.quote(namespace)

    def literal(self, value: OptionValue) -> str:
        if isinstance(value, bool):
            return "1" if value else "0"
        return super().literal(value)

    def default_value(self, default: ColumnDefault) -> str:
        if default.is_expression:
            return f"({default.value})"
        return f"({self.literal(default.value)})"

    def column_definition(self, column: Column) -> str:
        if column.generated is not None:
            persisted = " PERSISTED" if column.generated.mode == "stored" else ""
            return (
                f"{self.quote(column.name)} AS ({column.generated.expression})"
                f"{persisted}"
            )
        sql = f"{self.quote(column.name)} {column.type}"
        if column.identity is not None:
            seed = column.identity.start if column.identity.start is not None else 1
            step = column.identity.increment if column.identity.increment is not None else 1
            sql += f" IDENTITY({seed}, {step})"
        if column.primary_key:
            sql += " PRIMARY KEY"
        if not column.nullable:
            sql += " NOT NULL"
        if column.default is not None:
            sql += f" DEFAULT {self.default_value(column.default)}"
        return sql

    def _alter_table(self, entry: TableEntry, clause: str) -> str:
        return f"ALTER TABLE {self.table_name(entry)} {clause};"

    def _sp_rename(self, target: str, new_name: str, kind: str | None = None) -> str:
        escaped = target.replace("'", "''")
        sql = f"EXEC sp_rename '{escaped}', {self.quote(new_name)}"
        if kind:
            sql += f", '{kind}'"
        return sql + ";"

    def _transfer(self, name: str, old_namespace: str, new_namespace: str) -> str:
        return (
            f"ALTER SCHEMA {self.schema_name(new_namespace)} "
            f"TRANSFER {self.schema_name(old_namespace)}.{self.quote(name)};"
        )

    # ------------------------------------------------------------------
    # Schemas
    # ------------------------------------------------------------------

    def render_create_schema(self, entry: CreateSchema) -> str:
        return f"CREATE SCHEMA {self.quote(entry.name)};\n"

    def render_drop_schema(self, entry: DropSchema) -> str:
        return f"DROP SCHEMA {self.quote(entry.name)};\n"

    # ------------------------------------------------------------------
    # Tables and columns
    # ------------------------------------------------------------------

    def render_create_table(self, entry: CreateTable) -> str:
        table = entry.definition
        lines = [self.column_definition(column) for column in table.columns]
        if table.primary_key is not None:
            lines.append(
                f"CONSTRAINT {self.quote(table.primary_key.name)} "
                f"PRIMARY KEY({self.column_list(table.primary_key.columns)})"
            )
        for unique in table.uniques:
            lines.append(
                f"CONSTRAINT {self.quote(unique.name)} "
                f"UNIQUE({self.column_list(unique.columns)})"
            )
        for check in table.checks:
            lines.append(f"CONSTRAINT {self.quote(check.name)} CHECK ({check.value})")
        body = ",\n\t".join(lines)
        return (
            f"CREATE TABLE {self.qualified(table.name, table.namespace)} "
            f"(\n\t{body}\n);\n"
        )

    def render_drop_table(self, entry: DropTable) -> str:
        return f"DROP TABLE {self.table_name(entry)};"

    def render_rename_table(self, entry: RenameTable) -> str:
        return self._sp_rename(self.qualified(entry.old_name, entry.namespace), entry.table)

    def render_move_table(self, entry: MoveTable) -> str:
        return self._transfer(entry.table, entry.old_namespace, entry.namespace)

    def render_add_column(self, entry: AddColumn) -> str:
        return self._alter_table(entry, f"ADD {self.column_definition(entry.column)}")

    def render_fused_alter_table(self, entry: FusedAlterTable) -> str:
        columns = ", ".join(self.column_definition(add.column) for add in entry.entries)
        return self._alter_table(entry, f"ADD {columns}")

    def render_drop_column(self, entry: DropColumn) -> str:
        return self._alter_table(entry, f"DROP COLUMN {self.quote(entry.column)}")

    def render_rename_column(self, entry: RenameColumn) -> str:
        target = f"{self.table_name(entry)}.{self.quote(entry.old_name)}"
        return self._sp_rename(target, entry.new_name, "COLUMN")

    def render_alter_column(self, entry: AlterColumn) -> str:
        """Only type and nullability changes map onto ``ALTER COLUMN``."""
        other = set(entry.changed_fields()) - {"data_type", "nullable"}
        if other:
            raise UnsupportedStatementError(
                self.name, entry.type, f"cannot alter {', '.join(sorted(other))}"
            )
        column = entry.column
        sql = f"ALTER COLUMN {self.quote(column.name)} {column.type}"
        if not column.nullable:
            sql += " NOT NULL"
        return self._alter_table(entry, sql)

    # ------------------------------------------------------------------
    # Indexes and constraints
    # ------------------------------------------------------------------

    def render_create_index(self, entry: CreateIndex) -> str:
        index = entry.index
        if any(target.is_expression for target in index.targets):
            raise UnsupportedStatementError(self.name, entry.type, "expression indexes")
        unique = "UNIQUE " if index.unique else ""
        targets = ",".join(
            self.quote(target.value) + ("" if target.asc else " DESC")
            for target in index.targets
        )
        sql = (
            f"CREATE {unique}INDEX {self.quote(index.name)} "
            f"ON {self.table_name(entry)} ({targets})"
        )
        if index.where:
            sql += f" WHERE {index.where}"
        return sql + ";"

    def render_drop_index(self, entry: DropIndex) -> str:
        return f"DROP INDEX {self.quote(entry.name)} ON {self.table_name(entry)};"

    def render_rename_index(self, entry: RenameIndex) -> str:
        target = f"{self.table_name(entry)}.{self.quote(entry.old_name)}"
        return self._sp_rename(target, entry.new_name, "INDEX")

    def render_create_primary_key(self, entry: CreatePrimaryKey) -> str:
        pk = entry.primary_key
        return self._alter_table(
            entry,
            f"ADD CONSTRAINT {self.quote(pk.name)} PRIMARY KEY({self.column_list(pk.columns)})",
        )

    def render_create_unique(self, entry: CreateUnique) -> str:
        unique = entry.unique
        return self._alter_table(
            entry,
            f"ADD CONSTRAINT {self.quote(unique.name)} "
            f"UNIQUE({self.column_list(unique.columns)})",
        )

    def render_create_check(self, entry: CreateCheck) -> str:
        check = entry.check
        return self._alter_table(
            entry, f"ADD CONSTRAINT {self.quote(check.name)} CHECK ({check.value})"
        )

    def render_create_foreign_key(self, entry: CreateForeignKey) -> str:
        fk = entry.foreign_key
        return self._alter_table(
            entry, f"ADD CONSTRAINT {self.quote(fk.name)} {self.references(fk)}"
        )

    def _drop_constraint(
        self, entry: DropPrimaryKey | DropUnique | DropCheck | DropForeignKey
    ) -> str:
        return self._alter_table(entry, f"DROP CONSTRAINT {self.quote(entry.name)}")

    render_drop_primary_key = _drop_constraint
    render_drop_unique = _drop_constraint
    render_drop_check = _drop_constraint
    render_drop_foreign_key = _drop_constraint

    def render_rename_constraint(self, entry: RenameConstraint) -> str:
        return self._sp_rename(
            self.qualified(entry.old_name, entry.namespace), entry.new_name, "OBJECT"
        )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def render_create_view(self, entry: CreateView) -> str:
        view = entry.view
        if view.materialized or view.definition is None:
            raise UnsupportedStatementError(
                self.name, entry.type, f"view '{view.key}' is materialized or undefined"
            )
        sql = f"CREATE VIEW {self.qualified(view.name, view.namespace)} AS {view.definition}"
        if view.check_option:
            sql += "\nWITH CHECK OPTION"
        return sql + ";"

    def render_drop_view(self, entry: DropView) -> str:
        return f"DROP VIEW {self.qualified(entry.name, entry.namespace)};"

    def render_rename_view(self, entry: RenameView) -> str:
        return self._sp_rename(
            self.qualified(entry.old_name, entry.namespace), entry.new_name
        )

    def render_move_view(self, entry: MoveView) -> str:
        return self._transfer(entry.name, entry.old_namespace, entry.new_namespace)
