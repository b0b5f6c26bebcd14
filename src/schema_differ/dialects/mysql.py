"""MySQL and SingleStore rendering rules.

MySQL has no schemas inside a database, no enum types (enums are inline
column types), no roles managed here and no row level security, so those
entries are refused. Several column additions fuse into one ALTER TABLE.
"""

from schema_differ.diff.statements import (
    AddColumn,
    AlterColumn,
    CreateCheck,
    CreateForeignKey,
    CreateIndex,
    CreatePrimaryKey,
    CreateTable,
    CreateUnique,
    CreateView,
    DropCheck,
    DropColumn,
    DropForeignKey,
    DropIndex,
    DropPrimaryKey,
    DropTable,
    DropUnique,
    DropView,
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
from schema_differ.snapshot.models import Column, ColumnDefault, IndexTarget


class MySqlRules(DialectRules):
    """MySQL DDL."""

    name = "mysql"
    quotes = ("`", "`")
    can_fuse = True

    def default_value(self, default: ColumnDefault) -> str:
        if default.is_expression:
            return f"({default.value})"
        return self.literal(default.value)

    def column_definition(self, column: Column, primary_key: bool = True) -> str:
        if column.dimensions:
            raise UnsupportedStatementError(
                self.name, "column", f"array column '{column.name}'"
            )
        sql = f"{self.quote(column.name)} {column.type}"
        if column.identity is not None:
            sql += " AUTO_INCREMENT"
        if column.primary_key and primary_key:
            sql += " PRIMARY KEY"
        if not column.nullable:
            sql += " NOT NULL"
        if column.default is not None:
            sql += f" DEFAULT {self.default_value(column.default)}"
        if column.generated is not None:
            mode = column.generated.mode.upper()
            sql += f" GENERATED ALWAYS AS ({column.generated.expression}) {mode}"
        return sql

    def index_target(self, target: IndexTarget) -> str:
        if target.is_expression:
            return f"({target.value})"
        return self.quote(target.value) + ("" if target.asc else " DESC")

    def _alter_table(self, entry: TableEntry, clause: str) -> str:
        return f"ALTER TABLE {self.table_name(entry)} {clause};"

    def _rename_table(self, old: str, new: str) -> str:
        return f"RENAME TABLE {old} TO {new};"

    # ------------------------------------------------------------------
    # Tables
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
            lines.append(f"CONSTRAINT {self.quote(check.name)} CHECK({check.value})")
        body = ",\n\t".join(lines)
        return (
            f"CREATE TABLE {self.qualified(table.name, table.namespace)} "
            f"(\n\t{body}\n);\n"
        )

    def render_drop_table(self, entry: DropTable) -> str:
        return f"DROP TABLE {self.table_name(entry)};"

    def render_rename_table(self, entry: RenameTable) -> str:
        return self._rename_table(
            self.qualified(entry.old_name, entry.namespace), self.table_name(entry)
        )

    def render_move_table(self, entry: MoveTable) -> str:
        return self._rename_table(
            self.qualified(entry.table, entry.old_namespace), self.table_name(entry)
        )

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def render_add_column(self, entry: AddColumn) -> str:
        return self._alter_table(entry, f"ADD {self.column_definition(entry.column)}")

    def render_drop_column(self, entry: DropColumn) -> str:
        return self._alter_table(entry, f"DROP COLUMN {self.quote(entry.column)}")

    def render_rename_column(self, entry: RenameColumn) -> str:
        return self._alter_table(
            entry,
            f"RENAME COLUMN {self.quote(entry.old_name)} TO {self.quote(entry.new_name)}",
        )

    def render_alter_column(self, entry: AlterColumn) -> str:
        """Redefine the whole column with ``MODIFY COLUMN``."""
        column = entry.column
        modify = f"MODIFY COLUMN {self.column_definition(column, primary_key=False)}"
        if entry.primary_key is None:
            return self._alter_table(entry, modify)
        if entry.primary_key.new:
            return self._alter_table(
                entry, f"{modify}, ADD PRIMARY KEY ({self.quote(column.name)})"
            )
        return self._alter_table(entry, f"DROP PRIMARY KEY, {modify}")

    # ------------------------------------------------------------------
    # Indexes and constraints
    # ------------------------------------------------------------------

    def render_create_index(self, entry: CreateIndex) -> str:
        index = entry.index
        if index.where:
            raise UnsupportedStatementError(self.name, entry.type, "partial indexes")
        unique = "UNIQUE " if index.unique else ""
        targets = ",".join(self.index_target(target) for target in index.targets)
        return (
            f"CREATE {unique}INDEX {self.quote(index.name)} "
            f"ON {self.table_name(entry)} ({targets});"
        )

    def render_drop_index(self, entry: DropIndex) -> str:
        return f"DROP INDEX {self.quote(entry.name)} ON {self.table_name(entry)};"

    def render_rename_index(self, entry: RenameIndex) -> str:
        return self._alter_table(
            entry,
            f"RENAME INDEX {self.quote(entry.old_name)} TO {self.quote(entry.new_name)}",
        )

    def render_create_primary_key(self, entry: CreatePrimaryKey) -> str:
        columns = self.column_list(entry.primary_key.columns)
        return self._alter_table(entry, f"ADD PRIMARY KEY({columns})")

    def render_drop_primary_key(self, entry: DropPrimaryKey) -> str:
        return self._alter_table(entry, "DROP PRIMARY KEY")

    def render_create_unique(self, entry: CreateUnique) -> str:
        unique = entry.unique
        return self._alter_table(
            entry,
            f"ADD CONSTRAINT {self.quote(unique.name)} "
            f"UNIQUE({self.column_list(unique.columns)})",
        )

    def render_drop_unique(self, entry: DropUnique) -> str:
        return self._alter_table(entry, f"DROP INDEX {self.quote(entry.name)}")

    def render_create_check(self, entry: CreateCheck) -> str:
        check = entry.check
        return self._alter_table(
            entry, f"ADD CONSTRAINT {self.quote(check.name)} CHECK ({check.value})"
        )

    def render_drop_check(self, entry: DropCheck) -> str:
        return self._alter_table(entry, f"DROP CONSTRAINT {self.quote(entry.name)}")

    def render_rename_constraint(self, entry: RenameConstraint) -> str:
        if entry.kind != "unique":
            raise UnsupportedStatementError(
                self.name, entry.type, f"{entry.kind} constraints cannot be renamed"
            )
        return self._alter_table(
            entry,
            f"RENAME INDEX {self.quote(entry.old_name)} TO {self.quote(entry.new_name)}",
        )

    def render_create_foreign_key(self, entry: CreateForeignKey) -> str:
        fk = entry.foreign_key
        return self._alter_table(
            entry, f"ADD CONSTRAINT {self.quote(fk.name)} {self.references(fk)}"
        )

    def render_drop_foreign_key(self, entry: DropForeignKey) -> str:
        return self._alter_table(entry, f"DROP FOREIGN KEY {self.quote(entry.name)}")

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def render_create_view(self, entry: CreateView) -> str:
        view = entry.view
        if view.materialized or view.definition is None:
            raise UnsupportedStatementError(
                self.name, entry.type, f"view '{view.key}' is materialized or undefined"
            )
        sql = f"CREATE VIEW {self.qualified(view.name, view.namespace)} AS ({view.definition})"
        if view.check_option:
            sql += f"\nWITH {view.check_option.upper()} CHECK OPTION"
        return sql + ";"

    def render_drop_view(self, entry: DropView) -> str:
        return f"DROP VIEW {self.qualified(entry.name, entry.namespace)};"

    def render_rename_view(self, entry: RenameView) -> str:
        return self._rename_table(
            self.qualified(entry.old_name, entry.namespace),
            self.qualified(entry.new_name, entry.namespace),
        )

    def render_move_view(self, entry: MoveView) -> str:
        return self._rename_table(
            self.qualified(entry.name, entry.old_namespace),
            self.qualified(entry.name, entry.new_namespace),
        )


class SingleStoreRules(MySqlRules):
    """SingleStore: MySQL grammar without foreign keys, with its own renames."""

    name = "singlestore"
    unsupported = frozenset({"create_foreign_key", "drop_foreign_key"})

    def _rename_table(self, old: str, new: str) -> str:
        return f"ALTER TABLE {old} RENAME TO {new};"

    def render_rename_column(self, entry: RenameColumn) -> str:
        return self._alter_table(
            entry, f"CHANGE {self.quote(entry.old_name)} {self.quote(entry.new_name)}"
        )
