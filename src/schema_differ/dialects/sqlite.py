"""SQLite rendering rules.

SQLite's ALTER TABLE can only add, drop and rename columns and rename the
table. Column alterations and constraint changes on an existing table need
a table rebuild, which is not generated; those entries raise
``UnsupportedStatementError``. Foreign keys are declared inline in CREATE
TABLE, so the planner drops the separate additions for new tables.
"""

from schema_differ.diff.statements import (
    AddColumn,
    CreateIndex,
    CreateTable,
    CreateView,
    DropColumn,
    DropIndex,
    DropTable,
    DropView,
    RenameColumn,
    RenameTable,
)
from schema_differ.dialects.base import DialectRules
from schema_differ.errors import UnsupportedStatementError
from schema_differ.snapshot.models import Column, ColumnDefault, IndexTarget


class SqliteRules(DialectRules):
    """SQLite DDL."""

    name = "sqlite"
    quotes = ("`", "`")
    inline_foreign_keys = True

    def default_value(self, default: ColumnDefault) -> str:
        if default.is_expression:
            return f"({default.value})"
        return self.literal(default.value)

    def column_definition(self, column: Column) -> str:
        sql = f"{self.quote(column.name)} {column.type}"
        if column.primary_key:
            sql += " PRIMARY KEY"
            if column.identity is not None:
                sql += " AUTOINCREMENT"
        if column.default is not None:
            sql += f" DEFAULT {self.default_value(column.default)}"
        if not column.nullable:
            sql += " NOT NULL"
        if column.generated is not None:
            mode = column.generated.mode.upper()
            sql += f" GENERATED ALWAYS AS ({column.generated.expression}) {mode}"
        return sql

    def index_target(self, target: IndexTarget) -> str:
        sql = target.value if target.is_expression else self.quote(target.value)
        return sql if target.asc else f"{sql} DESC"

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
        for fk in table.foreign_keys:
            lines.append(self.references(fk))
        for check in table.checks:
            lines.append(f"CONSTRAINT {self.quote(check.name)} CHECK({check.value})")
        body = ",\n\t".join(lines)
        return f"CREATE TABLE {self.quote(table.name)} (\n\t{body}\n);\n"

    def render_drop_table(self, entry: DropTable) -> str:
        return f"DROP TABLE {self.quote(entry.table)};"

    def render_rename_table(self, entry: RenameTable) -> str:
        return (
            f"ALTER TABLE {self.quote(entry.old_name)} "
            f"RENAME TO {self.quote(entry.table)};"
        )

    def render_add_column(self, entry: AddColumn) -> str:
        column = entry.column
        if column.primary_key:
            raise UnsupportedStatementError(
                self.name, entry.type, f"cannot add primary key column '{column.name}'"
            )
        return (
            f"ALTER TABLE {self.quote(entry.table)} "
            f"ADD {self.column_definition(column)};"
        )

    def render_drop_column(self, entry: DropColumn) -> str:
        return (
            f"ALTER TABLE {self.quote(entry.table)} "
            f"DROP COLUMN {self.quote(entry.column)};"
        )

    def render_rename_column(self, entry: RenameColumn) -> str:
        return (
            f'ALTER TABLE {self.quote(entry.table)} RENAME COLUMN "{entry.old_name}" '
            f'TO "{entry.new_name}";'
        )

    # ------------------------------------------------------------------
    # Indexes and views
    # ------------------------------------------------------------------

    def render_create_index(self, entry: CreateIndex) -> str:
        index = entry.index
        unique = "UNIQUE " if index.unique else ""
        targets = ",".join(self.index_target(target) for target in index.targets)
        sql = (
            f"CREATE {unique}INDEX {self.quote(index.name)} "
            f"ON {self.quote(entry.table)} ({targets})"
        )
        if index.where:
            sql += f" WHERE {index.where}"
        return sql + ";"

    def render_drop_index(self, entry: DropIndex) -> str:
        return f"DROP INDEX {self.quote(entry.name)};"

    def render_create_view(self, entry: CreateView) -> str:
        view = entry.view
        if view.materialized or view.definition is None:
            raise UnsupportedStatementError(
                self.name, entry.type, f"view '{view.key}' is materialized or undefined"
            )
        return f"CREATE VIEW {self.quote(view.name)} AS {view.definition};"

    def render_drop_view(self, entry: DropView) -> str:
        return f"DROP VIEW {self.quote(entry.name)};"
