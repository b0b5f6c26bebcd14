"""PostgreSQL rendering rules (and Gel, which speaks the same DDL).

Usage:
    from schema_differ.dialects.postgres import PostgresRules

    rules = PostgresRules()
    rules.render(entry)  # 'ALTER TABLE "users" ENABLE ROW LEVEL SECURITY;'
"""

from schema_differ.diff.statements import (
    AddColumn,
    AlterColumn,
    AlterEnum,
    AlterPolicy,
    AlterRole,
    AlterSequence,
    AlterView,
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
    TableEntry,
)
from schema_differ.dialects.base import DialectRules
from schema_differ.errors import UnsupportedStatementError
from schema_differ.snapshot.models import (
    CheckConstraint,
    Column,
    IdentitySpec,
    Index,
    IndexTarget,
    OptionValue,
    PrimaryKey,
    SequenceDef,
    UniqueConstraint,
)

# (field, keyword) pairs shared by identity columns and standalone sequences
SEQUENCE_OPTIONS = (
    ("increment", "INCREMENT BY"),
    ("min_value", "MINVALUE"),
    ("max_value", "MAXVALUE"),
    ("start", "START WITH"),
    ("cache", "CACHE"),
)


class PostgresRules(DialectRules):
    """PostgreSQL DDL."""

    name = "postgresql"

    # ------------------------------------------------------------------
    # Column grammar
    # ------------------------------------------------------------------

    def column_type(self, column: Column, dimensions: int | None = None) -> str:
        """The column's type; custom types are quoted and schema-qualified."""
        if column.type_schema is not None:
            type_sql = self.qualified(column.type, column.type_schema)
        else:
            type_sql = column.type
        if dimensions is None:
            dimensions = column.dimensions
        if not type_sql.endswith("[]"):
            type_sql += "[]" * dimensions
        return type_sql

    def sequence_options(self, spec: IdentitySpec | SequenceDef) -> list[str]:
        """The options set on an identity or sequence, in CREATE SEQUENCE order."""
        options = [
            f"{keyword} {getattr(spec, field)}"
            for field, keyword in SEQUENCE_OPTIONS
            if getattr(spec, field) is not None
        ]
        if spec.cycle:
            options.append("CYCLE")
        return options

    def identity(self, identity: IdentitySpec) -> str:
        kind = "ALWAYS" if identity.kind == "always" else "BY DEFAULT"
        options = []
        if identity.sequence_name:
            options.append(f"sequence name {self.quote(identity.sequence_name)}")
        options.extend(self.sequence_options(identity))
        sql = f"GENERATED {kind} AS IDENTITY"
        return f"{sql} ({' '.join(options)})" if options else sql

    def column_definition(self, column: Column) -> str:
        sql = f"{self.quote(column.name)} {self.column_type(column)}"
        if column.primary_key:
            sql += " PRIMARY KEY"
        if column.default is not None:
            sql += f" DEFAULT {self.default_value(column.default)}"
        if column.generated is not None:
            sql += f" GENERATED ALWAYS AS ({column.generated.expression}) STORED"
        if not column.nullable and column.identity is None:
            sql += " NOT NULL"
        if column.identity is not None:
            sql += f" {self.identity(column.identity)}"
        return sql

    def options(self, options: dict[str, OptionValue], separator: str = "=") -> str:
        return ", ".join(f"{key}{separator}{value}" for key, value in options.items())

    # ------------------------------------------------------------------
    # Constraint grammar
    # ------------------------------------------------------------------

    def primary_key_clause(self, pk: PrimaryKey) -> str:
        return f"CONSTRAINT {self.quote(pk.name)} PRIMARY KEY({self.column_list(pk.columns)})"

    def unique_clause(self, unique: UniqueConstraint) -> str:
        nulls = " NULLS NOT DISTINCT" if unique.nulls_not_distinct else ""
        return (
            f"CONSTRAINT {self.quote(unique.name)} UNIQUE{nulls}"
            f"({self.column_list(unique.columns)})"
        )

    def check_clause(self, check: CheckConstraint) -> str:
        return f"CONSTRAINT {self.quote(check.name)} CHECK ({check.value})"

    def index_target(self, target: IndexTarget) -> str:
        sql = target.value if target.is_expression else self.quote(target.value)
        if target.opclass:
            sql += f" {target.opclass}"
        if not target.asc:
            sql += " DESC"
        if target.nulls:
            sql += f" NULLS {target.nulls.upper()}"
        return sql

    def _alter_table(self, entry: TableEntry, clause: str) -> str:
        return f"ALTER TABLE {self.table_name(entry)} {clause};"

    # ------------------------------------------------------------------
    # Schemas
    # ------------------------------------------------------------------

    def render_create_schema(self, entry: CreateSchema) -> str:
        return f"CREATE SCHEMA {self.quote(entry.name)};\n"

    def render_drop_schema(self, entry: DropSchema) -> str:
        return f"DROP SCHEMA {self.quote(entry.name)};\n"

    def render_rename_schema(self, entry: RenameSchema) -> str:
        return (
            f"ALTER SCHEMA {self.quote(entry.old_name)} "
            f"RENAME TO {self.quote(entry.new_name)};\n"
        )

    # ------------------------------------------------------------------
    # Enums
    # ------------------------------------------------------------------

    def render_create_enum(self, entry: CreateEnum) -> str:
        values = ", ".join(self.literal(value) for value in entry.enum.values)
        return (
            f"CREATE TYPE {self.qualified(entry.enum.name, entry.enum.namespace)} "
            f"AS ENUM({values});"
        )

    def render_drop_enum(self, entry: DropEnum) -> str:
        return f"DROP TYPE {self.qualified(entry.name, entry.namespace)};"

    def render_rename_enum(self, entry: RenameEnum) -> str:
        return (
            f"ALTER TYPE {self.qualified(entry.old_name, entry.namespace)} "
            f"RENAME TO {self.quote(entry.new_name)};"
        )

    def render_move_enum(self, entry: MoveEnum) -> str:
        return (
            f"ALTER TYPE {self.qualified(entry.name, entry.old_namespace)} "
            f"SET SCHEMA {self.quote(entry.new_namespace)};"
        )

    def render_alter_enum(self, entry: AlterEnum) -> str:
        sql = (
            f"ALTER TYPE {self.qualified(entry.name, entry.namespace)} "
            f"ADD VALUE {self.literal(entry.value)}"
        )
        if entry.before is not None:
            sql += f" BEFORE {self.literal(entry.before)}"
        return sql + ";"

    def statements_recreate_enum(self, entry: RecreateEnum) -> list[str]:
        """Park dependent columns on text, replace the type, then convert back."""
        enum = entry.enum
        enum_sql = self.qualified(enum.name, enum.namespace)

        def alter(use: EnumColumnUse, clause: str) -> str:
            table = self.qualified(use.table, use.namespace)
            return f"ALTER TABLE {table} ALTER COLUMN {self.quote(use.column)} {clause};"

        statements = []
        for use in entry.columns:
            if use.default is not None:
                statements.append(alter(use, "DROP DEFAULT"))
            statements.append(alter(use, f"SET DATA TYPE text{'[]' * use.dimensions}"))
        statements.append(self.render_drop_enum(DropEnum(name=enum.name, namespace=enum.namespace)))
        statements.append(self.render_create_enum(CreateEnum(enum=enum)))
        for use in entry.columns:
            target = enum_sql + "[]" * use.dimensions
            statements.append(
                alter(
                    use,
                    f"SET DATA TYPE {target} USING {self.quote(use.column)}::{target}",
                )
            )
            if use.default is not None:
                statements.append(
                    alter(use, f"SET DEFAULT {self.default_value(use.default)}")
                )
        return statements

    def render_recreate_enum(self, entry: RecreateEnum) -> str:
        return "\n".join(self.statements_recreate_enum(entry))

    # ------------------------------------------------------------------
    # Sequences
    # ------------------------------------------------------------------

    def render_create_sequence(self, entry: CreateSequence) -> str:
        sequence = entry.sequence
        sql = f"CREATE SEQUENCE {self.qualified(sequence.name, sequence.namespace)}"
        options = self.sequence_options(sequence)
        if options:
            sql += " " + " ".join(options)
        return sql + ";"

    def render_drop_sequence(self, entry: DropSequence) -> str:
        return f"DROP SEQUENCE {self.qualified(entry.name, entry.namespace)};"

    def render_rename_sequence(self, entry: RenameSequence) -> str:
        return (
            f"ALTER SEQUENCE {self.qualified(entry.old_name, entry.namespace)} "
            f"RENAME TO {self.quote(entry.new_name)};"
        )

    def render_move_sequence(self, entry: MoveSequence) -> str:
        return (
            f"ALTER SEQUENCE {self.qualified(entry.name, entry.old_namespace)} "
            f"SET SCHEMA {self.quote(entry.new_namespace)};"
        )

    def render_alter_sequence(self, entry: AlterSequence) -> str:
        sequence = entry.sequence
        previous = {}
        for field in ("increment", "min_value", "max_value", "start", "cache", "cycle"):
            change = getattr(entry, field)
            if change is not None:
                previous[field] = change.old
        old = sequence.model_copy(update=previous)
        options = self.sequence_option_changes(old, sequence)
        return (
            f"ALTER SEQUENCE {self.qualified(sequence.name, sequence.namespace)} "
            f"{' '.join(options)};"
        )

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def render_create_role(self, entry: CreateRole) -> str:
        role = entry.role
        flags = []
        if role.create_db:
            flags.append("CREATEDB")
        if role.create_role:
            flags.append("CREATEROLE")
        if not role.inherit:
            flags.append("NOINHERIT")
        sql = f"CREATE ROLE {self.quote(role.name)}"
        if flags:
            sql += " WITH " + " ".join(flags)
        return sql + ";"

    def render_alter_role(self, entry: AlterRole) -> str:
        flags = []
        for change, keyword in (
            (entry.create_db, "CREATEDB"),
            (entry.create_role, "CREATEROLE"),
            (entry.inherit, "INHERIT"),
        ):
            if change is not None:
                flags.append(keyword if change.new else f"NO{keyword}")
        return f"ALTER ROLE {self.quote(entry.name)} WITH {' '.join(flags)};"

    def render_rename_role(self, entry: RenameRole) -> str:
        return (
            f"ALTER ROLE {self.quote(entry.old_name)} "
            f"RENAME TO {self.quote(entry.new_name)};"
        )

    def render_drop_role(self, entry: DropRole) -> str:
        return f"DROP ROLE {self.quote(entry.name)};"

    # ------------------------------------------------------------------
    # Tables and row level security
    # ------------------------------------------------------------------

    def render_create_table(self, entry: CreateTable) -> str:
        table = entry.definition
        lines = [self.column_definition(column) for column in table.columns]
        if table.primary_key is not None:
            lines.append(self.primary_key_clause(table.primary_key))
        lines.extend(self.unique_clause(unique) for unique in table.uniques)
        lines.extend(self.check_clause(check) for check in table.checks)
        body = ",\n\t".join(lines)
        return (
            f"CREATE TABLE {self.qualified(table.name, table.namespace)} "
            f"(\n\t{body}\n);\n"
        )

    def render_drop_table(self, entry: DropTable) -> str:
        return f"DROP TABLE {self.table_name(entry)} CASCADE;"

    def render_rename_table(self, entry: RenameTable) -> str:
        return (
            f"ALTER TABLE {self.qualified(entry.old_name, entry.namespace)} "
            f"RENAME TO {self.quote(entry.table)};"
        )

    def render_move_table(self, entry: MoveTable) -> str:
        return (
            f"ALTER TABLE {self.qualified(entry.table, entry.old_namespace)} "
            f"SET SCHEMA {self.quote(entry.namespace)};"
        )

    def render_enable_rls(self, entry: EnableRls) -> str:
        return self._alter_table(entry, "ENABLE ROW LEVEL SECURITY")

    def render_disable_rls(self, entry: DisableRls) -> str:
        return self._alter_table(entry, "DISABLE ROW LEVEL SECURITY")

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def render_add_column(self, entry: AddColumn) -> str:
        return self._alter_table(entry, f"ADD COLUMN {self.column_definition(entry.column)}")

    def render_drop_column(self, entry: DropColumn) -> str:
        return self._alter_table(entry, f"DROP COLUMN {self.quote(entry.column)}")

    def render_rename_column(self, entry: RenameColumn) -> str:
        return self._alter_table(
            entry,
            f"RENAME COLUMN {self.quote(entry.old_name)} TO {self.quote(entry.new_name)}",
        )

    def statements_alter_column(self, entry: AlterColumn) -> list[str]:
        """One ALTER TABLE for the column, plus a rename of its identity sequence."""
        column = entry.column
        target = f"ALTER COLUMN {self.quote(column.name)}"
        clauses = []

        if entry.generated is not None:
            raise UnsupportedStatementError(
                self.name,
                entry.type,
                "generated expressions change by recreating the column",
            )
        if entry.data_type is not None:
            type_sql = self.column_type(column)
            clause = f"{target} SET DATA TYPE {type_sql}"
            if entry.data_type.new.is_custom:
                cast = "::text" if entry.data_type.old.is_custom else ""
                clause += f" USING {self.quote(column.name)}{cast}::{type_sql}"
            clauses.append(clause)
        if entry.default is not None:
            if entry.default.new is None:
                clauses.append(f"{target} DROP DEFAULT")
            else:
                clauses.append(
                    f"{target} SET DEFAULT {self.default_value(entry.default.new)}"
                )
        if entry.nullable is not None:
            clauses.append(
                f"{target} DROP NOT NULL" if entry.nullable.new else f"{target} SET NOT NULL"
            )
        if entry.identity is not None:
            clauses.extend(self._identity_clauses(target, entry.identity.old, entry.identity.new))
        if entry.primary_key is not None:
            if entry.primary_key.new:
                clauses.append(f"ADD PRIMARY KEY ({self.quote(column.name)})")
            else:
                pk_name = entry.primary_key_name or f"{entry.table}_pkey"
                clauses.append(f"DROP CONSTRAINT {self.quote(pk_name)}")

        statements = [self._alter_table(entry, ", ".join(clauses))] if clauses else []
        rename = self._identity_sequence_rename(entry)
        if rename is not None:
            statements.append(rename)
        if not statements:
            raise UnsupportedStatementError(
                self.name, entry.type, f"nothing to change on column '{column.name}'"
            )
        return statements

    def render_alter_column(self, entry: AlterColumn) -> str:
        return "\n".join(self.statements_alter_column(entry))

    def _identity_clauses(
        self, target: str, old: IdentitySpec | None, new: IdentitySpec | None
    ) -> list[str]:
        if new is None:
            return [f"{target} DROP IDENTITY"]
        if old is None:
            return [f"{target} ADD {self.identity(new)}"]
        settings = []
        if old.kind != new.kind:
            settings.append(f"SET GENERATED {'ALWAYS' if new.kind == 'always' else 'BY DEFAULT'}")
        settings.extend(f"SET {option}" for option in self.sequence_option_changes(old, new))
        return [f"{target} {' '.join(settings)}"] if settings else []

    def _identity_sequence_rename(self, entry: AlterColumn) -> str | None:
        identity = entry.identity
        if identity is None or identity.old is None or identity.new is None:
            return None
        if identity.old.sequence_name == identity.new.sequence_name:
            return None
        default_name = f"{entry.table}_{entry.column.name}_seq"
        old_name = entry.sequence_name or identity.old.sequence_name or default_name
        new_name = identity.new.sequence_name or default_name
        if old_name == new_name:
            return None
        return (
            f"ALTER SEQUENCE {self.qualified(old_name, entry.namespace)} "
            f"RENAME TO {self.quote(new_name)};"
        )

    def sequence_option_changes(
        self, old: IdentitySpec | SequenceDef, new: IdentitySpec | SequenceDef
    ) -> list[str]:
        """Sequence options that differ between *old* and *new*.

        An option cleared in *new* is reset to the PostgreSQL default.
        """
        ascending = (new.increment or 1) > 0
        if ascending:
            default_start = new.min_value if new.min_value is not None else 1
        else:
            default_start = new.max_value if new.max_value is not None else -1
        resets = {
            "increment": "INCREMENT BY 1",
            "min_value": "NO MINVALUE",
            "max_value": "NO MAXVALUE",
            "start": f"START WITH {default_start}",
            "cache": "CACHE 1",
        }
        options = []
        for field, keyword in SEQUENCE_OPTIONS:
            value = getattr(new, field)
            if value == getattr(old, field):
                continue
            options.append(resets[field] if value is None else f"{keyword} {value}")
        if old.cycle != new.cycle:
            options.append("CYCLE" if new.cycle else "NO CYCLE")
        return options

    # ------------------------------------------------------------------
    # Indexes and constraints
    # ------------------------------------------------------------------

    def render_create_index(self, entry: CreateIndex) -> str:
        index: Index = entry.index
        unique = "UNIQUE " if index.unique else ""
        concurrently = " CONCURRENTLY" if index.concurrently else ""
        targets = ",".join(self.index_target(target) for target in index.targets)
        sql = (
            f"CREATE {unique}INDEX{concurrently} {self.quote(index.name)} "
            f"ON {self.table_name(entry)} USING {index.method} ({targets})"
        )
        if index.with_options:
            sql += f" WITH ({self.options(index.with_options)})"
        if index.where:
            sql += f" WHERE {index.where}"
        return sql + ";"

    def render_drop_index(self, entry: DropIndex) -> str:
        return f"DROP INDEX {self.qualified(entry.name, entry.namespace)};"

    def render_rename_index(self, entry: RenameIndex) -> str:
        return (
            f"ALTER INDEX {self.qualified(entry.old_name, entry.namespace)} "
            f"RENAME TO {self.quote(entry.new_name)};"
        )

    def render_create_primary_key(self, entry: CreatePrimaryKey) -> str:
        return self._alter_table(entry, f"ADD {self.primary_key_clause(entry.primary_key)}")

    def render_drop_primary_key(self, entry: DropPrimaryKey) -> str:
        return self._alter_table(entry, f"DROP CONSTRAINT {self.quote(entry.name)}")

    def render_create_unique(self, entry: CreateUnique) -> str:
        return self._alter_table(entry, f"ADD {self.unique_clause(entry.unique)}")

    def render_drop_unique(self, entry: DropUnique) -> str:
        return self._alter_table(entry, f"DROP CONSTRAINT {self.quote(entry.name)}")

    def render_create_check(self, entry: CreateCheck) -> str:
        return self._alter_table(entry, f"ADD {self.check_clause(entry.check)}")

    def render_drop_check(self, entry: DropCheck) -> str:
        return self._alter_table(entry, f"DROP CONSTRAINT {self.quote(entry.name)}")

    def render_rename_constraint(self, entry: RenameConstraint) -> str:
        return self._alter_table(
            entry,
            f"RENAME CONSTRAINT {self.quote(entry.old_name)} TO {self.quote(entry.new_name)}",
        )

    def render_create_foreign_key(self, entry: CreateForeignKey) -> str:
        fk = entry.foreign_key
        return self._alter_table(
            entry, f"ADD CONSTRAINT {self.quote(fk.name)} {self.references(fk)}"
        )

    def render_drop_foreign_key(self, entry: DropForeignKey) -> str:
        return self._alter_table(entry, f"DROP CONSTRAINT {self.quote(entry.name)}")

    # ------------------------------------------------------------------
    # Policies
    # ------------------------------------------------------------------

    def render_create_policy(self, entry: CreatePolicy) -> str:
        policy = entry.policy
        sql = (
            f"CREATE POLICY {self.quote(policy.name)} ON {self.table_name(entry)} "
            f"AS {policy.as_.upper()} FOR {policy.for_.upper()} "
            f"TO {self.roles(policy.to)}"
        )
        if policy.using is not None:
            sql += f" USING ({policy.using})"
        if policy.with_check is not None:
            sql += f" WITH CHECK ({policy.with_check})"
        return sql + ";"

    def render_alter_policy(self, entry: AlterPolicy) -> str:
        """Restate roles and expressions; only ``AS``/``FOR`` need a recreate."""
        policy = entry.policy
        using = policy.using if entry.using is None else entry.using.new or entry.using.old
        with_check = policy.with_check
        if entry.with_check is not None:
            with_check = entry.with_check.new or entry.with_check.old
        sql = (
            f"ALTER POLICY {self.quote(policy.name)} ON {self.table_name(entry)} "
            f"TO {self.roles(policy.to)}"
        )
        if using is not None:
            sql += f" USING ({using})"
        if with_check is not None:
            sql += f" WITH CHECK ({with_check})"
        return sql + ";"

    def render_drop_policy(self, entry: DropPolicy) -> str:
        return f"DROP POLICY {self.quote(entry.name)} ON {self.table_name(entry)} CASCADE;"

    def render_rename_policy(self, entry: RenamePolicy) -> str:
        return (
            f"ALTER POLICY {self.quote(entry.old_name)} ON {self.table_name(entry)} "
            f"RENAME TO {self.quote(entry.new_name)};"
        )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def render_create_view(self, entry: CreateView) -> str:
        view = entry.view
        if view.definition is None:
            raise UnsupportedStatementError(
                self.name, entry.type, f"view '{view.key}' has no definition"
            )
        materialized = "MATERIALIZED " if view.materialized else ""
        sql = f"CREATE {materialized}VIEW {self.qualified(view.name, view.namespace)}"
        if view.materialized and view.using:
            sql += f" USING {self.quote(view.using)}"
        options = dict(view.options)
        if view.check_option and not view.materialized:
            options["check_option"] = view.check_option
        if options:
            sql += f" WITH ({self.options(options, separator=' = ')})"
        sql += f" AS ({view.definition})"
        if view.materialized and view.with_no_data:
            sql += " WITH NO DATA"
        return sql + ";"

    def render_drop_view(self, entry: DropView) -> str:
        materialized = " MATERIALIZED" if entry.materialized else ""
        return f"DROP{materialized} VIEW {self.qualified(entry.name, entry.namespace)};"

    def render_rename_view(self, entry: RenameView) -> str:
        materialized = " MATERIALIZED" if entry.materialized else ""
        return (
            f"ALTER{materialized} VIEW {self.qualified(entry.old_name, entry.namespace)} "
            f"RENAME TO {self.quote(entry.new_name)};"
        )

    def render_move_view(self, entry: MoveView) -> str:
        materialized = " MATERIALIZED" if entry.materialized else ""
        return (
            f"ALTER{materialized} VIEW {self.qualified(entry.name, entry.old_namespace)} "
            f"SET SCHEMA {self.quote(entry.new_namespace)};"
        )

    def statements_alter_view(self, entry: AlterView) -> list[str]:
        """SET and RESET storage options, then switch the access method."""
        view = entry.view
        materialized = " MATERIALIZED" if view.materialized else ""
        target = f"ALTER{materialized} VIEW {self.qualified(view.name, view.namespace)}"
        statements = []
        if entry.options is not None:
            old, new = entry.options.old, entry.options.new
            changed = {key: value for key, value in new.items() if old.get(key) != value}
            removed = [key for key in old if key not in new]
            if changed:
                statements.append(
                    f"{target} SET ({self.options(changed, separator=' = ')});"
                )
            if removed:
                statements.append(f"{target} RESET ({', '.join(removed)});")
        if entry.using is not None and view.materialized:
            statements.append(
                f"{target} SET ACCESS METHOD {self.quote(entry.using.new or 'heap')};"
            )
        return statements

    def render_alter_view(self, entry: AlterView) -> str:
        return "\n".join(self.statements_alter_view(entry))


class GelRules(PostgresRules):
    """Gel (formerly EdgeDB) over its PostgreSQL backend.

    Gel owns roles and access policies itself, so those entries are refused.
    """

    name = "gel"
    unsupported = frozenset(
        {
            "create_role",
            "alter_role",
            "rename_role",
            "drop_role",
            "create_policy",
            "alter_policy",
            "rename_policy",
            "drop_policy",
            "enable_rls",
            "disable_rls",
        }
    )
