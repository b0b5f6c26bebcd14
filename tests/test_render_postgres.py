"""Tests for PostgreSQL (and Gel) rendering.

The policy scenarios run the whole pipeline through ``generate_migration``;
the rest render single entries.
"""

import pytest

from schema_differ.dialects import get_dialect, render
from schema_differ.diff.statements import (
    AlterColumn,
    AlterEnum,
    AlterSequence,
    AlterView,
    ColumnType,
    CreateEnum,
    CreateForeignKey,
    CreateIndex,
    CreatePolicy,
    CreateRole,
    CreateSchema,
    CreateSequence,
    CreateTable,
    CreateView,
    DropSequence,
    DropTable,
    EnableRls,
    EnumColumnUse,
    MoveSequence,
    MoveTable,
    RecreateEnum,
    RenamePolicy,
    RenameSequence,
    RenameTable,
)
from schema_differ.errors import UnknownDialectError, UnsupportedStatementError
from schema_differ.migration import generate_migration
from schema_differ.snapshot import (
    CheckConstraint,
    Column,
    ColumnDefault,
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
    View,
)

PG = get_dialect("postgresql")


def _users(*policies: Policy) -> Snapshot:
    table = Table(
        name="users",
        columns=[Column(name="id", type="integer", primary_key=True)],
        policies=policies,
    )
    return Snapshot(tables=[table])


# ============================================================================
# Policy scenarios
# ============================================================================


class TestPolicyScenarios:
    """End-to-end policy migrations on users(id pk)."""

    def test_add_policy(self) -> None:
        """Adding the first policy enables RLS, then creates it."""
        result = generate_migration(_users(), _users(Policy(name="test")))

        assert result.sql_statements == [
            'ALTER TABLE "users" ENABLE ROW LEVEL SECURITY;',
            'CREATE POLICY "test" ON "users" AS PERMISSIVE FOR ALL TO public;',
        ]

    def test_drop_policy(self) -> None:
        """Dropping the last policy disables RLS first."""
        result = generate_migration(_users(Policy(name="test")), _users())

        assert result.sql_statements == [
            'ALTER TABLE "users" DISABLE ROW LEVEL SECURITY;',
            'DROP POLICY "test" ON "users" CASCADE;',
        ]

    def test_change_roles_alters(self) -> None:
        """A role list change is a single ALTER POLICY."""
        result = generate_migration(
            _users(Policy(name="test")),
            _users(Policy(name="test", to=["current_role"])),
        )

        assert result.sql_statements == [
            'ALTER POLICY "test" ON "users" TO current_role;',
        ]

    def test_change_as_recreates(self) -> None:
        """permissive -> restrictive drops and recreates, never ALTERs."""
        result = generate_migration(
            _users(Policy(name="test")),
            _users(Policy(name="test", as_="restrictive")),
        )

        assert result.sql_statements == [
            'DROP POLICY "test" ON "users" CASCADE;',
            'CREATE POLICY "test" ON "users" AS RESTRICTIVE FOR ALL TO public;',
        ]
        assert not any(sql.startswith("ALTER POLICY") for sql in result.sql_statements)

    def test_roles_render_sorted(self) -> None:
        """Role lists are written in name order."""
        result = generate_migration(
            _users(), _users(Policy(name="test", to=["test", "manager"]))
        )
        assert result.sql_statements[-1] == (
            'CREATE POLICY "test" ON "users" AS PERMISSIVE FOR ALL TO "manager", "test";'
        )

    def test_reordered_roles_emit_nothing(self) -> None:
        """Only the role set matters, not its order."""
        result = generate_migration(
            _users(Policy(name="test", to=["manager", "test"])),
            _users(Policy(name="test", to=["test", "manager"])),
        )
        assert result.sql_statements == []

    def test_policy_with_expressions(self) -> None:
        """Custom roles are quoted, keywords are not."""
        entry = CreatePolicy(
            table="users",
            policy=Policy(
                name="own",
                for_="update",
                to=["admin", "current_user"],
                using="id = 1",
                with_check="true",
            ),
        )
        assert PG.render(entry) == (
            'CREATE POLICY "own" ON "users" AS PERMISSIVE FOR UPDATE '
            'TO "admin", current_user USING (id = 1) WITH CHECK (true);'
        )

    def test_rename_policy(self) -> None:
        """Policies are renamed in place."""
        entry = RenamePolicy(table="users", old_name="a", new_name="b")
        assert PG.render(entry) == 'ALTER POLICY "a" ON "users" RENAME TO "b";'


# ============================================================================
# Tables and columns
# ============================================================================


class TestCreateTable:
    """CREATE TABLE layout and column clauses."""

    def test_single_column(self) -> None:
        """One tab-indented clause per line, trailing newline."""
        table = Table(name="t", columns=[Column(name="id", type="integer", primary_key=True)])
        assert PG.render(CreateTable(definition=table)) == (
            'CREATE TABLE "t" (\n\t"id" integer PRIMARY KEY\n);\n'
        )

    def test_constraints_inline(self) -> None:
        """Composite PK, uniques and checks follow the columns."""
        table = Table(
            name="memberships",
            namespace="app",
            columns=[
                Column(name="user_id", type="integer", nullable=False),
                Column(name="org_id", type="integer", nullable=False),
                Column(name="role", type="text", default="member"),
            ],
            primary_key=PrimaryKey(columns=["user_id", "org_id"]),
            checks=[CheckConstraint(name="role_check", value="role <> ''")],
        )

        assert PG.render(CreateTable(definition=table)) == (
            'CREATE TABLE "app"."memberships" (\n'
            '\t"user_id" integer NOT NULL,\n'
            '\t"org_id" integer NOT NULL,\n'
            "\t\"role\" text DEFAULT 'member',\n"
            '\tCONSTRAINT "memberships_pkey" PRIMARY KEY("user_id","org_id"),\n'
            "\tCONSTRAINT \"role_check\" CHECK (role <> '')\n"
            ");\n"
        )

    def test_identity_column(self) -> None:
        """Identity columns skip NOT NULL and list their options."""
        col = Column(
            name="id",
            type="integer",
            nullable=False,
            identity=IdentitySpec(kind="always", start=1, increment=1),
        )
        assert PG.column_definition(col) == (
            '"id" integer GENERATED ALWAYS AS IDENTITY (INCREMENT BY 1 START WITH 1)'
        )

    def test_generated_column(self) -> None:
        """Generated columns are STORED."""
        col = Column(name="total", type="integer", generated=GeneratedSpec(expression="a + b"))
        assert PG.column_definition(col) == (
            '"total" integer GENERATED ALWAYS AS (a + b) STORED'
        )

    def test_custom_array_type(self) -> None:
        """Custom types are quoted and qualified outside public."""
        col = Column(name="moods", type="mood", type_schema="app", dimensions=1)
        assert PG.column_definition(col) == '"moods" "app"."mood"[]'


class TestTableStatements:
    """Drops, renames, moves and RLS toggles."""

    def test_drop_table(self) -> None:
        """Tables are dropped with CASCADE."""
        assert PG.render(DropTable(table="users")) == 'DROP TABLE "users" CASCADE;'

    def test_rename_table(self) -> None:
        """Renames keep the namespace."""
        entry = RenameTable(table="people", old_name="users")
        assert PG.render(entry) == 'ALTER TABLE "users" RENAME TO "people";'

    def test_move_table(self) -> None:
        """Moves use SET SCHEMA."""
        entry = MoveTable(table="users", namespace="s2", old_namespace="s1")
        assert PG.render(entry) == 'ALTER TABLE "s1"."users" SET SCHEMA "s2";'

    def test_enable_rls_in_schema(self) -> None:
        """Non-public tables are schema-qualified."""
        entry = EnableRls(table="users", namespace="auth")
        assert PG.render(entry) == 'ALTER TABLE "auth"."users" ENABLE ROW LEVEL SECURITY;'


class TestAlterColumn:
    """In-place column alterations."""

    def test_type_to_enum_casts(self) -> None:
        """Switching to a custom type adds a USING cast."""
        entry = AlterColumn(
            table="users",
            column=Column(name="mood", type="mood", type_schema="public"),
            data_type={
                "old": ColumnType(type="text"),
                "new": ColumnType(type="mood", type_schema="public"),
            },
        )
        assert PG.render(entry) == (
            'ALTER TABLE "users" ALTER COLUMN "mood" SET DATA TYPE "mood" '
            'USING "mood"::"mood";'
        )

    def test_nullable_and_default(self) -> None:
        """Several changes share one ALTER TABLE."""
        entry = AlterColumn(
            table="users",
            column=Column(name="name", type="text", nullable=False),
            nullable={"old": True, "new": False},
            default={"old": ColumnDefault(value="x"), "new": None},
        )
        assert PG.render(entry) == (
            'ALTER TABLE "users" ALTER COLUMN "name" DROP DEFAULT, '
            'ALTER COLUMN "name" SET NOT NULL;'
        )

    def test_generated_change_is_refused(self) -> None:
        """Generated changes must have been planned as a recreate."""
        col = Column(name="t", type="integer", generated=GeneratedSpec(expression="1"))
        entry = AlterColumn(
            table="users", column=col, generated={"old": None, "new": col.generated}
        )
        with pytest.raises(UnsupportedStatementError, match="recreating the column"):
            PG.render(entry)

    def test_drop_inline_primary_key_after_table_rename(self) -> None:
        """The constraint keeps the name it was created under."""
        old = Snapshot(
            tables=[
                Table(name="users", columns=[Column(name="id", type="integer", primary_key=True)])
            ]
        )
        new = Snapshot(
            tables=[Table(name="people", columns=[Column(name="id", type="integer")])]
        )

        result = generate_migration(old, new, ["public.users->public.people"])

        assert result.sql_statements == [
            'ALTER TABLE "users" RENAME TO "people";',
            'ALTER TABLE "people" DROP CONSTRAINT "users_pkey";',
        ]

    def test_empty_alter_is_refused(self) -> None:
        """An entry with nothing to change never renders a bare ALTER TABLE."""
        entry = AlterColumn(table="users", column=Column(name="id", type="integer"))
        with pytest.raises(UnsupportedStatementError, match="nothing to change"):
            PG.render(entry)


def _ident(**options) -> Snapshot:
    column = Column(name="id", type="integer", identity=IdentitySpec(**options))
    return Snapshot(tables=[Table(name="t", columns=[column])])


class TestIdentityAlter:
    """Identity option changes on a kept column."""

    def test_sequence_rename(self) -> None:
        """A new sequence name renames the backing sequence."""
        result = generate_migration(_ident(sequence_name="a"), _ident(sequence_name="b"))
        assert result.sql_statements == ['ALTER SEQUENCE "a" RENAME TO "b";']

    def test_implicit_sequence_rename(self) -> None:
        """Naming a sequence for the first time renames the derived name."""
        result = generate_migration(_ident(), _ident(sequence_name="custom"))
        assert result.sql_statements == ['ALTER SEQUENCE "t_id_seq" RENAME TO "custom";']

    @pytest.mark.parametrize(
        ("before", "reset"),
        [
            ({"increment": 5}, "SET INCREMENT BY 1"),
            ({"min_value": 10}, "SET NO MINVALUE"),
            ({"max_value": 99}, "SET NO MAXVALUE"),
            ({"start": 5}, "SET START WITH 1"),
            ({"cache": 10}, "SET CACHE 1"),
            ({"cycle": True}, "SET NO CYCLE"),
        ],
    )
    def test_cleared_option_is_reset(self, before: dict, reset: str) -> None:
        """Removing an option restores the PostgreSQL default."""
        result = generate_migration(_ident(**before), _ident())
        assert result.sql_statements == [f'ALTER TABLE "t" ALTER COLUMN "id" {reset};']

    def test_descending_start_reset(self) -> None:
        """A descending sequence restarts from its maximum."""
        result = generate_migration(
            _ident(increment=-1, max_value=-10, start=-20),
            _ident(increment=-1, max_value=-10),
        )
        assert result.sql_statements == [
            'ALTER TABLE "t" ALTER COLUMN "id" SET START WITH -10;'
        ]

    def test_kind_and_options_share_one_clause(self) -> None:
        """SET GENERATED comes first, followed by the changed options."""
        result = generate_migration(_ident(), _ident(kind="always", increment=2))
        assert result.sql_statements == [
            'ALTER TABLE "t" ALTER COLUMN "id" SET GENERATED ALWAYS SET INCREMENT BY 2;'
        ]

    def test_options_and_rename_together(self) -> None:
        """The sequence rename follows the ALTER TABLE."""
        result = generate_migration(
            _ident(sequence_name="a", increment=5), _ident(sequence_name="b")
        )
        assert result.sql_statements == [
            'ALTER TABLE "t" ALTER COLUMN "id" SET INCREMENT BY 1;',
            'ALTER SEQUENCE "a" RENAME TO "b";',
        ]

    def test_add_and_drop_identity(self) -> None:
        """Adding restates the options, dropping needs none."""
        plain = Snapshot(
            tables=[Table(name="t", columns=[Column(name="id", type="integer")])]
        )

        added = generate_migration(plain, _ident(start=10))
        dropped = generate_migration(_ident(start=10), plain)

        assert added.sql_statements == [
            'ALTER TABLE "t" ALTER COLUMN "id" ADD GENERATED BY DEFAULT AS IDENTITY '
            "(START WITH 10);"
        ]
        assert dropped.sql_statements == ['ALTER TABLE "t" ALTER COLUMN "id" DROP IDENTITY;']

    def test_never_renders_an_empty_alter(self) -> None:
        """Every identity-only change yields at least one real clause."""
        pairs = [
            ({"sequence_name": "a"}, {"sequence_name": "b"}),
            ({"increment": 5}, {}),
            ({}, {"cache": 3}),
        ]
        for before, after in pairs:
            statements = generate_migration(_ident(**before), _ident(**after)).sql_statements
            assert statements
            assert 'ALTER TABLE "t" ;' not in statements


# ============================================================================
# Indexes and constraints
# ============================================================================


class TestIndexesAndConstraints:
    """Index and foreign key statements."""

    def test_partial_unique_index(self) -> None:
        """Targets carry direction and null ordering."""
        entry = CreateIndex(
            table="users",
            index=Index(
                name="users_email_idx",
                unique=True,
                targets=[IndexTarget(value="email", asc=False, nulls="last")],
                where="deleted_at is null",
            ),
        )
        assert PG.render(entry) == (
            'CREATE UNIQUE INDEX "users_email_idx" ON "users" USING btree '
            '("email" DESC NULLS LAST) WHERE deleted_at is null;'
        )

    def test_foreign_key(self) -> None:
        """Foreign keys are added as named constraints."""
        entry = CreateForeignKey(
            table="posts",
            foreign_key=ForeignKey(
                name="posts_author_fk",
                columns=["author_id"],
                foreign_table="users",
                foreign_columns=["id"],
                on_delete="cascade",
            ),
        )
        assert PG.render(entry) == (
            'ALTER TABLE "posts" ADD CONSTRAINT "posts_author_fk" FOREIGN KEY '
            '("author_id") REFERENCES "users"("id") ON DELETE cascade;'
        )


# ============================================================================
# Enums, roles, schemas and views
# ============================================================================


class TestEnums:
    """Enum statements."""

    def test_create_enum_escapes_values(self) -> None:
        """Values are single-quoted with doubling."""
        entry = CreateEnum(enum=EnumType(name="mood", namespace="app", values=["ok", "it's"]))
        assert PG.render(entry) == (
            "CREATE TYPE \"app\".\"mood\" AS ENUM('ok', 'it''s');"
        )

    def test_add_value_before(self) -> None:
        """ADD VALUE keeps the requested position."""
        entry = AlterEnum(name="mood", value="happy", before="ok")
        assert PG.render(entry) == "ALTER TYPE \"mood\" ADD VALUE 'happy' BEFORE 'ok';"

    def test_recreate_enum(self) -> None:
        """Columns are parked on text while the type is replaced."""
        entry = RecreateEnum(
            enum=EnumType(name="mood", values=["ok", "happy"]),
            columns=[
                EnumColumnUse(
                    table="users", column="mood", default=ColumnDefault(value="ok")
                )
            ],
        )

        assert PG.render_all(entry) == [
            'ALTER TABLE "users" ALTER COLUMN "mood" DROP DEFAULT;',
            'ALTER TABLE "users" ALTER COLUMN "mood" SET DATA TYPE text;',
            'DROP TYPE "mood";',
            "CREATE TYPE \"mood\" AS ENUM('ok', 'happy');",
            'ALTER TABLE "users" ALTER COLUMN "mood" SET DATA TYPE "mood" '
            'USING "mood"::"mood";',
            "ALTER TABLE \"users\" ALTER COLUMN \"mood\" SET DEFAULT 'ok';",
        ]
        assert PG.render(entry) == "\n".join(PG.render_all(entry))


class TestRolesSchemasViews:
    """Role, schema and view statements."""

    def test_create_role(self) -> None:
        """Role flags follow WITH."""
        entry = CreateRole(role=Role(name="admin", create_db=True, inherit=False))
        assert PG.render(entry) == 'CREATE ROLE "admin" WITH CREATEDB NOINHERIT;'

    def test_create_schema(self) -> None:
        """Schema statements end with a newline."""
        assert PG.render(CreateSchema(name="auth")) == 'CREATE SCHEMA "auth";\n'

    def test_view_with_check_option(self) -> None:
        """check_option is rendered as a view option."""
        entry = CreateView(view=View(name="v", definition="select 1", check_option="local"))
        assert PG.render(entry) == (
            'CREATE VIEW "v" WITH (check_option = local) AS (select 1);'
        )

    def test_materialized_view(self) -> None:
        """Materialized views can skip the initial fill."""
        entry = CreateView(
            view=View(name="mv", definition="select 1", materialized=True, with_no_data=True)
        )
        assert PG.render(entry) == (
            'CREATE MATERIALIZED VIEW "mv" AS (select 1) WITH NO DATA;'
        )


class TestViewAlters:
    """In-place ALTER VIEW for options and access methods."""

    def test_set_and_reset_options(self) -> None:
        """Changed options are SET, removed ones RESET."""
        old = View(
            name="v",
            definition="select 1",
            options={"security_barrier": "true", "security_invoker": "true"},
        )
        new = View(name="v", definition="select 1", options={"security_barrier": "false"})

        result = generate_migration(Snapshot(views=[old]), Snapshot(views=[new]))

        assert result.sql_statements == [
            'ALTER VIEW "v" SET (security_barrier = false);',
            'ALTER VIEW "v" RESET (security_invoker);',
        ]

    def test_access_method(self) -> None:
        """Clearing the access method falls back to heap."""
        entry = AlterView(
            view=View(name="mv", namespace="auth", definition="select 1", materialized=True),
            using={"old": "columnar", "new": None},
        )
        assert PG.render(entry) == (
            'ALTER MATERIALIZED VIEW "auth"."mv" SET ACCESS METHOD "heap";'
        )

    def test_materialized_options_and_method(self) -> None:
        """Options come before the access method switch."""
        old = View(name="mv", definition="select 1", materialized=True)
        new = View(
            name="mv",
            definition="select 1",
            materialized=True,
            options={"fillfactor": 70},
            using="columnar",
        )

        result = generate_migration(Snapshot(views=[old]), Snapshot(views=[new]))

        assert result.sql_statements == [
            'ALTER MATERIALIZED VIEW "mv" SET (fillfactor = 70);',
            'ALTER MATERIALIZED VIEW "mv" SET ACCESS METHOD "columnar";',
        ]

    def test_definition_change_recreates(self) -> None:
        """A new definition is never altered in place."""
        result = generate_migration(
            Snapshot(views=[View(name="v", definition="select 1")]),
            Snapshot(views=[View(name="v", definition="select 2", options={"a": "b"})]),
        )
        assert result.sql_statements == [
            'DROP VIEW "v";',
            'CREATE VIEW "v" WITH (a = b) AS (select 2);',
        ]


# ============================================================================
# Sequences
# ============================================================================


class TestSequences:
    """Standalone sequence statements."""

    def test_create(self) -> None:
        """Set options follow CREATE SEQUENCE in order."""
        entry = CreateSequence(sequence=SequenceDef(name="s", increment=2, start=10))
        assert PG.render(entry) == 'CREATE SEQUENCE "s" INCREMENT BY 2 START WITH 10;'

    def test_create_plain_in_schema(self) -> None:
        """A sequence without options keeps the defaults."""
        entry = CreateSequence(sequence=SequenceDef(name="s", namespace="auth", cycle=True))
        assert PG.render(entry) == 'CREATE SEQUENCE "auth"."s" CYCLE;'

    def test_drop_rename_move(self) -> None:
        """Drop, rename and move address the sequence by its current name."""
        assert PG.render(DropSequence(name="s")) == 'DROP SEQUENCE "s";'
        assert PG.render(RenameSequence(old_name="a", new_name="b")) == (
            'ALTER SEQUENCE "a" RENAME TO "b";'
        )
        assert PG.render(
            MoveSequence(name="s", old_namespace="public", new_namespace="auth")
        ) == 'ALTER SEQUENCE "s" SET SCHEMA "auth";'

    def test_alter_sets_and_resets(self) -> None:
        """Changed options are set and cleared ones reset."""
        result = generate_migration(
            Snapshot(sequences=[SequenceDef(name="s", increment=5, max_value=100)]),
            Snapshot(sequences=[SequenceDef(name="s", increment=5, cache=20)]),
        )
        assert result.sql_statements == [
            'ALTER SEQUENCE "s" NO MAXVALUE CACHE 20;'
        ]

    def test_alter_entry(self) -> None:
        """The old values are read from the entry's changes."""
        entry = AlterSequence(
            sequence=SequenceDef(name="s", start=1),
            start={"old": 50, "new": 1},
            cycle={"old": True, "new": False},
        )
        assert PG.render(entry) == 'ALTER SEQUENCE "s" START WITH 1 NO CYCLE;'

    def test_full_lifecycle_order(self) -> None:
        """Sequences exist before the tables that may use them."""
        table = Table(
            name="orders",
            columns=[
                Column(
                    name="id",
                    type="bigint",
                    default=ColumnDefault(value="nextval('order_ids')", is_expression=True),
                )
            ],
        )
        result = generate_migration(
            Snapshot(sequences=[SequenceDef(name="legacy")]),
            Snapshot(sequences=[SequenceDef(name="order_ids")], tables=[table]),
        )

        assert result.sql_statements[0] == 'CREATE SEQUENCE "order_ids";'
        assert result.sql_statements[1].startswith('CREATE TABLE "orders"')
        assert result.sql_statements[-1] == 'DROP SEQUENCE "legacy";'


# ============================================================================
# Registry and Gel
# ============================================================================


class TestRegistry:
    """Dialect lookup and the module-level render()."""

    def test_render_by_name(self) -> None:
        """render() accepts a dialect name."""
        assert render("postgresql", CreateSchema(name="s")) == 'CREATE SCHEMA "s";\n'

    def test_unknown_dialect(self) -> None:
        """Unknown names list the available dialects."""
        with pytest.raises(UnknownDialectError, match="Available: gel, mssql"):
            get_dialect("oracle")

    def test_unknown_dialect_is_key_error(self) -> None:
        """UnknownDialectError is catchable as KeyError."""
        with pytest.raises(KeyError):
            get_dialect("oracle")

    def test_quote_escapes(self) -> None:
        """Embedded quotes are doubled."""
        assert PG.quote('we"ird') == '"we""ird"'


class TestGel:
    """Gel shares PostgreSQL DDL but owns roles and policies."""

    def test_tables_render_like_postgres(self) -> None:
        """Table statements are identical to PostgreSQL."""
        entry = DropTable(table="users")
        assert render("gel", entry) == PG.render(entry)

    @pytest.mark.parametrize(
        "entry",
        [
            CreateRole(role=Role(name="admin")),
            CreatePolicy(table="users", policy=Policy(name="p")),
            EnableRls(table="users"),
        ],
    )
    def test_refuses_roles_and_policies(self, entry) -> None:
        """Role and policy entries raise UnsupportedStatementError."""
        gel = get_dialect("gel")
        assert gel.supports(entry.type) is False
        with pytest.raises(UnsupportedStatementError, match="gel cannot render"):
            gel.render(entry)

    def test_sequences_render_like_postgres(self) -> None:
        """Gel keeps PostgreSQL sequences and view alters."""
        gel = get_dialect("gel")
        entry = CreateSequence(sequence=SequenceDef(name="s", cache=5))
        assert gel.render(entry) == 'CREATE SEQUENCE "s" CACHE 5;'
        assert gel.supports("alter_view") is True
