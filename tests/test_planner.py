"""Tests for the statement planner: recreates, ordering and fusion."""

import pytest

from schema_differ.dialects import get_dialect
from schema_differ.diff import PLAN_ORDER, RECREATE_FIELDS, diff, needs_recreate, plan
from schema_differ.diff.statements import (
    DIFF_ENTRY_TYPES,
    AddColumn,
    AlterColumn,
    AlterPolicy,
    AlterView,
    CreateForeignKey,
    CreatePolicy,
    CreateSchema,
    CreateTable,
    CreateView,
    DisableRls,
    DropPolicy,
    DropRole,
    DropTable,
    DropView,
    EnableRls,
    EntryListAdapter,
    MoveView,
    RenameColumn,
    RenamePolicy,
    RenameView,
)
from schema_differ.snapshot import (
    Column,
    ForeignKey,
    GeneratedSpec,
    Policy,
    Role,
    SequenceDef,
    Snapshot,
    Table,
    View,
)


def _types(entries: list) -> list[str]:
    return [entry.type for entry in entries]


class TestPlanOrder:
    """PLAN_ORDER covers every entry type exactly once."""

    def test_every_entry_type_has_a_place(self) -> None:
        """Each DiffEntry type and fused_alter_table is ordered."""
        types = {cls.model_fields["type"].default for cls in DIFF_ENTRY_TYPES}
        assert types | {"fused_alter_table"} == set(PLAN_ORDER)
        assert len(PLAN_ORDER) == len(set(PLAN_ORDER))

    def test_creates_follow_schema_enum_role_table(self) -> None:
        """Creates run schema, enum, role, table, index, policy, fk, view."""
        index = PLAN_ORDER.index
        assert (
            index("create_schema")
            < index("create_enum")
            < index("create_role")
            < index("create_table")
            < index("add_column")
            < index("create_index")
            < index("enable_rls")
            < index("create_policy")
            < index("create_foreign_key")
            < index("create_view")
        )

    def test_container_renames_before_dependent_drops(self) -> None:
        """Drops address post-rename table names."""
        assert PLAN_ORDER.index("rename_table") < PLAN_ORDER.index("drop_column")
        assert PLAN_ORDER.index("move_table") < PLAN_ORDER.index("rename_table")

    def test_sequences_around_tables(self) -> None:
        """Sequences are created before tables and dropped after them."""
        index = PLAN_ORDER.index
        assert index("rename_sequence") < index("drop_column")
        assert index("create_enum") < index("create_sequence") < index("create_table")
        assert index("create_view") < index("drop_sequence") < index("drop_role")

    def test_view_alters_before_view_creates(self) -> None:
        """Altered views follow the tables and keys they read from."""
        index = PLAN_ORDER.index
        assert index("create_foreign_key") < index("alter_view") < index("create_view")

    def test_role_enum_schema_drops_last(self) -> None:
        """Containers are dropped after everything that used them."""
        assert PLAN_ORDER[-3:] == ("drop_role", "drop_enum", "drop_schema")

    def test_stable_sort(self) -> None:
        """Entries of one type keep the differ's order."""
        entries = [
            DropRole(name="b"),
            CreateSchema(name="s"),
            DropRole(name="a"),
        ]
        planned = plan(entries)
        assert [getattr(e, "name") for e in planned] == ["s", "b", "a"]


class TestRlsOrdering:
    """enable_rls precedes policies; disable_rls precedes the last drop."""

    def test_enable_before_create_policy(self) -> None:
        """Policies of a table gaining RLS come after enable_rls."""
        planned = plan(
            [
                CreatePolicy(table="users", policy=Policy(name="a")),
                CreatePolicy(table="users", policy=Policy(name="b")),
                EnableRls(table="users"),
            ]
        )
        assert _types(planned) == ["enable_rls", "create_policy", "create_policy"]

    def test_disable_before_drop_policy(self) -> None:
        """disable_rls runs before the table's last policy is dropped."""
        planned = plan([DropPolicy(table="users", name="a"), DisableRls(table="users")])
        assert _types(planned) == ["disable_rls", "drop_policy"]

    def test_dropped_table_policies_explode(self) -> None:
        """A dropped table's policies are dropped right before it."""
        planned = plan(
            [
                CreateSchema(name="s"),
                DropTable(table="users", policies=("a", "b")),
            ]
        )

        assert planned[1:] == [
            DropPolicy(table="users", name="a"),
            DropPolicy(table="users", name="b"),
            DropTable(table="users", policies=("a", "b")),
        ]


class TestRecreate:
    """Alters touching recreate-forcing fields become drop + create."""

    def test_recreate_fields(self) -> None:
        """as/for on policies and generated on columns force a recreate."""
        assert RECREATE_FIELDS["alter_policy"] == frozenset({"as_", "for_"})
        assert RECREATE_FIELDS["alter_column"] == frozenset({"generated"})

    def test_policy_to_is_in_place(self) -> None:
        """Role list changes stay an ALTER POLICY."""
        entry = AlterPolicy(
            table="users",
            policy=Policy(name="test", to=["current_role"]),
            to={"old": ("public",), "new": ("current_role",)},
        )
        assert needs_recreate(entry) is False
        assert plan([entry]) == [entry]

    def test_policy_as_recreates(self) -> None:
        """The whole new policy is created after dropping the old one."""
        policy = Policy(name="test", as_="restrictive")
        entry = AlterPolicy(
            table="users",
            policy=policy,
            as_={"old": "permissive", "new": "restrictive"},
        )

        assert plan([entry]) == [
            DropPolicy(table="users", name="test"),
            CreatePolicy(table="users", policy=policy),
        ]

    def test_losing_using_recreates(self) -> None:
        """ALTER POLICY cannot remove an expression."""
        entry = AlterPolicy(
            table="users",
            policy=Policy(name="test"),
            using={"old": "true", "new": None},
        )
        assert needs_recreate(entry) is True

    def test_recreate_absorbs_rename(self) -> None:
        """A recreated policy that was renamed is dropped by its old name."""
        policy = Policy(name="renamed", for_="select")
        entries = [
            RenamePolicy(table="users", old_name="test", new_name="renamed"),
            AlterPolicy(
                table="users", policy=policy, for_={"old": "all", "new": "select"}
            ),
        ]

        assert plan(entries) == [
            DropPolicy(table="users", name="test"),
            CreatePolicy(table="users", policy=policy),
        ]

    def test_generated_column_recreates(self) -> None:
        """Changing a generated expression recreates the column."""
        column = Column(
            name="total",
            type="integer",
            generated=GeneratedSpec(expression="a + b"),
        )
        entries = [
            RenameColumn(table="t", old_name="sum", new_name="total"),
            AlterColumn(
                table="t",
                column=column,
                generated={"old": GeneratedSpec(expression="a"), "new": column.generated},
            ),
        ]

        planned = plan(entries)

        assert _types(planned) == ["drop_column", "add_column"]
        assert planned[0].column == "sum"
        assert planned[1].column == column


class TestDialectPasses:
    """Fusion and inline foreign keys depend on the dialect rules."""

    def _additions(self) -> list[AddColumn]:
        return [
            AddColumn(table="users", column=Column(name="a", type="int")),
            AddColumn(table="users", column=Column(name="b", type="int")),
            AddColumn(table="posts", column=Column(name="c", type="int")),
        ]

    @pytest.mark.parametrize("dialect", ["mysql", "singlestore", "mssql"])
    def test_fusing_dialects(self, dialect: str) -> None:
        """Consecutive additions on one table fuse into one entry."""
        planned = plan(self._additions(), rules=get_dialect(dialect))

        assert _types(planned) == ["fused_alter_table", "add_column"]
        assert [add.column.name for add in planned[0].entries] == ["a", "b"]

    @pytest.mark.parametrize("dialect", ["postgresql", "gel", "sqlite"])
    def test_non_fusing_dialects(self, dialect: str) -> None:
        """PostgreSQL, Gel and SQLite keep one ALTER per column."""
        planned = plan(self._additions(), rules=get_dialect(dialect))
        assert _types(planned) == ["add_column"] * 3

    def test_sqlite_inlines_new_table_foreign_keys(self) -> None:
        """Foreign keys of new tables are dropped from the SQLite plan."""
        fk = ForeignKey(columns=["author_id"], foreign_table="users", foreign_columns=["id"])
        posts = Table(
            name="posts",
            columns=[Column(name="author_id", type="integer")],
            foreign_keys=[fk],
        )
        entries = [
            CreateTable(definition=posts),
            CreateForeignKey(table="posts", foreign_key=posts.foreign_keys[0]),
        ]

        assert _types(plan(entries, rules=get_dialect("sqlite"))) == ["create_table"]
        assert _types(plan(entries, rules=get_dialect("postgresql"))) == [
            "create_table",
            "create_foreign_key",
        ]


class TestEndToEndOrder:
    """diff() then plan() on whole snapshots."""

    def test_table_with_fk_and_policy(self) -> None:
        """A new table is created before its index, policy and foreign key."""
        users = Table(name="users", columns=[Column(name="id", type="integer", primary_key=True)])
        posts = Table(
            name="posts",
            columns=[Column(name="author_id", type="integer")],
            foreign_keys=[
                ForeignKey(columns=["author_id"], foreign_table="users", foreign_columns=["id"])
            ],
            policies=[Policy(name="read")],
        )

        planned = plan(diff(Snapshot(), Snapshot(schemas=["app"], tables=[posts, users])))

        assert _types(planned) == [
            "create_schema",
            "create_table",
            "create_table",
            "enable_rls",
            "create_policy",
            "create_foreign_key",
        ]

    def test_entries_round_trip_through_json(self) -> None:
        """Planned entries serialize to JSON and validate back unchanged."""
        planned = plan(
            [
                AlterPolicy(
                    table="users",
                    policy=Policy(name="p", to=["current_role"]),
                    to={"old": ("public",), "new": ("current_role",)},
                ),
                EnableRls(table="users"),
            ],
            rules=get_dialect("mysql"),
        )

        payload = EntryListAdapter.dump_python(planned, mode="json", by_alias=True)

        assert payload[0]["type"] == "enable_rls"
        assert EntryListAdapter.validate_python(payload) == planned


class TestViewAlterReplacement:
    """Dialects without ALTER VIEW get a drop and a create."""

    def _alter(self, view: View) -> AlterView:
        return AlterView(view=view, options={"old": {}, "new": {"check": "local"}})

    def test_postgres_keeps_alter(self) -> None:
        """PostgreSQL alters the view in place."""
        view = View(name="v", definition="select 1")
        planned = plan([self._alter(view)], rules=get_dialect("postgresql"))
        assert _types(planned) == ["alter_view"]

    def test_mysql_recreates(self) -> None:
        """MySQL drops and creates the new definition."""
        view = View(name="v", definition="select 1")
        planned = plan([self._alter(view)], rules=get_dialect("mysql"))

        assert planned == [DropView(name="v"), CreateView(view=view)]

    def test_move_and_rename_absorbed(self) -> None:
        """The drop addresses the old namespace and name."""
        view = View(name="v2", namespace="app", definition="select 1", materialized=True)
        entries = [
            MoveView(name="v", old_namespace="public", new_namespace="app"),
            RenameView(namespace="app", old_name="v", new_name="v2"),
            self._alter(view),
        ]

        planned = plan(entries, rules=get_dialect("mssql"))

        assert planned == [
            DropView(name="v", namespace="public", materialized=True),
            CreateView(view=view),
        ]

    def test_without_rules_nothing_is_replaced(self) -> None:
        """Planning without a dialect leaves the alter alone."""
        planned = plan([self._alter(View(name="v", definition="select 1"))])
        assert _types(planned) == ["alter_view"]


class TestSequencePlan:
    """Sequences in a full plan."""

    def test_create_before_table_drop_last(self) -> None:
        """New sequences precede tables; dropped ones go near the end."""
        entries = diff(
            Snapshot(sequences=[SequenceDef(name="old")], roles=[Role(name="r")]),
            Snapshot(
                sequences=[SequenceDef(name="new")],
                tables=[Table(name="t", columns=[Column(name="id", type="bigint")])],
            ),
        )

        assert _types(plan(entries)) == [
            "create_sequence",
            "create_table",
            "drop_sequence",
            "drop_role",
        ]
