"""Diff entries: the closed, tagged set of structural changes.

Every entry is a frozen pydantic model whose ``type`` literal is the
discriminator, so lists of entries round-trip through JSON (golden
fixtures) and renderers can dispatch on ``entry.type``.

Entries are self-describing: a create entry carries the whole new
definition, a drop entry the names needed to address the dropped object,
and an alter entry only the fields that changed, each as ``Change(old, new)``.

Usage:
    from schema_differ.diff.statements import EntryListAdapter

    payload = EntryListAdapter.dump_python(entries, mode="json", by_alias=True)
    entries = EntryListAdapter.validate_python(payload)
"""

from typing import Annotated, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from schema_differ.snapshot.models import (
    DEFAULT_NAMESPACE,
    CheckConstraint,
    Column,
    ColumnDefault,
    EnumType,
    ForeignKey,
    GeneratedSpec,
    IdentitySpec,
    Index,
    OptionValue,
    Policy,
    PrimaryKey,
    Role,
    SequenceDef,
    Table,
    UniqueConstraint,
    View,
)

T = TypeVar("T")


class Change(BaseModel, Generic[T]):
    """One changed field: its value in ``from`` and in ``to``."""

    model_config = ConfigDict(frozen=True)

    old: T
    new: T


class ColumnType(BaseModel):
    """The type-related fields of a column, compared as one unit."""

    model_config = ConfigDict(frozen=True)

    type: str
    type_schema: str | None = None
    dimensions: int = 0

    @classmethod
    def of(cls, column: Column) -> "ColumnType":
        return cls(
            type=column.type,
            type_schema=column.type_schema,
            dimensions=column.dimensions,
        )

    @property
    def is_custom(self) -> bool:
        """True for user-defined types such as enums."""
        return self.type_schema is not None


class Entry(BaseModel):
    """Base for all diff entries."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class TableEntry(Entry):
    """An entry scoped to one table, addressed by its post-rename name."""

    table: str
    namespace: str = DEFAULT_NAMESPACE

    @property
    def table_key(self) -> str:
        return f"{self.namespace}.{self.table}"


# ============================================================================
# Schemas
# ============================================================================


class CreateSchema(Entry):
    type: Literal["create_schema"] = "create_schema"
    name: str


class DropSchema(Entry):
    type: Literal["drop_schema"] = "drop_schema"
    name: str


class RenameSchema(Entry):
    type: Literal["rename_schema"] = "rename_schema"
    old_name: str
    new_name: str


# ============================================================================
# Enums
# ============================================================================


class CreateEnum(Entry):
    type: Literal["create_enum"] = "create_enum"
    enum: EnumType


class DropEnum(Entry):
    type: Literal["drop_enum"] = "drop_enum"
    name: str
    namespace: str = DEFAULT_NAMESPACE


class RenameEnum(Entry):
    type: Literal["rename_enum"] = "rename_enum"
    namespace: str = DEFAULT_NAMESPACE
    old_name: str
    new_name: str


class MoveEnum(Entry):
    type: Literal["move_enum"] = "move_enum"
    name: str
    old_namespace: str
    new_namespace: str


class AlterEnum(Entry):
    """Adds one value to an enum, optionally before an existing value."""

    type: Literal["alter_enum"] = "alter_enum"
    name: str
    namespace: str = DEFAULT_NAMESPACE
    value: str
    before: str | None = None


class EnumColumnUse(BaseModel):
    """A column whose type is an enum being recreated."""

    model_config = ConfigDict(frozen=True)

    table: str
    namespace: str = DEFAULT_NAMESPACE
    column: str
    dimensions: int = 0
    default: ColumnDefault | None = None


class RecreateEnum(Entry):
    """Replaces an enum whose values were removed or reordered."""

    type: Literal["recreate_enum"] = "recreate_enum"
    enum: EnumType
    columns: tuple[EnumColumnUse, ...] = ()


# ============================================================================
# Sequences
# ============================================================================


class CreateSequence(Entry):
    type: Literal["create_sequence"] = "create_sequence"
    sequence: SequenceDef


class DropSequence(Entry):
    type: Literal["drop_sequence"] = "drop_sequence"
    name: str
    namespace: str = DEFAULT_NAMESPACE


class RenameSequence(Entry):
    type: Literal["rename_sequence"] = "rename_sequence"
    namespace: str = DEFAULT_NAMESPACE
    old_name: str
    new_name: str


class MoveSequence(Entry):
    type: Literal["move_sequence"] = "move_sequence"
    name: str
    old_namespace: str
    new_namespace: str


class AlterSequence(Entry):
    """Changes the options of a kept sequence. ``sequence`` is the new definition."""

    type: Literal["alter_sequence"] = "alter_sequence"
    sequence: SequenceDef
    increment: Change[int | None] | None = None
    min_value: Change[int | None] | None = None
    max_value: Change[int | None] | None = None
    start: Change[int | None] | None = None
    cache: Change[int | None] | None = None
    cycle: Change[bool] | None = None


# ============================================================================
# Roles
# ============================================================================


class CreateRole(Entry):
    type: Literal["create_role"] = "create_role"
    role: Role


class DropRole(Entry):
    type: Literal["drop_role"] = "drop_role"
    name: str


class RenameRole(Entry):
    type: Literal["rename_role"] = "rename_role"
    old_name: str
    new_name: str


class AlterRole(Entry):
    type: Literal["alter_role"] = "alter_role"
    name: str
    inherit: Change[bool] | None = None
    create_db: Change[bool] | None = None
    create_role: Change[bool] | None = None


# ============================================================================
# Tables and row level security
# ============================================================================


class CreateTable(Entry):
    """Creates a table with its columns, primary key, uniques and checks inline."""

    type: Literal["create_table"] = "create_table"
    definition: Table

    @property
    def table_key(self) -> str:
        return self.definition.key


class DropTable(TableEntry):
    """Drops a table; ``policies`` are dropped explicitly right before it."""

    type: Literal["drop_table"] = "drop_table"
    policies: tuple[str, ...] = ()


class RenameTable(TableEntry):
    """Renames ``old_name`` to ``table`` inside ``namespace``."""

    type: Literal["rename_table"] = "rename_table"
    old_name: str


class MoveTable(TableEntry):
    """Moves ``table`` from ``old_namespace`` to ``namespace``."""

    type: Literal["move_table"] = "move_table"
    old_namespace: str


class EnableRls(TableEntry):
    type: Literal["enable_rls"] = "enable_rls"


class DisableRls(TableEntry):
    type: Literal["disable_rls"] = "disable_rls"


# ============================================================================
# Columns
# ============================================================================


class AddColumn(TableEntry):
    type: Literal["add_column"] = "add_column"
    column: Column


class DropColumn(TableEntry):
    type: Literal["drop_column"] = "drop_column"
    column: str


class RenameColumn(TableEntry):
    type: Literal["rename_column"] = "rename_column"
    old_name: str
    new_name: str


class AlterColumn(TableEntry):
    """Changes a kept column in place. ``column`` is the new definition.

    ``primary_key_name`` and ``sequence_name`` address the inline primary key
    and the identity sequence as they exist before the migration; both keep
    the table and column names they were created under.
    """

    type: Literal["alter_column"] = "alter_column"
    column: Column
    data_type: Change[ColumnType] | None = None
    nullable: Change[bool] | None = None
    default: Change[ColumnDefault | None] | None = None
    primary_key: Change[bool] | None = None
    identity: Change[IdentitySpec | None] | None = None
    generated: Change[GeneratedSpec | None] | None = None
    primary_key_name: str | None = None
    sequence_name: str | None = None

    def changed_fields(self) -> tuple[str, ...]:
        return tuple(
            name
            for name in (
                "data_type",
                "nullable",
                "default",
                "primary_key",
                "identity",
                "generated",
            )
            if getattr(self, name) is not None
        )


# ============================================================================
# Indexes and constraints
# ============================================================================


class CreateIndex(TableEntry):
    type: Literal["create_index"] = "create_index"
    index: Index


class DropIndex(TableEntry):
    type: Literal["drop_index"] = "drop_index"
    name: str


class RenameIndex(TableEntry):
    type: Literal["rename_index"] = "rename_index"
    old_name: str
    new_name: str


class CreatePrimaryKey(TableEntry):
    type: Literal["create_primary_key"] = "create_primary_key"
    primary_key: PrimaryKey


class DropPrimaryKey(TableEntry):
    type: Literal["drop_primary_key"] = "drop_primary_key"
    name: str


class CreateUnique(TableEntry):
    type: Literal["create_unique"] = "create_unique"
    unique: UniqueConstraint


class DropUnique(TableEntry):
    type: Literal["drop_unique"] = "drop_unique"
    name: str


class CreateCheck(TableEntry):
    type: Literal["create_check"] = "create_check"
    check: CheckConstraint


class DropCheck(TableEntry):
    type: Literal["drop_check"] = "drop_check"
    name: str


class RenameConstraint(TableEntry):
    type: Literal["rename_constraint"] = "rename_constraint"
    kind: Literal["primary_key", "unique", "check", "foreign_key"]
    old_name: str
    new_name: str


class CreateForeignKey(TableEntry):
    type: Literal["create_foreign_key"] = "create_foreign_key"
    foreign_key: ForeignKey


class DropForeignKey(TableEntry):
    type: Literal["drop_foreign_key"] = "drop_foreign_key"
    name: str


# ============================================================================
# Policies
# ============================================================================


class CreatePolicy(TableEntry):
    type: Literal["create_policy"] = "create_policy"
    policy: Policy


class DropPolicy(TableEntry):
    type: Literal["drop_policy"] = "drop_policy"
    name: str


class RenamePolicy(TableEntry):
    type: Literal["rename_policy"] = "rename_policy"
    old_name: str
    new_name: str


class AlterPolicy(TableEntry):
    """Changes a kept policy. ``policy`` is the new definition."""

    type: Literal["alter_policy"] = "alter_policy"
    policy: Policy
    as_: Change[str] | None = Field(None, alias="as")
    for_: Change[str] | None = Field(None, alias="for")
    to: Change[tuple[str, ...]] | None = None
    using: Change[str | None] | None = None
    with_check: Change[str | None] | None = None

    def changed_fields(self) -> tuple[str, ...]:
        return tuple(
            name
            for name in ("as_", "for_", "to", "using", "with_check")
            if getattr(self, name) is not None
        )


# ============================================================================
# Views
# ============================================================================


class CreateView(Entry):
    type: Literal["create_view"] = "create_view"
    view: View


class DropView(Entry):
    type: Literal["drop_view"] = "drop_view"
    name: str
    namespace: str = DEFAULT_NAMESPACE
    materialized: bool = False


class RenameView(Entry):
    type: Literal["rename_view"] = "rename_view"
    namespace: str = DEFAULT_NAMESPACE
    old_name: str
    new_name: str
    materialized: bool = False


class MoveView(Entry):
    type: Literal["move_view"] = "move_view"
    name: str
    old_namespace: str
    new_namespace: str
    materialized: bool = False


class AlterView(Entry):
    """Changes the storage options or access method of a kept view.

    ``view`` is the new definition; dialects without an in-place form get a
    drop and a create instead.
    """

    type: Literal["alter_view"] = "alter_view"
    view: View
    options: Change[dict[str, OptionValue]] | None = None
    using: Change[str | None] | None = None


# ============================================================================
# Planner output
# ============================================================================


class FusedAlterTable(TableEntry):
    """Several column additions rendered as one multi-clause ALTER TABLE."""

    type: Literal["fused_alter_table"] = "fused_alter_table"
    entries: tuple[AddColumn, ...]


DIFF_ENTRY_TYPES = (
    CreateSchema,
    DropSchema,
    RenameSchema,
    CreateEnum,
    DropEnum,
    RenameEnum,
    MoveEnum,
    AlterEnum,
    RecreateEnum,
    CreateSequence,
    DropSequence,
    RenameSequence,
    MoveSequence,
    AlterSequence,
    CreateRole,
    DropRole,
    RenameRole,
    AlterRole,
    CreateTable,
    DropTable,
    RenameTable,
    MoveTable,
    EnableRls,
    DisableRls,
    AddColumn,
    DropColumn,
    RenameColumn,
    AlterColumn,
    CreateIndex,
    DropIndex,
    RenameIndex,
    CreatePrimaryKey,
    DropPrimaryKey,
    CreateUnique,
    DropUnique,
    CreateCheck,
    DropCheck,
    RenameConstraint,
    CreateForeignKey,
    DropForeignKey,
    CreatePolicy,
    DropPolicy,
    RenamePolicy,
    AlterPolicy,
    CreateView,
    DropView,
    RenameView,
    MoveView,
    AlterView,
)

DiffEntry = Annotated[Union[DIFF_ENTRY_TYPES], Field(discriminator="type")]

PlannedEntry = Annotated[
    Union[(*DIFF_ENTRY_TYPES, FusedAlterTable)],
    Field(discriminator="type"),
]

EntryListAdapter: TypeAdapter[list[PlannedEntry]] = TypeAdapter(list[PlannedEntry])
