"""Pydantic models describing one snapshot of a database structure.

This module contains the snapshot vocabulary shared by the validator, the
differ and the renderers:
- Column-level models: ColumnDefault, GeneratedSpec, IdentitySpec, Column
- References: ColumnRef, IndexTarget
- Table-scoped children: Index, PrimaryKey, UniqueConstraint,
  CheckConstraint, ForeignKey, Policy
- Top-level entities: EnumType, SequenceDef, Role, Table, View
- The container: Snapshot

Every top-level entity is keyed by its qualified name (``namespace.name``).
Children live inside their table; any reference that crosses a table
boundary (``ColumnRef.table``, ``ForeignKey.foreign_table``) is a qualified
key looked up through the snapshot, never an object reference.
"""

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_NAMESPACE = "public"

OptionValue = str | int | float | bool


def qualify(key: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    """Return *key* as ``namespace.name``, adding *namespace* when missing.

    Example:
        >>> qualify("users")
        'public.users'
        >>> qualify("auth.users")
        'auth.users'
    """
    return key if "." in key else f"{namespace}.{key}"


def split_key(key: str) -> tuple[str, str]:
    """Split a qualified key into ``(namespace, name)``."""
    namespace, _, name = qualify(key).partition(".")
    return namespace, name


class SnapshotModel(BaseModel):
    """Base for all immutable snapshot models."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class QualifiedModel(SnapshotModel):
    """An entity that lives in a namespace and is keyed by ``namespace.name``."""

    name: str
    namespace: str = DEFAULT_NAMESPACE

    @property
    def key(self) -> str:
        return f"{self.namespace}.{self.name}"


# ============================================================================
# Columns
# ============================================================================


class ColumnDefault(SnapshotModel):
    """A column default: a literal value or an opaque SQL expression.

    Example:
        >>> ColumnDefault(value="now()", is_expression=True).is_expression
        True
    """

    value: OptionValue
    is_expression: bool = False


class GeneratedSpec(SnapshotModel):
    """A generated column expression."""

    expression: str
    mode: Literal["stored", "virtual"] = "stored"


class IdentitySpec(SnapshotModel):
    """Identity / autoincrement options of a column."""

    kind: Literal["always", "by_default"] = "by_default"
    sequence_name: str | None = None
    start: int | None = None
    increment: int | None = None
    min_value: int | None = None
    max_value: int | None = None
    cache: int | None = None
    cycle: bool = False


_TYPE_ALIASES = {
    "int": "integer",
    "int4": "integer",
    "serial": "integer",
    "serial4": "integer",
    "int8": "bigint",
    "bigserial": "bigint",
    "serial8": "bigint",
    "int2": "smallint",
    "smallserial": "smallint",
    "serial2": "smallint",
    "bool": "boolean",
    "float4": "real",
    "float8": "double precision",
    "varchar": "character varying",
    "char": "character",
    "decimal": "numeric",
    "timestamptz": "timestamp with time zone",
}


class Column(SnapshotModel):
    """A table column.

    ``type`` is the raw dialect type string. ``type_schema`` names the
    namespace of a custom type (an enum), ``dimensions`` the array depth.

    Example:
        >>> col = Column(name="id", type="serial", primary_key=True)
        >>> col.base_type
        'integer'
        >>> col.nullable
        True
    """

    name: str
    type: str
    type_schema: str | None = None
    dimensions: int = 0
    nullable: bool = True
    primary_key: bool = False
    default: ColumnDefault | None = None
    generated: GeneratedSpec | None = None
    identity: IdentitySpec | None = None

    @field_validator("default", mode="before")
    @classmethod
    def _wrap_literal_default(cls, value: Any) -> Any:
        if isinstance(value, (str, int, float, bool)):
            return {"value": value}
        return value

    @property
    def base_type(self) -> str:
        """Canonical base type: lowercased, params and array suffix stripped."""
        base = re.sub(r"\(.*?\)", "", self.type).replace("[]", "").lower()
        base = " ".join(base.split())
        return _TYPE_ALIASES.get(base, base)


# ============================================================================
# References
# ============================================================================


class ColumnRef(SnapshotModel):
    """A reference to a column, optionally on another table.

    A plain string is a column of the declaring table.

    Example:
        >>> ColumnRef.model_validate("id").table is None
        True
        >>> ColumnRef(column="id", table="users").table
        'public.users'
    """

    column: str
    table: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"column": data}
        return data

    @field_validator("table")
    @classmethod
    def _qualify_table(cls, value: str | None) -> str | None:
        return qualify(value) if value is not None else None

    def resolve(self, owner: str) -> str:
        """Return the qualified key of the table this column lives on."""
        return self.table or owner


class IndexTarget(SnapshotModel):
    """One index target: a column name or an opaque expression."""

    value: str
    is_expression: bool = False
    asc: bool = True
    nulls: Literal["first", "last"] | None = None
    opclass: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"value": data}
        return data


# ============================================================================
# Table-scoped children
# ============================================================================


class Index(SnapshotModel):
    """A table index. ``name`` is derived from the columns when omitted."""

    name: str | None = None
    unique: bool = False
    targets: tuple[IndexTarget, ...]
    method: str = "btree"
    where: str | None = None
    concurrently: bool = False
    with_options: dict[str, OptionValue] = Field(default_factory=dict)


class PrimaryKey(SnapshotModel):
    """A named (possibly composite) primary key constraint."""

    name: str | None = None
    columns: tuple[ColumnRef, ...]


class UniqueConstraint(SnapshotModel):
    """A unique constraint over an ordered column list."""

    name: str | None = None
    columns: tuple[ColumnRef, ...]
    nulls_not_distinct: bool = False


class CheckConstraint(SnapshotModel):
    """A check constraint with an opaque boolean expression."""

    name: str
    value: str


class ForeignKey(SnapshotModel):
    """A foreign key from the declaring table to ``foreign_table``."""

    name: str | None = None
    columns: tuple[ColumnRef, ...]
    foreign_table: str
    foreign_columns: tuple[ColumnRef, ...]
    on_delete: str | None = None
    on_update: str | None = None

    @field_validator("foreign_table")
    @classmethod
    def _qualify_foreign_table(cls, value: str) -> str:
        return qualify(value)


class Policy(SnapshotModel):
    """A row-level-security policy.

    ``to`` keeps its order and drops duplicates; an empty list means
    ``public``.

    Example:
        >>> policy = Policy(name="test")
        >>> (policy.as_, policy.for_, policy.to)
        ('permissive', 'all', ('public',))
    """

    name: str
    as_: Literal["permissive", "restrictive"] = Field("permissive", alias="as")
    for_: Literal["all", "select", "insert", "update", "delete"] = Field(
        "all", alias="for"
    )
    to: tuple[str, ...] = ("public",)
    using: str | None = None
    with_check: str | None = None

    @field_validator("as_", "for_", mode="before")
    @classmethod
    def _lowercase(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @field_validator("to")
    @classmethod
    def _dedupe_roles(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        # Role order is not significant
        return tuple(sorted(set(value))) or ("public",)


# ============================================================================
# Top-level entities
# ============================================================================


class EnumType(QualifiedModel):
    """An enum type with ordered values."""

    values: tuple[str, ...] = ()


class SequenceDef(QualifiedModel):
    """A standalone sequence. Unset options keep the database defaults."""

    increment: int | None = None
    min_value: int | None = None
    max_value: int | None = None
    start: int | None = None
    cache: int | None = None
    cycle: bool = False


class Role(SnapshotModel):
    """A database role. Roles marked ``existing`` are never managed."""

    name: str
    inherit: bool = True
    create_db: bool = False
    create_role: bool = False
    existing: bool = False

    @property
    def key(self) -> str:
        return self.name


def _join(refs: tuple[ColumnRef, ...]) -> str:
    return "_".join(ref.column for ref in refs)


def _with_default_name(items: Any, model: type[SnapshotModel], namer) -> list:
    named = []
    for item in items or ():
        item = model.model_validate(item)
        if getattr(item, "name", None) is None:
            default = namer(item)
            if default is not None:
                item = item.model_copy(update={"name": default})
        named.append(item)
    return named


class Table(QualifiedModel):
    """A table with its columns and table-scoped children.

    Unnamed primary keys, uniques, foreign keys and column-only indexes get
    a derived name on construction, so every child can be keyed by name.

    Example:
        >>> table = Table(name="users", columns=[Column(name="id", type="integer")],
        ...               uniques=[UniqueConstraint(columns=["id"])])
        >>> table.key, table.uniques[0].name
        ('public.users', 'users_id_unique')
    """

    columns: tuple[Column, ...] = ()
    primary_key: PrimaryKey | None = None
    uniques: tuple[UniqueConstraint, ...] = ()
    checks: tuple[CheckConstraint, ...] = ()
    foreign_keys: tuple[ForeignKey, ...] = ()
    indexes: tuple[Index, ...] = ()
    policies: tuple[Policy, ...] = ()
    rls_enabled: bool = False

    @model_validator(mode="before")
    @classmethod
    def _fill_default_names(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not isinstance(data.get("name"), str):
            return data
        table = data["name"]
        data = dict(data)

        if data.get("primary_key") is not None:
            pk = PrimaryKey.model_validate(data["primary_key"])
            if pk.name is None:
                pk = pk.model_copy(update={"name": f"{table}_pkey"})
            data["primary_key"] = pk

        data["uniques"] = _with_default_name(
            data.get("uniques"),
            UniqueConstraint,
            lambda u: f"{table}_{_join(u.columns)}_unique",
        )
        data["foreign_keys"] = _with_default_name(
            data.get("foreign_keys"),
            ForeignKey,
            lambda fk: (
                f"{table}_{_join(fk.columns)}_"
                f"{split_key(fk.foreign_table)[1]}_{_join(fk.foreign_columns)}_fk"
            ),
        )
        # Expression indexes cannot be named automatically
        data["indexes"] = _with_default_name(
            data.get("indexes"),
            Index,
            lambda idx: (
                None
                if any(t.is_expression for t in idx.targets)
                else f"{table}_{'_'.join(t.value for t in idx.targets)}_index"
            ),
        )
        return data

    def column(self, name: str) -> Column | None:
        """Look up a column by name."""
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def column_map(self) -> dict[str, Column]:
        return {col.name: col for col in self.columns}

    def has_rls(self) -> bool:
        """True when row level security is on, explicitly or through policies."""
        return self.rls_enabled or bool(self.policies)


class View(QualifiedModel):
    """A view or materialized view. Views marked ``existing`` are not managed."""

    columns: tuple[str, ...] = ()
    definition: str | None = None
    options: dict[str, OptionValue] = Field(default_factory=dict)
    check_option: Literal["local", "cascaded"] | None = None
    materialized: bool = False
    using: str | None = None
    with_no_data: bool = False
    existing: bool = False


# ============================================================================
# Snapshot
# ============================================================================


class Snapshot(SnapshotModel):
    """The complete, immutable description of a schema at one point in time.

    Entities are stored as tuples so that duplicate keys survive loading and
    can be reported by the validator. Keyed lookups are built on demand.

    Example:
        >>> snap = Snapshot(tables=[Table(name="users")])
        >>> snap.table("users").key
        'public.users'
    """

    schemas: tuple[str, ...] = ()
    enums: tuple[EnumType, ...] = ()
    sequences: tuple[SequenceDef, ...] = ()
    roles: tuple[Role, ...] = ()
    tables: tuple[Table, ...] = ()
    views: tuple[View, ...] = ()

    def table_map(self) -> dict[str, Table]:
        return {table.key: table for table in self.tables}

    def enum_map(self) -> dict[str, EnumType]:
        return {enum.key: enum for enum in self.enums}

    def sequence_map(self) -> dict[str, SequenceDef]:
        return {sequence.key: sequence for sequence in self.sequences}

    def role_map(self) -> dict[str, Role]:
        return {role.key: role for role in self.roles}

    def view_map(self) -> dict[str, View]:
        return {view.key: view for view in self.views}

    def table(self, key: str) -> Table | None:
        """Look up a table by (possibly unqualified) key."""
        return self.table_map().get(qualify(key))

    def resolve_column(self, table_key: str, name: str) -> Column | None:
        """Resolve ``table_key``/``name`` to a column, or None."""
        table = self.table(table_key)
        return table.column(name) if table is not None else None
