"""Abstract base for dialect rules.

A ``DialectRules`` instance turns planned entries into SQL text for one
database dialect. Rendering dispatches on ``entry.type`` to a
``render_<type>`` method; an entry type with no method (or listed in
``unsupported``) raises ``UnsupportedStatementError``.

Subclasses supply identifier quoting, the namespace that is left implicit,
and the column definition grammar. Shared helpers here cover literals,
role lists and constraint column lists.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import ClassVar

from schema_differ.diff.statements import FusedAlterTable, PlannedEntry, TableEntry
from schema_differ.errors import UnsupportedStatementError
from schema_differ.snapshot.models import (
    DEFAULT_NAMESPACE,
    Column,
    ColumnDefault,
    ColumnRef,
    ForeignKey,
    OptionValue,
)

ROLE_KEYWORDS = frozenset({"public", "current_role", "current_user", "session_user"})


class DialectRules(ABC):
    """Rendering rules for one SQL dialect.

    Class attributes:
        name: Registry name, e.g. ``"postgresql"``.
        quotes: Opening and closing identifier quote characters.
        implicit_namespaces: Namespaces omitted from qualified names.
        can_fuse: Whether several ``ADD`` clauses can share one ALTER TABLE.
        inline_foreign_keys: Whether foreign keys of a new table are declared
            inside its CREATE TABLE instead of added afterwards.
        unsupported: Entry types this dialect refuses to render.
    """

    name: ClassVar[str]
    quotes: ClassVar[tuple[str, str]] = ('"', '"')
    implicit_namespaces: ClassVar[frozenset[str]] = frozenset({"", DEFAULT_NAMESPACE})
    can_fuse: ClassVar[bool] = False
    inline_foreign_keys: ClassVar[bool] = False
    unsupported: ClassVar[frozenset[str]] = frozenset()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def render(self, entry: PlannedEntry) -> str:
        """Render *entry* as SQL. Multi-statement entries are newline-joined."""
        method = getattr(self, f"render_{entry.type}", None)
        if method is None or entry.type in self.unsupported:
            raise UnsupportedStatementError(self.name, entry.type)
        return method(entry)

    def render_all(self, entry: PlannedEntry) -> list[str]:
        """Render *entry* as a list of individual statements."""
        expand = getattr(self, f"statements_{entry.type}", None)
        if expand is not None and entry.type not in self.unsupported:
            return expand(entry)
        return [self.render(entry)]

    def supports(self, entry_type: str) -> bool:
        return (
            hasattr(self, f"render_{entry_type}") and entry_type not in self.unsupported
        )

    # ------------------------------------------------------------------
    # Identifiers
    # ------------------------------------------------------------------

    def quote(self, identifier: str) -> str:
        opening, closing = self.quotes
        return f"{opening}{identifier.replace(closing, closing * 2)}{closing}"

    def qualified(self, name: str, namespace: str | None = None) -> str:
        """Quote *name*, prefixed by *namespace* unless it is implicit."""
        if namespace is None or namespace in self.implicit_namespaces:
            return self.quote(name)
        return f"{self.quote(namespace)}.{self.quote(name)}"

    def table_name(self, entry: TableEntry) -> str:
        return self.qualified(entry.table, entry.namespace)

    def column_list(self, refs: Iterable[ColumnRef | str]) -> str:
        """Comma-joined quoted column names, without spaces."""
        return ",".join(
            self.quote(ref if isinstance(ref, str) else ref.column) for ref in refs
        )

    def roles(self, names: Iterable[str]) -> str:
        """Role list with keywords like ``public`` left unquoted."""
        return ", ".join(
            name if name in ROLE_KEYWORDS else self.quote(name) for name in names
        )

    # ------------------------------------------------------------------
    # Literals
    # ------------------------------------------------------------------

    def literal(self, value: OptionValue) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return "'" + value.replace("'", "''") + "'"

    def default_value(self, default: ColumnDefault) -> str:
        if default.is_expression:
            return str(default.value)
        return self.literal(default.value)

    # ------------------------------------------------------------------
    # Shared grammar
    # ------------------------------------------------------------------

    @abstractmethod
    def column_definition(self, column: Column) -> str:
        """The column clause used by CREATE TABLE and ADD COLUMN."""

    def references(self, fk: ForeignKey) -> str:
        """``FOREIGN KEY (...) REFERENCES t(...)`` with its referential actions."""
        foreign_namespace, _, foreign_name = fk.foreign_table.partition(".")
        sql = (
            f"FOREIGN KEY ({self.column_list(fk.columns)}) REFERENCES "
            f"{self.qualified(foreign_name, foreign_namespace)}"
            f"({self.column_list(fk.foreign_columns)})"
        )
        if fk.on_delete:
            sql += f" ON DELETE {fk.on_delete}"
        if fk.on_update:
            sql += f" ON UPDATE {fk.on_update}"
        return sql

    def render_fused_alter_table(self, entry: FusedAlterTable) -> str:
        clauses = ", ".join(
            f"ADD {self.column_definition(add.column)}" for add in entry.entries
        )
        return f"ALTER TABLE {self.table_name(entry)} {clauses};"
