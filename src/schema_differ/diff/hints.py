"""Rename hints: structured old -> new mappings supplied by the caller.

A hint tells the differ that an entity missing from ``to`` and an entity
missing from ``from`` are the same object under a new name, so it emits a
rename instead of a drop + create.

String grammar (``old->new``), by number of dot-separated parts:
- ``folder1->folder2``: a schema (or role) rename
- ``public.users->public.users2``: a table, enum, sequence or view rename; a changed
  namespace is a move
- ``public.users2.test->public.users2.renamed``: a child rename (column,
  policy, index or constraint); the table path is the table's *new* name

Usage:
    from schema_differ.diff.hints import parse_rename_hints

    hints = parse_rename_hints(["public.users->public.accounts"])
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from schema_differ.errors import RenameHintError

ChildKind = Literal[
    "column", "policy", "index", "unique", "check", "foreign_key", "primary_key"
]

CHILD_KINDS: tuple[str, ...] = (
    "column",
    "policy",
    "index",
    "unique",
    "check",
    "foreign_key",
    "primary_key",
)


# ------------------------------------------------------------------
# Hint types
# ------------------------------------------------------------------


@dataclass(frozen=True)
class SchemaRename:
    """Rename of a namespace (or, when no schema matches, of a role)."""

    old: str
    new: str

    def __str__(self) -> str:
        return f"{self.old}->{self.new}"


@dataclass(frozen=True)
class TableRename:
    """Rename and/or move of a table, enum, sequence or view."""

    old_namespace: str
    old_name: str
    new_namespace: str
    new_name: str

    @property
    def old_key(self) -> str:
        return f"{self.old_namespace}.{self.old_name}"

    @property
    def new_key(self) -> str:
        return f"{self.new_namespace}.{self.new_name}"

    def __str__(self) -> str:
        return f"{self.old_key}->{self.new_key}"


@dataclass(frozen=True)
class ChildRename:
    """Rename of a table-scoped child.

    ``kind`` is resolved by the differ when left as None: the first kind in
    ``CHILD_KINDS`` whose old name exists in ``from`` and new name in ``to``.
    """

    namespace: str
    table: str
    old: str
    new: str
    kind: ChildKind | None = None

    @property
    def table_key(self) -> str:
        return f"{self.namespace}.{self.table}"

    def __str__(self) -> str:
        return f"{self.table_key}.{self.old}->{self.table_key}.{self.new}"


RenameHint = SchemaRename | TableRename | ChildRename


# ------------------------------------------------------------------
# Parsing
# ------------------------------------------------------------------


def parse_rename_hint(hint: str) -> RenameHint:
    """Parse one ``old->new`` hint string.

    Args:
        hint: The hint, e.g. ``"public.users->public.users2"``.

    Returns:
        The structured hint matching the number of path parts.

    Raises:
        RenameHintError: If the string has no ``->``, empty parts, or the two
            sides have different depths or (for child hints) different tables.

    Example:
        >>> hint = parse_rename_hint("public.users->auth.users")
        >>> hint.old_key, hint.new_key
        ('public.users', 'auth.users')
    """
    if hint.count("->") != 1:
        raise RenameHintError(f"Rename hint must look like 'old->new': {hint!r}")

    old, new = (side.strip() for side in hint.split("->"))
    old_parts = old.split(".")
    new_parts = new.split(".")

    if not all(old_parts) or not all(new_parts):
        raise RenameHintError(f"Rename hint has an empty name: {hint!r}")
    if len(old_parts) != len(new_parts):
        raise RenameHintError(
            f"Both sides of a rename hint need the same depth: {hint!r}"
        )

    depth = len(old_parts)
    if depth == 1:
        return SchemaRename(old=old, new=new)
    if depth == 2:
        return TableRename(
            old_namespace=old_parts[0],
            old_name=old_parts[1],
            new_namespace=new_parts[0],
            new_name=new_parts[1],
        )
    if depth == 3:
        if old_parts[:2] != new_parts[:2]:
            raise RenameHintError(
                f"Child rename hints must name the same table on both sides: {hint!r}"
            )
        return ChildRename(
            namespace=old_parts[0],
            table=old_parts[1],
            old=old_parts[2],
            new=new_parts[2],
        )
    raise RenameHintError(f"Rename hint has too many parts: {hint!r}")


def parse_rename_hints(hints: Iterable[str | RenameHint]) -> list[RenameHint]:
    """Parse hint strings, passing structured hints through unchanged."""
    parsed: list[RenameHint] = []
    for hint in hints:
        if isinstance(hint, str):
            parsed.append(parse_rename_hint(hint))
        elif isinstance(hint, (SchemaRename, TableRename, ChildRename)):
            parsed.append(hint)
        else:
            raise RenameHintError(f"Unsupported rename hint: {hint!r}")
    return parsed
