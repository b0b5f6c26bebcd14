"""Dialect renderers and their registry.

Usage:
    from schema_differ.dialects import get_dialect, render

    rules = get_dialect("postgresql")
    sql = render("postgresql", entry)
"""

from schema_differ.diff.statements import PlannedEntry
from schema_differ.dialects.base import DialectRules
from schema_differ.dialects.mssql import MssqlRules
from schema_differ.dialects.mysql import MySqlRules, SingleStoreRules
from schema_differ.dialects.postgres import GelRules, PostgresRules
from schema_differ.dialects.sqlite import SqliteRules
from schema_differ.errors import UnknownDialectError

DIALECTS: dict[str, DialectRules] = {
    rules.name: rules
    for rules in (
        PostgresRules(),
        GelRules(),
        MySqlRules(),
        SingleStoreRules(),
        SqliteRules(),
        MssqlRules(),
    )
}


def get_dialect(name: str) -> DialectRules:
    """Look up the rules registered under *name*.

    Raises:
        UnknownDialectError: If no dialect has that name.
    """
    try:
        return DIALECTS[name]
    except KeyError:
        raise UnknownDialectError(name, sorted(DIALECTS)) from None


def render(dialect: str | DialectRules, entry: PlannedEntry) -> str:
    """Render one planned entry in *dialect* (a name or a rules instance)."""
    rules = get_dialect(dialect) if isinstance(dialect, str) else dialect
    return rules.render(entry)


__all__ = [
    "DIALECTS",
    "get_dialect",
    "render",
    "DialectRules",
    "PostgresRules",
    "GelRules",
    "MySqlRules",
    "SingleStoreRules",
    "SqliteRules",
    "MssqlRules",
]
