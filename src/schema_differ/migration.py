"""One-call migration generation: diff, plan and render.

Usage:
    from schema_differ import generate_migration

    result = generate_migration(old, new, ["public.users->public.accounts"])
    for sql in result.sql_statements:
        print(sql)
"""

import logging
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from schema_differ.dialects import DialectRules, get_dialect
from schema_differ.diff.differ import diff
from schema_differ.diff.hints import RenameHint
from schema_differ.diff.planner import plan
from schema_differ.diff.statements import PlannedEntry
from schema_differ.snapshot.models import Snapshot

logger = logging.getLogger(__name__)


class DiffResult(BaseModel):
    """Planned entries and the SQL rendered from them.

    ``sql_statements`` serializes as ``sqlStatements``. A single entry may
    render to several statements (an enum recreate does), so the two lists
    need not have the same length.
    """

    model_config = ConfigDict(populate_by_name=True)

    statements: list[PlannedEntry] = Field(default_factory=list)
    sql_statements: list[str] = Field(default_factory=list, alias="sqlStatements")

    @property
    def is_empty(self) -> bool:
        return not self.statements


def generate_migration(
    from_snapshot: Snapshot,
    to_snapshot: Snapshot,
    rename_hints: Iterable[str | RenameHint] = (),
    dialect: str | DialectRules = "postgresql",
) -> DiffResult:
    """Compute the ordered SQL that turns *from_snapshot* into *to_snapshot*.

    Args:
        from_snapshot: The current structure.
        to_snapshot: The desired structure.
        rename_hints: ``"old->new"`` strings or parsed rename hints.
        dialect: Dialect name (see ``schema_differ.dialects.DIALECTS``) or a
            rules instance.

    Returns:
        DiffResult with the planned entries and their SQL.

    Raises:
        RenameHintError: If a hint is malformed or does not match.
        DiffError: If a snapshot breaks a differ invariant.
        UnknownDialectError: If *dialect* is not registered.
        UnsupportedStatementError: If the dialect cannot express an entry.

    Example:
        >>> from schema_differ.snapshot import Snapshot
        >>> generate_migration(Snapshot(), Snapshot(schemas=["auth"])).sql_statements
        ['CREATE SCHEMA "auth";\\n']
    """
    rules = get_dialect(dialect) if isinstance(dialect, str) else dialect

    planned = plan(diff(from_snapshot, to_snapshot, rename_hints), rules=rules)
    sql_statements = []
    for entry in planned:
        sql_statements.extend(rules.render_all(entry))

    logger.info(
        f"Generated {len(sql_statements)} {rules.name} statements "
        f"from {len(planned)} entries"
    )
    return DiffResult(statements=planned, sql_statements=sql_statements)
