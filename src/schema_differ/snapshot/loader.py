"""Load snapshots from JSON files."""

import json
from pathlib import Path

from schema_differ.snapshot.models import Snapshot


def load_snapshot(path: str | Path) -> Snapshot:
    """Load a snapshot from a JSON file.

    Args:
        path: Path to a JSON document shaped like ``Snapshot``.

    Returns:
        The validated, immutable Snapshot.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not valid JSON
        pydantic.ValidationError: If the JSON does not describe a snapshot
    """
    snapshot_path = Path(path)
    if not snapshot_path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {snapshot_path}")

    try:
        data = json.loads(snapshot_path.read_text())
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {snapshot_path.name}: {e}") from e

    return Snapshot.model_validate(data)


def dump_snapshot(snapshot: Snapshot, path: str | Path) -> None:
    """Write *snapshot* as JSON, using the same field names ``load_snapshot`` reads."""
    Path(path).write_text(
        json.dumps(snapshot.model_dump(mode="json", by_alias=True), indent=2) + "\n"
    )
