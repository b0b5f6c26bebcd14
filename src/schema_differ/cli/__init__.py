"""CLI module for snapshot validation and migration generation.

Works offline on JSON snapshot files; nothing connects to a database.

Usage:
    schema-differ diff before.json after.json
    schema-differ diff before.json after.json --rename public.users->public.accounts
    schema-differ diff before.json after.json --dialect mysql --json
    schema-differ validate after.json --casing snake_case
    schema-differ dialects
    schema-differ profiles

Commands:
    diff      - Print the SQL that turns one snapshot into another
    validate  - Check a snapshot for structural errors
    dialects  - List supported SQL dialects
    profiles  - List target profiles from differ.toml
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from schema_differ.config.loader import load_differ_config
from schema_differ.config.models import DifferConfig, TargetProfile
from schema_differ.dialects import DIALECTS
from schema_differ.errors import SchemaDiffError
from schema_differ.migration import generate_migration
from schema_differ.snapshot.loader import load_snapshot
from schema_differ.validation import ValidationResult, validate

console = Console()


# ============================================================================
# Helpers
# ============================================================================


def _load_config(config_path: str | None) -> DifferConfig | None:
    """Load differ.toml if given or present in the working directory.

    Raises:
        FileNotFoundError: If an explicit *config_path* does not exist.
        ValueError: If the config is invalid.
    """
    if config_path is not None:
        return load_differ_config(Path(config_path))
    if (Path.cwd() / "differ.toml").exists():
        return load_differ_config()
    return None


def _resolve_target(
    args: argparse.Namespace, config: DifferConfig | None
) -> TargetProfile:
    """Pick the dialect and casing from --dialect, --profile or the config."""
    if args.profile and config is None:
        raise KeyError(f"Profile '{args.profile}' requested but no differ.toml found")
    profile = config.get_profile(args.profile) if config else TargetProfile()
    if args.dialect:
        profile = profile.model_copy(update={"dialect": args.dialect})
    return profile


def _print_findings(label: str, result: ValidationResult) -> None:
    table = Table(
        title=f"{label}: validation errors", show_header=True, header_style="bold"
    )
    table.add_column("Code", style="dim")
    table.add_column("Message")
    for code, message in zip(result.codes, result.messages):
        table.add_row(code.value, escape(message))
    console.print(table)


# ============================================================================
# Command implementations
# ============================================================================


def cmd_diff(args: argparse.Namespace) -> int:
    """Print the migration between two snapshot files.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 on success, 1 on validation findings or any differ error.
    """
    try:
        config = _load_config(args.config)
        target = _resolve_target(args, config)
        old = load_snapshot(args.from_snapshot)
        new = load_snapshot(args.to_snapshot)
    except (FileNotFoundError, ValueError, KeyError, ValidationError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    check = config.validate_before_diff if config else True
    if check and not args.no_validate:
        failed = False
        for label, snapshot in (("from", old), ("to", new)):
            result = validate(snapshot, casing=target.casing)
            if not result.valid:
                _print_findings(label, result)
                failed = True
        if failed:
            console.print("[dim]Fix the snapshots or pass --no-validate.[/dim]")
            return 1

    hints = [*(config.rename_hints if config else []), *args.rename]
    try:
        result = generate_migration(old, new, hints, dialect=target.dialect)
    except SchemaDiffError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    if args.json:
        payload = result.model_dump(mode="json", by_alias=True)
        print(json.dumps(payload, indent=2))
        return 0

    if result.is_empty:
        console.print("[bold green]v[/bold green] No changes")
        return 0

    for sql in result.sql_statements:
        # Plain print: rich would treat [brackets] in MSSQL output as markup
        print(sql.rstrip("\n"))
    console.print(
        f"\n[dim]{len(result.sql_statements)} statements ({target.dialect})[/dim]"
    )
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate one snapshot file.

    Args:
        args: Parsed CLI arguments.

    Returns:
        0 when the snapshot is valid, 1 otherwise.
    """
    try:
        snapshot = load_snapshot(args.snapshot)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    result = validate(snapshot, casing=args.casing)
    if result.valid:
        console.print("[bold green]v[/bold green] Schema valid")
        return 0

    _print_findings(args.snapshot, result)
    console.print(f"\n[bold red]x[/bold red] Found {result.error_count} error(s)")
    return 1


def cmd_dialects(args: argparse.Namespace) -> int:
    """List registered dialects.

    Returns:
        0 always (informational command).
    """
    table = Table(title="Dialects", show_header=True, header_style="bold")
    table.add_column("Dialect")
    table.add_column("Quoting")
    table.add_column("Fuses ADD COLUMN")

    for name, rules in DIALECTS.items():
        table.add_row(
            f"[cyan]{name}[/cyan]",
            escape(rules.quote("name")),
            "yes" if rules.can_fuse else "no",
        )

    console.print(table)
    return 0


def cmd_profiles(args: argparse.Namespace) -> int:
    """List target profiles from differ.toml.

    Returns:
        0 on success, 1 if differ.toml is missing or invalid.
    """
    try:
        config = load_differ_config(Path(args.config) if args.config else None)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    table = Table(title="Target Profiles", show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Profile")
    table.add_column("Dialect")
    table.add_column("Casing")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        is_default = name == config.default_profile
        table.add_row(
            "[bold green]*[/bold green]" if is_default else " ",
            f"[bold cyan]{name}[/bold cyan]" if is_default else name,
            profile.dialect,
            profile.casing or "",
            profile.description,
        )

    console.print(table)
    if config.default_profile:
        console.print("\n[bold green]*[/bold green] = default profile")
    return 0


# ============================================================================
# Main entry point
# ============================================================================


def main() -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="schema-differ",
        description="Diff database snapshots into ordered DDL migrations",
    )

    # Global option: --verbose
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log differ and planner decisions",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # diff command
    p_diff = subparsers.add_parser(
        "diff",
        help="Print the SQL that turns one snapshot into another",
    )
    p_diff.add_argument("from_snapshot", help="Snapshot JSON of the current structure")
    p_diff.add_argument("to_snapshot", help="Snapshot JSON of the desired structure")
    p_diff.add_argument(
        "--rename",
        action="append",
        default=[],
        metavar="OLD->NEW",
        help="Rename hint, e.g. public.users->public.accounts (repeatable)",
    )
    target = p_diff.add_mutually_exclusive_group()
    target.add_argument(
        "--dialect",
        choices=sorted(DIALECTS),
        help="SQL dialect to render (default: postgresql or the profile's)",
    )
    target.add_argument(
        "--profile",
        help="Target profile from differ.toml",
    )
    p_diff.add_argument(
        "--json",
        action="store_true",
        help="Print planned entries and SQL as JSON",
    )
    p_diff.add_argument(
        "--config",
        help="Path to differ.toml (default: ./differ.toml if present)",
    )
    p_diff.add_argument(
        "--no-validate",
        action="store_true",
        help="Skip snapshot validation before diffing",
    )
    p_diff.set_defaults(func=cmd_diff)

    # validate command
    p_validate = subparsers.add_parser(
        "validate",
        help="Check a snapshot for structural errors",
    )
    p_validate.add_argument("snapshot", help="Snapshot JSON file")
    p_validate.add_argument(
        "--casing",
        choices=["snake_case", "camelCase"],
        help="Casing applied to column names before checking collisions",
    )
    p_validate.set_defaults(func=cmd_validate)

    # dialects command
    p_dialects = subparsers.add_parser(
        "dialects",
        help="List supported SQL dialects",
    )
    p_dialects.set_defaults(func=cmd_dialects)

    # profiles command
    p_profiles = subparsers.add_parser(
        "profiles",
        help="List target profiles from differ.toml",
    )
    p_profiles.add_argument("--config", help="Path to differ.toml")
    p_profiles.set_defaults(func=cmd_profiles)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
