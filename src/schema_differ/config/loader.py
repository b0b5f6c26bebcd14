"""Load differ configuration from differ.toml."""

import logging
import tomllib
from pathlib import Path

from pydantic import ValidationError

from schema_differ.config.models import DifferConfig, TargetProfile

logger = logging.getLogger(__name__)


def load_differ_config(config_path: Path | None = None) -> DifferConfig:
    """Load differ configuration from TOML file.

    Args:
        config_path: Path to differ.toml (default: ./differ.toml)

    Returns:
        DifferConfig with all target profiles

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config format is invalid
    """
    if config_path is None:
        config_path = Path.cwd() / "differ.toml"

    if not config_path.exists():
        raise FileNotFoundError(
            f"Differ config not found: {config_path}\n"
            f"Create differ.toml with a [profiles.<name>] table per target."
        )

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {config_path.name}: {e}") from e

    try:
        # Parse profiles
        profiles = {}
        for name, profile_data in data.get("profiles", {}).items():
            profiles[name] = TargetProfile(**profile_data)

        # Parse diff settings
        diff_settings = data.get("diff", {})

        config = DifferConfig(
            profiles=profiles,
            default_profile=diff_settings.get("default_profile"),
            validate_before_diff=diff_settings.get("validate_before_diff", True),
            rename_hints=diff_settings.get("rename_hints", []),
        )
    except (TypeError, ValidationError) as e:
        raise ValueError(f"Invalid differ config in {config_path.name}: {e}") from e

    if config.default_profile and config.default_profile not in config.profiles:
        raise ValueError(
            f"default_profile '{config.default_profile}' is not a configured profile"
        )

    logger.debug(f"Loaded {len(profiles)} profiles from {config_path}")
    return config
