"""Differ configuration (differ.toml).

Usage:
    from schema_differ.config import load_differ_config

    config = load_differ_config()
    profile = config.get_profile("local")
"""

from schema_differ.config.loader import load_differ_config
from schema_differ.config.models import DifferConfig, TargetProfile

__all__ = ["load_differ_config", "DifferConfig", "TargetProfile"]
