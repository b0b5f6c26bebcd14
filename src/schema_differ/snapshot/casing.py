"""Casing strategies applied to column names.

Usage:
    from schema_differ.snapshot.casing import apply_casing

    apply_casing("firstName", "snake_case")   # 'first_name'
    apply_casing("first_name", "camelCase")   # 'firstName'
"""

import re
from typing import Literal

CasingStrategy = Literal["snake_case", "camelCase"]

CASING_STRATEGIES: tuple[str, ...] = ("snake_case", "camelCase")

_WORD_PATTERN = re.compile(r"[\da-z]+|[A-Z]+(?![a-z])|[A-Z][\da-z]+")


def _words(name: str) -> list[str]:
    return _WORD_PATTERN.findall(name.replace("'", "").replace("’", ""))


def to_snake_case(name: str) -> str:
    """Convert an identifier to snake_case.

    Example:
        >>> to_snake_case("profileViews")
        'profile_views'
    """
    return "_".join(word.lower() for word in _words(name))


def to_camel_case(name: str) -> str:
    """Convert an identifier to camelCase.

    Example:
        >>> to_camel_case("profile_views")
        'profileViews'
    """
    result = ""
    for i, word in enumerate(_words(name)):
        result += word.lower() if i == 0 else word[0].upper() + word[1:]
    return result


def apply_casing(name: str, casing: str | None) -> str:
    """Return the final name of *name* under *casing* (None keeps it).

    Raises:
        ValueError: If *casing* is not a known strategy.
    """
    if casing is None:
        return name
    if casing == "snake_case":
        return to_snake_case(name)
    if casing == "camelCase":
        return to_camel_case(name)
    raise ValueError(
        f"Unknown casing '{casing}'. Expected one of: {', '.join(CASING_STRATEGIES)}"
    )
