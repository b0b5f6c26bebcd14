"""Pydantic models for differ configuration."""

from pydantic import BaseModel, Field, field_validator

from schema_differ.snapshot.casing import CASING_STRATEGIES


class TargetProfile(BaseModel):
    """A migration target from differ.toml."""

    dialect: str = "postgresql"
    description: str = ""
    casing: str | None = None  # Applied by the validator before diffing

    @field_validator("casing")
    @classmethod
    def _known_casing(cls, value: str | None) -> str | None:
        if value is not None and value not in CASING_STRATEGIES:
            raise ValueError(
                f"casing must be one of {', '.join(CASING_STRATEGIES)}, got '{value}'"
            )
        return value


class DifferConfig(BaseModel):
    """Complete differ configuration from differ.toml."""

    profiles: dict[str, TargetProfile] = Field(default_factory=dict)
    default_profile: str | None = None
    validate_before_diff: bool = True
    rename_hints: list[str] = Field(default_factory=list)

    def get_profile(self, name: str | None = None) -> TargetProfile:
        """Return profile *name*, or the default profile when omitted.

        With no name and no configured default, a lone profile is used;
        otherwise a plain PostgreSQL profile is returned.

        Raises:
            KeyError: If the named (or default) profile does not exist.
        """
        name = name or self.default_profile
        if name is None:
            if len(self.profiles) == 1:
                return next(iter(self.profiles.values()))
            return TargetProfile()
        if name not in self.profiles:
            available = ", ".join(self.profiles) or "(none)"
            raise KeyError(f"Profile '{name}' not found. Available: {available}")
        return self.profiles[name]
