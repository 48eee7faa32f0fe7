"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from enum import StrEnum
from typing import TYPE_CHECKING

from .errors import ConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Return the given environment variables or raise if any are missing/blank."""

    missing: list[str] = []
    values: dict[str, str] = {}
    for name in names:
        value = os.getenv(name)
        if value is None or not value.strip():
            missing.append(name)
            continue
        values[name] = value

    if missing:
        missing_list = ", ".join(sorted(missing))
        raise MissingConfigurationError(f"Missing configuration for: {missing_list}")

    return values


def optional_env(name: str) -> str | None:
    """Return a stripped environment variable, or ``None`` when unset or blank."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def env_bool(name: str, default: bool = False) -> bool:
    raw = optional_env(name)
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def env_int(name: str, default: int | None = None) -> int | None:
    raw = optional_env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def env_float(name: str, default: float) -> float:
    raw = optional_env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def env_enum[E: StrEnum](name: str, enum_type: type[E], default: E) -> E:
    raw = optional_env(name)
    if raw is None:
        return default
    return parse_enum(raw, enum_type, source=name)


def parse_enum[E: StrEnum](raw: str, enum_type: type[E], *, source: str) -> E:
    """Look up ``raw`` by value or member name, case-insensitively."""

    candidate = raw.strip()
    for member in enum_type:
        if candidate.upper() in {member.value.upper(), member.name}:
            return member
    choices = ", ".join(member.value for member in enum_type)
    raise ConfigurationError(f"{source} must be one of {choices}; got {raw!r}")
