"""Shared helpers for routes, services and configuration."""
from os import getenv

TRUTHY = frozenset({"1", "true", "t", "yes", "y", "on"})


def env_bool(key: str, default: bool = False) -> bool:
    raw = getenv(key)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in TRUTHY
