"""Helpers for loading settings from .env/.env.defaults.

Lookup order for a key:
- the process environment
- `.env` (local override layer, never committed)
- `.env.defaults` (catalog + default values)

Both files are searched in the project root and in the current working
directory, so suites behave the same whether pytest is started from the
repository root or from a subdirectory.
"""
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Dict

from api_test_kit.errors import ConfigError


@lru_cache(maxsize=1)
def load_defaults() -> Dict[str, str]:
    """Load key/value defaults from `.env.defaults`, then overlay `.env`.

    Returns empty dict if neither file exists (e.g. in CI where all
    config is supplied via environment variables).
    """
    dirs: list[Path] = []
    repo_root = Path(__file__).resolve().parent.parent.parent
    dirs.append(repo_root)

    # Path.cwd() raises if the working directory was deleted.
    try:
        cwd = Path.cwd()
        if cwd.resolve() != repo_root.resolve():
            dirs.append(cwd)
    except (OSError, FileNotFoundError):
        pass

    merged: Dict[str, str] = {}

    for directory in dirs:
        defaults_path = directory / ".env.defaults"
        if defaults_path.exists():
            merged.update(_parse_env_file(defaults_path))

    for directory in dirs:
        env_path = directory / ".env"
        if env_path.exists():
            merged.update(_parse_env_file(env_path))

    return merged


def get_default(key: str, fallback: str | None = None) -> str | None:
    """Return the file-configured default for a key (or fallback)."""
    return load_defaults().get(key, fallback)


def get_setting(key: str, fallback: str | None = None) -> str | None:
    """Return a setting, preferring the environment over the .env files."""
    value = os.getenv(key)
    if value:
        return value
    return get_default(key, fallback)


def require_setting(key: str) -> str:
    """Return a setting or raise if it is configured nowhere."""
    value = get_setting(key)
    if not value:
        raise ConfigError(
            f"Required setting '{key}' missing from environment and .env/.env.defaults"
        )
    return value


def _parse_env_file(env_path: Path) -> Dict[str, str]:
    defaults: Dict[str, str] = {}
    with env_path.open("r", encoding="utf-8") as handle:
        for line in handle:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("export "):
                line = line[len("export "):].lstrip()
            if "=" not in line:
                continue
            key, value = line.split("=", 1)
            value = value.strip()
            # Strip surrounding quotes (single or double)
            if len(value) >= 2 and value[0] in ('"', "'") and value[-1] == value[0]:
                value = value[1:-1]
            defaults[key.strip()] = value
    return defaults
