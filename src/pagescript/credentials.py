"""Secret resolution for instruction parameters."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

import yaml

from pagescript.config import PageScriptConfigError

SECRET_PREFIX = "env:"


def resolve_secret(
    value: str,
    project_dir: Path | None = None,
    secrets: Mapping[str, str] | None = None,
) -> str:
    """Resolve an ``env:NAME`` reference to its secret value.

    Values without the prefix are returned unchanged, so instructions may carry
    literal credentials or references interchangeably.

    Resolution order (highest priority first):
    1. NAME environment variable
    2. .env file in current directory
    3. ``secrets`` mapping of the loaded config, when given
    4. Project config on disk (.pagescript/config.yaml, ``secrets:`` mapping)
    """
    if not value.startswith(SECRET_PREFIX):
        return value

    name = value[len(SECRET_PREFIX):].strip()
    if not name:
        raise PageScriptConfigError("Empty secret reference: 'env:' must be followed by a variable name")

    # 1. Environment variable
    if secret := os.environ.get(name):
        return secret

    # 2. .env file
    env_path = Path(".env")
    if env_path.exists():
        secret = _parse_env_file(env_path, name)
        if secret:
            return secret

    # 3. Loaded config
    if secrets and (secret := secrets.get(name)):
        return secret

    # 4. Project config on disk
    if project_dir:
        config_path = project_dir / "config.yaml"
        if config_path.exists():
            secret = _parse_yaml_secret(config_path, name)
            if secret:
                return secret

    raise PageScriptConfigError(
        f"{name} not set\n\n"
        f"The instruction references the secret '{value}'.\n\n"
        "To fix:\n"
        f"  export {name}=...\n"
        f"  or add '{name}' under 'secrets:' in .pagescript/config.yaml"
    )


def mask_secret(secret: str) -> str:
    """Mask a secret for display. Shows the first and last char only."""
    if len(secret) <= 4:
        return "***"
    return f"{secret[0]}***{secret[-1]}"


def _parse_env_file(path: Path, key_name: str) -> str | None:
    """Parse a .env file for a specific key."""
    try:
        with open(path) as f:
            for line in f:
                line = line.strip()
                if line.startswith("#") or "=" not in line:
                    continue
                k, _, v = line.partition("=")
                if k.strip() == key_name:
                    return v.strip().strip("'\"")
    except OSError:
        pass
    return None


def _parse_yaml_secret(path: Path, key_name: str) -> str | None:
    """Parse a YAML config file for a named secret."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        secrets = data.get("secrets") or {}
        if isinstance(secrets, dict) and secrets.get(key_name):
            return str(secrets[key_name])
    except (OSError, yaml.YAMLError, AttributeError):
        pass
    return None
