"""
config.py

Responsibility: Load the optional YAML configuration file into a deterministic, typed model.

The file is a flat mapping; every key is optional and falls back to the defaults below.
CLI flags are applied on top via `Config.with_overrides`.
"""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_FILE = "vanity.yml"
TOKEN_ENV_VAR = "GITHUB_TOKEN"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Config:
    """Build settings: whose repositories to list and how to turn them into pages."""

    user: str = "astrophena"
    module_prefix: str = "go.astrophena.name"
    self_repo: str = "vanity"
    api_base: str = "https://api.github.com"
    manifest: str = "go.mod"
    highlight_theme: str = "native"
    skip_forks: bool = True
    shallow_clone: bool = True
    package_pages: bool = True
    generate_docs: bool = True
    doc2go: tuple[str, ...] = field(default=("go", "run", "go.abhg.dev/doc2go@latest"))

    def with_overrides(self, **overrides: Any) -> Config:
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _check_type(key: str, value: Any, expected: type) -> None:
    if not isinstance(value, expected):
        raise ConfigError(f"`{key}` must be a {expected.__name__}, got {type(value).__name__}")


def _coerce(data: dict[str, Any]) -> dict[str, Any]:
    known = {f.name: f for f in fields(Config)}
    out: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            raise ConfigError(f"Unknown configuration key: `{key}`")
        default = known[key].default
        if key == "doc2go":
            if isinstance(value, str):
                value = shlex.split(value)
            if not isinstance(value, list) or not value or not all(isinstance(v, str) for v in value):
                raise ConfigError("`doc2go` must be a non-empty command string or list of strings")
            out[key] = tuple(value)
            continue
        _check_type(key, value, type(default))
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ConfigError(f"`{key}` must not be empty")
        out[key] = value

    if "module_prefix" in out:
        out["module_prefix"] = out["module_prefix"].rstrip("/")
    if "api_base" in out:
        out["api_base"] = out["api_base"].rstrip("/")
    return out


def load_config(config_path: str | Path | None = None) -> Config:
    """
    Load a `Config` from YAML.

    With no explicit path, `vanity.yml` in the working directory is used if it exists,
    otherwise defaults apply. An explicit path that does not exist is an error.
    """
    if config_path is None:
        path = Path(DEFAULT_CONFIG_FILE)
        if not path.exists():
            return Config()
    else:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file does not exist: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file is not valid YAML: {path}") from e
    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a mapping at the top level.")

    return Config(**_coerce(data))


def require_token(env: dict[str, str] | None = None) -> str:
    """Return the GitHub token from the environment, or fail."""
    environ = os.environ if env is None else env
    token = environ.get(TOKEN_ENV_VAR, "").strip()
    if not token:
        raise ConfigError(f"set {TOKEN_ENV_VAR} environment variable")
    return token
