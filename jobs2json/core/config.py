from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_POOL_SIZE: int = 10
DEFAULT_TIMEOUT: float = 30.0
DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8080
# connections kept per host, shared by every batch in flight
DEFAULT_MAX_CONNECTIONS: int = 40
DEFAULT_PARSER: str = "html.parser"

# environment variable -> config key
_ENV_KEYS: Dict[str, str] = {
    "J2J_POOL_SIZE": "pool_size",
    "J2J_TIMEOUT": "timeout",
    "J2J_SCHEMA_FILE": "schema_file",
    "J2J_PARSER": "parser",
    "J2J_HOST": "host",
    "J2J_PORT": "port",
    "J2J_SCHEMA_MERGE": "schema_merge",
    "J2J_MAX_CONNECTIONS": "max_connections",
}


@dataclass
class AppConfig:
    """Process-wide settings, read-only once the service starts."""

    pool_size: int = DEFAULT_POOL_SIZE
    max_connections: int = DEFAULT_MAX_CONNECTIONS
    timeout: Optional[float] = DEFAULT_TIMEOUT
    schema_file: Optional[str] = None
    # merge the schema file over the default job schema instead of replacing it
    schema_merge: bool = True
    parser: str = DEFAULT_PARSER
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


def load_config_file(path: Optional[str | Path]) -> Dict[str, Any]:
    """Load a YAML or JSON config file into a dict; a missing file yields ``{}``."""
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        return {}

    with p.open("r", encoding="utf-8") as f:
        if p.suffix.lower() in (".yml", ".yaml"):
            data = yaml.safe_load(f) or {}
        else:
            data = json.load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"config file {p} must contain a mapping")
    return data


def load_env() -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for env_name, key in _ENV_KEYS.items():
        v = os.getenv(env_name)
        if v is not None and v.strip() != "":
            out[key] = v.strip()
    return out


def merge_config(*layers: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Merge layers left to right; ``None`` values never override."""
    merged: Dict[str, Any] = {}
    for layer in layers:
        for k, v in (layer or {}).items():
            if v is not None:
                merged[k] = v
    return merged


def _parse_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _parse_timeout(value: Any) -> Optional[float]:
    if value is None:
        return DEFAULT_TIMEOUT
    if isinstance(value, str) and value.strip().lower() in {"none", "off"}:
        return None
    t = float(value)
    if t < 0:
        raise ValueError(f"timeout must be >= 0, got {t}")
    # 0 disables the transport timeout
    return t or None


def build_config(conf: Dict[str, Any]) -> AppConfig:
    """Validate a merged config dict into an :class:`AppConfig`."""
    try:
        pool_size = int(conf.get("pool_size", DEFAULT_POOL_SIZE))
        port = int(conf.get("port", DEFAULT_PORT))
        max_connections = int(conf.get("max_connections", DEFAULT_MAX_CONNECTIONS))
        timeout = _parse_timeout(conf.get("timeout"))
    except (TypeError, ValueError) as e:
        raise ValueError(f"invalid configuration value: {e}") from e
    if pool_size < 1:
        raise ValueError(f"pool_size must be >= 1, got {pool_size}")
    schema_file = conf.get("schema_file")
    return AppConfig(
        pool_size=pool_size,
        max_connections=max(pool_size, max_connections),
        timeout=timeout,
        schema_file=str(schema_file) if schema_file else None,
        schema_merge=_parse_bool(conf.get("schema_merge"), True),
        parser=str(conf.get("parser") or DEFAULT_PARSER),
        host=str(conf.get("host") or DEFAULT_HOST),
        port=port,
    )


def resolve_config(
    config_path: Optional[str | Path] = None, overrides: Optional[Dict[str, Any]] = None
) -> AppConfig:
    """File < environment < explicit overrides."""
    return build_config(merge_config(load_config_file(config_path), load_env(), overrides))
