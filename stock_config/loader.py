"""
Configuration Loader (``stock_config.loader``).

Responsibility
--------------
Builds an ``EngineConfig`` from the packaged ``defaults.yaml``, an optional
operator YAML file layered on top, and environment overrides layered on top
of that.

Precedence (last wins)
----------------------
1. ``stock_config/defaults.yaml``
2. The file passed as ``path``, else the file named by ``STOCK_CONFIG_FILE``
3. Environment: ``DATABASE_URL`` (or ``DB_HOST``/``DB_PORT``/``DB_NAME``/
   ``DB_USER``/``DB_PASS`` assembled into a PostgreSQL URL),
   ``STOCK_BATCH_SIZE``, ``STOCK_BATCH_PAUSE_SECONDS``,
   ``STOCK_OVERSELL_POLICY``, ``STOCK_LOG_LEVEL``

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or unparsable environment values  -> ``ValueError``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml
from sqlalchemy.engine import URL

from stock_config.schema import EngineConfig
from stock_kernel.logging_config import get_logger

logger = get_logger("config.loader")

DEFAULTS_PATH = Path(__file__).with_name("defaults.yaml")

_KNOWN_KEYS = frozenset(f.name for f in fields(EngineConfig))

# env var -> (config key, parser)
_ENV_OVERRIDES: dict[str, tuple[str, Any]] = {
    "DATABASE_URL": ("database_url", str),
    "STOCK_BATCH_SIZE": ("batch_size", int),
    "STOCK_BATCH_PAUSE_SECONDS": ("batch_pause_seconds", float),
    "STOCK_OVERSELL_POLICY": ("oversell_policy", str),
    "STOCK_LOG_LEVEL": ("log_level", str),
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML mapping.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level, got {type(data).__name__}")
    return data


def _check_keys(data: Mapping[str, Any], source: str) -> None:
    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise ValueError(f"{source}: unknown configuration keys {unknown}")


def database_url_from_parts(env: Mapping[str, str]) -> str | None:
    """
    Assemble a PostgreSQL URL from DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASS.

    Returns None when DB_HOST is not set.
    """
    host = env.get("DB_HOST")
    if not host:
        return None
    port = env.get("DB_PORT")
    url = URL.create(
        "postgresql+psycopg2",
        username=env.get("DB_USER") or None,
        password=env.get("DB_PASS") or None,
        host=host,
        port=int(port) if port else None,
        database=env.get("DB_NAME") or None,
    )
    return url.render_as_string(hide_password=False)


def _env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}

    assembled = database_url_from_parts(env)
    if assembled is not None:
        overrides["database_url"] = assembled

    for var, (key, parse) in _ENV_OVERRIDES.items():
        raw = env.get(var)
        if raw is None or raw == "":
            continue
        try:
            overrides[key] = parse(raw)
        except ValueError:
            raise ValueError(f"{var}: cannot parse {raw!r} as {parse.__name__}") from None
    return overrides


def load_config(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> EngineConfig:
    """
    Load the engine configuration.

    Args:
        path: Operator YAML file; defaults to ``$STOCK_CONFIG_FILE`` if set.
        env: Environment mapping; defaults to ``os.environ``.

    Returns:
        A validated, frozen EngineConfig.
    """
    env = os.environ if env is None else env

    data = load_yaml_file(DEFAULTS_PATH)
    _check_keys(data, str(DEFAULTS_PATH))
    sources = [str(DEFAULTS_PATH)]

    if path is None and env.get("STOCK_CONFIG_FILE"):
        path = env["STOCK_CONFIG_FILE"]
    if path is not None:
        override_file = Path(path)
        file_data = load_yaml_file(override_file)
        _check_keys(file_data, str(override_file))
        data.update(file_data)
        sources.append(str(override_file))

    overrides = _env_overrides(env)
    data.update(overrides)

    config = EngineConfig(**data)
    logger.info(
        "config_loaded",
        extra={
            "sources": sources,
            "env_overrides": sorted(overrides),
            "batch_size": config.batch_size,
            "oversell_policy": config.oversell_policy.value,
        },
    )
    return config
