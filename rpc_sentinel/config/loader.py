"""Configuration file loading and validation.

Loads a YAML configuration file, expands ``${ENV_VAR}`` placeholders,
and validates against the Pydantic models defined in :mod:`schema`.
"""

import logging
import os
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from rpc_sentinel.config.migration import expand_env_vars
from rpc_sentinel.config.schema import SentinelConfig
from rpc_sentinel.constants import CONFIG_ENV_VAR
from rpc_sentinel.display.logging_config import secret_redaction_filter
from rpc_sentinel.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Recognised config file extensions.
_YAML_EXTS = frozenset({".yaml", ".yml"})

# Config file search order (first match wins)
_CONFIG_SEARCH_ORDER = ("config.yaml", "config.yml")


def _read_config_file(cfg_fpath: str) -> Dict[str, Any]:
    """Read and parse a YAML config file from *cfg_fpath*.

    Raises :class:`ConfigurationError` on I/O or parse errors.
    """
    ext = os.path.splitext(cfg_fpath)[1].lower()
    if ext not in _YAML_EXTS:
        raise ConfigurationError(
            f"Unsupported config file extension '{ext}'. "
            "Only YAML files (.yaml, .yml) are supported."
        )

    try:
        with open(cfg_fpath, "r", encoding="utf-8") as f:
            raw_data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Error reading configuration file: {cfg_fpath}\n  {exc}") from exc

    if not isinstance(raw_data, dict):
        raise ConfigurationError(
            "Top-level configuration content must be a YAML mapping (dictionary)."
        )
    return raw_data


def _format_validation_errors(exc: ValidationError) -> str:
    """Format Pydantic validation errors into a readable multi-line string."""
    lines: List[str] = []
    for err in exc.errors():
        loc = " → ".join(str(part) for part in err["loc"]) or "(root)"
        lines.append(f"  • {loc}: {err['msg']}")
    return "\n".join(lines)


def validate_config(raw_data: Dict[str, Any]) -> SentinelConfig:
    """Expand env vars in *raw_data* and validate it (all errors reported at once)."""
    raw_data = expand_env_vars(raw_data, on_expand=secret_redaction_filter.register)
    try:
        return SentinelConfig.model_validate(raw_data)
    except ValidationError as exc:
        error_summary = _format_validation_errors(exc)
        raise ConfigurationError(
            f"Configuration validation failed ({len(exc.errors())} error(s)):\n{error_summary}"
        ) from exc


def load_config(cfg_fpath: str) -> SentinelConfig:
    """Load, expand, validate, and return the configuration.

    Steps:
        1. Read YAML file
        2. Expand ``${VAR}`` environment variable references
        3. Validate against :class:`SentinelConfig` (Pydantic)

    Raises:
        ConfigurationError: On file I/O errors, parse errors, or
            validation failures.
    """
    logger.debug("Loading configuration file: %s", cfg_fpath)

    if not os.path.exists(cfg_fpath):
        raise ConfigurationError(f"Configuration file does not exist: {cfg_fpath}")

    config = validate_config(_read_config_file(cfg_fpath))

    logger.info(
        "Configuration '%s' loaded. %d endpoint(s), interval=%dm, method=%s.",
        cfg_fpath,
        len(config.endpoints),
        config.interval,
        config.method,
    )
    return config


def resolve_config_path(config_path: Optional[str] = None) -> str:
    """Resolve the config path: explicit argument → env var → auto-detect in CWD.

    Falls back to ``CWD/config.yaml`` if nothing exists (loader will error).
    """
    if config_path:
        return os.path.abspath(config_path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return os.path.abspath(env_path)
    for name in _CONFIG_SEARCH_ORDER:
        candidate = os.path.join(os.getcwd(), name)
        if os.path.isfile(candidate):
            return candidate
    return os.path.join(os.getcwd(), _CONFIG_SEARCH_ORDER[0])
