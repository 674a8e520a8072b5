"""Logging configuration setup."""

import copy
import logging
import logging.config
import os
import re
import sys
from datetime import datetime
from typing import Optional, Set, Tuple  # noqa: UP035

from rpc_sentinel.constants import DEFAULT_LOG_LEVEL

# ── Secret redaction filter ──────────────────────────────────────────────

_REDACTED = "***REDACTED***"
_TRACEBACK_FORMATTER = logging.Formatter()


class SecretRedactionFilter(logging.Filter):
    """Logging filter that replaces registered secret values with a placeholder.

    RPC provider URLs often embed API keys; values expanded from ``${ENV_VAR}``
    placeholders in the config are registered here by the loader.
    """

    def __init__(self) -> None:
        super().__init__()
        self._secrets: Set[str] = set()
        self._pattern: re.Pattern[str] | None = None

    def register(self, value: str) -> None:
        """Register a secret value for redaction."""
        if value and len(value) >= 4:  # skip trivially short values
            self._secrets.add(value)
            # Longest first so overlapping secrets are fully masked
            escaped = sorted((re.escape(s) for s in self._secrets), key=len, reverse=True)
            self._pattern = re.compile("|".join(escaped))

    def redact(self, text: str) -> str:
        if self._pattern is None:
            return text
        return self._pattern.sub(_REDACTED, text)

    def _redact_arg(self, arg: object) -> object:
        # Probe errors carry the endpoint URL in their message
        if isinstance(arg, str):
            return self.redact(arg)
        if isinstance(arg, BaseException):
            return self.redact(str(arg))
        return arg

    def filter(self, record: logging.LogRecord) -> bool:
        if self._pattern is not None:
            if isinstance(record.msg, str):
                record.msg = self.redact(record.msg)
            if record.args:
                if isinstance(record.args, dict):
                    record.args = {k: self._redact_arg(v) for k, v in record.args.items()}
                elif isinstance(record.args, tuple):
                    record.args = tuple(self._redact_arg(a) for a in record.args)
            # Render the traceback now so handlers emit the redacted text only.
            if record.exc_info:
                if not record.exc_text:
                    record.exc_text = _TRACEBACK_FORMATTER.formatException(record.exc_info)
                record.exc_info = None
            if record.exc_text:
                record.exc_text = self.redact(record.exc_text)
            if record.stack_info:
                record.stack_info = self.redact(record.stack_info)
        return True


# Module-level singleton so the config loader can register values at load time.
secret_redaction_filter = SecretRedactionFilter()

_FORMAT = "%(asctime)s - %(name)25s:%(lineno)-4d - %(levelname)-7s - %(message)s"

# Default level per logger; rpc_sentinel and uvicorn follow --log-level.
_LOGGER_LEVELS = {
    "rpc_sentinel": "INFO",
    "uvicorn": "INFO",
    "uvicorn.error": "INFO",
    "uvicorn.access": "WARNING",
    "httpx": "WARNING",
    "httpcore": "WARNING",
}

BASE_LOG_CFG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": _FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
    },
    "handlers": {
        "console_handler": {
            "class": "logging.StreamHandler",
            "level": "DEBUG",
            "formatter": "simple",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        name: {"handlers": ["console_handler"], "propagate": False, "level": level}
        for name, level in _LOGGER_LEVELS.items()
    },
    "root": {"handlers": ["console_handler"], "level": "WARNING"},
}


def setup_logging(
    log_lvl_str: str = DEFAULT_LOG_LEVEL,
    *,
    log_dir: Optional[str] = None,
) -> Tuple[Optional[str], str]:
    """
    Set up the logging system.

    Always logs to stdout; when *log_dir* is given a timestamped log file is
    written there as well.

    Args:
        log_lvl_str: The desired log level string (e.g., 'debug', 'info').
        log_dir: Optional directory for a file log.

    Returns:
        A tuple of (log_file_path or None, validated_log_level).
    """
    log_lvl_valid = log_lvl_str.upper()
    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if log_lvl_valid not in valid_levels:
        print(f"Warning: invalid log level '{log_lvl_str}'. Using 'INFO'.")
        log_lvl_valid = "INFO"

    log_cfg: dict = copy.deepcopy(BASE_LOG_CFG)

    log_fpath: Optional[str] = None
    if log_dir:
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        os.makedirs(log_dir, exist_ok=True)
        log_fpath = os.path.join(log_dir, f"rpc_sentinel_{ts}_{log_lvl_valid}.log")
        log_cfg["handlers"]["file_handler"] = {
            "class": "logging.FileHandler",
            "level": "DEBUG",
            "formatter": "simple",
            "filename": log_fpath,
            "encoding": "utf-8",
        }
        for logger_cfg in log_cfg["loggers"].values():
            logger_cfg["handlers"].append("file_handler")
        log_cfg["root"]["handlers"].append("file_handler")

    for name in ("rpc_sentinel", "uvicorn", "uvicorn.error"):
        log_cfg["loggers"][name]["level"] = log_lvl_valid

    if log_lvl_valid == "DEBUG":
        log_cfg["loggers"]["uvicorn.access"]["level"] = "INFO"
        log_cfg["loggers"]["httpx"]["level"] = "DEBUG"
        log_cfg["root"]["level"] = "DEBUG"

    try:
        logging.config.dictConfig(log_cfg)
        # Attach secret redaction filter to every configured handler
        for handler in logging.getLogger("rpc_sentinel").handlers + logging.root.handlers:
            if secret_redaction_filter not in handler.filters:
                handler.addFilter(secret_redaction_filter)
    except (ValueError, TypeError, AttributeError, ImportError, OSError) as e_log_cfg:
        print(
            f"Error applying logging configuration: {e_log_cfg}",
            file=sys.stderr,
        )

    return log_fpath, log_lvl_valid
