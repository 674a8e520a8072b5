"""Environment variable expansion for configuration values.

Handles ``${VAR}`` environment variable expansion in string values.
"""

from __future__ import annotations

import os
import re
from typing import Any, Callable, Optional

# Regex for ${VAR_NAME} — captures the variable name inside ${}
_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")


def expand_env_vars(value: Any, on_expand: Optional[Callable[[str], None]] = None) -> Any:
    """Recursively expand ``${VAR}`` references in string values.

    - If the env var is not set, the placeholder is left unchanged.
    - Non-string leaves are returned as-is.
    - Dicts and lists are walked recursively.
    - *on_expand* is called with every substituted value (used to register
      API keys embedded in RPC URLs for log redaction).
    """
    if isinstance(value, str):

        def _sub(m: re.Match[str]) -> str:
            resolved = os.environ.get(m.group(1))
            if resolved is None:
                return m.group(0)
            if on_expand is not None:
                on_expand(resolved)
            return resolved

        return _ENV_VAR_RE.sub(_sub, value)
    if isinstance(value, dict):
        return {k: expand_env_vars(v, on_expand) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(item, on_expand) for item in value]
    return value
