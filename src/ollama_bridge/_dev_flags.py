"""Internal helpers for development-time feature flags.

Centralizes how opt-in debugging toggles are read from the environment so
their semantics stay consistent across modules.
"""

from __future__ import annotations

import os

__all__ = ["PAYLOAD_LOGGING_ENV_VAR", "dev_payload_logging_enabled"]

PAYLOAD_LOGGING_ENV_VAR = "OLLAMA_BRIDGE_DEBUG_PAYLOADS"


def dev_payload_logging_enabled(*, override: bool | None = None) -> bool:
    """Return True when outbound request bodies should be logged at DEBUG.

    - If ``override`` is provided, it takes precedence.
    - Otherwise, returns True when ``OLLAMA_BRIDGE_DEBUG_PAYLOADS`` is
      exactly ``"1"``.
    """
    if override is not None:
        return bool(override)
    return os.getenv(PAYLOAD_LOGGING_ENV_VAR) == "1"
