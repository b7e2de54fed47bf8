"""Shared constants and environment-driven configuration for the value stack."""

from __future__ import annotations

import os
from dataclasses import dataclass


DEFAULT_SHORT_TYPE_DELAY_MS = 50
DEFAULT_CHUNK_TYPE_DELAY_MS = 35
DEFAULT_RETRY_TYPE_DELAY_MS = 50
DEFAULT_LONG_TEXT_THRESHOLD = 100
DEFAULT_CHUNK_SIZE = 80
DEFAULT_CHUNK_DELAY_MS = 250
DEFAULT_CHUNK_RETRY_DELAY_MS = 500
DEFAULT_INPUT_EVENT_INTERVAL = 3
DEFAULT_SCROLL_SETTLE_MS = 100
DEFAULT_KEYBOARD_OPERATION_DELAY_MS = 50
MAX_CHUNK_DELAY_MS = 400


def _parse_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    text = raw.strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_int_env(name: str, default: int, minimum: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return max(minimum, int(default))
    try:
        parsed = int(raw.strip())
    except Exception:
        return max(minimum, int(default))
    return max(minimum, parsed)


@dataclass(frozen=True)
class ValueStackConfig:
    """Pacing knobs for the executor plus dispatcher behaviour switches."""

    short_type_delay_ms: int = DEFAULT_SHORT_TYPE_DELAY_MS
    chunk_type_delay_ms: int = DEFAULT_CHUNK_TYPE_DELAY_MS
    retry_type_delay_ms: int = DEFAULT_RETRY_TYPE_DELAY_MS
    long_text_threshold: int = DEFAULT_LONG_TEXT_THRESHOLD
    chunk_size: int = DEFAULT_CHUNK_SIZE
    chunk_delay_ms: int = DEFAULT_CHUNK_DELAY_MS
    chunk_retry_delay_ms: int = DEFAULT_CHUNK_RETRY_DELAY_MS
    input_event_interval: int = DEFAULT_INPUT_EVENT_INTERVAL
    scroll_settle_ms: int = DEFAULT_SCROLL_SETTLE_MS
    keyboard_operation_delay_ms: int = DEFAULT_KEYBOARD_OPERATION_DELAY_MS
    serialize_requests: bool = True
    enforce_timeout: bool = False
    include_stack: bool = False

    @classmethod
    def from_env(cls) -> "ValueStackConfig":
        return cls(
            short_type_delay_ms=_parse_int_env(
                "FORMPILOT_TYPE_DELAY_MS", DEFAULT_SHORT_TYPE_DELAY_MS, 0
            ),
            chunk_type_delay_ms=_parse_int_env(
                "FORMPILOT_CHUNK_TYPE_DELAY_MS", DEFAULT_CHUNK_TYPE_DELAY_MS, 0
            ),
            retry_type_delay_ms=_parse_int_env(
                "FORMPILOT_RETRY_TYPE_DELAY_MS", DEFAULT_RETRY_TYPE_DELAY_MS, 0
            ),
            long_text_threshold=_parse_int_env(
                "FORMPILOT_LONG_TEXT_THRESHOLD", DEFAULT_LONG_TEXT_THRESHOLD, 1
            ),
            chunk_size=_parse_int_env("FORMPILOT_CHUNK_SIZE", DEFAULT_CHUNK_SIZE, 1),
            chunk_delay_ms=_parse_int_env("FORMPILOT_CHUNK_DELAY_MS", DEFAULT_CHUNK_DELAY_MS, 0),
            chunk_retry_delay_ms=_parse_int_env(
                "FORMPILOT_CHUNK_RETRY_DELAY_MS", DEFAULT_CHUNK_RETRY_DELAY_MS, 0
            ),
            input_event_interval=_parse_int_env(
                "FORMPILOT_INPUT_EVENT_INTERVAL", DEFAULT_INPUT_EVENT_INTERVAL, 1
            ),
            scroll_settle_ms=_parse_int_env(
                "FORMPILOT_SCROLL_SETTLE_MS", DEFAULT_SCROLL_SETTLE_MS, 0
            ),
            keyboard_operation_delay_ms=_parse_int_env(
                "FORMPILOT_KEYBOARD_DELAY_MS", DEFAULT_KEYBOARD_OPERATION_DELAY_MS, 0
            ),
            serialize_requests=_parse_bool_env("FORMPILOT_SERIALIZE_REQUESTS", True),
            enforce_timeout=_parse_bool_env("FORMPILOT_ENFORCE_TIMEOUT", False),
            include_stack=_parse_bool_env("FORMPILOT_INCLUDE_STACK", False),
        )

    @classmethod
    def immediate(cls) -> "ValueStackConfig":
        """Zero-delay pacing, used by tests and dry runs."""
        return cls(
            short_type_delay_ms=0,
            chunk_type_delay_ms=0,
            retry_type_delay_ms=0,
            chunk_delay_ms=0,
            chunk_retry_delay_ms=0,
            scroll_settle_ms=0,
            keyboard_operation_delay_ms=0,
        )
