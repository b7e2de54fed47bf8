"""Operation timeout and post-action settle delay model.

Both quantities are derived per request. The timeout is a caller-facing
budget; it only becomes a hard deadline when the service enforces it.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Optional, Union

from .logging_utils import _log_value_event

logger = logging.getLogger(__name__)

BASE_TIMEOUT_MS = 12_000
MIN_EXPLICIT_TIMEOUT_MS = 5_000
MIN_AUTO_TIMEOUT_MS = 12_000
MAX_TIMEOUT_MS = 590_000
MAX_SETTLE_MS = 3_000
MIN_RPC_BUFFER_MS = 15_000
MAX_RPC_BUFFER_MS = 60_000

TYPE_TIMEOUT_FACTORS = {
    "contenteditable": 2.2,
    "textarea": 1.5,
    "text-input": 1.0,
    "select": 0.8,
    "multi-select": 1.0,
    "checkbox": 0.5,
    "radio": 0.5,
    "keyboard": 1.8,
}

SETTLE_MULTIPLIERS = {
    "text-input": 0.5,
    "select": 1.5,
    "checkbox": 0.3,
    "radio": 0.3,
    "textarea": 0.8,
    "keyboard": 1.2,
}

# (exclusive lower bound on element count, factor), highest first.
_COMPLEXITY_STEPS = ((150, 1.8), (100, 1.6), (60, 1.4), (30, 1.2))


def parse_timeout(timeout: Any) -> Union[str, int]:
    """Normalize a caller timeout to ``"auto"`` or integer milliseconds."""
    if timeout is None:
        return "auto"
    if isinstance(timeout, bool):
        raise ValueError("timeout must be 'auto' or a timeout in milliseconds")
    if isinstance(timeout, (int, float)):
        if math.isnan(timeout) or math.isinf(timeout):
            raise ValueError("timeout must be 'auto' or a timeout in milliseconds")
        return int(timeout)
    text = str(timeout).strip().lower()
    if text in {"", "auto"}:
        return "auto"
    try:
        parsed = float(text)
    except ValueError:
        raise ValueError("timeout must be 'auto' or a timeout in milliseconds") from None
    if not math.isfinite(parsed):
        raise ValueError("timeout must be 'auto' or a timeout in milliseconds")
    return int(parsed)


def length_factor_ms(text_length: int) -> int:
    if text_length <= 100:
        return 0
    if text_length <= 500:
        return math.ceil((text_length - 100) / 40) * 1000
    if text_length <= 1000:
        return 10_000 + math.ceil((text_length - 500) / 30) * 1000
    return 26_000 + math.ceil((text_length - 1000) / 25) * 1000


def complexity_factor(element_count: int) -> float:
    for threshold, factor in _COMPLEXITY_STEPS:
        if element_count > threshold:
            return factor
    return 1.0


def value_text_length(value: Any) -> int:
    if isinstance(value, bool):
        return len("true" if value else "false")
    if isinstance(value, (list, tuple)):
        return len(",".join(str(item) for item in value))
    return len(str(value))


def calculate_operation_timeout(
    timeout: Any,
    value: Any,
    element_type: str,
    element_count: int,
) -> int:
    parsed = parse_timeout(timeout)
    if parsed != "auto":
        return min(max(int(parsed), MIN_EXPLICIT_TIMEOUT_MS), MAX_TIMEOUT_MS)

    text_length = value_text_length(value)
    length_ms = length_factor_ms(text_length)
    type_factor = TYPE_TIMEOUT_FACTORS.get(element_type, 1.0)
    page_factor = complexity_factor(element_count)
    calculated = (BASE_TIMEOUT_MS + length_ms) * type_factor * page_factor
    final_timeout = int(min(max(calculated, MIN_AUTO_TIMEOUT_MS), MAX_TIMEOUT_MS))

    _log_value_event(
        logger,
        level=logging.DEBUG,
        event="timeout_calculated",
        text_length=text_length,
        element_type=element_type,
        element_count=element_count,
        length_ms=length_ms,
        type_factor=type_factor,
        page_factor=page_factor,
        final_ms=final_timeout,
    )
    return final_timeout


def calculate_settle_delay(element_type: str, wait_after_seconds: float) -> int:
    base_ms = max(0.0, float(wait_after_seconds)) * 1000
    multiplier = SETTLE_MULTIPLIERS.get(element_type, 1.0)
    return int(min(base_ms * multiplier, MAX_SETTLE_MS))


def calculate_rpc_budget(timeout_ms: int, buffer_ratio: Optional[float] = 0.25) -> int:
    """Total wall-clock a remote caller should allow: timeout plus a bounded buffer."""
    ratio = 0.25 if buffer_ratio is None else max(0.0, float(buffer_ratio))
    buffer_ms = int(timeout_ms * ratio)
    buffer_ms = max(MIN_RPC_BUFFER_MS, min(buffer_ms, MAX_RPC_BUFFER_MS))
    return int(timeout_ms) + buffer_ms
