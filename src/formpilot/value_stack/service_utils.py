"""Shared helper utilities for ValueRpcService request handling."""

from __future__ import annotations

import math
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from .models import ValueOptions


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def _strict_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"{name} must be a boolean")


def _require_param(params: Mapping[str, Any], name: str) -> Any:
    value = params.get(name)
    if value is None:
        raise ValueError(f"Missing required parameter: {name}")
    return value


def _normalize_element_index(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("element_index must be a non-negative number")
    if isinstance(value, float) and (not math.isfinite(value) or not value.is_integer()):
        raise ValueError("element_index must be a non-negative number")
    if value < 0:
        raise ValueError("element_index must be a non-negative number")
    return int(value)


def _normalize_target(value: Any, target_type: Optional[str]) -> Any:
    if isinstance(value, bool):
        raise ValueError("target must be an element index or a description")
    if isinstance(value, (int, float)):
        if isinstance(value, float) and (not math.isfinite(value) or not value.is_integer()):
            raise ValueError("target must be a non-negative number")
        if value < 0:
            raise ValueError("target must be a non-negative number")
        return int(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError("target must be an element index or a description")
    if target_type == "index" and not value.strip().isdigit():
        raise ValueError("target must be a non-negative number when target_type is 'index'")
    return value


def _normalize_target_type(value: Any) -> Optional[str]:
    text = _as_str(value)
    if text is None:
        return None
    lowered = text.lower()
    if lowered not in {"index", "description"}:
        raise ValueError("target_type must be 'index' or 'description'")
    return lowered


def _format_validation_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid options"
    first = errors[0]
    message = str(first.get("msg") or "invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    if message.startswith("options."):
        return message
    location = ".".join(str(part) for part in first.get("loc") or ())
    return f"options.{location}: {message}" if location else f"options: {message}"


def _parse_options(raw: Any) -> ValueOptions:
    if raw is None:
        return ValueOptions()
    if not isinstance(raw, Mapping):
        raise ValueError("options must be an object")
    try:
        return ValueOptions.model_validate(dict(raw))
    except ValidationError as exc:
        raise ValueError(_format_validation_error(exc)) from None


def _element_not_found_payload(
    *,
    reason: Optional[str],
    element_count: int,
    identifiers: Dict[str, Any],
) -> tuple[str, Dict[str, Any]]:
    message = (
        f"{reason or 'Failed to locate target element'}. Page has {element_count} "
        "interactive elements. Use get_dom_extra_elements tool to see available elements."
    )
    data: Dict[str, Any] = {"error_code": "ELEMENT_NOT_FOUND"}
    data.update(identifiers)
    data["available_element_count"] = element_count
    data["suggested_action"] = "Use get_dom_extra_elements tool to list available elements"
    return message, data
