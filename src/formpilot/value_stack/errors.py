"""Error kinds, typed exceptions and JSON-RPC codes for the value stack."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
APPLICATION_ERROR = -32000


class ErrorKind(str, Enum):
    ELEMENT_NOT_FOUND = "ELEMENT_NOT_FOUND"
    ELEMENT_NOT_VISIBLE = "ELEMENT_NOT_VISIBLE"
    OPERATION_TIMEOUT = "OPERATION_TIMEOUT"
    ELEMENT_DETACHED = "ELEMENT_DETACHED"
    ELEMENT_READONLY = "ELEMENT_READONLY"
    ELEMENT_DISABLED = "ELEMENT_DISABLED"
    UNSUPPORTED_ELEMENT_TYPE = "UNSUPPORTED_ELEMENT_TYPE"
    SET_VALUE_FAILED = "SET_VALUE_FAILED"
    TYPE_VALUE_FAILED = "TYPE_VALUE_FAILED"


class ValueStackError(Exception):
    """Failure raised below the dispatcher boundary with an explicit kind."""

    kind: Optional[ErrorKind] = None

    def __init__(self, message: str, *, kind: Optional[ErrorKind] = None) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class ElementDetachedError(ValueStackError):
    kind = ErrorKind.ELEMENT_DETACHED


class ElementNotVisibleError(ValueStackError):
    kind = ErrorKind.ELEMENT_NOT_VISIBLE


class ElementDisabledError(ValueStackError):
    kind = ErrorKind.ELEMENT_DISABLED


class ElementReadonlyError(ValueStackError):
    kind = ErrorKind.ELEMENT_READONLY


class OperationTimeoutError(ValueStackError):
    kind = ErrorKind.OPERATION_TIMEOUT


# Reported as ELEMENT_NOT_FOUND, same as its "not found" message text.
class OptionNotFoundError(ValueStackError):
    kind = ErrorKind.ELEMENT_NOT_FOUND


class RadioUncheckError(ValueStackError):
    pass


class ChunkTypingError(ValueStackError):
    pass


class KeyboardOperationError(ValueStackError):
    pass


class UnsupportedInputMethodError(ValueStackError):
    kind = ErrorKind.UNSUPPORTED_ELEMENT_TYPE


_MESSAGE_RULES: tuple[tuple[str, ErrorKind], ...] = (
    ("not found", ErrorKind.ELEMENT_NOT_FOUND),
    ("not visible", ErrorKind.ELEMENT_NOT_VISIBLE),
    ("timeout", ErrorKind.OPERATION_TIMEOUT),
    ("detached", ErrorKind.ELEMENT_DETACHED),
    ("readonly", ErrorKind.ELEMENT_READONLY),
    ("disabled", ErrorKind.ELEMENT_DISABLED),
)


def classify_error_message(message: str, default: ErrorKind) -> ErrorKind:
    lowered = str(message or "").casefold()
    for token, kind in _MESSAGE_RULES:
        if token in lowered:
            return kind
    return default


def classify_error(exc: BaseException, default: ErrorKind) -> ErrorKind:
    kind = getattr(exc, "kind", None)
    if isinstance(kind, ErrorKind):
        return kind
    return classify_error_message(str(exc), default)


class RpcError(Exception):
    """Request-level failure carrying its JSON-RPC code and optional data."""

    def __init__(self, code: int, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data
