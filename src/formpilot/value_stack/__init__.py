"""
Form value stack.

Locates form-like elements in a live document, decides how each must be
driven, and sets values through a JSON-RPC style request handler.
"""

from .config import ValueStackConfig
from .document import DocumentContext, DocumentProvider, ElementHandleLike, KeyboardLike
from .errors import ErrorKind, ValueStackError, classify_error
from .models import ElementDescriptor, InputStrategy, KeyboardOperation, ValueOptions
from .playwright_document import PlaywrightDocument, PlaywrightDocumentProvider
from .service import ValueRpcService
from .value_executor import ValueSettingExecutor

__all__ = [
    "DocumentContext",
    "DocumentProvider",
    "ElementDescriptor",
    "ElementHandleLike",
    "ErrorKind",
    "InputStrategy",
    "KeyboardLike",
    "KeyboardOperation",
    "PlaywrightDocument",
    "PlaywrightDocumentProvider",
    "ValueOptions",
    "ValueRpcService",
    "ValueSettingExecutor",
    "ValueStackConfig",
    "ValueStackError",
    "classify_error",
]
