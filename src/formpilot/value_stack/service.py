"""
Value-setting RPC service facade.

Maps JSON-RPC style requests onto the locator, strategy resolver, timing
model and executor, and wraps every outcome in a response envelope.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from .config import ValueStackConfig
from .document import DocumentProvider
from .errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    ErrorKind,
    RpcError,
)
from .service_handlers import ValueServiceHandlersMixin
from .value_executor import ValueSettingExecutor

logger = logging.getLogger(__name__)

MethodHandler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


class ValueRpcService(ValueServiceHandlersMixin):
    """Request-in/response-out handler for ``set_value`` and ``type_value``."""

    SUPPORTED_METHODS = ("set_value", "type_value")

    def __init__(
        self,
        provider: DocumentProvider,
        config: Optional[ValueStackConfig] = None,
        executor: Optional[ValueSettingExecutor] = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._provider = provider
        self._config = config or ValueStackConfig.from_env()
        self._executor = executor or ValueSettingExecutor(self._config, sleep=sleep)
        self._lock = asyncio.Lock()
        self._methods: Dict[str, MethodHandler] = {
            "set_value": self._handle_set_value,
            "type_value": self._handle_type_value,
        }

    def register_method(self, name: str, handler: MethodHandler) -> None:
        method = (name or "").strip()
        if not method:
            raise ValueError("method name is required")
        self._methods[method] = handler

    @property
    def methods(self) -> list[str]:
        return sorted(self._methods)

    async def handle(self, request: Any) -> Dict[str, Any]:
        started = time.perf_counter()
        request_id = request.get("id") if isinstance(request, Mapping) else None

        if not isinstance(request, Mapping):
            return self._err(INVALID_REQUEST, "Invalid request: expected an object")
        method = request.get("method")
        if not isinstance(method, str) or not method.strip():
            return self._err(
                INVALID_REQUEST,
                "Invalid request: method must be a non-empty string",
                request_id=request_id,
            )
        method = method.strip()
        handler = self._methods.get(method)
        if handler is None:
            return self._err(
                METHOD_NOT_FOUND,
                f"Method not found: {method}",
                {"supported_methods": self.methods},
                request_id=request_id,
            )
        params = request.get("params")
        if params is None:
            params = {}
        if not isinstance(params, Mapping):
            return self._err(INVALID_PARAMS, "params must be an object", request_id=request_id)

        guard = self._lock if self._config.serialize_requests else contextlib.nullcontext()
        try:
            async with guard:
                result = await handler(dict(params))
        except RpcError as exc:
            logger.debug(
                "value_rpc.handle error method=%s code=%s duration_ms=%s error=%s",
                method,
                exc.code,
                int((time.perf_counter() - started) * 1000),
                exc.message,
            )
            return self._err(exc.code, exc.message, exc.data, request_id=request_id)
        except ValueError as exc:
            logger.debug(
                "value_rpc.handle invalid_params method=%s duration_ms=%s error=%s",
                method,
                int((time.perf_counter() - started) * 1000),
                exc,
            )
            return self._err(INVALID_PARAMS, str(exc), request_id=request_id)
        except Exception as exc:
            logger.warning(
                "value_rpc.handle internal_error method=%s duration_ms=%s error=%s",
                method,
                int((time.perf_counter() - started) * 1000),
                exc,
            )
            default_kind = (
                ErrorKind.TYPE_VALUE_FAILED
                if method == "type_value"
                else ErrorKind.SET_VALUE_FAILED
            )
            return self._err(
                INTERNAL_ERROR,
                str(exc) or "Internal error",
                {"error_code": default_kind.value, "exception_type": type(exc).__name__},
                request_id=request_id,
            )

        logger.debug(
            "value_rpc.handle success method=%s duration_ms=%s",
            method,
            int((time.perf_counter() - started) * 1000),
        )
        return self._ok(result, request_id=request_id)

    @staticmethod
    def _ok(result: Any, *, request_id: Any = None) -> Dict[str, Any]:
        out: Dict[str, Any] = {"result": result}
        if request_id is not None:
            out["id"] = request_id
        return out

    @staticmethod
    def _err(
        code: int,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        *,
        request_id: Any = None,
    ) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": code, "message": message}
        if data:
            error["data"] = data
        out: Dict[str, Any] = {"error": error}
        if request_id is not None:
            out["id"] = request_id
        return out
