"""set_value / type_value request handlers for ValueRpcService."""

from __future__ import annotations

import asyncio
import logging
import traceback
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

from .element_locator import ElementLocator, is_index_target
from .errors import (
    APPLICATION_ERROR,
    INTERNAL_ERROR,
    ErrorKind,
    OperationTimeoutError,
    RpcError,
    classify_error,
)
from .input_strategy import (
    SUPPORTED_ELEMENT_TYPES,
    UNSUPPORTED_SUGGESTED_ACTIONS,
    determine_input_strategy,
)
from .keyboard_macro import should_use_keyboard_mode
from .logging_utils import _log_value_event
from .models import ElementDescriptor, SetResult, ValueOptions
from .service_utils import (
    _element_not_found_payload,
    _normalize_element_index,
    _normalize_target,
    _normalize_target_type,
    _parse_options,
    _require_param,
    _strict_bool,
)
from .timing import (
    calculate_operation_timeout,
    calculate_rpc_budget,
    calculate_settle_delay,
    parse_timeout,
)

if TYPE_CHECKING:
    from .config import ValueStackConfig
    from .document import DocumentContext, DocumentProvider
    from .value_executor import ValueSettingExecutor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _ValueRequest:
    method: str
    target: Any
    target_type: Optional[str]
    value: Any
    options: ValueOptions
    timeout: Any
    keyboard_mode: Optional[bool]


class ValueServiceHandlersMixin:
    _provider: "DocumentProvider"
    _config: "ValueStackConfig"
    _executor: "ValueSettingExecutor"

    async def _handle_set_value(self, params: Dict[str, Any]) -> Dict[str, Any]:
        target_type = _normalize_target_type(params.get("target_type"))
        target = _normalize_target(_require_param(params, "target"), target_type)
        request = _ValueRequest(
            method="set_value",
            target=target,
            target_type=target_type,
            value=_require_param(params, "value"),
            options=_parse_options(params.get("options")),
            timeout=self._validated_timeout(params.get("timeout")),
            keyboard_mode=False,
        )
        document = await self._require_document()
        resolved_type = "index" if is_index_target(target, target_type) else "description"

        located = ElementLocator(document).locate(target, target_type)
        if not located.success:
            message, data = _element_not_found_payload(
                reason=located.error,
                element_count=document.element_count(),
                identifiers={"target": target, "target_type": resolved_type},
            )
            raise RpcError(APPLICATION_ERROR, message, data)

        identifiers = {
            "target": target,
            "target_type": resolved_type,
            "element_index": located.index,
        }
        return await self._run_standard(request, document, located.element, identifiers)

    async def _handle_type_value(self, params: Dict[str, Any]) -> Dict[str, Any]:
        element_index = _normalize_element_index(_require_param(params, "element_index"))
        raw_keyboard_mode = params.get("keyboard_mode")
        request = _ValueRequest(
            method="type_value",
            target=element_index,
            target_type="index",
            value=_require_param(params, "value"),
            options=_parse_options(params.get("options")),
            timeout=self._validated_timeout(params.get("timeout")),
            keyboard_mode=None if raw_keyboard_mode is None else _strict_bool(raw_keyboard_mode, "keyboard_mode"),
        )
        document = await self._require_document()

        located = ElementLocator(document).locate_by_index(element_index)
        if not located.success:
            message, data = _element_not_found_payload(
                reason=located.error,
                element_count=document.element_count(),
                identifiers={"element_index": element_index},
            )
            raise RpcError(APPLICATION_ERROR, message, data)

        identifiers = {"element_index": element_index}
        if should_use_keyboard_mode(request.value, request.keyboard_mode):
            return await self._run_keyboard(request, document, located.element, identifiers)
        return await self._run_standard(request, document, located.element, identifiers)

    async def _run_standard(
        self,
        request: _ValueRequest,
        document: "DocumentContext",
        element: ElementDescriptor,
        identifiers: Dict[str, Any],
    ) -> Dict[str, Any]:
        strategy = determine_input_strategy(element)
        if not strategy.can_handle:
            raise RpcError(
                APPLICATION_ERROR,
                f"Cannot handle element type: {strategy.element_type}",
                {
                    "error_code": ErrorKind.UNSUPPORTED_ELEMENT_TYPE.value,
                    "element_type": strategy.element_type,
                    "element_tag": element.tag_name,
                    "supported_types": list(SUPPORTED_ELEMENT_TYPES),
                    "suggested_actions": list(UNSUPPORTED_SUGGESTED_ACTIONS),
                },
            )

        timeout_ms, rpc_budget_ms, settle_ms = self._budgets(
            request, strategy.element_type, document
        )
        outcome = await self._execute_guarded(
            request,
            timeout_ms,
            self._executor.execute(
                document,
                element,
                request.value,
                strategy,
                request.options,
                settle_ms=settle_ms,
            ),
        )

        payload: Dict[str, Any] = {
            "success": True,
            "message": (
                f'Successfully set {strategy.element_type} to "{_display_value(outcome.actual_value)}"'
                f" using {strategy.method} method"
            ),
        }
        payload.update(identifiers)
        payload.update(
            {
                "element_type": strategy.element_type,
                "input_method": strategy.method,
                "actual_value": outcome.actual_value,
            }
        )
        payload.update(
            self._common_result_fields(
                request, element, outcome, timeout_ms, rpc_budget_ms, settle_ms
            )
        )
        return payload

    async def _run_keyboard(
        self,
        request: _ValueRequest,
        document: "DocumentContext",
        element: ElementDescriptor,
        identifiers: Dict[str, Any],
    ) -> Dict[str, Any]:
        timeout_ms, rpc_budget_ms, settle_ms = self._budgets(request, "keyboard", document)
        outcome = await self._execute_guarded(
            request,
            timeout_ms,
            self._executor.execute_keyboard(
                document,
                element,
                request.value,
                request.options,
                settle_ms=settle_ms,
            ),
        )

        payload: Dict[str, Any] = {
            "success": True,
            "message": "Successfully executed keyboard input on element",
        }
        payload.update(identifiers)
        payload.update(
            {
                "element_type": (element.tag_name or "unknown").lower(),
                "input_method": "keyboard",
                "actual_value": outcome.actual_value,
                "operations_performed": list(outcome.operations_performed or []),
            }
        )
        payload.update(
            self._common_result_fields(
                request, element, outcome, timeout_ms, rpc_budget_ms, settle_ms
            )
        )
        return payload

    async def _execute_guarded(
        self,
        request: _ValueRequest,
        timeout_ms: int,
        operation: Any,
    ) -> SetResult:
        default_kind = (
            ErrorKind.SET_VALUE_FAILED
            if request.method == "set_value"
            else ErrorKind.TYPE_VALUE_FAILED
        )
        try:
            if self._config.enforce_timeout:
                try:
                    return await asyncio.wait_for(operation, timeout=timeout_ms / 1000.0)
                except asyncio.TimeoutError:
                    raise OperationTimeoutError(
                        f"Operation timeout after {timeout_ms} ms"
                    ) from None
            return await operation
        except Exception as exc:
            kind = classify_error(exc, default_kind)
            _log_value_event(
                logger,
                level=logging.WARNING,
                event="execution_failed",
                method=request.method,
                error_code=kind.value,
                exception_type=type(exc).__name__,
                error=exc,
            )
            data: Dict[str, Any] = {
                "error_code": kind.value,
                "exception_type": type(exc).__name__,
            }
            if self._config.include_stack:
                data["stack"] = "".join(
                    traceback.format_exception(type(exc), exc, exc.__traceback__)
                )
            message = str(exc) or (
                "Failed to set value" if request.method == "set_value" else "Failed to type value"
            )
            raise RpcError(INTERNAL_ERROR, message, data) from exc

    def _budgets(
        self,
        request: _ValueRequest,
        element_type: str,
        document: "DocumentContext",
    ) -> tuple[int, int, int]:
        timeout_ms = calculate_operation_timeout(
            request.timeout,
            request.value,
            element_type,
            document.element_count(),
        )
        settle_ms = calculate_settle_delay(element_type, request.options.wait_after)
        return timeout_ms, calculate_rpc_budget(timeout_ms), settle_ms

    @staticmethod
    def _common_result_fields(
        request: _ValueRequest,
        element: ElementDescriptor,
        outcome: SetResult,
        timeout_ms: int,
        rpc_budget_ms: int,
        settle_ms: int,
    ) -> Dict[str, Any]:
        return {
            "element_info": element.info(),
            "options_used": request.options.used(),
            "timeout_ms": timeout_ms,
            "rpc_budget_ms": rpc_budget_ms,
            "settle_ms": settle_ms,
            "submitted": outcome.submitted,
        }

    @staticmethod
    def _validated_timeout(raw: Any) -> Any:
        parse_timeout(raw)
        return "auto" if raw is None else raw

    async def _require_document(self) -> "DocumentContext":
        document = await self._provider.get_current_document()
        if document is None:
            raise RpcError(APPLICATION_ERROR, "No active page available")
        return document


def _display_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(str(item) for item in value)
    return "" if value is None else str(value)
