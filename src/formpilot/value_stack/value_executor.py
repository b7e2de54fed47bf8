"""Drive a located element to a target value.

Shared by ``set_value`` and ``type_value``: the strategy decides which
mutation path runs, every path ends with the settle delay and the optional
submit keypress.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Awaitable, Callable, List, Optional

from .config import MAX_CHUNK_DELAY_MS, ValueStackConfig
from .document import DocumentContext, ElementHandleLike
from .errors import (
    ChunkTypingError,
    ElementDetachedError,
    ElementDisabledError,
    ElementNotVisibleError,
    ElementReadonlyError,
    OptionNotFoundError,
    RadioUncheckError,
    UnsupportedInputMethodError,
)
from .keyboard_macro import KeyboardMacroRunner, parse_keyboard_input
from .logging_utils import _log_value_event, _preview_text
from .models import ElementDescriptor, InputStrategy, SetResult, ValueOptions
from .value_scripts import (
    CAN_CLEAR_JS,
    CLEAR_VALUE_JS,
    DISPATCH_EVENTS_JS,
    INTERACTABLE_STATE_JS,
    READ_CHECKED_JS,
    READ_VALUE_JS,
    SCROLL_INTO_VIEW_JS,
    SELECT_MULTIPLE_JS,
    SELECT_SINGLE_JS,
    TOGGLE_CHECKED_JS,
)

logger = logging.getLogger(__name__)

_FALSE_TOKENS = {"", "0", "false", "no", "off", "unchecked"}


def _js_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _toggle_target(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return bool(value)
    return str(value).strip().lower() not in _FALSE_TOKENS


def _format_available_options(available: List[str], total: int) -> str:
    listed = '", "'.join(available)
    more = f" (and {total - 5} more)" if total > 5 else ""
    return f'Available options: "{listed}"{more}'


class ValueSettingExecutor:
    def __init__(
        self,
        config: Optional[ValueStackConfig] = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._config = config or ValueStackConfig()
        self._sleep = sleep
        self._keyboard_runner = KeyboardMacroRunner(
            operation_delay_ms=self._config.keyboard_operation_delay_ms,
            sleep=sleep,
        )

    async def execute(
        self,
        document: DocumentContext,
        element: ElementDescriptor,
        value: Any,
        strategy: InputStrategy,
        options: ValueOptions,
        *,
        settle_ms: int = 0,
    ) -> SetResult:
        handle = await self._resolve_handle(document, element)
        await self._ensure_interactable(handle)
        await handle.evaluate(SCROLL_INTO_VIEW_JS)
        await self._pause_ms(self._config.scroll_settle_ms)

        if strategy.method == "type":
            actual = await self._set_text(handle, value, options)
        elif strategy.method == "single-select":
            actual = await self._set_single_select(handle, value)
        elif strategy.method == "multi-select":
            actual = await self._set_multi_select(handle, value)
        elif strategy.method == "toggle":
            actual = await self._set_toggle(handle, value, strategy.element_type)
        else:
            raise UnsupportedInputMethodError(f"Unsupported input method: {strategy.method}")

        await self._pause_ms(settle_ms)
        submitted = await self._submit(document) if options.submit else False
        return SetResult(actual_value=actual, submitted=submitted)

    async def execute_keyboard(
        self,
        document: DocumentContext,
        element: ElementDescriptor,
        value: Any,
        options: ValueOptions,
        *,
        settle_ms: int = 0,
    ) -> SetResult:
        handle = await self._resolve_handle(document, element)
        await handle.focus()

        if options.clear_first and await handle.evaluate(CAN_CLEAR_JS):
            await handle.evaluate(CLEAR_VALUE_JS)

        operations = parse_keyboard_input(_js_string(value))
        _log_value_event(
            logger,
            level=logging.DEBUG,
            event="keyboard_macro_start",
            index=element.index,
            operations=len(operations),
        )
        performed = await self._keyboard_runner.run(document.keyboard, operations)
        await document.wait_for_stable()

        actual = await self._read_back(handle)
        await self._pause_ms(settle_ms)
        submitted = await self._submit(document) if options.submit else False
        return SetResult(
            actual_value=actual,
            submitted=submitted,
            operations_performed=performed,
        )

    async def _resolve_handle(
        self,
        document: DocumentContext,
        element: ElementDescriptor,
    ) -> ElementHandleLike:
        handle = await document.get_handle(element)
        if handle is None:
            raise ElementDetachedError(
                f"Element {element.index} could not be located on the page (detached)"
            )
        return handle

    async def _ensure_interactable(self, handle: ElementHandleLike) -> None:
        state = await handle.evaluate(INTERACTABLE_STATE_JS) or {}
        if not state.get("visible"):
            raise ElementNotVisibleError("Element is not visible or interactive")
        if state.get("disabled"):
            raise ElementDisabledError("Element is not visible or interactive: element is disabled")
        if state.get("readonly"):
            raise ElementReadonlyError("Element is not visible or interactive: element is readonly")

    async def _set_text(
        self,
        handle: ElementHandleLike,
        value: Any,
        options: ValueOptions,
    ) -> str:
        text = _js_string(value)
        if options.clear_first:
            await handle.evaluate(CLEAR_VALUE_JS)

        if len(text) > self._config.long_text_threshold:
            await self._type_long_text(handle, text)
        else:
            await handle.type(text, delay=self._config.short_type_delay_ms)

        await handle.evaluate(DISPATCH_EVENTS_JS, ["input", "change"])

        actual = await self._read_back(handle)
        if actual is not None and actual != text:
            _log_value_event(
                logger,
                level=logging.INFO,
                event="text_verify_mismatch",
                expected=_preview_text(text),
                actual=_preview_text(actual),
            )
        return text

    async def _type_long_text(self, handle: ElementHandleLike, text: str) -> None:
        size = self._config.chunk_size
        total_chunks = math.ceil(len(text) / size)
        midpoint = len(text) * 0.5
        _log_value_event(
            logger,
            level=logging.DEBUG,
            event="long_text_start",
            length=len(text),
            chunks=total_chunks,
        )

        for chunk_index, start in enumerate(range(0, len(text), size)):
            chunk = text[start:start + size]
            await self._type_chunk(handle, chunk, chunk_index, total_chunks)

            if chunk_index % self._config.input_event_interval == 0:
                await handle.evaluate(DISPATCH_EVENTS_JS, ["input"])

            if start + size < len(text):
                delay_ms = self._config.chunk_delay_ms
                if start > midpoint:
                    delay_ms = min(delay_ms * 1.2, MAX_CHUNK_DELAY_MS)
                await self._pause_ms(delay_ms)

    async def _type_chunk(
        self,
        handle: ElementHandleLike,
        chunk: str,
        chunk_index: int,
        total_chunks: int,
    ) -> None:
        try:
            await handle.type(chunk, delay=self._config.chunk_type_delay_ms)
            return
        except Exception as exc:
            _log_value_event(
                logger,
                level=logging.WARNING,
                event="chunk_retry",
                chunk=f"{chunk_index + 1}/{total_chunks}",
                error=exc,
            )

        await self._pause_ms(self._config.chunk_retry_delay_ms)
        try:
            await handle.type(chunk, delay=self._config.retry_type_delay_ms)
        except Exception as exc:
            _log_value_event(
                logger,
                level=logging.ERROR,
                event="chunk_failed",
                chunk=f"{chunk_index + 1}/{total_chunks}",
                error=exc,
            )
            raise ChunkTypingError(
                f"Failed to type chunk {chunk_index + 1}/{total_chunks} after retry: {exc}"
            ) from exc

    async def _set_single_select(self, handle: ElementHandleLike, value: Any) -> str:
        wanted = _js_string(value)
        result = await handle.evaluate(SELECT_SINGLE_JS, {"value": wanted}) or {}
        if not result.get("found"):
            available = list(result.get("available") or [])
            total = int(result.get("total") or len(available))
            raise OptionNotFoundError(
                f'Option "{wanted}" not found. {_format_available_options(available, total)}'
            )
        _log_value_event(
            logger,
            level=logging.DEBUG,
            event="single_select",
            option=result.get("text"),
            changed=bool(result.get("changed")),
        )
        return str(result.get("text") or "")

    async def _set_multi_select(self, handle: ElementHandleLike, value: Any) -> List[str]:
        if isinstance(value, (list, tuple)):
            wanted = [_js_string(item) for item in value]
        else:
            wanted = [_js_string(value)]
        result = await handle.evaluate(SELECT_MULTIPLE_JS, {"values": wanted}) or {}
        selected = [str(item) for item in (result.get("selected") or [])]
        if not selected:
            available = list(result.get("available") or [])
            total = int(result.get("total") or len(available))
            raise OptionNotFoundError(
                f"No matching options found. {_format_available_options(available, total)}"
            )
        return selected

    async def _set_toggle(
        self,
        handle: ElementHandleLike,
        value: Any,
        element_type: str,
    ) -> bool:
        should_check = _toggle_target(value)
        if element_type == "radio" and not should_check:
            raise RadioUncheckError(
                "Cannot uncheck a radio button - use another radio button in the same group"
            )
        before = bool(await handle.evaluate(READ_CHECKED_JS))
        after = bool(await handle.evaluate(TOGGLE_CHECKED_JS, {"checked": should_check}))
        _log_value_event(
            logger,
            level=logging.DEBUG,
            event="toggle",
            element_type=element_type,
            before=before,
            after=after,
        )
        return after

    async def _read_back(self, handle: ElementHandleLike) -> Optional[str]:
        try:
            value = await handle.evaluate(READ_VALUE_JS)
        except Exception as exc:
            _log_value_event(logger, level=logging.DEBUG, event="read_back_failed", error=exc)
            return None
        return "" if value is None else str(value)

    async def _submit(self, document: DocumentContext) -> bool:
        try:
            await document.keyboard.press("Enter")
        except Exception as exc:
            _log_value_event(logger, level=logging.WARNING, event="submit_failed", error=exc)
            return False
        _log_value_event(logger, level=logging.DEBUG, event="submitted")
        return True

    async def _pause_ms(self, delay_ms: float) -> None:
        if delay_ms and delay_ms > 0:
            await self._sleep(delay_ms / 1000.0)
