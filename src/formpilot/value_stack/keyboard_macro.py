"""Keyboard macro parsing and execution.

A macro string mixes literal text with bracketed commands::

    "hello{Tab}world{Ctrl+A}{Backspace}"

Commands with ``+`` between non-empty parts are modifier combinations, all
other commands are single special keys. Unknown key names pass through as
written.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .document import KeyboardLike
from .errors import KeyboardOperationError
from .logging_utils import _log_value_event
from .models import KeyboardOperation

logger = logging.getLogger(__name__)

_COMMAND_PATTERN = re.compile(r"\{([^}]+)\}")
_COMBINATION_PATTERN = re.compile(r"^.+\+.+$")

SPECIAL_KEY_MAP: Dict[str, str] = {
    "enter": "Enter",
    "tab": "Tab",
    "esc": "Escape",
    "escape": "Escape",
    "backspace": "Backspace",
    "delete": "Delete",
    "del": "Delete",
    "space": " ",
    "up": "ArrowUp",
    "down": "ArrowDown",
    "left": "ArrowLeft",
    "right": "ArrowRight",
    "arrowup": "ArrowUp",
    "arrowdown": "ArrowDown",
    "arrowleft": "ArrowLeft",
    "arrowright": "ArrowRight",
    "home": "Home",
    "end": "End",
    "pageup": "PageUp",
    "pagedown": "PageDown",
    "insert": "Insert",
    "ins": "Insert",
}
SPECIAL_KEY_MAP.update({f"f{number}": f"F{number}" for number in range(1, 13)})

MODIFIER_KEY_MAP: Dict[str, str] = {
    "ctrl": "Control",
    "control": "Control",
    "shift": "Shift",
    "alt": "Alt",
    "option": "Alt",
    "cmd": "Meta",
    "command": "Meta",
    "meta": "Meta",
    "win": "Meta",
    "windows": "Meta",
}


def map_special_key(key_name: str) -> str:
    return SPECIAL_KEY_MAP.get(key_name.strip().lower(), key_name)


def map_modifier_key(modifier_name: str) -> str:
    return MODIFIER_KEY_MAP.get(modifier_name.strip().lower(), modifier_name)


def is_modifier_combination(command: str) -> bool:
    return bool(_COMBINATION_PATTERN.match(command))


def has_macro(value: Any) -> bool:
    return isinstance(value, str) and _COMMAND_PATTERN.search(value) is not None


def should_use_keyboard_mode(value: Any, explicit: Optional[bool] = None) -> bool:
    if explicit is not None:
        return bool(explicit)
    return has_macro(value)


def _parse_command(command: str) -> KeyboardOperation:
    if is_modifier_combination(command):
        parts = [part.strip() for part in command.split("+")]
        key = parts.pop()
        modifiers = [map_modifier_key(part) for part in parts]
        return KeyboardOperation.combination(modifiers, map_special_key(key))
    return KeyboardOperation.special_key(map_special_key(command))


def parse_keyboard_input(value: str) -> List[KeyboardOperation]:
    operations: List[KeyboardOperation] = []
    last_index = 0
    for match in _COMMAND_PATTERN.finditer(value):
        if match.start() > last_index:
            operations.append(KeyboardOperation.text(value[last_index:match.start()]))
        operations.append(_parse_command(match.group(1).strip()))
        last_index = match.end()
    if last_index < len(value):
        operations.append(KeyboardOperation.text(value[last_index:]))
    return operations


class KeyboardMacroRunner:
    """Run parsed operations in order against a keyboard."""

    def __init__(
        self,
        *,
        operation_delay_ms: int = 50,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._operation_delay_ms = max(0, int(operation_delay_ms))
        self._sleep = sleep

    async def run(
        self,
        keyboard: KeyboardLike,
        operations: List[KeyboardOperation],
    ) -> List[Dict[str, Any]]:
        performed: List[Dict[str, Any]] = []
        for operation in operations:
            try:
                done = await self._run_one(keyboard, operation)
            except Exception as exc:
                _log_value_event(
                    logger,
                    level=logging.ERROR,
                    event="keyboard_operation_failed",
                    operation=operation.to_dict(),
                    completed=len(performed),
                    error=exc,
                )
                raise KeyboardOperationError(f"Keyboard operation failed: {exc}") from exc
            if done:
                performed.append(operation.to_dict())
            await self._sleep(self._operation_delay_ms / 1000.0)
        return performed

    async def _run_one(self, keyboard: KeyboardLike, operation: KeyboardOperation) -> bool:
        if operation.kind == "text":
            if not operation.content:
                return False
            await keyboard.type(operation.content)
            return True

        if operation.kind == "specialKey":
            if not operation.key:
                return False
            await keyboard.press(operation.key)
            return True

        if not operation.modifiers or not operation.key:
            return False
        pressed: List[str] = []
        try:
            for modifier in operation.modifiers:
                await keyboard.down(modifier)
                pressed.append(modifier)
            await keyboard.press(operation.key)
        finally:
            # Release only the modifiers that actually went down.
            for modifier in reversed(pressed):
                await keyboard.up(modifier)
        return True
