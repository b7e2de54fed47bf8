"""In-memory stand-ins for the live document, element handles and keyboard."""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from formpilot.value_stack import value_scripts as scripts
from formpilot.value_stack.models import ElementDescriptor


class RecordingSleep:
    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def milliseconds(self) -> List[int]:
        return [round(seconds * 1000) for seconds in self.calls]


class FakeElementHandle:
    """Interprets the value-stack JS snippets against plain Python state."""

    def __init__(
        self,
        *,
        kind: str = "input",
        value: str = "",
        visible: bool = True,
        disabled: bool = False,
        readonly: bool = False,
        checked: bool = False,
        options: Optional[Sequence[Tuple[str, str]]] = None,
        selected: Optional[Sequence[str]] = None,
        type_failures: int = 0,
        read_value: Optional[str] = None,
    ):
        self.kind = kind
        self.value = value
        self.visible = visible
        self.disabled = disabled
        self.readonly = readonly
        self.checked = checked
        self.options = list(options or [])
        self.selected = list(selected or [])
        self.type_failures = type_failures
        self.read_value = read_value
        self.events: List[str] = []
        self.typed: List[Tuple[str, float]] = []
        self.focused = False
        self.scrolled = False
        self.cleared = 0

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        if expression == scripts.INTERACTABLE_STATE_JS:
            return {"visible": self.visible, "disabled": self.disabled, "readonly": self.readonly}
        if expression == scripts.SCROLL_INTO_VIEW_JS:
            self.scrolled = True
            return None
        if expression == scripts.CLEAR_VALUE_JS:
            self.value = ""
            self.cleared += 1
            self.events.append("input")
            return None
        if expression == scripts.CAN_CLEAR_JS:
            return self.kind in {"input", "textarea", "contenteditable"}
        if expression == scripts.DISPATCH_EVENTS_JS:
            self.events.extend(arg or [])
            return None
        if expression == scripts.READ_VALUE_JS:
            return self.value if self.read_value is None else self.read_value
        if expression == scripts.SELECT_SINGLE_JS:
            return self._select_single(str(arg["value"]))
        if expression == scripts.SELECT_MULTIPLE_JS:
            return self._select_multiple([str(item) for item in arg["values"]])
        if expression == scripts.READ_CHECKED_JS:
            return self.checked
        if expression == scripts.TOGGLE_CHECKED_JS:
            target = bool(arg["checked"])
            if self.checked != target:
                self.checked = target
                self.events.extend(["change", "input"])
            return self.checked
        raise AssertionError(f"unexpected script: {expression[:40]}")

    async def type(self, text: str, *, delay: float = 0) -> None:
        self.typed.append((text, delay))
        if self.type_failures > 0:
            self.type_failures -= 1
            raise RuntimeError("keystroke dispatch failed")
        self.value += text

    async def focus(self) -> None:
        self.focused = True

    def _find_option(self, wanted: str) -> Optional[Tuple[str, str]]:
        for option_value, text in self.options:
            if text.strip() == wanted or option_value == wanted:
                return option_value, text
        return None

    def _available(self) -> Dict[str, Any]:
        return {
            "available": [text.strip() for _, text in self.options[:5]],
            "total": len(self.options),
        }

    def _select_single(self, wanted: str) -> Dict[str, Any]:
        option = self._find_option(wanted)
        if option is None:
            return {"found": False, **self._available()}
        changed = self.value != option[0]
        self.value = option[0]
        if changed:
            self.events.extend(["change", "input"])
        return {"found": True, "text": option[1].strip(), "changed": changed}

    def _select_multiple(self, wanted: List[str]) -> Dict[str, Any]:
        self.selected = []
        texts = []
        for item in wanted:
            option = self._find_option(item)
            if option is not None:
                self.selected.append(option[0])
                texts.append(option[1].strip())
        if not texts:
            return {"selected": [], **self._available()}
        self.events.extend(["change", "input"])
        return {"selected": texts}


class FakeKeyboard:
    def __init__(self, *, target: Optional[FakeElementHandle] = None, fail_on: Optional[str] = None):
        self.target = target
        self.fail_on = fail_on
        self.calls: List[Tuple[str, str]] = []

    async def _record(self, action: str, key: str) -> None:
        if self.fail_on is not None and key == self.fail_on:
            raise RuntimeError(f"Unknown key: {key}")
        self.calls.append((action, key))

    async def down(self, key: str) -> None:
        await self._record("down", key)

    async def up(self, key: str) -> None:
        await self._record("up", key)

    async def press(self, key: str) -> None:
        await self._record("press", key)

    async def type(self, text: str) -> None:
        await self._record("type", text)
        if self.target is not None:
            self.target.value += text


class FakeDocument:
    def __init__(
        self,
        elements: Sequence[ElementDescriptor] = (),
        handles: Optional[Dict[int, FakeElementHandle]] = None,
        keyboard: Optional[FakeKeyboard] = None,
    ):
        self.elements = {element.index: element for element in elements}
        self.handles = dict(handles or {})
        self._keyboard = keyboard or FakeKeyboard()
        self.stable_waits = 0

    @property
    def keyboard(self) -> FakeKeyboard:
        return self._keyboard

    def get_element_by_index(self, index: int) -> Optional[ElementDescriptor]:
        return self.elements.get(index)

    def iter_elements(self):
        return iter(sorted(self.elements.items()))

    def element_count(self) -> int:
        return len(self.elements)

    async def get_handle(self, element: ElementDescriptor) -> Optional[FakeElementHandle]:
        return self.handles.get(element.index)

    async def wait_for_stable(self) -> None:
        self.stable_waits += 1


class FakeProvider:
    def __init__(self, document: Optional[FakeDocument]):
        self.document = document

    async def get_current_document(self) -> Optional[FakeDocument]:
        return self.document


def element(index: int, tag_name: str = "input", text: str = "", **attributes: str) -> ElementDescriptor:
    """Build a descriptor; attribute names use ``_`` for ``-`` (aria_label -> aria-label)."""
    return ElementDescriptor(
        index=index,
        tag_name=tag_name,
        attributes={name.replace("_", "-"): value for name, value in attributes.items()},
        text=text,
    )
