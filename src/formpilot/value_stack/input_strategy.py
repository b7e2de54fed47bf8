"""Classify an element descriptor into an input strategy."""

from __future__ import annotations

from .models import ElementDescriptor, InputStrategy

SUPPORTED_ELEMENT_TYPES = ("input", "select", "textarea", "contenteditable")
UNSUPPORTED_SUGGESTED_ACTIONS = (
    "Check if element is actually interactive",
    "Verify element type matches expected behavior",
    "Use click_element tool for non-form elements",
)

# Every other input subtype (text, password, email, date, ...) is typed.
_INPUT_SUBTYPE_STRATEGIES = {
    "checkbox": InputStrategy("checkbox", "toggle", True),
    "radio": InputStrategy("radio", "toggle", True),
    "file": InputStrategy("file", "upload", False),
}
_TEXT_INPUT = InputStrategy("text-input", "type", True)


def determine_input_strategy(element: ElementDescriptor) -> InputStrategy:
    tag_name = (element.tag_name or "").lower()
    input_type = (element.attr("type") or "text").lower()

    if tag_name == "select":
        if element.has_attr("multiple"):
            return InputStrategy("multi-select", "multi-select", True)
        return InputStrategy("select", "single-select", True)

    if tag_name == "input":
        return _INPUT_SUBTYPE_STRATEGIES.get(input_type, _TEXT_INPUT)

    if tag_name == "textarea":
        return InputStrategy("textarea", "type", True)

    if element.attr("contenteditable").lower() == "true":
        return InputStrategy("contenteditable", "type", True)

    return InputStrategy(tag_name, "unknown", False)
