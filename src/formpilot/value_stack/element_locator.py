"""Resolve a target specifier to an inventory element."""

from __future__ import annotations

import logging
from typing import Any, Optional

from .document import DocumentContext
from .logging_utils import _log_value_event, _preview_text
from .models import ElementDescriptor, LocateResult

logger = logging.getLogger(__name__)

_QUICK_ATTRIBUTES = ("placeholder", "name", "id")
_SLOW_ATTRIBUTES = ("aria-label", "title", "value")


def _contains(haystack: Optional[str], needle: str) -> bool:
    if not haystack:
        return False
    return needle in str(haystack).lower()


def matches_text_description(element: ElementDescriptor, description: str) -> bool:
    desc = str(description or "").lower().strip()
    if not desc:
        return False
    for name in _QUICK_ATTRIBUTES:
        if _contains(element.attributes.get(name), desc):
            return True
    if _contains(element.text, desc):
        return True
    for name in _SLOW_ATTRIBUTES:
        if _contains(element.attributes.get(name), desc):
            return True
    return False


def _coerce_index(target: Any) -> Optional[int]:
    if isinstance(target, bool):
        return None
    if isinstance(target, int):
        return target
    if isinstance(target, float) and target.is_integer():
        return int(target)
    if isinstance(target, str) and target.strip().lstrip("-").isdigit():
        return int(target.strip())
    return None


def is_index_target(target: Any, target_type: Optional[str]) -> bool:
    if target_type == "index":
        return True
    if target_type == "description":
        return False
    return not isinstance(target, bool) and isinstance(target, (int, float))


class ElementLocator:
    """Index lookups and ordered description matching over the inventory."""

    def __init__(self, document: DocumentContext) -> None:
        self._document = document

    def locate(self, target: Any, target_type: Optional[str] = None) -> LocateResult:
        if is_index_target(target, target_type):
            index = _coerce_index(target)
            if index is None:
                return LocateResult(success=False, error=f"Invalid element index: {target}")
            return self.locate_by_index(index)
        return self.locate_by_description(str(target))

    def locate_by_index(self, index: int) -> LocateResult:
        element = self._document.get_element_by_index(index)
        if element is None:
            _log_value_event(logger, level=logging.DEBUG, event="locate_index_miss", index=index)
            return LocateResult(
                success=False,
                error=f"Element with index {index} not found in DOM state",
            )
        return LocateResult(success=True, element=element, index=index)

    def locate_by_description(self, description: str) -> LocateResult:
        for index, element in self._document.iter_elements():
            if matches_text_description(element, description):
                _log_value_event(
                    logger,
                    level=logging.DEBUG,
                    event="locate_description_hit",
                    index=index,
                    tag=element.tag_name,
                )
                return LocateResult(success=True, element=element, index=index)
        _log_value_event(
            logger,
            level=logging.DEBUG,
            event="locate_description_miss",
            description=_preview_text(description),
        )
        return LocateResult(
            success=False,
            error=f'No element found matching description: "{description}"',
        )
