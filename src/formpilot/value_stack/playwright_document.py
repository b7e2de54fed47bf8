"""Playwright-backed document collaborator.

A minimal inventory builder: every form-like or focusable control on the
page gets a ``data-formpilot-index`` marker and a descriptor snapshot. Index
order follows document order.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .logging_utils import _log_value_event
from .models import ElementDescriptor

logger = logging.getLogger(__name__)

INDEX_ATTRIBUTE = "data-formpilot-index"
DEFAULT_STABLE_TIMEOUT_MS = 3_000
INVENTORY_SELECTOR = (
    "input, textarea, select, [contenteditable='true'], button, a[href], "
    "[role='textbox'], [role='combobox'], [role='checkbox'], [role='radio'], [tabindex]"
)

SNAPSHOT_INVENTORY_JS = """(args) => {
  const nodes = Array.from(document.querySelectorAll(args.selector));
  const items = [];
  let index = 0;
  for (const el of nodes) {
    const rect = el.getBoundingClientRect();
    if (rect.width <= 0 || rect.height <= 0) {
      el.removeAttribute(args.marker);
      continue;
    }
    el.setAttribute(args.marker, String(index));
    const attributes = {};
    for (const attr of Array.from(el.attributes)) {
      if (attr.name === args.marker) continue;
      attributes[attr.name] = attr.value;
    }
    if ("value" in el && el.tagName !== "SELECT") {
      attributes.value = String(el.value ?? "");
    }
    items.push({
      index,
      tag_name: el.tagName.toLowerCase(),
      attributes,
      text: (el.innerText || el.textContent || "").trim().slice(0, 200),
    });
    index += 1;
  }
  return items;
}"""


def _descriptor_from_snapshot(item: Dict[str, Any]) -> ElementDescriptor:
    attributes = {
        str(name): "" if value is None else str(value)
        for name, value in (item.get("attributes") or {}).items()
    }
    return ElementDescriptor(
        index=int(item.get("index", 0)),
        tag_name=str(item.get("tag_name") or ""),
        attributes=attributes,
        text=str(item.get("text") or ""),
    )


async def build_inventory(page: Any, *, selector: str = INVENTORY_SELECTOR) -> List[ElementDescriptor]:
    raw = await page.evaluate(
        SNAPSHOT_INVENTORY_JS,
        {"selector": selector, "marker": INDEX_ATTRIBUTE},
    )
    elements = [_descriptor_from_snapshot(item) for item in raw or []]
    _log_value_event(
        logger,
        level=logging.DEBUG,
        event="inventory_built",
        url=getattr(page, "url", None),
        elements=len(elements),
    )
    return elements


class PlaywrightDocument:
    """DocumentContext over one Playwright ``Page`` and its inventory snapshot."""

    def __init__(
        self,
        page: Any,
        elements: Iterable[ElementDescriptor],
        *,
        stable_timeout_ms: int = DEFAULT_STABLE_TIMEOUT_MS,
    ) -> None:
        self._page = page
        self._url = getattr(page, "url", None)
        self._elements: Dict[int, ElementDescriptor] = {
            element.index: element for element in elements
        }
        self._stable_timeout_ms = stable_timeout_ms

    @classmethod
    async def snapshot(cls, page: Any, **kwargs: Any) -> "PlaywrightDocument":
        return cls(page, await build_inventory(page), **kwargs)

    @property
    def page(self) -> Any:
        return self._page

    @property
    def url(self) -> Optional[str]:
        """URL of the page when the inventory was captured."""
        return self._url

    @property
    def keyboard(self) -> Any:
        return self._page.keyboard

    def get_element_by_index(self, index: int) -> Optional[ElementDescriptor]:
        return self._elements.get(index)

    def iter_elements(self) -> Iterable[Tuple[int, ElementDescriptor]]:
        return iter(sorted(self._elements.items()))

    def element_count(self) -> int:
        return len(self._elements)

    async def get_handle(self, element: ElementDescriptor) -> Optional[Any]:
        return await self._page.query_selector(f'[{INDEX_ATTRIBUTE}="{element.index}"]')

    async def wait_for_stable(self) -> None:
        try:
            await self._page.wait_for_load_state("domcontentloaded", timeout=self._stable_timeout_ms)
        except Exception as exc:
            _log_value_event(logger, level=logging.DEBUG, event="wait_for_stable_skipped", error=exc)


class PlaywrightDocumentProvider:
    """Serve the most recently opened page of a ``BrowserContext``.

    The inventory is cached per page and URL; ``refresh()`` drops the cache so the next
    request re-snapshots the document.
    """

    def __init__(self, context: Any) -> None:
        self._context = context
        self._cached: Optional[PlaywrightDocument] = None

    def refresh(self) -> None:
        self._cached = None

    async def get_current_document(self) -> Optional[PlaywrightDocument]:
        pages = [page for page in self._context.pages if not page.is_closed()]
        if not pages:
            return None
        page = pages[-1]
        if (
            self._cached is None
            or self._cached.page is not page
            or self._cached.url != getattr(page, "url", None)
        ):
            self._cached = await PlaywrightDocument.snapshot(page)
        return self._cached
