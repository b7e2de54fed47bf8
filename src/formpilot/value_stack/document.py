"""Capability protocols the value stack consumes from the live document."""

from __future__ import annotations

from typing import Any, Iterable, Optional, Protocol, Tuple

from .models import ElementDescriptor


class KeyboardLike(Protocol):
    async def down(self, key: str) -> None: ...

    async def up(self, key: str) -> None: ...

    async def press(self, key: str) -> None: ...

    async def type(self, text: str) -> None: ...


class ElementHandleLike(Protocol):
    async def evaluate(self, expression: str, arg: Any = None) -> Any: ...

    async def type(self, text: str, *, delay: float = 0) -> None: ...

    async def focus(self) -> None: ...


class DocumentContext(Protocol):
    """One live document plus the element inventory indexed for it."""

    @property
    def keyboard(self) -> KeyboardLike: ...

    def get_element_by_index(self, index: int) -> Optional[ElementDescriptor]: ...

    def iter_elements(self) -> Iterable[Tuple[int, ElementDescriptor]]: ...

    def element_count(self) -> int: ...

    async def get_handle(self, element: ElementDescriptor) -> Optional[ElementHandleLike]: ...

    async def wait_for_stable(self) -> None: ...


class DocumentProvider(Protocol):
    async def get_current_document(self) -> Optional[DocumentContext]: ...
