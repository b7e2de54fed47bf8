"""Request models and per-request value objects for the value stack."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator


class ValueOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    clear_first: StrictBool = Field(True, description="Whether to clear existing content first.")
    submit: StrictBool = Field(False, description="Whether to press Enter after setting the value.")
    wait_after: float = Field(1.0, description="Seconds to wait after setting the value (0-30).")

    @field_validator("wait_after", mode="before")
    @classmethod
    def _check_wait_after(cls, value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("options.wait_after must be a number between 0 and 30 seconds")
        if not math.isfinite(value) or value < 0 or value > 30:
            raise ValueError("options.wait_after must be a number between 0 and 30 seconds")
        return float(value)

    def used(self) -> Dict[str, Any]:
        return {
            "clear_first": self.clear_first,
            "submit": self.submit,
            "wait_after": self.wait_after,
        }


@dataclass(frozen=True)
class ElementDescriptor:
    """Read-only snapshot of one inventory element."""

    index: int
    tag_name: str
    attributes: Mapping[str, str] = field(default_factory=dict)
    text: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    def attr(self, name: str) -> str:
        value = self.attributes.get(name)
        return "" if value is None else str(value)

    def has_attr(self, name: str) -> bool:
        return name in self.attributes

    def info(self) -> Dict[str, str]:
        return {
            "tag_name": self.tag_name,
            "text": self.text or "",
            "placeholder": self.attr("placeholder"),
            "name": self.attr("name"),
            "id": self.attr("id"),
            "type": self.attr("type"),
        }


@dataclass(frozen=True)
class InputStrategy:
    element_type: str
    method: str
    can_handle: bool


@dataclass(frozen=True)
class KeyboardOperation:
    kind: str
    content: Optional[str] = None
    key: Optional[str] = None
    modifiers: tuple[str, ...] = ()

    @classmethod
    def text(cls, content: str) -> "KeyboardOperation":
        return cls(kind="text", content=content)

    @classmethod
    def special_key(cls, key: str) -> "KeyboardOperation":
        return cls(kind="specialKey", key=key)

    @classmethod
    def combination(cls, modifiers: List[str], key: str) -> "KeyboardOperation":
        return cls(kind="modifierCombination", key=key, modifiers=tuple(modifiers))

    def to_dict(self) -> Dict[str, Any]:
        if self.kind == "text":
            return {"type": "text", "content": self.content}
        if self.kind == "specialKey":
            return {"type": "specialKey", "key": self.key}
        return {"type": "modifierCombination", "modifiers": list(self.modifiers), "key": self.key}


@dataclass(frozen=True)
class LocateResult:
    success: bool
    element: Optional[ElementDescriptor] = None
    index: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class SetResult:
    actual_value: Any
    submitted: bool = False
    operations_performed: Optional[List[Dict[str, Any]]] = None
