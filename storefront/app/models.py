"""Menu, cart and motion data types shared across the controller."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MenuTags(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_veg: bool = True
    is_spicy: bool = False
    is_popular: bool = False


class MenuItemDraft(BaseModel):
    """Item fields supplied by the owner; the id is assigned by AdminGate."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    hindi_name: Optional[str] = None
    description: str = ""
    price: int = Field(..., ge=0, description="Price in whole currency units")
    image: str = Field(..., min_length=1, description="Image URL or data URI")
    tags: MenuTags = Field(default_factory=MenuTags)
    ingredients: List[str] = Field(default_factory=list)
    is_custom: bool = True


class MenuItem(MenuItemDraft):
    """Immutable menu entry; updates replace it wholesale under the same id."""

    id: str = Field(..., min_length=1)
    is_custom: bool = False

    @classmethod
    def from_draft(cls, item_id: str, draft: MenuItemDraft) -> "MenuItem":
        return cls(id=item_id, **draft.model_dump(exclude={"is_custom"}), is_custom=True)


@dataclass(frozen=True)
class MotionSample:
    """One accelerometer reading; not retained beyond classification."""

    x: float
    y: float
    z: float
    timestamp_ms: int
    has_linear_acceleration: bool


@dataclass(frozen=True)
class ShakeEvent:
    """A gesture accepted for gating: physical shake, manual tap or permission grant."""

    timestamp_ms: int
    source: str = "shake"


@dataclass(frozen=True)
class CartLine:
    item: MenuItem
    quantity: int

    @property
    def line_total(self) -> int:
        return self.item.price * self.quantity


@dataclass(frozen=True)
class CartTotals:
    total_items: int = 0
    total_price: int = 0


__all__ = [
    "MenuTags",
    "MenuItemDraft",
    "MenuItem",
    "MotionSample",
    "ShakeEvent",
    "CartLine",
    "CartTotals",
]
