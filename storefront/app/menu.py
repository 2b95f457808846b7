"""Menu catalog: static categories plus the owner's 'Today's Special' list."""
from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from .models import MenuItem

logger = logging.getLogger(__name__)

SPECIALS_CATEGORY_ID = "specials"
SPECIALS_CATEGORY_LABEL = "Today's Special"


class MenuCategory(BaseModel):
    id: str
    label: str
    items: List[MenuItem] = Field(default_factory=list)


_CATEGORY_LIST = TypeAdapter(List[MenuCategory])


def load_catalog(path: Optional[Path]) -> List[MenuCategory]:
    """Read static categories from JSON; a missing or invalid file yields an empty menu."""
    if path is None:
        return []
    path = Path(path).expanduser()
    try:
        return _CATEGORY_LIST.validate_json(path.read_bytes())
    except FileNotFoundError:
        logger.warning("Menu catalog %s not found - serving specials only", path)
    except (OSError, ValidationError, ValueError) as exc:
        logger.warning("Menu catalog %s unreadable - serving specials only: %s", path, exc)
    return []


class MenuCatalog:
    """Combines static categories with the live specials list.

    ``specials`` is read on every call, so items added in owner mode are part
    of the very next pool.
    """

    def __init__(
        self,
        categories: Sequence[MenuCategory],
        specials: Callable[[], Sequence[MenuItem]],
    ) -> None:
        self._categories = list(categories)
        self._specials = specials

    def categories(self) -> List[MenuCategory]:
        specials = list(self._specials())
        if not specials:
            return list(self._categories)
        special_category = MenuCategory(id=SPECIALS_CATEGORY_ID, label=SPECIALS_CATEGORY_LABEL, items=specials)
        return [special_category, *self._categories]

    def pool(self) -> Tuple[MenuItem, ...]:
        """Every item across all categories, specials first."""
        return tuple(item for category in self.categories() for item in category.items)

    def find(self, item_id: str) -> Optional[MenuItem]:
        for item in self.pool():
            if item.id == item_id:
                return item
        return None


__all__ = ["MenuCategory", "MenuCatalog", "load_catalog", "SPECIALS_CATEGORY_ID"]
