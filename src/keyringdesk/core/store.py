"""In-memory Item Store: items keyed by title plus the category table.

Category ids 0 ("Unfiled") and -1 ("All", a UI pseudo-category) always
exist. Other ids are handed out from a counter that only moves up, so an id
keeps naming the same category for the life of a document.
"""
from __future__ import annotations

import logging
import threading
from typing import Dict, List, Mapping, Optional

from .exceptions import StateError
from .models import Item

logger = logging.getLogger(__name__)

UNFILED_ID = 0
UNFILED_NAME = "Unfiled"
ALL_ID = -1
ALL_NAME = "All"


class ItemStore:
    def __init__(self):
        self._items: Dict[str, Item] = {}
        self._categories_by_id: Dict[int, str] = {}
        self._categories_by_name: Dict[str, int] = {}
        self._next_category = 1
        self._category_lock = threading.Lock()
        self._set_default_categories()

    def _set_default_categories(self) -> None:
        self._categories_by_id[UNFILED_ID] = UNFILED_NAME
        self._categories_by_id[ALL_ID] = ALL_NAME
        self._categories_by_name[UNFILED_NAME] = UNFILED_ID
        self._categories_by_name[ALL_NAME] = ALL_ID

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def add(self, item: Item) -> None:
        """Insert ``item``, replacing any item with the same title."""
        self._items[item.title] = item

    def remove(self, title: str) -> bool:
        item = self._items.pop(title, None)
        if item is None:
            return False
        item.detach()
        return True

    def get(self, title: str) -> Optional[Item]:
        return self._items.get(title)

    def items(self) -> List[Item]:
        return list(self._items.values())

    def titles(self) -> List[str]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, title: object) -> bool:
        return title in self._items

    def clear(self) -> None:
        for item in self._items.values():
            item.detach()
        self._items.clear()

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def category_id_for_name(self, name: str) -> int:
        """Return the id for ``name``, allocating a new one for an unseen name."""
        if name.lower() == UNFILED_NAME.lower():
            return UNFILED_ID
        with self._category_lock:
            category_id = self._categories_by_name.get(name)
            if category_id is None:
                category_id = self._next_category
                self._next_category += 1
                self._categories_by_name[name] = category_id
                self._categories_by_id[category_id] = name
                logger.debug("allocated category id %d", category_id)
            return category_id

    def category_name_for_id(self, category_id: int) -> str:
        if category_id == UNFILED_ID:
            return UNFILED_NAME
        name = self._categories_by_id.get(category_id)
        if name is None:
            raise StateError(f"No category found for id {category_id}")
        return name

    def categories(self) -> List[str]:
        """Category names for display: alphabetical, no "All", "Unfiled" first."""
        names = sorted(self._categories_by_name)
        for reserved in (ALL_NAME, UNFILED_NAME):
            if reserved in names:
                names.remove(reserved)
        names.insert(0, UNFILED_NAME)
        return names

    def categories_by_id(self) -> Dict[int, str]:
        return dict(self._categories_by_id)

    def load_categories(self, raw: Optional[Mapping[int, str]]) -> None:
        """Replace the category table, then reinstate the reserved ids."""
        with self._category_lock:
            self._categories_by_id = {}
            self._categories_by_name = {}
            for category_id, name in (raw or {}).items():
                self._categories_by_id[category_id] = name
                self._categories_by_name[name] = category_id
            self._set_default_categories()
            self._next_category = max([1] + [i + 1 for i in self._categories_by_id])
