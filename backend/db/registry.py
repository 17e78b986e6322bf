"""
Inventory registry: in-memory item records and the photos that belong to them.

Records live only for the lifetime of the process. Ids come from a counter that
only moves forward, so an id is never handed out twice even after deletion.
"""

import logging
import threading
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from core.exceptions import ItemNotFound, ValidationError
from db.attachments import AttachmentStore

logger = logging.getLogger(__name__)

# Sentinel for "field not supplied" in partial updates; None is never a valid value there.
UNSET = object()


@dataclass
class InventoryRecord:
    id: int
    name: str
    description: str = ""
    # Storage key of the photo in the attachment store, None when there is no photo
    photo: Optional[str] = None

    @property
    def has_photo(self) -> bool:
        return self.photo is not None


class InventoryRegistry:
    def __init__(self, store: AttachmentStore):
        self.store = store
        # dicts keep insertion order, which is the listing order
        self._items: Dict[int, InventoryRecord] = {}
        self._next_id = 1
        self._lock = threading.RLock()

    def _require(self, item_id: int) -> InventoryRecord:
        item = self._items.get(item_id)
        if item is None:
            raise ItemNotFound(item_id)
        return item

    def register(
        self,
        name: Optional[str],
        description: Optional[str] = None,
        photo_bytes: Optional[bytes] = None,
        extension: Optional[str] = None,
    ) -> InventoryRecord:
        """Create a record, storing the photo first when one is given.

        Raises ValidationError for a missing/blank name (nothing is written),
        IOFailure when the photo cannot be stored (no record is created).
        """
        if name is None or not name.strip():
            raise ValidationError("Inventory name is required")

        with self._lock:
            photo = None
            if photo_bytes is not None:
                photo = self.store.store(photo_bytes, extension)

            item = InventoryRecord(
                id=self._next_id,
                name=name.strip(),
                description=description or "",
                photo=photo,
            )
            self._next_id += 1
            self._items[item.id] = item

        logger.info("registered item %d (photo=%s)", item.id, photo)
        return replace(item)

    def list(self) -> List[InventoryRecord]:
        with self._lock:
            return [replace(item) for item in self._items.values()]

    def get(self, item_id: int) -> InventoryRecord:
        with self._lock:
            return replace(self._require(item_id))

    def update(self, item_id: int, name=UNSET, description=UNSET) -> InventoryRecord:
        """Overwrite only the fields that were passed.

        Unlike register(), an empty name is accepted here.
        """
        with self._lock:
            item = self._require(item_id)
            if name is not UNSET and name is not None:
                item.name = name
            if description is not UNSET and description is not None:
                item.description = description
            logger.info("updated item %d", item_id)
            return replace(item)

    def delete(self, item_id: int) -> None:
        with self._lock:
            item = self._require(item_id)
            if item.photo:
                self.store.delete(item.photo)
            del self._items[item_id]
        logger.info("deleted item %d", item_id)

    def replace_photo(
        self,
        item_id: int,
        photo_bytes: Optional[bytes] = None,
        extension: Optional[str] = None,
    ) -> InventoryRecord:
        """Drop the current photo and attach ``photo_bytes``; with no bytes the photo is just removed."""
        with self._lock:
            item = self._require(item_id)
            if item.photo:
                self.store.delete(item.photo)
                item.photo = None
            if photo_bytes is not None:
                item.photo = self.store.store(photo_bytes, extension)
            logger.info("replaced photo of item %d (photo=%s)", item_id, item.photo)
            return replace(item)

    def find_by_id(self, item_id: int, photo_locator: Optional[str] = None) -> InventoryRecord:
        """Same as get(); when ``photo_locator`` is given and the item has a photo,
        the returned copy carries it appended to the description."""
        found = self.get(item_id)
        if photo_locator and found.has_photo:
            found.description = f"{found.description}\n\nPhoto URL: {photo_locator}"
        return found
