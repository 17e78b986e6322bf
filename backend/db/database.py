import logging
from pathlib import Path
from typing import Union

from fastapi import Request

from db.attachments import AttachmentStore
from db.registry import InventoryRegistry

logger = logging.getLogger(__name__)


def create_registry(cache_dir: Union[str, Path]) -> InventoryRegistry:
    """Build the attachment store and the registry on top of it, creating the cache directory."""
    store = AttachmentStore(cache_dir)
    if store.ensure_root():
        logger.info("Cache directory created: %s", store.root)
    return InventoryRegistry(store)


def get_registry(request: Request) -> InventoryRegistry:
    return request.app.state.registry
