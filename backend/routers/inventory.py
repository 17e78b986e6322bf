import os
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import ItemNotFound, PhotoNotFound
from db.database import get_registry
from db.registry import UNSET, InventoryRecord, InventoryRegistry
from schemas.inventory import (
    InventoryItemDeleted,
    InventoryItemRead,
    InventoryItemRegistered,
    InventoryItemUpdate,
    InventoryItemUpdated,
    PhotoUpdated,
)

router = APIRouter()

EXT_TO_CONTENT_TYPE = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "heic": "image/heic",
    "heif": "image/heif",
    "svg": "image/svg+xml",
}

TRUTHY_FLAGS = {"on", "true"}


def _parse_id(raw: str) -> int:
    # Ids that are not integers can never match a record.
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ItemNotFound(raw)


def _photo_url(item: InventoryRecord) -> Optional[str]:
    return f"/inventory/{item.id}/photo" if item.has_photo else None


def _to_read(item: InventoryRecord) -> InventoryItemRead:
    return InventoryItemRead(
        id=item.id,
        inventory_name=item.name,
        description=item.description,
        photo_url=_photo_url(item),
    )


def _read_upload(request: Request, photo: Optional[UploadFile]) -> Tuple[Optional[bytes], Optional[str]]:
    """Return (bytes, extension) of an uploaded photo, or (None, None) when no file was sent."""
    if photo is None or not photo.filename:
        return None, None

    data = photo.file.read()
    limit = request.app.state.settings.max_upload_bytes
    if limit and len(data) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Upload exceeds maximum file size",
        )
    return data, os.path.splitext(photo.filename)[1]


@router.post("/register", response_model=InventoryItemRegistered, status_code=status.HTTP_201_CREATED)
def register_item(
    request: Request,
    inventory_name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    registry: InventoryRegistry = Depends(get_registry),
):
    """Register a new inventory item, optionally with a photo."""
    data, ext = _read_upload(request, photo)
    item = registry.register(inventory_name, description, data, ext)
    return InventoryItemRegistered(item=_to_read(item))


@router.get("/inventory", response_model=List[InventoryItemRead])
def list_items(registry: InventoryRegistry = Depends(get_registry)):
    return [_to_read(item) for item in registry.list()]


@router.get("/inventory/{item_id}", response_model=InventoryItemRead)
def get_item(item_id: str, registry: InventoryRegistry = Depends(get_registry)):
    return _to_read(registry.get(_parse_id(item_id)))


@router.put("/inventory/{item_id}", response_model=InventoryItemUpdated)
async def update_item(
    item_id: str,
    request: Request,
    registry: InventoryRegistry = Depends(get_registry),
):
    """Update name and/or description. Accepts a JSON body or a form."""
    item_key = _parse_id(item_id)

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            raw = await request.json()
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Body is not valid JSON")
    else:
        form = await request.form()
        raw = {k: v for k, v in form.items() if isinstance(v, str)}

    try:
        payload = InventoryItemUpdate.model_validate(raw)
    except PydanticValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    data = payload.model_dump(exclude_unset=True)
    item = await run_in_threadpool(
        registry.update,
        item_key,
        name=data.get("inventory_name", UNSET),
        description=data.get("description", UNSET),
    )
    return InventoryItemUpdated(item=_to_read(item))


@router.delete("/inventory/{item_id}", response_model=InventoryItemDeleted)
def delete_item(item_id: str, registry: InventoryRegistry = Depends(get_registry)):
    item_key = _parse_id(item_id)
    registry.delete(item_key)
    return InventoryItemDeleted(id=item_key)


@router.get("/inventory/{item_id}/photo", response_class=Response)
def get_photo(item_id: str, registry: InventoryRegistry = Depends(get_registry)):
    """Serve the photo bytes of an item."""
    try:
        item = registry.get(_parse_id(item_id))
    except ItemNotFound:
        raise PhotoNotFound()
    if not item.has_photo:
        raise PhotoNotFound()

    data = registry.store.read(item.photo)
    ext = os.path.splitext(item.photo)[1].lower().lstrip(".")
    return Response(content=data, media_type=EXT_TO_CONTENT_TYPE.get(ext, "image/jpeg"))


@router.put("/inventory/{item_id}/photo", response_model=PhotoUpdated)
def replace_photo(
    item_id: str,
    request: Request,
    photo: Optional[UploadFile] = File(None),
    registry: InventoryRegistry = Depends(get_registry),
):
    """Replace the photo of an item; a request without a file removes it."""
    item_key = _parse_id(item_id)
    data, ext = _read_upload(request, photo)
    item = registry.replace_photo(item_key, data, ext)
    return PhotoUpdated(photo_url=_photo_url(item))


@router.post("/search", response_model=InventoryItemRead)
def search_item(
    request: Request,
    id: Optional[str] = Form(None),
    has_photo: Optional[str] = Form(None),
    registry: InventoryRegistry = Depends(get_registry),
):
    """Look an item up by id; with ``has_photo`` the photo link is added to the description."""
    item_key = _parse_id(id)
    locator = None
    if (has_photo or "").lower() in TRUTHY_FLAGS:
        locator = f"{str(request.base_url).rstrip('/')}/inventory/{item_key}/photo"
    return _to_read(registry.find_by_id(item_key, photo_locator=locator))
