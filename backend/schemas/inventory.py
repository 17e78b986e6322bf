from typing import Optional

from pydantic import BaseModel


class InventoryItemRead(BaseModel):
    id: int
    inventory_name: str
    description: str
    photo_url: Optional[str] = None


class InventoryItemUpdate(BaseModel):
    # Leaving a field out keeps the stored value; an empty string is a real value.
    inventory_name: Optional[str] = None
    description: Optional[str] = None


class InventoryItemRegistered(BaseModel):
    message: str = "Inventory item registered successfully"
    item: InventoryItemRead


class InventoryItemUpdated(BaseModel):
    message: str = "Inventory item updated successfully"
    item: InventoryItemRead


class InventoryItemDeleted(BaseModel):
    message: str = "Inventory item deleted successfully"
    id: int


class PhotoUpdated(BaseModel):
    message: str = "Photo updated successfully"
    photo_url: Optional[str] = None
