"""Error taxonomy shared by the attachment store, the registry and the HTTP layer."""


class InventoryError(Exception):
    """Base class for every error raised by the inventory core."""


class ValidationError(InventoryError):
    """Missing or malformed required input (e.g. a blank item name)."""


class NotFound(InventoryError):
    pass


class ItemNotFound(NotFound):
    def __init__(self, item_id: int):
        super().__init__(f"Inventory item {item_id} does not exist")
        self.item_id = item_id


class PhotoNotFound(NotFound):
    def __init__(self, detail: str = "Photo does not exist"):
        super().__init__(detail)


class IOFailure(InventoryError):
    """The filesystem refused a write, read or delete of an attachment."""
