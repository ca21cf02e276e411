"""ORM models. Importing this package registers every table on Base.metadata."""

from scanbarang.models.event import STATUS_DONE, STATUS_IN_USE, Event, ScanRecord, Status
from scanbarang.models.item import Brand, Item
from scanbarang.models.user import User

__all__ = [
    "Brand",
    "Event",
    "Item",
    "STATUS_DONE",
    "STATUS_IN_USE",
    "ScanRecord",
    "Status",
    "User",
]
