# core/models.py
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Set

ItemId = str


class Slot(str, Enum):
    """Named partition of synchronized state; the value is the persisted slot name."""

    CART = "cart"
    WISHLIST = "wishlist"


class PendingOp(str, Enum):
    ADD = "add"
    REMOVE = "remove"


MembershipSet = Set[ItemId]
PendingMap = Dict[ItemId, PendingOp]


@dataclass
class Product:
    """
    Catalog entry as served by the product service.
    Prices are stored in cents for consistency.
    """
    item_id: ItemId
    name: str
    description: str = ""
    image_url: str = ""
    category: str = ""
    price_cents: int = -1
    available: bool = True
    stock: int = 0


# Categories a seller may file a product under
PRODUCT_CATEGORIES = (
    "Music",
    "Fashion",
    "Kitchen",
    "Health Care",
    "Books and Stationery",
    "Sports",
    "Games",
    "Beauty",
    "Jewelry",
    "Groceries",
    "Baby Products",
    "Hardware",
    "Office Supplies",
    "Musical Instruments",
    "Furniture",
    "Art and Craft",
    "Industrial and Scientific",
    "Video Games",
)
