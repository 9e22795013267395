# core/presenter.py
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .errors import StorefrontError
from .logger import get_logger
from .models import ItemId, PendingOp, Product, Slot

logger = get_logger(__name__)


@dataclass
class ProductView:
    """Per-product state a product card needs to draw itself."""
    product: Product
    in_cart: bool
    in_wishlist: bool
    cart_pending: Optional[PendingOp]
    wishlist_pending: Optional[PendingOp]
    quantity: int = 1
    error: str = ""

    @property
    def is_pending(self) -> bool:
        return self.cart_pending is not None or self.wishlist_pending is not None

    @property
    def cart_label(self) -> str:
        if self.in_cart:
            return "Processing..." if self.cart_pending else "Remove from Cart"
        return "Adding..." if self.cart_pending else "Add to Cart"

    @property
    def wishlist_label(self) -> str:
        if self.wishlist_pending:
            return "Processing..."
        return "Remove from Wishlist" if self.in_wishlist else "Add to Wishlist"


class CatalogPresenter:
    def __init__(self, sync):
        self.sync = sync
        self._quantities: Dict[ItemId, int] = {}
        self._errors: Dict[ItemId, str] = {}
        self._session_id = sync.session.session_id

    def _follow_session(self) -> bool:
        """Drop per-item gestures and messages left over from a replaced session."""
        current = self.sync.session.session_id
        if current == self._session_id:
            return False
        self._quantities.clear()
        self._errors.clear()
        self._session_id = current
        return True

    def quantity(self, item_id: ItemId) -> int:
        self._follow_session()
        return self._quantities.get(item_id, 1)

    def change_quantity(self, item_id: ItemId, delta: int) -> int:
        qty = max(1, self.quantity(item_id) + delta)
        self._quantities[item_id] = qty
        return qty

    def set_quantity(self, item_id: ItemId, quantity: int) -> int:
        self._follow_session()
        qty = max(1, int(quantity))
        self._quantities[item_id] = qty
        return qty

    def error_for(self, item_id: ItemId) -> str:
        self._follow_session()
        return self._errors.get(item_id, "")

    def view(self, product: Product) -> ProductView:
        iid = product.item_id
        return ProductView(
            product=product,
            in_cart=self.sync.is_member(Slot.CART, iid),
            in_wishlist=self.sync.is_member(Slot.WISHLIST, iid),
            cart_pending=self.sync.pending_op(Slot.CART, iid),
            wishlist_pending=self.sync.pending_op(Slot.WISHLIST, iid),
            quantity=self.quantity(iid),
            error=self.error_for(iid),
        )

    def views(self, products: Iterable[Product]) -> List[ProductView]:
        return [self.view(p) for p in products]

    async def _run(self, item_id: ItemId, call) -> bool:
        self._follow_session()
        try:
            changed = await call
        except StorefrontError as e:
            if self._follow_session():
                # Outcome belongs to a session that is gone
                return False
            self._errors[item_id] = e.user_message
            logger.debug("Recorded error for %s: %s", item_id, e.user_message)
            return False
        if not self._follow_session():
            self._errors.pop(item_id, None)
        return changed

    async def add_to_cart(self, item_id: ItemId) -> bool:
        return await self._run(
            item_id, self.sync.request_add(Slot.CART, item_id, self.quantity(item_id))
        )

    async def remove_from_cart(self, item_id: ItemId) -> bool:
        return await self._run(item_id, self.sync.request_remove(Slot.CART, item_id))

    async def add_to_wishlist(self, item_id: ItemId) -> bool:
        return await self._run(item_id, self.sync.request_add(Slot.WISHLIST, item_id))

    async def remove_from_wishlist(self, item_id: ItemId) -> bool:
        return await self._run(item_id, self.sync.request_remove(Slot.WISHLIST, item_id))

    async def toggle_wishlist(self, item_id: ItemId) -> bool:
        if self.sync.is_member(Slot.WISHLIST, item_id):
            return await self.remove_from_wishlist(item_id)
        return await self.add_to_wishlist(item_id)
