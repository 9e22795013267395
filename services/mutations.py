# services/mutations.py
import os
from typing import Any, Dict, Optional, Set

from core.errors import Malformed, Unauthenticated
from core.logger import get_logger
from core.models import ItemId, Slot

from .http import request_json

logger = get_logger(__name__)

ACCOUNT_BASE_URL = os.getenv(
    "ACCOUNT_BASE_URL", "https://webproject-authenticationservice.onrender.com"
).rstrip("/")


def _extract_ids(data: Any, slot: Slot) -> Optional[Set[ItemId]]:
    if isinstance(data, dict):
        for key in ("items", "products", slot.value):
            if isinstance(data.get(key), list):
                data = data[key]
                break
        else:
            return None
    if not isinstance(data, list):
        return None

    ids: Set[ItemId] = set()
    for entry in data:
        if isinstance(entry, str):
            ids.add(entry)
        elif isinstance(entry, dict):
            iid = entry.get("productId") or entry.get("_id")
            if isinstance(iid, dict):
                # populated references: {"productId": {"_id": ...}}
                iid = iid.get("_id")
            if iid:
                ids.add(str(iid))
    return ids


class MutationClient:
    """
    Authenticated add/remove calls against the cart and wishlist endpoints.

    Methods block; the synchronizer runs them off the event loop. Failures
    raise the MutationError kinds from core.errors.
    """

    def __init__(self, base_url: str = ACCOUNT_BASE_URL):
        self.base_url = base_url.rstrip("/")

    def _url(self, slot: Slot, action: str = "") -> str:
        path = f"{self.base_url}/{Slot(slot).value}"
        return f"{path}/{action}" if action else path

    def add_item(
        self,
        slot: Slot,
        item_id: ItemId,
        credential: Optional[str],
        quantity: int = 1,
    ) -> Dict[str, Any]:
        if not credential:
            raise Unauthenticated("Cannot add items without a credential.")
        body: Dict[str, Any] = {"productId": item_id}
        if Slot(slot) == Slot.CART:
            body["quantity"] = quantity
        ack = request_json("POST", self._url(slot, "add"), credential, body)
        logger.info("Added %s to %s.", item_id, Slot(slot).value)
        return ack if isinstance(ack, dict) else {}

    def remove_item(
        self, slot: Slot, item_id: ItemId, credential: Optional[str]
    ) -> Dict[str, Any]:
        if not credential:
            raise Unauthenticated("Cannot remove items without a credential.")
        ack = request_json(
            "POST", self._url(slot, "remove"), credential, {"productId": item_id}
        )
        logger.info("Removed %s from %s.", item_id, Slot(slot).value)
        return ack if isinstance(ack, dict) else {}

    def fetch_items(self, slot: Slot, credential: Optional[str]) -> Set[ItemId]:
        if not credential:
            raise Unauthenticated("Cannot read remote items without a credential.")
        url = self._url(slot)
        ids = _extract_ids(request_json("GET", url, credential), Slot(slot))
        if ids is None:
            raise Malformed(f"Unrecognized {Slot(slot).value} payload from {url}.")
        return ids
