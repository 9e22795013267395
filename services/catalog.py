# services/catalog.py
import os
from dataclasses import replace
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from core.errors import Forbidden, Malformed, NotSeller, Unauthenticated
from core.logger import get_logger
from core.models import PRODUCT_CATEGORIES, Product

from .http import request_json

logger = get_logger(__name__)

PRODUCT_BASE_URL = os.getenv(
    "PRODUCT_BASE_URL", "https://webproject-productservice.onrender.com"
).rstrip("/")


def price_to_cents(price: Any) -> int:
    """Convert a major-unit price (e.g. 12.5) to integer cents; -1 when unknown."""
    if price is None or isinstance(price, bool):
        return -1
    try:
        amount = Decimal(str(price))
        if not amount.is_finite():
            return -1
        return int((amount * 100).quantize(Decimal("1")))
    except (InvalidOperation, ValueError, OverflowError):
        return -1


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _to_bool(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def parse_product(raw: Dict[str, Any]) -> Optional[Product]:
    if not isinstance(raw, dict):
        return None
    item_id = raw.get("_id") or raw.get("id")
    if not item_id:
        return None

    return Product(
        item_id=str(item_id),
        name=str(raw.get("name") or ""),
        description=str(raw.get("desc") or ""),
        image_url=str(raw.get("img") or ""),
        category=str(raw.get("type") or ""),
        price_cents=price_to_cents(raw.get("price")),
        available=_to_bool(raw.get("available")),
        stock=_to_int(raw.get("stock")),
    )


def fetch_catalog(credential: Optional[str]) -> List[Product]:
    """
    Retrieve the current product listing.

    Raises Unauthenticated without a credential and lets transport/status
    failures propagate as MutationError kinds. A payload that is not a list
    of products yields an empty catalog. No retries.
    """
    if not credential:
        raise Unauthenticated("A credential is required to browse the catalog.")

    url = f"{PRODUCT_BASE_URL}/products"
    data = request_json("GET", url, credential)

    if isinstance(data, dict):
        data = data.get("products")
    if not isinstance(data, list):
        logger.warning("Catalog payload from %s is not a list; treating as empty.", url)
        return []

    products: List[Product] = []
    skipped = 0
    for raw in data:
        product = parse_product(raw)
        if product is None:
            skipped += 1
            continue
        products.append(product)

    if skipped:
        logger.warning("Skipped %d malformed catalog entries.", skipped)
    logger.info("Fetched %d products from catalog.", len(products))
    return products


def fetch_product(item_id: str, credential: Optional[str]) -> Product:
    if not credential:
        raise Unauthenticated("A credential is required to view a product.")

    url = f"{PRODUCT_BASE_URL}/{item_id}"
    data = request_json("GET", url, credential)
    product = parse_product(data)
    if product is None:
        raise Malformed(f"Product payload for {item_id} is malformed.")
    return product


def product_to_wire(product: Product) -> Dict[str, Any]:
    """Map a Product back to the field names the product service expects."""
    return {
        "name": product.name,
        "desc": product.description,
        "img": product.image_url,
        "type": product.category,
        "stock": product.stock,
        "price": float(Decimal(product.price_cents) / 100),
        "available": product.available,
    }


def validate_product(product: Product) -> None:
    problems = []
    if not product.name.strip():
        problems.append("name is required")
    if not product.description.strip():
        problems.append("description is required")
    if product.category not in PRODUCT_CATEGORIES:
        problems.append(f"unknown category {product.category!r}")
    if product.price_cents < 0:
        problems.append("price must be zero or more")
    if product.stock < 0:
        problems.append("stock must be zero or more")
    if problems:
        raise ValueError("; ".join(problems))


def _submit_product(method: str, url: str, product: Product, credential: Optional[str]) -> Product:
    if not credential:
        raise Unauthenticated("A credential is required to edit products.")
    validate_product(product)

    try:
        data = request_json(method, url, credential, product_to_wire(product))
    except Forbidden as e:
        raise NotSeller(str(e), status_code=e.status_code) from e

    if isinstance(data, dict) and isinstance(data.get("product"), dict):
        data = data["product"]
    saved = parse_product(data)
    if saved is None:
        # Service acknowledged without echoing the product back
        logger.debug("%s %s returned no product body; keeping submitted fields.", method, url)
        return product
    return saved


def create_product(product: Product, credential: Optional[str]) -> Product:
    saved = _submit_product("POST", f"{PRODUCT_BASE_URL}/product/create", product, credential)
    logger.info("Created product %s (%s).", saved.item_id or "<unknown id>", saved.name)
    return saved


def update_product(item_id: str, product: Product, credential: Optional[str]) -> Product:
    saved = _submit_product("PUT", f"{PRODUCT_BASE_URL}/product/{item_id}", product, credential)
    if not saved.item_id:
        saved = replace(saved, item_id=item_id)
    logger.info("Updated product %s (%s).", item_id, saved.name)
    return saved
