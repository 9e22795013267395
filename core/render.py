# core/render.py
from pathlib import Path
from typing import List

from jinja2 import Environment, FileSystemLoader

from .presenter import ProductView

# Resolve template directory relative to this file
TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)), trim_blocks=True, lstrip_blocks=True)


def cents_to_str(cents: int | None, currency: str = "USD") -> str:
    if cents is None or cents < 0:
        return "Unavailable"
    sym = "$" if currency == "USD" else ""
    return f"{sym}{cents/100:.2f}"


def build_catalog_text(views: List[ProductView], cart_count: int, wishlist_count: int) -> str:
    template = env.get_template("catalog.txt")

    rows = [
        {
            "id": v.product.item_id,
            "name": v.product.name,
            "category": v.product.category,
            "price_str": cents_to_str(v.product.price_cents),
            "available": v.product.available,
            "in_cart": v.in_cart,
            "in_wishlist": v.in_wishlist,
            "cart_label": v.cart_label,
            "wishlist_label": v.wishlist_label,
            "quantity": v.quantity,
            "error": v.error,
        }
        for v in views
    ]

    summary_text = f"{len(rows)} products · {cart_count} in cart · {wishlist_count} in wishlist"

    return template.render(products=rows, summary_text=summary_text)
