import argparse
import asyncio
import os
from dataclasses import asdict, replace
from typing import List, Optional

from core.errors import StorefrontError, Unauthorized
from core.logger import get_logger, set_level
from core.models import PRODUCT_CATEGORIES, Product, Slot
from core.presenter import CatalogPresenter
from core.render import build_catalog_text
from core.session import Session
from core.storage import SetStore
from core.sync import Synchronizer
from services import account, catalog
from services.mutations import MutationClient

logger = get_logger(__name__)

STOREFRONT_TOKEN = os.getenv("STOREFRONT_TOKEN", "").strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storefront", description="Browse the catalog and manage cart/wishlist."
    )
    parser.add_argument("--token", default=STOREFRONT_TOKEN, help="bearer credential")
    parser.add_argument("--verbose", "-v", action="store_true", help="log at DEBUG level")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("products", help="list, show, create or update catalog products")
    p.add_argument("action", nargs="?", default="list", choices=["list", "show", "create", "update"])
    p.add_argument("item_id", nargs="?", metavar="ID")
    p.add_argument("--name")
    p.add_argument("--desc")
    p.add_argument("--img", help="image URL (already uploaded)")
    p.add_argument("--category", choices=PRODUCT_CATEGORIES)
    p.add_argument("--stock", type=int)
    p.add_argument("--price", help="price in major units, e.g. 12.50")
    p.add_argument("--available", dest="available", action="store_true", default=None)
    p.add_argument("--unavailable", dest="available", action="store_false")
    sub.add_parser("profile", help="show the signed-in profile")
    sub.add_parser("forget", help="drop locally persisted cart and wishlist")

    for slot in Slot:
        p = sub.add_parser(slot.value, help=f"manage the {slot.value}")
        p.add_argument("action", choices=["add", "remove", "show"])
        p.add_argument("item_ids", nargs="*", metavar="ID")
        if slot is Slot.CART:
            p.add_argument("--quantity", "-q", type=int, default=1)

    return parser


def build_synchronizer(token: str) -> Synchronizer:
    session = Session(credential=token or None)
    return Synchronizer(SetStore(), MutationClient(), session)


async def run_slot_command(
    sync: Synchronizer, slot: Slot, action: str, item_ids: List[str], quantity: int = 1
) -> int:
    presenter = CatalogPresenter(sync)

    if action == "show":
        for iid in sorted(sync.members(slot)):
            print(iid)
        return 0

    if not item_ids:
        logger.error("No item ids given for %s %s.", slot.value, action)
        return 1

    try:
        await sync.reconcile()
    except StorefrontError as e:
        logger.warning("Reconciliation skipped: %s", e)

    if slot is Slot.CART and action == "add":
        for iid in item_ids:
            presenter.set_quantity(iid, quantity)
        calls = [presenter.add_to_cart(iid) for iid in item_ids]
    elif slot is Slot.CART:
        calls = [presenter.remove_from_cart(iid) for iid in item_ids]
    elif action == "add":
        calls = [presenter.add_to_wishlist(iid) for iid in item_ids]
    else:
        calls = [presenter.remove_from_wishlist(iid) for iid in item_ids]

    # Items are independent; one failure never blocks the others
    results = await asyncio.gather(*calls)

    failures = 0
    for iid, changed in zip(item_ids, results):
        error = presenter.error_for(iid)
        if error:
            failures += 1
            print(f"{iid}: {error}")
        else:
            print(f"{iid}: {'ok' if changed else 'unchanged'}")

    return 1 if failures else 0


def run_products(sync: Synchronizer) -> int:
    products = catalog.fetch_catalog(sync.session.credential)
    presenter = CatalogPresenter(sync)
    text = build_catalog_text(
        presenter.views(products),
        len(sync.members(Slot.CART)),
        len(sync.members(Slot.WISHLIST)),
    )
    print(text)
    return 0


def _apply_product_args(product: Product, args) -> Product:
    changes = {}
    if args.name is not None:
        changes["name"] = args.name
    if args.desc is not None:
        changes["description"] = args.desc
    if args.img is not None:
        changes["image_url"] = args.img
    if args.category is not None:
        changes["category"] = args.category
    if args.stock is not None:
        changes["stock"] = args.stock
    if args.price is not None:
        cents = catalog.price_to_cents(args.price)
        if cents < 0:
            raise ValueError(f"invalid price {args.price!r}")
        changes["price_cents"] = cents
    if args.available is not None:
        changes["available"] = args.available
    return replace(product, **changes)


def run_product_command(sync: Synchronizer, args) -> int:
    credential = sync.session.credential
    if args.action == "list":
        return run_products(sync)

    if args.action in ("show", "update") and not args.item_id:
        logger.error("products %s needs a product id.", args.action)
        return 1

    try:
        if args.action == "show":
            product = catalog.fetch_product(args.item_id, credential)
        elif args.action == "create":
            product = catalog.create_product(
                _apply_product_args(Product(item_id="", name=""), args), credential
            )
            print("Product created successfully!")
        else:
            # Load the current fields first so unspecified options are kept
            current = catalog.fetch_product(args.item_id, credential)
            product = catalog.update_product(
                args.item_id, _apply_product_args(current, args), credential
            )
            print("Product updated successfully!")
    except ValueError as e:
        logger.error("Invalid product: %s", e)
        print(f"Invalid product: {e}")
        return 1

    for key, value in asdict(product).items():
        print(f"{key}: {value}")
    return 0


def run_profile(sync: Synchronizer) -> int:
    try:
        profile = account.fetch_profile(sync.session.credential)
    except Unauthorized as e:
        logger.warning("Profile request rejected: %s", e)
        sync.reset()
        print(e.user_message)
        return 1
    for key in sorted(profile):
        print(f"{key}: {profile[key]}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        set_level("DEBUG")
    sync = build_synchronizer(args.token)

    if args.command == "forget":
        for slot in Slot:
            sync.store.clear(slot)
        return 0

    try:
        if args.command == "products":
            return run_product_command(sync, args)
        if args.command == "profile":
            return run_profile(sync)

        slot = Slot(args.command)
        return asyncio.run(
            run_slot_command(
                sync, slot, args.action, args.item_ids, getattr(args, "quantity", 1)
            )
        )
    except StorefrontError as e:
        logger.error("%s failed: %s", args.command, e)
        print(e.user_message)
        return 1


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception as e:
        logger.exception("Fatal storefront error: %s", e)
        raise SystemExit(2)
