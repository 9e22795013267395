import asyncio

from core.errors import ServerError, Unauthorized
from core.models import PendingOp, Product, Slot
from core.presenter import CatalogPresenter
from core.render import build_catalog_text, cents_to_str
from core.session import Session
from core.sync import Synchronizer


def _presenter(store, client, token="tok"):
    sync = Synchronizer(store, client, Session(credential=token))
    return CatalogPresenter(sync)


def test_quantity_defaults_to_one_and_floors(store, client):
    p = _presenter(store, client)
    assert p.quantity("p1") == 1
    assert p.change_quantity("p1", -1) == 1
    assert p.change_quantity("p1", 4) == 5
    assert p.change_quantity("p1", -2) == 3
    assert p.set_quantity("p1", -7) == 1


def test_add_to_cart_sends_selected_quantity(store, client):
    p = _presenter(store, client)
    p.change_quantity("p1", 2)
    assert asyncio.run(p.add_to_cart("p1")) is True
    assert client.calls == [("add", Slot.CART, "p1", {"quantity": 3})]
    view = p.view(Product(item_id="p1", name="Lamp"))
    assert view.in_cart
    assert not view.is_pending
    assert view.cart_label == "Remove from Cart"


def test_failure_records_user_message(store, client):
    client.failures["p1"] = ServerError("boom", status_code=503)
    p = _presenter(store, client)
    assert asyncio.run(p.add_to_wishlist("p1")) is False
    assert p.error_for("p1") == ServerError.user_message
    assert not p.view(Product(item_id="p1", name="Lamp")).in_wishlist


def test_success_clears_previous_error(store, client):
    client.failures["p1"] = Unauthorized("expired", status_code=401)
    p = _presenter(store, client)
    asyncio.run(p.add_to_cart("p1"))
    assert p.error_for("p1") == "Session expired. Please log in again."
    del client.failures["p1"]
    assert asyncio.run(p.add_to_cart("p1")) is True
    assert p.error_for("p1") == ""


def test_anonymous_actions_ask_for_login(store, client):
    p = CatalogPresenter(Synchronizer(store, client))
    assert asyncio.run(p.add_to_cart("p1")) is False
    assert p.error_for("p1") == "Please log in to continue."
    assert client.calls == []


def test_toggle_wishlist(store, client):
    p = _presenter(store, client)
    asyncio.run(p.toggle_wishlist("w1"))
    assert p.sync.is_member(Slot.WISHLIST, "w1")
    asyncio.run(p.toggle_wishlist("w1"))
    assert not p.sync.is_member(Slot.WISHLIST, "w1")


def test_view_reports_pending_state(store, client):
    p = _presenter(store, client)
    gate = client.hold("p1")
    product = Product(item_id="p1", name="Lamp")

    async def scenario():
        task = asyncio.create_task(p.add_to_cart("p1"))
        await asyncio.sleep(0)
        view = p.view(product)
        gate.set()
        await task
        return view

    view = asyncio.run(scenario())
    assert view.cart_pending is PendingOp.ADD
    assert view.is_pending
    assert view.cart_label == "Adding..."


def test_catalog_text_lists_state(store, client):
    store.save(Slot.CART, {"p1"})
    p = _presenter(store, client)
    products = [
        Product(item_id="p1", name="Lamp", price_cents=1250, category="Furniture"),
        Product(item_id="p2", name="Chair", price_cents=-1, available=False),
    ]
    text = build_catalog_text(p.views(products), 1, 0)
    assert "2 products · 1 in cart · 0 in wishlist" in text
    assert "[C]    Lamp (p1)" in text
    assert "$12.50" in text
    assert "Out of Stock" in text
    assert "Add to Cart (qty 1)" in text


def test_catalog_text_empty():
    assert "No products available" in build_catalog_text([], 0, 0)


def test_cents_to_str():
    assert cents_to_str(1999) == "$19.99"
    assert cents_to_str(-1) == "Unavailable"
    assert cents_to_str(None) == "Unavailable"


def test_session_change_drops_errors_and_quantities(store, client):
    client.failures["p1"] = ServerError("boom", status_code=500)
    p = _presenter(store, client)
    p.change_quantity("p2", 3)
    asyncio.run(p.add_to_cart("p1"))
    assert p.error_for("p1")

    p.sync.initialize(Session(credential="someone-else"))
    assert p.error_for("p1") == ""
    assert p.quantity("p2") == 1
    assert p.view(Product(item_id="p1", name="Lamp")).error == ""


def test_failure_after_logout_is_not_recorded(store, client):
    client.failures["p1"] = ServerError("boom", status_code=500)
    p = _presenter(store, client)
    gate = client.hold("p1")

    async def scenario():
        task = asyncio.create_task(p.add_to_cart("p1"))
        await asyncio.sleep(0)
        p.sync.reset()
        gate.set()
        return await task

    assert asyncio.run(scenario()) is False
    assert p.error_for("p1") == ""
