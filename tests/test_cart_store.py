"""Tests for the client cart store."""

from decimal import Decimal
import asyncio
import json

import httpx
import pytest

from liveshop.client import (
    CartStore,
    InsufficientInventory,
    NetworkError,
    NotFound,
    NotificationKind,
    Notifier,
    ServerError,
    ShopApiClient,
    Unauthenticated,
    ValidationError,
)

ERROR = NotificationKind.ERROR

def cart_line(line_id, product_id, quantity, price="10.00", inventory=10, title="Thing"):
    return {
        "id": line_id,
        "product_id": product_id,
        "quantity": quantity,
        "price": float(price),
        "line_total": float(Decimal(price) * quantity),
        "title": title,
        "image": None,
        "category": "misc",
        "inventory": inventory,
        "in_stock": inventory > 0,
        "current_price": float(price),
    }

def ok(data):
    return httpx.Response(200, json={"success": True, "data": data})

def scripted_store(handler):
    api = ShopApiClient("http://shop.test/api/v1", token="token", transport=httpx.MockTransport(handler))
    notifier = Notifier()
    return CartStore(api, notifier), notifier

@pytest.fixture
def store(make_api, user):
    return CartStore(make_api(user), Notifier())

@pytest.mark.asyncio
async def test_add_to_empty_cart(store, products):
    """Two earbuds give one line with a 59.98 subtotal."""
    line = await store.add_item(products["sku-1"].id, 2)

    assert len(store.lines) == 1
    assert line.quantity == 2
    assert line.price == Decimal("29.99")
    assert store.subtotal == Decimal("59.98")
    assert store.item_count == 2
    assert store.totals().total == Decimal("64.78")
    assert store.notifier.history[-1].title == "Added to cart"

@pytest.mark.asyncio
async def test_quantity_zero_removes_line(store, products):
    line = await store.add_item(products["sku-1"].id, 2)

    result = await store.update_quantity(line.id, 0)

    assert result is None
    assert store.lines == ()
    assert store.subtotal == Decimal("0")
    server_cart = await store.api.get_cart()
    assert server_cart["items"] == []

@pytest.mark.asyncio
async def test_adding_again_increments_line(store, products):
    await store.add_item(products["sku-2"].id, 1)
    line = await store.add_item(products["sku-2"].id, 2)

    assert len(store.lines) == 1
    assert line.quantity == 3
    assert store.subtotal == Decimal("37.50")

@pytest.mark.asyncio
async def test_clamped_add_warns(store, products):
    line = await store.add_item(products["sku-3"].id, 5)

    assert line.quantity == 3
    assert store.notifier.count(NotificationKind.WARNING, code="insufficient_inventory") == 1
    assert store.notifier.count(NotificationKind.SUCCESS) == 0

@pytest.mark.asyncio
async def test_add_without_headroom_fails_locally(store, products):
    await store.add_item(products["sku-3"].id, 3)

    with pytest.raises(InsufficientInventory) as exc_info:
        await store.add_item(products["sku-3"].id, 1)

    assert exc_info.value.available == 3
    assert store.line_for(products["sku-3"].id).quantity == 3
    assert store.notifier.count(ERROR, code="insufficient_inventory") == 1

@pytest.mark.asyncio
async def test_update_beyond_known_inventory_fails_locally(store, products):
    line = await store.add_item(products["sku-3"].id, 1)

    with pytest.raises(InsufficientInventory):
        await store.update_quantity(line.id, 4)

    assert store.get_line(line.id).quantity == 1
    assert store.notifier.count(ERROR) == 1

@pytest.mark.asyncio
async def test_update_quantity(store, products):
    line = await store.add_item(products["sku-2"].id, 1)

    updated = await store.update_quantity(line.id, 4)

    assert updated.quantity == 4
    assert store.subtotal == Decimal("50.00")
    assert store.notifier.history[-1].title == "Cart updated"

@pytest.mark.asyncio
async def test_update_unknown_line(store):
    with pytest.raises(NotFound):
        await store.update_quantity("missing", 2)

    assert store.notifier.count(ERROR, code="not_found") == 1

@pytest.mark.asyncio
async def test_removing_absent_line_is_a_no_op(store, products):
    await store.add_item(products["sku-2"].id, 1)
    store.notifier.clear()

    await store.remove_item("missing")

    assert len(store.lines) == 1
    assert store.notifier.history == []

@pytest.mark.asyncio
async def test_signed_out_add(make_api, products):
    store = CartStore(make_api(), Notifier())

    with pytest.raises(Unauthenticated):
        await store.add_item(products["sku-1"].id)

    assert store.lines == ()
    assert store.notifier.count(ERROR, code="unauthenticated") == 1

@pytest.mark.asyncio
async def test_stale_inventory_rolls_back(make_api, user, products):
    """Another tab took the last unit; the optimistic increment is undone."""
    store = CartStore(make_api(user), Notifier())
    other_tab = CartStore(make_api(user), Notifier())

    await store.add_item(products["sku-3"].id, 2)
    await other_tab.refresh()
    await other_tab.add_item(products["sku-3"].id, 1)

    with pytest.raises(InsufficientInventory):
        await store.add_item(products["sku-3"].id, 1)

    assert store.line_for(products["sku-3"].id).quantity == 2
    assert store.subtotal == Decimal("90.00")
    assert store.notifier.count(ERROR) == 1

@pytest.mark.asyncio
async def test_refresh_loads_server_cart(make_api, user, products):
    writer = CartStore(make_api(user), Notifier())
    await writer.add_item(products["sku-1"].id, 1)
    await writer.add_item(products["sku-2"].id, 2)

    reader = CartStore(make_api(user), Notifier())
    await reader.refresh()

    assert reader.item_count == 3
    assert reader.subtotal == Decimal("54.99")

@pytest.mark.asyncio
async def test_sync_prices(store, products, set_price):
    await store.add_item(products["sku-1"].id, 1)
    await set_price(products["sku-1"], "31.99")

    updated = await store.sync_prices()

    assert updated == 1
    assert store.lines[0].price == Decimal("31.99")
    assert store.subtotal == Decimal("31.99")
    assert store.notifier.count(NotificationKind.INFO) == 1

@pytest.mark.asyncio
async def test_clear_cart(store, products):
    await store.add_item(products["sku-1"].id, 1)
    await store.add_item(products["sku-2"].id, 1)

    await store.clear_cart()

    assert store.is_empty
    assert store.item_count == 0
    assert (await store.api.get_cart())["items"] == []

@pytest.mark.asyncio
async def test_failed_update_rolls_back():
    def handler(request):
        if request.method == "GET":
            return ok({"items": [cart_line("l1", "p1", 2, "29.99")]})
        raise httpx.ConnectError("unreachable", request=request)

    store, notifier = scripted_store(handler)
    await store.refresh()

    with pytest.raises(NetworkError):
        await store.update_quantity("l1", 5)

    assert store.get_line("l1").quantity == 2
    assert store.subtotal == Decimal("59.98")
    assert store.item_count == 2
    assert notifier.count(ERROR) == 1

@pytest.mark.asyncio
async def test_failed_remove_restores_original_position():
    lines = [cart_line("l1", "p1", 1), cart_line("l2", "p2", 1), cart_line("l3", "p3", 1)]

    def handler(request):
        if request.method == "GET":
            return ok({"items": lines})
        return httpx.Response(500, json={"success": False, "error": "Boom", "code": "INTERNAL"})

    store, notifier = scripted_store(handler)
    await store.refresh()

    with pytest.raises(ServerError):
        await store.remove_item("l2")

    assert [line.id for line in store.lines] == ["l1", "l2", "l3"]
    assert store.subtotal == Decimal("30.00")
    assert notifier.count(ERROR) == 1

@pytest.mark.asyncio
async def test_update_is_applied_before_server_answers():
    entered = asyncio.Event()
    release = asyncio.Event()

    async def handler(request):
        if request.method == "GET":
            return ok({"items": [cart_line("l1", "p1", 1)]})
        entered.set()
        await release.wait()
        return ok(cart_line("l1", "p1", 4))

    store, _ = scripted_store(handler)
    await store.refresh()

    task = asyncio.create_task(store.update_quantity("l1", 4))
    await entered.wait()

    assert store.get_line("l1").quantity == 4
    assert store.subtotal == Decimal("40.00")
    assert store.pending("p1")

    release.set()
    await task

    assert not store.pending("p1")

@pytest.mark.asyncio
async def test_operations_on_one_product_are_serialized():
    state = {"inflight": 0, "max": 0, "quantities": {}}

    async def handler(request):
        body = json.loads(request.content)
        product_id = body["product_id"]
        state["inflight"] += 1
        state["max"] = max(state["max"], state["inflight"])
        await asyncio.sleep(0.01)
        state["inflight"] -= 1
        quantity = state["quantities"].get(product_id, 0) + body["quantity"]
        state["quantities"][product_id] = quantity
        return ok({"item": cart_line(f"l-{product_id}", product_id, quantity), "clamped": False, "available": 10})

    store, _ = scripted_store(handler)
    await asyncio.gather(store.add_item("p1"), store.add_item("p1"))

    assert state["max"] == 1
    assert len(store.lines) == 1
    assert store.line_for("p1").quantity == 2

    state["max"] = 0
    await asyncio.gather(store.add_item("p2"), store.add_item("p3"))

    assert state["max"] == 2
    assert store.item_count == 4

@pytest.mark.asyncio
@pytest.mark.parametrize("quantity", [0, -2, 1.5, True])
async def test_invalid_add_quantity_fails_locally(quantity):
    calls = []

    def handler(request):
        calls.append((request.method, request.url.path))
        return ok({"items": [cart_line("l-a", "pa", 3)]})

    store, notifier = scripted_store(handler)
    await store.refresh()

    with pytest.raises(ValidationError):
        await store.add_item("pa", quantity)

    assert calls == [("GET", "/api/v1/cart")]
    assert store.line_for("pa").quantity == 3
    assert store.item_count == 3
    assert notifier.count(ERROR, code="validation_error") == 1
    assert not store.pending("pa")

@pytest.mark.asyncio
async def test_failed_clear_keeps_lines_added_meanwhile():
    """A clear that fails must not drop a line the server confirmed while it ran."""
    server = {"pa": cart_line("l-a", "pa", 1)}

    async def handler(request):
        if request.method == "GET":
            return ok({"items": list(server.values())})
        if request.method == "DELETE":
            await asyncio.sleep(0.05)
            return httpx.Response(500, json={"success": False, "error": "Boom", "code": "INTERNAL"})
        server["pb"] = cart_line("l-b", "pb", 1)
        return ok({"item": server["pb"], "clamped": False, "available": 10})

    store, notifier = scripted_store(handler)
    await store.refresh()

    cleared, added = await asyncio.gather(store.clear_cart(), store.add_item("pb"), return_exceptions=True)

    assert isinstance(cleared, ServerError)
    assert added.product_id == "pb"
    assert {line.product_id for line in store.lines} == set(server)
    assert store.subtotal == Decimal("20.00")
    assert notifier.count(ERROR) == 1

@pytest.mark.asyncio
async def test_clear_waits_for_line_change_in_flight():
    entered = asyncio.Event()
    release = asyncio.Event()
    order = []

    async def handler(request):
        if request.method == "GET":
            return ok({"items": [cart_line("l1", "p1", 1)]})
        order.append(request.method)
        if request.method == "PUT":
            entered.set()
            await release.wait()
            return ok(cart_line("l1", "p1", 3))
        return ok({"cleared": 1})

    store, _ = scripted_store(handler)
    await store.refresh()

    update = asyncio.create_task(store.update_quantity("l1", 3))
    await entered.wait()
    clear = asyncio.create_task(store.clear_cart())
    await asyncio.sleep(0.01)

    assert order == ["PUT"]

    release.set()
    await asyncio.gather(update, clear)

    assert order == ["PUT", "DELETE"]
    assert store.is_empty

@pytest.mark.asyncio
async def test_failed_remove_lands_before_its_old_neighbour():
    """Rollback position survives an earlier line being removed meanwhile."""
    lines = [cart_line("l1", "p1", 1), cart_line("l2", "p2", 1), cart_line("l3", "p3", 1)]

    def handler(request):
        if request.method == "GET":
            return ok({"items": lines})
        if request.url.path.endswith("/l1"):
            return ok({"removed": True})
        return httpx.Response(500, json={"success": False, "error": "Boom", "code": "INTERNAL"})

    store, notifier = scripted_store(handler)
    await store.refresh()

    results = await asyncio.gather(store.remove_item("l1"), store.remove_item("l2"), return_exceptions=True)

    assert results[0] is None
    assert isinstance(results[1], ServerError)
    assert [line.id for line in store.lines] == ["l2", "l3"]
    assert store.subtotal == Decimal("20.00")
    assert notifier.count(ERROR) == 1
