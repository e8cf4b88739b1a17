from decimal import Decimal

import pytest
from sqlalchemy import func, select

from cart_engine.data.models import OrderModel, ProductModel
from cart_engine.data.models.cart import CartStatus
from cart_engine.domain.errors import (
    AuthenticationRequiredError,
    InvalidStateError,
    NotFoundError,
)
from cart_engine.domain.identity import GuestOwner, UserOwner
from cart_engine.repos.cart_repo import CartRepo
from cart_engine.services.cart_service import CartService
from cart_engine.services.order_service import OrderService


@pytest.fixture
def filled_cart(db, make_product):
    p1 = make_product(name="Mug", price="10.00", stock=10)
    p2 = make_product(name="Plate", price="15.00", stock=10)
    owner = UserOwner(1)
    carts = CartService(db)
    carts.add_item(owner, p1, 2)
    view = carts.add_item(owner, p2, 1)
    return owner, view["id"], p1, p2


def _order_count(session_factory):
    with session_factory() as s:
        return s.execute(select(func.count()).select_from(OrderModel)).scalar_one()


class TestCheckout:
    def test_scenario_order_snapshots_cart(self, db, session_factory, filled_cart, stock_of):
        owner, cart_id, p1, p2 = filled_cart
        stock_before = (stock_of(p1), stock_of(p2))

        order = OrderService(db).checkout(owner)

        assert order["total_amount"] == Decimal("35.00")
        assert order["status"] == "PENDING"
        assert order["cart_id"] == cart_id
        assert order["user_id"] == 1
        assert [
            (i["product_id"], i["product_name"], i["unit_price"], i["quantity"], i["subtotal"])
            for i in order["items"]
        ] == [
            (p1, "Mug", Decimal("10.00"), 2, Decimal("20.00")),
            (p2, "Plate", Decimal("15.00"), 1, Decimal("15.00")),
        ]

        with session_factory() as s:
            repo = CartRepo(s)
            assert repo.get_cart(cart_id).status == CartStatus.ORDERED
            assert repo.get_cart_items(cart_id) == []

        # stock was committed at add time, checkout leaves it alone
        assert (stock_of(p1), stock_of(p2)) == stock_before

    def test_unit_price_is_the_cart_snapshot(self, db, filled_cart, set_product):
        owner, _, p1, _ = filled_cart
        set_product(p1, price=Decimal("99.00"))

        order = OrderService(db).checkout(owner)
        assert order["total_amount"] == Decimal("35.00")

    def test_order_items_survive_product_changes(self, db, filled_cart, set_product):
        owner, _, p1, _ = filled_cart
        svc = OrderService(db)
        order_id = svc.checkout(owner)["id"]

        set_product(p1, name="Renamed", price=Decimal("1.00"))

        item = svc.get_order(order_id, 1)["items"][0]
        assert item["product_name"] == "Mug"
        assert item["unit_price"] == Decimal("10.00")

    def test_checkout_is_one_shot(self, db, filled_cart):
        owner, *_ = filled_cart
        svc = OrderService(db)
        svc.checkout(owner)

        with pytest.raises(InvalidStateError):
            svc.checkout(owner)

    def test_next_cart_is_fresh(self, db, filled_cart):
        owner, cart_id, *_ = filled_cart
        OrderService(db).checkout(owner)

        view = CartService(db).get_cart(owner)
        assert view["id"] != cart_id
        assert view["items"] == []

    def test_empty_cart_rejected(self, db, session_factory):
        CartService(db).get_cart(UserOwner(1))
        with pytest.raises(InvalidStateError):
            OrderService(db).checkout(UserOwner(1))
        assert _order_count(session_factory) == 0

    def test_no_cart_rejected(self, db):
        with pytest.raises(InvalidStateError):
            OrderService(db).checkout(UserOwner(77))

    def test_guest_cannot_checkout(self, db, make_product):
        guest = GuestOwner.new()
        CartService(db).add_item(guest, make_product(), 1)
        with pytest.raises(AuthenticationRequiredError):
            OrderService(db).checkout(guest)

    def test_failure_midway_leaves_nothing_behind(self, db, session_factory, filled_cart, monkeypatch):
        owner, cart_id, p1, p2 = filled_cart
        svc = OrderService(db)

        def broken(items):
            raise RuntimeError("order store unavailable")

        monkeypatch.setattr(svc.repo, "add_order_items", broken)

        with pytest.raises(RuntimeError):
            svc.checkout(owner)

        assert _order_count(session_factory) == 0
        with session_factory() as s:
            repo = CartRepo(s)
            assert repo.get_cart(cart_id).status == CartStatus.ACTIVE
            assert {i.product_id: i.quantity for i in repo.get_cart_items(cart_id)} == {p1: 2, p2: 1}


class TestOrderQueries:
    def test_other_users_order_is_not_found(self, db, filled_cart):
        owner, *_ = filled_cart
        svc = OrderService(db)
        order_id = svc.checkout(owner)["id"]

        with pytest.raises(NotFoundError):
            svc.get_order(order_id, 2)

    def test_list_orders_pages(self, db, make_product):
        pid = make_product(stock=10)
        owner = UserOwner(3)
        carts = CartService(db)
        orders = OrderService(db)
        for _ in range(3):
            carts.add_item(owner, pid, 1)
            orders.checkout(owner)

        page = orders.list_orders(3, page=0, size=2)
        assert page["total"] == 3
        assert len(page["items"]) == 2
        assert len(orders.list_orders(3, page=1, size=2)["items"]) == 1
        assert orders.list_orders(4)["total"] == 0


class TestCancelOrder:
    def test_cancel_returns_items_to_stock(self, db, filled_cart, stock_of):
        owner, _, p1, p2 = filled_cart
        svc = OrderService(db)
        order_id = svc.checkout(owner)["id"]
        assert (stock_of(p1), stock_of(p2)) == (8, 9)

        cancelled = svc.cancel_order(order_id, 1)

        assert cancelled["status"] == "CANCELLED"
        assert (stock_of(p1), stock_of(p2)) == (10, 10)

    def test_cancel_twice_is_rejected(self, db, filled_cart, stock_of):
        owner, _, p1, _ = filled_cart
        svc = OrderService(db)
        order_id = svc.checkout(owner)["id"]
        svc.cancel_order(order_id, 1)

        with pytest.raises(InvalidStateError):
            svc.cancel_order(order_id, 1)
        assert stock_of(p1) == 10

    def test_other_users_order_cannot_be_cancelled(self, db, filled_cart, stock_of):
        owner, _, p1, _ = filled_cart
        svc = OrderService(db)
        order_id = svc.checkout(owner)["id"]

        with pytest.raises(NotFoundError):
            svc.cancel_order(order_id, 2)
        assert svc.get_order(order_id, 1)["status"] == "PENDING"
        assert stock_of(p1) == 8

    def test_missing_order(self, db):
        with pytest.raises(NotFoundError):
            OrderService(db).cancel_order(404, 1)

    def test_removed_product_is_skipped(self, db, session_factory, filled_cart, stock_of):
        owner, _, p1, p2 = filled_cart
        svc = OrderService(db)
        order_id = svc.checkout(owner)["id"]
        with session_factory() as s:
            s.delete(s.get(ProductModel, p2))
            s.commit()

        assert svc.cancel_order(order_id, 1)["status"] == "CANCELLED"
        assert stock_of(p1) == 10
