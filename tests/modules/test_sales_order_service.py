"""Tests for SalesOrderService (stock_modules/sales/service.py)."""

from decimal import Decimal
from uuid import uuid4

import pytest

from stock_kernel.exceptions import (
    InsufficientInventoryError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from stock_kernel.services.catalog_service import CatalogService
from stock_kernel.services.ledger_service import InventoryLedger
from stock_modules.sales import CANCELLATION_REASON, SalesLineRequest


@pytest.fixture
def stocked(catalog, stock):
    stock(catalog.widget, catalog.main, 50)
    stock(catalog.gadget, catalog.main, 10)
    return catalog


def _order(sales, catalog, actor_id, widgets=5, gadgets=2, **kwargs):
    items = [SalesLineRequest(catalog.widget.id, widgets)]
    if gadgets:
        items.append(SalesLineRequest(catalog.gadget.id, gadgets))
    return sales.create_order("Jane Customer", catalog.main.id, items, actor_id=actor_id, **kwargs)


class TestCreateOrder:

    def test_reserves_every_line(self, sales, stocked, actor_id, level, inventory):
        info = _order(sales, stocked, actor_id)

        assert info.status == "pending"
        assert info.order_number == "SO-20240101-0001"
        assert level(stocked.widget, stocked.main) == (45, 5, 50)
        assert level(stocked.gadget, stocked.main) == (8, 2, 10)
        # Reservation leaves total unchanged, so nothing is logged.
        assert inventory.movement_history(reference_id=info.id) == []

    def test_list_price_used_when_omitted(self, sales, stocked, actor_id):
        info = _order(sales, stocked, actor_id)

        assert info.lines[0].unit_price == Decimal("10.00")
        assert info.lines[1].total_price == Decimal("50.00")
        assert info.total_amount == Decimal("100.00")

    def test_explicit_price_kept(self, sales, stocked, actor_id):
        info = sales.create_order(
            "Jane Customer", stocked.main.id,
            [SalesLineRequest(stocked.widget.id, 3, unit_price=Decimal("0"))],
            actor_id=actor_id,
        )
        assert info.total_amount == Decimal("0")

    def test_negative_price_rejected(self, sales, stocked, actor_id):
        with pytest.raises(ValidationError) as exc_info:
            sales.create_order(
                "Jane Customer", stocked.main.id,
                [SalesLineRequest(stocked.widget.id, 3, unit_price=Decimal("-1"))],
                actor_id=actor_id,
            )
        assert exc_info.value.field == "unit_price"

    def test_shortage_creates_nothing(self, sales, stocked, actor_id, level, orders):
        with pytest.raises(InsufficientInventoryError) as exc_info:
            _order(sales, stocked, actor_id, widgets=5, gadgets=11)

        err = exc_info.value
        assert err.bucket == "available"
        assert err.on_hand == 10
        assert err.requested == 11
        # The widget line reserved first and was rolled back with the order.
        assert level(stocked.widget, stocked.main) == (50, 0, 50)
        assert orders.list_sales_orders() == []

    def test_shortage_where_product_never_stocked(self, sales, stocked, actor_id, level):
        with pytest.raises(InsufficientInventoryError):
            sales.create_order(
                "Jane Customer", stocked.main.id,
                [SalesLineRequest(stocked.gizmo.id, 1)], actor_id=actor_id,
            )
        assert level(stocked.gizmo, stocked.main) == (0, 0, 0)

    def test_line_may_name_its_own_warehouse(self, sales, stocked, stock, actor_id, level):
        stock(stocked.gizmo, stocked.depot, 4)

        info = sales.create_order(
            "Jane Customer", stocked.main.id,
            [SalesLineRequest(stocked.gizmo.id, 3, warehouse_id=stocked.depot.id)],
            actor_id=actor_id,
        )

        assert info.lines[0].warehouse_id == stocked.depot.id
        assert level(stocked.gizmo, stocked.depot) == (1, 3, 4)

    def test_short_customer_name(self, sales, stocked, actor_id):
        with pytest.raises(ValidationError) as exc_info:
            sales.create_order(
                "J", stocked.main.id, [SalesLineRequest(stocked.widget.id, 1)], actor_id=actor_id
            )
        assert exc_info.value.field == "customer_name"

    def test_inactive_product_rejected(self, session, sales, stocked, actor_id):
        CatalogService(session).deactivate_product(stocked.widget.id, actor_id=actor_id)
        session.commit()

        with pytest.raises(ValidationError):
            _order(sales, stocked, actor_id, gadgets=0)

    def test_unknown_warehouse(self, sales, stocked, actor_id):
        with pytest.raises(NotFoundError):
            sales.create_order(
                "Jane Customer", uuid4(), [SalesLineRequest(stocked.widget.id, 1)], actor_id=actor_id
            )


class TestShipAndDeliver:

    def test_full_lifecycle(self, sales, stocked, actor_id, level, inventory, clock):
        created = _order(sales, stocked, actor_id)

        assert sales.process_order(created.id, actor_id=actor_id).status == "processing"
        assert level(stocked.widget, stocked.main) == (45, 5, 50)

        shipped = sales.ship_order(created.id, actor_id=actor_id)
        assert shipped.status == "shipped"
        assert level(stocked.widget, stocked.main) == (45, 0, 45)
        assert level(stocked.gadget, stocked.main) == (8, 0, 8)

        history = inventory.movement_history(reference_id=created.id)
        assert sorted((h.transaction_type, h.quantity) for h in history) == [
            ("sale", -5), ("sale", -2),
        ]

        delivered = sales.deliver_order(created.id, actor_id=actor_id)
        assert delivered.status == "delivered"
        assert delivered.fulfillment_date == clock.today()
        assert level(stocked.widget, stocked.main) == (45, 0, 45)

    def test_ship_requires_processing(self, sales, stocked, actor_id, level):
        created = _order(sales, stocked, actor_id)

        with pytest.raises(InvalidTransitionError) as exc_info:
            sales.ship_order(created.id, actor_id=actor_id)
        assert exc_info.value.current_status == "pending"
        assert level(stocked.widget, stocked.main) == (45, 5, 50)

    def test_deliver_requires_shipped(self, sales, stocked, actor_id):
        created = _order(sales, stocked, actor_id)
        sales.process_order(created.id, actor_id=actor_id)

        with pytest.raises(InvalidTransitionError):
            sales.deliver_order(created.id, actor_id=actor_id)

    def test_ship_twice_rejected(self, sales, stocked, actor_id, level):
        created = _order(sales, stocked, actor_id)
        sales.process_order(created.id, actor_id=actor_id)
        sales.ship_order(created.id, actor_id=actor_id)

        with pytest.raises(InvalidTransitionError):
            sales.ship_order(created.id, actor_id=actor_id)
        assert level(stocked.widget, stocked.main) == (45, 0, 45)

    def test_ship_fails_when_reservation_was_drawn_down(
        self, session, sales, catalog, stock, actor_id, level, orders, inventory
    ):
        stock(catalog.gizmo, catalog.main, 10)
        created = sales.create_order(
            "Jane Customer", catalog.main.id,
            [SalesLineRequest(catalog.gizmo.id, 5)], actor_id=actor_id,
        )
        sales.process_order(created.id, actor_id=actor_id)
        InventoryLedger(session).release(catalog.gizmo.id, catalog.main.id, 2)
        session.commit()
        assert level(catalog.gizmo, catalog.main) == (7, 3, 10)

        with pytest.raises(InsufficientInventoryError) as exc_info:
            sales.ship_order(created.id, actor_id=actor_id)

        assert exc_info.value.bucket == "reserved"
        assert exc_info.value.on_hand == 3
        assert exc_info.value.requested == 5
        assert orders.sales_order(created.id).status == "processing"
        assert inventory.movement_history(reference_id=created.id) == []
        assert level(catalog.gizmo, catalog.main) == (7, 3, 10)

    def test_unknown_order(self, sales, stocked, actor_id):
        with pytest.raises(NotFoundError):
            sales.process_order(uuid4(), actor_id=actor_id)


class TestCancel:

    @pytest.mark.parametrize("processed", [False, True])
    def test_cancel_restores_availability(
        self, sales, stocked, actor_id, level, inventory, processed
    ):
        created = _order(sales, stocked, actor_id)
        if processed:
            sales.process_order(created.id, actor_id=actor_id)

        cancelled = sales.cancel_order(created.id, actor_id=actor_id)

        assert cancelled.status == "cancelled"
        assert level(stocked.widget, stocked.main) == (50, 0, 50)
        assert level(stocked.gadget, stocked.main) == (10, 0, 10)

        history = inventory.movement_history(reference_id=created.id)
        assert {(h.transaction_type, h.quantity, h.reason) for h in history} == {
            ("adjustment", 5, CANCELLATION_REASON),
            ("adjustment", 2, CANCELLATION_REASON),
        }

    def test_cannot_cancel_shipped(self, sales, stocked, actor_id, level):
        created = _order(sales, stocked, actor_id)
        sales.process_order(created.id, actor_id=actor_id)
        sales.ship_order(created.id, actor_id=actor_id)

        with pytest.raises(InvalidTransitionError):
            sales.cancel_order(created.id, actor_id=actor_id)
        assert level(stocked.widget, stocked.main) == (45, 0, 45)

    def test_cancelled_order_is_terminal(self, sales, stocked, actor_id, level):
        created = _order(sales, stocked, actor_id)
        sales.cancel_order(created.id, actor_id=actor_id)

        with pytest.raises(InvalidTransitionError):
            sales.cancel_order(created.id, actor_id=actor_id)
        with pytest.raises(InvalidTransitionError):
            sales.process_order(created.id, actor_id=actor_id)
        assert level(stocked.widget, stocked.main) == (50, 0, 50)

    def test_released_stock_can_be_sold_again(self, sales, stocked, actor_id, level):
        first = _order(sales, stocked, actor_id, widgets=50, gadgets=0)
        with pytest.raises(InsufficientInventoryError):
            _order(sales, stocked, actor_id, widgets=1, gadgets=0)

        sales.cancel_order(first.id, actor_id=actor_id)
        second = _order(sales, stocked, actor_id, widgets=50, gadgets=0)

        assert second.status == "pending"
        assert level(stocked.widget, stocked.main) == (0, 50, 50)
