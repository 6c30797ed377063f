"""Tests for CatalogService (stock_kernel/services/catalog_service.py)."""

from decimal import Decimal
from uuid import uuid4

import pytest

from stock_kernel.exceptions import DuplicateSkuError, NotFoundError, ValidationError
from stock_kernel.services.catalog_service import CatalogService


@pytest.fixture
def catalog_svc(session):
    return CatalogService(session)


class TestCreateProduct:

    def test_defaults(self, catalog_svc, actor_id):
        product = catalog_svc.create_product(
            "BOLT-10", "Hex bolt", Decimal("0.40"), Decimal("0.10"), actor_id=actor_id
        )
        assert product.reorder_level == 10
        assert product.reorder_quantity == 50
        assert product.is_active is True

    def test_duplicate_sku_rejected(self, catalog_svc, actor_id):
        catalog_svc.create_product("BOLT-10", "Hex bolt", Decimal("1"), Decimal("1"), actor_id=actor_id)

        with pytest.raises(DuplicateSkuError) as exc_info:
            catalog_svc.create_product("BOLT-10", "Other bolt", Decimal("1"), Decimal("1"), actor_id=actor_id)
        assert exc_info.value.code == "DUPLICATE_SKU"
        assert isinstance(exc_info.value, ValidationError)

    @pytest.mark.parametrize(
        "kwargs,field",
        [
            ({"name": "ab"}, "name"),
            ({"unit_price": Decimal("0")}, "unit_price"),
            ({"cost_price": Decimal("-1")}, "cost_price"),
            ({"reorder_level": -1}, "reorder_level"),
            ({"reorder_quantity": 0}, "reorder_quantity"),
            ({"sku": "  "}, "sku"),
        ],
    )
    def test_invalid_fields(self, catalog_svc, actor_id, kwargs, field):
        args = {
            "sku": "NUT-5",
            "name": "Hex nut",
            "unit_price": Decimal("0.20"),
            "cost_price": Decimal("0.05"),
        }
        args.update(kwargs)
        with pytest.raises(ValidationError) as exc_info:
            catalog_svc.create_product(actor_id=actor_id, **args)
        assert exc_info.value.field == field

    def test_find_by_sku(self, catalog_svc, catalog):
        assert catalog_svc.find_product_by_sku("WID-001").id == catalog.widget.id
        assert catalog_svc.find_product_by_sku("NOPE") is None


class TestCreateWarehouse:

    def test_created(self, catalog_svc, actor_id):
        warehouse = catalog_svc.create_warehouse("East", "Ogdenville", actor_id=actor_id, capacity=100)
        assert warehouse.capacity == 100
        assert warehouse.is_active is True

    @pytest.mark.parametrize(
        "name,location,capacity,field",
        [
            ("E", "Ogdenville", None, "name"),
            ("East", "O", None, "location"),
            ("East", "Ogdenville", 0, "capacity"),
        ],
    )
    def test_invalid_fields(self, catalog_svc, actor_id, name, location, capacity, field):
        with pytest.raises(ValidationError) as exc_info:
            catalog_svc.create_warehouse(name, location, actor_id=actor_id, capacity=capacity)
        assert exc_info.value.field == field


class TestCreateSupplier:

    def test_created_with_contact_details(self, catalog_svc, actor_id):
        info = catalog_svc.create_supplier(
            "  Globex Components ", actor_id=actor_id,
            contact_person="Hank Scorpio", email="buy@globex.example",
            phone="555-0100", payment_terms="Net 45",
        )

        assert info.name == "Globex Components"
        assert (info.contact_person, info.email, info.payment_terms) == (
            "Hank Scorpio", "buy@globex.example", "Net 45",
        )
        assert info.is_active is True
        assert catalog_svc.get_supplier(info.id) == info

    def test_blank_optional_fields_stored_as_none(self, catalog_svc, actor_id):
        info = catalog_svc.create_supplier("Initech", actor_id=actor_id, email="  ", phone="")

        assert (info.email, info.phone, info.contact_person) == (None, None, None)

    @pytest.mark.parametrize(
        "name,email,field",
        [
            ("I", None, "name"),
            ("I" * 101, None, "name"),
            ("Initech", "not-an-address", "email"),
        ],
    )
    def test_invalid_fields(self, catalog_svc, actor_id, name, email, field):
        with pytest.raises(ValidationError) as exc_info:
            catalog_svc.create_supplier(name, actor_id=actor_id, email=email)
        assert exc_info.value.field == field


class TestDeactivation:

    def test_deactivated_product_not_usable(self, catalog_svc, catalog, actor_id):
        catalog_svc.deactivate_product(catalog.widget.id, actor_id=actor_id)

        with pytest.raises(ValidationError):
            catalog_svc.require_active_product(catalog.widget.id)

    def test_deactivated_warehouse_not_usable(self, catalog_svc, catalog, actor_id):
        info = catalog_svc.deactivate_warehouse(catalog.depot.id, actor_id=actor_id)
        assert info.is_active is False

        with pytest.raises(ValidationError):
            catalog_svc.require_active_warehouse(catalog.depot.id)

    def test_missing_product(self, catalog_svc, catalog):
        with pytest.raises(NotFoundError):
            catalog_svc.get_product(uuid4())

    def test_deactivated_supplier_not_usable(self, catalog_svc, catalog, actor_id):
        info = catalog_svc.deactivate_supplier(catalog.supplier.id, actor_id=actor_id)
        assert info.is_active is False

        with pytest.raises(ValidationError) as exc_info:
            catalog_svc.require_active_supplier(catalog.supplier.id)
        assert exc_info.value.field == "supplier_id"

    def test_missing_supplier(self, catalog_svc, catalog):
        with pytest.raises(NotFoundError) as exc_info:
            catalog_svc.require_active_supplier(uuid4())
        assert exc_info.value.entity_type == "Supplier"
