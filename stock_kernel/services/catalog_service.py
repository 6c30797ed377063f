"""
Service layer for the product, warehouse and supplier catalog.

Returns ProductInfo / WarehouseInfo / SupplierInfo DTOs instead of ORM
entities.  Also owns the "usable on a new document" checks that the order
and transfer services run for every referenced product, warehouse and
supplier.
"""

from __future__ import annotations

import re
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from stock_kernel.domain.dtos import ProductInfo, SupplierInfo, WarehouseInfo
from stock_kernel.exceptions import DuplicateSkuError, NotFoundError, ValidationError
from stock_kernel.logging_config import get_logger
from stock_kernel.models.catalog import Product, Supplier, Warehouse
from stock_kernel.services.base import BaseService

logger = get_logger("services.catalog")

MIN_PRODUCT_NAME = 3
MIN_WAREHOUSE_TEXT = 2
SUPPLIER_NAME_LENGTH = (2, 100)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CatalogService(BaseService[Product]):
    """
    Service for creating, reading and deactivating catalog entries.

    Validation mirrors the product and warehouse entry forms: names have a
    minimum length, prices are positive, reorder quantities are positive.
    """

    def _get_product(self, product_id: UUID) -> Product:
        product = self.session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product", str(product_id))
        return product

    def _get_warehouse(self, warehouse_id: UUID) -> Warehouse:
        warehouse = self.session.get(Warehouse, warehouse_id)
        if warehouse is None:
            raise NotFoundError("Warehouse", str(warehouse_id))
        return warehouse

    def _get_supplier(self, supplier_id: UUID) -> Supplier:
        supplier = self.session.get(Supplier, supplier_id)
        if supplier is None:
            raise NotFoundError("Supplier", str(supplier_id))
        return supplier

    def get_product(self, product_id: UUID) -> ProductInfo:
        return self._get_product(product_id).to_dto()

    def get_warehouse(self, warehouse_id: UUID) -> WarehouseInfo:
        return self._get_warehouse(warehouse_id).to_dto()

    def get_supplier(self, supplier_id: UUID) -> SupplierInfo:
        return self._get_supplier(supplier_id).to_dto()

    def find_product_by_sku(self, sku: str) -> ProductInfo | None:
        product = self.session.execute(
            select(Product).where(Product.sku == sku)
        ).scalar_one_or_none()
        return product.to_dto() if product else None

    def create_product(
        self,
        sku: str,
        name: str,
        unit_price: Decimal,
        cost_price: Decimal,
        actor_id: UUID,
        reorder_level: int | None = 10,
        reorder_quantity: int = 50,
        description: str | None = None,
    ) -> ProductInfo:
        """
        Register a product.

        Raises:
            DuplicateSkuError: SKU already registered.
            ValidationError: name shorter than 3 characters, non-positive
                price, negative reorder level or non-positive reorder
                quantity.
        """
        sku = (sku or "").strip()
        name = (name or "").strip()
        if not sku:
            raise ValidationError("sku", "SKU is required")
        if len(name) < MIN_PRODUCT_NAME:
            raise ValidationError(
                "name", f"must be at least {MIN_PRODUCT_NAME} characters"
            )
        unit_price = Decimal(str(unit_price))
        cost_price = Decimal(str(cost_price))
        if unit_price <= 0:
            raise ValidationError("unit_price", "must be positive")
        if cost_price <= 0:
            raise ValidationError("cost_price", "must be positive")
        if reorder_level is not None and reorder_level < 0:
            raise ValidationError("reorder_level", "cannot be negative")
        if reorder_quantity <= 0:
            raise ValidationError("reorder_quantity", "must be positive")

        if self.find_product_by_sku(sku) is not None:
            raise DuplicateSkuError(sku)

        product = Product(
            sku=sku,
            name=name,
            description=description,
            unit_price=unit_price,
            cost_price=cost_price,
            reorder_level=reorder_level,
            reorder_quantity=reorder_quantity,
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(product)
        self.session.flush()

        logger.info(
            "product_created",
            extra={"product_id": str(product.id), "sku": sku},
        )
        return product.to_dto()

    def create_warehouse(
        self,
        name: str,
        location: str,
        actor_id: UUID,
        capacity: int | None = None,
        address: str | None = None,
    ) -> WarehouseInfo:
        """
        Register a warehouse.

        Raises:
            ValidationError: name or location shorter than 2 characters, or
                a non-positive capacity.
        """
        name = (name or "").strip()
        location = (location or "").strip()
        if len(name) < MIN_WAREHOUSE_TEXT:
            raise ValidationError(
                "name", f"must be at least {MIN_WAREHOUSE_TEXT} characters"
            )
        if len(location) < MIN_WAREHOUSE_TEXT:
            raise ValidationError(
                "location", f"must be at least {MIN_WAREHOUSE_TEXT} characters"
            )
        if capacity is not None and capacity <= 0:
            raise ValidationError("capacity", "must be positive")

        warehouse = Warehouse(
            name=name,
            location=location,
            address=address,
            capacity=capacity,
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(warehouse)
        self.session.flush()

        logger.info(
            "warehouse_created",
            extra={"warehouse_id": str(warehouse.id), "warehouse_name": name},
        )
        return warehouse.to_dto()

    def create_supplier(
        self,
        name: str,
        actor_id: UUID,
        contact_person: str | None = None,
        email: str | None = None,
        phone: str | None = None,
        address: str | None = None,
        payment_terms: str | None = None,
    ) -> SupplierInfo:
        """
        Register a supplier.

        Blank optional fields are stored as None.

        Raises:
            ValidationError: name outside 2..100 characters, or an email
                address that is present but malformed.
        """
        name = (name or "").strip()
        low, high = SUPPLIER_NAME_LENGTH
        if not low <= len(name) <= high:
            raise ValidationError("name", f"must be {low} to {high} characters")
        email = (email or "").strip() or None
        if email is not None and not _EMAIL_RE.match(email):
            raise ValidationError("email", "not a valid email address", email)

        supplier = Supplier(
            name=name,
            contact_person=(contact_person or "").strip() or None,
            email=email,
            phone=(phone or "").strip() or None,
            address=(address or "").strip() or None,
            payment_terms=(payment_terms or "").strip() or None,
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(supplier)
        self.session.flush()

        logger.info(
            "supplier_created",
            extra={"supplier_id": str(supplier.id), "supplier_name": name},
        )
        return supplier.to_dto()

    def deactivate_product(self, product_id: UUID, actor_id: UUID) -> ProductInfo:
        product = self._get_product(product_id)
        product.is_active = False
        product.updated_by_id = actor_id
        self.session.flush()
        logger.info("product_deactivated", extra={"product_id": str(product_id)})
        return product.to_dto()

    def deactivate_warehouse(self, warehouse_id: UUID, actor_id: UUID) -> WarehouseInfo:
        warehouse = self._get_warehouse(warehouse_id)
        warehouse.is_active = False
        warehouse.updated_by_id = actor_id
        self.session.flush()
        logger.info("warehouse_deactivated", extra={"warehouse_id": str(warehouse_id)})
        return warehouse.to_dto()

    def deactivate_supplier(self, supplier_id: UUID, actor_id: UUID) -> SupplierInfo:
        supplier = self._get_supplier(supplier_id)
        supplier.is_active = False
        supplier.updated_by_id = actor_id
        self.session.flush()
        logger.info("supplier_deactivated", extra={"supplier_id": str(supplier_id)})
        return supplier.to_dto()

    # ------------------------------------------------------------------
    # Checks used by document-creating services
    # ------------------------------------------------------------------

    def require_active_product(self, product_id: UUID) -> Product:
        """Return the product or raise NotFoundError / ValidationError (inactive)."""
        product = self._get_product(product_id)
        if not product.is_active:
            raise ValidationError(
                "product_id", f"product {product.sku} is inactive", str(product_id)
            )
        return product

    def require_active_warehouse(self, warehouse_id: UUID) -> Warehouse:
        """Return the warehouse or raise NotFoundError / ValidationError (inactive)."""
        warehouse = self._get_warehouse(warehouse_id)
        if not warehouse.is_active:
            raise ValidationError(
                "warehouse_id", f"warehouse {warehouse.name} is inactive", str(warehouse_id)
            )
        return warehouse

    def require_active_supplier(self, supplier_id: UUID) -> Supplier:
        """Return the supplier or raise NotFoundError / ValidationError (inactive)."""
        supplier = self._get_supplier(supplier_id)
        if not supplier.is_active:
            raise ValidationError(
                "supplier_id", f"supplier {supplier.name} is inactive", str(supplier_id)
            )
        return supplier
