"""
Catalog models -- products, warehouses and suppliers.

Every ledger row and every order line references one Product; every
movement has a source and/or destination Warehouse; every purchase order
is placed with one Supplier.  Deactivation is a
flag; catalog rows referenced by the ledger are never removed.
"""

from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import TrackedBase


class Product(TrackedBase):
    """
    A stock-keeping unit.

    Guarantees:
        - sku is unique (uq_product_sku).
        - unit_price and cost_price are positive Decimals.
    """

    __tablename__ = "products"

    __table_args__ = (
        UniqueConstraint("sku", name="uq_product_sku"),
        CheckConstraint("unit_price > 0", name="ck_product_unit_price"),
        CheckConstraint("cost_price > 0", name="ck_product_cost_price"),
        Index("idx_product_active", "is_active"),
    )

    sku: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    cost_price: Mapped[Decimal] = mapped_column(nullable=False)

    # Low-stock threshold; None falls back to the configured default
    reorder_level: Mapped[int | None] = mapped_column(nullable=True)
    reorder_quantity: Mapped[int] = mapped_column(default=50, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Product {self.sku}: {self.name}>"

    def to_dto(self):
        from stock_kernel.domain.dtos import ProductInfo

        return ProductInfo(
            id=self.id,
            sku=self.sku,
            name=self.name,
            unit_price=self.unit_price,
            cost_price=self.cost_price,
            reorder_level=self.reorder_level,
            reorder_quantity=self.reorder_quantity,
            is_active=self.is_active,
        )


class Warehouse(TrackedBase):
    """A physical stock location."""

    __tablename__ = "warehouses"

    __table_args__ = (
        CheckConstraint(
            "capacity IS NULL OR capacity > 0", name="ck_warehouse_capacity"
        ),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    location: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    capacity: Mapped[int | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Warehouse {self.name} ({self.location})>"

    def to_dto(self):
        from stock_kernel.domain.dtos import WarehouseInfo

        return WarehouseInfo(
            id=self.id,
            name=self.name,
            location=self.location,
            capacity=self.capacity,
            is_active=self.is_active,
        )


class Supplier(TrackedBase):
    """A vendor that purchase orders are placed with."""

    __tablename__ = "suppliers"

    __table_args__ = (
        Index("idx_supplier_active", "is_active"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    contact_person: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str | None] = mapped_column(String(254), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    payment_terms: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Supplier {self.name}>"

    def to_dto(self):
        from stock_kernel.domain.dtos import SupplierInfo

        return SupplierInfo(
            id=self.id,
            name=self.name,
            contact_person=self.contact_person,
            email=self.email,
            phone=self.phone,
            payment_terms=self.payment_terms,
            is_active=self.is_active,
        )
