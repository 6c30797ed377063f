"""Tests for configuration loading (stock_config)."""

import textwrap
from decimal import Decimal

import pytest

from stock_config import DATABASE_URL_ENV, get_active_config
from stock_config.bridges import (
    build_inventory_selector,
    build_purchase_order_service,
    build_sales_order_service,
    build_stock_adjustment_service,
    build_stock_transfer_service,
    init_engine_from_config,
)
from stock_config.loader import parse_config
from stock_kernel.db.engine import get_engine, reset_engine
from stock_kernel.exceptions import InsufficientInventoryError, ValidationError
from stock_modules.purchasing import PurchaseLineRequest
from stock_modules.sales import SalesLineRequest
from stock_modules.transfers import TransferLineRequest


def _write(tmp_path, body: str):
    path = tmp_path / "custom.yaml"
    path.write_text(textwrap.dedent(body))
    return path


@pytest.fixture(autouse=True)
def _no_env_override(monkeypatch):
    monkeypatch.delenv(DATABASE_URL_ENV, raising=False)


class TestDefaultSet:

    def test_shipped_defaults(self):
        config = get_active_config()

        assert config.name == "default"
        assert config.database.url.startswith("postgresql://")
        assert config.database.pool_size == 20
        assert config.logging.level == "INFO"
        assert config.policy.default_reorder_level == 10
        assert config.policy.over_receipt_tolerance_percent == 0
        assert config.policy.validate_transfer_stock_on_create is True
        assert config.numbering.purchase_order_prefix == "PO"
        assert config.numbering.width == 4

    def test_env_overrides_database_url(self, monkeypatch):
        monkeypatch.setenv(DATABASE_URL_ENV, "sqlite:///override.db")

        config = get_active_config()

        assert config.database.url == "sqlite:///override.db"
        assert config.database.pool_size == 20

    def test_load_logged(self, captured_logs):
        get_active_config()

        [record] = [r for r in captured_logs() if r["message"] == "stock_config_loaded"]
        assert record["config_name"] == "default"
        assert record["database_url_overridden"] is False


class TestCustomSet:

    def test_minimal_file(self, tmp_path):
        config = get_active_config(_write(tmp_path, """
            database:
              url: sqlite:///minimal.db
        """))

        assert config.name == "custom"
        assert config.database.url == "sqlite:///minimal.db"
        assert config.policy.default_reorder_level == 10

    def test_overrides_policy(self, tmp_path):
        config = get_active_config(_write(tmp_path, """
            name: strict
            database:
              url: sqlite:///strict.db
            logging:
              level: debug
            policy:
              default_reorder_level: 3
              over_receipt_tolerance_percent: 5
        """))

        assert config.name == "strict"
        assert config.logging.level == "DEBUG"
        assert config.policy.default_reorder_level == 3
        assert config.policy.over_receipt_tolerance_percent == 5

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")


class TestValidation:

    def test_database_url_required(self):
        with pytest.raises(KeyError):
            parse_config({"database": {"echo": True}})

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="reorder_levle"):
            parse_config({"database": {"url": "sqlite://"}, "policy": {"reorder_levle": 5}})

    def test_section_must_be_mapping(self):
        with pytest.raises(ValueError, match="mapping"):
            parse_config({"database": "sqlite://"})

    def test_bad_log_level(self):
        with pytest.raises(ValueError, match="logging.level"):
            parse_config({"database": {"url": "sqlite://"}, "logging": {"level": "LOUD"}})

    def test_negative_policy(self):
        with pytest.raises(ValueError):
            parse_config({"database": {"url": "sqlite://"}, "policy": {"default_reorder_level": -1}})

    def test_zero_width(self):
        with pytest.raises(ValueError):
            parse_config({"database": {"url": "sqlite://"}, "numbering": {"width": 0}})


class TestBridges:

    def test_selector_uses_configured_reorder_level(self, session, tmp_path):
        config = get_active_config(_write(tmp_path, """
            database:
              url: sqlite:///unused.db
            policy:
              default_reorder_level: 7
        """))

        assert build_inventory_selector(session, config).default_reorder_level == 7

    def test_engine_from_config(self, tmp_path):
        config = get_active_config(_write(tmp_path, f"""
            database:
              url: sqlite:///{tmp_path / 'bridge.db'}
        """))
        try:
            engine = init_engine_from_config(config)
            assert get_engine() is engine
            assert engine.dialect.name == "sqlite"
        finally:
            reset_engine()


class TestServiceBridges:
    """Lifecycle services built from a configuration set honour its policy."""

    @pytest.fixture
    def tolerant(self, tmp_path):
        return get_active_config(_write(tmp_path, """
            database:
              url: sqlite:///unused.db
            policy:
              over_receipt_tolerance_percent: 10
              validate_transfer_stock_on_create: false
            numbering:
              purchase_order_prefix: PUR
              sales_order_prefix: ORD
              transfer_prefix: MOV
              width: 3
        """))

    def _sent_order(self, purchasing, catalog, actor_id):
        created = purchasing.create_order(
            catalog.supplier.id,
            catalog.main.id,
            [PurchaseLineRequest(catalog.widget.id, 100, Decimal("4.00"))],
            actor_id=actor_id,
        )
        return purchasing.send_order(created.id, actor_id=actor_id)

    def test_configured_tolerance_accepts_over_receipt(
        self, session, tolerant, catalog, actor_id, clock, level
    ):
        purchasing = build_purchase_order_service(session, tolerant, clock)
        po = self._sent_order(purchasing, catalog, actor_id)

        info = purchasing.receive_items(po.id, {po.lines[0].id: 110}, actor_id=actor_id)

        assert info.status == "received"
        assert level(catalog.widget, catalog.main) == (110, 0, 110)

    def test_default_tolerance_rejects_same_receipt(
        self, session, catalog, actor_id, clock, level
    ):
        purchasing = build_purchase_order_service(session, get_active_config(), clock)
        po = self._sent_order(purchasing, catalog, actor_id)

        with pytest.raises(ValidationError) as exc_info:
            purchasing.receive_items(po.id, {po.lines[0].id: 110}, actor_id=actor_id)

        assert exc_info.value.field == "received_quantity"
        assert level(catalog.widget, catalog.main) == (0, 0, 0)

    def test_configured_document_numbers(self, session, tolerant, catalog, actor_id, clock):
        adjustments = build_stock_adjustment_service(session, tolerant, clock)
        adjustments.adjust_stock(
            catalog.widget.id, catalog.main.id, 10, "Opening balance", actor_id=actor_id
        )

        po = self._sent_order(build_purchase_order_service(session, tolerant, clock), catalog, actor_id)
        so = build_sales_order_service(session, tolerant, clock).create_order(
            "Jane Customer", catalog.main.id,
            [SalesLineRequest(catalog.widget.id, 2)], actor_id=actor_id,
        )
        tr = build_stock_transfer_service(session, tolerant, clock).create_transfer(
            catalog.main.id, catalog.depot.id,
            [TransferLineRequest(catalog.widget.id, 3)], actor_id=actor_id,
        )

        assert po.po_number == "PUR-20240101-001"
        assert so.order_number == "ORD-20240101-001"
        assert tr.transfer_number == "MOV-20240101-001"

    def test_transfer_stock_check_follows_policy(self, session, tolerant, catalog, actor_id, clock):
        unchecked = build_stock_transfer_service(session, tolerant, clock)
        info = unchecked.create_transfer(
            catalog.main.id, catalog.depot.id,
            [TransferLineRequest(catalog.gadget.id, 5)], actor_id=actor_id,
        )
        assert info.status == "pending"

        checked = build_stock_transfer_service(session, get_active_config(), clock)
        with pytest.raises(InsufficientInventoryError):
            checked.create_transfer(
                catalog.main.id, catalog.depot.id,
                [TransferLineRequest(catalog.gadget.id, 5)], actor_id=actor_id,
            )
