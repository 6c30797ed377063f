"""Tests for TransactionLog (stock_kernel/services/transaction_log.py)."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy import select

from stock_kernel.exceptions import ImmutabilityViolationError, ValidationError
from stock_kernel.models.transaction import StockTransaction, TransactionType
from stock_kernel.services.transaction_log import TransactionLog


@pytest.fixture
def tx_log(session, clock):
    return TransactionLog(session, clock)


def _record(tx_log, catalog, actor_id, tx_type, quantity, **kwargs):
    return tx_log.record(
        product_id=catalog.widget.id,
        warehouse_id=catalog.main.id,
        transaction_type=tx_type,
        quantity=quantity,
        reference_id=kwargs.pop("reference_id", None),
        performed_by=actor_id,
        **kwargs,
    )


class TestSignConvention:
    """Each transaction type carries a fixed sign."""

    @pytest.mark.parametrize(
        "tx_type,quantity",
        [
            (TransactionType.RESTOCK, 5),
            (TransactionType.RETURN, 2),
            (TransactionType.TRANSFER_IN, 7),
            (TransactionType.SALE, -3),
            (TransactionType.TRANSFER_OUT, -7),
            (TransactionType.ADJUSTMENT, 4),
            (TransactionType.ADJUSTMENT, -4),
        ],
    )
    def test_accepted(self, tx_log, catalog, actor_id, tx_type, quantity):
        entry = _record(tx_log, catalog, actor_id, tx_type, quantity)
        assert entry.quantity == quantity
        assert entry.transaction_type == tx_type.value

    @pytest.mark.parametrize(
        "tx_type,quantity",
        [
            (TransactionType.RESTOCK, -5),
            (TransactionType.RETURN, -1),
            (TransactionType.TRANSFER_IN, -7),
            (TransactionType.SALE, 3),
            (TransactionType.TRANSFER_OUT, 7),
        ],
    )
    def test_wrong_sign_rejected(self, tx_log, catalog, actor_id, tx_type, quantity):
        with pytest.raises(ValidationError) as exc_info:
            _record(tx_log, catalog, actor_id, tx_type, quantity)
        assert exc_info.value.field == "quantity"

    def test_zero_rejected(self, tx_log, catalog, actor_id):
        with pytest.raises(ValidationError):
            _record(tx_log, catalog, actor_id, TransactionType.ADJUSTMENT, 0)

    def test_unknown_type_rejected(self, tx_log, catalog, actor_id):
        with pytest.raises(ValidationError) as exc_info:
            _record(tx_log, catalog, actor_id, "shrinkage", -1)
        assert exc_info.value.field == "transaction_type"

    def test_string_type_accepted(self, tx_log, catalog, actor_id):
        entry = _record(tx_log, catalog, actor_id, "sale", -1)
        assert entry.transaction_type == "sale"


class TestRecordContents:

    def test_actor_required(self, tx_log, catalog):
        with pytest.raises(ValidationError) as exc_info:
            tx_log.record(
                catalog.widget.id, catalog.main.id, TransactionType.RESTOCK, 1, None, None
            )
        assert exc_info.value.field == "performed_by"

    def test_timestamp_comes_from_clock(self, tx_log, catalog, actor_id, clock, session):
        clock.set_time(datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc))
        entry = _record(tx_log, catalog, actor_id, TransactionType.RESTOCK, 1)
        session.commit()

        stored = session.execute(
            select(StockTransaction.created_at).where(StockTransaction.id == entry.id)
        ).scalar_one()
        if stored.tzinfo is not None:
            stored = stored.astimezone(timezone.utc).replace(tzinfo=None)
        assert stored == datetime(2024, 3, 15, 9, 30)

    def test_reference_and_reason_stored(self, tx_log, catalog, actor_id):
        ref = uuid4()
        entry = _record(
            tx_log, catalog, actor_id, TransactionType.ADJUSTMENT, 3,
            reference_id=ref, reason="Cycle count",
        )
        dto = entry.to_dto()
        assert dto.reference_id == ref
        assert dto.reason == "Cycle count"
        assert dto.performed_by == actor_id


class TestAppendOnly:
    """Log entries can be neither updated nor deleted."""

    def test_update_blocked(self, tx_log, catalog, actor_id, session):
        entry = _record(tx_log, catalog, actor_id, TransactionType.RESTOCK, 5)
        session.commit()

        entry.quantity = 50
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        session.rollback()

    def test_delete_blocked(self, tx_log, catalog, actor_id, session):
        entry = _record(tx_log, catalog, actor_id, TransactionType.RESTOCK, 5)
        session.commit()

        session.delete(entry)
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert exc_info.value.entity_type == "StockTransaction"
        session.rollback()
