"""
Tests for the order service (services/order_service.py).

Runs against the SQLite test database; the service flushes and the test
commits, mirroring the route handlers.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from datetime import datetime, timezone

import pytest

from domain.errors import (
    InvalidStatusTransitionError, NotFoundError, PaymentStatusLockedError,
    PermissionDeniedError, ValidationError,
)
from services import order_service

MISSING_ID = "ffffffffffffffffffffffff"


class TestUpdateOrderStatus:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_shipped_to_delivered_marks_paid(self, db_session, make_payment_method, make_order):
        """Delivery sets payment status to paid even for a failed payment."""
        cod = await make_payment_method("COD")
        order = await make_order(cod, status="shipped", payment_status="failed")

        updated = await order_service.update_order_status(db_session, order.id, "delivered")
        await db_session.commit()

        assert updated.status == "delivered"
        assert updated.payment_status == "paid"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_delivered_is_terminal(self, db_session, make_payment_method, make_order):
        cod = await make_payment_method("COD")
        order = await make_order(cod, status="delivered", payment_status="paid")

        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            await order_service.update_order_status(db_session, order.id, "processing")
        assert exc_info.value.details["allowed"] == ["delivered"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unknown_status_value(self, db_session, make_payment_method, make_order):
        cod = await make_payment_method("COD")
        order = await make_order(cod)
        with pytest.raises(ValidationError):
            await order_service.update_order_status(db_session, order.id, "lost")

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_missing_order(self, db_session):
        with pytest.raises(NotFoundError):
            await order_service.update_order_status(db_session, MISSING_ID, "processing")
        with pytest.raises(NotFoundError):
            await order_service.get_order(db_session, "not-an-id")


class TestUpdatePaymentStatus:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_bank_transfer_editable(self, db_session, make_payment_method, make_order):
        bank = await make_payment_method("BankTransfer")
        order = await make_order(bank, status="processing")

        updated = await order_service.update_payment_status(db_session, order.id, "paid")
        assert updated.payment_status == "paid"

    @pytest.mark.integration
    @pytest.mark.asyncio
    @pytest.mark.parametrize("code,status", [
        ("VNPay", "pending"),
        ("Momo", "processing"),
        ("COD", "cancelled"),
        ("COD", "delivered"),
    ])
    async def test_locked(self, db_session, make_payment_method, make_order, code, status):
        method = await make_payment_method(code)
        order = await make_order(method, status=status)

        with pytest.raises(PaymentStatusLockedError) as exc_info:
            await order_service.update_payment_status(db_session, order.id, "paid")
        assert exc_info.value.status_code == 400
        assert exc_info.value.details["reason"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unknown_payment_status_value(self, db_session, make_payment_method, make_order):
        cod = await make_payment_method("COD")
        order = await make_order(cod)
        with pytest.raises(ValidationError):
            await order_service.update_payment_status(db_session, order.id, "refunded")


class TestCancelOrder:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_owner_cancels_pending(self, db_session, make_payment_method, make_order, customer):
        cod = await make_payment_method("COD")
        order = await make_order(cod, user=customer)

        updated = await order_service.cancel_order(db_session, order.id, customer.id, "Changed my mind")
        assert updated.status == "cancelled"
        assert updated.cancellation_reason == "Changed my mind"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_other_user_cannot_cancel(self, db_session, make_payment_method, make_order, customer, make_user):
        cod = await make_payment_method("COD")
        order = await make_order(cod, user=customer)
        stranger = await make_user()

        with pytest.raises(PermissionDeniedError):
            await order_service.cancel_order(db_session, order.id, stranger.id)

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_shipped_cannot_be_cancelled(self, db_session, make_payment_method, make_order, customer):
        """Shipped → cancelled is an admin move; customers only cancel before shipping."""
        cod = await make_payment_method("COD")
        order = await make_order(cod, user=customer, status="shipped")

        with pytest.raises(ValidationError):
            await order_service.cancel_order(db_session, order.id, customer.id)


class TestStatusCounts:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_counts_include_every_status(self, db_session, make_payment_method, make_order):
        cod = await make_payment_method("COD")
        await make_order(cod)
        await make_order(cod)
        await make_order(cod, status="shipped")

        counts = await order_service.order_status_counts(db_session)
        assert counts == {
            "pending": 2, "processing": 0, "shipped": 1,
            "delivered": 0, "cancelled": 0, "total": 3,
            "totalRevenue": 750_000.0, "avgOrderValue": 250_000.0,
        }

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_revenue_sums_final_totals(self, db_session, make_payment_method, make_order):
        cod = await make_payment_method("COD")
        await make_order(cod, total=100_000, final_total=120_000)
        await make_order(cod, total=300_000, final_total=280_000, status="delivered")

        stats = await order_service.order_status_counts(db_session)
        assert stats["totalRevenue"] == 400_000
        assert stats["avgOrderValue"] == 200_000

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_date_window(self, db_session, make_payment_method, make_order):
        cod = await make_payment_method("COD")
        await make_order(cod, created_at=datetime(2024, 1, 5), final_total=100_000)
        await make_order(cod, created_at=datetime(2024, 2, 10), final_total=200_000, status="shipped")
        await make_order(cod, created_at=datetime(2024, 3, 15), final_total=400_000)

        stats = await order_service.order_status_counts(
            db_session, datetime(2024, 2, 1), datetime(2024, 3, 31, tzinfo=timezone.utc),
        )
        assert stats["total"] == 2
        assert stats["shipped"] == 1
        assert stats["pending"] == 1
        assert stats["totalRevenue"] == 600_000

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_empty_window_is_zeroed(self, db_session):
        stats = await order_service.order_status_counts(db_session, start_date=datetime(2999, 1, 1))
        assert stats["total"] == 0
        assert stats["totalRevenue"] == 0
        assert stats["avgOrderValue"] == 0
