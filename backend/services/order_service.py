"""
Order service — admin status/payment updates, customer cancellation, dashboard stats.

All rule checks go through domain/order_status.py; this module only loads,
mutates and flushes. Callers commit.

There is no row locking: two concurrent updates for the same order are
last-writer-wins.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db_models import Order
from domain import order_status
from domain.enums import OrderStatus
from domain.errors import (
    NotFoundError, PaymentStatusLockedError, PermissionDeniedError, ValidationError,
)
from utils.validators import is_valid_object_id

logger = logging.getLogger(__name__)


async def get_order(db: AsyncSession, order_id: str) -> Order:
    """Load an order with its payment method and user, or raise NotFoundError."""
    if not is_valid_object_id(order_id):
        raise NotFoundError("Order", str(order_id))
    res = await db.execute(
        select(Order)
        .where(Order.id == order_id.lower())
        .options(selectinload(Order.payment_method), selectinload(Order.user))
    )
    order = res.scalar_one_or_none()
    if not order:
        raise NotFoundError("Order", order_id)
    return order


def _method_code(order: Order) -> str | None:
    return order.payment_method.code if order.payment_method else None


async def update_order_status(db: AsyncSession, order_id: str, new_status: str) -> Order:
    """
    Move an order along the transition table.

    Raises:
        NotFoundError: unknown order
        ValidationError: new_status is not an order status
        InvalidStatusTransitionError: move not in the table
    """
    if new_status not in order_status.ORDER_STATUSES:
        raise ValidationError(
            f"must be one of {', '.join(order_status.ORDER_STATUSES)}", field="status"
        )

    order = await get_order(db, order_id)
    previous = order.status
    status, payment_status = order_status.apply_status_change(
        order.status, order.payment_status, new_status
    )

    order.status = status
    if payment_status != order.payment_status:
        logger.info(f"Order {order.order_code}: payment status {order.payment_status} → {payment_status}")
        order.payment_status = payment_status
    order.updated_at = datetime.utcnow()
    await db.flush()

    logger.info(f"Order {order.order_code}: status {previous} → {status}")
    return order


async def update_payment_status(db: AsyncSession, order_id: str, payment_status: str) -> Order:
    """
    Manually set payment status (admin).

    Raises:
        NotFoundError: unknown order
        ValidationError: value is not a payment status
        PaymentStatusLockedError: gateway order, cancelled order, or delivered COD order
    """
    if payment_status not in order_status.PAYMENT_STATUSES:
        raise ValidationError(
            f"must be one of {', '.join(order_status.PAYMENT_STATUSES)}", field="paymentStatus"
        )

    order = await get_order(db, order_id)
    reason = order_status.payment_status_block_reason(order.status, _method_code(order))
    if reason:
        logger.info(f"Order {order.order_code}: payment status change refused ({reason})")
        raise PaymentStatusLockedError(reason)

    previous = order.payment_status
    order.payment_status = payment_status
    order.updated_at = datetime.utcnow()
    await db.flush()

    logger.info(f"Order {order.order_code}: payment status {previous} → {payment_status}")
    return order


async def cancel_order(db: AsyncSession, order_id: str, user_id: str, reason: str | None = None) -> Order:
    """
    Customer cancellation. Only the owner may cancel, and only before shipping.
    """
    order = await get_order(db, order_id)
    if order.user_id != user_id:
        raise PermissionDeniedError("You can only cancel your own orders")

    if not order_status.can_cancel_order(order.status):
        raise ValidationError(
            f"Order {order.order_code} can no longer be cancelled (status: {order.status})",
            details={"status": order.status, "cancellable": sorted(order_status.CANCELLABLE_STATUSES)},
        )

    order_status.validate_transition(order.status, OrderStatus.CANCELLED.value)
    order.status = OrderStatus.CANCELLED.value
    if reason:
        order.cancellation_reason = reason
    order.updated_at = datetime.utcnow()
    await db.flush()

    logger.info(f"Order {order.order_code} cancelled by customer")
    return order


async def order_status_counts(
    db: AsyncSession,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> dict:
    """
    Dashboard figures for orders created inside an optional window.

    Every status is present (zero if none), plus `total`, `totalRevenue`
    (sum of final totals) and `avgOrderValue`. Both window bounds are
    inclusive.
    """
    conditions = []
    if start_date is not None:
        conditions.append(Order.created_at >= _naive_utc(start_date))
    if end_date is not None:
        conditions.append(Order.created_at <= _naive_utc(end_date))

    res = await db.execute(
        select(Order.status, func.count(), func.coalesce(func.sum(Order.final_total), 0.0))
        .where(*conditions)
        .group_by(Order.status)
    )
    counts = {s: 0 for s in order_status.ORDER_STATUSES}
    revenue = 0.0
    for status, count, status_revenue in res.all():
        counts[status] = int(count)
        revenue += float(status_revenue)

    total = sum(counts[s] for s in order_status.ORDER_STATUSES)
    counts["total"] = total
    counts["totalRevenue"] = revenue
    counts["avgOrderValue"] = revenue / total if total else 0.0
    return counts


def _naive_utc(value: datetime) -> datetime:
    # stored timestamps are naive UTC
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
