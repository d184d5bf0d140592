"""
Order endpoints — admin listing, status/payment updates, customer cancellation.

Status rules are enforced by services/order_service.py (which delegates to
domain/order_status.py). Handlers here commit the unit of work.
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database import get_db, get_session_factory
from db_models import Order
from deps import CurrentUser, list_query_params, require_admin, require_user
from domain import order_status
from domain.responses import StandardErrorResponse, paginated_response, success_response
from models import (
    CancelOrderRequest, OrderOut, OrderStatusUpdateRequest, PaymentMethodOut,
    PaymentStatusUpdateRequest,
)
from services import listing_service, order_service
from utils.serializers import serialize_many
from utils.validators import parse_date, validated_order_id

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/orders",
    tags=["orders"],
    responses={
        400: {"model": StandardErrorResponse},
        401: {"model": StandardErrorResponse},
        403: {"model": StandardErrorResponse},
        404: {"model": StandardErrorResponse},
    },
)


def _order_payload(order: Order) -> dict:
    method = order.payment_method
    method_code = method.code if method else None
    out = OrderOut(
        id=order.id,
        order_code=order.order_code,
        user_id=order.user_id,
        status=order.status,
        payment_status=order.payment_status,
        payment_method=PaymentMethodOut(id=method.id, code=method.code, name=method.name) if method else None,
        total=order.total,
        discount_amount=order.discount_amount or 0.0,
        shipping_fee=order.shipping_fee or 0.0,
        final_total=order.final_total or 0.0,
        cancellation_reason=order.cancellation_reason,
        created_at=order.created_at,
        updated_at=order.updated_at,
        can_change_payment_status=order_status.can_change_payment_status(order.status, method_code),
        can_cancel=order_status.can_cancel_order(order.status),
        allowed_transitions=order_status.allowed_transitions(order.status),
    )
    return out.model_dump(by_alias=True, mode="json")


# ── Rules (public) ──────────────────────────────────────────────────

@router.get("/status-rules")
async def get_status_rules():
    """Transition table and payment-status rules, so clients can grey out invalid actions."""
    return success_response(order_status.status_rules())


# ── Admin ───────────────────────────────────────────────────────────

@router.get("/admin")
async def list_orders_admin(
    params: dict = Depends(list_query_params),
    _admin: CurrentUser = Depends(require_admin),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """
    Paginated order list.

    Example: /api/orders/admin?status=pending,processing&minTotal=100000&sortBy=finalTotal&order=asc
    """
    result = await listing_service.get_orders(session_factory, params)
    return paginated_response(serialize_many(result.data), result.pagination, result.filter, result.sort)


@router.get("/admin/stats")
async def order_stats(
    _admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
):
    """
    Per-status counts plus revenue figures.

    Optional `startDate`/`endDate` (ISO dates) bound `createdAt`; values that
    do not parse are ignored.
    """
    counts = await order_service.order_status_counts(db, parse_date(start_date), parse_date(end_date))
    return success_response(counts)


@router.get("/admin/{orderId}")
async def get_order_admin(
    _admin: CurrentUser = Depends(require_admin),
    order_id: str = Depends(validated_order_id),
    db: AsyncSession = Depends(get_db),
):
    order = await order_service.get_order(db, order_id)
    return success_response(_order_payload(order))


@router.put("/admin/{orderId}/status")
async def update_order_status(
    body: OrderStatusUpdateRequest,
    admin: CurrentUser = Depends(require_admin),
    order_id: str = Depends(validated_order_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Move an order to a new status.

    Returns 400 when the move is not in the transition table. Moving to
    `delivered` also marks the order paid.
    """
    order = await order_service.update_order_status(db, order_id, body.status.value)
    await db.commit()
    logger.info(f"Admin {admin['id']} set order {order.order_code} to {order.status}")
    return success_response(_order_payload(order))


@router.put("/admin/{orderId}/payment-status")
async def update_payment_status(
    body: PaymentStatusUpdateRequest,
    admin: CurrentUser = Depends(require_admin),
    order_id: str = Depends(validated_order_id),
    db: AsyncSession = Depends(get_db),
):
    """Manually set payment status. Refused for gateway, cancelled and delivered-COD orders."""
    order = await order_service.update_payment_status(db, order_id, body.payment_status.value)
    await db.commit()
    logger.info(f"Admin {admin['id']} set payment status of {order.order_code} to {order.payment_status}")
    return success_response(_order_payload(order))


# ── Customer ────────────────────────────────────────────────────────

@router.put("/{orderId}/cancel")
async def cancel_order(
    body: CancelOrderRequest | None = None,
    user: CurrentUser = Depends(require_user),
    order_id: str = Depends(validated_order_id),
    db: AsyncSession = Depends(get_db),
):
    reason = body.reason if body else None
    order = await order_service.cancel_order(db, order_id, user["id"], reason)
    await db.commit()
    return success_response(_order_payload(order))
