"""
Order lifecycle rules: status transitions and payment-status mutability.

This module is the single authority for which status changes are legal. It is
pure (no I/O) so the same rules back the service layer, the HTTP validation
and the JSON rules document served at GET /api/orders/status-rules.

Self-transitions are allowed everywhere (a no-op save). `delivered` and
`cancelled` are terminal.
"""

from domain.constants import COD_METHOD, DIGITAL_GATEWAY_METHODS
from domain.enums import OrderStatus, PaymentStatus
from domain.errors import InvalidStatusTransitionError

ORDER_STATUSES: tuple[str, ...] = tuple(s.value for s in OrderStatus)
PAYMENT_STATUSES: tuple[str, ...] = tuple(s.value for s in PaymentStatus)

# Current status -> statuses reachable with one update
# shipped -> cancelled is the "customer refused delivery" return path; the
# cancel action itself is narrower, see can_cancel_order().
ORDER_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"pending", "processing", "cancelled"}),
    "processing": frozenset({"processing", "shipped", "delivered", "cancelled"}),
    "shipped": frozenset({"shipped", "delivered", "cancelled"}),
    "delivered": frozenset({"delivered"}),
    "cancelled": frozenset({"cancelled"}),
}

TERMINAL_STATUSES: frozenset[str] = frozenset({"delivered", "cancelled"})

CANCELLABLE_STATUSES: frozenset[str] = frozenset({"pending", "processing"})


def _norm(value) -> str:
    if isinstance(value, OrderStatus):
        return value.value
    return str(value).strip().lower() if value is not None else ""


def allowed_transitions(current_status) -> list[str]:
    """Sorted list of statuses reachable from current_status."""
    return sorted(ORDER_TRANSITIONS.get(_norm(current_status), ()))


def is_terminal(status) -> bool:
    return _norm(status) in TERMINAL_STATUSES


def is_valid_transition(current_status, new_status) -> bool:
    """True if current_status -> new_status is in the transition table."""
    allowed = ORDER_TRANSITIONS.get(_norm(current_status))
    if allowed is None:
        return False
    return _norm(new_status) in allowed


def validate_transition(current_status, new_status) -> None:
    """Raise InvalidStatusTransitionError unless the move is in the table."""
    if not is_valid_transition(current_status, new_status):
        raise InvalidStatusTransitionError(
            _norm(current_status),
            _norm(new_status),
            allowed_transitions(current_status),
        )


def apply_status_change(current_status, current_payment_status, new_status) -> tuple[str, str]:
    """
    Validate a status change and compute the resulting (status, payment_status).

    Delivery implies the money was collected, so moving to `delivered` always
    sets payment status to `paid`, whatever it was before.
    """
    validate_transition(current_status, new_status)
    status = _norm(new_status)
    payment_status = _norm(current_payment_status) or PaymentStatus.PENDING.value
    if status == OrderStatus.DELIVERED.value:
        payment_status = PaymentStatus.PAID.value
    return status, payment_status


def can_cancel_order(status) -> bool:
    """Cancel action is offered only before shipping."""
    return _norm(status) in CANCELLABLE_STATUSES


def is_digital_gateway(method_code) -> bool:
    """True for VNPay, Momo, ZaloPay (case-insensitive)."""
    return _norm(method_code) in DIGITAL_GATEWAY_METHODS


def payment_status_block_reason(status, method_code) -> str | None:
    """
    Explain why payment status may not be edited, or return None if it may.

    Order of checks matters only for the message: gateway orders are always
    reported as gateway-managed, even when also cancelled.
    """
    if is_digital_gateway(method_code):
        return (
            f"Payment status of {method_code} orders is managed by the payment "
            "gateway and cannot be changed manually"
        )
    if _norm(status) == OrderStatus.CANCELLED.value:
        return "Payment status cannot be changed for a cancelled order"
    if _norm(method_code) == COD_METHOD and _norm(status) == OrderStatus.DELIVERED.value:
        return "Payment status of a delivered COD order is final"
    return None


def can_change_payment_status(status, method_code) -> bool:
    return payment_status_block_reason(status, method_code) is None


def status_rules() -> dict:
    """The rules above as plain JSON data for clients."""
    return {
        "statuses": list(ORDER_STATUSES),
        "paymentStatuses": list(PAYMENT_STATUSES),
        "transitions": {s: sorted(targets) for s, targets in ORDER_TRANSITIONS.items()},
        "terminal": sorted(TERMINAL_STATUSES),
        "cancellable": sorted(CANCELLABLE_STATUSES),
        "digitalGatewayMethods": sorted(DIGITAL_GATEWAY_METHODS),
        "deliveredSetsPaymentStatus": PaymentStatus.PAID.value,
    }
