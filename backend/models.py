"""
Pydantic models for request/response validation.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from domain.enums import OrderStatus, PaymentStatus


class ApiBase(BaseModel):
    """Shared base — allows construction by Python name or camelCase alias."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# ── Order Requests ──────────────────────────────────────────────────

class OrderStatusUpdateRequest(ApiBase):
    """Body of PUT /api/orders/admin/{orderId}/status."""
    status: OrderStatus = Field(..., description="Target order status")


class PaymentStatusUpdateRequest(ApiBase):
    """Body of PUT /api/orders/admin/{orderId}/payment-status."""
    payment_status: PaymentStatus = Field(..., alias="paymentStatus")


class CancelOrderRequest(ApiBase):
    """Body of PUT /api/orders/{orderId}/cancel."""
    reason: Optional[str] = Field(default=None, max_length=500)


# ── Order Responses ─────────────────────────────────────────────────

class PaymentMethodOut(ApiBase):
    id: str
    code: str
    name: str


class OrderOut(ApiBase):
    """Admin view of a single order."""
    id: str
    order_code: str = Field(..., alias="orderCode")
    user_id: Optional[str] = Field(default=None, alias="userId")
    status: str
    payment_status: str = Field(..., alias="paymentStatus")
    payment_method: Optional[PaymentMethodOut] = Field(default=None, alias="paymentMethod")
    total: float
    discount_amount: float = Field(0.0, alias="discountAmount")
    shipping_fee: float = Field(0.0, alias="shippingFee")
    final_total: float = Field(0.0, alias="finalTotal")
    cancellation_reason: Optional[str] = Field(default=None, alias="cancellationReason")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
    can_change_payment_status: bool = Field(False, alias="canChangePaymentStatus")
    can_cancel: bool = Field(False, alias="canCancel")
    allowed_transitions: list[str] = Field(default_factory=list, alias="allowedTransitions")
