"""Pydantic request/response schemas for the Storefront API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands and aggregates.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CartLineSchema(BaseModel):
    product_id: str
    variant_id: str | None = None
    quantity: int


class RefundItemSchema(BaseModel):
    product_id: str
    variant_id: str | None = None
    quantity: int | None = None


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    cart: list[CartLineSchema]
    cart_origin: Literal["draft", "server"] = "server"
    shipping_address_id: str | None = None
    billing_address_id: str | None = None
    shipping_amount: float = 0.0
    discount: float = 0.0
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "cart": [{"product_id": "P1", "quantity": 2}],
                    "cart_origin": "server",
                    "shipping_address_id": "addr-001",
                    "shipping_amount": 1500.0,
                }
            ]
        }
    }


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class RequestRefundRequest(BaseModel):
    reason: str
    items: list[RefundItemSchema] | None = None


class AdvanceOrderRequest(BaseModel):
    status: str  # PROCESSING, SHIPPED, DELIVERED


# ---------------------------------------------------------------------------
# Payment Request Schemas
# ---------------------------------------------------------------------------
class CreatePaymentIntentRequest(BaseModel):
    order_id: str
    amount: float | None = Field(default=None, gt=0)  # major units
    currency: str | None = None


class ConfirmPaymentRequest(BaseModel):
    external_id: str
    reported_status: str


class RefundPaymentRequest(BaseModel):
    amount: float | None = Field(default=None, gt=0)  # major units
    reason: str | None = None


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Card declined"


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    variant_id: str | None = None
    title: str
    quantity: int
    unit_price: float


class PricingResponse(BaseModel):
    subtotal: float
    tax: float
    shipping: float
    discount: float
    total: float
    currency: str


class AddressResponse(BaseModel):
    full_name: str | None = None
    phone: str | None = None
    street: str
    city: str
    state: str | None = None
    postal_code: str | None = None
    country: str

    @classmethod
    def from_address(cls, address) -> "AddressResponse | None":
        if address is None:
            return None
        return cls(
            full_name=address.full_name,
            phone=address.phone,
            street=address.street,
            city=address.city,
            state=address.state,
            postal_code=address.postal_code,
            country=address.country,
        )


class OrderResponse(BaseModel):
    id: str
    order_number: str | None = None
    user_id: str
    status: str
    items: list[OrderItemResponse]
    pricing: PricingResponse
    shipping_address_id: str
    billing_address_id: str | None = None
    shipping_address: AddressResponse | None = None
    notes: str | None = None
    delivered_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        return cls(
            id=str(order.id),
            order_number=order.order_number,
            user_id=str(order.user_id),
            status=order.status,
            items=[
                OrderItemResponse(
                    id=str(item.id),
                    product_id=str(item.product_id),
                    variant_id=str(item.variant_id) if item.variant_id else None,
                    title=item.title,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                )
                for item in order.items
            ],
            pricing=PricingResponse(
                subtotal=order.pricing.subtotal,
                tax=order.pricing.tax,
                shipping=order.pricing.shipping,
                discount=order.pricing.discount,
                total=order.pricing.total,
                currency=order.pricing.currency,
            ),
            shipping_address_id=str(order.shipping_address_id),
            billing_address_id=str(order.billing_address_id) if order.billing_address_id else None,
            shipping_address=AddressResponse.from_address(order.shipping_address),
            notes=order.notes,
            delivered_at=order.delivered_at,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderEnvelope(BaseModel):
    order: OrderResponse


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]


class OrderStatsResponse(BaseModel):
    total_orders: int
    by_status: dict[str, int]
    total_spent: float
    currency: str


class TrackingStepResponse(BaseModel):
    step: str
    completed: bool
    date: datetime | None = None
    estimated_date: datetime | None = None


class OrderTrackingResponse(BaseModel):
    order_id: str
    order_number: str | None = None
    status: str
    current_step: str
    steps: list[TrackingStepResponse]
    shipping_address: AddressResponse | None = None


class RefundRequestResponse(BaseModel):
    order_id: str
    reason: str | None = None
    items: list[RefundItemSchema] = []
    requested_at: datetime
    status: str
    refund_id: str
    amount: int  # minor units


class OrderRefundEnvelope(BaseModel):
    order: OrderResponse
    refund_request: RefundRequestResponse


class PaymentIntentResponse(BaseModel):
    client_secret: str
    external_id: str
    payment_id: str


class ConfirmPaymentResponse(BaseModel):
    payment_status: str
    order_status: str


class RefundResponse(BaseModel):
    refund_id: str
    payment_id: str
    amount: int  # minor units
    currency: str
    reason: str | None = None
    status: str
    external_refund_id: str | None = None
    created_at: datetime | None = None
    payment_status: str


class RefundEnvelope(BaseModel):
    refund: RefundResponse


class PaymentResponse(BaseModel):
    id: str
    order_id: str
    amount: int  # minor units
    currency: str
    status: str
    method: str | None = None
    gateway: str | None = None
    external_id: str | None = None
    refunded_total: int
    refunds: list[RefundResponse]
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_payment(cls, payment) -> "PaymentResponse":
        return cls(
            id=str(payment.id),
            order_id=str(payment.order_id),
            amount=payment.amount,
            currency=payment.currency,
            status=payment.status,
            method=payment.method,
            gateway=payment.gateway,
            external_id=payment.gateway_reference,
            refunded_total=payment.refunded_total,
            refunds=[
                RefundResponse(
                    refund_id=str(refund.id),
                    payment_id=str(payment.id),
                    amount=refund.amount,
                    currency=refund.currency,
                    reason=refund.reason,
                    status=refund.status,
                    external_refund_id=refund.external_refund_id,
                    created_at=refund.created_at,
                    payment_status=payment.status,
                )
                for refund in payment.refunds
            ],
            created_at=payment.created_at,
            updated_at=payment.updated_at,
        )


class PaymentEnvelope(BaseModel):
    payment: PaymentResponse
    external_status: str | None = None


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
