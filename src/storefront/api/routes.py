"""FastAPI routes for the Storefront: orders and payments.

The identity collaborator authenticates the caller upstream and forwards the
user id in the ``X-User-Id`` header (and the e-mail, when known, in
``X-User-Email``).
"""

import hmac
import os

from fastapi import APIRouter, Header, HTTPException

from storefront import checkout
from storefront.api.schemas import (
    AddressResponse,
    AdvanceOrderRequest,
    CancelOrderRequest,
    ConfigureGatewayRequest,
    ConfirmPaymentRequest,
    ConfirmPaymentResponse,
    CreateOrderRequest,
    CreatePaymentIntentRequest,
    GatewayConfigResponse,
    OrderEnvelope,
    OrderListResponse,
    OrderRefundEnvelope,
    OrderResponse,
    OrderStatsResponse,
    OrderTrackingResponse,
    PaymentEnvelope,
    PaymentIntentResponse,
    PaymentResponse,
    RefundEnvelope,
    RefundPaymentRequest,
    RefundRequestResponse,
    RefundResponse,
    RequestRefundRequest,
    TrackingStepResponse,
)
from storefront.cart.cart import CartOrigin
from storefront.config import get_settings
from storefront.gateway import get_gateway
from storefront.gateway.fake_adapter import FakeGateway
from storefront.utils.logging import bind_request_context


def _require_admin(token: str) -> None:
    """Fulfilment is driven by operators, never by shoppers.

    Administrative routes stay closed until STOREFRONT_ADMIN_TOKEN is set.
    """
    expected = get_settings().admin_token
    if not expected or not hmac.compare_digest(token.encode(), expected.encode()):
        raise HTTPException(status_code=403, detail="Administrator access required")


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderEnvelope)
async def create_order(body: CreateOrderRequest, x_user_id: str = Header()) -> OrderEnvelope:
    """Check out a cart into a PENDING order."""
    bind_request_context(user_id=x_user_id)
    order = checkout.place_order(
        user_id=x_user_id,
        cart_lines=[line.model_dump() for line in body.cart],
        shipping_address_id=body.shipping_address_id,
        billing_address_id=body.billing_address_id,
        shipping_amount=body.shipping_amount,
        discount=body.discount,
        notes=body.notes,
        origin=CartOrigin(body.cart_origin),
    )
    return OrderEnvelope(order=OrderResponse.from_order(order))


@order_router.get("", response_model=OrderListResponse)
async def list_orders(status: str | None = None, x_user_id: str = Header()) -> OrderListResponse:
    orders = checkout.list_orders(x_user_id, status.upper() if status else None)
    return OrderListResponse(orders=[OrderResponse.from_order(order) for order in orders])


@order_router.get("/stats", response_model=OrderStatsResponse)
async def order_stats(x_user_id: str = Header()) -> OrderStatsResponse:
    """Order counts per status and total spent for the caller."""
    return OrderStatsResponse(**checkout.get_order_stats(x_user_id))


@order_router.get("/{order_id}", response_model=OrderEnvelope)
async def get_order(order_id: str, x_user_id: str = Header()) -> OrderEnvelope:
    order = checkout.get_order(x_user_id, order_id)
    return OrderEnvelope(order=OrderResponse.from_order(order))


@order_router.get("/{order_id}/tracking", response_model=OrderTrackingResponse)
async def track_order(order_id: str, x_user_id: str = Header()) -> OrderTrackingResponse:
    order, tracking = checkout.track_order(x_user_id, order_id)
    return OrderTrackingResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        status=order.status,
        current_step=tracking["current_step"],
        steps=[TrackingStepResponse(**step) for step in tracking["steps"]],
        shipping_address=AddressResponse.from_address(order.shipping_address),
    )


@order_router.post("/{order_id}/cancel", response_model=OrderEnvelope)
async def cancel_order(order_id: str, body: CancelOrderRequest, x_user_id: str = Header()) -> OrderEnvelope:
    bind_request_context(user_id=x_user_id, order_id=order_id)
    order = checkout.cancel_order(x_user_id, order_id, reason=body.reason)
    return OrderEnvelope(order=OrderResponse.from_order(order))


@order_router.post("/{order_id}/refund", response_model=OrderRefundEnvelope)
async def request_refund(order_id: str, body: RequestRefundRequest, x_user_id: str = Header()) -> OrderRefundEnvelope:
    """Request a refund for a delivered order, in full or for selected items."""
    bind_request_context(user_id=x_user_id, order_id=order_id)
    order, refund_request = checkout.request_refund(
        x_user_id,
        order_id,
        reason=body.reason,
        items=[item.model_dump() for item in body.items] if body.items else None,
    )
    return OrderRefundEnvelope(
        order=OrderResponse.from_order(order),
        refund_request=RefundRequestResponse(**refund_request),
    )


@order_router.put("/{order_id}/status", response_model=OrderEnvelope)
async def advance_order(
    order_id: str,
    body: AdvanceOrderRequest,
    x_admin_token: str = Header(default=""),
) -> OrderEnvelope:
    """Move an order along fulfilment (administrative)."""
    _require_admin(x_admin_token)
    bind_request_context(order_id=order_id)
    order = checkout.advance_order(order_id, body.status)
    return OrderEnvelope(order=OrderResponse.from_order(order))


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/intents", status_code=201, response_model=PaymentIntentResponse)
async def create_payment_intent(
    body: CreatePaymentIntentRequest,
    x_user_id: str = Header(),
    x_user_email: str | None = Header(default=None),
) -> PaymentIntentResponse:
    """Create a payment intent at the gateway for a PENDING order."""
    bind_request_context(user_id=x_user_id, order_id=body.order_id)
    result = checkout.create_payment_intent(
        x_user_id,
        body.order_id,
        amount=body.amount,
        currency=body.currency,
        email=x_user_email,
    )
    return PaymentIntentResponse(
        client_secret=result["client_secret"],
        external_id=result["external_id"],
        payment_id=result["payment_id"],
    )


@payment_router.post("/confirm", response_model=ConfirmPaymentResponse)
async def confirm_payment(body: ConfirmPaymentRequest, x_user_id: str = Header()) -> ConfirmPaymentResponse:
    """Report the payer-side outcome of a payment intent."""
    bind_request_context(user_id=x_user_id)
    outcome = checkout.confirm_payment(body.external_id, body.reported_status, user_id=x_user_id)
    return ConfirmPaymentResponse(payment_status=outcome["payment_status"], order_status=outcome["order_status"])


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only).

    This endpoint is only available when PROTEAN_ENV is not 'production'.
    It allows toggling success/failure behavior for manual API testing.
    """
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
    )
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
    )


@payment_router.get("/{payment_id}", response_model=PaymentEnvelope)
async def get_payment(payment_id: str, x_user_id: str = Header()) -> PaymentEnvelope:
    payment, external_status = checkout.get_payment(x_user_id, payment_id)
    return PaymentEnvelope(
        payment=PaymentResponse.from_payment(payment),
        external_status=external_status.raw if external_status else None,
    )


@payment_router.post("/{payment_id}/refund", response_model=RefundEnvelope)
async def refund_payment(payment_id: str, body: RefundPaymentRequest, x_user_id: str = Header()) -> RefundEnvelope:
    """Refund a completed payment, in full or in part."""
    bind_request_context(user_id=x_user_id, payment_id=payment_id)
    refund = checkout.refund_payment(payment_id, amount=body.amount, reason=body.reason, user_id=x_user_id)
    return RefundEnvelope(refund=RefundResponse(**refund))
