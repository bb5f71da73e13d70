"""Order cancellation: command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order
from storefront.order.queries import load_order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    reason = Text()


@storefront.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        order = load_order(command.order_id, command.user_id)
        order.cancel(reason=command.reason)
        current_domain.repository_for(Order).add(order)

        logger.info("Order cancelled", order_id=str(order.id), reason=command.reason)
        return str(order.id)
