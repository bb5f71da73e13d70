"""Administrative fulfilment moves: CONFIRMED → PROCESSING → SHIPPED → DELIVERED."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import IllegalTransition
from storefront.order.order import FULFILMENT_STATES, Order
from storefront.order.queries import load_order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class AdvanceOrder:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)


@storefront.command_handler(part_of=Order)
class AdvanceOrderHandler:
    @handle(AdvanceOrder)
    def advance_order(self, command):
        order = load_order(command.order_id)

        requested = str(command.status).upper()
        target = next((status for status in FULFILMENT_STATES if status.value == requested), None)
        if target is None:
            # Payment, cancellation and refund outcomes have their own workflows
            raise IllegalTransition(order.status, requested)

        previous = order.status
        order.transition_to(target)
        current_domain.repository_for(Order).add(order)

        logger.info("Order advanced", order_id=str(order.id), from_status=previous, to_status=order.status)
        return str(order.id)

