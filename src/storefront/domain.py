"""Storefront bounded context: checkout, orders, payments and refunds.

Takes a priced cart snapshot to a persisted order, hands payment off to an
external gateway, reconciles the gateway's asynchronous outcome with local
order state, and supports cancellation and refunds.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
