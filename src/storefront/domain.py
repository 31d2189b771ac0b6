"""Storefront bounded context — catalogue, cart, inventory and order lifecycle.

Turns a shopper's cart into an immutable order, keeps variant stock consistent
across order status transitions, and exposes the catalogue the cart draws from.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
