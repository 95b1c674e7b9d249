"""Cart expiry — maintenance command emptying carts past their TTL.

Meant to be triggered periodically by an external scheduler. Carts are also
expired lazily whenever they are loaded, so a missed sweep only delays
the cleanup.
"""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import DateTime
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.domain import ordering

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Cart")
class ExpireStaleCarts:
    as_of = DateTime()  # defaults to now


@ordering.command_handler(part_of=Cart)
class ExpireStaleCartsHandler:
    @handle(ExpireStaleCarts)
    def expire_stale_carts(self, command):
        as_of = command.as_of or datetime.now(UTC)
        repo = current_domain.repository_for(Cart)

        stale = repo.expired(as_of)
        if not stale:
            logger.info("no_stale_carts", as_of=as_of.isoformat())
            return 0

        for cart in stale:
            cart.expire_if_stale(as_of)
            repo.add(cart)
            logger.info("cart_expired", cart_id=str(cart.id), user_id=str(cart.user_id))

        logger.info("stale_carts_expired", count=len(stale), as_of=as_of.isoformat())
        return len(stale)
