"""Order payment — commands recording processor outcomes on an order.

``RecordOrderPayment`` is the one command every confirmation path ends in
(client confirmation, webhook, manual admin entry). It is idempotent: a
second confirmation for a paid order changes nothing and reports so. The
paid flag is flipped in storage only where it is still unset, so of two
confirmations racing on one order exactly one applies.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import NotFoundError
from ordering.order.order import Order, PaymentSource

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class RecordOrderPayment:
    order_id = Identifier(required=True)
    transaction_id = String(required=True, max_length=255)
    status = String(max_length=50)
    update_time = String(max_length=50)
    payer_email = String(max_length=255)
    source = String(choices=PaymentSource, default=PaymentSource.MANUAL.value)
    owner_id = Identifier()  # when set, the order must belong to this user


@ordering.command(part_of="Order")
class RecordPaymentFailure:
    order_id = Identifier(required=True)
    transaction_id = String(max_length=255)
    reason = String(max_length=500)


def _load(repo, order_id) -> Order:
    try:
        return repo.get(order_id)
    except ObjectNotFoundError as exc:
        raise NotFoundError("Order not found") from exc


@ordering.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(RecordOrderPayment)
    def record_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = _load(repo, command.order_id)

        if command.owner_id and not order.is_owned_by(command.owner_id):
            raise NotFoundError("Order not found")

        if order.is_paid:
            logger.info(
                "payment_duplicate_ignored",
                order_id=str(order.id),
                transaction_id=command.transaction_id,
                source=command.source,
            )
            return False

        repo.mark_paid_if_unpaid(order)
        order.mark_paid(
            transaction_id=command.transaction_id,
            status=command.status,
            update_time=command.update_time,
            payer_email=command.payer_email,
            source=command.source,
        )
        repo.add(order)
        logger.info(
            "payment_applied",
            order_id=str(order.id),
            transaction_id=command.transaction_id,
            source=command.source,
        )
        return True

    @handle(RecordPaymentFailure)
    def record_failure(self, command):
        repo = current_domain.repository_for(Order)
        order = _load(repo, command.order_id)
        repo.claim(order)
        order.record_payment_failure(
            transaction_id=command.transaction_id,
            reason=command.reason,
        )
        repo.add(order)
        logger.warning(
            "payment_failure_recorded",
            order_id=str(order.id),
            transaction_id=command.transaction_id,
            reason=command.reason,
            is_paid=order.is_paid,
        )
