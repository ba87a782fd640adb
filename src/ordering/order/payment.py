"""Order payment confirmation — commands and handler.

The core never marks an order paid on its own. A gateway webhook or an
operator confirms the outcome, which arrives here as a command. Dispatch is
serialized per order so two confirmations cannot both pass the transition
check.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import NotFound
from ordering.order.order import Order
from ordering.shared.locks import order_locks

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class MarkOrderPaid:
    order_id = Identifier(required=True)


@ordering.command(part_of="Order")
class MarkOrderFailed:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@ordering.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(MarkOrderPaid)
    def mark_paid(self, command):
        repo = current_domain.repository_for(Order)
        order = _load(repo, command.order_id)
        order.mark_paid()
        repo.add(order)
        logger.info("Order marked paid", order_id=str(order.id), total=order.total)

    @handle(MarkOrderFailed)
    def mark_failed(self, command):
        repo = current_domain.repository_for(Order)
        order = _load(repo, command.order_id)
        order.mark_failed(reason=command.reason)
        repo.add(order)
        logger.info("Order payment failed", order_id=str(order.id), reason=command.reason)


def _load(repo, order_id) -> Order:
    try:
        return repo.get(order_id)
    except ObjectNotFoundError:
        raise NotFound("Order", order_id) from None


def mark_paid(order_id: str) -> None:
    with order_locks.hold(order_id):
        current_domain.process(MarkOrderPaid(order_id=order_id), asynchronous=False)


def mark_failed(order_id: str, reason: str | None = None) -> None:
    with order_locks.hold(order_id):
        current_domain.process(MarkOrderFailed(order_id=order_id, reason=reason), asynchronous=False)
