"""Shipment tracking — status commands, handler and the Shipment Tracker.

Status strings are parsed at the boundary, before a command is built, so a
bad value never reaches the aggregate. The read-validate-write of each
transition runs under a per-shipment lock.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import NotFound
from ordering.order.order import Order
from ordering.shared.locks import shipment_locks
from ordering.shipment.shipment import Shipment, ShipmentStatus

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Shipment")
class AdvanceShipment:
    shipment_id = Identifier(required=True)
    status = String(required=True, max_length=20)


@ordering.command_handler(part_of=Shipment)
class ShipmentTrackingHandler:
    @handle(AdvanceShipment)
    def advance_shipment(self, command):
        repo = current_domain.repository_for(Shipment)
        try:
            shipment = repo.get(command.shipment_id)
        except ObjectNotFoundError:
            raise NotFound("Shipment", command.shipment_id) from None

        previous = shipment.status
        shipment.advance(command.status)
        repo.add(shipment)

        logger.info(
            "Shipment status changed",
            shipment_id=str(shipment.id),
            order_id=str(shipment.order_id),
            from_status=previous,
            to_status=shipment.status,
        )
        return shipment


class ShipmentTracker:
    def create(self, order_id: str) -> Shipment:
        """A new, unsaved shipment in ``Created`` with a fresh tracking number."""
        return Shipment.create(order_id=order_id)

    def advance(self, shipment_id: str, target_status) -> Shipment:
        status = ShipmentStatus.parse(target_status)
        with shipment_locks.hold(shipment_id):
            return current_domain.process(
                AdvanceShipment(shipment_id=shipment_id, status=status.value),
                asynchronous=False,
            )

    def advance_for_order(self, order_id: str, target_status) -> Shipment:
        status = ShipmentStatus.parse(target_status)
        return self.advance(self._shipment_id_for(order_id), status)

    def get_tracking(self, order_id: str) -> dict:
        shipment = self._shipment_for(order_id)
        return {"tracking_number": shipment.tracking_number, "status": shipment.status}

    def _shipment_id_for(self, order_id: str) -> str:
        try:
            order = current_domain.repository_for(Order).get(order_id)
        except ObjectNotFoundError:
            raise NotFound("Order", order_id) from None
        if not order.shipment_id:
            raise NotFound("Shipment", order_id)
        return str(order.shipment_id)

    def _shipment_for(self, order_id: str) -> Shipment:
        shipment_id = self._shipment_id_for(order_id)
        try:
            return current_domain.repository_for(Shipment).get(shipment_id)
        except ObjectNotFoundError:
            raise NotFound("Shipment", shipment_id) from None
