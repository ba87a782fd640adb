"""Shipment aggregate (CQRS) — tracking record created with every order.

State Machine (strictly linear, one step at a time):
    CREATED → SHIPPED → IN_TRANSIT → DELIVERED

Skips, backward moves, self-loops and anything out of DELIVERED are
rejected and leave the status untouched.
"""

import re
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean.fields import DateTime, Identifier, String

from ordering.domain import ordering
from ordering.errors import InvalidShipmentTransition, UnrecognizedValue
from ordering.shipment.events import ShipmentCreated, ShipmentStatusChanged

TRACKING_PREFIX = "TRK-"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ShipmentStatus(Enum):
    CREATED = "Created"
    SHIPPED = "Shipped"
    IN_TRANSIT = "InTransit"
    DELIVERED = "Delivered"

    @classmethod
    def parse(cls, value) -> "ShipmentStatus":
        """Accept "In Transit", "in_transit", "IN-TRANSIT" and "InTransit" alike."""
        if isinstance(value, cls):
            return value
        normalized = re.sub(r"[\s_\-]", "", str(value or "")).lower()
        for status in cls:
            if status.value.lower() == normalized:
                return status
        raise UnrecognizedValue("status", value)


_VALID_TRANSITIONS = {
    ShipmentStatus.CREATED: {ShipmentStatus.SHIPPED},
    ShipmentStatus.SHIPPED: {ShipmentStatus.IN_TRANSIT},
    ShipmentStatus.IN_TRANSIT: {ShipmentStatus.DELIVERED},
    ShipmentStatus.DELIVERED: set(),  # terminal
}


def generate_tracking_number() -> str:
    return f"{TRACKING_PREFIX}{uuid4().hex[:12].upper()}"


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@ordering.aggregate
class Shipment:
    order_id = Identifier(required=True)
    tracking_number = String(max_length=50, required=True)
    status = String(
        max_length=20,
        choices=ShipmentStatus,
        default=ShipmentStatus.CREATED.value,
    )
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, order_id: str) -> "Shipment":
        now = datetime.now(UTC)
        shipment = cls(
            order_id=order_id,
            tracking_number=generate_tracking_number(),
            status=ShipmentStatus.CREATED.value,
            created_at=now,
            updated_at=now,
        )
        shipment.raise_(
            ShipmentCreated(
                shipment_id=str(shipment.id),
                order_id=str(order_id),
                tracking_number=shipment.tracking_number,
                created_at=now,
            )
        )
        return shipment

    def advance(self, target) -> None:
        """Move to ``target`` if it is exactly the next status."""
        target = ShipmentStatus.parse(target)
        current = ShipmentStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidShipmentTransition(current.value, target.value)

        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        self.raise_(
            ShipmentStatusChanged(
                shipment_id=str(self.id),
                order_id=str(self.order_id),
                from_status=current.value,
                to_status=target.value,
                changed_at=now,
            )
        )
