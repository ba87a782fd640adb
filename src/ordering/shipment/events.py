"""Domain events for the Shipment aggregate."""

from protean.fields import DateTime, Identifier, String

from ordering.domain import ordering


@ordering.event(part_of="Shipment")
class ShipmentCreated:
    """A shipment record was opened for a newly placed order."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    tracking_number = String(max_length=50, required=True)
    created_at = DateTime(required=True)


@ordering.event(part_of="Shipment")
class ShipmentStatusChanged:
    """The shipment moved one step along Created → Shipped → InTransit → Delivered."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    from_status = String(max_length=20, required=True)
    to_status = String(max_length=20, required=True)
    changed_at = DateTime(required=True)
