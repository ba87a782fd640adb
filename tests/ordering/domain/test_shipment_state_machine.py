"""Tests for the Shipment state machine — strictly linear transitions."""

import pytest
from ordering.errors import InvalidShipmentTransition, UnrecognizedValue
from ordering.shipment.events import ShipmentCreated, ShipmentStatusChanged
from ordering.shipment.shipment import Shipment, ShipmentStatus


def _shipment_at(status):
    shipment = Shipment.create(order_id="order-001")
    path = [ShipmentStatus.SHIPPED, ShipmentStatus.IN_TRANSIT, ShipmentStatus.DELIVERED]
    for step in path:
        if ShipmentStatus(shipment.status) == status:
            break
        shipment.advance(step)
    shipment._events.clear()
    return shipment


class TestCreation:
    def test_starts_created(self):
        shipment = Shipment.create(order_id="order-001")
        assert shipment.status == "Created"
        assert shipment.order_id == "order-001"

    def test_tracking_number_prefixed(self):
        assert Shipment.create(order_id="order-001").tracking_number.startswith("TRK-")

    def test_tracking_numbers_unique(self):
        numbers = {Shipment.create(order_id="order-001").tracking_number for _ in range(200)}
        assert len(numbers) == 200

    def test_created_event(self):
        shipment = Shipment.create(order_id="order-001")
        assert isinstance(shipment._events[0], ShipmentCreated)
        assert shipment._events[0].tracking_number == shipment.tracking_number


class TestForwardTransitions:
    @pytest.mark.parametrize(
        "start,target",
        [
            (ShipmentStatus.CREATED, ShipmentStatus.SHIPPED),
            (ShipmentStatus.SHIPPED, ShipmentStatus.IN_TRANSIT),
            (ShipmentStatus.IN_TRANSIT, ShipmentStatus.DELIVERED),
        ],
    )
    def test_next_step_allowed(self, start, target):
        shipment = _shipment_at(start)
        shipment.advance(target)
        assert shipment.status == target.value

    def test_transition_stamps_updated_at(self):
        shipment = _shipment_at(ShipmentStatus.CREATED)
        before = shipment.updated_at
        shipment.advance("Shipped")
        assert shipment.updated_at >= before

    def test_transition_raises_event(self):
        shipment = _shipment_at(ShipmentStatus.CREATED)
        shipment.advance("Shipped")
        event = shipment._events[0]
        assert isinstance(event, ShipmentStatusChanged)
        assert (event.from_status, event.to_status) == ("Created", "Shipped")


class TestRejectedTransitions:
    @pytest.mark.parametrize(
        "start,target",
        [
            (ShipmentStatus.CREATED, ShipmentStatus.IN_TRANSIT),  # skip
            (ShipmentStatus.CREATED, ShipmentStatus.DELIVERED),  # skip
            (ShipmentStatus.SHIPPED, ShipmentStatus.SHIPPED),  # self-loop
            (ShipmentStatus.IN_TRANSIT, ShipmentStatus.SHIPPED),  # backward
            (ShipmentStatus.DELIVERED, ShipmentStatus.CREATED),  # out of terminal
            (ShipmentStatus.DELIVERED, ShipmentStatus.DELIVERED),
        ],
    )
    def test_rejected_and_status_unchanged(self, start, target):
        shipment = _shipment_at(start)
        with pytest.raises(InvalidShipmentTransition) as exc:
            shipment.advance(target)
        assert shipment.status == start.value
        assert exc.value.details == {"from": start.value, "to": target.value}
        assert len(shipment._events) == 0

    def test_created_to_in_transit_then_shipped_then_shipped_again(self):
        shipment = _shipment_at(ShipmentStatus.CREATED)
        with pytest.raises(InvalidShipmentTransition):
            shipment.advance("InTransit")
        shipment.advance("Shipped")
        with pytest.raises(InvalidShipmentTransition):
            shipment.advance("Shipped")
        assert shipment.status == "Shipped"


class TestStatusParsing:
    @pytest.mark.parametrize("raw", ["In Transit", "in_transit", "InTransit", "IN-TRANSIT", "intransit"])
    def test_in_transit_aliases(self, raw):
        assert ShipmentStatus.parse(raw) == ShipmentStatus.IN_TRANSIT

    def test_case_insensitive(self):
        assert ShipmentStatus.parse("delivered") == ShipmentStatus.DELIVERED

    @pytest.mark.parametrize("raw", ["Lost", "", None])
    def test_unrecognized(self, raw):
        with pytest.raises(UnrecognizedValue):
            ShipmentStatus.parse(raw)
