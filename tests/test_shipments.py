"""Tests for the shipment lifecycle handlers."""

import base64
import re
from datetime import datetime, timedelta, timezone

import pytest

from postship import shipments
from postship.errors import NotFoundError, ValidationError

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
TRACKING_NUMBER = re.compile(r"^PS[A-Z0-9]{9}$")


class TestIdentifiers:
    def test_tracking_number_format(self):
        assert TRACKING_NUMBER.match(shipments.generate_tracking_number())

    def test_tracking_number_prefix(self):
        assert shipments.generate_tracking_number(prefix="XX").startswith("XX")

    def test_tracking_numbers_are_unique(self):
        numbers = {shipments.generate_tracking_number() for _ in range(10_000)}
        assert len(numbers) == 10_000
        assert all(n and n.isalnum() and n == n.upper() for n in numbers)

    def test_id_format(self):
        assert re.match(r"^[a-z0-9]{9}$", shipments.generate_id())

    def test_barcode_embeds_tracking_number(self):
        barcode = shipments.render_barcode("PSABC123XYZ")
        prefix = "data:image/svg+xml;base64,"
        assert barcode.startswith(prefix)
        svg = base64.b64decode(barcode[len(prefix):]).decode("utf-8")
        assert svg.startswith("<svg")
        assert ">PSABC123XYZ</text>" in svg


class TestCreateShipment:
    def test_registers_processing_shipment(self, store, payload):
        result = shipments.create_shipment(store, payload, now=NOW)
        shipment = result.shipment

        assert shipment.status == "processing"
        assert TRACKING_NUMBER.match(shipment.tracking_number)
        assert shipment.created_at == shipment.updated_at == NOW
        assert shipment.sender.city == "Boston"
        assert shipment.package.type == "small-box"
        assert store.get(shipment.id) == shipment

    def test_costs_without_insurance(self, store, payload):
        shipment = shipments.create_shipment(store, payload).shipment
        assert shipment.shipping_cost == 18.99
        assert shipment.insurance_cost is None
        assert shipment.total_cost == shipment.shipping_cost

    @pytest.mark.parametrize("service_type,weight", [
        ("standard", 0.5),
        ("express", 2.5),
        ("overnight", 7.25),
    ])
    def test_costs_with_insurance(self, store, payload, service_type, weight):
        payload["serviceType"] = service_type
        payload["package"]["weight"] = weight
        payload["insurance"] = True

        shipment = shipments.create_shipment(store, payload).shipment

        assert shipment.insurance_cost == 2.50
        assert shipment.total_cost == pytest.approx(shipment.shipping_cost + 2.50)

    def test_insurance_false_adds_nothing(self, store, payload):
        payload["insurance"] = False
        shipment = shipments.create_shipment(store, payload).shipment
        assert shipment.insurance_cost is None
        assert shipment.total_cost == shipment.shipping_cost

    @pytest.mark.parametrize("service_type,days", [("standard", 5), ("express", 2), ("overnight", 1)])
    def test_estimated_delivery(self, store, payload, service_type, days):
        payload["serviceType"] = service_type
        shipment = shipments.create_shipment(store, payload, now=NOW).shipment
        assert shipment.estimated_delivery == NOW + timedelta(days=days)

    def test_initial_history_most_recent_first(self, store, payload):
        result = shipments.create_shipment(store, payload, now=NOW)
        events = result.tracking_events

        assert [e.status for e in events] == ["in_transit", "shipped", "processing"]
        assert [e.timestamp for e in events] == [
            NOW - timedelta(hours=12),
            NOW - timedelta(hours=18),
            NOW - timedelta(hours=24),
        ]
        assert [e.location for e in events] == ["Transit Hub", "Origin Distribution Center", "Origin Facility"]
        assert {e.shipment_id for e in events} == {result.shipment.id}
        assert len({e.id for e in events}) == 3
        assert store.get_events(result.shipment.id) == events

    def test_response_carries_barcode_and_payment_url(self, store, payload):
        result = shipments.create_shipment(store, payload)
        assert result.barcode == result.shipment.barcode
        assert result.payment_url == f"/api/payment/create?shipmentId={result.shipment.id}"

    def test_special_instructions_kept(self, store, payload):
        payload["specialInstructions"] = "Leave at the back door"
        payload["signatureRequired"] = True
        shipment = shipments.create_shipment(store, payload).shipment
        assert shipment.special_instructions == "Leave at the back door"

    def test_invalid_request_stores_nothing(self, store, payload):
        payload["recipient"]["zipCode"] = "1"
        with pytest.raises(ValidationError):
            shipments.create_shipment(store, payload)
        assert store.list_all() == []


class TestTrackShipment:
    def test_track_after_create(self, store, payload):
        created = shipments.create_shipment(store, payload)

        tracked = shipments.track_shipment(store, created.shipment.tracking_number)

        assert tracked.shipment.id == created.shipment.id
        assert tracked.estimated_delivery == created.shipment.estimated_delivery
        assert tracked.tracking_events
        first = tracked.tracking_events[0].timestamp
        assert all(first >= e.timestamp for e in tracked.tracking_events)

    def test_unknown_number(self, store, payload):
        shipments.create_shipment(store, payload)
        with pytest.raises(NotFoundError) as exc_info:
            shipments.track_shipment(store, "PSNOTHERE0")
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Shipment not found"

    @pytest.mark.parametrize("tracking_number", ["", None])
    def test_missing_number(self, store, tracking_number):
        with pytest.raises(ValidationError) as exc_info:
            shipments.track_shipment(store, tracking_number)
        assert exc_info.value.message == "Tracking number is required"


class TestListShipments:
    def test_empty(self, store):
        assert shipments.list_shipments(store).shipments == []

    def test_two_creates(self, store, payload):
        first = shipments.create_shipment(store, payload).shipment
        second = shipments.create_shipment(store, payload).shipment

        listed = shipments.list_shipments(store).shipments

        assert [s.id for s in listed] == [first.id, second.id]
        assert first.id != second.id
        assert first.tracking_number != second.tracking_number


class TestGetRates:
    def test_from_query_strings(self):
        result = shipments.get_rates({
            "senderZip": "02101",
            "recipientZip": "10001",
            "packageType": "small-box",
            "weight": "2.5",
            "dimensions": "8x6x4",
            "declaredValue": "50",
        })
        assert [(r.service_type, r.cost, r.estimated_days) for r in result.rates] == [
            ("standard", 11.50, 5),
            ("express", 18.99, 2),
            ("overnight", 27.99, 1),
        ]

    def test_short_zip_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            shipments.get_rates({
                "senderZip": "021",
                "recipientZip": "10001",
                "packageType": "small-box",
                "weight": "2.5",
                "dimensions": "8x6x4",
                "declaredValue": "50",
            })
        assert [d["path"] for d in exc_info.value.details] == [["senderZip"]]
