# postship/shipments.py
"""
Shipment lifecycle: registration, tracking, listing and rate quotes.

New shipments start in "processing" and get a synthesized tracking history
so the tracking page has something to show. Status is a flat enum; nothing
here restricts which status may follow which.
"""
import base64
import logging
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional
from xml.sax.saxutils import escape

from . import config
from .errors import NotFoundError, ValidationError
from .models import (
    CreateShipmentRequest,
    CreateShipmentResponse,
    RateQuery,
    RatesResponse,
    Shipment,
    ShipmentList,
    TrackingEvent,
    TrackShipmentResponse,
)
from .rates import DELIVERY_DAYS, INSURANCE_COST, calculate_shipping_cost, quote_rates, to_cents
from .store import ShipmentStore
from .validation import validate

logger = logging.getLogger(__name__)

ID_LENGTH = 9
TRACKING_SUFFIX_LENGTH = 9

# (status, location, description, hours before registration), oldest first
INITIAL_HISTORY = (
    ("processing", "Origin Facility", "Package received and processing", 24),
    ("shipped", "Origin Distribution Center", "Package departed from origin facility", 18),
    ("in_transit", "Transit Hub", "Package in transit to destination", 12),
)

BARCODE_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="200" height="50">'
    '<rect width="200" height="50" fill="white"/>'
    '<text x="100" y="30" text-anchor="middle" font-family="monospace" font-size="14">{text}</text>'
    '</svg>'
)


def _random_string(alphabet: str, length: int) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_id() -> str:
    return _random_string(string.ascii_lowercase + string.digits, ID_LENGTH)


def generate_tracking_number(prefix: Optional[str] = None) -> str:
    if prefix is None:
        prefix = config.TRACKING_NUMBER_PREFIX
    return prefix + _random_string(string.ascii_uppercase + string.digits, TRACKING_SUFFIX_LENGTH)


def render_barcode(tracking_number: str) -> str:
    """Label placeholder: an SVG data URI with the tracking number as plain text."""
    svg = BARCODE_SVG.format(text=escape(tracking_number))
    return "data:image/svg+xml;base64," + base64.b64encode(svg.encode("utf-8")).decode("ascii")


def initial_tracking_events(shipment_id: str, now: datetime) -> List[TrackingEvent]:
    events = [
        TrackingEvent(
            id=generate_id(),
            shipment_id=shipment_id,
            status=status,
            location=location,
            description=description,
            timestamp=now - timedelta(hours=hours_ago),
        )
        for status, location, description, hours_ago in INITIAL_HISTORY
    ]
    events.reverse()  # most recent first
    return events


def create_shipment(store: ShipmentStore, payload: Any, now: Optional[datetime] = None) -> CreateShipmentResponse:
    request = validate(CreateShipmentRequest, payload)
    now = now or datetime.now(timezone.utc)

    shipment_id = generate_id()
    tracking_number = generate_tracking_number()

    shipping_cost = calculate_shipping_cost(request.service_type, request.package.weight)
    insurance_cost = INSURANCE_COST if request.insurance else None
    total_cost = to_cents(shipping_cost + (insurance_cost or 0))

    barcode = render_barcode(tracking_number)
    shipment = Shipment(
        id=shipment_id,
        tracking_number=tracking_number,
        status="processing",
        sender=request.sender,
        recipient=request.recipient,
        package=request.package,
        service_type=request.service_type,
        shipping_cost=shipping_cost,
        insurance_cost=insurance_cost,
        total_cost=total_cost,
        created_at=now,
        updated_at=now,
        estimated_delivery=now + timedelta(days=DELIVERY_DAYS[request.service_type]),
        barcode=barcode,
        special_instructions=request.special_instructions,
    )
    events = initial_tracking_events(shipment_id, now)

    store.insert(shipment, events)
    logger.info("Registered shipment %s (%s, %s, total %.2f)",
                shipment_id, tracking_number, request.service_type, total_cost)

    return CreateShipmentResponse(
        shipment=shipment,
        tracking_events=events,
        barcode=barcode,
        payment_url=f"/api/payment/create?shipmentId={shipment_id}",
    )


def track_shipment(store: ShipmentStore, tracking_number: Optional[str]) -> TrackShipmentResponse:
    if not tracking_number:
        raise ValidationError("Tracking number is required")

    shipment = store.get_by_tracking_number(tracking_number)
    if shipment is None:
        raise NotFoundError("Shipment not found")

    return TrackShipmentResponse(
        shipment=shipment,
        tracking_events=store.get_events(shipment.id),
        estimated_delivery=shipment.estimated_delivery,
    )


def list_shipments(store: ShipmentStore) -> ShipmentList:
    return ShipmentList(shipments=store.list_all())


def get_rates(params: Any) -> RatesResponse:
    """Quote all service tiers; `params` may hold the raw query-string values."""
    query = validate(RateQuery, params)
    return RatesResponse(rates=quote_rates(query))
