# postship/models.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SHIPMENT_STATUSES = (
    "draft",
    "processing",
    "shipped",
    "in_transit",
    "out_for_delivery",
    "delivered",
    "failed",
    "returned",
)
PACKAGE_TYPES = ("envelope", "small-box", "medium-box", "large-box", "tube", "custom")
SERVICE_TYPES = ("standard", "express", "overnight")
PAYMENT_STATUSES = ("requires_payment_method", "requires_confirmation", "succeeded", "failed")


def _one_of(values) -> str:
    return "^(" + "|".join(values) + ")$"


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Shipments

class Address(CamelModel):
    name: str = Field(min_length=1)
    address: str = Field(min_length=1)  # street
    city: str = Field(min_length=1)
    state: Optional[str] = None
    zip_code: str = Field(min_length=5)
    country: Optional[str] = None
    phone: Optional[str] = None


class PackageDetails(CamelModel):
    type: str = Field(pattern=_one_of(PACKAGE_TYPES))
    # body values must already be JSON numbers/booleans, no coercion from text
    weight: float = Field(gt=0, strict=True, allow_inf_nan=False)  # pounds
    dimensions: str = Field(min_length=1)  # "L x W x H"
    description: str = Field(min_length=1)
    declared_value: float = Field(ge=0, strict=True, allow_inf_nan=False)  # USD


class CreateShipmentRequest(CamelModel):
    sender: Address
    recipient: Address
    package: PackageDetails
    service_type: str = Field(pattern=_one_of(SERVICE_TYPES))
    insurance: Optional[bool] = Field(default=None, strict=True)
    signature_required: Optional[bool] = Field(default=None, strict=True)
    special_instructions: Optional[str] = None


class Shipment(CamelModel):
    id: str
    tracking_number: str
    status: str = Field(default="draft", pattern=_one_of(SHIPMENT_STATUSES))
    sender: Address
    recipient: Address
    package: PackageDetails
    service_type: str
    shipping_cost: float
    insurance_cost: Optional[float] = None
    total_cost: float
    created_at: datetime
    updated_at: datetime
    estimated_delivery: Optional[datetime] = None
    actual_delivery: Optional[datetime] = None
    barcode: Optional[str] = None  # data: URI
    special_instructions: Optional[str] = None


class TrackingEvent(CamelModel):
    id: str
    shipment_id: str
    status: str = Field(pattern=_one_of(SHIPMENT_STATUSES))
    location: str
    description: str
    timestamp: datetime
    facility_name: Optional[str] = None
    next_location: Optional[str] = None


class CreateShipmentResponse(CamelModel):
    shipment: Shipment
    tracking_events: List[TrackingEvent]
    payment_url: Optional[str] = None
    barcode: str


class TrackShipmentResponse(CamelModel):
    shipment: Shipment
    tracking_events: List[TrackingEvent]
    estimated_delivery: Optional[datetime] = None


class ShipmentList(CamelModel):
    shipments: List[Shipment]


# Rates

class RateQuery(CamelModel):
    # zip codes are checked but do not influence the price
    sender_zip: str = Field(min_length=5)
    recipient_zip: str = Field(min_length=5)
    package_type: str = Field(pattern=_one_of(PACKAGE_TYPES))
    weight: float = Field(gt=0, allow_inf_nan=False)
    dimensions: str
    declared_value: float = Field(ge=0, allow_inf_nan=False)


class ShippingRate(CamelModel):
    service_type: str
    cost: float
    estimated_days: int
    description: str


class RatesResponse(CamelModel):
    rates: List[ShippingRate]


# Payments

class PaymentIntent(CamelModel):
    id: str
    amount: int  # cents
    currency: str = "usd"
    status: str = Field(pattern=_one_of(PAYMENT_STATUSES))
    client_secret: str


class PaymentIntentResponse(CamelModel):
    payment_intent: PaymentIntent
    publishable_key: Optional[str] = None


class ProcessPaymentRequest(CamelModel):
    shipment_id: str
    payment_method_id: str
    amount: int = Field(ge=0, strict=True)  # cents


class ProcessPaymentResponse(CamelModel):
    success: bool
    payment_intent: PaymentIntent
    shipment: Shipment


class PingResponse(BaseModel):
    message: str
