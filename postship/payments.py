# postship/payments.py
"""
Payment simulator.

Stands in for a card gateway: it hands out payment intents and marks
payments as succeeded without charging anything. It deliberately knows
nothing about the shipment store, so paying never changes a shipment.
"""
import logging
import secrets
import string
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from . import config
from .errors import NotFoundError, ValidationError
from .models import (
    Address,
    PackageDetails,
    PaymentIntent,
    PaymentIntentResponse,
    ProcessPaymentRequest,
    ProcessPaymentResponse,
    Shipment,
)
from .validation import validate

logger = logging.getLogger(__name__)

MOCK_AMOUNT_CENTS = 1149
CURRENCY = "usd"

_ALPHABET = string.ascii_lowercase + string.digits


def generate_payment_intent_id() -> str:
    return "pi_" + "".join(secrets.choice(_ALPHABET) for _ in range(16))


def generate_client_secret(payment_intent_id: str) -> str:
    return f"{payment_intent_id}_secret_" + "".join(secrets.choice(_ALPHABET) for _ in range(8))


class PaymentIntentRegistry:
    """Every intent ever created, by id. Never pruned."""

    def __init__(self):
        self._lock = threading.Lock()
        self._intents: Dict[str, PaymentIntent] = {}

    def new(self, amount: int, status: str) -> PaymentIntent:
        intent_id = generate_payment_intent_id()
        intent = PaymentIntent(
            id=intent_id,
            amount=amount,
            currency=CURRENCY,
            status=status,
            client_secret=generate_client_secret(intent_id),
        )
        with self._lock:
            self._intents[intent.id] = intent
        return intent

    def get(self, intent_id: str) -> Optional[PaymentIntent]:
        with self._lock:
            return self._intents.get(intent_id)


def create_intent(registry: PaymentIntentRegistry, shipment_id: Optional[str]) -> PaymentIntentResponse:
    if not shipment_id:
        raise ValidationError("Shipment ID is required")

    # fixed amount; the shipment's real total is not looked up
    intent = registry.new(MOCK_AMOUNT_CENTS, "requires_payment_method")
    logger.info("Created payment intent %s for shipment %s", intent.id, shipment_id)
    return PaymentIntentResponse(payment_intent=intent, publishable_key=config.PAYMENT_PUBLISHABLE_KEY)


def _mock_shipment(shipment_id: str) -> Shipment:
    now = datetime.now(timezone.utc)
    return Shipment(
        id=shipment_id,
        tracking_number="PS123456789",
        status="processing",
        sender=Address(name="Mock Sender", address="123 Main St", city="Boston", zip_code="02101"),
        recipient=Address(name="Mock Recipient", address="456 Oak Ave", city="New York", zip_code="10001"),
        package=PackageDetails(
            type="small-box", weight=2.5, dimensions="8x6x4", description="Books", declared_value=50,
        ),
        service_type="express",
        shipping_cost=15.99,
        insurance_cost=2.50,
        total_cost=18.49,
        created_at=now,
        updated_at=now,
    )


def process_payment(registry: PaymentIntentRegistry, payload: Any) -> ProcessPaymentResponse:
    request = validate(ProcessPaymentRequest, payload)

    # every payment succeeds; the shipment in the response is a stand-in
    intent = registry.new(request.amount, "succeeded")
    logger.info("Payment %s of %d cents accepted for shipment %s via %s",
                intent.id, request.amount, request.shipment_id, request.payment_method_id)
    return ProcessPaymentResponse(
        success=True,
        payment_intent=intent,
        shipment=_mock_shipment(request.shipment_id),
    )


def get_status(registry: PaymentIntentRegistry, payment_intent_id: Optional[str]) -> PaymentIntentResponse:
    if not payment_intent_id:
        raise ValidationError("Payment intent ID is required")
    intent = registry.get(payment_intent_id)
    if intent is None:
        raise NotFoundError("Payment intent not found")
    return PaymentIntentResponse(payment_intent=intent)
