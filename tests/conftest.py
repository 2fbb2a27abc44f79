import copy

import pytest
from fastapi.testclient import TestClient

from postship.app import create_app
from postship.payments import PaymentIntentRegistry
from postship.store import InMemoryShipmentStore

SHIPMENT_PAYLOAD = {
    "sender": {
        "name": "Ada Sender",
        "address": "123 Main St",
        "city": "Boston",
        "state": "MA",
        "zipCode": "02101",
        "country": "US",
        "phone": "555-0100",
    },
    "recipient": {
        "name": "Grace Recipient",
        "address": "456 Oak Ave",
        "city": "New York",
        "zipCode": "10001",
    },
    "package": {
        "type": "small-box",
        "weight": 2.5,
        "dimensions": "8x6x4",
        "description": "Books",
        "declaredValue": 50,
    },
    "serviceType": "express",
}


def make_payload(**overrides):
    payload = copy.deepcopy(SHIPMENT_PAYLOAD)
    payload.update(overrides)
    return payload


@pytest.fixture()
def payload():
    return make_payload()


@pytest.fixture()
def store():
    return InMemoryShipmentStore()


@pytest.fixture()
def registry():
    return PaymentIntentRegistry()


@pytest.fixture()
def client(store, registry):
    app = create_app(store=store, payment_registry=registry)
    return TestClient(app)
