# postship/app.py
import logging
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config, payments, shipments
from .db import close_pool, ensure_schema
from .errors import InternalError, PostShipError, ValidationError
from .models import (
    CreateShipmentRequest,
    CreateShipmentResponse,
    PaymentIntentResponse,
    PingResponse,
    ProcessPaymentRequest,
    ProcessPaymentResponse,
    RatesResponse,
    ShipmentList,
    TrackShipmentResponse,
)
from .payments import PaymentIntentRegistry
from .store import InMemoryShipmentStore, PostgresShipmentStore, ShipmentStore
from .validation import format_errors

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("postship")


# Error handlers

def _error_response(exc: PostShipError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def postship_error_handler(request: Request, exc: PostShipError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error_response(exc)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # routing errors (unknown path, wrong method) in the same body shape as ours
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)},
                        headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = format_errors(exc.errors(), strip_location=True)
    logger.info("Rejected %s %s: %d invalid field(s)", request.method, request.url.path, len(details))
    return _error_response(ValidationError(details=details))


async def unhandled_error_handler(request: Request, exc: Exception):
    # the traceback goes to the log, never to the caller
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(InternalError())


# Dependencies

def get_store(request: Request) -> ShipmentStore:
    return request.app.state.store


def get_payments(request: Request) -> PaymentIntentRegistry:
    return request.app.state.payments


def create_app(store: Optional[ShipmentStore] = None,
               payment_registry: Optional[PaymentIntentRegistry] = None) -> FastAPI:
    if store is None:
        store = PostgresShipmentStore() if config.DATABASE_URL else InMemoryShipmentStore()

    app = FastAPI(title=config.APP_TITLE, version="0.1.0")
    app.state.store = store
    app.state.payments = payment_registry or PaymentIntentRegistry()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(PostShipError, postship_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.on_event("startup")
    def startup():
        if isinstance(app.state.store, PostgresShipmentStore):
            ensure_schema(app.state.store.pool)
        logger.info("Using %s", type(app.state.store).__name__)

    @app.on_event("shutdown")
    def shutdown():
        if isinstance(app.state.store, PostgresShipmentStore):
            close_pool()

    # Health

    @app.get("/api/ping", response_model=PingResponse)
    def ping():
        return {"message": "PostShip API is running!"}

    # Shipments

    @app.post("/api/shipments", response_model=CreateShipmentResponse, response_model_exclude_none=True)
    def create_shipment(body: CreateShipmentRequest, store: ShipmentStore = Depends(get_store)):
        return shipments.create_shipment(store, body)

    @app.get("/api/shipments", response_model=ShipmentList, response_model_exclude_none=True)
    def list_shipments(store: ShipmentStore = Depends(get_store)):
        return shipments.list_shipments(store)

    @app.get("/api/shipments/rates", response_model=RatesResponse)
    def get_rates(request: Request):
        # numbers arrive as query-string text and are coerced during validation
        return shipments.get_rates(dict(request.query_params))

    @app.get("/api/shipments/track/")
    def track_shipment_missing_number():
        raise ValidationError("Tracking number is required")

    @app.get("/api/shipments/track/{tracking_number}", response_model=TrackShipmentResponse,
             response_model_exclude_none=True)
    def track_shipment(tracking_number: str, store: ShipmentStore = Depends(get_store)):
        return shipments.track_shipment(store, tracking_number)

    # Payments (simulated, independent of the shipment store)

    @app.get("/api/payment/create", response_model=PaymentIntentResponse)
    def create_payment_intent(shipment_id: Optional[str] = Query(None, alias="shipmentId"),
                              registry: PaymentIntentRegistry = Depends(get_payments)):
        return payments.create_intent(registry, shipment_id)

    @app.post("/api/payment/process", response_model=ProcessPaymentResponse, response_model_exclude_none=True)
    def process_payment(body: ProcessPaymentRequest, registry: PaymentIntentRegistry = Depends(get_payments)):
        return payments.process_payment(registry, body)

    @app.get("/api/payment/{payment_intent_id}", response_model=PaymentIntentResponse,
             response_model_exclude_none=True)
    def get_payment_status(payment_intent_id: str, registry: PaymentIntentRegistry = Depends(get_payments)):
        return payments.get_status(registry, payment_intent_id)

    return app


app = create_app()
