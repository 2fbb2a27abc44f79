# postship/store.py
"""
Shipment storage.

Handlers only talk to the `ShipmentStore` interface. Two backends exist:

- `InMemoryShipmentStore` keeps everything in two dicts for the life of the
  process. FastAPI runs sync endpoints on a thread pool, so every operation
  takes the store lock.
- `PostgresShipmentStore` persists the same records through the psycopg
  pool in `postship.db`.

A shipment and its tracking history are always written together. There is
no update or delete.
"""
import abc
import logging
import threading
from typing import Dict, List, Optional, Sequence

from psycopg import errors as pg_errors
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from .db import execute, fetch_all, fetch_one, get_conn
from .models import Shipment, TrackingEvent

logger = logging.getLogger(__name__)


class DuplicateShipmentError(Exception):
    """A shipment with the same id or tracking number is already stored."""


class ShipmentStore(abc.ABC):

    @abc.abstractmethod
    def insert(self, shipment: Shipment, events: Sequence[TrackingEvent]) -> None:
        """Store a new shipment with its history (most recent event first)."""

    @abc.abstractmethod
    def get(self, shipment_id: str) -> Optional[Shipment]:
        ...

    @abc.abstractmethod
    def get_by_tracking_number(self, tracking_number: str) -> Optional[Shipment]:
        ...

    @abc.abstractmethod
    def get_events(self, shipment_id: str) -> List[TrackingEvent]:
        """Tracking history, most recent first. Empty for unknown ids."""

    @abc.abstractmethod
    def list_all(self) -> List[Shipment]:
        ...


class InMemoryShipmentStore(ShipmentStore):

    def __init__(self):
        self._lock = threading.Lock()
        self._shipments: Dict[str, Shipment] = {}
        self._events: Dict[str, List[TrackingEvent]] = {}

    def insert(self, shipment, events):
        with self._lock:
            if shipment.id in self._shipments:
                raise DuplicateShipmentError(f"shipment id {shipment.id} already exists")
            if any(s.tracking_number == shipment.tracking_number for s in self._shipments.values()):
                raise DuplicateShipmentError(f"tracking number {shipment.tracking_number} already exists")
            self._shipments[shipment.id] = shipment
            self._events[shipment.id] = list(events)

    def get(self, shipment_id):
        with self._lock:
            return self._shipments.get(shipment_id)

    def get_by_tracking_number(self, tracking_number):
        with self._lock:
            for shipment in self._shipments.values():
                if shipment.tracking_number == tracking_number:
                    return shipment
        return None

    def get_events(self, shipment_id):
        with self._lock:
            return list(self._events.get(shipment_id, []))

    def list_all(self):
        with self._lock:
            return list(self._shipments.values())

    def __len__(self):
        with self._lock:
            return len(self._shipments)


def _document(model) -> Jsonb:
    return Jsonb(model.model_dump(mode="json", by_alias=True, exclude_none=True))


class PostgresShipmentStore(ShipmentStore):
    """Shipments as JSONB documents with the queried fields broken out into columns."""

    def __init__(self, pool: Optional[ConnectionPool] = None):
        self.pool = pool

    def insert(self, shipment, events):
        with get_conn(self.pool) as conn:
            try:
                execute(conn, """
                    INSERT INTO shipments(id, tracking_number, status, service_type, shipping_cost,
                                          insurance_cost, total_cost, created_at, updated_at, document)
                    VALUES (%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """, (shipment.id, shipment.tracking_number, shipment.status, shipment.service_type,
                      shipment.shipping_cost, shipment.insurance_cost, shipment.total_cost,
                      shipment.created_at, shipment.updated_at, _document(shipment)))
                for event in events:
                    execute(conn, """
                        INSERT INTO tracking_events(id, shipment_id, status, "timestamp", document)
                        VALUES (%s,%s,%s,%s,%s)
                    """, (event.id, shipment.id, event.status, event.timestamp, _document(event)))
                conn.commit()
            except pg_errors.UniqueViolation as e:
                conn.rollback()
                raise DuplicateShipmentError(str(e)) from e
            except Exception:
                conn.rollback()
                raise
        logger.debug("Stored shipment %s with %d event(s)", shipment.id, len(events))

    def get(self, shipment_id):
        with get_conn(self.pool) as conn:
            row = fetch_one(conn, "SELECT document FROM shipments WHERE id=%s", (shipment_id,))
        return Shipment.model_validate(row["document"]) if row else None

    def get_by_tracking_number(self, tracking_number):
        with get_conn(self.pool) as conn:
            row = fetch_one(conn, "SELECT document FROM shipments WHERE tracking_number=%s", (tracking_number,))
        return Shipment.model_validate(row["document"]) if row else None

    def get_events(self, shipment_id):
        with get_conn(self.pool) as conn:
            rows = fetch_all(conn, """
                SELECT document FROM tracking_events
                WHERE shipment_id=%s
                ORDER BY "timestamp" DESC
            """, (shipment_id,))
        return [TrackingEvent.model_validate(r["document"]) for r in rows]

    def list_all(self):
        with get_conn(self.pool) as conn:
            rows = fetch_all(conn, "SELECT document FROM shipments ORDER BY created_at, id")
        return [Shipment.model_validate(r["document"]) for r in rows]
