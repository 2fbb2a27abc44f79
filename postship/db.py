# postship/db.py
from contextlib import contextmanager
from typing import Optional

from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from . import config

SCHEMA = """
CREATE TABLE IF NOT EXISTS shipments (
    id               TEXT PRIMARY KEY,
    tracking_number  TEXT NOT NULL UNIQUE,
    status           TEXT NOT NULL,
    service_type     TEXT NOT NULL,
    shipping_cost    NUMERIC(10, 2) NOT NULL,
    insurance_cost   NUMERIC(10, 2),
    total_cost       NUMERIC(10, 2) NOT NULL,
    created_at       TIMESTAMPTZ NOT NULL,
    updated_at       TIMESTAMPTZ NOT NULL,
    document         JSONB NOT NULL
);
CREATE INDEX IF NOT EXISTS shipments_status_idx ON shipments (status);
CREATE INDEX IF NOT EXISTS shipments_created_at_idx ON shipments (created_at);

CREATE TABLE IF NOT EXISTS tracking_events (
    id           TEXT PRIMARY KEY,
    shipment_id  TEXT NOT NULL REFERENCES shipments (id),
    status       TEXT NOT NULL,
    "timestamp"  TIMESTAMPTZ NOT NULL,
    document     JSONB NOT NULL
);
CREATE INDEX IF NOT EXISTS tracking_events_shipment_idx ON tracking_events (shipment_id, "timestamp");
"""

_pool: Optional[ConnectionPool] = None


def get_pool() -> ConnectionPool:
    global _pool
    if _pool is None:
        _pool = ConnectionPool(
            conninfo=config.DATABASE_URL,
            min_size=config.POOL_MIN,
            max_size=config.POOL_MAX,
            kwargs={"autocommit": False},  # transactions are managed by the callers
            open=True,
        )
    return _pool


def close_pool():
    global _pool
    if _pool is not None:
        _pool.close()
        _pool = None


@contextmanager
def get_conn(pool: Optional[ConnectionPool] = None):
    with (pool or get_pool()).connection() as conn:
        yield conn


def fetch_all(conn, sql, params=None):
    with conn.cursor(row_factory=dict_row) as cur:
        cur.execute(sql, params or ())
        return cur.fetchall()


def fetch_one(conn, sql, params=None):
    with conn.cursor(row_factory=dict_row) as cur:
        cur.execute(sql, params or ())
        return cur.fetchone()


def execute(conn, sql, params=None):
    with conn.cursor() as cur:
        cur.execute(sql, params or ())


def ensure_schema(pool: Optional[ConnectionPool] = None):
    with get_conn(pool) as conn:
        try:
            # several statements: must go through the simple query protocol, i.e. no params
            with conn.cursor() as cur:
                cur.execute(SCHEMA)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
