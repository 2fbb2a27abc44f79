# postship/config.py
import os

from dotenv import load_dotenv

load_dotenv()

APP_TITLE = os.getenv("APP_TITLE", "PostShip API")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# comma separated; "*" allows any origin
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# unset = in-memory store
DATABASE_URL = os.getenv("DATABASE_URL")
POOL_MIN = int(os.getenv("APP_POOL_MIN", "1"))
POOL_MAX = int(os.getenv("APP_POOL_MAX", "10"))

TRACKING_NUMBER_PREFIX = os.getenv("TRACKING_NUMBER_PREFIX", "PS")
PAYMENT_PUBLISHABLE_KEY = os.getenv("PAYMENT_PUBLISHABLE_KEY", "pk_test_mock_key")
