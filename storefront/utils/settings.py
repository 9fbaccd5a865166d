# storefront/utils/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./storefront.db")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", REDIS_URL)
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/2")

# PostgREST-compatible backend (catalog, profiles, orders)
REMOTE_STORE_URL = os.getenv("REMOTE_STORE_URL", "http://localhost:54321/rest/v1")
REMOTE_STORE_API_KEY = os.getenv("REMOTE_STORE_API_KEY", "")
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", 5))

CART_STORAGE_BACKEND = os.getenv("CART_STORAGE_BACKEND", "sql")  # sql | redis
CART_STORAGE_KEY = os.getenv("CART_STORAGE_KEY", "cart")

RECONCILE_INTERVAL_SECONDS = int(os.getenv("RECONCILE_INTERVAL_SECONDS", 5*60))
RECONCILE_MAX_ATTEMPTS = int(os.getenv("RECONCILE_MAX_ATTEMPTS", 10))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
