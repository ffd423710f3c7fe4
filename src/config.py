# src/config.py

import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Public URLs used to build gateway callback and return links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:8000")

# Chapa gateway
CHAPA_BASE_URL = os.getenv("CHAPA_BASE_URL", "https://api.chapa.co/v1")
CHAPA_TIMEOUT_SECONDS = float(os.getenv("CHAPA_TIMEOUT_SECONDS", "30"))
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "ETB")

# SMTP
EMAIL_HOST = os.getenv("EMAIL_HOST", "smtp.gmail.com")
EMAIL_PORT = int(os.getenv("EMAIL_PORT", "465"))
EMAIL_SECURE = os.getenv("EMAIL_SECURE", "true").lower() == "true"
EMAIL_USER = os.getenv("EMAIL_USER")
EMAIL_PASSWORD = os.getenv("EMAIL_PASSWORD")
EMAIL_FROM = os.getenv("EMAIL_FROM", '"Wedding Planner" <noreply@weddingplanner.com>')
EMAIL_TIMEOUT_SECONDS = float(os.getenv("EMAIL_TIMEOUT_SECONDS", "30"))

# Notification outbox worker
OUTBOX_MAX_ATTEMPTS = int(os.getenv("OUTBOX_MAX_ATTEMPTS", "5"))
OUTBOX_POLL_INTERVAL = float(os.getenv("OUTBOX_POLL_INTERVAL", "5"))
OUTBOX_BATCH_SIZE = int(os.getenv("OUTBOX_BATCH_SIZE", "50"))

JWT_ALGORITHM = "HS256"


# Secrets are read per call so rotated values apply without a restart.
def chapa_secret_key() -> str | None:
    return os.getenv("CHAPA_SECRET_KEY")


def chapa_webhook_secret() -> str | None:
    return os.getenv("CHAPA_WEBHOOK_SECRET")


def chapa_admin_subaccount_id() -> str | None:
    return os.getenv("CHAPA_ADMIN_SUBACCOUNT_ID")


def jwt_secret() -> str | None:
    return os.getenv("JWT_SECRET")
