# src/infrastructure/security/webhook.py

import hashlib
import hmac
import logging

from src.domain.exceptions import InvalidWebhookSignatureError

logger = logging.getLogger(__name__)


def compute_signature(secret: str, payload: bytes) -> str:
    """Hex HMAC-SHA256 of the raw request body."""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_webhook_signature(
    payload: bytes,
    signature: str | None,
    secret: str | None,
) -> None:
    if not signature or not secret:
        logger.warning("Webhook rejected: missing signature or webhook secret")
        raise InvalidWebhookSignatureError("Missing signature or webhook secret")

    expected = compute_signature(secret, payload)
    if not hmac.compare_digest(expected, signature.strip().lower()):
        logger.warning("Webhook rejected: signature mismatch")
        raise InvalidWebhookSignatureError("Invalid webhook signature")
