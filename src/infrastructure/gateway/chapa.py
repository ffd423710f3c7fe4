# src/infrastructure/gateway/chapa.py

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from src.domain.exceptions import GatewayError

logger = logging.getLogger(__name__)


@dataclass
class CheckoutRequest:
    amount: float
    currency: str
    email: str
    tx_ref: str
    callback_url: str
    return_url: str
    split: dict
    first_name: str = ""
    last_name: str = ""
    phone_number: str = ""
    title: str = ""
    description: str = ""

    def to_payload(self) -> dict:
        return {
            "amount": str(self.amount),
            "currency": self.currency,
            "email": self.email,
            "tx_ref": self.tx_ref,
            "callback_url": self.callback_url,
            "return_url": self.return_url,
            "split": self.split,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone_number": self.phone_number,
            "title": self.title,
            "description": self.description,
        }


@dataclass
class CheckoutSession:
    checkout_url: str


@dataclass
class TransactionVerification:
    status: Any
    data: Any = field(default=None)


class PaymentGateway(Protocol):
    def initialize_transaction(self, request: CheckoutRequest) -> CheckoutSession: ...

    def verify_transaction(self, tx_ref: str) -> TransactionVerification: ...


class ChapaGateway:
    """Hosted checkout and verification against the Chapa REST API."""

    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.chapa.co/v1",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={"Authorization": f"Bearer {secret_key}"},
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def initialize_transaction(self, request: CheckoutRequest) -> CheckoutSession:
        body = self._request("POST", "/transaction/initialize", json=request.to_payload())
        data = body.get("data")
        checkout_url = data.get("checkout_url") if isinstance(data, dict) else None
        if not checkout_url or not isinstance(checkout_url, str):
            raise GatewayError("Gateway response did not include a checkout URL")
        return CheckoutSession(checkout_url=checkout_url)

    def verify_transaction(self, tx_ref: str) -> TransactionVerification:
        # The reference must stay a single path segment of the verify endpoint.
        if not tx_ref or not tx_ref.strip("."):
            raise GatewayError("Invalid transaction reference")
        body = self._request("GET", f"/transaction/verify/{quote(tx_ref, safe='')}")
        return TransactionVerification(status=body.get("status"), data=body.get("data"))

    def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Chapa %s %s failed: %s", method, path, exc)
            raise GatewayError(f"Gateway request failed: {exc}") from exc

        if response.status_code >= 400:
            logger.error(
                "Chapa %s %s returned %s: %s",
                method,
                path,
                response.status_code,
                response.text,
            )
            raise GatewayError(f"Gateway returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            raise GatewayError("Gateway returned a non-JSON body") from exc
        if not isinstance(body, dict):
            logger.error("Chapa %s %s returned a %s body", method, path, type(body).__name__)
            raise GatewayError("Gateway returned an unexpected response shape")
        return body
