"""Paystack payment gateway integration service."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..domain.errors import (
    ConfigurationError,
    GatewayRejected,
    NetworkError,
    ReferenceNotFoundUpstream,
)

logger = logging.getLogger(__name__)

SECRET_KEY_PREFIXES = {"sk_test_": "test", "sk_live_": "live"}


class PaystackService:
    """Calls the Paystack transaction API: initialize and verify only."""

    def __init__(
        self,
        secret_key: Optional[str],
        base_url: str = "https://api.paystack.co",
        timeout_seconds: float = 15.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._secret_key = secret_key.strip() if secret_key else None
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._client = client or httpx.Client(timeout=timeout_seconds)

    @property
    def mode(self) -> Optional[str]:
        """``test`` or ``live`` depending on the secret key, ``None`` if unusable."""
        if not self._secret_key:
            return None
        for prefix, mode in SECRET_KEY_PREFIXES.items():
            if self._secret_key.startswith(prefix):
                return mode
        return None

    def close(self) -> None:
        self._client.close()

    def initialize_transaction(
        self,
        amount: int,
        email: str,
        reference: str,
        callback_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a transaction on Paystack.

        Args:
            amount: Amount in the smallest currency unit
            email: Customer email
            reference: Unique local transaction reference
            callback_url: Optional redirect after payment

        Returns:
            The ``data`` object of the Paystack response, which includes
            ``authorization_url`` and ``access_code``
        """
        body: Dict[str, Any] = {"amount": amount, "email": email, "reference": reference}
        if callback_url:
            body["callback_url"] = callback_url
        payload = self._request("POST", "/transaction/initialize", json=body)
        data = payload["data"]
        if not data.get("authorization_url"):
            raise GatewayRejected("Paystack response is missing the authorization URL.")
        logger.info("Paystack transaction %s initialized", reference)
        return data

    def verify_transaction(self, reference: str) -> Dict[str, Any]:
        """
        Fetch the current state of a transaction from Paystack.

        Returns:
            The ``data`` object of the Paystack response; ``data["status"]``
            holds the gateway-side status

        Raises:
            ReferenceNotFoundUpstream: Paystack does not know the reference
        """
        payload = self._request("GET", f"/transaction/verify/{reference}", not_found_is_reference=True)
        logger.info("Paystack transaction %s verified: %s", reference, payload["data"].get("status"))
        return payload["data"]

    def _headers(self) -> Dict[str, str]:
        if not self._secret_key:
            raise ConfigurationError("PAYSTACK_SECRET_KEY is not configured.")
        if self.mode is None:
            raise ConfigurationError("PAYSTACK_SECRET_KEY must start with sk_test_ or sk_live_.")
        return {
            "Authorization": f"Bearer {self._secret_key}",
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        not_found_is_reference: bool = False,
    ) -> Dict[str, Any]:
        headers = self._headers()
        url = f"{self._base_url}{path}"
        try:
            response = self._client.request(method, url, json=json, headers=headers, timeout=self._timeout)
        except httpx.TransportError as exc:
            logger.warning("Paystack %s %s failed: %s", method, path, exc.__class__.__name__)
            raise NetworkError() from exc

        payload = self._parse_body(response)
        if response.status_code == 404 and not_found_is_reference:
            raise ReferenceNotFoundUpstream(upstream_status=404)
        if not response.is_success:
            message = payload.get("message") if payload else None
            logger.warning("Paystack %s %s returned HTTP %s", method, path, response.status_code)
            raise GatewayRejected(
                message or f"Paystack request failed with HTTP {response.status_code}.",
                upstream_status=response.status_code,
            )
        if payload is None:
            raise GatewayRejected("Paystack returned a malformed response.", upstream_status=response.status_code)
        if payload.get("status") is not True or not isinstance(payload.get("data"), dict):
            raise GatewayRejected(
                payload.get("message") or "Paystack did not confirm the request.",
                upstream_status=response.status_code,
            )
        return payload

    @staticmethod
    def _parse_body(response: httpx.Response) -> Optional[Dict[str, Any]]:
        try:
            body = response.json()
        except ValueError:
            return None
        return body if isinstance(body, dict) else None
