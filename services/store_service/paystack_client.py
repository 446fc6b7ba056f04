"""
Paystack API client for hosted checkout payments.

Provides async methods for:
- Initializing a transaction (hosted payment page)
- Verifying a transaction by reference
- Verifying webhook signatures
"""

import hashlib
import hmac
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import httpx
from libs.common.config import Settings
from libs.common.datetime_utils import parse_iso
from libs.common.logging import get_logger

logger = get_logger(__name__)

# Gateway statuses that mean the customer will not pay for this reference.
FAILED_PAYMENT_STATUSES = frozenset({"failed", "abandoned", "reversed"})


@dataclass
class PaymentInitialization:
    """Result of initializing a hosted checkout."""

    authorization_url: str
    access_code: str
    reference: str


@dataclass
class PaymentVerification:
    """Transaction state as reported by Paystack."""

    status: str  # success, failed, abandoned, reversed, ongoing, pending
    reference: str
    amount: int  # in pesewas
    currency: str = "GHS"
    paid_at: Optional[datetime] = None
    customer_email: Optional[str] = None
    raw: dict = field(default_factory=dict, repr=False)

    @property
    def is_success(self) -> bool:
        return self.status == "success"

    @property
    def is_failure(self) -> bool:
        return self.status in FAILED_PAYMENT_STATUSES


class PaystackError(Exception):
    """Base exception for Paystack API errors."""

    def __init__(
        self, message: str, status_code: int = None, response_data: dict = None
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message)

    @property
    def is_reference_not_found(self) -> bool:
        """
        True only when Paystack itself answered that the reference does not
        exist. Transport failures and 5xx responses carry no such answer.
        """
        if self.status_code not in (400, 404) or not self.response_data:
            return False
        if self.status_code == 404:
            return True
        return "not found" in str(self.response_data.get("message", "")).lower()


class PaystackClient:
    """Async client for the Paystack Transaction API."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret_key = settings.PAYSTACK_SECRET_KEY
        self.base_url = settings.PAYSTACK_BASE_URL.rstrip("/")
        self.callback_url = settings.PAYSTACK_CALLBACK_URL
        self._transport = transport
        self._headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict = None,
        json_data: dict = None,
    ) -> dict:
        """Make an async request to Paystack API."""
        if not self.secret_key:
            raise PaystackError("Paystack is not configured")

        url = f"{self.base_url}{endpoint}"

        try:
            async with httpx.AsyncClient(
                timeout=30.0, transport=self._transport
            ) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=self._headers,
                    params=params,
                    json=json_data,
                )
        except httpx.HTTPError as e:
            logger.error("Paystack request to %s failed: %s", endpoint, e)
            raise PaystackError(f"Paystack request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.is_success:
            logger.error(
                "Paystack API error: %s - %s", response.status_code, data
            )
            raise PaystackError(
                message=data.get("message", "Unknown Paystack error"),
                status_code=response.status_code,
                response_data=data,
            )

        if not data.get("status"):
            raise PaystackError(
                message=data.get("message", "Paystack request failed"),
                status_code=response.status_code,
                response_data=data,
            )

        return data

    # =========================================================================
    # Transaction Methods
    # =========================================================================

    async def initialize_payment(
        self,
        email: str,
        amount_minor_units: int,
        reference: str,
        metadata: Optional[dict] = None,
        callback_url: Optional[str] = None,
    ) -> PaymentInitialization:
        """
        Start a hosted checkout for an order.

        Args:
            email: Customer email (required by Paystack)
            amount_minor_units: Amount in pesewas (cedis * 100)
            reference: Our payment reference, reused as the Paystack reference
            metadata: Extra data echoed back on verification and webhooks
            callback_url: Where Paystack redirects after payment

        Returns:
            PaymentInitialization with the authorization_url to redirect to
        """
        if not isinstance(amount_minor_units, int) or isinstance(
            amount_minor_units, bool
        ):
            raise TypeError("amount_minor_units must be an integer")

        payload = {
            "email": email,
            "amount": amount_minor_units,
            "reference": reference,
            "metadata": metadata or {},
        }
        callback = callback_url or self.callback_url
        if callback:
            payload["callback_url"] = callback

        data = await self._request("POST", "/transaction/initialize", json_data=payload)

        tx = data.get("data") or {}
        return PaymentInitialization(
            authorization_url=tx.get("authorization_url", ""),
            access_code=tx.get("access_code", ""),
            reference=tx.get("reference", reference),
        )

    async def verify_payment(self, reference: str) -> PaymentVerification:
        """
        Look up the current state of a transaction by reference.
        """
        data = await self._request("GET", f"/transaction/verify/{reference}")

        tx = data.get("data") or {}
        customer = tx.get("customer") or {}
        return PaymentVerification(
            status=tx.get("status", "pending"),
            reference=tx.get("reference", reference),
            amount=int(tx.get("amount") or 0),
            currency=tx.get("currency", "GHS"),
            paid_at=parse_iso(tx.get("paid_at") or tx.get("paidAt")),
            customer_email=customer.get("email"),
            raw=tx,
        )

    # =========================================================================
    # Webhooks
    # =========================================================================

    def verify_webhook_signature(self, raw_body: bytes, signature: Optional[str]) -> bool:
        """
        Check the x-paystack-signature header: HMAC-SHA512 of the raw body
        keyed with the secret key, hex encoded.
        """
        if not signature or not self.secret_key:
            return False
        computed = hmac.new(
            self.secret_key.encode("utf-8"), raw_body, hashlib.sha512
        ).hexdigest()
        return hmac.compare_digest(computed, signature)
