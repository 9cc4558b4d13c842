"""PayPal REST adapter.

Talks to the Orders v2 API over ``httpx``. Each operation fetches a fresh
OAuth2 client-credentials token first; a failed token exchange is a
``GatewayError`` like any other non-2xx response.

Webhook deliveries are verified locally: PayPal signs
``transmission_id|transmission_time|webhook_id|crc32(body)`` with the
private key behind the certificate named in ``paypal-cert-url``.
"""

import base64
import binascii
import zlib
from collections.abc import Mapping
from datetime import UTC, datetime
from urllib.parse import urlparse

import httpx
import structlog
from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding

from storefront.config import PayPalConfig
from storefront.errors import GatewayError
from storefront.gateway.port import CaptureResult, PaymentGateway, RemoteOrder, RemoteOrderDetails

logger = structlog.get_logger(__name__)

SIGNATURE_ALGORITHM = "SHA256withRSA"

WEBHOOK_HEADERS = (
    "paypal-auth-algo",
    "paypal-transmission-id",
    "paypal-cert-url",
    "paypal-transmission-sig",
    "paypal-transmission-time",
)


def _is_paypal_cert_url(url: str) -> bool:
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    return parsed.scheme == "https" and (host == "paypal.com" or host.endswith(".paypal.com"))


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict):
        return body.get("message") or body.get("error_description") or body.get("name") or str(body)[:200]
    return str(body)[:200]


class PayPalGateway(PaymentGateway):
    """PayPal Orders v2 gateway."""

    def __init__(self, config: PayPalConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._client = client
        self._certificates: dict[str, x509.Certificate] = {}

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # -------------------------------------------------------------------
    # HTTP plumbing
    # -------------------------------------------------------------------
    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self.config.base_url}{path}"
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("paypal_transport_error", method=method, path=path, error=str(exc))
            raise GatewayError(f"PayPal request failed: {exc}") from exc

        if not response.is_success:
            detail = _error_detail(response)
            logger.warning(
                "paypal_request_failed",
                method=method,
                path=path,
                status_code=response.status_code,
                detail=detail,
            )
            raise GatewayError(
                f"PayPal returned {response.status_code}: {detail}",
                upstream_status=response.status_code,
            )
        return response

    async def _access_token(self) -> str:
        if not self.config.has_credentials:
            raise GatewayError("PayPal credentials are not configured")

        response = await self._send(
            "POST",
            "/v1/oauth2/token",
            auth=(self.config.client_id, self.config.client_secret),
            data={"grant_type": "client_credentials"},
            headers={"Accept": "application/json"},
        )
        token = response.json().get("access_token")
        if not token:
            raise GatewayError("PayPal token response carried no access token")
        return token

    async def _call(self, method: str, path: str, json: dict | None = None) -> dict:
        token = await self._access_token()
        response = await self._send(
            method,
            path,
            json=json,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )
        return response.json() if response.content else {}

    # -------------------------------------------------------------------
    # Orders API
    # -------------------------------------------------------------------
    async def create_remote_order(
        self,
        local_order_id: str,
        amount: float,
        currency: str,
        description: str,
    ) -> RemoteOrder:
        body = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "reference_id": str(local_order_id),
                    "description": description[:127],
                    "amount": {"currency_code": currency, "value": f"{amount:.2f}"},
                }
            ],
            "application_context": {
                "return_url": self.config.return_url,
                "cancel_url": self.config.cancel_url,
                "brand_name": self.config.brand_name,
                "landing_page": "LOGIN",
                "user_action": "PAY_NOW",
            },
        }
        data = await self._call("POST", "/v2/checkout/orders", json=body)

        approval_url = next(
            (link.get("href") for link in data.get("links", []) if link.get("rel") in ("approve", "payer-action")),
            None,
        )
        logger.info(
            "paypal_order_created",
            order_id=str(local_order_id),
            remote_order_id=data.get("id"),
            amount=amount,
            currency=currency,
        )
        return RemoteOrder(remote_order_id=data["id"], approval_url=approval_url, status=data.get("status"))

    async def capture_payment(self, remote_order_id: str) -> CaptureResult:
        data = await self._call("POST", f"/v2/checkout/orders/{remote_order_id}/capture")

        captures = []
        for unit in data.get("purchase_units", []):
            captures.extend((unit.get("payments") or {}).get("captures") or [])
        capture = captures[0] if captures else {}
        amount = capture.get("amount") or {}

        result = CaptureResult(
            capture_id=capture.get("id"),
            capture_status=capture.get("status") or data.get("status") or "UNKNOWN",
            captured_amount=float(amount["value"]) if amount.get("value") else None,
            currency=amount.get("currency_code"),
        )
        logger.info(
            "paypal_payment_captured",
            remote_order_id=remote_order_id,
            capture_id=result.capture_id,
            capture_status=result.capture_status,
        )
        return result

    async def get_order_details(self, remote_order_id: str) -> RemoteOrderDetails:
        data = await self._call("GET", f"/v2/checkout/orders/{remote_order_id}")
        return RemoteOrderDetails(remote_order_id=data.get("id", remote_order_id), status=data.get("status"), raw=data)

    # -------------------------------------------------------------------
    # Webhook verification
    # -------------------------------------------------------------------
    async def verify_inbound_authenticity(
        self,
        headers: Mapping[str, str],
        raw_body: bytes,
        expected_webhook_id: str,
    ) -> bool:
        lowered = {k.lower(): v for k, v in headers.items()}
        missing = [name for name in WEBHOOK_HEADERS if not lowered.get(name)]
        if missing:
            logger.warning("paypal_webhook_headers_missing", missing=missing)
            return False

        if not expected_webhook_id:
            logger.error("paypal_webhook_id_not_configured")
            return False

        if lowered["paypal-auth-algo"] != SIGNATURE_ALGORITHM:
            logger.warning("paypal_webhook_unsupported_algorithm", algorithm=lowered["paypal-auth-algo"])
            return False

        cert_url = lowered["paypal-cert-url"]
        if not _is_paypal_cert_url(cert_url):
            logger.warning("paypal_webhook_untrusted_cert_url", cert_url=cert_url)
            return False

        try:
            cert = await self._load_certificate(cert_url)
        except (httpx.HTTPError, GatewayError, ValueError) as exc:
            logger.warning("paypal_webhook_cert_unavailable", cert_url=cert_url, error=str(exc))
            return False

        now = datetime.now(UTC)
        if not (cert.not_valid_before_utc <= now <= cert.not_valid_after_utc):
            logger.warning("paypal_webhook_cert_expired", cert_url=cert_url)
            return False

        crc = zlib.crc32(raw_body) & 0xFFFFFFFF
        message = (
            f"{lowered['paypal-transmission-id']}|{lowered['paypal-transmission-time']}|{expected_webhook_id}|{crc}"
        ).encode()

        try:
            signature = base64.b64decode(lowered["paypal-transmission-sig"], validate=True)
            cert.public_key().verify(signature, message, padding.PKCS1v15(), hashes.SHA256())
        except (InvalidSignature, binascii.Error, ValueError, TypeError) as exc:
            logger.warning(
                "paypal_webhook_signature_invalid",
                transmission_id=lowered["paypal-transmission-id"],
                error=type(exc).__name__,
            )
            return False

        return True

    async def _load_certificate(self, cert_url: str) -> x509.Certificate:
        """Download and cache the signing certificate for ``cert_url``."""
        cert = self._certificates.get(cert_url)
        if cert is not None:
            return cert

        response = await self.client.get(cert_url)
        if not response.is_success:
            raise GatewayError(
                f"Certificate download returned {response.status_code}",
                upstream_status=response.status_code,
            )

        cert = x509.load_pem_x509_certificate(response.content)
        self._certificates[cert_url] = cert
        return cert
