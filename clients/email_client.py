"""
Email gateway client - delivers one-time login codes.

The gateway takes a compact JSON body and authenticates the caller with
an API key plus an HMAC-SHA256 signature over the exact bytes posted.
It answers {"success": bool, "message": str}.
"""

import hashlib
import hmac
import json
import logging

import requests

logger = logging.getLogger(__name__)


class EmailGatewayError(Exception):
    """The gateway could not be reached or refused the message."""


class EmailGatewayClient:
    """Signed HTTP client for the email gateway."""

    def __init__(self, gateway_url: str, api_key: str, hmac_secret: str, timeout: int = 10):
        """
        Args:
            gateway_url: Send endpoint of the gateway
            api_key: Value for the X-API-Key header
            hmac_secret: Key for the X-Signature HMAC
            timeout: Per-request timeout in seconds

        Raises:
            ValueError: If gateway_url, api_key or hmac_secret is empty
        """
        for name, value in (("gateway_url", gateway_url), ("api_key", api_key), ("hmac_secret", hmac_secret)):
            if not value:
                raise ValueError(f"{name} is required")

        self.gateway_url = gateway_url
        self.api_key = api_key
        self.hmac_secret = hmac_secret
        self.timeout = timeout

    def _sign(self, body: bytes) -> str:
        return hmac.new(self.hmac_secret.encode("utf-8"), body, hashlib.sha256).hexdigest()

    def _post(self, payload: dict) -> None:
        """
        Post payload and check the gateway's verdict.

        Raises:
            EmailGatewayError: Transport failure, unreadable reply, or rejection
        """
        body = json.dumps(payload, separators=(",", ":")).encode("utf-8")

        try:
            response = requests.post(
                self.gateway_url,
                data=body,
                headers={
                    "Content-Type": "application/json",
                    "X-API-Key": self.api_key,
                    "X-Signature": self._sign(body),
                },
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Could not reach email gateway: {e}")
            raise EmailGatewayError(f"Connection failed: {e}")

        try:
            reply = response.json()
        except ValueError:
            logger.error(f"Email gateway sent a non-JSON reply (HTTP {response.status_code})")
            raise EmailGatewayError("Invalid response from gateway")

        if response.status_code != 200 or not reply.get("success"):
            reason = reply.get("message", "Unknown error")
            logger.error(f"Email gateway rejected message: {reason}")
            raise EmailGatewayError(f"Gateway error: {reason}")

    def send_email(self, to: str, subject: str, text: str, html: str | None = None) -> None:
        """
        Send one message. html is optional; text is always sent.

        Raises:
            EmailGatewayError: On gateway failure
        """
        payload = {"email": to, "subject": subject, "text": text}
        if html is not None:
            payload["html"] = html

        self._post(payload)
        logger.info(f"Email '{subject}' delivered to gateway for {to}")

    def send_otp(self, email: str, code: str, expiry_minutes: int, app_name: str) -> None:
        """
        Send a login code with its validity window.

        Raises:
            EmailGatewayError: On gateway failure
        """
        self.send_email(
            to=email,
            subject=f"Your {app_name} login code",
            text=(
                f"Your one-time login code is: {code}. "
                f"It will expire in {expiry_minutes} minutes."
            ),
            html=(
                f"<p>Your one-time login code is: <strong>{code}</strong></p>"
                f"<p>It will expire in {expiry_minutes} minutes.</p>"
            ),
        )
