"""Tests for EmailGatewayClient - signed JSON posts to the email gateway."""

import hashlib
import hmac
import json

import pytest
import requests
import responses

from clients.email_client import EmailGatewayClient, EmailGatewayError

GATEWAY_URL = "https://gateway.example.com/send"


@pytest.fixture
def client():
    """Create client with test credentials."""
    return EmailGatewayClient(
        gateway_url=GATEWAY_URL,
        api_key="test-api-key",
        hmac_secret="test-hmac-secret",
    )


class TestEmailGatewayClientInit:
    """Test client initialization - fail-fast on invalid config."""

    def test_init_with_valid_credentials(self, client):
        assert client.gateway_url == GATEWAY_URL

    @pytest.mark.parametrize("missing", ["gateway_url", "api_key", "hmac_secret"])
    def test_init_rejects_empty_value(self, missing):
        """Each credential is required."""
        kwargs = {
            "gateway_url": GATEWAY_URL,
            "api_key": "test-api-key",
            "hmac_secret": "test-hmac-secret",
        }
        kwargs[missing] = ""
        with pytest.raises(ValueError, match=missing):
            EmailGatewayClient(**kwargs)


class TestSendOtp:
    """Test send_otp - uses responses library for HTTP mocking."""

    @responses.activate
    def test_successful_send_returns_none(self, client):
        responses.add(responses.POST, GATEWAY_URL, json={"success": True}, status=200)

        result = client.send_otp(
            email="student@uniport.edu.ng",
            code="123456",
            expiry_minutes=10,
            app_name="Uniport Materials",
        )

        assert result is None

    @responses.activate
    def test_payload_carries_code_and_expiry(self, client):
        """Recipient, code and expiry appear in the posted body."""
        responses.add(responses.POST, GATEWAY_URL, json={"success": True}, status=200)

        client.send_otp(
            email="student@uniport.edu.ng",
            code="654321",
            expiry_minutes=10,
            app_name="Uniport Materials",
        )

        body = json.loads(responses.calls[0].request.body)
        assert body["email"] == "student@uniport.edu.ng"
        assert "654321" in body["text"]
        assert "10 minutes" in body["text"]
        assert "654321" in body["html"]
        assert "Uniport Materials" in body["subject"]

    @responses.activate
    def test_request_is_signed(self, client):
        """X-Signature is HMAC-SHA256 of the exact body."""
        responses.add(responses.POST, GATEWAY_URL, json={"success": True}, status=200)

        client.send_otp(
            email="student@uniport.edu.ng",
            code="123456",
            expiry_minutes=10,
            app_name="Uniport Materials",
        )

        request = responses.calls[0].request
        body = request.body if isinstance(request.body, bytes) else request.body.encode()
        expected = hmac.new(b"test-hmac-secret", body, hashlib.sha256).hexdigest()
        assert request.headers["X-Signature"] == expected
        assert request.headers["X-API-Key"] == "test-api-key"

    @responses.activate
    def test_gateway_500_raises_error(self, client):
        responses.add(
            responses.POST,
            GATEWAY_URL,
            json={"success": False, "message": "Internal error"},
            status=500,
        )

        with pytest.raises(EmailGatewayError, match="Internal error"):
            client.send_otp("student@uniport.edu.ng", "123456", 10, "Uniport Materials")

    @responses.activate
    def test_success_false_raises_error(self, client):
        """A 200 with success=false is still a failure."""
        responses.add(
            responses.POST,
            GATEWAY_URL,
            json={"success": False, "message": "Mailbox full"},
            status=200,
        )

        with pytest.raises(EmailGatewayError):
            client.send_otp("student@uniport.edu.ng", "123456", 10, "Uniport Materials")

    @responses.activate
    def test_invalid_json_raises_error(self, client):
        responses.add(responses.POST, GATEWAY_URL, body="<html>oops</html>", status=200)

        with pytest.raises(EmailGatewayError, match="Invalid response"):
            client.send_otp("student@uniport.edu.ng", "123456", 10, "Uniport Materials")

    @responses.activate
    def test_connection_error_raises_error(self, client):
        responses.add(
            responses.POST,
            GATEWAY_URL,
            body=requests.exceptions.ConnectionError("refused"),
        )

        with pytest.raises(EmailGatewayError, match="Connection failed"):
            client.send_otp("student@uniport.edu.ng", "123456", 10, "Uniport Materials")


class TestSendEmail:
    """Test the generic send_email entry point."""

    @responses.activate
    def test_html_omitted_when_not_given(self, client):
        responses.add(responses.POST, GATEWAY_URL, json={"success": True}, status=200)

        client.send_email(to="a@uniport.edu.ng", subject="Hi", text="Plain")

        body = json.loads(responses.calls[0].request.body)
        assert body == {"email": "a@uniport.edu.ng", "subject": "Hi", "text": "Plain"}
