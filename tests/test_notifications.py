import asyncio
import json

import httpx
import pytest

from fieldkiosk import config
from fieldkiosk.integrations.errors import IntegrationNotConfiguredError
from fieldkiosk.models_notifications import NotificationLog
from fieldkiosk.services.email_service import send_email
from fieldkiosk.services.twilio_service import send_sms


@pytest.fixture
def twilio_config(monkeypatch):
    monkeypatch.setattr(config, "TWILIO_ACCOUNT_SID", "AC123")
    monkeypatch.setattr(config, "TWILIO_AUTH_TOKEN", "auth-token")
    monkeypatch.setattr(config, "TWILIO_PHONE_NUMBER", "18505550100")


def _run(coro_factory, handler):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            return await coro_factory(http)

    return asyncio.run(run())


def test_send_sms(db, twilio_config):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(201, json={"sid": "SM123"})

    success, sid = _run(lambda http: send_sms(db, "(850) 555-1234", "Hello", "alert", http_client=http), handler)

    assert (success, sid) == (True, "SM123")
    assert requests[0].url.path == "/2010-04-01/Accounts/AC123/Messages.json"
    body = requests[0].content.decode()
    assert "To=%2B18505551234" in body
    assert "From=%2B18505550100" in body
    log = db.query(NotificationLog).one()
    assert (log.channel, log.status, log.provider_message_id, log.message_type) == ("sms", "sent", "SM123", "alert")


def test_send_sms_provider_error(db, twilio_config):
    def handler(request):
        return httpx.Response(400, json={"code": 21211, "message": "Invalid 'To' Phone Number"})

    success, error = _run(lambda http: send_sms(db, "+15005550001", "Hello", http_client=http), handler)

    assert success is False
    assert error == "[21211] Invalid 'To' Phone Number"
    assert db.query(NotificationLog).one().status == "failed"


def test_send_sms_requires_fields_and_credentials(db, twilio_config, monkeypatch):
    assert asyncio.run(send_sms(db, "", "Hello")) == (False, "Missing required fields: to, message")

    monkeypatch.setattr(config, "TWILIO_AUTH_TOKEN", None)
    with pytest.raises(IntegrationNotConfiguredError) as exc_info:
        asyncio.run(send_sms(db, "8505551234", "Hello"))
    assert exc_info.value.status_code == 503


def test_send_email_via_sendgrid(db, monkeypatch):
    monkeypatch.setattr(config, "SENDGRID_API_KEY", "sg-key")
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(202, headers={"X-Message-Id": "msg-1"})

    success, message_id = _run(
        lambda http: send_email(db, "boss@example.com", "Report", "<p>hi</p>", is_html=True, http_client=http),
        handler,
    )

    assert (success, message_id) == (True, "msg-1")
    assert requests[0].headers["Authorization"] == "Bearer sg-key"
    payload = json.loads(requests[0].content)
    assert payload["personalizations"] == [{"to": [{"email": "boss@example.com"}]}]
    assert payload["content"] == [{"type": "text/html", "value": "<p>hi</p>"}]
    log = db.query(NotificationLog).one()
    assert (log.channel, log.provider, log.status) == ("email", "sendgrid", "sent")


def test_send_email_failure_is_logged(db, monkeypatch):
    monkeypatch.setattr(config, "SENDGRID_API_KEY", "sg-key")

    success, error = _run(
        lambda http: send_email(db, "boss@example.com", "Report", "body", http_client=http),
        lambda request: httpx.Response(401),
    )

    assert success is False
    assert error == "SendGrid: Failed to send email (401)"
    assert db.query(NotificationLog).one().error_message == error


def test_send_email_without_provider(db):
    with pytest.raises(IntegrationNotConfiguredError):
        asyncio.run(send_email(db, "boss@example.com", "Report", "body"))


def test_notification_routes(client, secret_headers):
    assert client.post("/notifications/sms", json={"to": "8505551234", "message": "hi"}).status_code == 401

    missing = client.post("/notifications/sms", json={"to": "8505551234"}, headers=secret_headers)
    assert missing.status_code == 400

    unconfigured = client.post(
        "/notifications/sms", json={"to": "8505551234", "message": "hi"}, headers=secret_headers
    )
    assert unconfigured.status_code == 503

    email = client.post(
        "/notifications/email", json={"to": "boss@example.com", "subject": "Hi", "body": "x"}, headers=secret_headers
    )
    assert email.status_code == 503
    assert client.post("/notifications/email", json={"to": "a@b.co"}, headers=secret_headers).status_code == 400
