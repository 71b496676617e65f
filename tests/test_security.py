import pytest

from fieldkiosk import config
from fieldkiosk.security_utils import (
    decrypt_personal_info,
    decrypt_value,
    encrypt_personal_info,
    encrypt_value,
    mask_ssn,
)
from fieldkiosk.webhook_security import (
    WebhookSignatureError,
    constant_time_compare,
    extract_bearer_token,
    verify_shared_secret,
)


def test_constant_time_compare():
    assert constant_time_compare("secret", "secret")
    assert not constant_time_compare("secret", "Secret")
    assert not constant_time_compare(None, "secret")
    assert not constant_time_compare("", "")


def test_extract_bearer_token():
    assert extract_bearer_token("Bearer abc123") == "abc123"
    assert extract_bearer_token("bearer abc123") == "abc123"
    assert extract_bearer_token("Basic abc123") is None
    assert extract_bearer_token("Bearer") is None
    assert extract_bearer_token(None) is None


def test_verify_shared_secret():
    verify_shared_secret("s3cret", "s3cret")

    with pytest.raises(WebhookSignatureError, match="mismatch"):
        verify_shared_secret("wrong", "s3cret")
    with pytest.raises(WebhookSignatureError, match="not configured"):
        verify_shared_secret("s3cret", None)


def test_unconfigured_sync_secret_rejects_everything(client, secret_headers, monkeypatch):
    monkeypatch.setattr(config, "SYNC_SECRET", None)

    assert client.post("/reports/daily", headers=secret_headers).status_code == 401


def test_wrong_api_key(client):
    response = client.get("/surveys", headers={"X-API-Key": "nope"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or missing API key"


def test_encrypt_value_is_idempotent():
    encrypted = encrypt_value("123-45-6789")

    assert encrypted.startswith("enc:")
    assert encrypt_value(encrypted) == encrypted
    assert decrypt_value(encrypted) == "123-45-6789"
    assert decrypt_value("plain") == "plain"


def test_personal_info_round_trip_only_touches_ssn():
    info = {"ssn": "123456789", "address": "1 Main St"}

    encrypted = encrypt_personal_info(info)

    assert encrypted["address"] == "1 Main St"
    assert encrypted["ssn"] != "123456789"
    assert decrypt_personal_info(encrypted) == info
    assert encrypt_personal_info(None) is None


def test_undecryptable_ssn_is_dropped():
    assert decrypt_personal_info({"ssn": "enc:garbage"}) == {"ssn": None}


def test_mask_ssn():
    assert mask_ssn("123-45-6789") == "***-**-6789"
    assert mask_ssn("12") == "***"
    assert mask_ssn(None) is None
