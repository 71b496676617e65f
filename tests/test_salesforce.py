import asyncio
import json

import httpx
import pytest

from fieldkiosk import config
from fieldkiosk.integrations.errors import IntegrationNotConfiguredError
from fieldkiosk.integrations.salesforce import FIELD_CACHE_KEY, SalesforceClient, map_salesforce_type, soql_quote
from fieldkiosk.main import app
from fieldkiosk.routes.salesforce import get_salesforce_client

SALESFORCE_URL = "https://example.my.salesforce.com"

DESCRIBE = {
    "fields": [
        {"name": "Survey_ID__c", "label": "Survey ID", "type": "string", "custom": True, "nillable": True},
        {"name": "LastName", "label": "Last Name", "type": "string", "custom": False, "nillable": False},
        {
            "name": "Status",
            "label": "Lead Status",
            "type": "picklist",
            "custom": False,
            "nillable": False,
            "defaultedOnCreate": True,
            "picklistValues": [{"value": "New"}, {"value": "Working"}],
        },
    ]
}


class MemoryCache:
    def __init__(self):
        self.values = {}

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value, ttl=3600):
        self.values[key] = value
        return True

    def delete(self, key):
        self.values.pop(key, None)
        return True


def test_type_mapping_and_quoting():
    assert map_salesforce_type("currency") == "number"
    assert map_salesforce_type("MultiPicklist") == "picklist"
    assert map_salesforce_type("geolocation") == "text"
    assert soql_quote("O'Brien") == "O\\'Brien"


def test_unconfigured_client_is_503(monkeypatch):
    monkeypatch.setattr(config, "SALESFORCE_INSTANCE_URL", None)
    monkeypatch.setattr(config, "SALESFORCE_CLIENT_ID", None)
    client = SalesforceClient(instance_url="", client_id="")

    assert client.is_configured is False
    with pytest.raises(IntegrationNotConfiguredError) as exc_info:
        asyncio.run(client.create_lead({}))
    assert exc_info.value.status_code == 503


def test_token_is_cached_between_calls():
    token_calls = []

    def handler(request):
        if request.url.path == "/services/oauth2/token":
            token_calls.append(request)
            return httpx.Response(200, json={"access_token": "sf-token"})
        assert request.headers["Authorization"] == "Bearer sf-token"
        return httpx.Response(200, json={"totalSize": 0, "records": []})

    client = SalesforceClient(
        instance_url=SALESFORCE_URL,
        client_id="id",
        client_secret="secret",
        username="api@example.com",
        password="pw",
        security_token="tok",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    asyncio.run(client.test_connection())
    asyncio.run(client.check_duplicate("(850) 555-1234"))

    assert len(token_calls) == 1
    assert "password=pwtok" in token_calls[0].content.decode()


def test_check_duplicate_falls_back_to_account(make_salesforce):
    def handler(request):
        soql = request.url.params["q"]
        if "FROM Account" in soql:
            return httpx.Response(
                200, json={"totalSize": 1, "records": [{"Id": "001A", "Name": "Jane Doe", "PersonEmail": "j@x.co"}]}
            )
        return httpx.Response(200, json={"totalSize": 0, "records": []})

    result = asyncio.run(make_salesforce(handler).check_duplicate("(850) 555-1234"))

    assert result == {
        "is_duplicate": True,
        "record_type": "Account",
        "salesforce_id": "001A",
        "record_name": "Jane Doe",
        "record_email": "j@x.co",
    }


def test_verify_record(make_salesforce):
    def handler(request):
        return httpx.Response(200 if request.url.path.endswith("/00QGOOD") else 404, json={})

    client = make_salesforce(handler)

    assert asyncio.run(client.verify_record("00QGOOD")) == {
        "exists": True,
        "record_url": f"{SALESFORCE_URL}/lightning/r/Lead/00QGOOD/view",
    }
    assert asyncio.run(client.verify_record("00QGONE"))["exists"] is False


def test_describe_lead_fields_sorts_and_caches(make_salesforce):
    calls = []

    def handler(request):
        calls.append(request.url.path)
        return httpx.Response(200, json=DESCRIBE)

    field_cache = MemoryCache()
    client = make_salesforce(handler, field_cache=field_cache)

    fields = asyncio.run(client.describe_lead_fields())
    again = asyncio.run(client.describe_lead_fields())

    assert [f["name"] for f in fields] == ["LastName", "Status", "Survey_ID__c"]
    assert fields[0]["required"] is True
    assert fields[1]["required"] is False
    assert fields[1]["picklist_values"] == ["New", "Working"]
    assert again == fields
    assert len(calls) == 1

    client.clear_field_cache()
    assert FIELD_CACHE_KEY not in field_cache.values


def test_salesforce_sync_route(client, secret_headers, make_salesforce):
    created = []

    def handler(request):
        if request.method == "POST":
            created.append(json.loads(request.content))
            return httpx.Response(201, json={"id": "00QNEW"})
        if request.method == "DELETE":
            return httpx.Response(204)
        return httpx.Response(200, json={"totalSize": 1, "records": [{"Id": "00QDUP", "Name": "Jane"}]})

    app.dependency_overrides[get_salesforce_client] = lambda: make_salesforce(handler)

    assert client.post("/salesforce/sync", json={"action": "test_connection"}).status_code == 401

    lead = client.post(
        "/salesforce/sync",
        json={"action": "create_lead", "data": {"lead_data": {"LastName": "Doe"}}},
        headers=secret_headers,
    )
    assert lead.json() == {"success": True, "salesforce_id": "00QNEW"}
    assert created == [{"LastName": "Doe"}]

    duplicate = client.post(
        "/salesforce/sync", json={"action": "check_duplicate", "data": {"phone": "8505551234"}}, headers=secret_headers
    )
    assert duplicate.json()["record_url"] == f"{SALESFORCE_URL}/lightning/r/Lead/00QDUP/view"

    deleted = client.post(
        "/salesforce/sync", json={"action": "delete_record", "data": {"record_id": "00QDUP"}}, headers=secret_headers
    )
    assert deleted.json() == {"success": True}

    missing = client.post("/salesforce/sync", json={"action": "verify_record", "data": {}}, headers=secret_headers)
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Missing required field: record_id"

    unknown = client.post("/salesforce/sync", json={"action": "drop_tables"}, headers=secret_headers)
    assert unknown.status_code == 422


def test_salesforce_errors_map_to_http(client, secret_headers, make_salesforce):
    app.dependency_overrides[get_salesforce_client] = lambda: make_salesforce(
        lambda request: httpx.Response(500, text="boom")
    )

    response = client.post(
        "/salesforce/sync", json={"action": "run_report", "data": {"report_id": "00O1"}}, headers=secret_headers
    )

    assert response.status_code == 502
    assert response.json()["detail"].startswith("Report 00O1 failed: 500")


def test_field_routes(client, secret_headers, make_salesforce):
    field_cache = MemoryCache()
    app.dependency_overrides[get_salesforce_client] = lambda: make_salesforce(
        lambda request: httpx.Response(200, json=DESCRIBE), field_cache=field_cache
    )

    response = client.get("/salesforce/fields", headers=secret_headers)
    assert response.json()["total"] == 3
    assert FIELD_CACHE_KEY in field_cache.values

    assert client.delete("/salesforce/fields/cache", headers=secret_headers).json() == {"success": True}
    assert field_cache.values == {}
