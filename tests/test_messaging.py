from datetime import timedelta

from fieldkiosk.models import utcnow


def _message(message_id="msg-1", **overrides):
    message = {"id": message_id, "sender_id": "emp-1", "sender_name": "John Smith", "content": "Running late"}
    message.update(overrides)
    return message


def _alert(**overrides):
    alert = {"sender_id": "admin-1", "sender_name": "Admin", "title": "Heads up", "message": "Store closes early"}
    alert.update(overrides)
    return alert


def test_group_message_read_by_sender(client, api_headers):
    response = client.post("/messages", json=_message(), headers=api_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["is_group_message"] is True
    assert body["read_by"] == ["emp-1"]


def test_duplicate_message_id_conflicts(client, api_headers):
    client.post("/messages", json=_message(), headers=api_headers)

    assert client.post("/messages", json=_message(), headers=api_headers).status_code == 409


def test_blank_content_is_rejected(client, api_headers):
    assert client.post("/messages", json=_message(content="  "), headers=api_headers).status_code == 422


def test_direct_messages_visible_to_participants_only(client, api_headers):
    client.post("/messages", json=_message("direct", recipient_ids=["emp-2"]), headers=api_headers)
    client.post("/messages", json=_message("group"), headers=api_headers)

    for_recipient = client.get("/messages", params={"employee_id": "emp-2"}, headers=api_headers).json()
    for_other = client.get("/messages", params={"employee_id": "emp-3"}, headers=api_headers).json()

    assert sorted(m["id"] for m in for_recipient) == ["direct", "group"]
    assert [m["id"] for m in for_other] == ["group"]


def test_mark_read_is_idempotent(client, api_headers):
    client.post("/messages", json=_message(), headers=api_headers)

    client.post("/messages/msg-1/read", json={"employee_id": "emp-2"}, headers=api_headers)
    response = client.post("/messages/msg-1/read", json={"employee_id": "emp-2"}, headers=api_headers)

    assert response.json()["read_by"] == ["emp-1", "emp-2"]


def test_reactions(client, api_headers):
    client.post("/messages", json=_message(), headers=api_headers)

    client.post("/messages/msg-1/reactions", json={"employee_id": "emp-2", "emoji": "👍"}, headers=api_headers)
    response = client.post(
        "/messages/msg-1/reactions", json={"employee_id": "emp-2", "emoji": "👍"}, headers=api_headers
    )

    assert response.json()["reactions"] == {"👍": ["emp-2"]}


def test_read_unknown_message(client, api_headers):
    response = client.post("/messages/missing/read", json={"employee_id": "emp-2"}, headers=api_headers)

    assert response.status_code == 404


def test_alert_visibility_and_dismissal(client, api_headers):
    group = client.post("/alerts", json=_alert(priority="urgent"), headers=api_headers)
    targeted = client.post("/alerts", json=_alert(recipient_ids=["emp-2"]), headers=api_headers)

    assert group.status_code == 201
    assert group.json()["is_group_alert"] is True
    assert targeted.json()["is_group_alert"] is False

    for_emp2 = client.get("/alerts", params={"employee_id": "emp-2"}, headers=api_headers).json()
    for_emp3 = client.get("/alerts", params={"employee_id": "emp-3"}, headers=api_headers).json()
    assert len(for_emp2) == 2
    assert [a["id"] for a in for_emp3] == [group.json()["id"]]

    client.post(f"/alerts/{group.json()['id']}/dismiss", json={"employee_id": "emp-3"}, headers=api_headers)
    assert client.get("/alerts", params={"employee_id": "emp-3"}, headers=api_headers).json() == []


def test_expired_alerts_are_hidden(client, api_headers):
    expired = (utcnow() - timedelta(hours=1)).isoformat()
    client.post("/alerts", json=_alert(expires_at=expired), headers=api_headers)

    assert client.get("/alerts", headers=api_headers).json() == []


def test_mark_alert_read(client, api_headers):
    alert_id = client.post("/alerts", json=_alert(), headers=api_headers).json()["id"]

    response = client.post(f"/alerts/{alert_id}/read", json={"employee_id": "emp-2"}, headers=api_headers)

    assert response.json()["read_by"] == ["emp-2"]


def test_invalid_priority(client, api_headers):
    assert client.post("/alerts", json=_alert(priority="critical"), headers=api_headers).status_code == 422
