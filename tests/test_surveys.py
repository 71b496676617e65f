from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fieldkiosk.domain.surveys import service as survey_service
from fieldkiosk.domain.surveys.schemas import SurveyCreate
from fieldkiosk.domain.surveys.service import SurveyService
from fieldkiosk.models import Survey
from fieldkiosk.storage.failsafe import SURVEYS, FailsafeStorage
from fieldkiosk.storage.sync_log import get_outbound_queue


def test_requires_api_key(client, survey_payload):
    response = client.post("/surveys", json=survey_payload("emp-1"))

    assert response.status_code == 401


def test_add_survey_saves_locally_and_to_cloud(client, api_headers, db, local_db, make_employee, survey_payload):
    employee = make_employee()
    payload = survey_payload(employee.id)

    response = client.post("/surveys", json=payload, headers=api_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["synced"] is True
    assert body["survey"]["id"] == payload["id"]
    assert body["survey"]["employee_alias"] == "JOSM"
    assert body["survey"]["synced_to_salesforce"] is False

    assert db.get(Survey, payload["id"]) is not None
    assert FailsafeStorage(local_db).get(SURVEYS, payload["id"])["store"] == "lowes"
    queue = get_outbound_queue(local_db)
    assert [(item.item_type, item.record_id) for item in queue] == [("survey", payload["id"])]


def test_appointment_survey_queues_zapier_hand_off(client, api_headers, local_db, make_employee, survey_payload):
    employee = make_employee()
    payload = survey_payload(
        employee.id,
        category="appointment",
        appointment={"address": "1 Main St", "email": "jane@example.com", "date": "2024-06-01", "time": "10:00"},
    )

    response = client.post("/surveys", json=payload, headers=api_headers)

    assert response.status_code == 201
    assert sorted(item.item_type for item in get_outbound_queue(local_db)) == ["appointment", "survey"]


def test_appointment_details_are_required(client, api_headers, survey_payload):
    response = client.post("/surveys", json=survey_payload("emp-1", category="appointment"), headers=api_headers)

    assert response.status_code == 422


def test_alias_taken_from_kiosk_session(client, api_headers, make_employee, survey_payload):
    employee = make_employee(first_name="Maria", last_name="Lopez")
    client.put("/employees/session", json={"employee_id": employee.id}, headers=api_headers)

    response = client.post("/surveys", json=survey_payload(employee.id), headers=api_headers)

    assert response.json()["survey"]["employee_alias"] == "MALO"


def test_list_merges_local_and_cloud(client, api_headers, local_db, make_employee, survey_payload):
    employee = make_employee()
    client.post(
        "/surveys",
        json=survey_payload(employee.id, timestamp="2024-05-01T10:00:00"),
        headers=api_headers,
    )
    offline = survey_payload(employee.id, timestamp="2024-05-02T10:00:00")
    FailsafeStorage(local_db).save(SURVEYS, Survey.normalize(offline))

    response = client.get("/surveys", params={"employee_id": employee.id}, headers=api_headers)

    assert response.status_code == 200
    surveys = response.json()
    assert len(surveys) == 2
    assert surveys[0]["id"] == offline["id"]


def test_local_count(client, api_headers, make_employee, survey_payload):
    employee = make_employee()
    client.post("/surveys", json=survey_payload(employee.id), headers=api_headers)

    response = client.get("/surveys/local-count", headers=api_headers)

    assert response.json() == {"count": 1}


def test_get_unknown_survey_returns_404(client, api_headers):
    response = client.get("/surveys/missing", headers=api_headers)

    assert response.status_code == 404


def test_update_sync_status(client, api_headers, db, make_employee, survey_payload):
    employee = make_employee()
    payload = survey_payload(employee.id)
    client.post("/surveys", json=payload, headers=api_headers)

    response = client.patch(
        f"/surveys/{payload['id']}/sync-status",
        json={"synced_to_salesforce": True, "salesforce_id": "00Q000000000001"},
        headers=api_headers,
    )

    assert response.status_code == 200
    assert response.json()["survey"]["salesforce_id"] == "00Q000000000001"
    db.expire_all()
    assert db.get(Survey, payload["id"]).synced_to_salesforce is True


def test_duplicates_and_review(client, api_headers, make_employee, survey_payload):
    employee = make_employee()
    payload = survey_payload(employee.id)
    client.post("/surveys", json=payload, headers=api_headers)
    client.patch(
        f"/surveys/{payload['id']}/sync-status",
        json={"is_duplicate": True, "duplicate_info": {"record_type": "Lead"}},
        headers=api_headers,
    )

    unreviewed = client.get("/surveys/duplicates", params={"reviewed": False}, headers=api_headers).json()
    assert [s["id"] for s in unreviewed] == [payload["id"]]

    response = client.post(f"/surveys/{payload['id']}/review", headers=api_headers)
    assert response.json()["survey"]["duplicate_reviewed"] is True
    assert client.get("/surveys/duplicates", params={"reviewed": False}, headers=api_headers).json() == []


def test_delete_survey(client, api_headers, local_db, make_employee, survey_payload):
    employee = make_employee()
    payload = survey_payload(employee.id)
    client.post("/surveys", json=payload, headers=api_headers)

    response = client.delete(f"/surveys/{payload['id']}", headers=api_headers)

    assert response.status_code == 204
    assert client.get(f"/surveys/{payload['id']}", headers=api_headers).status_code == 404
    assert FailsafeStorage(local_db).get(SURVEYS, payload["id"]) is None


def test_export_csv(client, api_headers, make_employee, survey_payload):
    employee = make_employee()
    client.post("/surveys", json=survey_payload(employee.id), headers=api_headers)

    response = client.get("/surveys/export", headers=api_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().split("\n")
    assert lines[0].startswith("id,employee_alias,timestamp")
    assert "Jane" in lines[1]


def test_delete_survey_while_cloud_is_down(local_db, make_employee, survey_payload):
    # Cloud engine without tables: every hosted query fails
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    offline_db = sessionmaker(bind=engine)()
    service = SurveyService(offline_db, local_db)
    payload = survey_payload("emp-offline")
    service.add_survey(SurveyCreate(**payload))
    assert len(get_outbound_queue(local_db)) == 1

    service.delete_survey(payload["id"])

    assert FailsafeStorage(local_db).get(SURVEYS, payload["id"]) is None
    assert get_outbound_queue(local_db) == []
    assert service.local_survey_count() == 0
    offline_db.close()


def test_unqueued_hand_off_is_reported(client, api_headers, local_db, make_employee, survey_payload, monkeypatch):
    def fail_enqueue(*args, **kwargs):
        raise OperationalError("INSERT INTO outbound_sync_items", {}, Exception("disk I/O error"))

    monkeypatch.setattr(survey_service, "enqueue_outbound", fail_enqueue)
    employee = make_employee()

    response = client.post("/surveys", json=survey_payload(employee.id), headers=api_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["error"] == "Survey saved but could not be queued for CRM sync"
    assert get_outbound_queue(local_db) == []
