def _shift(employee_id, date="2024-06-03", start="09:00", **overrides):
    shift = {"employee_id": employee_id, "date": date, "start_time": start, "end_time": "17:00", "store": "lowes"}
    shift.update(overrides)
    return shift


def test_add_and_list_schedules(client, api_headers):
    created = client.post("/schedules", json=_shift("emp-1"), headers=api_headers)

    assert created.status_code == 201
    assert created.json()["status"] == "scheduled"
    listed = client.get("/schedules", params={"employee_id": "emp-1"}, headers=api_headers).json()
    assert [s["id"] for s in listed] == [created.json()["id"]]


def test_bulk_schedules_sorted_by_date_and_time(client, api_headers):
    response = client.post(
        "/schedules/bulk",
        json=[
            _shift("emp-1", date="2024-06-04"),
            _shift("emp-1", date="2024-06-03", start="12:00"),
            _shift("emp-2", date="2024-06-03", start="08:00"),
        ],
        headers=api_headers,
    )

    assert response.status_code == 201
    assert len(response.json()) == 3
    listed = client.get("/schedules", headers=api_headers).json()
    assert [(s["date"], s["start_time"]) for s in listed] == [
        ("2024-06-03", "08:00"),
        ("2024-06-03", "12:00"),
        ("2024-06-04", "09:00"),
    ]


def test_empty_bulk_is_rejected(client, api_headers):
    assert client.post("/schedules/bulk", json=[], headers=api_headers).status_code == 400


def test_malformed_date_and_time(client, api_headers):
    assert client.post("/schedules", json=_shift("emp-1", date="06/03/2024"), headers=api_headers).status_code == 422
    assert client.post("/schedules", json=_shift("emp-1", start="9am"), headers=api_headers).status_code == 422


def test_time_off_request_and_review(client, api_headers):
    created = client.post(
        "/time-off-requests",
        json={"employee_id": "emp-1", "start_date": "2024-07-01", "end_date": "2024-07-05", "reason": "Vacation"},
        headers=api_headers,
    )

    assert created.status_code == 201
    assert created.json()["status"] == "pending"

    reviewed = client.post(
        f"/time-off-requests/{created.json()['id']}/review",
        json={"status": "approved", "reviewed_by": "admin-1"},
        headers=api_headers,
    )

    assert reviewed.status_code == 200
    assert reviewed.json()["status"] == "approved"
    assert reviewed.json()["reviewed_by"] == "admin-1"
    assert reviewed.json()["reviewed_at"] is not None


def test_time_off_end_before_start(client, api_headers):
    response = client.post(
        "/time-off-requests",
        json={"employee_id": "emp-1", "start_date": "2024-07-05", "end_date": "2024-07-01"},
        headers=api_headers,
    )

    assert response.status_code == 422


def test_review_unknown_request(client, api_headers):
    response = client.post("/time-off-requests/missing/review", json={"status": "denied"}, headers=api_headers)

    assert response.status_code == 404
