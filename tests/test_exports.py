import csv
from io import StringIO

from fieldkiosk.shared.exports import hours_between, surveys_to_csv, time_entries_to_csv


def _rows(text):
    return list(csv.DictReader(StringIO(text)))


def test_hours_between():
    assert hours_between("2024-05-10T08:00:00Z", "2024-05-10T12:30:00Z") == 4.5
    assert hours_between("2024-05-10T08:00:00", None) is None


def test_surveys_to_csv():
    survey = {
        "id": "s-1",
        "store": "home_depot",
        "category": "appointment",
        "timestamp": "2024-05-10T14:05:00",
        "answers": {"is_homeowner": "Yes", "contact_info": {"firstName": "Jane", "zipCode": "32501"}},
        "appointment": {"date": "2024-05-12", "time": "10:00"},
        "synced_to_salesforce": True,
    }

    (row,) = _rows(surveys_to_csv([survey]))

    assert row["store"] == "Home Depot"
    assert row["employee_alias"] == "N/A"
    assert row["timestamp"] == "05/10/2024 02:05 PM"
    assert row["first_name"] == "Jane"
    assert row["zip"] == "32501"
    assert row["is_homeowner"] == "Yes"
    assert row["appointment_date"] == "2024-05-12"
    assert (row["synced_to_salesforce"], row["synced_to_zapier"]) == ("Yes", "No")


def test_time_entries_to_csv():
    entries = [
        {
            "id": "t-1",
            "employee_id": "e-1",
            "store": "lowes",
            "clock_in": "2024-05-10T08:00:00",
            "clock_out": "2024-05-10T16:15:00",
            "distance_from_store": 42.4,
        },
        {"id": "t-2", "employee_id": "ghost", "store": "lowes", "clock_in": "2024-05-10T08:00:00"},
    ]
    employees = {"e-1": {"first_name": "John", "last_name": "Smith", "email": "john@example.com"}}

    done, open_entry = _rows(time_entries_to_csv(entries, employees))

    assert done["employee_name"] == "John Smith"
    assert done["hours_worked"] == "8.25"
    assert done["distance_from_store"] == "42m"
    assert open_entry["employee_name"] == "Unknown"
    assert open_entry["clock_out"] == "Still clocked in"
    assert open_entry["hours_worked"] == "N/A"
