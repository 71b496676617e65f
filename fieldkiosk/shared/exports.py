"""CSV exports for surveys and time entries"""

import csv
from io import StringIO
from typing import Optional

from ..integrations.salesforce_mapping import store_label
from ..models import parse_datetime

SURVEY_HEADERS = [
    "id", "employee_alias", "timestamp", "store", "store_name", "store_number", "category",
    "first_name", "last_name", "phone", "address", "city", "state", "zip",
    "buys_bottled_water", "is_homeowner", "has_salt_system", "uses_filters",
    "tastes_odors", "water_quality", "water_source", "current_treatment", "property_type",
    "appointment_date", "appointment_time", "appointment_notes",
    "synced_to_salesforce", "synced_to_zapier", "salesforce_id", "is_duplicate", "location_verified",
]

TIME_ENTRY_HEADERS = [
    "id", "employee_name", "employee_email", "clock_in", "clock_out", "hours_worked",
    "store", "store_name", "store_number", "store_address",
    "synced_to_adp", "location_verified", "distance_from_store",
]

ANSWER_COLUMNS = [
    "buys_bottled_water", "is_homeowner", "has_salt_system", "uses_filters", "tastes_odors",
    "water_quality", "water_source", "current_treatment", "property_type",
]


def _yes_no(value) -> str:
    return "Yes" if value else "No"


def format_datetime(value) -> str:
    parsed = parse_datetime(value)
    return parsed.strftime("%m/%d/%Y %I:%M %p") if parsed else ""


def hours_between(clock_in, clock_out) -> Optional[float]:
    start = parse_datetime(clock_in)
    end = parse_datetime(clock_out)
    if start is None or end is None:
        return None
    return round((end - start).total_seconds() / 3600, 2)


def _write(headers: list[str], rows: list[dict]) -> str:
    output = StringIO()
    writer = csv.DictWriter(output, fieldnames=headers, extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return output.getvalue()


def surveys_to_csv(surveys: list[dict]) -> str:
    rows = []
    for survey in surveys:
        answers = survey.get("answers") or {}
        contact = answers.get("contact_info") or {}
        appointment = survey.get("appointment") or {}
        row = {
            "id": survey.get("id"),
            "employee_alias": survey.get("employee_alias") or "N/A",
            "timestamp": format_datetime(survey.get("timestamp")),
            "store": store_label(survey.get("store")),
            "store_name": survey.get("store_name") or "N/A",
            "store_number": survey.get("store_number") or "N/A",
            "category": survey.get("category"),
            "first_name": contact.get("firstName") or "",
            "last_name": contact.get("lastName") or "",
            "phone": contact.get("phone") or "",
            "address": contact.get("address") or "",
            "city": contact.get("city") or "",
            "state": contact.get("state") or "",
            "zip": contact.get("zipCode") or "",
            "appointment_date": appointment.get("date") or "",
            "appointment_time": appointment.get("time") or "",
            "appointment_notes": appointment.get("notes") or "",
            "synced_to_salesforce": _yes_no(survey.get("synced_to_salesforce")),
            "synced_to_zapier": _yes_no(survey.get("synced_to_zapier")),
            "salesforce_id": survey.get("salesforce_id") or "",
            "is_duplicate": _yes_no(survey.get("is_duplicate")),
            "location_verified": _yes_no(survey.get("location_verified")),
        }
        for column in ANSWER_COLUMNS:
            row[column] = answers.get(column) or ""
        rows.append(row)
    return _write(SURVEY_HEADERS, rows)


def time_entries_to_csv(time_entries: list[dict], employees: dict[str, dict]) -> str:
    """employees maps employee id -> employee dict"""
    rows = []
    for entry in time_entries:
        employee = employees.get(entry.get("employee_id"))
        hours = hours_between(entry.get("clock_in"), entry.get("clock_out"))
        distance = entry.get("distance_from_store")
        rows.append(
            {
                "id": entry.get("id"),
                "employee_name": (
                    f"{employee.get('first_name')} {employee.get('last_name')}" if employee else "Unknown"
                ),
                "employee_email": employee.get("email") if employee else "N/A",
                "clock_in": format_datetime(entry.get("clock_in")),
                "clock_out": format_datetime(entry.get("clock_out")) if entry.get("clock_out") else "Still clocked in",
                "hours_worked": f"{hours:.2f}" if hours is not None else "N/A",
                "store": store_label(entry.get("store")),
                "store_name": entry.get("store_name") or "N/A",
                "store_number": entry.get("store_number") or "N/A",
                "store_address": entry.get("store_address") or "N/A",
                "synced_to_adp": _yes_no(entry.get("synced_to_adp")),
                "location_verified": _yes_no(entry.get("location_verified")),
                "distance_from_store": f"{round(distance)}m" if distance else "N/A",
            }
        )
    return _write(TIME_ENTRY_HEADERS, rows)
