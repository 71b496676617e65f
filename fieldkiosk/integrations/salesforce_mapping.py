"""Survey -> Salesforce Lead field mapping"""

import logging
from typing import Any, Optional

import httpx

from ..shared.validators import format_phone_display
from .zip_lookup import lookup_zip_code

logger = logging.getLogger(__name__)

LOWES_RECORD_TYPE_ID = "012Rl000007imrJIAQ"
HOME_DEPOT_RECORD_TYPE_ID = "01236000001QBdgAAG"

STATE_ABBREVIATIONS = {
    "alabama": "AL", "alaska": "AK", "arizona": "AZ", "arkansas": "AR", "california": "CA",
    "colorado": "CO", "connecticut": "CT", "delaware": "DE", "florida": "FL", "georgia": "GA",
    "hawaii": "HI", "idaho": "ID", "illinois": "IL", "indiana": "IN", "iowa": "IA",
    "kansas": "KS", "kentucky": "KY", "louisiana": "LA", "maine": "ME", "maryland": "MD",
    "massachusetts": "MA", "michigan": "MI", "minnesota": "MN", "mississippi": "MS", "missouri": "MO",
    "montana": "MT", "nebraska": "NE", "nevada": "NV", "new hampshire": "NH", "new jersey": "NJ",
    "new mexico": "NM", "new york": "NY", "north carolina": "NC", "north dakota": "ND", "ohio": "OH",
    "oklahoma": "OK", "oregon": "OR", "pennsylvania": "PA", "rhode island": "RI", "south carolina": "SC",
    "south dakota": "SD", "tennessee": "TN", "texas": "TX", "utah": "UT", "vermont": "VT",
    "virginia": "VA", "washington": "WA", "west virginia": "WV", "wisconsin": "WI", "wyoming": "WY",
    "district of columbia": "DC", "puerto rico": "PR",
}

PHONE_FIELDS = ("contact_info.phone", "phone")


def get_state_abbreviation(state: Optional[str]) -> str:
    if not state:
        return ""
    trimmed = state.strip()
    if len(trimmed) == 2:
        return trimmed.upper()
    return STATE_ABBREVIATIONS.get(trimmed.lower(), trimmed)


def get_nested_value(obj: Any, path: str) -> Any:
    """Resolve a dotted path; missing keys resolve to an empty string"""
    value = obj
    for key in path.split("."):
        if not isinstance(value, dict) or key not in value or value[key] is None:
            return ""
        value = value[key]
    return value


def is_lowes(store: Optional[str]) -> bool:
    return (store or "").lower().replace("'", "").startswith("lowes")


def store_label(store: Optional[str]) -> str:
    return "Lowes" if is_lowes(store) else "Home Depot"


def tastes_odors_value(answer: Any) -> str:
    return "tastes, odors" if answer == "Yes" else "no problems"


def survey_phone(survey: dict) -> str:
    return ((survey.get("answers") or {}).get("contact_info") or {}).get("phone") or ""


def _store_defaults(survey: dict) -> dict[str, Any]:
    lowes = is_lowes(survey.get("store"))
    return {
        "RecordTypeId": LOWES_RECORD_TYPE_ID if lowes else HOME_DEPOT_RECORD_TYPE_ID,
        "LeadSource": "Lowes" if lowes else "HDS",
        "gift__c": "$20 Lowes GC" if lowes else "$20 HD Card",
    }


def _metadata_value(survey: dict, key: str) -> Any:
    if key == "store":
        return store_label(survey.get("store"))
    if key == "timestamp":
        return survey.get("timestamp")
    if key == "employeeId":
        return survey.get("employee_id")
    if key == "employeeAlias":
        return survey.get("employee_alias") or ""
    if key == "surveyId":
        return survey.get("id")
    if key == "hasSignature":
        return bool(survey.get("signature"))
    return None


def map_survey_to_lead(survey: dict, custom_mappings: Optional[list[dict]] = None) -> dict[str, Any]:
    """
    Build the Lead payload for a survey.

    Without custom mappings the built-in field layout is used. Custom
    mappings are dicts with surveyField / salesforceField / fieldType; a
    surveyField starting with "_" refers to survey metadata (store,
    timestamp, employeeId, employeeAlias, surveyId, hasSignature), anything
    else is a dotted path into the answers.
    """
    answers = survey.get("answers") or {}
    contact = answers.get("contact_info") or {}
    lead = _store_defaults(survey)

    if not custom_mappings:
        lead.update(
            {
                "FirstName": contact.get("firstName") or "",
                "LastName": contact.get("lastName") or "",
                "Phone": format_phone_display(contact.get("phone") or ""),
                "Street": contact.get("address") or "",
                "City": contact.get("city") or "",
                "State": get_state_abbreviation(contact.get("state")),
                "PostalCode": contact.get("zipCode") or "",
                "Buys_Bottled_Water__c": answers.get("buys_bottled_water") == "Yes",
                "Is_Homeowner__c": answers.get("is_homeowner") == "Yes",
                "Uses_Filters__c": answers.get("uses_filters") == "Yes",
                "Tastes_Odors__c": tastes_odors_value(answers.get("tastes_odors")),
                "Water_Quality__c": answers.get("water_quality"),
                "Water_Source__c": answers.get("water_source"),
                "Property_Type__c": answers.get("property_type"),
                "Survey_Store__c": store_label(survey.get("store")),
                "Survey_Date__c": survey.get("timestamp"),
                "Survey_Employee_ID__c": survey.get("employee_id"),
                "Survey_Employee_Alias__c": survey.get("employee_alias") or "",
                "Survey_ID__c": survey.get("id"),
                "Has_Signature__c": bool(survey.get("signature")),
            }
        )
        return lead

    for mapping in custom_mappings:
        survey_field = mapping.get("surveyField") or ""
        salesforce_field = mapping.get("salesforceField")
        field_type = mapping.get("fieldType", "text")
        if not survey_field or not salesforce_field:
            continue

        if survey_field.startswith("_"):
            value = _metadata_value(survey, survey_field[1:])
            if value is not None:
                lead[salesforce_field] = value
            continue

        value = get_nested_value(answers, survey_field)
        if survey_field == "tastes_odors":
            value = tastes_odors_value(value)
        if survey_field == "contact_info.state":
            value = get_state_abbreviation(value)
        if survey_field in PHONE_FIELDS:
            value = format_phone_display(value)

        if field_type == "boolean":
            lead[salesforce_field] = value in ("Yes", "yes", True)
        elif field_type == "date":
            lead[salesforce_field] = value
        else:
            lead[salesforce_field] = value or ""

    return lead


async def fill_missing_location(answers: dict, client: Optional[httpx.AsyncClient] = None) -> bool:
    """
    Look up city/state from the zip code when either is missing.
    Mutates answers["contact_info"]; returns True when something was filled.
    """
    contact = answers.get("contact_info") or {}
    zip_code = contact.get("zipCode")
    if not zip_code or (contact.get("city") and contact.get("state")):
        return False

    logger.info("🔍 Missing city/state - attempting zip lookup before sync...")
    result = await lookup_zip_code(zip_code, client=client)
    if not (result.success and result.city and result.state_abbr):
        logger.warning("⚠️ Zip lookup failed during sync - proceeding with zip code only")
        return False

    contact["city"] = result.city
    contact["state"] = result.state_abbr
    answers["contact_info"] = contact
    logger.info(f"✅ Zip lookup successful: {result.city}, {result.state_abbr}")
    return True
