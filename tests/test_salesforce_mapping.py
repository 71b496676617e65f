import asyncio

import httpx

from fieldkiosk.integrations.salesforce_mapping import (
    HOME_DEPOT_RECORD_TYPE_ID,
    LOWES_RECORD_TYPE_ID,
    fill_missing_location,
    get_nested_value,
    get_state_abbreviation,
    map_survey_to_lead,
)
from fieldkiosk.integrations.zip_lookup import lookup_zip_code


def _survey(**overrides):
    survey = {
        "id": "survey-1",
        "employee_id": "emp-1",
        "employee_alias": "JOSM",
        "store": "lowes",
        "timestamp": "2024-05-01T12:00:00",
        "signature": "data:image/png;base64,AAAA",
        "answers": {
            "buys_bottled_water": "Yes",
            "is_homeowner": "No",
            "tastes_odors": "Yes",
            "water_source": "Well",
            "contact_info": {
                "firstName": "Jane",
                "lastName": "Doe",
                "phone": "8505551234",
                "address": "1 Main St",
                "city": "Pensacola",
                "state": "Florida",
                "zipCode": "32501",
            },
        },
    }
    survey.update(overrides)
    return survey


def _zippopotam(handler_calls):
    def handler(request):
        handler_calls.append(request.url.path)
        if request.url.path.endswith("/00000"):
            return httpx.Response(404)
        return httpx.Response(
            200,
            json={"places": [{"place name": "Pensacola", "state": "Florida", "state abbreviation": "FL"}]},
        )

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_default_mapping_for_lowes():
    lead = map_survey_to_lead(_survey())

    assert lead["RecordTypeId"] == LOWES_RECORD_TYPE_ID
    assert lead["LeadSource"] == "Lowes"
    assert lead["gift__c"] == "$20 Lowes GC"
    assert lead["FirstName"] == "Jane"
    assert lead["Phone"] == "(850) 555-1234"
    assert lead["State"] == "FL"
    assert lead["Buys_Bottled_Water__c"] is True
    assert lead["Is_Homeowner__c"] is False
    assert lead["Tastes_Odors__c"] == "tastes, odors"
    assert lead["Survey_Employee_Alias__c"] == "JOSM"
    assert lead["Has_Signature__c"] is True


def test_default_mapping_for_home_depot():
    lead = map_survey_to_lead(_survey(store="homedepot"))

    assert lead["RecordTypeId"] == HOME_DEPOT_RECORD_TYPE_ID
    assert lead["LeadSource"] == "HDS"
    assert lead["Survey_Store__c"] == "Home Depot"


def test_custom_mappings():
    mappings = [
        {"surveyField": "contact_info.firstName", "salesforceField": "FirstName", "fieldType": "text"},
        {"surveyField": "contact_info.phone", "salesforceField": "MobilePhone", "fieldType": "text"},
        {"surveyField": "contact_info.state", "salesforceField": "State", "fieldType": "text"},
        {"surveyField": "buys_bottled_water", "salesforceField": "Bottled__c", "fieldType": "boolean"},
        {"surveyField": "tastes_odors", "salesforceField": "Odors__c", "fieldType": "text"},
        {"surveyField": "_employeeAlias", "salesforceField": "Surveyor__c", "fieldType": "text"},
        {"surveyField": "_store", "salesforceField": "Store__c", "fieldType": "text"},
        {"surveyField": "missing.path", "salesforceField": "Empty__c", "fieldType": "text"},
        {"surveyField": "", "salesforceField": "Ignored__c"},
    ]

    lead = map_survey_to_lead(_survey(), mappings)

    assert lead["FirstName"] == "Jane"
    assert lead["MobilePhone"] == "(850) 555-1234"
    assert lead["State"] == "FL"
    assert lead["Bottled__c"] is True
    assert lead["Odors__c"] == "tastes, odors"
    assert lead["Surveyor__c"] == "JOSM"
    assert lead["Store__c"] == "Lowes"
    assert lead["Empty__c"] == ""
    assert "Ignored__c" not in lead
    assert "LastName" not in lead
    assert lead["RecordTypeId"] == LOWES_RECORD_TYPE_ID


def test_state_abbreviation():
    assert get_state_abbreviation("Florida") == "FL"
    assert get_state_abbreviation(" new york ") == "NY"
    assert get_state_abbreviation("al") == "AL"
    assert get_state_abbreviation("Atlantis") == "Atlantis"
    assert get_state_abbreviation(None) == ""


def test_nested_value():
    assert get_nested_value({"a": {"b": 1}}, "a.b") == 1
    assert get_nested_value({"a": {"b": None}}, "a.b") == ""
    assert get_nested_value({"a": "x"}, "a.b") == ""


def test_fill_missing_location_uses_zip_lookup():
    calls = []
    answers = {"contact_info": {"zipCode": "32501", "city": "", "state": ""}}

    async def run():
        async with _zippopotam(calls) as client:
            return await fill_missing_location(answers, client=client)

    assert asyncio.run(run()) is True
    assert answers["contact_info"]["city"] == "Pensacola"
    assert answers["contact_info"]["state"] == "FL"
    assert calls == ["/us/32501"]


def test_fill_missing_location_skips_complete_address():
    calls = []
    answers = {"contact_info": {"zipCode": "32501", "city": "Pensacola", "state": "FL"}}

    async def run():
        async with _zippopotam(calls) as client:
            return await fill_missing_location(answers, client=client)

    assert asyncio.run(run()) is False
    assert calls == []


def test_zip_lookup_errors_do_not_raise():
    calls = []

    async def run():
        async with _zippopotam(calls) as client:
            return await lookup_zip_code("00000", client=client), await lookup_zip_code("abc", client=client)

    not_found, invalid = asyncio.run(run())

    assert not_found.success is False
    assert not_found.error == "Zip code not found. Please verify the zip code."
    assert invalid.success is False
    assert calls == ["/us/00000"]
