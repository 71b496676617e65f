"""
Salesforce Routes
Server-side Salesforce actions and Lead field metadata for field mapping
"""

import logging
from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from ..integrations.errors import IntegrationError
from ..integrations.salesforce import SalesforceClient
from ..webhook_security import require_sync_secret

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/salesforce", tags=["salesforce"], dependencies=[Depends(require_sync_secret)])

SalesforceAction = Literal[
    "test_connection",
    "check_duplicate",
    "create_lead",
    "verify_record",
    "delete_record",
    "run_report",
]


class SalesforceActionRequest(BaseModel):
    action: SalesforceAction
    data: dict[str, Any] = {}


def get_salesforce_client() -> SalesforceClient:
    return SalesforceClient()


def _require(data: dict[str, Any], key: str) -> Any:
    value = data.get(key)
    if not value:
        raise HTTPException(status_code=400, detail=f"Missing required field: {key}")
    return value


async def dispatch_action(client: SalesforceClient, action: str, data: dict[str, Any]) -> dict[str, Any]:
    if action == "test_connection":
        return await client.test_connection()

    if action == "check_duplicate":
        result = await client.check_duplicate(_require(data, "phone"))
        if result.get("is_duplicate"):
            result["record_url"] = client.record_url(result["record_type"], result["salesforce_id"])
        return result

    if action == "create_lead":
        return {"success": True, "salesforce_id": await client.create_lead(_require(data, "lead_data"))}

    if action == "verify_record":
        return await client.verify_record(_require(data, "record_id"))

    if action == "delete_record":
        await client.delete_record(_require(data, "record_id"), data.get("record_type") or "Lead")
        return {"success": True}

    return await client.run_report(_require(data, "report_id"))


@router.post("/sync")
async def salesforce_sync(request: SalesforceActionRequest, client: SalesforceClient = Depends(get_salesforce_client)):
    logger.info(f"🔄 Salesforce action: {request.action}")
    try:
        return await dispatch_action(client, request.action, request.data)
    except IntegrationError as e:
        logger.error(f"❌ Salesforce {request.action} failed: {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message) from e


@router.get("/fields")
async def get_lead_fields(
    refresh: bool = Query(False),
    client: SalesforceClient = Depends(get_salesforce_client),
):
    """Lead fields for the field-mapping screen (cached for 30 minutes)"""
    try:
        fields = await client.describe_lead_fields(use_cache=not refresh)
    except IntegrationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return {"success": True, "fields": fields, "total": len(fields)}


@router.delete("/fields/cache")
async def clear_lead_field_cache(client: SalesforceClient = Depends(get_salesforce_client)):
    client.clear_field_cache()
    return {"success": True}
