"""
Outbound CRM sync
Drains the device outbound queue into Salesforce (surveys) and Zapier (appointments)
"""

import logging
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import config
from ..integrations.errors import IntegrationError
from ..integrations.salesforce import SalesforceClient
from ..integrations.salesforce_mapping import fill_missing_location, map_survey_to_lead, survey_phone
from ..integrations.zapier import ZapierClient
from ..models import Survey, TimeEntry
from ..models_local import OutboundSyncItem
from ..shared.validators import format_phone_display
from ..storage.failsafe import SURVEYS, TIME_ENTRIES, FailsafeStorage, cloud_upserter
from ..storage.local_store import FIELD_MAPPING_KEY
from ..storage.sync_log import add_failed_sync_item, add_sync_log, get_outbound_queue

logger = logging.getLogger(__name__)


def build_storage(local_db: Session, db: Session) -> FailsafeStorage:
    return FailsafeStorage(
        local_db,
        {
            SURVEYS: cloud_upserter(db, Survey),
            TIME_ENTRIES: cloud_upserter(db, TimeEntry),
        },
    )


def is_cloud_reachable(db: Session) -> bool:
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"⚠️ Cloud database unreachable: {e}")
        return False


def _current_survey(storage: FailsafeStorage, db: Session, survey_id: str) -> Optional[dict]:
    """Freshest copy of the survey: device store first, then the cloud; None once it has been deleted"""
    local = storage.get(SURVEYS, survey_id)
    if local is not None:
        return local
    try:
        survey = db.get(Survey, survey_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"⚠️ Could not look up survey {survey_id} in the cloud: {e}")
        return None
    return survey.to_dict() if survey is not None else None


def _survey_deleted(storage: FailsafeStorage, db: Session, survey_id: str) -> bool:
    """True only when neither store has the survey; an unreachable cloud counts as unknown"""
    if storage.get(SURVEYS, survey_id) is not None:
        return False
    try:
        return db.get(Survey, survey_id) is None
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"⚠️ Could not look up survey {survey_id} in the cloud: {e}")
        return False


def _update_survey(storage: FailsafeStorage, db: Session, survey_id: str, updates: dict[str, Any]) -> None:
    current = _current_survey(storage, db, survey_id)
    if current is None:
        logger.warning(f"⚠️ Survey {survey_id} no longer exists, not applying sync flags")
        return
    record = Survey.normalize({**current, **updates})
    result = storage.save(SURVEYS, record)
    if not result.success:
        logger.error(f"❌ Could not update survey {survey_id}: {result.error}")


async def _sync_survey(
    storage: FailsafeStorage,
    db: Session,
    survey: dict,
    sf_client: SalesforceClient,
    custom_mappings: Optional[list[dict]],
) -> str:
    """Returns skipped, duplicate or synced"""
    if survey.get("category") == "renter":
        logger.info(f"⏭️ Skipping renter survey {survey['id']} (not synced to Salesforce)")
        return "skipped"

    phone = survey_phone(survey)
    if not phone:
        logger.info(f"⏭️ Skipping survey {survey['id']} without phone number")
        return "skipped"

    duplicate = await sf_client.check_duplicate(format_phone_display(phone))
    if duplicate.get("is_duplicate"):
        logger.warning(f"⚠️ Duplicate detected for survey {survey['id']}, adding to review queue")
        _update_survey(
            storage,
            db,
            survey["id"],
            {
                "is_duplicate": True,
                "duplicate_info": duplicate,
                "synced_to_salesforce": True,
                "sync_error": None,
            },
        )
        return "duplicate"

    answers = dict(survey.get("answers") or {})
    answers["contact_info"] = dict(answers.get("contact_info") or {})
    if await fill_missing_location(answers):
        survey = {**survey, "answers": answers}

    lead_id = await sf_client.create_lead(map_survey_to_lead(survey, custom_mappings))
    _update_survey(
        storage,
        db,
        survey["id"],
        {
            "answers": answers,
            "synced_to_salesforce": True,
            "salesforce_id": lead_id,
            "sync_error": None,
        },
    )
    return "synced"


async def _sync_appointment(storage: FailsafeStorage, db: Session, survey: dict, zapier: ZapierClient) -> None:
    await zapier.send_appointment(survey)
    _update_survey(storage, db, survey["id"], {"synced_to_zapier": True, "sync_error": None})


def _record_failure(storage: FailsafeStorage, db: Session, item: OutboundSyncItem, error: str) -> None:
    updates: dict[str, Any] = {"sync_error": error}
    if item.item_type == "appointment":
        updates["synced_to_zapier"] = False
    else:
        updates["synced_to_salesforce"] = False
    _update_survey(storage, db, item.record_id, updates)


async def process_outbound_queue(
    local_db: Session,
    db: Session,
    sf_client: Optional[SalesforceClient] = None,
    zapier: Optional[ZapierClient] = None,
) -> dict[str, int]:
    """
    Process every queued hand-off once, oldest first.

    Successful and skipped items leave the queue. Failed items stay with an
    incremented retry count until MAX_SYNC_RETRIES, then move to the failed
    items log.
    """
    queue = get_outbound_queue(local_db)
    if not queue:
        logger.info("✓ Outbound sync queue empty")
        return {"synced": 0, "failed": 0, "duplicates": 0}

    sf_client = sf_client or SalesforceClient()
    zapier = zapier or ZapierClient()
    storage = build_storage(local_db, db)
    custom_mappings = storage.kv.get(FIELD_MAPPING_KEY) or None

    logger.info(f"🔄 Processing {len(queue)} items in outbound sync queue...")
    synced = failed = duplicates = 0
    errors: list[str] = []

    for item in queue:
        logger.info(f"🔄 Syncing {item.item_type} {item.record_id} (attempt {item.retry_count + 1})")
        if _survey_deleted(storage, db, item.record_id):
            logger.info(f"🗑️ Survey {item.record_id} was deleted, dropping queued {item.item_type}")
            local_db.delete(item)
            local_db.commit()
            continue
        try:
            if item.item_type == "survey":
                outcome = await _sync_survey(storage, db, item.payload, sf_client, custom_mappings)
                if outcome == "duplicate":
                    duplicates += 1
            elif item.item_type == "appointment":
                await _sync_appointment(storage, db, item.payload, zapier)
            else:
                logger.warning(f"⚠️ Unknown outbound item type '{item.item_type}', dropping")
        except IntegrationError as e:
            item.retry_count = (item.retry_count or 0) + 1
            item.last_error = e.message
            logger.error(f"❌ Sync failed for {item.item_type} {item.record_id}: {e.message}")
            _record_failure(storage, db, item, e.message)

            if item.retry_count >= config.MAX_SYNC_RETRIES:
                failed += 1
                errors.append(f"{item.item_type} {item.record_id}: {e.message}")
                add_failed_sync_item(local_db, item, e.message)
                local_db.delete(item)
            else:
                logger.info(f"⏳ Will retry ({item.retry_count}/{config.MAX_SYNC_RETRIES})")
            local_db.commit()
            continue

        synced += 1
        local_db.delete(item)
        local_db.commit()

    queue_size = len(get_outbound_queue(local_db))
    add_sync_log(local_db, synced, failed, duplicates, queue_size, errors)
    logger.info(
        f"✅ Sync complete: {synced} synced, {failed} failed permanently, {duplicates} duplicates detected"
    )
    return {"synced": synced, "failed": failed, "duplicates": duplicates}


async def run_sync_cycle(
    local_db: Session,
    db: Session,
    sf_client: Optional[SalesforceClient] = None,
    zapier: Optional[ZapierClient] = None,
) -> dict[str, Any]:
    """Local-to-cloud sweep, retention pruning, then the outbound queue"""
    if not is_cloud_reachable(db):
        logger.info("📴 Offline - skipping sync (data remains safely in queue)")
        return {"online": False, "cloud": {}, "pruned": 0, "outbound": {"synced": 0, "failed": 0, "duplicates": 0}}

    storage = build_storage(local_db, db)
    cloud = storage.sync_to_cloud()
    pruned = storage.prune_synced(config.LOCAL_RETENTION_DAYS)
    outbound = await process_outbound_queue(local_db, db, sf_client, zapier)
    return {"online": True, "cloud": cloud, "pruned": pruned, "outbound": outbound}


def sync_status(local_db: Session, db: Session) -> dict[str, Any]:
    storage = build_storage(local_db, db)
    return {
        "cloud_reachable": is_cloud_reachable(db),
        "storage": storage.health(),
        "outbound_queue_size": len(get_outbound_queue(local_db)),
    }
