"""ADP bridge: pushes completed shifts and onboarded employees to ADP Workforce Now"""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..integrations.adp import ADPClient, transform_employee_onboarding, transform_time_entry
from ..integrations.errors import IntegrationError
from ..models import Employee, OnboardingData, TimeEntry
from ..security_utils import decrypt_personal_info

logger = logging.getLogger(__name__)

TIME_ENTRY_BATCH_SIZE = 50
EMPLOYEE_BATCH_SIZE = 20


def _empty_results() -> dict[str, Any]:
    return {"synced": 0, "failed": 0, "errors": []}


async def sync_time_entries(db: Session, client: Optional[ADPClient] = None) -> dict[str, Any]:
    """Completed, unsynced shifts -> ADP team time cards"""
    client = client or ADPClient()
    results = _empty_results()

    rows = (
        db.query(TimeEntry, Employee)
        .join(Employee, TimeEntry.employee_id == Employee.id)
        .filter(TimeEntry.synced_to_adp.is_(False), TimeEntry.clock_out.isnot(None))
        .order_by(TimeEntry.clock_in.asc())
        .limit(TIME_ENTRY_BATCH_SIZE)
        .all()
    )
    if not rows:
        logger.info("ℹ️ No time entries to sync")
        return results

    logger.info(f"🔄 Syncing {len(rows)} time entries to ADP...")
    for entry, employee in rows:
        if not employee.adp_employee_id:
            logger.warning(f"⚠️ Employee {employee.full_name} has no ADP ID - skipping")
            results["failed"] += 1
            results["errors"].append(f"{employee.email}: No ADP employee ID configured")
            continue

        try:
            await client.submit_time_card(
                employee.adp_employee_id,
                transform_time_entry(entry.to_dict(), employee.to_dict()),
            )
        except IntegrationError as e:
            results["failed"] += 1
            results["errors"].append(f"{employee.email}: {e.message}")
            logger.error(f"❌ Failed to sync time entry {entry.id}: {e.message}")
            continue

        entry.synced_to_adp = True
        db.commit()
        results["synced"] += 1
        logger.info(f"✅ Synced time entry for {employee.full_name}")

    logger.info(f"✅ Time entry sync complete: {results['synced']} synced, {results['failed']} failed")
    return results


async def sync_employee_onboarding(db: Session, client: Optional[ADPClient] = None) -> dict[str, Any]:
    """Employees who finished onboarding and have no ADP id yet -> ADP workers"""
    client = client or ADPClient()
    results = _empty_results()

    rows = (
        db.query(Employee, OnboardingData)
        .join(OnboardingData, OnboardingData.employee_id == Employee.id)
        .filter(Employee.onboarding_complete.is_(True), Employee.adp_employee_id.is_(None))
        .limit(EMPLOYEE_BATCH_SIZE)
        .all()
    )
    if not rows:
        logger.info("ℹ️ No employees to sync")
        return results

    logger.info(f"🔄 Syncing {len(rows)} employees to ADP...")
    for employee, onboarding in rows:
        employee_data = employee.to_dict()
        employee_data["personal_info"] = decrypt_personal_info(employee.personal_info)
        onboarding_data = onboarding.to_dict()
        onboarding_data["personal_info"] = decrypt_personal_info(onboarding.personal_info)

        try:
            response = await client.create_worker(transform_employee_onboarding(employee_data, onboarding_data))
        except IntegrationError as e:
            results["failed"] += 1
            results["errors"].append(f"{employee.email}: {e.message}")
            logger.error(f"❌ Failed to sync employee {employee.email}: {e.message}")
            continue

        workers = response.get("workers") or [{}]
        adp_worker_id = workers[0].get("associateOID")
        if not adp_worker_id:
            results["failed"] += 1
            results["errors"].append(f"{employee.email}: No worker ID returned from ADP")
            logger.error(f"❌ No worker ID returned from ADP for {employee.email}")
            continue

        employee.adp_employee_id = adp_worker_id
        db.commit()
        results["synced"] += 1
        logger.info(f"✅ Synced employee {employee.full_name} (ADP ID: {adp_worker_id})")

    logger.info(f"✅ Employee sync complete: {results['synced']} synced, {results['failed']} failed")
    return results


async def sync_all(db: Session, client: Optional[ADPClient] = None) -> dict[str, Any]:
    client = client or ADPClient()
    time_results = await sync_time_entries(db, client)
    employee_results = await sync_employee_onboarding(db, client)
    return {
        "time_entries": time_results,
        "employees": employee_results,
        "total_synced": time_results["synced"] + employee_results["synced"],
        "total_failed": time_results["failed"] + employee_results["failed"],
    }
