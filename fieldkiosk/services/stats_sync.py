"""
Employee survey stats sync
Pulls outcome counts from Salesforce reports into employee_survey_stats
"""

import logging
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from .. import config
from ..integrations.salesforce import SalesforceClient
from ..models import Employee, utcnow
from ..models_stats import EmployeeSurveyStats, LeadStatusMapping, StatsSyncLog

logger = logging.getLogger(__name__)


class StatsSyncError(Exception):
    pass


def report_rows(report: dict[str, Any]) -> Iterable[tuple[str, str, int]]:
    """(surveyor, status, count) from a summary report; columns are Surveyor, Status, Record Count"""
    rows = ((report.get("factMap") or {}).get("T") or {}).get("rows") or []
    for row in rows:
        cells = row.get("dataCells") or []
        if len(cells) < 3:
            continue
        surveyor = str(cells[0].get("value") or "").strip()
        status = str(cells[1].get("value") or "").strip()
        try:
            count = int(str(cells[2].get("value") or "0"))
        except ValueError:
            count = 0
        if not surveyor or not status or count == 0:
            continue
        yield surveyor, status, count


def build_surveyor_index(employees: list[Employee]) -> dict[str, str]:
    """Surveyor value -> employee id; aliases take priority over name variations"""
    index: dict[str, str] = {}
    name_keys: dict[str, str] = {}
    for employee in employees:
        alias = (employee.alias or "").strip()
        first_name = (employee.first_name or "").strip()
        last_name = (employee.last_name or "").strip()
        full_name = f"{first_name} {last_name}".strip()
        reverse_name = f"{last_name}, {first_name}".strip()
        email_prefix = (employee.email or "").split("@")[0].strip()

        if alias:
            index.setdefault(alias, employee.id)
            index.setdefault(alias.lower(), employee.id)

        for key in (full_name, reverse_name, first_name, last_name, email_prefix):
            if key:
                name_keys[key] = employee.id
        for key in (full_name, reverse_name, first_name, last_name):
            if key:
                name_keys[key.lower()] = employee.id

    for key, employee_id in name_keys.items():
        index.setdefault(key, employee_id)
    return index


def match_surveyor(index: dict[str, str], surveyor: str) -> Optional[str]:
    return index.get(surveyor) or index.get(surveyor.lower())


def _empty_stats() -> dict[str, int]:
    return {
        "bad_contact_count": 0,
        "dead_count": 0,
        "still_contacting_count": 0,
        "install_count": 0,
        "demo_count": 0,
        "total_surveys": 0,
    }


def accumulate(
    report: dict[str, Any],
    mappings: dict[str, str],
    stats_by_surveyor: dict[str, dict[str, int]],
    label: str,
) -> None:
    """Add one report's rows into per-surveyor counts; mappings is status -> category"""
    for surveyor, status, count in report_rows(report):
        category = mappings.get(status)
        if category is None:
            logger.info(f"⚠️ Unmapped {label} status: '{status}' - skipping")
            continue
        stats = stats_by_surveyor.setdefault(surveyor, _empty_stats())
        stats[f"{category}_count"] += count
        stats["total_surveys"] += count


def upsert_stats(db: Session, employee_id: str, date: str, counts: dict[str, int]) -> EmployeeSurveyStats:
    row = (
        db.query(EmployeeSurveyStats)
        .filter(EmployeeSurveyStats.employee_id == employee_id, EmployeeSurveyStats.date == date)
        .first()
    )
    if row is None:
        row = EmployeeSurveyStats(employee_id=employee_id, date=date)
        db.add(row)
    for key, value in counts.items():
        setattr(row, key, value)
    row.last_synced_at = utcnow()
    return row


async def run_stats_sync(
    db: Session,
    client: Optional[SalesforceClient] = None,
    lead_report_id: Optional[str] = None,
    appointment_report_id: Optional[str] = None,
) -> dict[str, Any]:
    """Run the configured reports and store today's counts per employee"""
    client = client or SalesforceClient()
    lead_report_id = lead_report_id or config.SALESFORCE_LEAD_REPORT_ID
    appointment_report_id = appointment_report_id or config.SALESFORCE_APPOINTMENT_REPORT_ID

    started_at = utcnow()
    logger.info(f"🔄 Starting stats sync at {started_at.isoformat()}")
    sync_log = StatsSyncLog(sync_started_at=started_at, status="running", records_processed=0)
    db.add(sync_log)
    db.commit()
    db.refresh(sync_log)

    try:
        mappings = db.query(LeadStatusMapping).all()
        if not mappings:
            raise StatsSyncError("No status mappings configured. Configure lead status mappings first")
        lead_mappings = {m.salesforce_status: m.category for m in mappings if m.object_type == "lead"}
        appointment_mappings = {m.salesforce_status: m.category for m in mappings if m.object_type == "appointment"}
        logger.info(f"✓ Loaded {len(mappings)} status mappings")

        if not lead_report_id and not appointment_report_id:
            raise StatsSyncError(
                "Missing Salesforce Report IDs. Set SALESFORCE_LEAD_REPORT_ID and/or SALESFORCE_APPOINTMENT_REPORT_ID"
            )

        stats_by_surveyor: dict[str, dict[str, int]] = {}
        if lead_report_id:
            logger.info(f"📊 Fetching Lead report: {lead_report_id}")
            accumulate(await client.run_report(lead_report_id), lead_mappings, stats_by_surveyor, "Lead")
        if appointment_report_id:
            logger.info(f"📊 Fetching Appointment report: {appointment_report_id}")
            accumulate(
                await client.run_report(appointment_report_id),
                appointment_mappings,
                stats_by_surveyor,
                "Appointment",
            )

        index = build_surveyor_index(db.query(Employee).all())
        per_employee: dict[str, dict[str, int]] = {}
        unmatched = []
        for surveyor, counts in stats_by_surveyor.items():
            employee_id = match_surveyor(index, surveyor)
            if employee_id is None:
                unmatched.append(surveyor)
                continue
            totals = per_employee.setdefault(employee_id, _empty_stats())
            for key, value in counts.items():
                totals[key] += value

        if unmatched:
            logger.warning(f"⚠️ Unmatched surveyors ({len(unmatched)}): {', '.join(sorted(unmatched))}")

        today = utcnow().date().isoformat()
        for employee_id, counts in per_employee.items():
            upsert_stats(db, employee_id, today, counts)

        sync_log.status = "completed"
        sync_log.sync_completed_at = utcnow()
        sync_log.records_processed = len(per_employee)
        db.commit()
    except Exception as e:
        db.rollback()
        sync_log.status = "failed"
        sync_log.sync_completed_at = utcnow()
        sync_log.error_message = str(e)
        db.commit()
        logger.error(f"❌ Stats sync failed: {e}")
        raise

    logger.info(f"✅ Stats sync completed: {len(per_employee)} employee records")
    return {
        "success": True,
        "records_processed": len(per_employee),
        "unmatched_surveyors": sorted(unmatched),
        "sync_start_time": started_at.isoformat(),
        "sync_end_time": sync_log.sync_completed_at.isoformat(),
        "lead_report_processed": bool(lead_report_id),
        "appointment_report_processed": bool(appointment_report_id),
    }
