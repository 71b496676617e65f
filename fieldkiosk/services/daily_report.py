"""
Daily surveyor report
Survey outcomes, hours worked and inactivity per employee, sent by email and SMS
"""

import logging
from datetime import datetime, time, timedelta
from typing import Literal, Optional

import httpx
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .. import config
from ..email_templates import PERIOD_LABELS, daily_report_template
from ..integrations.errors import IntegrationError
from ..integrations.salesforce_mapping import store_label
from ..models import Employee, InactivityLog, TimeEntry, utcnow
from ..models_stats import EmployeeSurveyStats
from .email_service import compile_mjml_to_html, send_email
from .twilio_service import send_sms

logger = logging.getLogger(__name__)

ReportPeriod = Literal["today", "yesterday", "last_7_days"]


class ReportSettings(BaseModel):
    enabled: bool = True
    email_recipients: list[str] = []
    sms_recipients: list[str] = []
    include_survey_stats: bool = True
    include_time_clock_data: bool = True
    include_inactivity: bool = True
    report_period: ReportPeriod = "today"


def default_report_settings() -> ReportSettings:
    return ReportSettings(
        email_recipients=list(config.DAILY_REPORT_RECIPIENTS),
        sms_recipients=list(config.DAILY_REPORT_SMS_RECIPIENTS),
        report_period=config.DAILY_REPORT_PERIOD,
    )


def report_date_range(period: str, now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """Start of the first day and end of the last day covered by the period"""
    now = now or utcnow()
    end_of_today = datetime.combine(now.date(), time.max)
    if period == "yesterday":
        start = datetime.combine(now.date() - timedelta(days=1), time.min)
        return start, datetime.combine(start.date(), time.max)
    if period == "last_7_days":
        return datetime.combine(now.date() - timedelta(days=7), time.min), end_of_today
    return datetime.combine(now.date(), time.min), end_of_today


def _survey_stats(db: Session, employee_id: str, start: datetime, end: datetime) -> Optional[dict]:
    rows = (
        db.query(EmployeeSurveyStats)
        .filter(
            EmployeeSurveyStats.employee_id == employee_id,
            EmployeeSurveyStats.date >= start.date().isoformat(),
            EmployeeSurveyStats.date <= end.date().isoformat(),
        )
        .all()
    )
    if not rows:
        return None

    totals = {
        "bci_count": sum(r.bad_contact_count or 0 for r in rows),
        "dead_count": sum(r.dead_count or 0 for r in rows),
        "still_contacting_count": sum(r.still_contacting_count or 0 for r in rows),
        "demo_count": sum(r.demo_count or 0 for r in rows),
        "install_count": sum(r.install_count or 0 for r in rows),
        "total_surveys": sum(r.total_surveys or 0 for r in rows),
    }
    totals["install_rate"] = (
        totals["install_count"] / totals["total_surveys"] * 100 if totals["total_surveys"] > 0 else 0.0
    )
    return totals


def _time_clock(db: Session, employee_id: str, start: datetime, end: datetime) -> Optional[dict]:
    entries = (
        db.query(TimeEntry)
        .filter(TimeEntry.employee_id == employee_id, TimeEntry.clock_in >= start, TimeEntry.clock_in <= end)
        .order_by(TimeEntry.clock_in.desc())
        .all()
    )
    if not entries:
        return None

    total_hours = 0.0
    clock_ins = []
    for entry in entries:
        if entry.clock_out:
            total_hours += (entry.clock_out - entry.clock_in).total_seconds() / 3600
        clock_ins.append(
            {
                "date": entry.clock_in.strftime("%m/%d/%Y"),
                "clock_in": entry.clock_in.strftime("%I:%M %p"),
                "clock_out": entry.clock_out.strftime("%I:%M %p") if entry.clock_out else None,
                "store": entry.store_name or store_label(entry.store),
            }
        )
    return {"total_hours": round(total_hours, 2), "shifts_count": len(entries), "clock_ins": clock_ins}


def _inactivity(db: Session, employee_id: str, start: datetime, end: datetime) -> Optional[dict]:
    logs = (
        db.query(InactivityLog)
        .filter(
            InactivityLog.employee_id == employee_id,
            InactivityLog.detected_at >= start,
            InactivityLog.detected_at <= end,
        )
        .order_by(InactivityLog.detected_at.desc())
        .all()
    )
    if not logs:
        return None
    return {
        "total_inactive_minutes": sum(log.inactive_duration_minutes or 0 for log in logs),
        "inactive_count": len(logs),
        "incidents": [
            {
                "date": log.detected_at.strftime("%m/%d/%Y %I:%M %p"),
                "duration": log.inactive_duration_minutes or 0,
                "reason": log.notes or log.current_page or "Unknown",
            }
            for log in logs
        ],
    }


def build_employee_reports(db: Session, settings: ReportSettings, start: datetime, end: datetime) -> list[dict]:
    """One report per active employee; employees without any data are left out"""
    employees = db.query(Employee).filter(Employee.status == "active").all()
    reports = []
    for employee in employees:
        report = {
            "employee_id": employee.id,
            "employee_name": employee.full_name,
            "alias": employee.alias,
            "survey_stats": _survey_stats(db, employee.id, start, end) if settings.include_survey_stats else None,
            "time_clock": _time_clock(db, employee.id, start, end) if settings.include_time_clock_data else None,
            "inactivity": _inactivity(db, employee.id, start, end) if settings.include_inactivity else None,
        }
        if report["survey_stats"] or report["time_clock"] or report["inactivity"]:
            reports.append(report)
    return reports


def report_totals(reports: list[dict]) -> dict:
    return {
        "surveys": sum((r["survey_stats"] or {}).get("total_surveys", 0) for r in reports),
        "installs": sum((r["survey_stats"] or {}).get("install_count", 0) for r in reports),
        "hours": sum((r["time_clock"] or {}).get("total_hours", 0) for r in reports),
        "inactive_hours": sum((r["inactivity"] or {}).get("total_inactive_minutes", 0) for r in reports) / 60,
    }


def _installs(report: dict) -> int:
    return (report["survey_stats"] or {}).get("install_count", 0)


def generate_email_report(
    reports: list[dict],
    period: str,
    start_date: str,
    end_date: str,
    generated_at: Optional[datetime] = None,
) -> tuple[str, str]:
    """Returns (subject, MJML body); employees sorted by installs, best first"""
    period_label = PERIOD_LABELS.get(period, "Today")
    date_range = start_date if start_date == end_date else f"{start_date} to {end_date}"
    subject = f"📊 Daily Surveyor Report - {period_label} ({date_range})"
    mjml_content = daily_report_template(
        sorted(reports, key=_installs, reverse=True),
        report_totals(reports),
        period_label,
        date_range,
        (generated_at or utcnow()).strftime("%m/%d/%Y %I:%M %p UTC"),
    )
    return subject, mjml_content


def generate_sms_report(reports: list[dict], period: str) -> str:
    period_label = PERIOD_LABELS.get(period, "Today")
    totals = report_totals(reports)

    lines = [
        f"📊 Daily Report ({period_label})",
        "",
        "Team Summary:",
        f"• {totals['surveys']} surveys",
        f"• {totals['installs']} installs",
        f"• {totals['hours']:.1f} hrs worked",
        f"• {totals['inactive_hours']:.1f} hrs inactive",
        "",
    ]

    top_performers = sorted((r for r in reports if _installs(r) > 0), key=_installs, reverse=True)[:3]
    if top_performers:
        lines.append("Top Performers:")
        for i, report in enumerate(top_performers, start=1):
            stats = report["survey_stats"]
            lines.append(
                f"{i}. {report['employee_name']}: {stats['install_count']} installs ({stats['install_rate']:.0f}%)"
            )
    return "\n".join(lines) + "\n"


async def run_daily_report(
    db: Session,
    settings: Optional[ReportSettings] = None,
    manual: bool = False,
    http_client: Optional[httpx.AsyncClient] = None,
) -> dict:
    """Build the report and send it to every configured recipient"""
    settings = settings or default_report_settings()
    if not settings.enabled and not manual:
        logger.info("Daily reports disabled in settings")
        return {"success": True, "message": "Reports disabled"}

    start, end = report_date_range(settings.report_period)
    start_date, end_date = start.date().isoformat(), end.date().isoformat()
    logger.info(f"📊 Generating daily report (period: {settings.report_period}, {start_date} to {end_date})")

    if db.query(Employee).filter(Employee.status == "active").count() == 0:
        logger.info("No active employees found")
        return {"success": True, "message": "No employees to report on"}

    reports = build_employee_reports(db, settings, start, end)
    logger.info(f"Generated {len(reports)} employee reports")

    subject, mjml_content = generate_email_report(reports, settings.report_period, start_date, end_date)
    sms_body = generate_sms_report(reports, settings.report_period)

    emails_sent = 0
    if settings.email_recipients:
        html_content = compile_mjml_to_html(mjml_content)
        for email in settings.email_recipients:
            try:
                success, error = await send_email(
                    db,
                    email,
                    subject,
                    html_content,
                    is_html=True,
                    message_type="daily_report",
                    http_client=http_client,
                )
            except IntegrationError as e:
                logger.error(f"❌ Failed to send report email to {email}: {e.message}")
                continue
            if success:
                emails_sent += 1
            else:
                logger.error(f"❌ Failed to send report email to {email}: {error}")

    sms_sent = 0
    for phone in settings.sms_recipients:
        try:
            success, result = await send_sms(db, phone, sms_body, message_type="daily_report", http_client=http_client)
        except IntegrationError as e:
            logger.error(f"❌ Failed to send report SMS to {phone}: {e.message}")
            continue
        if success:
            sms_sent += 1
        else:
            logger.error(f"❌ Failed to send report SMS to {phone}: {result}")

    logger.info(f"✅ Daily report completed: {emails_sent} emails, {sms_sent} SMS sent")
    return {
        "success": True,
        "employee_reports_generated": len(reports),
        "emails_sent": emails_sent,
        "sms_sent": sms_sent,
        "report_period": settings.report_period,
        "date_range": {"start": start_date, "end": end_date},
    }
