"""
MJML Email Templates
Report emails use MJML for responsive, cross-client compatibility
"""

from html import escape
from typing import Optional

# Brand colors - RainSoft blue
THEME = {
    "primary": "#004990",
    "primary_light": "#e6eef7",
    "background": "#f5f5f5",
    "card_bg": "#ffffff",
    "text_primary": "#333333",
    "text_muted": "#666666",
    "border": "#dddddd",
    "success": "#4CAF50",
    "warning": "#F44336",
}

PERIOD_LABELS = {"today": "Today", "yesterday": "Yesterday", "last_7_days": "Last 7 Days"}


def get_base_template(title: str, preview_text: str, content_sections: str, footer_note: Optional[str] = None) -> str:
    """Base MJML template wrapper for report emails"""
    footer = ""
    if footer_note:
        footer = f"""
            <mj-text align="center" font-size="12px" color="#999999" padding="8px 0 0 0">
              {footer_note}
            </mj-text>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="Arial, sans-serif" />
          <mj-text font-size="14px" line-height="1.6" color="{THEME['text_primary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['primary']}" padding="20px">
          <mj-column>
            <mj-text align="center" color="#ffffff" font-size="24px" font-weight="700" padding="0">
              {title}
            </mj-text>
          </mj-column>
        </mj-section>

        {content_sections}

        <!-- Footer -->
        <mj-section padding="20px">
          <mj-column>
            <mj-text align="center" font-size="12px" color="#999999" padding="0">
              This is an automated daily report from the RainSoft Survey System
            </mj-text>
            {footer}
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _summary_item(value: str, label: str, color: str) -> str:
    return f"""
          <mj-column>
            <mj-text align="center" font-size="28px" font-weight="700" color="{color}" padding="0">{value}</mj-text>
            <mj-text align="center" font-size="12px" color="{THEME['text_muted']}" padding="0">{label}</mj-text>
          </mj-column>
    """


def _table(headers: list[str], rows: list[list[str]]) -> str:
    head = "".join(f'<th style="text-align:left;padding:6px;">{h}</th>' for h in headers)
    body = "".join(
        "<tr>" + "".join(f'<td style="padding:6px;border-top:1px solid #dddddd;">{c}</td>' for c in row) + "</tr>"
        for row in rows
    )
    return f"""
            <mj-table font-size="13px" padding="8px 0">
              <tr style="background:{THEME['background']};">{head}</tr>
              {body}
            </mj-table>
    """


def _employee_section(report: dict) -> str:
    name = escape(report["employee_name"])
    if report.get("alias"):
        name += f" ({escape(report['alias'])})"
    parts = [
        f"""
            <mj-text font-size="18px" font-weight="700" color="{THEME['primary']}" padding="0 0 8px 0">{name}</mj-text>
        """
    ]

    stats = report.get("survey_stats")
    if stats:
        parts.append(
            f"""
            <mj-text font-weight="700" padding="8px 0 0 0">📈 Survey Outcomes</mj-text>
            """
            + _table(
                ["BCI", "Dead", "Still Contacting", "Demo", "Installs", "Install Rate"],
                [
                    [
                        str(stats["bci_count"]),
                        str(stats["dead_count"]),
                        str(stats["still_contacting_count"]),
                        str(stats["demo_count"]),
                        f'<span style="color:{THEME["success"]};font-weight:700;">{stats["install_count"]}</span>',
                        f"{stats['install_rate']:.1f}%",
                    ]
                ],
            )
            + f"""
            <mj-text padding="0"><strong>Total Surveys:</strong> {stats['total_surveys']}</mj-text>
            """
        )

    time_clock = report.get("time_clock")
    if time_clock:
        parts.append(
            f"""
            <mj-text font-weight="700" padding="12px 0 0 0">⏰ Time Clock</mj-text>
            <mj-text padding="0">
              <strong>Total Hours:</strong> {time_clock['total_hours']} hrs | <strong>Shifts:</strong> {time_clock['shifts_count']}
            </mj-text>
            """
        )
        if time_clock["clock_ins"]:
            parts.append(
                _table(
                    ["Date", "Clock In", "Clock Out", "Store"],
                    [
                        [
                            shift["date"],
                            shift["clock_in"],
                            shift["clock_out"] or f'<span style="color:{THEME["warning"]};">Active</span>',
                            escape(shift["store"]),
                        ]
                        for shift in time_clock["clock_ins"]
                    ],
                )
            )

    inactivity = report.get("inactivity")
    if inactivity:
        minutes = inactivity["total_inactive_minutes"]
        color = THEME["warning"] if minutes > 120 else THEME["text_primary"]
        parts.append(
            f"""
            <mj-text font-weight="700" padding="12px 0 0 0">⏸️ Inactivity</mj-text>
            <mj-text color="{color}" padding="0">
              <strong>Total Inactive Time:</strong> {minutes / 60:.1f} hrs ({inactivity['inactive_count']} incidents)
            </mj-text>
            """
        )
        # Incident detail only for short lists
        if 0 < len(inactivity["incidents"]) <= 5:
            parts.append(
                _table(
                    ["Date/Time", "Duration", "Reason"],
                    [
                        [incident["date"], f"{incident['duration']} min", escape(incident["reason"])]
                        for incident in inactivity["incidents"]
                    ],
                )
            )

    content = "".join(parts)
    return f"""
        <mj-section background-color="{THEME['card_bg']}" border="1px solid {THEME['border']}" padding="16px" border-radius="8px">
          <mj-column>
            {content}
          </mj-column>
        </mj-section>
        <mj-section padding="6px 0"><mj-column></mj-column></mj-section>
    """


def daily_report_template(
    reports: list[dict],
    totals: dict,
    period_label: str,
    date_range: str,
    generated_at: str,
) -> str:
    """Daily surveyor report MJML template; reports are already sorted"""
    inactive_color = THEME["warning"] if totals["inactive_hours"] > 5 else THEME["primary"]
    inactive_item = _summary_item(f"{totals['inactive_hours']:.1f}", "Inactive Hours", inactive_color)
    summary_items = "".join(
        [
            _summary_item(str(totals["surveys"]), "Total Surveys", THEME["primary"]),
            _summary_item(str(totals["installs"]), "Installs", THEME["primary"]),
            _summary_item(f"{totals['hours']:.1f}", "Hours Worked", THEME["primary"]),
            inactive_item,
        ]
    )
    summary = f"""
        <mj-section background-color="{THEME['card_bg']}" padding="16px 0 0 0">
          <mj-column>
            <mj-text font-size="18px" font-weight="700" padding="0 20px">Team Summary</mj-text>
          </mj-column>
        </mj-section>
        <mj-section background-color="{THEME['card_bg']}" padding="8px 0 20px 0">
          {summary_items}
        </mj-section>
        <mj-section padding="16px 0 8px 0">
          <mj-column>
            <mj-text font-size="18px" font-weight="700" padding="0 20px">Employee Details ({len(reports)})</mj-text>
          </mj-column>
        </mj-section>
    """

    return get_base_template(
        title="📊 Daily Surveyor Report",
        preview_text=f"{period_label} - {date_range}",
        content_sections=summary + "".join(_employee_section(r) for r in reports),
        footer_note=f"Report generated at {generated_at}",
    )
