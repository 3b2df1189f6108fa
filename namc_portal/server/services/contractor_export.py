"""
Contractor registry export.

CSV rows follow the fixed 36-column layout outreach staff import into their
spreadsheets: ``Yes``/``No`` booleans, ``YYYY-MM-DD`` dates and
classifications joined with ``"; "``.
"""

from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Any, Iterable, List, Optional

from namc_portal.core.database.entities.contractors import CaliforniaContractor

CSV_HEADERS = [
    "License Number",
    "Business Name",
    "DBA Name",
    "Email",
    "Email Validated",
    "Email Confidence",
    "Email Source",
    "Phone",
    "Phone Validated",
    "Phone Source",
    "Website",
    "Address",
    "City",
    "State",
    "ZIP Code",
    "County",
    "License Status",
    "License Type",
    "Issue Date",
    "Expire Date",
    "Primary Classification",
    "All Classifications",
    "Business Type",
    "Years in Business",
    "Employee Count",
    "Priority Score",
    "Data Quality Score",
    "Outreach Status",
    "Last Contact Date",
    "Contact Attempts",
    "Membership Interest",
    "Is NAMC Member",
    "Lead Score",
    "Notes",
    "Created At",
    "Updated At",
]


def _text(value: Optional[Any]) -> str:
    return "" if value is None else str(value)


def _number(value: Optional[float]) -> str:
    if value is None:
        return ""
    return f"{value:g}" if isinstance(value, float) else str(value)


def _flag(value: bool) -> str:
    return "Yes" if value else "No"


def _day(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


def csv_row(c: CaliforniaContractor) -> List[str]:
    return [
        _text(c.license_number),
        _text(c.business_name),
        _text(c.dba_name),
        _text(c.email),
        _flag(c.email_validated),
        _number(c.email_confidence),
        _text(c.email_source),
        _text(c.phone),
        _flag(c.phone_validated),
        _text(c.phone_source),
        _text(c.website),
        _text(c.address),
        _text(c.city),
        _text(c.state),
        _text(c.zip_code),
        _text(c.county),
        _text(c.license_status),
        _text(c.license_type),
        _day(c.issue_date),
        _day(c.expire_date),
        _text(c.primary_classification),
        "; ".join(c.get_classifications_list()),
        _text(c.business_type),
        _number(c.years_in_business),
        _number(c.employee_count),
        _number(c.priority_score),
        _number(c.data_quality_score),
        _text(c.outreach_status),
        _day(c.last_contact_date),
        str(c.contact_attempts or 0),
        _text(c.membership_interest),
        _flag(c.is_namc_member),
        _number(c.lead_score),
        _text(c.notes),
        _day(c.created_at),
        _day(c.updated_at),
    ]


def to_csv(contractors: Iterable[CaliforniaContractor]) -> str:
    """Render contractors as CSV; fields with commas, quotes or newlines are quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for contractor in contractors:
        writer.writerow(csv_row(contractor))
    return buffer.getvalue()


def export_filename(day: datetime) -> str:
    return f"namc-contractors-{day.strftime('%Y-%m-%d')}.csv"
