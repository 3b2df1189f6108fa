"""Unit tests for the contractor CSV rendering."""

import csv
import io
from datetime import datetime

from namc_portal.core.database.entities.contractors import CaliforniaContractor
from namc_portal.server.services.contractor_export import CSV_HEADERS, csv_row, export_filename, to_csv


def make_contractor(**overrides) -> CaliforniaContractor:
    fields = {
        "license_number": "1001",
        "business_name": "Bay Builders",
        "created_at": datetime(2024, 1, 2, 3, 4, 5),
        "updated_at": datetime(2024, 2, 3, 4, 5, 6),
    }
    fields.update(overrides)
    return CaliforniaContractor(**fields)


class TestRow:
    def test_row_matches_headers(self):
        row = csv_row(make_contractor())

        assert len(row) == len(CSV_HEADERS) == 36

    def test_formatting(self):
        record = dict(
            zip(
                CSV_HEADERS,
                csv_row(
                    make_contractor(
                        email_validated=True,
                        email_confidence=0.85,
                        years_in_business=12,
                        priority_score=75.0,
                        issue_date=datetime(2019, 4, 2),
                        classifications='["B", "C-10"]',
                        is_namc_member=True,
                    )
                ),
            )
        )

        assert record["Email Validated"] == "Yes"
        assert record["Phone Validated"] == "No"
        assert record["Email Confidence"] == "0.85"
        assert record["Years in Business"] == "12"
        assert record["Priority Score"] == "75"
        assert record["Issue Date"] == "2019-04-02"
        assert record["Expire Date"] == ""
        assert record["All Classifications"] == "B; C-10"
        assert record["Is NAMC Member"] == "Yes"
        assert record["Contact Attempts"] == "0"
        assert record["Lead Score"] == ""
        assert record["Created At"] == "2024-01-02"


class TestDocument:
    def test_quotes_awkward_fields(self):
        text = to_csv([make_contractor(business_name='Smith, "Sons" & Co', notes="line one\nline two")])

        rows = list(csv.reader(io.StringIO(text)))

        assert rows[0] == CSV_HEADERS
        assert rows[1][1] == 'Smith, "Sons" & Co'
        assert rows[1][CSV_HEADERS.index("Notes")] == "line one\nline two"
        assert '"Smith, ""Sons"" & Co"' in text

    def test_empty_export_has_header_only(self):
        assert to_csv([]) == ",".join(CSV_HEADERS) + "\n"

    def test_filename(self):
        assert export_filename(datetime(2026, 10, 18, 23, 59)) == "namc-contractors-2026-10-18.csv"
