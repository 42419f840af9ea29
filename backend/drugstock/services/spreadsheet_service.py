"""
Excel import of drug lists and export of monthly disbursement reports (openpyxl).

Import layout: first worksheet, row 1 is a header and is skipped, then six
columns in fixed order: name, quantity, unit, expiry date, location, notes.
Any invalid row rejects the whole file; the error names the spreadsheet row.
"""
import io
import logging
import re
import zipfile
from datetime import date, datetime

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from drugstock.core.exceptions import ValidationError
from drugstock.schemas.drug import ImportRow

logger = logging.getLogger(__name__)

IMPORT_COLUMNS = ("name", "quantity", "unit", "expiry_date", "location", "notes")
REQUIRED_COLUMNS = ("name", "quantity", "unit", "expiry_date", "location")

REPORT_SHEET_TITLE = "Disbursement report"
REPORT_HEADERS = ["Approval date", "Drug name", "Quantity", "Unit", "Requested by", "Approved by"]
REPORT_COLUMN_WIDTHS = [20, 35, 15, 15, 20, 20]

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def to_quantity(value, row_number: int) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Row {row_number}: invalid quantity '{value}'")
    if isinstance(value, int):
        quantity = value
    elif isinstance(value, float) and value.is_integer():
        quantity = int(value)
    elif isinstance(value, str):
        try:
            quantity = int(value.strip())
        except ValueError:
            raise ValidationError(f"Row {row_number}: invalid quantity '{value}'") from None
    else:
        raise ValidationError(f"Row {row_number}: invalid quantity '{value}'")
    if quantity < 0:
        raise ValidationError(f"Row {row_number}: invalid quantity '{value}'")
    return quantity


def to_expiry_date(value, row_number: int) -> date:
    # Excel date cells arrive as datetime; keep the calendar day only
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValidationError(
        f"Row {row_number}: invalid expiry date '{value}', expected YYYY-MM-DD"
    )


def parse_drug_rows(content: bytes) -> list[ImportRow]:
    """Parse and validate an uploaded workbook. Nothing is written to the database."""
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError, ValueError) as e:
        raise ValidationError("Could not read the Excel file. Please upload a valid .xlsx file") from e

    try:
        worksheet = workbook.worksheets[0]
        rows = []
        for row_number, values in enumerate(worksheet.iter_rows(min_row=2, values_only=True), start=2):
            values = (list(values) + [None] * len(IMPORT_COLUMNS))[: len(IMPORT_COLUMNS)]
            if all(_is_blank(v) for v in values):
                continue
            record = dict(zip(IMPORT_COLUMNS, values))

            missing = [c for c in REQUIRED_COLUMNS if _is_blank(record[c])]
            if missing:
                raise ValidationError(
                    f"Row {row_number}: missing required field(s): {', '.join(missing)}"
                )

            rows.append(
                ImportRow(
                    row_number=row_number,
                    name=str(record["name"]).strip(),
                    quantity=to_quantity(record["quantity"], row_number),
                    unit=str(record["unit"]).strip(),
                    expiry_date=to_expiry_date(record["expiry_date"], row_number),
                    location=str(record["location"]).strip(),
                    notes=None if _is_blank(record["notes"]) else str(record["notes"]).strip(),
                )
            )
    finally:
        workbook.close()

    logger.info(f"Parsed {len(rows)} drug rows from spreadsheet")
    return rows


def parse_report_month(month: str) -> tuple[int, int]:
    """Validate a YYYY-MM month string."""
    match = _MONTH_RE.match(month or "")
    if not match or not 1 <= int(match.group(2)) <= 12:
        raise ValidationError(f"Invalid month '{month}', expected YYYY-MM")
    return int(match.group(1)), int(match.group(2))


def report_filename(month: str) -> str:
    return f"disbursement-report-{month}.xlsx"


def build_disbursement_report(records) -> bytes:
    """One worksheet, six fixed columns, one row per approved disbursement."""
    wb = Workbook()
    ws = wb.active
    ws.title = REPORT_SHEET_TITLE

    ws.append(REPORT_HEADERS)
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for record in records:
        ws.append([
            record.approval_date.strftime("%Y-%m-%d %H:%M") if record.approval_date else "",
            record.drug_name,
            record.quantity_disbursed,
            record.unit,
            record.requested_by,
            record.approved_by or "",
        ])

    for col, width in enumerate(REPORT_COLUMN_WIDTHS, start=1):
        ws.column_dimensions[get_column_letter(col)].width = width

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
