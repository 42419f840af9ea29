"""Reports: monthly disbursement spreadsheet download."""
from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from drugstock.api.deps import get_current_user, get_db
from drugstock.core.exceptions import NotFoundError
from drugstock.core.permissions import ensure_admin
from drugstock.models.user import User
from drugstock.services import disbursement_service, spreadsheet_service

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/disbursements/{month}")
def export_disbursement_report(
    month: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Approved disbursements for a YYYY-MM month as an .xlsx file."""
    ensure_admin(current_user, "export", "disbursement report")
    year, month_number = spreadsheet_service.parse_report_month(month)
    records = disbursement_service.approved_in_month(db, year, month_number)
    if not records:
        raise NotFoundError(f"Approved disbursements for {month}")

    content = spreadsheet_service.build_disbursement_report(records)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={spreadsheet_service.report_filename(month)}"},
    )
