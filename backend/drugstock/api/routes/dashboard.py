"""Dashboard summary: stock counts, action lists, recent activity."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from drugstock.api.deps import get_current_user, get_db
from drugstock.core.permissions import is_admin
from drugstock.models.user import User
from drugstock.schemas.dashboard import DashboardResponse
from drugstock.schemas.drug import drug_to_response
from drugstock.services.dashboard_service import build_dashboard

router = APIRouter()


@router.get("", response_model=DashboardResponse)
def get_dashboard(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    data = build_dashboard(db)
    return {
        "stats": data["stats"],
        "low_stock": [drug_to_response(d) for d in data["low_stock"]],
        "expiring": [drug_to_response(d) for d in data["expiring"]],
        "recent_transactions": data["recent_transactions"],
        # Approval notifications are for admins only
        "pending_requests": data["pending_requests"] if is_admin(current_user) else [],
    }
