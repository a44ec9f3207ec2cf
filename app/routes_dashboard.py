# app/routes_dashboard.py

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .deps import get_current_user, get_db
from app.services.aggregation import summarize
from app.services.transactions import list_transactions
from models import User

router = APIRouter(prefix="/api", tags=["dashboard"])


@router.get("/dashboard")
def dashboard_summary(
    reference_date: date | None = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # Totals, per-category sums and the 6-month series, recomputed per request
    ref = reference_date or date.today()
    transactions = list_transactions(db, user.id)

    return {
        "message": "Summary computed successfully",
        "referenceDate": ref.isoformat(),
        "summary": summarize(transactions, ref),
    }
