"""
History Route

Calendar data: which days in a month have a saved plan, with a short summary
of each.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from daybook.auth import require_user
from daybook.clock import local_today
from daybook.database import get_db
from daybook.models.user import User
from daybook.schemas import HistoryMonth
from daybook.services.history import list_month
from daybook.services.plan_store import PlanStore

router = APIRouter(tags=["history"])


@router.get("/history", response_model=HistoryMonth)
async def plan_history(
    month: str = Query(None, description="Month in YYYY-MM format"),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Recorded days for a month (defaults to the current month)."""
    if month:
        try:
            selected = datetime.strptime(month.strip(), "%Y-%m").date()
        except ValueError:
            raise HTTPException(status_code=400, detail="Month must be in YYYY-MM format")
    else:
        selected = local_today()

    return list_month(PlanStore(db), user.id, selected.year, selected.month)
