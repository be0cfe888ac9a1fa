from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.database import get_db
from app.models.user import User
from app.schemas.statistics import StatisticsResponse
from app.services.analytics.statistics import compute_statistics
from app.services.repository import find_account_owned_by, find_trades_by_filter

router = APIRouter(prefix="/api/statistics", tags=["statistics"])


@router.get("", response_model=StatisticsResponse)
def get_statistics(
    account_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Performance statistics over the caller's trades.

    Without ``account_id`` every account of the user is included. The date
    range bounds the entry date, inclusive on both ends.
    """
    if account_id is not None and find_account_owned_by(db, account_id, user.id) is None:
        raise HTTPException(status_code=403, detail="Invalid account")

    trades = find_trades_by_filter(
        db, user.id, account_id=account_id, start_date=start_date, end_date=end_date,
    )
    return compute_statistics(trades)
