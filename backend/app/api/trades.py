import logging
import math
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.database import get_db
from app.models.trade import Trade
from app.models.user import User
from app.schemas.trade import TradeCreate, TradeUpdate, TradeResponse, TradeList, Pagination
from app.services.analytics.export import trades_to_csv
from app.services.pnl import settle_pnl
from app.services.repository import (
    find_account_owned_by, find_trade_owned_by, find_trades_by_filter, trade_filter_query,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trades", tags=["trades"])

MAX_PAGE_SIZE = 200


def _check_account(db: Session, account_id: Optional[int], user: User) -> None:
    if account_id is not None and find_account_owned_by(db, account_id, user.id) is None:
        raise HTTPException(status_code=403, detail="Invalid account")


@router.get("", response_model=TradeList)
def list_trades(
    account_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    symbol: Optional[str] = None,
    status: Optional[str] = Query(default=None, pattern="^(open|closed)$"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    _check_account(db, account_id, user)
    query = trade_filter_query(db, user.id, account_id, start_date, end_date, symbol, status)
    total = query.count()
    trades = (
        query.order_by(Trade.entry_date.desc(), Trade.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return TradeList(
        items=[TradeResponse.model_validate(t) for t in trades],
        pagination=Pagination(
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
        ),
    )


# Declared before /{trade_id} so "export" is not read as an id
@router.get("/export")
def export_trades(
    account_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    _check_account(db, account_id, user)
    trades = find_trades_by_filter(db, user.id, account_id, start_date, end_date)
    filename = f"trades_{datetime.now(timezone.utc).strftime('%Y%m%d')}.csv"
    logger.info("User %s exported %d trades", user.id, len(trades))
    return Response(
        content=trades_to_csv(trades),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("", response_model=TradeResponse, status_code=status.HTTP_201_CREATED)
def create_trade(
    payload: TradeCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    _check_account(db, payload.account_id, user)
    trade = Trade(user_id=user.id, **payload.model_dump())
    settle_pnl(trade)
    db.add(trade)
    db.commit()
    db.refresh(trade)
    return trade


@router.get("/{trade_id}", response_model=TradeResponse)
def get_trade(
    trade_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    trade = find_trade_owned_by(db, trade_id, user.id)
    if not trade:
        raise HTTPException(status_code=404, detail="Trade not found")
    return trade


@router.patch("/{trade_id}", response_model=TradeResponse)
def update_trade(
    trade_id: int,
    payload: TradeUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    trade = find_trade_owned_by(db, trade_id, user.id)
    if not trade:
        raise HTTPException(status_code=404, detail="Trade not found")

    update_data = payload.model_dump(exclude_unset=True)
    if "account_id" in update_data:
        if update_data["account_id"] is None:
            raise HTTPException(status_code=400, detail="Account is required")
        _check_account(db, update_data["account_id"], user)

    # Required columns can't be cleared; exit fields and text may be
    for key in ("symbol", "direction", "quantity", "entry_price", "entry_date"):
        if key in update_data and update_data[key] is None:
            raise HTTPException(status_code=400, detail=f"{key} cannot be empty")

    for key, value in update_data.items():
        if key in ("fees", "strategy", "notes") and value is None:
            value = 0.0 if key == "fees" else ""
        if key == "tags" and value is None:
            value = []
        setattr(trade, key, value)

    if trade.exit_date is not None and not trade.exit_price:
        db.rollback()
        raise HTTPException(status_code=400, detail="Exit price is required when an exit date is given")

    settle_pnl(trade)
    db.commit()
    db.refresh(trade)
    return trade


@router.delete("/{trade_id}")
def delete_trade(
    trade_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    trade = find_trade_owned_by(db, trade_id, user.id)
    if not trade:
        raise HTTPException(status_code=404, detail="Trade not found")
    db.delete(trade)
    db.commit()
    return {"status": "ok", "message": "Trade deleted successfully"}
