"""Data access for accounts and trades.

Every query is scoped to the owning user; callers never see rows that belong
to somebody else.
"""
import logging
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import PersistenceError
from app.models.account import Account
from app.models.trade import Trade
from app.services.importer.columns import to_naive_utc

logger = logging.getLogger(__name__)


def find_account_owned_by(db: Session, account_id: int, user_id: int) -> Optional[Account]:
    return db.query(Account).filter(
        Account.id == account_id,
        Account.user_id == user_id,
    ).first()


def find_trade_owned_by(db: Session, trade_id: int, user_id: int) -> Optional[Trade]:
    return db.query(Trade).filter(
        Trade.id == trade_id,
        Trade.user_id == user_id,
    ).first()


def trade_filter_query(
    db: Session,
    user_id: int,
    account_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    symbol: Optional[str] = None,
    status: Optional[str] = None,
):
    """Build the trade query shared by listing, statistics and export."""
    start_date, end_date = to_naive_utc(start_date), to_naive_utc(end_date)
    query = db.query(Trade).filter(Trade.user_id == user_id)
    if account_id is not None:
        query = query.filter(Trade.account_id == account_id)
    if start_date is not None:
        query = query.filter(Trade.entry_date >= start_date)
    if end_date is not None:
        query = query.filter(Trade.entry_date <= end_date)
    if symbol:
        query = query.filter(Trade.symbol.ilike(f"%{symbol.strip()}%"))
    if status == "open":
        query = query.filter(Trade.exit_date.is_(None))
    elif status == "closed":
        query = query.filter(Trade.exit_date.isnot(None))
    return query


def find_trades_by_filter(
    db: Session,
    user_id: int,
    account_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    symbol: Optional[str] = None,
    status: Optional[str] = None,
) -> list[Trade]:
    """Return the user's trades matching the filters, oldest entry first.

    The date range bounds ``entry_date`` inclusively on both ends.
    """
    query = trade_filter_query(db, user_id, account_id, start_date, end_date, symbol, status)
    return query.order_by(Trade.entry_date.asc(), Trade.id.asc()).all()


def insert_trades_atomic(db: Session, trades: Iterable[Trade]) -> int:
    """Persist all trades in one transaction, or none of them."""
    trades = list(trades)
    try:
        db.add_all(trades)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Atomic insert of %d trades failed: %s", len(trades), e)
        raise PersistenceError("Could not save imported trades") from e
    return len(trades)
