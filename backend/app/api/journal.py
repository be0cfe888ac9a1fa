import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.database import get_db
from app.models.journal import JournalEntry
from app.models.trade import Trade
from app.models.user import User
from app.schemas.journal import JournalEntryCreate, JournalEntryUpdate, JournalEntryResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/journal", tags=["journal"])


def _to_response(e: JournalEntry) -> JournalEntryResponse:
    return JournalEntryResponse(
        id=e.id,
        date=e.date,
        title=e.title,
        content=e.content or "",
        market_conditions=e.market_conditions or "",
        sentiment=e.sentiment,
        lessons=e.lessons or "",
        tags=e.tags or [],
        related_trade_ids=[t.id for t in e.related_trades],
        created_at=e.created_at,
        updated_at=e.updated_at,
    )


def _owned_trades(db: Session, trade_ids: list[int], user: User) -> list[Trade]:
    """Resolve trade ids, refusing any the user does not own."""
    wanted = set(trade_ids)
    if not wanted:
        return []
    trades = db.query(Trade).filter(Trade.id.in_(wanted), Trade.user_id == user.id).all()
    if len(trades) != len(wanted):
        raise HTTPException(status_code=403, detail="Invalid related trades")
    return trades


def _get_owned(db: Session, entry_id: int, user: User) -> JournalEntry:
    entry = db.query(JournalEntry).filter(
        JournalEntry.id == entry_id,
        JournalEntry.user_id == user.id,
    ).first()
    if not entry:
        raise HTTPException(status_code=404, detail="Journal entry not found")
    return entry


@router.get("", response_model=list[JournalEntryResponse])
def list_entries(
    q: Optional[str] = None,
    sentiment: Optional[str] = None,
    sort: str = Query(default="newest", pattern="^(newest|oldest)$"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = db.query(JournalEntry).filter(JournalEntry.user_id == user.id)
    if q and q.strip():
        pattern = f"%{q.strip()}%"
        query = query.filter(or_(
            JournalEntry.title.ilike(pattern),
            JournalEntry.content.ilike(pattern),
            JournalEntry.lessons.ilike(pattern),
        ))
    if sentiment:
        query = query.filter(JournalEntry.sentiment == sentiment)

    if sort == "oldest":
        query = query.order_by(JournalEntry.date.asc(), JournalEntry.id.asc())
    else:
        query = query.order_by(JournalEntry.date.desc(), JournalEntry.id.desc())
    return [_to_response(e) for e in query.all()]


@router.post("", response_model=JournalEntryResponse, status_code=status.HTTP_201_CREATED)
def create_entry(
    payload: JournalEntryCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    entry = JournalEntry(
        user_id=user.id,
        date=payload.date,
        title=payload.title,
        content=payload.content,
        market_conditions=payload.market_conditions,
        sentiment=payload.sentiment,
        lessons=payload.lessons,
        tags=payload.tags,
    )
    entry.related_trades = _owned_trades(db, payload.related_trade_ids, user)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info("User %s created journal entry %s", user.id, entry.id)
    return _to_response(entry)


@router.get("/{entry_id}", response_model=JournalEntryResponse)
def get_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return _to_response(_get_owned(db, entry_id, user))


@router.put("/{entry_id}", response_model=JournalEntryResponse)
def update_entry(
    entry_id: int,
    payload: JournalEntryUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    entry = _get_owned(db, entry_id, user)

    update_data = payload.model_dump(exclude_unset=True)
    related_ids = update_data.pop("related_trade_ids", None)
    if "title" in update_data and not (update_data["title"] or "").strip():
        raise HTTPException(status_code=400, detail="Title is required")
    if "date" in update_data and update_data["date"] is None:
        raise HTTPException(status_code=400, detail="Date is required")

    for key, value in update_data.items():
        if key == "title":
            value = value.strip()
        elif key == "tags" and value is None:
            value = []
        elif key in ("content", "market_conditions", "lessons") and value is None:
            value = ""
        setattr(entry, key, value)
    if related_ids is not None:
        entry.related_trades = _owned_trades(db, related_ids, user)

    db.commit()
    db.refresh(entry)
    return _to_response(entry)


@router.delete("/{entry_id}")
def delete_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    entry = _get_owned(db, entry_id, user)
    db.delete(entry)
    db.commit()
    return {"status": "ok", "message": "Journal entry deleted successfully"}
