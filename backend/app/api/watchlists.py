import json
import re
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.database import get_db
from app.models.user import User
from app.models.watchlist import Watchlist, WatchlistItem
from app.schemas.watchlist import (
    WatchlistCreate, WatchlistItemCreate, WatchlistItemResponse, WatchlistResponse,
)

router = APIRouter(prefix="/api/watchlists", tags=["watchlists"])


def _json_download(payload, filename: str) -> Response:
    return Response(
        content=json.dumps(payload, indent=2),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def _get_owned(db: Session, watchlist_id: int, user: User) -> Watchlist:
    watchlist = db.query(Watchlist).filter(
        Watchlist.id == watchlist_id,
        Watchlist.user_id == user.id,
    ).first()
    if not watchlist:
        raise HTTPException(status_code=404, detail="Watchlist not found")
    return watchlist


@router.get("", response_model=list[WatchlistResponse])
def list_watchlists(
    format: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    watchlists = (
        db.query(Watchlist)
        .filter(Watchlist.user_id == user.id)
        .order_by(Watchlist.created_at.desc(), Watchlist.id.desc())
        .all()
    )
    if format == "json":
        payload = [WatchlistResponse.model_validate(w).model_dump(mode="json") for w in watchlists]
        return _json_download(payload, f"watchlists-{_today()}.json")
    return watchlists


@router.post("", response_model=WatchlistResponse, status_code=status.HTTP_201_CREATED)
def create_watchlist(
    payload: WatchlistCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    watchlist = Watchlist(user_id=user.id, name=payload.name, description=payload.description)
    db.add(watchlist)
    db.commit()
    db.refresh(watchlist)
    return watchlist


@router.get("/{watchlist_id}", response_model=WatchlistResponse)
def get_watchlist(
    watchlist_id: int,
    format: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    watchlist = _get_owned(db, watchlist_id, user)
    if format == "json":
        slug = re.sub(r"\s+", "-", watchlist.name).lower()
        payload = WatchlistResponse.model_validate(watchlist).model_dump(mode="json")
        return _json_download(payload, f"watchlist-{slug}-{_today()}.json")
    return watchlist


@router.put("/{watchlist_id}", response_model=WatchlistResponse)
def update_watchlist(
    watchlist_id: int,
    payload: WatchlistCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    watchlist = _get_owned(db, watchlist_id, user)
    watchlist.name = payload.name
    watchlist.description = payload.description
    db.commit()
    db.refresh(watchlist)
    return watchlist


@router.delete("/{watchlist_id}")
def delete_watchlist(
    watchlist_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    watchlist = _get_owned(db, watchlist_id, user)
    db.delete(watchlist)
    db.commit()
    return {"status": "ok", "message": "Watchlist deleted successfully"}


# ─── Items ───
@router.post("/{watchlist_id}/items", response_model=WatchlistItemResponse, status_code=status.HTTP_201_CREATED)
def add_item(
    watchlist_id: int,
    payload: WatchlistItemCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    watchlist = _get_owned(db, watchlist_id, user)
    if any(i.symbol == payload.symbol for i in watchlist.items):
        raise HTTPException(status_code=409, detail=f"{payload.symbol} is already in this watchlist")

    item = WatchlistItem(watchlist_id=watchlist.id, symbol=payload.symbol, notes=payload.notes)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


@router.delete("/{watchlist_id}/items/{item_id}")
def remove_item(
    watchlist_id: int,
    item_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    watchlist = _get_owned(db, watchlist_id, user)
    item = db.query(WatchlistItem).filter(
        WatchlistItem.id == item_id,
        WatchlistItem.watchlist_id == watchlist.id,
    ).first()
    if not item:
        raise HTTPException(status_code=404, detail="Watchlist item not found")
    db.delete(item)
    db.commit()
    return {"status": "ok", "message": "Item removed"}
