import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.database import get_db
from app.models.account import Account, DEFAULT_ACCOUNT_COLOR
from app.models.trade import Trade
from app.models.user import User
from app.schemas.account import AccountCreate, AccountUpdate, AccountResponse
from app.services.accounts import AccountDeletionRefused, ensure_deletable, make_default

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


def _to_response(a: Account, trade_count: int = 0) -> AccountResponse:
    return AccountResponse(
        id=a.id,
        name=a.name,
        broker=a.broker or "",
        account_type=a.account_type or "",
        currency=a.currency or "USD",
        color=a.color or DEFAULT_ACCOUNT_COLOR,
        is_default=bool(a.is_default),
        initial_balance=a.initial_balance or 0.0,
        current_balance=a.current_balance or 0.0,
        trade_count=trade_count,
        created_at=a.created_at,
        updated_at=a.updated_at,
    )


def _get_owned(db: Session, account_id: int, user: User) -> Account:
    account = db.query(Account).filter(Account.id == account_id).first()
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")
    if account.user_id != user.id:
        raise HTTPException(status_code=403, detail="Unauthorized access to account")
    return account


def _trade_count(db: Session, account_id: int) -> int:
    return db.query(func.count(Trade.id)).filter(Trade.account_id == account_id).scalar() or 0


@router.get("", response_model=list[AccountResponse])
def list_accounts(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    accounts = (
        db.query(Account)
        .filter(Account.user_id == user.id)
        .order_by(Account.created_at.desc(), Account.id.desc())
        .all()
    )
    counts = dict(
        db.query(Trade.account_id, func.count(Trade.id))
        .filter(Trade.user_id == user.id)
        .group_by(Trade.account_id)
        .all()
    )
    return [_to_response(a, counts.get(a.id, 0)) for a in accounts]


@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    payload: AccountCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    has_accounts = db.query(Account).filter(Account.user_id == user.id).first() is not None
    account = Account(
        user_id=user.id,
        name=payload.name,
        broker=payload.broker,
        account_type=payload.account_type,
        currency=payload.currency,
        color=payload.color or DEFAULT_ACCOUNT_COLOR,
        initial_balance=payload.initial_balance,
        current_balance=(
            payload.current_balance if payload.current_balance is not None else payload.initial_balance
        ),
        is_default=False,
    )
    db.add(account)
    db.flush()
    # The first account a user owns is always the default
    if payload.is_default or not has_accounts:
        make_default(db, account)
    db.commit()
    db.refresh(account)
    logger.info("User %s created account %s", user.id, account.id)
    return _to_response(account)


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    account = _get_owned(db, account_id, user)
    return _to_response(account, _trade_count(db, account.id))


@router.patch("/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: int,
    payload: AccountUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    account = _get_owned(db, account_id, user)

    update_data = payload.model_dump(exclude_unset=True)
    is_default = update_data.pop("is_default", None)
    if "name" in update_data:
        if not (update_data["name"] or "").strip():
            raise HTTPException(status_code=400, detail="Account name is required")
        update_data["name"] = update_data["name"].strip()
    for key, value in update_data.items():
        if value is not None:
            setattr(account, key, value)

    if is_default is True:
        make_default(db, account)
    elif is_default is False and account.is_default:
        raise HTTPException(
            status_code=400,
            detail="Cannot unset the default account. Set another account as default instead.",
        )

    db.commit()
    db.refresh(account)
    return _to_response(account, _trade_count(db, account.id))


@router.post("/{account_id}/default", response_model=AccountResponse)
def set_default_account(
    account_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    account = _get_owned(db, account_id, user)
    make_default(db, account)
    db.commit()
    db.refresh(account)
    return _to_response(account, _trade_count(db, account.id))


@router.delete("/{account_id}")
def delete_account(
    account_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    account = _get_owned(db, account_id, user)
    try:
        ensure_deletable(db, account)
    except AccountDeletionRefused as e:
        raise HTTPException(status_code=400, detail=e.message)

    db.delete(account)
    db.commit()
    logger.info("User %s deleted account %s", user.id, account_id)
    return {"status": "ok", "message": "Account deleted successfully"}
