"""Account rules: one default per user, guarded deletion."""
import logging

from sqlalchemy.orm import Session

from app.core.errors import TradeLogError
from app.models.account import Account, DEFAULT_ACCOUNT_COLOR
from app.models.trade import Trade

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNT_NAME = "Default Account"


class AccountDeletionRefused(TradeLogError):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def create_default_account(db: Session, user_id: int) -> Account:
    """Add the account every new user starts with. The caller commits."""
    account = Account(
        user_id=user_id,
        name=DEFAULT_ACCOUNT_NAME,
        color=DEFAULT_ACCOUNT_COLOR,
        is_default=True,
    )
    db.add(account)
    return account


def make_default(db: Session, account: Account) -> None:
    """Mark ``account`` as the user's default and clear the previous one.

    Both changes go out in the caller's commit, so no reader ever sees two
    defaults. The user's account rows are locked first so concurrent calls
    serialize; the partial unique index on the table backs this up.
    """
    db.query(Account.id).filter(Account.user_id == account.user_id).with_for_update().all()
    db.query(Account).filter(
        Account.user_id == account.user_id,
        Account.id != account.id,
        Account.is_default == True,  # noqa: E712
    ).update({Account.is_default: False}, synchronize_session="fetch")
    account.is_default = True
    logger.info("Account %s is now the default for user %s", account.id, account.user_id)


def ensure_deletable(db: Session, account: Account) -> None:
    if account.is_default:
        raise AccountDeletionRefused(
            "Cannot delete default account. Please set another account as default first."
        )
    trade_count = db.query(Trade).filter(Trade.account_id == account.id).count()
    if trade_count > 0:
        raise AccountDeletionRefused(
            "Cannot delete account with associated trades. "
            "Please delete trades first or transfer them to another account."
        )
