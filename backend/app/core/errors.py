"""Domain errors raised by the service layer.

The API routers translate these into HTTP responses; services never build
HTTP responses themselves.
"""


class TradeLogError(Exception):
    """Base class for all domain errors."""


class AccountAccessError(TradeLogError):
    """The target account does not exist or belongs to another user."""

    def __init__(self, account_id: int):
        super().__init__(f"Account {account_id} is not accessible")
        self.account_id = account_id


class EmptyInputError(TradeLogError):
    """An uploaded file carries no data rows."""


class PersistenceError(TradeLogError):
    """The store rejected a write; nothing from the batch was kept."""
