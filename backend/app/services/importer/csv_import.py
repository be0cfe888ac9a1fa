"""
Trade CSV import.

A file is imported all-or-nothing: every row is validated first, and only a
batch with no row errors is written, in a single transaction.
"""
import csv
import io
import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import AccountAccessError, EmptyInputError
from app.models.trade import Trade
from app.services.importer.columns import parse_datetime, parse_number, resolve_columns, split_tags
from app.services.pnl import DIRECTIONS, compute_pnl
from app.services.repository import find_account_owned_by, insert_trades_atomic

logger = logging.getLogger(__name__)

# Data rows are reported by their line in the file; the header is line 1
FIRST_DATA_ROW = 2

# Candidate delimiters, in tie-break order
DELIMITERS = (",", ";", "\t")


@dataclass
class RowError:
    row: int
    message: str


@dataclass
class ParseResult:
    records: list[dict] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)


@dataclass
class ImportResult:
    inserted_count: int = 0
    errors: list[RowError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class RowInvalid(ValueError):
    pass


def _detect_delimiter(sample: str) -> str:
    """Pick the delimiter that splits the header line into the most fields.

    Quoted header text is respected, so a semicolon inside a quoted column
    name does not count. Ties go to the comma.
    """
    header = sample.splitlines()[0] if sample else ""
    if not header:
        return ","
    counts = {
        delim: len(next(csv.reader([header], delimiter=delim), []))
        for delim in DELIMITERS
    }
    return max(DELIMITERS, key=lambda d: counts[d])


def _cell(row: dict, columns: dict[str, str], name: str) -> str:
    header = columns.get(name)
    if header is None:
        return ""
    value = row.get(header)
    return value.strip() if isinstance(value, str) else ""


def _positive(value: Optional[float]) -> bool:
    return value is not None and not math.isnan(value) and value > 0


def _validate_row(row: dict, columns: dict[str, str], delimiter: str = ",") -> dict:
    """Turn one CSV row into trade field values or raise RowInvalid."""
    symbol = _cell(row, columns, "symbol")
    if not symbol:
        raise RowInvalid("Symbol is required")

    direction = _cell(row, columns, "direction").upper()
    if direction not in DIRECTIONS:
        raise RowInvalid("Direction must be either LONG or SHORT")

    entry_price = parse_number(_cell(row, columns, "entry_price"), delimiter)
    if not _positive(entry_price):
        raise RowInvalid("Entry price must be a positive number")

    quantity = parse_number(_cell(row, columns, "quantity"), delimiter)
    if not _positive(quantity):
        raise RowInvalid("Quantity must be a positive number")

    entry_date_str = _cell(row, columns, "entry_date")
    if not entry_date_str:
        raise RowInvalid("Entry date is required")
    entry_date = parse_datetime(entry_date_str)
    if entry_date is None:
        raise RowInvalid("Invalid entry date format")

    exit_date = None
    exit_date_str = _cell(row, columns, "exit_date")
    if exit_date_str:
        exit_date = parse_datetime(exit_date_str)
        if exit_date is None:
            raise RowInvalid("Invalid exit date format")

    fees = parse_number(_cell(row, columns, "fees"), delimiter)
    if fees is None:
        fees = 0.0
    elif math.isnan(fees) or fees < 0:
        raise RowInvalid("Fees must be a non-negative number")

    exit_price = parse_number(_cell(row, columns, "exit_price"), delimiter)
    if exit_price is not None and not _positive(exit_price):
        raise RowInvalid("Exit price must be a positive number")
    if exit_date is not None and exit_price is None:
        raise RowInvalid("Exit price must be a positive number when an exit date is given")

    pnl = None
    if exit_date is not None:
        pnl = compute_pnl(direction, entry_price, exit_price, quantity, fees)

    return {
        "symbol": symbol,
        "direction": direction,
        "entry_price": entry_price,
        "exit_price": exit_price,
        "quantity": quantity,
        "entry_date": entry_date,
        "exit_date": exit_date,
        "fees": fees,
        "pnl": pnl,
        "notes": _cell(row, columns, "notes"),
        "strategy": _cell(row, columns, "strategy"),
        "tags": split_tags(_cell(row, columns, "tags")),
    }


def parse_trade_csv(text: str) -> ParseResult:
    """Validate every data row of a trade CSV.

    Raises EmptyInputError when the file has no data rows. Row problems do
    not raise; they are collected in ``ParseResult.errors``.
    """
    text = text.lstrip("\ufeff")
    delimiter = _detect_delimiter(text[:2000])
    reader = csv.DictReader(io.StringIO(text), delimiter=delimiter)
    headers = reader.fieldnames or []
    rows = [
        r for r in reader
        if any(isinstance(v, str) and v.strip() for v in r.values())
    ]
    if not rows:
        raise EmptyInputError("CSV file is empty")

    columns = resolve_columns(headers)
    result = ParseResult()
    for i, row in enumerate(rows):
        try:
            result.records.append(_validate_row(row, columns, delimiter))
        except RowInvalid as e:
            result.errors.append(RowError(row=i + FIRST_DATA_ROW, message=str(e)))
    return result


def import_trade_csv(db: Session, text: str, account_id: int, user_id: int) -> ImportResult:
    """Import a trade CSV into one of the user's accounts.

    Raises AccountAccessError before parsing if the account is not the
    user's, EmptyInputError for a file without rows and PersistenceError if
    the write fails. A batch with row errors writes nothing.
    """
    account = find_account_owned_by(db, account_id, user_id)
    if account is None:
        raise AccountAccessError(account_id)

    parsed = parse_trade_csv(text)
    if parsed.errors:
        logger.info(
            "CSV import for account %s rejected: %d of %d rows invalid",
            account_id, len(parsed.errors), len(parsed.records) + len(parsed.errors),
        )
        return ImportResult(errors=parsed.errors)

    trades = [
        Trade(account_id=account.id, user_id=user_id, **record)
        for record in parsed.records
    ]
    count = insert_trades_atomic(db, trades)
    logger.info("Imported %d trades into account %s for user %s", count, account_id, user_id)
    return ImportResult(inserted_count=count)
