"""Tests for CSV trade parsing and the all-or-nothing import."""
import math
from datetime import datetime
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import AccountAccessError, EmptyInputError, PersistenceError
from app.models.account import Account
from app.models.trade import Trade
from app.services.importer.columns import normalize_header, parse_datetime, parse_number, resolve_columns
from app.services.importer.csv_import import import_trade_csv, parse_trade_csv

HEADER = "symbol,direction,entryPrice,exitPrice,quantity,entryDate,exitDate,fees,notes,strategy,tags"


def csv_of(*rows: str, header: str = HEADER) -> str:
    return "\n".join([header, *rows]) + "\n"


class TestColumns:
    def test_normalize_header(self):
        assert normalize_header(" Entry_Price ") == "entryprice"
        assert normalize_header("\ufeffSymbol") == "symbol"
        assert normalize_header("exit-date") == "exitdate"

    def test_resolve_synonyms(self):
        mapping = resolve_columns(["Ticker", "Side", "Entry", "Exit", "Qty", "Open Date", "Close Date", "Commission"])
        assert mapping == {
            "symbol": "Ticker",
            "direction": "Side",
            "entry_price": "Entry",
            "exit_price": "Exit",
            "quantity": "Qty",
            "entry_date": "Open Date",
            "exit_date": "Close Date",
            "fees": "Commission",
        }

    def test_first_matching_header_wins(self):
        assert resolve_columns(["Symbol", "Ticker"])["symbol"] == "Symbol"

    def test_parse_number(self):
        assert parse_number("") is None
        assert parse_number("$1,234.50") == 1234.5
        assert math.isnan(parse_number("abc"))

    def test_parse_number_decimal_comma(self):
        assert parse_number("4500,25", ";") == 4500.25
        assert parse_number("4.500,25", ";") == 4500.25
        assert parse_number("4500.25", ";") == 4500.25
        assert math.isnan(parse_number("1,2,3", ";"))

    def test_parse_number_thousands_comma(self):
        assert parse_number("4,500", ",") == 4500
        assert parse_number("1,234,567.5", "\t") == 1234567.5

    @pytest.mark.parametrize("text, expected", [
        ("2024-01-02", datetime(2024, 1, 2)),
        ("2024-01-02T14:30:00", datetime(2024, 1, 2, 14, 30)),
        ("2024-01-02T14:30:00Z", datetime(2024, 1, 2, 14, 30)),
        ("2024-01-02T16:30:00+02:00", datetime(2024, 1, 2, 14, 30)),
        ("2024/01/02 14:30", datetime(2024, 1, 2, 14, 30)),
        ("2024.01.02 14:30:00", datetime(2024, 1, 2, 14, 30)),
        ("01/02/2024", datetime(2024, 1, 2)),
    ])
    def test_parse_datetime(self, text, expected):
        assert parse_datetime(text) == expected

    def test_parse_datetime_rejects_garbage(self):
        assert parse_datetime("next tuesday") is None


class TestParseTradeCsv:
    def test_lowercase_direction_accepted(self):
        result = parse_trade_csv(csv_of("AAPL,long,100,110,10,2024-01-02,2024-01-03,5,,,"))
        assert result.errors == []
        assert result.records[0]["direction"] == "LONG"

    def test_pnl_computed_for_closed_row(self):
        result = parse_trade_csv(csv_of("AAPL,LONG,100,110,10,2024-01-02,2024-01-03,5,,,"))
        assert result.records[0]["pnl"] == 95

    def test_open_row_has_no_pnl(self):
        result = parse_trade_csv(csv_of("AAPL,SHORT,100,,10,2024-01-02,,,,,"))
        record = result.records[0]
        assert record["pnl"] is None
        assert record["exit_date"] is None
        assert record["fees"] == 0.0

    def test_exit_price_without_exit_date_stays_open(self):
        result = parse_trade_csv(csv_of("AAPL,LONG,100,110,10,2024-01-02,,,,,"))
        record = result.records[0]
        assert record["exit_price"] == 110
        assert record["pnl"] is None

    def test_tags_and_text_fields(self):
        result = parse_trade_csv(csv_of('AAPL,LONG,100,,1,2024-01-02,,,"note",Breakout," a, ,b "'))
        record = result.records[0]
        assert record["tags"] == ["a", "b"]
        assert record["notes"] == "note"
        assert record["strategy"] == "Breakout"

    @pytest.mark.parametrize("row, message", [
        (",LONG,100,,1,2024-01-02,,,,,", "Symbol is required"),
        ("AAPL,BUY,100,,1,2024-01-02,,,,,", "Direction must be either LONG or SHORT"),
        ("AAPL,LONG,-5,,1,2024-01-02,,,,,", "Entry price must be a positive number"),
        ("AAPL,LONG,abc,,1,2024-01-02,,,,,", "Entry price must be a positive number"),
        ("AAPL,LONG,100,,0,2024-01-02,,,,,", "Quantity must be a positive number"),
        ("AAPL,LONG,100,,1,,,,,,", "Entry date is required"),
        ("AAPL,LONG,100,,1,someday,,,,,", "Invalid entry date format"),
        ("AAPL,LONG,100,110,1,2024-01-02,later,,,,", "Invalid exit date format"),
        ("AAPL,LONG,100,110,1,2024-01-02,2024-01-03,-1,,,", "Fees must be a non-negative number"),
        ("AAPL,LONG,100,,1,2024-01-02,2024-01-03,,,,", "Exit price must be a positive number when an exit date is given"),
        ("AAPL,LONG,100,abc,1,2024-01-02,,,,,", "Exit price must be a positive number"),
        ("AAPL,LONG,100,-5,1,2024-01-02,,,,,", "Exit price must be a positive number"),
    ])
    def test_row_errors(self, row, message):
        result = parse_trade_csv(csv_of(row))
        assert result.records == []
        assert len(result.errors) == 1
        assert result.errors[0].row == 2
        assert result.errors[0].message == message

    def test_first_failing_check_wins(self):
        result = parse_trade_csv(csv_of(",BUY,-1,,0,,,,,,"))
        assert [e.message for e in result.errors] == ["Symbol is required"]

    def test_row_numbers_count_from_header(self):
        result = parse_trade_csv(csv_of(
            "AAPL,LONG,100,,1,2024-01-02,,,,,",
            "MSFT,LONG,100,,1,2024-01-02,,,,,",
            "TSLA,BUY,100,,1,2024-01-02,,,,,",
        ))
        assert [(e.row, e.message) for e in result.errors] == [(4, "Direction must be either LONG or SHORT")]

    def test_semicolon_delimiter_and_bom(self):
        text = "\ufeffSymbol;Side;Entry Price;Qty;Entry Date\nES;short;4500;2;2024-03-01 09:30\n"
        result = parse_trade_csv(text)
        assert result.errors == []
        assert result.records[0]["symbol"] == "ES"
        assert result.records[0]["direction"] == "SHORT"
        assert result.records[0]["entry_date"] == datetime(2024, 3, 1, 9, 30)

    def test_decimal_comma_in_semicolon_file(self):
        text = (
            "Symbol;Side;Entry Price;Exit Price;Qty;Entry Date;Exit Date\n"
            "ES;LONG;4500,25;4501,25;2;2024-03-01;2024-03-02\n"
        )
        result = parse_trade_csv(text)
        assert result.errors == []
        record = result.records[0]
        assert record["entry_price"] == 4500.25
        assert record["exit_price"] == 4501.25
        assert record["pnl"] == pytest.approx(2.0)

    def test_semicolon_inside_quoted_header(self):
        text = 'symbol,direction,entryPrice,quantity,entryDate,"notes; comments"\nAAPL,LONG,100,1,2024-01-02,x\n'
        result = parse_trade_csv(text)
        assert result.errors == []
        assert result.records[0]["symbol"] == "AAPL"
        assert result.records[0]["entry_price"] == 100

    def test_tab_delimiter(self):
        result = parse_trade_csv("Symbol\tSide\tEntry Price\tQty\tEntry Date\nNQ\tLONG\t18,000.5\t1\t2024-03-01\n")
        assert result.errors == []
        assert result.records[0]["entry_price"] == 18000.5

    def test_blank_lines_skipped(self):
        result = parse_trade_csv(csv_of("", "AAPL,LONG,100,,1,2024-01-02,,,,,", ",,,,,,,,,,"))
        assert len(result.records) == 1

    def test_header_only_is_empty(self):
        with pytest.raises(EmptyInputError):
            parse_trade_csv(HEADER + "\n")

    def test_empty_text_is_empty(self):
        with pytest.raises(EmptyInputError):
            parse_trade_csv("")


class TestImportTradeCsv:
    def test_all_valid_rows_inserted(self, db, owner):
        user, acct = owner
        text = csv_of(
            "AAPL,LONG,100,110,10,2024-01-02,2024-01-03,5,,,",
            "MSFT,short,300,290,2,2024-01-04,2024-01-05,0,,,",
            "TSLA,LONG,200,,1,2024-01-06,,,,,",
        )
        result = import_trade_csv(db, text, acct.id, user.id)
        assert result.ok
        assert result.inserted_count == 3

        trades = db.query(Trade).filter(Trade.account_id == acct.id).order_by(Trade.entry_date).all()
        assert [t.symbol for t in trades] == ["AAPL", "MSFT", "TSLA"]
        assert trades[0].pnl == 95
        assert trades[1].pnl == 20
        assert trades[2].pnl is None
        assert all(t.user_id == user.id for t in trades)

    def test_one_bad_row_inserts_nothing(self, db, owner):
        user, acct = owner
        text = csv_of(
            "AAPL,LONG,100,110,10,2024-01-02,2024-01-03,5,,,",
            "MSFT,BUY,300,290,2,2024-01-04,2024-01-05,0,,,",
        )
        result = import_trade_csv(db, text, acct.id, user.id)
        assert not result.ok
        assert result.inserted_count == 0
        assert [(e.row, e.message) for e in result.errors] == [(3, "Direction must be either LONG or SHORT")]
        assert db.query(Trade).count() == 0

    def test_foreign_account_refused_before_parsing(self, db, owner):
        user, _ = owner
        other = Account(user_id=user.id + 1, name="Not yours")
        db.add(other)
        db.commit()
        with pytest.raises(AccountAccessError):
            import_trade_csv(db, "", other.id, user.id)

    def test_store_failure_rolls_back(self, db, owner):
        user, acct = owner
        text = csv_of("AAPL,LONG,100,110,10,2024-01-02,2024-01-03,5,,,")
        with patch.object(db, "commit", side_effect=OperationalError("INSERT", {}, Exception("disk I/O error"))):
            with pytest.raises(PersistenceError):
                import_trade_csv(db, text, acct.id, user.id)
        assert db.query(Trade).count() == 0
