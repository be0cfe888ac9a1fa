from unittest.mock import patch

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

HEADER = "Symbol,Side,Entry Price,Exit Price,Qty,Entry Date,Exit Date,Commission,Tags"


def upload(client, headers, account_id, text, filename="trades.csv"):
    return client.post(
        "/api/import/csv",
        files={"file": (filename, text.encode("utf-8"), "text/csv")},
        data={"account_id": str(account_id)},
        headers=headers,
    )


class TestCsvImportEndpoint:
    def test_imports_all_rows(self, client, auth_headers, account):
        text = "\n".join([
            HEADER,
            "AAPL,long,100,110,10,2024-01-02 10:00,2024-01-03 10:00,5,momentum",
            "MSFT,SHORT,300,290,2,2024-01-04 10:00,2024-01-05 10:00,0,",
            "TSLA,LONG,200,,1,2024-01-06 10:00,,,",
        ])
        r = upload(client, auth_headers, account["id"], text)
        assert r.status_code == 200, r.text
        assert r.json()["inserted_count"] == 3

        items = client.get("/api/trades", headers=auth_headers).json()["items"]
        by_symbol = {t["symbol"]: t for t in items}
        assert by_symbol["AAPL"]["pnl"] == 95
        assert by_symbol["AAPL"]["tags"] == ["momentum"]
        assert by_symbol["TSLA"]["pnl"] is None
        assert all(t["account_id"] == account["id"] for t in items)

    def test_bad_row_rejects_batch(self, client, auth_headers, account):
        text = "\n".join([
            HEADER,
            "AAPL,LONG,100,110,10,2024-01-02 10:00,2024-01-03 10:00,5,",
            "MSFT,BUY,300,290,2,2024-01-04 10:00,2024-01-05 10:00,0,",
        ])
        r = upload(client, auth_headers, account["id"], text)
        assert r.status_code == 400
        assert r.json() == {
            "detail": "Validation errors in CSV data",
            "errors": [{"row": 3, "message": "Direction must be either LONG or SHORT"}],
        }
        assert client.get("/api/trades", headers=auth_headers).json()["pagination"]["total"] == 0

    def test_bom_prefixed_file(self, client, auth_headers, account):
        text = "\ufeff" + HEADER + "\nAAPL,LONG,100,,1,2024-01-02,,,\n"
        r = upload(client, auth_headers, account["id"], text)
        assert r.status_code == 200
        assert r.json()["inserted_count"] == 1

    def test_store_failure(self, client, auth_headers, account):
        text = "\n".join([
            HEADER,
            "AAPL,LONG,100,110,10,2024-01-02 10:00,2024-01-03 10:00,5,",
            "MSFT,SHORT,300,290,2,2024-01-04 10:00,2024-01-05 10:00,0,",
        ])
        failure = OperationalError("INSERT", {}, Exception("disk I/O error"))
        with patch.object(Session, "commit", side_effect=failure):
            r = upload(client, auth_headers, account["id"], text)
        assert r.status_code == 500
        assert r.json() == {"detail": "Could not save imported trades"}
        assert client.get("/api/trades", headers=auth_headers).json()["pagination"]["total"] == 0

    def test_semicolon_file_with_decimal_commas(self, client, auth_headers, account):
        text = "Symbol;Side;Entry Price;Exit Price;Qty;Entry Date;Exit Date\nES;LONG;4500,25;4501,25;2;2024-03-01;2024-03-02\n"
        r = upload(client, auth_headers, account["id"], text)
        assert r.status_code == 200, r.text
        trade = client.get("/api/trades", headers=auth_headers).json()["items"][0]
        assert trade["entry_price"] == 4500.25
        assert trade["pnl"] == 2.0

    def test_empty_file(self, client, auth_headers, account):
        r = upload(client, auth_headers, account["id"], HEADER + "\n")
        assert r.status_code == 400
        assert r.json()["detail"] == "CSV file is empty"

    def test_not_csv(self, client, auth_headers, account):
        r = upload(client, auth_headers, account["id"], "x", filename="trades.xlsx")
        assert r.status_code == 400

    def test_foreign_account(self, client, account, other_headers):
        text = HEADER + "\nAAPL,LONG,100,,1,2024-01-02,,,\n"
        r = upload(client, other_headers, account["id"], text)
        assert r.status_code == 403
        assert r.json()["detail"] == "Invalid account"

    def test_anonymous(self, client):
        r = upload(client, {}, 1, HEADER + "\n")
        assert r.status_code == 401
