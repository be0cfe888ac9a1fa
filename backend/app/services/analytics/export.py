"""CSV export of trades, in a layout the importer reads back."""
import csv
import io

EXPORT_COLUMNS = [
    "id", "account", "symbol", "direction", "quantity", "entryPrice", "entryDate",
    "exitPrice", "exitDate", "fees", "pnl", "strategy", "notes", "tags",
]


def _fmt_date(dt) -> str:
    return dt.isoformat() if dt else ""


def _fmt_num(value) -> str:
    return "" if value is None else repr(float(value))


def trades_to_csv(trades) -> str:
    out = io.StringIO()
    w = csv.writer(out)
    w.writerow(EXPORT_COLUMNS)
    for t in trades:
        w.writerow([
            t.id,
            t.account.name if t.account else "",
            t.symbol,
            t.direction,
            _fmt_num(t.quantity),
            _fmt_num(t.entry_price),
            _fmt_date(t.entry_date),
            _fmt_num(t.exit_price),
            _fmt_date(t.exit_date),
            _fmt_num(t.fees),
            _fmt_num(t.pnl),
            t.strategy or "",
            (t.notes or "").replace("\n", " ").strip(),
            ",".join(t.tags or []),
        ])
    return out.getvalue()
