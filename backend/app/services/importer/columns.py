"""
Header and value normalisation for trade CSV files.

Broker exports spell the same column many ways ("Entry Price", "entry_price",
"EntryPrice", "entry"). Headers are lower-cased and stripped of
spaces, underscores and hyphens, then looked up in one synonym table.
"""
import math
import re
from datetime import datetime, timezone
from typing import Optional

# Logical field -> accepted header spellings (before normalisation)
COLUMN_SYNONYMS: dict[str, tuple[str, ...]] = {
    "symbol": ("symbol", "ticker", "instrument"),
    "direction": ("direction", "type", "side", "position"),
    "entry_price": ("entryPrice", "entry price", "entry_price", "entry"),
    "exit_price": ("exitPrice", "exit price", "exit_price", "exit"),
    "quantity": ("quantity", "qty", "size", "shares", "contracts"),
    "entry_date": ("entryDate", "entry date", "entry_date", "open date", "entry time"),
    "exit_date": ("exitDate", "exit date", "exit_date", "close date", "exit time"),
    "fees": ("fees", "fee", "commission", "commissions"),
    "notes": ("notes", "note", "comment", "comments"),
    "strategy": ("strategy", "setup"),
    "tags": ("tags", "tag"),
}

# Common datetime formats tried after ISO 8601
DATETIME_FORMATS = [
    "%Y-%m-%d %H:%M:%S",   # 2025-01-02 14:30:00
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d %H:%M:%S",   # Slash: 2025/01/02 14:30:00
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d",
    "%Y.%m.%d %H:%M:%S",   # MT5 export: 2025.01.02 14:30:00
    "%Y.%m.%d %H:%M",
    "%m/%d/%Y %H:%M:%S",   # US format
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
]

_STRIP = re.compile(r"[\s_\-]+")


def normalize_header(header: str) -> str:
    return _STRIP.sub("", (header or "").strip().lstrip("\ufeff").lower())


_ALIAS_TO_FIELD = {
    normalize_header(alias): field
    for field, aliases in COLUMN_SYNONYMS.items()
    for alias in aliases
}


def resolve_columns(headers: list[str]) -> dict[str, str]:
    """Map logical field -> actual header name. The first matching header wins."""
    mapping: dict[str, str] = {}
    for h in headers:
        if h is None:
            continue
        field = _ALIAS_TO_FIELD.get(normalize_header(h))
        if field and field not in mapping:
            mapping[field] = h
    return mapping


def parse_number(value: Optional[str], delimiter: str = ",") -> Optional[float]:
    """Parse a numeric cell. Blank -> None; garbage -> NaN.

    In semicolon-delimited files a comma is the decimal separator and dots
    group thousands ("4.500,25"); more than one comma is ambiguous. In
    other files commas group thousands ("1,234.50").
    """
    if value is None:
        return None
    text = value.strip().replace("$", "").replace(" ", "")
    if not text:
        return None
    if delimiter == ";" and "," in text:
        if text.count(",") > 1:
            return math.nan
        text = text.replace(".", "").replace(",", ".")
    else:
        text = text.replace(",", "")
    try:
        number = float(text)
    except ValueError:
        return math.nan
    return number if math.isfinite(number) else math.nan


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Offset-aware values become naive UTC, which is how timestamps are stored."""
    if dt is not None and dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def parse_datetime(value: str) -> Optional[datetime]:
    """Try ISO 8601 first, then the known export formats.

    Offset-aware values are converted to naive UTC.
    """
    value = value.strip()
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        dt = None
        for fmt in DATETIME_FORMATS:
            try:
                dt = datetime.strptime(value, fmt)
                break
            except ValueError:
                continue
    return to_naive_utc(dt)


def split_tags(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [tag.strip() for tag in value.split(",") if tag.strip()]
