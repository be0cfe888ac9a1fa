"""
Performance statistics over a set of trades.

Pure computation: the caller selects the trades (user, account, date range)
and this module only reduces them. A trade is closed when it has an exit
date; only closed trades contribute P&L, wins and losses.
"""
from datetime import datetime
from typing import Optional

UNSPECIFIED_STRATEGY = "Unspecified"


def _is_closed(trade) -> bool:
    return trade.exit_date is not None


def _pnl(trade) -> float:
    return trade.pnl or 0.0


def _pct(part: int, whole: int) -> float:
    return part / whole * 100 if whole > 0 else 0.0


def profit_factor(gross_profit: float, gross_loss: float) -> Optional[float]:
    """Gross profit divided by gross loss (as a magnitude).

    With no losing trades the ratio is unbounded: None is returned when there
    was any profit, 0 when there was none.
    """
    if gross_loss == 0:
        return None if gross_profit > 0 else 0.0
    return gross_profit / abs(gross_loss)


def compute_streaks(closed_trades: list) -> dict:
    """Longest winning/losing runs over closed trades in entry-date order.

    A break-even trade ends any run in progress without starting a new one.
    """
    ordered = sorted(closed_trades, key=lambda t: t.entry_date)

    current = 0
    current_type = None
    max_win = 0
    max_loss = 0
    for t in ordered:
        pnl = _pnl(t)
        if pnl > 0:
            current = current + 1 if current_type == "win" else 1
            current_type = "win"
            max_win = max(max_win, current)
        elif pnl < 0:
            current = current + 1 if current_type == "loss" else 1
            current_type = "loss"
            max_loss = max(max_loss, current)
        else:
            current = 0
            current_type = None

    return {
        "max_win_streak": max_win,
        "max_loss_streak": max_loss,
        "current_streak": {"count": current, "type": current_type},
    }


def compute_max_drawdown(closed_trades: list) -> float:
    """Largest peak-to-trough fall of cumulative P&L, in exit-date order."""
    ordered = sorted(closed_trades, key=lambda t: (t.exit_date, t.entry_date))
    equity = 0.0
    peak = 0.0
    max_dd = 0.0
    for t in ordered:
        equity += _pnl(t)
        if equity > peak:
            peak = equity
        max_dd = max(max_dd, peak - equity)
    return max_dd


def compute_overview(trades: list) -> dict:
    closed = [t for t in trades if _is_closed(t)]
    wins = [t for t in closed if _pnl(t) > 0]
    losses = [t for t in closed if _pnl(t) < 0]
    break_even = len(closed) - len(wins) - len(losses)

    gross_profit = sum(_pnl(t) for t in wins)
    gross_loss = sum(_pnl(t) for t in losses)

    overview = {
        "total_trades": len(trades),
        "open_trades": len(trades) - len(closed),
        "closed_trades": len(closed),
        "win_count": len(wins),
        "loss_count": len(losses),
        "break_even_count": break_even,
        "win_rate": _pct(len(wins), len(closed)),
        "loss_rate": _pct(len(losses), len(closed)),
        "break_even_rate": _pct(break_even, len(closed)),
        "total_pnl": sum(_pnl(t) for t in closed),
        "gross_profit": gross_profit,
        "gross_loss": gross_loss,
        "avg_win": gross_profit / len(wins) if wins else 0.0,
        "avg_loss": abs(gross_loss) / len(losses) if losses else 0.0,
        "profit_factor": profit_factor(gross_profit, gross_loss),
        "largest_win": max((_pnl(t) for t in wins), default=0.0),
        "largest_loss": min((_pnl(t) for t in losses), default=0.0),
        "max_drawdown": compute_max_drawdown(closed),
    }
    overview.update(compute_streaks(closed))
    return overview


def _group(trades: list, key_name: str, key_fn) -> list[dict]:
    groups: dict[str, dict] = {}
    for t in trades:
        key = key_fn(t)
        g = groups.setdefault(key, {key_name: key, "total_trades": 0, "wins": 0, "losses": 0, "pnl": 0.0})
        g["total_trades"] += 1
        if _is_closed(t):
            pnl = _pnl(t)
            if pnl > 0:
                g["wins"] += 1
            elif pnl < 0:
                g["losses"] += 1
            g["pnl"] += pnl

    for g in groups.values():
        g["win_rate"] = _pct(g["wins"], g["wins"] + g["losses"])
    return list(groups.values())


def _strategy_key(trade) -> str:
    strategy = (trade.strategy or "").strip()
    return strategy or UNSPECIFIED_STRATEGY


def day_of_week(dt: datetime) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (dt.weekday() + 1) % 7


def compute_time_distribution(trades: list) -> dict:
    """Histograms of entry time: hour of day, day of week and month (0 = January)."""
    dist = {"by_hour": {}, "by_day_of_week": {}, "by_month": {}}
    for t in trades:
        if t.entry_date is None:
            continue
        buckets = (
            ("by_hour", t.entry_date.hour),
            ("by_day_of_week", day_of_week(t.entry_date)),
            ("by_month", t.entry_date.month - 1),
        )
        for name, key in buckets:
            bucket = dist[name].setdefault(key, {"count": 0, "pnl": 0.0})
            bucket["count"] += 1
            if _is_closed(t):
                bucket["pnl"] += _pnl(t)

    for name in dist:
        dist[name] = dict(sorted(dist[name].items()))
    return dist


def compute_monthly_pnl(trades: list) -> list[dict]:
    months: dict[str, float] = {}
    for t in trades:
        if _is_closed(t):
            key = t.exit_date.strftime("%Y-%m")
            months[key] = months.get(key, 0.0) + _pnl(t)
    return [{"month": m, "pnl": months[m]} for m in sorted(months)]


def compute_statistics(trades: list) -> dict:
    """Full statistics payload for a list of trades.

    The output depends only on the trades passed in; an empty list yields
    zeroed metrics.
    """
    ordered = sorted(trades, key=lambda t: t.entry_date)
    return {
        "overview": compute_overview(ordered),
        "symbols": _group(ordered, "symbol", lambda t: t.symbol),
        "strategies": _group(ordered, "strategy", _strategy_key),
        "time_distribution": compute_time_distribution(ordered),
        "monthly_pnl": compute_monthly_pnl(ordered),
    }
