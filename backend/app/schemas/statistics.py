from typing import Optional

from pydantic import BaseModel


class CurrentStreak(BaseModel):
    count: int
    type: Optional[str] = None   # win | loss | None


class Overview(BaseModel):
    total_trades: int
    open_trades: int
    closed_trades: int
    win_count: int
    loss_count: int
    break_even_count: int
    win_rate: float
    loss_rate: float
    break_even_rate: float
    total_pnl: float
    gross_profit: float
    gross_loss: float
    avg_win: float
    avg_loss: float
    profit_factor: Optional[float] = None   # None = no losing trades to divide by
    largest_win: float
    largest_loss: float
    max_drawdown: float
    max_win_streak: int
    max_loss_streak: int
    current_streak: CurrentStreak


class SymbolStats(BaseModel):
    symbol: str
    total_trades: int
    wins: int
    losses: int
    pnl: float
    win_rate: float


class StrategyStats(BaseModel):
    strategy: str
    total_trades: int
    wins: int
    losses: int
    pnl: float
    win_rate: float


class Bucket(BaseModel):
    count: int
    pnl: float


class TimeDistribution(BaseModel):
    by_hour: dict[int, Bucket]
    by_day_of_week: dict[int, Bucket]
    by_month: dict[int, Bucket]


class MonthlyPnl(BaseModel):
    month: str
    pnl: float


class StatisticsResponse(BaseModel):
    overview: Overview
    symbols: list[SymbolStats]
    strategies: list[StrategyStats]
    time_distribution: TimeDistribution
    monthly_pnl: list[MonthlyPnl]
