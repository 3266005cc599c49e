"""Row dataclasses for trades, daily targets, and sentiment logs."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

# Sentinels marking capital movements rather than trading outcomes
DEPOSIT = "DEPOSIT"
WITHDRAWAL = "WITHDRAWAL"
CAPITAL_ADJUSTMENT = "CAPITAL_ADJUSTMENT"


@dataclass
class Trade:
    """One logged position outcome (or a capital adjustment)."""
    trade_name: str
    pnl_amount: float
    trade_date: date                    # IST trading session, not created_at
    created_at: Optional[datetime] = None
    comments: Optional[str] = None
    setup_type: Optional[str] = None
    market_state: Optional[str] = None
    id: Optional[int] = None

    @property
    def is_adjustment(self) -> bool:
        return is_capital_adjustment(self)

    @property
    def is_winner(self) -> bool:
        return self.pnl_amount > 0

    @property
    def is_loser(self) -> bool:
        return self.pnl_amount < 0

    @classmethod
    def from_row(cls, row: dict) -> "Trade":
        """Build a Trade from a database row dict."""
        created = row.get("created_at")
        return cls(
            id=row.get("id"),
            trade_name=row["trade_name"],
            pnl_amount=float(row["pnl_amount"]),
            trade_date=date.fromisoformat(row["trade_date"]),
            created_at=datetime.fromisoformat(created) if created else None,
            comments=row.get("comments"),
            setup_type=row.get("setup_type"),
            market_state=row.get("market_state"),
        )


@dataclass
class DailyTarget:
    """Target percentage override for a single calendar date."""
    date: date
    target_percentage: float
    notes: Optional[str] = None
    id: Optional[int] = None


@dataclass
class SentimentLog:
    """Archived inputs and verdict of one sentiment evaluation."""
    cpr_type: str
    vix_range: str
    oi_build_up: str
    pcr_value: float
    global_cues: str
    final_verdict: str
    conviction_score: int
    warnings: list[str] = field(default_factory=list)
    support_level: Optional[str] = None
    resistance_level: Optional[str] = None
    created_at: Optional[datetime] = None
    id: Optional[int] = None


def is_capital_adjustment(trade: Trade) -> bool:
    """True for deposit/withdrawal rows that must stay out of statistics."""
    return (
        trade.comments == CAPITAL_ADJUSTMENT
        or trade.trade_name in (DEPOSIT, WITHDRAWAL)
    )


def performance_trades(trades: list[Trade]) -> list[Trade]:
    """Drop capital adjustments, keeping only real trading outcomes."""
    return [t for t in trades if not is_capital_adjustment(t)]


def total_pnl(trades: list[Trade]) -> float:
    return sum(t.pnl_amount for t in trades)
