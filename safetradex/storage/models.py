"""SQLite schema definitions for the trade journal, rules, targets, and gate state."""

# SQL statements for creating tables
CREATE_TABLES = """
CREATE TABLE IF NOT EXISTS daily_trades (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    trade_name TEXT NOT NULL,
    pnl_amount REAL NOT NULL,
    comments TEXT,
    setup_type TEXT,
    market_state TEXT,
    trade_date TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    starting_capital REAL DEFAULT 0.0,
    max_daily_loss_percent REAL DEFAULT 2.0,
    daily_profit_target_percent REAL DEFAULT 5.0,
    max_trades_per_day INTEGER DEFAULT 10,
    brokerage_per_order REAL DEFAULT 20.0,
    max_lot_size INTEGER DEFAULT 1,
    lot_value REAL DEFAULT 0.0,
    current_streak INTEGER DEFAULT 0,
    monthly_target_percent REAL DEFAULT 20.0,
    yearly_target_percent REAL DEFAULT 200.0,
    yearly_target_amount REAL DEFAULT 1000000.0,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS daily_targets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL UNIQUE,
    target_percentage REAL NOT NULL,
    notes TEXT
);

CREATE TABLE IF NOT EXISTS sentiment_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    cpr_type TEXT NOT NULL,
    vix_range TEXT NOT NULL,
    oi_build_up TEXT NOT NULL,
    pcr_value REAL NOT NULL,
    global_cues TEXT NOT NULL,
    support_level TEXT,
    resistance_level TEXT,
    final_verdict TEXT NOT NULL,
    conviction_score INTEGER NOT NULL,
    warnings TEXT,
    created_at TEXT DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS gate_state (
    key TEXT PRIMARY KEY,
    value TEXT,
    updated_at TEXT DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_trades_trade_date ON daily_trades(trade_date);
CREATE INDEX IF NOT EXISTS idx_trades_created_at ON daily_trades(created_at);
"""

SETTINGS_COLUMNS = (
    "starting_capital",
    "max_daily_loss_percent",
    "daily_profit_target_percent",
    "max_trades_per_day",
    "brokerage_per_order",
    "max_lot_size",
    "lot_value",
    "current_streak",
    "monthly_target_percent",
    "yearly_target_percent",
    "yearly_target_amount",
)
