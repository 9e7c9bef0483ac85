"""
Configuration constants for the option calculator.

Single source of truth for day-count, input defaults, payoff sampling,
live-volatility feed settings, and the asset table.
"""

# ---------------------------------------------------------------------------
# Day count
# ---------------------------------------------------------------------------
DAYS_PER_YEAR = 365.0
SECONDS_PER_DAY = 24 * 3600

# ---------------------------------------------------------------------------
# Input defaults (percent inputs, as entered on the command line)
# ---------------------------------------------------------------------------
DEFAULT_VOLATILITY_PCT = 100.0
DEFAULT_RATE_PCT = 0.0
DEFAULT_EXPIRY_DAYS = 30
DEFAULT_SPOT = 100.0
DEFAULT_STRIKE = 100.0

# Quick-select expiries: label -> pandas DateOffset kwargs
EXPIRY_PRESETS = {
    "1h": {"hours": 1},
    "1d": {"days": 1},
    "1w": {"days": 7},
    "1m": {"months": 1},
    "3m": {"months": 3},
    "1y": {"years": 1},
}

# ---------------------------------------------------------------------------
# Payoff curve sampling
# ---------------------------------------------------------------------------
PAYOFF_STEPS = 100
PAYOFF_RANGE = 0.75  # +/- fraction of spot around the strike

# ---------------------------------------------------------------------------
# Live volatility feed (Deribit DVOL)
# ---------------------------------------------------------------------------
DVOL_URL = "wss://www.deribit.com/ws/api/v2"
DVOL_METHOD = "public/get_historical_volatility"
DVOL_TIMEOUT = 5.0  # seconds per request/response cycle
DVOL_POLL_INTERVAL = 30.0  # seconds between cycles
DVOL_CLOSE_TIMEOUT = 1.0  # seconds to wait for the close handshake
DVOL_ASSETS = frozenset({"BTC", "ETH"})

# ---------------------------------------------------------------------------
# Price lookup (seconds between yfinance calls)
# ---------------------------------------------------------------------------
RATE_LIMIT_SLEEP = 0.30

# ---------------------------------------------------------------------------
# Asset table: symbol -> display name, Yahoo Finance ticker
# ---------------------------------------------------------------------------
ASSETS = {
    "BTC": {"name": "Bitcoin (BTC)", "ticker": "BTC-USD"},
    "ETH": {"name": "Ethereum (ETH)", "ticker": "ETH-USD"},
    "SOL": {"name": "Solana (SOL)", "ticker": "SOL-USD"},
    "ADA": {"name": "Cardano (ADA)", "ticker": "ADA-USD"},
    "MATIC": {"name": "Polygon (MATIC)", "ticker": "MATIC-USD"},
    "BASE": {"name": "Base (BASE)", "ticker": "CBETH-USD"},
    "ARB": {"name": "Arbitrum (ARB)", "ticker": "ARB11841-USD"},
}

# ---------------------------------------------------------------------------
# Greek descriptions (terminal + Excel output)
# ---------------------------------------------------------------------------
GREEK_DESCRIPTIONS = {
    "delta": "Change in option price for a $1 move in the underlying",
    "gamma": "Change in delta for a $1 move in the underlying",
    "theta": "Change in option price per calendar day (time decay)",
    "vega": "Change in option price for a 1% move in volatility",
    "rho": "Change in option price for a 1% move in interest rates",
}
