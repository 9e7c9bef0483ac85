"""
Data adapter: spot-price lookup via yfinance, rate limited.

External deps: yfinance, pandas (data only).
"""

import logging
import time
from typing import Optional

import pandas as pd
import yfinance as yf

from . import config as cfg
from .exceptions import PriceLookupError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Rate-limit helper
# ---------------------------------------------------------------------------

_last_call = 0.0


def _throttle():
    global _last_call
    elapsed = time.monotonic() - _last_call
    if elapsed < cfg.RATE_LIMIT_SLEEP:
        time.sleep(cfg.RATE_LIMIT_SLEEP - elapsed)
    _last_call = time.monotonic()


# ---------------------------------------------------------------------------
# Asset table
# ---------------------------------------------------------------------------


def asset_info(asset: str) -> dict:
    try:
        return cfg.ASSETS[asset.upper()]
    except KeyError:
        raise ValueError(
            f"unknown asset {asset!r}; choose from {', '.join(cfg.ASSETS)}"
        ) from None


def list_assets(live_assets=cfg.DVOL_ASSETS) -> list[dict]:
    return [
        {
            "symbol": symbol,
            "name": info["name"],
            "ticker": info["ticker"],
            "live_vol": symbol in live_assets,
        }
        for symbol, info in cfg.ASSETS.items()
    ]


# ---------------------------------------------------------------------------
# Spot price
# ---------------------------------------------------------------------------


def _safe_float(v) -> Optional[float]:
    try:
        return float(v) if v is not None else None
    except (TypeError, ValueError):
        return None


def _last_close(hist: pd.DataFrame) -> Optional[float]:
    if hist is None or hist.empty or "Close" not in hist.columns:
        return None
    closes = hist["Close"].dropna()
    if closes.empty:
        return None
    return _safe_float(closes.iloc[-1])


def get_spot(asset: str) -> float:
    """Latest USD price for ``asset``.  Raises PriceLookupError on failure."""
    ticker = asset_info(asset)["ticker"]
    _throttle()
    try:
        hist = yf.Ticker(ticker).history(period="1d")
    except Exception as exc:
        logger.warning("price lookup for %s failed: %s", ticker, exc)
        raise PriceLookupError(f"failed to fetch {asset.upper()} price: {exc}") from exc

    price = _last_close(hist)
    if price is None or price <= 0:
        raise PriceLookupError(f"invalid price data received for {asset.upper()}")
    logger.debug("%s spot = %.4f", ticker, price)
    return price
