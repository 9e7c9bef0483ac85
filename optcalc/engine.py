"""
Quote engine: turns user-level inputs into a priced contract, its Greeks,
and the payoff curve.

Volatility and rate arrive in percent, as typed on the command line, and
are converted to decimals here.
"""

import math
import sys
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

import pandas as pd

from . import config as cfg
from . import expiry as exp
from . import payoff, pricing


@dataclass
class Quote:
    contract: pricing.OptionContract
    premium: float
    greeks: pricing.GreeksResult
    curve: list = field(default_factory=list)
    asset: Optional[str] = None
    vol_source: str = "manual"

    @property
    def valid(self) -> bool:
        return pricing.is_valid(self.contract)

    @property
    def premium_pct(self) -> float:
        """Premium as a percent of spot."""
        if self.contract.spot <= 0:
            return 0.0
        return self.premium / self.contract.spot * 100.0

    @property
    def breakeven(self) -> float:
        return payoff.breakeven(self.contract.strike, self.premium, self.contract.side)


# ---------------------------------------------------------------------------
# Input checks (type only; range is the pricing engine's job)
# ---------------------------------------------------------------------------


def _finite(name: str, value) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(out):
        raise ValueError(f"{name} must be finite, got {value!r}")
    return out


def time_to_expiry(
    expiry: Optional[datetime] = None,
    duration: Optional[tuple] = None,
    now: Optional[datetime] = None,
) -> float:
    """Year fraction from either an expiry instant or an (h, m, s) duration."""
    if expiry is not None and duration is not None:
        raise ValueError("give either an expiry instant or a duration, not both")
    if duration is not None:
        hours, minutes, seconds = duration
        return exp.from_duration(hours, minutes, seconds)
    if expiry is None:
        expiry = exp.default_expiry(now)
    return exp.from_instant(expiry, now)


# ---------------------------------------------------------------------------
# Main calculation
# ---------------------------------------------------------------------------


def build_quote(
    spot: float,
    strike: float,
    volatility_pct: float = cfg.DEFAULT_VOLATILITY_PCT,
    rate_pct: float = cfg.DEFAULT_RATE_PCT,
    option_type: str = pricing.CALL,
    *,
    expiry: Optional[datetime] = None,
    duration: Optional[tuple] = None,
    now: Optional[datetime] = None,
    asset: Optional[str] = None,
    vol_source: str = "manual",
    steps: int = cfg.PAYOFF_STEPS,
) -> Quote:
    """
    Price one option and build its payoff curve.

    Invalid contracts (non-positive spot, strike, time or volatility) are
    not rejected: they come back with a zero premium and zero Greeks.
    """
    contract = pricing.OptionContract(
        spot=_finite("spot", spot),
        strike=_finite("strike", strike),
        expiry=time_to_expiry(expiry, duration, now),
        volatility=_finite("volatility", volatility_pct) / 100.0,
        rate=_finite("rate", rate_pct) / 100.0,
        side=option_type,
    )
    premium = pricing.option_premium(contract)
    curve = payoff.payoff_curve(
        contract.spot, contract.strike, premium, contract.side, steps
    )
    return Quote(
        contract=contract,
        premium=premium,
        greeks=pricing.greeks(contract),
        curve=curve,
        asset=asset.upper() if asset else None,
        vol_source=vol_source,
    )


def quote_frame(quote: Quote) -> pd.DataFrame:
    """One-row summary of a quote."""
    c = quote.contract
    row = {
        "asset": quote.asset or "",
        "side": c.side,
        "spot": c.spot,
        "strike": c.strike,
        "years": c.expiry,
        "days": c.expiry * cfg.DAYS_PER_YEAR,
        "volatility": c.volatility,
        "vol_source": quote.vol_source,
        "rate": c.rate,
        "premium": quote.premium,
        "premium_pct": quote.premium_pct,
        "breakeven": quote.breakeven,
        **quote.greeks.as_dict(),
    }
    return pd.DataFrame([row])


def curve_frame(quote: Quote) -> pd.DataFrame:
    return payoff.curve_to_frame(quote.curve)


# ---------------------------------------------------------------------------
# Terminal display
# ---------------------------------------------------------------------------


def print_report(quote: Quote):
    """Compact terminal report."""
    c = quote.contract
    label = quote.asset or "OPTION"
    print(f"\n{'=' * 64}")
    print(f"  {label} {c.side.upper()}  |  {date.today().isoformat()}")
    print(f"{'=' * 64}\n")

    if not quote.valid:
        print("  Inputs incomplete: spot, strike, time and volatility must be > 0.")
        print("  Premium and Greeks are reported as zero.\n")

    print(f"  Spot        ${c.spot:,.2f}")
    print(f"  Strike      ${c.strike:,.2f}")
    print(f"  Expiry      {c.expiry * cfg.DAYS_PER_YEAR:,.2f} days ({c.expiry:.6f} y)")
    print(f"  Volatility  {c.volatility:.2%}  [{quote.vol_source}]")
    print(f"  Rate        {c.rate:.2%}")
    print(f"\n  Premium     ${quote.premium:,.2f}  ({quote.premium_pct:.2f}% of spot)")
    print(f"  Breakeven   ${quote.breakeven:,.2f}")

    print(f"\n{'─' * 64}")
    for name, value in quote.greeks.as_dict().items():
        print(f"  {name.upper():<6} {value:>12.4f}   {cfg.GREEK_DESCRIPTIONS[name]}")
    print(f"{'─' * 64}\n")


def print_curve(quote: Quote, every: int = 10):
    """Payoff table, one row per ``every`` sample points plus the last."""
    df = curve_frame(quote)
    if df.empty:
        print("No payoff data.")
        return
    picks = sorted(set(range(0, len(df), max(1, every))) | {len(df) - 1})
    view = df.iloc[picks].copy()
    for col in ["price", "buyer_pnl", "seller_pnl"]:
        view[col] = view[col].map(lambda x: f"{x:,.2f}")
    view.columns = ["PRICE", "BUYER P&L", "SELLER P&L"]
    print(view.to_string(index=False))


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def _log(msg: str):
    print(f"  {msg}", file=sys.stderr, flush=True)
