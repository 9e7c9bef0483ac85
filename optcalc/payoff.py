"""
Buyer / seller profit-and-loss at expiry across a band of underlying prices.

Consumes a premium already computed by ``pricing``; intrinsic value uses
the same call/put convention as the pricing engine.
"""

from dataclasses import dataclass

import numpy as np
import pandas as pd

from . import config as cfg
from .pricing import CALL, normalize_side


@dataclass(frozen=True)
class PayoffPoint:
    price: float
    buyer_pnl: float
    seller_pnl: float


def price_range(spot: float, strike: float) -> tuple[float, float]:
    half_width = cfg.PAYOFF_RANGE * spot
    return max(0.0, strike - half_width), strike + half_width


def intrinsic(price: float, strike: float, side: str) -> float:
    if side == CALL:
        return max(0.0, price - strike)
    return max(0.0, strike - price)


def payoff_curve(
    spot: float,
    strike: float,
    premium: float,
    option_type: str,
    steps: int = cfg.PAYOFF_STEPS,
) -> list[PayoffPoint]:
    """
    ``steps + 1`` points in ascending price order, both range ends included.

    seller_pnl is the negation of buyer_pnl before rounding to cents.
    """
    side = normalize_side(option_type)
    low, high = price_range(spot, strike)
    curve = []
    for price in np.linspace(low, high, steps + 1):
        price = float(price)
        buyer = intrinsic(price, strike, side) - premium
        seller = -buyer
        curve.append(
            PayoffPoint(
                price=round(price, 2),
                buyer_pnl=round(buyer, 2),
                seller_pnl=round(seller, 2),
            )
        )
    return curve


def payoff_frame(
    spot: float,
    strike: float,
    premium: float,
    option_type: str,
    steps: int = cfg.PAYOFF_STEPS,
) -> pd.DataFrame:
    return curve_to_frame(payoff_curve(spot, strike, premium, option_type, steps))


def curve_to_frame(curve: list[PayoffPoint]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "price": [p.price for p in curve],
            "buyer_pnl": [p.buyer_pnl for p in curve],
            "seller_pnl": [p.seller_pnl for p in curve],
        }
    )


def breakeven(strike: float, premium: float, option_type: str) -> float:
    """Underlying price at expiry where the buyer's P&L is zero."""
    if normalize_side(option_type) == CALL:
        return strike + premium
    return strike - premium
