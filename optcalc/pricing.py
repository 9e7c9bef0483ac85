"""
Black-Scholes pricing and Greeks for European options (no dividends).

Standard library only (math). The normal CDF is the Abramowitz-Stegun
erf approximation, accurate to about 1e-7.
"""

import math
from dataclasses import asdict, dataclass

CALL = "call"
PUT = "put"

# Abramowitz & Stegun 7.1.26
_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429
_P = 0.3275911

_SQRT2 = math.sqrt(2.0)
_SQRT2PI = math.sqrt(2.0 * math.pi)


# ---------------------------------------------------------------------------
# Normal distribution
# ---------------------------------------------------------------------------


def normal_cdf(x: float) -> float:
    """P(Z <= x) for standard normal Z.  normal_cdf(-x) == 1 - normal_cdf(x)."""
    if x == 0:
        return 0.5
    sign = -1.0 if x < 0 else 1.0
    z = abs(x) / _SQRT2
    t = 1.0 / (1.0 + _P * z)
    erf = 1.0 - ((((_A5 * t + _A4) * t + _A3) * t + _A2) * t + _A1) * t * math.exp(
        -z * z
    )
    return 0.5 * (1.0 + sign * erf)


def normal_pdf(x: float) -> float:
    return math.exp(-0.5 * x * x) / _SQRT2PI


_N = normal_cdf
_n = normal_pdf


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


def normalize_side(option_type: str) -> str:
    side = str(option_type).strip().lower()
    if side not in (CALL, PUT):
        raise ValueError(f"option type must be 'call' or 'put', got {option_type!r}")
    return side


@dataclass(frozen=True)
class OptionContract:
    """Inputs for one calculation.  volatility and rate are decimals."""

    spot: float
    strike: float
    expiry: float  # year fraction
    volatility: float
    rate: float = 0.0
    side: str = CALL

    def __post_init__(self):
        object.__setattr__(self, "side", normalize_side(self.side))


@dataclass(frozen=True)
class GreeksResult:
    delta: float = 0.0
    gamma: float = 0.0
    theta: float = 0.0  # per calendar day
    vega: float = 0.0  # per 1% vol
    rho: float = 0.0  # per 1% rate

    def as_dict(self) -> dict:
        return asdict(self)


ZERO_GREEKS = GreeksResult()


def is_valid(contract: OptionContract) -> bool:
    """S, K, T and sigma strictly positive.  NaN counts as invalid."""
    return (
        contract.spot > 0
        and contract.strike > 0
        and contract.expiry > 0
        and contract.volatility > 0
    )


def _d1_d2(c: OptionContract) -> tuple[float, float]:
    vol_sqrt_t = c.volatility * math.sqrt(c.expiry)
    d1 = (
        math.log(c.spot / c.strike) + (c.rate + 0.5 * c.volatility**2) * c.expiry
    ) / vol_sqrt_t
    return d1, d1 - vol_sqrt_t


# ---------------------------------------------------------------------------
# Price
# ---------------------------------------------------------------------------


def option_premium(contract: OptionContract) -> float:
    """European option price.  Invalid contracts price at exactly 0."""
    if not is_valid(contract):
        return 0.0
    S, K, T, r = contract.spot, contract.strike, contract.expiry, contract.rate
    d1, d2 = _d1_d2(contract)
    discount = K * math.exp(-r * T)
    if contract.side == CALL:
        return S * _N(d1) - discount * _N(d2)
    return discount * _N(-d2) - S * _N(-d1)


def calculate_option_premium(
    S: float, K: float, T: float, sigma: float, r: float, option_type: str = CALL
) -> float:
    return option_premium(OptionContract(S, K, T, sigma, r, option_type))


# ---------------------------------------------------------------------------
# Greeks
# ---------------------------------------------------------------------------


def greeks(contract: OptionContract) -> GreeksResult:
    """
    All five Greeks at one contract.

    theta is per calendar day (annual / 365), vega and rho are per one
    percentage point.  Invalid contracts return all zeros.
    """
    if not is_valid(contract):
        return ZERO_GREEKS
    S, K, T, r = contract.spot, contract.strike, contract.expiry, contract.rate
    sigma = contract.volatility
    sqrt_t = math.sqrt(T)
    d1, d2 = _d1_d2(contract)
    pdf_d1 = _n(d1)
    discount = K * math.exp(-r * T)

    gamma = pdf_d1 / (S * sigma * sqrt_t)
    vega = S * pdf_d1 * sqrt_t * 0.01
    decay = -(S * sigma * pdf_d1) / (2.0 * sqrt_t)

    if contract.side == CALL:
        delta = _N(d1)
        theta = (decay - r * discount * _N(d2)) / 365.0
        rho = T * discount * _N(d2) * 0.01
    else:
        delta = _N(d1) - 1.0
        theta = (decay + r * discount * _N(-d2)) / 365.0
        rho = -T * discount * _N(-d2) * 0.01

    return GreeksResult(delta=delta, gamma=gamma, theta=theta, vega=vega, rho=rho)


def calculate_greeks(
    S: float, K: float, T: float, sigma: float, r: float, option_type: str = CALL
) -> GreeksResult:
    return greeks(OptionContract(S, K, T, sigma, r, option_type))
