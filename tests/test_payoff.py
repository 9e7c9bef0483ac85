import pytest

from optcalc.payoff import (
    PayoffPoint,
    breakeven,
    curve_to_frame,
    payoff_curve,
    payoff_frame,
    price_range,
)
from optcalc.pricing import calculate_option_premium


class TestRange:
    def test_range_around_strike(self):
        assert price_range(100, 100) == (25.0, 175.0)

    def test_lower_bound_clamped_at_zero(self):
        assert price_range(200, 100) == (0.0, 250.0)


class TestCurve:
    def test_point_count_and_endpoints(self):
        curve = payoff_curve(100, 100, 10.0, "call")
        assert len(curve) == 101
        assert curve[0].price == 25.0
        assert curve[-1].price == 175.0

    def test_ascending_uniform_prices(self):
        curve = payoff_curve(3000, 3200, 150.0, "put")
        prices = [p.price for p in curve]
        assert prices == sorted(prices)
        steps = {round(b - a, 2) for a, b in zip(prices, prices[1:])}
        assert max(steps) - min(steps) <= 0.011

    @pytest.mark.parametrize("side", ["call", "put"])
    def test_zero_sum(self, side):
        for point in payoff_curve(42123.45, 40000, 1234.567, side):
            assert point.buyer_pnl + point.seller_pnl == 0

    def test_call_values(self):
        curve = payoff_curve(100, 100, 10.0, "call")
        at_low = curve[0]
        assert at_low.buyer_pnl == -10.0
        assert at_low.seller_pnl == 10.0
        at_high = curve[-1]
        assert at_high.buyer_pnl == pytest.approx(65.0)

    def test_put_values(self):
        curve = payoff_curve(100, 100, 5.0, "put")
        assert curve[0].buyer_pnl == pytest.approx(70.0)
        assert curve[-1].buyer_pnl == -5.0

    def test_buyer_loss_capped_at_premium(self):
        premium = calculate_option_premium(100, 100, 0.5, 0.8, 0.0, "call")
        curve = payoff_curve(100, 100, premium, "call")
        assert min(p.buyer_pnl for p in curve) == round(-premium, 2)

    def test_rounded_to_cents(self):
        for p in payoff_curve(97.3, 101.7, 3.14159, "call"):
            assert p.price == round(p.price, 2)
            assert p.buyer_pnl == round(p.buyer_pnl, 2)

    def test_custom_steps(self):
        assert len(payoff_curve(100, 100, 1.0, "call", steps=10)) == 11

    def test_bad_side(self):
        with pytest.raises(ValueError):
            payoff_curve(100, 100, 1.0, "strangle")


class TestFrameAndBreakeven:
    def test_frame_columns(self):
        df = payoff_frame(100, 100, 10.0, "call")
        assert list(df.columns) == ["price", "buyer_pnl", "seller_pnl"]
        assert len(df) == 101
        assert df["price"].is_monotonic_increasing

    def test_empty_frame(self):
        df = curve_to_frame([])
        assert df.empty
        assert list(df.columns) == ["price", "buyer_pnl", "seller_pnl"]

    def test_frame_from_points(self):
        df = curve_to_frame([PayoffPoint(1.0, -2.0, 2.0)])
        assert df.iloc[0].to_dict() == {"price": 1.0, "buyer_pnl": -2.0, "seller_pnl": 2.0}

    def test_breakeven(self):
        assert breakeven(100, 10.45, "call") == pytest.approx(110.45)
        assert breakeven(100, 5.57, "put") == pytest.approx(94.43)
