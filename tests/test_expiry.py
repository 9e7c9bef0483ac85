from datetime import datetime, timedelta, timezone

import pytest

from optcalc import expiry as exp
from optcalc.pricing import calculate_option_premium

NOW = datetime(2026, 3, 14, 9, 30, 0)


class TestFromInstant:
    def test_one_year(self):
        assert exp.from_instant(NOW + timedelta(days=365), NOW) == pytest.approx(1.0)

    def test_past_expiry_is_negative(self):
        assert exp.from_instant(NOW - timedelta(days=1), NOW) < 0

    def test_expiry_now_is_zero(self):
        assert exp.from_instant(NOW, NOW) == 0.0

    def test_aware_datetimes(self):
        now = NOW.replace(tzinfo=timezone.utc)
        assert exp.from_instant(now + timedelta(hours=12), now) == pytest.approx(0.5 / 365)

    def test_defaults_to_current_time(self):
        t = exp.from_instant(datetime.now() + timedelta(days=73))
        assert t == pytest.approx(0.2, abs=1e-6)


class TestFromDuration:
    def test_24_hours_matches_instant(self):
        by_duration = exp.from_duration(24, 0, 0)
        by_instant = exp.from_instant(NOW + timedelta(hours=24), NOW)
        assert by_duration == pytest.approx(by_instant, rel=1e-12)

    def test_mixed_units(self):
        assert exp.from_duration(1, 30, 30) == pytest.approx(5430 / 86400 / 365)

    def test_zero(self):
        assert exp.from_duration(0, 0, 0) == 0.0

    def test_premiums_agree_across_paths(self):
        t1 = exp.from_duration(36, 15, 0)
        t2 = exp.from_instant(NOW + timedelta(hours=36, minutes=15), NOW)
        p1 = calculate_option_premium(40000, 41000, t1, 0.6, 0.0, "call")
        p2 = calculate_option_premium(40000, 41000, t2, 0.6, 0.0, "call")
        assert p1 == pytest.approx(p2, rel=1e-12)


class TestPresets:
    @pytest.mark.parametrize(
        "label, expected",
        [
            ("1h", datetime(2026, 3, 14, 10, 30)),
            ("1d", datetime(2026, 3, 15, 9, 30)),
            ("1w", datetime(2026, 3, 21, 9, 30)),
            ("1m", datetime(2026, 4, 14, 9, 30)),
            ("3m", datetime(2026, 6, 14, 9, 30)),
            ("1y", datetime(2027, 3, 14, 9, 30)),
        ],
    )
    def test_presets(self, label, expected):
        assert exp.from_preset(label, NOW) == expected

    def test_month_end_clamps(self):
        assert exp.from_preset("1m", datetime(2026, 1, 31, 12, 0)) == datetime(2026, 2, 28, 12, 0)

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match="unknown expiry preset"):
            exp.from_preset("2d", NOW)


class TestParseDuration:
    def test_full(self):
        assert exp.parse_duration("24:00:00") == (24.0, 0.0, 0.0)

    def test_partial(self):
        assert exp.parse_duration("2:30") == (2.0, 30.0, 0.0)
        assert exp.parse_duration("6") == (6.0, 0.0, 0.0)

    @pytest.mark.parametrize("text", ["", "1:2:3:4", "-1:00:00", "a:b"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            exp.parse_duration(text)
