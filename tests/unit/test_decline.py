"""Unit tests for decline detection."""

from datetime import date

import pytest

from promo_engine.services.decline import detect_declining_products

START = date(2026, 10, 12)


class TestDetectDecliningProducts:
    """Test first-half vs second-half comparison."""

    def test_fifteen_percent_drop_is_flagged(self, sales_rows):
        rows = sales_rows("A", START, [100, 100, 100, 90, 85, 85, 85])
        result = detect_declining_products(rows, lookback_days=7)
        assert len(result) == 1
        assert result[0].product_code == "A"
        assert result[0].change_percent == pytest.approx(-0.15)
        assert result[0].avg_first_half == pytest.approx(100.0)
        assert result[0].avg_second_half == pytest.approx(85.0)

    def test_nine_percent_drop_is_not_flagged(self, sales_rows):
        rows = sales_rows("A", START, [100, 100, 100, 95, 91, 91, 91])
        assert detect_declining_products(rows, lookback_days=7) == []

    def test_growth_is_not_flagged(self, sales_rows):
        rows = sales_rows("A", START, [10, 10, 10, 20, 20, 20, 20])
        assert detect_declining_products(rows) == []

    def test_sharpest_decline_first(self, sales_rows):
        rows = sales_rows("A", START, [100] * 4 + [85] * 4)
        rows += sales_rows("B", START, [50] * 4 + [20] * 4)
        rows += sales_rows("C", START, [10] * 8)
        result = detect_declining_products(rows, lookback_days=8)
        assert [r.product_code for r in result] == ["B", "A"]
        assert result[0].change_percent == pytest.approx(-0.6)

    def test_halves_use_days_with_data(self, sales_rows):
        # gap of several days; halves are the earliest/latest 3 days present
        rows = sales_rows("A", START, [40, 40, 40]) + sales_rows("A", date(2026, 10, 20), [10, 10, 10])
        result = detect_declining_products(rows, lookback_days=7)
        assert result[0].change_percent == pytest.approx(-0.75)

    def test_too_few_days_is_skipped(self, sales_rows):
        rows = sales_rows("A", START, [100, 10])
        assert detect_declining_products(rows, lookback_days=7) == []

    def test_zero_first_half_is_skipped(self, sales_rows):
        rows = sales_rows("A", START, [0, 0, 0, 0, 0, 0, 0])
        assert detect_declining_products(rows) == []

    def test_transaction_lines_are_summed_per_day(self, sales_rows):
        rows = sales_rows("A", START, [50, 50, 50, 0, 40, 40, 40])
        rows += sales_rows("A", START, [50, 50, 50])
        result = detect_declining_products(rows, lookback_days=7)
        assert result[0].avg_first_half == pytest.approx(100.0)
        assert result[0].change_percent == pytest.approx(-0.6)
