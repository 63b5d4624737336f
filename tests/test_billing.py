"""Tests for billing maths, categories and currency formatting."""

import pytest

from billing import (
    CATEGORIES,
    OTHER,
    BillingCycle,
    catalogue,
    format_currency,
    get_category,
    monthly_amount,
    subscription_color,
    yearly_amount,
)


class TestMonthlyAmount:

    def test_monthly_is_unchanged(self):
        assert monthly_amount(9.99, "monthly") == 9.99

    def test_weekly_uses_average_weeks_per_month(self):
        assert monthly_amount(20, "weekly") == pytest.approx(86.60)

    def test_yearly_divides_by_twelve(self):
        assert monthly_amount(120, "yearly") == pytest.approx(10.00)

    def test_unknown_cycle_is_treated_as_monthly(self):
        assert monthly_amount(12.5, "fortnightly") == 12.5
        assert monthly_amount(12.5, "") == 12.5

    def test_accepts_enum_members(self):
        assert monthly_amount(20, BillingCycle.WEEKLY) == pytest.approx(86.60)


class TestYearlyAmount:

    def test_monthly_times_twelve(self):
        assert yearly_amount(9.99, "monthly") == pytest.approx(119.88)

    def test_weekly_times_fifty_two(self):
        assert yearly_amount(20, "weekly") == 1040

    def test_yearly_is_unchanged(self):
        assert yearly_amount(120, "yearly") == 120

    def test_unknown_cycle_is_billed_as_is(self):
        assert yearly_amount(30, "quarterly") == 30

    @pytest.mark.parametrize("price", [0, 1, 9.99, 250])
    def test_monthly_and_yearly_agree_for_monthly_cycle(self, price):
        assert yearly_amount(price, "monthly") == pytest.approx(monthly_amount(price, "monthly") * 12)

    def test_negative_price_propagates(self):
        assert monthly_amount(-10, "yearly") == pytest.approx(-10 / 12)


class TestCategories:

    def test_known_category(self):
        assert get_category("health").color == "#10b981"

    def test_unknown_category_falls_back_to_other(self):
        assert get_category("gaming") is OTHER
        assert get_category("") is OTHER

    def test_other_is_in_catalogue(self):
        assert OTHER in CATEGORIES

    def test_subscription_color_prefers_override(self, make_sub):
        assert subscription_color(make_sub(color="#123456")) == "#123456"

    def test_subscription_color_defaults_to_category(self, make_sub):
        assert subscription_color(make_sub(category="finance")) == "#f59e0b"
        assert subscription_color(make_sub(category="nope")) == OTHER.color

    def test_catalogue_lists_all_options(self):
        options = catalogue()
        assert [c["value"] for c in options["categories"]] == [
            "entertainment", "productivity", "health", "finance", "other",
        ]
        assert [b["value"] for b in options["billing_cycles"]] == ["weekly", "monthly", "yearly"]
        assert [c["value"] for c in options["currencies"]] == ["USD", "EUR", "GBP"]


class TestFormatCurrency:

    def test_usd(self):
        assert format_currency(9.99) == "$9.99"

    def test_thousands_separator(self):
        assert format_currency(1234.5, "USD") == "$1,234.50"

    def test_euro_and_pound(self):
        assert format_currency(5, "EUR") == "€5.00"
        assert format_currency(5, "GBP") == "£5.00"

    def test_lowercase_code(self):
        assert format_currency(5, "gbp") == "£5.00"

    def test_code_without_symbol_is_spelled_out(self):
        assert format_currency(12, "CHF") == "CHF 12.00"
        assert format_currency(12, "NGN") == "NGN 12.00"

    def test_negative_amount(self):
        assert format_currency(-3.5) == "-$3.50"

    @pytest.mark.parametrize("bad", ["US", "DOLLARS", "", "12$"])
    def test_malformed_code_raises(self, bad):
        with pytest.raises(ValueError):
            format_currency(1, bad)
