"""
Tests for the pricing engine.

Covers base amounts for fixed and time-billed lines, the service fee / tax
asymmetry, ticket- and line-level rounding, discounts and input validation.
"""

from __future__ import annotations

from datetime import datetime

import pytest
from conftest import make_line

from nightpos.errors import ConfigError, LineValidationError, ValidationError
from nightpos.models import PricingConfig, PricingMode, Rounding, Ticket, Totals
from nightpos.pricing import apply_rounding, compute_totals, elapsed_minutes, line_base_amount, ticket_totals


class TestComputeTotals:
    """Subtotal, service fee, tax and total."""

    def test_empty_ticket_is_all_zero(self, config):
        assert compute_totals([], config) == Totals(0, 0, 0, 0)

    def test_reference_example(self, config):
        totals = compute_totals([make_line(unit_price=6000)], config)

        assert totals.subtotal == 6000
        assert totals.service_fee == 1200
        assert totals.tax == 720
        # 7920 rounds to the nearest 100.
        assert totals.total == 7900

    def test_unit_of_one_leaves_total_unrounded(self):
        config = PricingConfig(rounding=Rounding(unit=1))
        assert compute_totals([make_line(unit_price=6000)], config).total == 7920

    @pytest.mark.parametrize(
        ("method", "unit", "expected"),
        [
            ("round", 100, 7900),
            ("ceil", 100, 8000),
            ("floor", 100, 7900),
            ("round", 1000, 8000),
            ("floor", 1000, 7000),
        ],
    )
    def test_ticket_rounding_methods(self, method, unit, expected):
        config = PricingConfig(rounding=Rounding(level="ticket", method=method, unit=unit))
        totals = compute_totals([make_line(unit_price=6000)], config)

        assert totals.total == expected
        # Components are never rounded to the unit.
        assert (totals.subtotal, totals.service_fee, totals.tax) == (6000, 1200, 720)

    def test_non_serviceable_line_is_left_out_of_fee_base(self, config):
        lines = [
            make_line("set", unit_price=6000),
            make_line("nomination", unit_price=3000, serviceable=False),
        ]
        totals = compute_totals(lines, config)

        assert totals.subtotal == 9000
        assert totals.service_fee == 1200
        # Tax base is both lines plus the service fee.
        assert totals.tax == 1020
        assert totals.total == 11200

    def test_service_fee_is_taxed_even_for_non_taxable_lines(self, config):
        totals = compute_totals([make_line(unit_price=1000, taxable=False)], config)

        assert totals.service_fee == 200
        assert totals.tax == 20
        assert totals.total == 1200

    def test_service_fee_rounds_half_up(self):
        config = PricingConfig(service_fee_rate=0.5, tax_rate=0, rounding=Rounding(unit=1))
        assert compute_totals([make_line(unit_price=1)], config).service_fee == 1
        assert compute_totals([make_line(unit_price=3)], config).service_fee == 2

    def test_fee_rounds_while_tax_truncates(self):
        config = PricingConfig(service_fee_rate=0.2, tax_rate=0.1, rounding=Rounding(unit=1))
        totals = compute_totals([make_line(unit_price=1234)], config)

        # 1234 * 0.2 = 246.8 -> 247
        assert totals.service_fee == 247
        # (1234 + 247) * 0.1 = 148.1 -> 148
        assert totals.tax == 148
        assert totals.total == 1234 + 247 + 148

    def test_tax_half_is_truncated(self):
        config = PricingConfig(service_fee_rate=0, tax_rate=0.1, rounding=Rounding(unit=1))
        assert compute_totals([make_line(unit_price=1005)], config).tax == 100

    def test_rates_are_applied_exactly(self):
        # 100 * 0.29 is 28.999... in binary floating point.
        config = PricingConfig(service_fee_rate=0, tax_rate=0.29, rounding=Rounding(unit=1))
        assert compute_totals([make_line(unit_price=100)], config).tax == 29

    def test_quantity_multiplies_fixed_lines(self, config):
        totals = compute_totals([make_line(unit_price=800, quantity=3)], config)
        assert totals.subtotal == 2400

    def test_line_level_rounding(self):
        config = PricingConfig(rounding=Rounding(level="line", method="ceil", unit=100))
        totals = compute_totals([make_line("a", unit_price=850), make_line("b", unit_price=1)], config)

        assert totals.subtotal == 1000
        assert totals.service_fee == 200
        assert totals.tax == 120
        # Line-level rounding never touches the final total.
        assert totals.total == 1320

    def test_discount_is_taken_before_rounding(self, config):
        totals = compute_totals([make_line(unit_price=6000)], config, discount=1000)
        assert totals.total == 6900

    def test_discount_never_makes_total_negative(self, config):
        assert compute_totals([make_line(unit_price=1000)], config, discount=50_000).total == 0

    def test_total_is_multiple_of_rounding_unit(self, config):
        for price in (0, 1, 49, 50, 99, 101, 777, 1234, 6000, 15000):
            for quantity in (1, 2, 3):
                totals = compute_totals([make_line(unit_price=price, quantity=quantity)], config)
                assert totals.total % 100 == 0

    def test_amounts_are_non_negative_and_total_covers_subtotal(self):
        config = PricingConfig(rounding=Rounding(unit=1))
        for price in (0, 1, 7, 999, 6000):
            for serviceable in (True, False):
                for taxable in (True, False):
                    line = make_line(unit_price=price, quantity=2, serviceable=serviceable, taxable=taxable)
                    totals = compute_totals([line], config)
                    assert totals.subtotal >= 0
                    assert totals.service_fee >= 0
                    assert totals.tax >= 0
                    assert totals.total >= totals.subtotal

    def test_same_inputs_give_same_output(self, config):
        lines = [make_line("a", unit_price=6000), make_line("b", unit_price=900, quantity=2, serviceable=False)]
        assert compute_totals(lines, config, 45) == compute_totals(lines, config, 45)

    def test_split_lines_skip_fee_tax_and_rounding(self, config):
        split = make_line("s", unit_price=3333, pricing_mode=PricingMode.SPLIT, serviceable=False, taxable=False)
        assert compute_totals([split], config).total == 3333

        totals = compute_totals([split, make_line("b", unit_price=1000)], config)
        assert totals.subtotal == 4333
        # Only the freshly priced 1320 is rounded.
        assert totals.total == 3333 + 1300


class TestTimeBilledLines:
    def test_no_checkout_yields_zero(self, config):
        line = make_line(unit_price=3000, pricing_mode="perUnit")
        assert line_base_amount(line, 0) == 0

    def test_partial_units_are_charged_in_full(self):
        line = make_line(unit_price=3000, pricing_mode="perUnit", unit_minutes=60)
        assert line_base_amount(line, 60) == 3000
        assert line_base_amount(line, 61) == 6000
        assert line_base_amount(line, 1) == 3000

    def test_quantity_does_not_multiply_time_charges(self):
        line = make_line(unit_price=3000, quantity=4, pricing_mode="perUnit", unit_minutes=30)
        assert line_base_amount(line, 90) == 9000

    def test_time_lines_flow_through_totals(self, config):
        line = make_line(unit_price=3000, pricing_mode="perUnit")
        totals = compute_totals([line], config, elapsed_minutes=90)

        assert totals.subtotal == 6000
        assert totals.total == 7900
        assert totals.elapsed_minutes == 90


class TestValidation:
    def test_negative_price_is_rejected_on_construction(self):
        with pytest.raises(LineValidationError):
            make_line(unit_price=-1)

    @pytest.mark.parametrize("price", [1.5, "100", None, True])
    def test_non_integer_price_is_rejected(self, price):
        with pytest.raises(LineValidationError):
            make_line(unit_price=price)

    @pytest.mark.parametrize("quantity", [0, -3, 2.0, None, True])
    def test_invalid_quantity_is_rejected(self, quantity):
        with pytest.raises(LineValidationError):
            make_line(quantity=quantity)

    def test_mutated_line_is_rejected_by_the_engine(self, config):
        line = make_line()
        line.quantity = -2
        with pytest.raises(LineValidationError):
            compute_totals([line], config)

    def test_unknown_pricing_mode(self):
        with pytest.raises(LineValidationError):
            make_line(pricing_mode="hourly")

    def test_negative_elapsed_minutes(self, config):
        with pytest.raises(ValidationError):
            compute_totals([make_line()], config, elapsed_minutes=-5)

    def test_negative_discount(self, config):
        with pytest.raises(ValidationError):
            compute_totals([make_line()], config, discount=-1)

    def test_config_must_be_pricing_config(self):
        with pytest.raises(TypeError):
            compute_totals([make_line()], {"service_fee_rate": 0.2})

    @pytest.mark.parametrize("rate", [-0.1, 1.5, "0.2", True])
    def test_rates_outside_unit_interval(self, rate):
        with pytest.raises(ConfigError):
            PricingConfig(service_fee_rate=rate)
        with pytest.raises(ConfigError):
            PricingConfig(tax_rate=rate)

    def test_rounding_policy_values(self):
        with pytest.raises(ConfigError):
            Rounding(unit=0)
        with pytest.raises(ConfigError):
            Rounding(method="bankers")
        with pytest.raises(ConfigError):
            Rounding(level="category")


class TestHelpers:
    @pytest.mark.parametrize(
        ("amount", "expected"),
        [(7920, 7900), (7949, 7900), (7950, 8000), (8000, 8000), (0, 0), (49, 0), (50, 100)],
    )
    def test_apply_rounding_half_up(self, amount, expected):
        assert apply_rounding(amount, Rounding(unit=100)) == expected

    def test_apply_rounding_unit_one_is_noop(self):
        assert apply_rounding(7921, Rounding(method="ceil", unit=1)) == 7921

    def test_elapsed_minutes(self):
        start = datetime(2025, 1, 1, 20, 0)
        assert elapsed_minutes(start, datetime(2025, 1, 1, 21, 30)) == 90
        assert elapsed_minutes(start, datetime(2025, 1, 1, 20, 0, 30)) == 1
        assert elapsed_minutes(start, datetime(2025, 1, 1, 20, 0, 29)) == 0
        assert elapsed_minutes(start, None) == 0
        assert elapsed_minutes(start, datetime(2025, 1, 1, 19, 0)) == 0

    def test_ticket_totals_previews_running_time(self, config):
        ticket = Ticket(
            id="T-20250101-001",
            opened_at=datetime(2025, 1, 1, 20, 0),
            lines=[make_line(unit_price=3000, pricing_mode="perUnit")],
        )
        assert ticket_totals(ticket, config).total == 0
        assert ticket_totals(ticket, config, now=datetime(2025, 1, 1, 21, 30)).subtotal == 6000

    def test_ticket_totals_uses_checkout_when_present(self, config):
        ticket = Ticket(
            id="T-20250101-001",
            opened_at=datetime(2025, 1, 1, 20, 0),
            closed_at=datetime(2025, 1, 1, 20, 45),
            lines=[make_line(unit_price=3000, pricing_mode="perUnit")],
        )
        assert ticket_totals(ticket, config, now=datetime(2025, 1, 1, 23, 0)).subtotal == 3000
