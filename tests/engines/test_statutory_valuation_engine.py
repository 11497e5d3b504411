"""
Tests for the Statutory Valuation Engine.

Covers:
- Half-year convention in the acquisition year
- Decay from a persisted previous valuation
- Replay from acquisition when no previous valuation exists
- The 5% floor
- Whole-yen rounding
"""

from datetime import date
from decimal import Decimal

import pytest

from assettax_engines.statutory_valuation import (
    StatutoryValuationEngine,
    replay_valuation,
    round_yen,
)
from assettax_kernel.exceptions import FiscalYearBeforeAcquisitionError

COST = Decimal("1000000")
ACQUIRED = date(2024, 6, 15)


class TestAcquisitionYear:

    def setup_method(self):
        self.engine = StatutoryValuationEngine()

    def test_half_year_convention(self):
        result = self.engine.calculate(
            acquisition_cost=COST,
            acquired_on=ACQUIRED,
            fiscal_year=2024,
            useful_life_years=10,
        )

        assert result.years_elapsed == 0
        assert result.valuation == Decimal("897000")
        assert result.depreciation_rate == Decimal("0.206")
        assert result.previous_valuation is None
        assert not result.is_minimum

    def test_rounding_half_up(self):
        result = self.engine.calculate(
            acquisition_cost=Decimal("1001"),
            acquired_on=ACQUIRED,
            fiscal_year=2024,
            useful_life_years=10,
        )

        # 1001 * 0.897 = 897.897
        assert result.valuation == Decimal("898")

    def test_missing_policy_uses_default_life(self):
        result = self.engine.calculate(
            acquisition_cost=COST,
            acquired_on=ACQUIRED,
            fiscal_year=2024,
            useful_life_years=None,
        )

        assert result.depreciation_rate == Decimal("0.206")


class TestLaterYears:

    def setup_method(self):
        self.engine = StatutoryValuationEngine()

    def test_replayed_second_year(self):
        result = self.engine.calculate(
            acquisition_cost=COST,
            acquired_on=ACQUIRED,
            fiscal_year=2025,
            useful_life_years=10,
        )

        assert result.years_elapsed == 1
        assert result.valuation == Decimal("712218")
        assert result.previous_valuation == Decimal("897000")

    def test_persisted_previous_valuation_wins(self):
        result = self.engine.calculate(
            acquisition_cost=COST,
            acquired_on=ACQUIRED,
            fiscal_year=2025,
            useful_life_years=10,
            previous_valuation=Decimal("800000"),
        )

        assert result.valuation == Decimal("635200")

    def test_floor_after_many_years(self):
        result = self.engine.calculate(
            acquisition_cost=COST,
            acquired_on=ACQUIRED,
            fiscal_year=2054,
            useful_life_years=10,
        )

        assert result.valuation == Decimal("50000")
        assert result.is_minimum
        assert result.minimum_value == Decimal("50000")

    def test_fiscal_year_before_acquisition(self):
        with pytest.raises(FiscalYearBeforeAcquisitionError) as exc_info:
            self.engine.calculate(
                acquisition_cost=COST,
                acquired_on=ACQUIRED,
                fiscal_year=2023,
                useful_life_years=10,
            )

        assert exc_info.value.fiscal_year == 2023
        assert exc_info.value.acquired_year == 2024
        assert str(exc_info.value) == "Fiscal year is before acquisition date"


class TestReplay:

    def test_zero_years_is_first_year_value(self):
        assert replay_valuation(COST, Decimal("0.206"), 0) == Decimal("897000.000")

    def test_replay_stops_at_floor(self):
        value = replay_valuation(COST, Decimal("0.684"), 50)

        assert value == COST * Decimal("0.05")

    def test_round_yen(self):
        assert round_yen(Decimal("10.5")) == Decimal("11")
        assert round_yen(Decimal("10.49")) == Decimal("10")
