"""
Tests for the Property Tax Engine.

Covers:
- Tax base rules per category
- Exemption aggregation by category
- Exclusion of depreciable groups already reported via accounting
- Truncation of tax amounts
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from assettax_config.schema import EXEMPT_REASON_BELOW_THRESHOLD, TaxConfig
from assettax_engines.property_tax import (
    PropertyAssessment,
    PropertyTaxEngine,
    reported_via_accounting,
    residential_land_tax_base,
    tax_base_for,
    truncate_yen,
)

CONFIG = TaxConfig.with_defaults()


def _assessment(category, tax_base, reported=False):
    value = Decimal(tax_base)
    return PropertyAssessment(
        property_id=uuid4(),
        category=category,
        assessed_value=value,
        tax_base_value=value,
        reported_via_accounting=reported,
    )


class TestTaxBase:

    def test_residential_land_over_limit(self):
        base = tax_base_for(
            "land",
            Decimal("30000000"),
            config=CONFIG,
            residential=True,
            area_sqm=Decimal("300"),
        )

        assert abs(base - Decimal("6666667")) < Decimal("1")

    def test_residential_land_within_limit(self):
        base = residential_land_tax_base(Decimal("6000000"), Decimal("150"), CONFIG)

        assert base == Decimal("1000000")

    def test_residential_land_without_area_is_unchanged(self):
        base = tax_base_for(
            "land", Decimal("6000000"), config=CONFIG, residential=True, area_sqm=None
        )

        assert base == Decimal("6000000")

    def test_non_residential_land_is_unchanged(self):
        base = tax_base_for("land", Decimal("500000"), config=CONFIG, area_sqm=Decimal("5"))

        assert base == Decimal("500000")

    @pytest.mark.parametrize(
        "years_elapsed, expected",
        [
            (0, Decimal("500000")),
            (2, Decimal("500000")),
            (3, Decimal("1000000")),
            (None, Decimal("1000000")),
        ],
    )
    def test_new_building_reduction(self, years_elapsed, expected):
        base = tax_base_for(
            "building", Decimal("1000000"), config=CONFIG, years_elapsed=years_elapsed
        )

        assert base == expected

    def test_depreciable_group_is_unchanged(self):
        base = tax_base_for("depreciable_group", Decimal("1234567"), config=CONFIG)

        assert base == Decimal("1234567")


class TestReportedViaAccounting:

    def test_all_assets_recorded(self):
        a, b = uuid4(), uuid4()
        assert reported_via_accounting("depreciable_group", [a, b], {a, b})

    def test_partially_recorded(self):
        a, b = uuid4(), uuid4()
        assert not reported_via_accounting("depreciable_group", [a, b], {a})

    def test_group_without_assets(self):
        assert not reported_via_accounting("depreciable_group", [], set())

    def test_other_categories_never_reported(self):
        a = uuid4()
        assert not reported_via_accounting("building", [a], {a})


class TestExemption:

    def setup_method(self):
        self.engine = PropertyTaxEngine(CONFIG)

    def test_small_land_is_exempt(self):
        [line] = self.engine.calculate(assessments=[_assessment("land", "200000")])

        assert line.tax_amount == Decimal("0")
        assert line.exempt_reason == EXEMPT_REASON_BELOW_THRESHOLD
        assert line.is_exempt

    def test_land_above_threshold_is_taxed(self):
        [line] = self.engine.calculate(assessments=[_assessment("land", "500000")])

        assert line.tax_amount == Decimal("7000")
        assert line.exempt_reason is None

    def test_thresholds_aggregate_per_category(self):
        lines = self.engine.calculate(
            assessments=[
                _assessment("land", "200000"),
                _assessment("land", "200000"),
                _assessment("building", "150000"),
            ]
        )

        land = [l for l in lines if l.category == "land"]
        building = [l for l in lines if l.category == "building"]
        assert [l.tax_amount for l in land] == [Decimal("2800"), Decimal("2800")]
        assert building[0].is_exempt

    def test_reported_group_is_excluded_from_check(self):
        reported = _assessment("depreciable_group", "1000000", reported=True)
        unreported = _assessment("depreciable_group", "1000000")

        lines = self.engine.calculate(assessments=[reported, unreported])

        by_id = {l.property_id: l for l in lines}
        assert by_id[reported.property_id].tax_amount == Decimal("14000")
        assert by_id[unreported.property_id].is_exempt

    def test_reported_group_does_not_lift_others_over_threshold(self):
        lines = self.engine.calculate(
            assessments=[
                _assessment("depreciable_group", "1400000", reported=True),
                _assessment("depreciable_group", "1400000"),
            ]
        )

        assert lines[0].tax_amount == Decimal("19600")
        assert lines[1].is_exempt

    def test_tax_is_truncated(self):
        [line] = self.engine.calculate(assessments=[_assessment("land", "333333")])

        # 333,333 * 0.014 = 4,666.662
        assert line.tax_amount == Decimal("4666")

    def test_empty_run(self):
        assert self.engine.calculate(assessments=[]) == []

    def test_breakdown_is_json_ready(self):
        [line] = self.engine.calculate(assessments=[_assessment("land", "500000")])

        assert line.breakdown() == {
            "assessed_value": 500000,
            "tax_base_value": 500000,
            "tax_rate": "0.014",
            "tax_amount": 7000,
            "exempt_reason": None,
        }

    def test_totals_logged(self, captured_logs):
        self.engine.calculate(assessments=[_assessment("land", "200000")])

        records = [r for r in captured_logs() if r["message"] == "property_tax_totals_computed"]
        assert records[0]["exempt_categories"] == ["land"]


def test_truncate_yen():
    assert truncate_yen(Decimal("93333.99")) == Decimal("93333")
