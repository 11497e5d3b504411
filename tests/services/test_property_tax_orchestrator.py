"""
Tests for PropertyTaxOrchestrator.

Covers:
- Valuation reuse and auto-estimation per category
- Residential land, new construction and exemption rules end to end
- Depreciable groups already reported through accounting
- Run lifecycle: queue, execute, terminal runs
- Per-run atomicity on failure
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from assettax_config.schema import EXEMPT_REASON_BELOW_THRESHOLD
from assettax_kernel.exceptions import (
    CalculationRunMissingError,
    FiscalYearMissingError,
    InvalidRunTransitionError,
)
from assettax_kernel.models import (
    AssetValuation,
    CalculationResult,
    Municipality,
    RunStatus,
    ValuationSource,
)
from assettax_kernel.selectors.run_selector import CalculationRunSelector
from assettax_kernel.selectors.valuation_selector import ValuationSelector


def _results_by_property(session, run):
    return {r.property_id: r for r in CalculationRunSelector(session).results_for(run.id)}


def _count(session, model):
    return session.execute(select(func.count()).select_from(model)).scalar_one()


@pytest.fixture
def run_tax(orchestrator, tenant, municipality, fiscal_years):
    def _run(year: int = 2024):
        return orchestrator.run_property_tax(tenant.id, municipality.id, fiscal_years[year].id)

    return _run


class TestLand:

    def test_small_land_exempt(self, session, run_tax, create_property):
        lot = create_property("land", areas=[Decimal("2")])

        run = run_tax()

        result = _results_by_property(session, run)[lot.id]
        assert run.status == RunStatus.SUCCEEDED.value
        assert result.tax_amount == Decimal("0")
        assert result.breakdown["exempt_reason"] == EXEMPT_REASON_BELOW_THRESHOLD
        assert result.breakdown["assessed_value"] == 200000

    def test_land_above_threshold(self, session, run_tax, create_property):
        lot = create_property("land", areas=[Decimal("5")])

        run = run_tax()

        result = _results_by_property(session, run)[lot.id]
        assert result.tax_amount == Decimal("7000")
        assert result.breakdown["exempt_reason"] is None

    def test_residential_land(self, session, run_tax, create_property):
        lot = create_property("land", property_type="residential", areas=[Decimal("300")])

        run = run_tax()

        result = _results_by_property(session, run)[lot.id]
        assert result.breakdown["assessed_value"] == 30000000
        assert abs(result.breakdown["tax_base_value"] - 6666667) <= 1
        assert result.tax_amount == Decimal("93333")

    def test_only_first_parcel_area_counts(self, session, run_tax, create_property):
        lot = create_property("land", areas=[Decimal("2"), Decimal("2")])

        run = run_tax()

        result = _results_by_property(session, run)[lot.id]
        assert result.breakdown["assessed_value"] == 200000
        assert result.tax_amount == Decimal("0")
        assert result.breakdown["exempt_reason"] == EXEMPT_REASON_BELOW_THRESHOLD

    def test_parcel_without_area_is_skipped(self, session, run_tax, create_property):
        lot = create_property("land", areas=[None, Decimal("5")])

        run = run_tax()

        assert _results_by_property(session, run)[lot.id].breakdown["assessed_value"] == 500000

    def test_residential_split_uses_first_parcel(self, session, run_tax, create_property):
        lot = create_property(
            "land", property_type="residential", areas=[Decimal("150"), Decimal("150")]
        )

        run = run_tax()

        # 150 sqm at 100,000 per sqm, all inside the small-scale share
        result = _results_by_property(session, run)[lot.id]
        assert result.breakdown["assessed_value"] == 15000000
        assert result.breakdown["tax_base_value"] == 2500000
        assert result.tax_amount == Decimal("35000")

    def test_land_without_area(self, session, run_tax, create_property):
        lot = create_property("land")

        run = run_tax()

        assert _results_by_property(session, run)[lot.id].breakdown["assessed_value"] == 0


class TestValuations:

    def test_estimate_is_persisted(self, session, run_tax, create_property, fiscal_years):
        lot = create_property("land", areas=[Decimal("5")])

        run_tax()

        valuation = ValuationSelector(session).for_property_year(lot.id, fiscal_years[2024].id)
        assert valuation.source == ValuationSource.AUTO_ESTIMATED.value
        assert valuation.assessed_value == Decimal("500000")

    def test_second_run_reuses_valuation(self, session, run_tax, create_property):
        create_property("land", areas=[Decimal("5")])

        run_tax()
        run_tax()

        assert _count(session, AssetValuation) == 1

    def test_user_valuation_wins(
        self, session, run_tax, create_property, valuation_service, tenant, municipality, fiscal_years
    ):
        lot = create_property("land", areas=[Decimal("5")])
        valuation_service.record_valuation(
            tenant.id,
            municipality.id,
            fiscal_years[2024].id,
            lot.id,
            Decimal("1000000"),
            tax_base_value=Decimal("1"),
        )

        run = run_tax()

        result = _results_by_property(session, run)[lot.id]
        # the tax base is derived from the assessed value
        assert result.breakdown["tax_base_value"] == 1000000
        assert result.tax_amount == Decimal("14000")


class TestBuildings:

    def test_new_building_halved(self, session, run_tax, create_property, create_asset):
        office = create_property("building")
        create_asset(office, acquired_on=date(2024, 4, 1))

        run = run_tax()

        result = _results_by_property(session, run)[office.id]
        assert result.breakdown["assessed_value"] == 897000
        assert result.breakdown["tax_base_value"] == 448500
        assert result.tax_amount == Decimal("6279")

    def test_primary_asset_is_earliest(self, session, run_tax, create_property, create_asset):
        office = create_property("building")
        create_asset(office, acquisition_cost=Decimal("9000000"), acquired_on=date(2025, 1, 1))
        create_asset(office, acquired_on=date(2020, 4, 1))

        run = run_tax()

        # 1,000,000 acquired 2020, valued for 2024 by replay
        result = _results_by_property(session, run)[office.id]
        assert result.breakdown["assessed_value"] < 1000000

    def test_valuation_failure_falls_back_to_cost(
        self, session, run_tax, create_property, create_asset, captured_logs
    ):
        office = create_property("building")
        create_asset(office, acquired_on=date(2026, 4, 1))

        run = run_tax()

        result = _results_by_property(session, run)[office.id]
        assert run.status == RunStatus.SUCCEEDED.value
        assert result.breakdown["assessed_value"] == 1000000
        assert result.breakdown["tax_base_value"] == 500000
        assert any(r["message"] == "statutory_valuation_fallback" for r in captured_logs())

    def test_building_without_assets(self, session, run_tax, create_property):
        office = create_property("building")

        run = run_tax()

        result = _results_by_property(session, run)[office.id]
        assert result.breakdown["assessed_value"] == 0
        assert result.breakdown["exempt_reason"] == EXEMPT_REASON_BELOW_THRESHOLD


class TestDepreciableGroups:

    def test_reported_group_skips_exemption(
        self, session, run_tax, create_property, create_asset, amortization_service, fiscal_years
    ):
        group = create_property("depreciable_group")
        asset = create_asset(group, acquisition_cost=Decimal("1000000"))
        amortization_service.record_amortization(asset.id, fiscal_years[2024].id)

        run = run_tax()

        result = _results_by_property(session, run)[group.id]
        assert result.breakdown["assessed_value"] == 900000
        assert result.tax_amount == Decimal("12600")

    def test_unreported_group_below_threshold(
        self, session, run_tax, create_property, create_asset
    ):
        group = create_property("depreciable_group")
        create_asset(group, acquisition_cost=Decimal("1000000"))

        run = run_tax()

        result = _results_by_property(session, run)[group.id]
        assert result.breakdown["assessed_value"] == 897000
        assert result.tax_amount == Decimal("0")

    def test_partially_reported_group_mixes_sources(
        self, session, run_tax, create_property, create_asset, amortization_service, fiscal_years
    ):
        group = create_property("depreciable_group")
        recorded = create_asset(group, acquisition_cost=Decimal("1000000"))
        create_asset(group, acquisition_cost=Decimal("1000000"))
        amortization_service.record_amortization(recorded.id, fiscal_years[2024].id)

        run = run_tax()

        # 900,000 closing value + 897,000 statutory value
        result = _results_by_property(session, run)[group.id]
        assert result.breakdown["assessed_value"] == 1797000
        assert result.tax_amount == Decimal("25158")


class TestScope:

    def test_other_municipality_excluded(
        self, session, run_tax, create_property, test_actor_id
    ):
        other = Municipality(code="271004", name="Osaka", created_by_id=test_actor_id)
        session.add(other)
        session.flush()
        mine = create_property("land", areas=[Decimal("5")])
        create_property("land", areas=[Decimal("5")], municipality_id=other.id)

        run = run_tax()

        assert list(_results_by_property(session, run)) == [mine.id]


class TestRunLifecycle:

    def test_run_records_timing_and_parameters(self, run_tax, create_property, deterministic_clock):
        create_property("land", areas=[Decimal("5")])

        run = run_tax()

        assert run.started_at == deterministic_clock.now()
        assert run.finished_at == deterministic_clock.now()
        assert run.parameters["standard_tax_rate"] == "0.014"
        assert len(run.parameters["config_checksum"]) > 0
        assert run.error_message is None

    def test_queue_then_execute(
        self, orchestrator, tenant, municipality, fiscal_years, create_property
    ):
        create_property("land", areas=[Decimal("5")])
        run = orchestrator.queue_run(tenant.id, municipality.id, fiscal_years[2024].id)
        assert run.status == RunStatus.QUEUED.value

        executed = orchestrator.execute_run(run.id)

        assert executed.id == run.id
        assert executed.status == RunStatus.SUCCEEDED.value

    def test_terminal_run_cannot_execute_again(self, orchestrator, run_tax):
        run = run_tax()

        with pytest.raises(InvalidRunTransitionError) as exc_info:
            orchestrator.execute_run(run.id)

        assert exc_info.value.from_status == "succeeded"

    def test_unknown_run(self, orchestrator):
        with pytest.raises(CalculationRunMissingError):
            orchestrator.execute_run(uuid4())

    def test_unknown_fiscal_year(self, orchestrator, tenant, municipality):
        with pytest.raises(FiscalYearMissingError):
            orchestrator.run_property_tax(tenant.id, municipality.id, uuid4())

    def test_run_logs_carry_run_id(self, captured_logs, run_tax, create_property):
        create_property("land", areas=[Decimal("5")])

        run = run_tax()

        [record] = [r for r in captured_logs() if r["message"] == "property_tax_run_succeeded"]
        assert record["run_id"] == str(run.id)
        assert record["fiscal_year"] == "2024"
        assert record["property_count"] == 1
        assert record["total_tax"] == "7000"


class TestFailure:

    def test_failure_marks_run_and_rolls_back(
        self, session, orchestrator, run_tax, create_property, monkeypatch, captured_logs
    ):
        create_property("land", areas=[Decimal("5")])

        def boom(**kwargs):
            raise RuntimeError("rate table unavailable")

        monkeypatch.setattr(orchestrator.tax_engine, "calculate", boom)

        run = run_tax()

        assert run.status == RunStatus.FAILED.value
        assert run.error_message == "rate table unavailable"
        assert run.finished_at is not None
        assert _count(session, CalculationResult) == 0
        assert _count(session, AssetValuation) == 0

        [record] = [r for r in captured_logs() if r["message"] == "property_tax_run_failed"]
        assert record["exc_type"] == "RuntimeError"
        assert record["run_id"] == str(run.id)

    def test_failed_run_is_terminal(self, orchestrator, run_tax, monkeypatch):
        def boom(**kwargs):
            raise RuntimeError("rate table unavailable")

        monkeypatch.setattr(orchestrator.tax_engine, "calculate", boom)
        run = run_tax()

        with pytest.raises(InvalidRunTransitionError) as exc_info:
            orchestrator.execute_run(run.id)

        assert exc_info.value.from_status == "failed"

