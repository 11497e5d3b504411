"""
Tests for ORM-level append-only enforcement.

Covers:
- DepreciationYear rows cannot be updated or deleted outside allow_recompute()
- AssetValuation financial fields are frozen; the note is editable
- CalculationResult rows are immutable
- Finished CalculationRuns keep their status
"""

from decimal import Decimal

import pytest

from assettax_kernel.db.immutability import allow_recompute
from assettax_kernel.exceptions import ImmutabilityViolationError
from assettax_kernel.models import RunStatus
from assettax_kernel.selectors.run_selector import CalculationRunSelector


@pytest.fixture
def recorded_year(amortization_service, create_property, create_asset, fiscal_years):
    asset = create_asset(create_property("depreciable_group"))
    return amortization_service.record_amortization(asset.id, fiscal_years[2024].id)


@pytest.fixture
def user_valuation(valuation_service, create_property, tenant, municipality, fiscal_years):
    lot = create_property("land", areas=[Decimal("5")])
    return valuation_service.record_valuation(
        tenant.id, municipality.id, fiscal_years[2024].id, lot.id, Decimal("500000")
    )


@pytest.fixture
def finished_run(orchestrator, tenant, municipality, fiscal_years, create_property):
    create_property("land", areas=[Decimal("5")])
    return orchestrator.run_property_tax(tenant.id, municipality.id, fiscal_years[2024].id)


class TestDepreciationYear:

    def test_update_blocked(self, session, recorded_year, captured_logs):
        recorded_year.closing_book_value = Decimal("1")

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.entity_type == "DepreciationYear"
        assert any(r["message"] == "immutability_violation_blocked" for r in captured_logs())

    def test_delete_blocked(self, session, recorded_year):
        session.delete(recorded_year)

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_update_allowed_in_recompute_scope(self, session, recorded_year):
        with allow_recompute(session):
            recorded_year.depreciation_amount = Decimal("0")
            recorded_year.closing_book_value = recorded_year.opening_book_value
            session.flush()

        assert recorded_year.depreciation_amount == Decimal("0")
        assert not session.info.get("assettax.allow_recompute")


class TestAssetValuation:

    def test_assessed_value_frozen(self, session, user_valuation):
        user_valuation.assessed_value = Decimal("1")

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.entity_type == "AssetValuation"

    def test_note_editable(self, session, user_valuation):
        user_valuation.note = "corrected notice number"
        session.flush()

        assert user_valuation.note == "corrected notice number"

    def test_delete_blocked(self, session, user_valuation):
        session.delete(user_valuation)

        with pytest.raises(ImmutabilityViolationError):
            session.flush()


class TestCalculationRecords:

    def test_result_update_blocked(self, session, finished_run):
        [result] = CalculationRunSelector(session).results_for(finished_run.id)
        result.tax_amount = Decimal("0")

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_finished_run_status_frozen(self, session, finished_run):
        finished_run.status = RunStatus.RUNNING.value

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.entity_type == "CalculationRun"

    def test_finished_run_delete_blocked(self, session, finished_run):
        session.delete(finished_run)

        with pytest.raises(ImmutabilityViolationError):
            session.flush()
