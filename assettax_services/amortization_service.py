"""
AmortizationService -- accounting depreciation of one asset for one year.

Responsibility:
    Loads the asset, its policy and its DepreciationYear history, calls the
    pure AmortizationEngine, and (for the recording operations) persists
    the year.

Architecture position:
    Services -- imperative shell around assettax_engines.amortization.

Invariants enforced:
    - DepreciationYear is append-only: ``record_amortization`` refuses to
      overwrite an existing year.
    - Rewriting a year is the separate ``recompute_amortization`` operation
      and is refused while any later year is recorded for the asset, since
      later openings were derived from it.
    - Flush-only: never commits or rolls back the session.

Failure modes:
    - AssetMissingError / FiscalYearMissingError: unknown ids.
    - PolicyMissingError: the asset has no DepreciationPolicy.
    - DepreciationYearExistsError: record on a year already recorded.
    - DownstreamHistoryError: recompute with later years recorded.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from assettax_engines.amortization import AmortizationEngine, AmortizationResult
from assettax_kernel.db.immutability import allow_recompute
from assettax_kernel.domain.dtos import PolicyTerms
from assettax_kernel.exceptions import (
    AssetMissingError,
    DepreciationYearExistsError,
    DownstreamHistoryError,
    FiscalYearMissingError,
    PolicyMissingError,
)
from assettax_kernel.logging_config import get_logger
from assettax_kernel.models.depreciation_year import DepreciationYear
from assettax_kernel.models.fiscal_year import FiscalYear
from assettax_kernel.models.fixed_asset import FixedAsset
from assettax_kernel.selectors.asset_selector import AssetSelector
from assettax_kernel.selectors.fiscal_year_selector import FiscalYearSelector
from assettax_kernel.selectors.history_selector import DepreciationHistorySelector
from assettax_services.base import BaseService

logger = get_logger("services.amortization")


class AmortizationService(BaseService[DepreciationYear]):
    """Compute, record and recompute DepreciationYear rows."""

    def __init__(
        self,
        session: Session,
        actor_id: UUID,
        engine: AmortizationEngine | None = None,
    ):
        super().__init__(session, actor_id)
        self.engine = engine or AmortizationEngine()
        self._assets = AssetSelector(session)
        self._fiscal_years = FiscalYearSelector(session)
        self._history = DepreciationHistorySelector(session)

    def run_amortization(
        self,
        fixed_asset_id: UUID,
        fiscal_year_id: UUID,
    ) -> AmortizationResult:
        """Compute the year without writing anything."""
        asset, fiscal_year = self._load(fixed_asset_id, fiscal_year_id)
        return self.calculate(asset, fiscal_year)

    def calculate(self, asset: FixedAsset, fiscal_year: FiscalYear) -> AmortizationResult:
        """
        Engine call for an already loaded asset and fiscal year.

        The previous record is the asset's row for the immediately preceding
        fiscal year; if that year has no row the asset starts from cost.
        """
        policy = self._assets.policy_for(asset.id)
        if policy is None:
            raise PolicyMissingError(fixed_asset_id=str(asset.id))

        previous = None
        previous_year = self._fiscal_years.previous(fiscal_year)
        if previous_year is not None:
            previous = self._history.record_for(asset.tenant_id, asset.id, previous_year)

        history = self._history.history_before(asset.tenant_id, asset.id, fiscal_year.year)

        return self.engine.calculate(
            acquisition_cost=asset.acquisition_cost,
            policy=PolicyTerms(
                method=policy.method,
                useful_life_years=policy.useful_life_years,
                residual_rate=policy.residual_rate,
            ),
            previous=previous,
            history=history,
        )

    def record_amortization(
        self,
        fixed_asset_id: UUID,
        fiscal_year_id: UUID,
    ) -> DepreciationYear:
        """
        Compute and persist the year.

        Raises:
            DepreciationYearExistsError: the year is already recorded.
        """
        asset, fiscal_year = self._load(fixed_asset_id, fiscal_year_id)

        if self._history.row_for(asset.tenant_id, asset.id, fiscal_year.id) is not None:
            raise DepreciationYearExistsError(
                fixed_asset_id=str(asset.id),
                fiscal_year=fiscal_year.year,
            )

        result = self.calculate(asset, fiscal_year)

        row = DepreciationYear(
            tenant_id=asset.tenant_id,
            fixed_asset_id=asset.id,
            fiscal_year_id=fiscal_year.id,
            opening_book_value=result.opening_book_value,
            depreciation_amount=result.depreciation_amount,
            closing_book_value=result.closing_book_value,
            created_by_id=self.actor_id,
        )
        self.session.add(row)
        self.session.flush()

        logger.info(
            "amortization_recorded",
            extra={
                "fixed_asset_id": str(asset.id),
                "fiscal_year": fiscal_year.year,
                "regime": result.regime.value,
                "depreciation_amount": str(result.depreciation_amount),
                "closing_book_value": str(result.closing_book_value),
            },
        )
        return row

    def recompute_amortization(
        self,
        fixed_asset_id: UUID,
        fiscal_year_id: UUID,
    ) -> DepreciationYear:
        """
        Rewrite an existing year from current inputs.

        A year that was never recorded is recorded instead.

        Raises:
            DownstreamHistoryError: a later fiscal year is already recorded.
        """
        asset, fiscal_year = self._load(fixed_asset_id, fiscal_year_id)

        row = self._history.row_for(asset.tenant_id, asset.id, fiscal_year.id)
        if row is None:
            return self.record_amortization(fixed_asset_id, fiscal_year_id)

        later = self._history.later_years(asset.tenant_id, asset.id, fiscal_year.year)
        if later:
            logger.warning(
                "amortization_recompute_refused",
                extra={
                    "fixed_asset_id": str(asset.id),
                    "fiscal_year": fiscal_year.year,
                    "later_years": later,
                },
            )
            raise DownstreamHistoryError(
                fixed_asset_id=str(asset.id),
                fiscal_year=fiscal_year.year,
                later_years=later,
            )

        result = self.calculate(asset, fiscal_year)
        old_closing = row.closing_book_value

        with allow_recompute(self.session):
            row.opening_book_value = result.opening_book_value
            row.depreciation_amount = result.depreciation_amount
            row.closing_book_value = result.closing_book_value
            row.updated_by_id = self.actor_id
            self.session.flush()

        logger.info(
            "amortization_recomputed",
            extra={
                "fixed_asset_id": str(asset.id),
                "fiscal_year": fiscal_year.year,
                "old_closing_book_value": str(old_closing),
                "closing_book_value": str(result.closing_book_value),
            },
        )
        return row

    def _load(
        self,
        fixed_asset_id: UUID,
        fiscal_year_id: UUID,
    ) -> tuple[FixedAsset, FiscalYear]:
        asset = self._assets.get(fixed_asset_id)
        if asset is None:
            raise AssetMissingError(fixed_asset_id=str(fixed_asset_id))
        fiscal_year = self._fiscal_years.get(fiscal_year_id)
        if fiscal_year is None:
            raise FiscalYearMissingError(fiscal_year_id=str(fiscal_year_id))
        return asset, fiscal_year
