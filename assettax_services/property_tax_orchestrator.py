"""
PropertyTaxOrchestrator -- municipal property-tax calculation runs.

Responsibility:
    Computes one CalculationResult per property of a tenant in a
    municipality for a fiscal year.  Each property's assessed value comes
    from the AssetValuation recorded for the exact
    (tenant, municipality, fiscal year, property) tuple, or is estimated and
    stored with source ``auto_estimated``:

        land               area_sqm * land_unit_price
        building           statutory valuation of the primary fixed asset
        depreciable_group  sum over assets of the current-year closing book
                           value, else the asset's statutory valuation

    A statutory valuation the engine refuses (fiscal year before
    acquisition) falls back to the asset's acquisition cost.

Architecture position:
    Services -- drives PropertyTaxEngine, StatutoryValuationEngine (through
    ValuationService) and the selectors.

Invariants enforced:
    - Run status follows queued -> running -> {succeeded, failed}.
    - Per-run atomicity: valuations and results are written inside a
      SAVEPOINT.  Any exception rolls the SAVEPOINT back and the run is
      marked failed with the error message, so a failed run owns no
      results.
    - Flush-only: the caller commits.

Failure modes:
    - FiscalYearMissingError: unknown fiscal year when creating a run.
    - CalculationRunMissingError: execute_run on an unknown id.
    - InvalidRunTransitionError: execute_run on a running or finished run.
    - Any other error during the calculation is captured on the run.
"""

from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from assettax_config.schema import TaxConfig
from assettax_engines.property_tax import (
    PropertyAssessment,
    PropertyTaxEngine,
    PropertyTaxLine,
    reported_via_accounting,
    tax_base_for,
)
from assettax_kernel.db.base import MONEY_SCALE
from assettax_kernel.domain.clock import Clock, SystemClock
from assettax_kernel.exceptions import (
    CalculationRunMissingError,
    FiscalYearMissingError,
    ValuationError,
)
from assettax_kernel.logging_config import LogContext, get_logger
from assettax_kernel.models.asset_valuation import AssetValuation, ValuationSource
from assettax_kernel.models.calculation import CalculationResult, CalculationRun, RunStatus
from assettax_kernel.models.fiscal_year import FiscalYear
from assettax_kernel.models.fixed_asset import FixedAsset
from assettax_kernel.models.property import Property, PropertyCategory
from assettax_kernel.selectors.asset_selector import AssetSelector
from assettax_kernel.selectors.fiscal_year_selector import FiscalYearSelector
from assettax_kernel.selectors.history_selector import DepreciationHistorySelector
from assettax_kernel.selectors.property_selector import PropertySelector
from assettax_kernel.selectors.run_selector import CalculationRunSelector
from assettax_kernel.selectors.valuation_selector import ValuationSelector
from assettax_services.base import BaseService
from assettax_services.valuation_service import ValuationService

logger = get_logger("services.property_tax")

_STORAGE_QUANTUM = Decimal(1).scaleb(-MONEY_SCALE)


class PropertyTaxOrchestrator(BaseService[CalculationRun]):
    """
    Creates and executes calculation runs.

    Usage:
        orchestrator = PropertyTaxOrchestrator(session, actor_id)
        run = orchestrator.run_property_tax(tenant_id, municipality_id, fy_id)
        session.commit()
    """

    def __init__(
        self,
        session: Session,
        actor_id: UUID,
        config: TaxConfig | None = None,
        clock: Clock | None = None,
        valuation_service: ValuationService | None = None,
    ):
        super().__init__(session, actor_id)
        self.config = config or TaxConfig.with_defaults()
        self.clock = clock or SystemClock()
        self.tax_engine = PropertyTaxEngine(self.config)
        self.valuation_service = valuation_service or ValuationService(session, actor_id)
        self._assets = AssetSelector(session)
        self._fiscal_years = FiscalYearSelector(session)
        self._history = DepreciationHistorySelector(session)
        self._properties = PropertySelector(session)
        self._runs = CalculationRunSelector(session)
        self._valuations = ValuationSelector(session)

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def queue_run(
        self,
        tenant_id: UUID,
        municipality_id: UUID,
        fiscal_year_id: UUID,
    ) -> CalculationRun:
        """Create a run in ``queued`` state for later execution."""
        run = self._create_run(tenant_id, municipality_id, fiscal_year_id, RunStatus.QUEUED)
        logger.info("property_tax_run_queued", extra={"run_id": str(run.id)})
        return run

    def execute_run(self, run_id: UUID) -> CalculationRun:
        """
        Execute a queued run.

        Raises:
            CalculationRunMissingError: unknown run.
            InvalidRunTransitionError: the run is not queued.
        """
        run = self._runs.get(run_id)
        if run is None:
            raise CalculationRunMissingError(run_id=str(run_id))
        run.transition_to(RunStatus.RUNNING)
        run.started_at = self.clock.now()
        run.updated_by_id = self.actor_id
        self.session.flush()
        return self._execute(run)

    def run_property_tax(
        self,
        tenant_id: UUID,
        municipality_id: UUID,
        fiscal_year_id: UUID,
    ) -> CalculationRun:
        """Create a ``running`` run and execute it immediately."""
        run = self._create_run(tenant_id, municipality_id, fiscal_year_id, RunStatus.RUNNING)
        run.started_at = self.clock.now()
        self.session.flush()
        return self._execute(run)

    def _create_run(
        self,
        tenant_id: UUID,
        municipality_id: UUID,
        fiscal_year_id: UUID,
        status: RunStatus,
    ) -> CalculationRun:
        if self._fiscal_years.get(fiscal_year_id) is None:
            raise FiscalYearMissingError(fiscal_year_id=str(fiscal_year_id))
        run = CalculationRun(
            tenant_id=tenant_id,
            municipality_id=municipality_id,
            fiscal_year_id=fiscal_year_id,
            status=status.value,
            parameters={
                "standard_tax_rate": str(self.config.standard_tax_rate),
                "config_checksum": self.config.checksum(),
            },
            created_by_id=self.actor_id,
        )
        self.session.add(run)
        self.session.flush()
        return run

    def _execute(self, run: CalculationRun) -> CalculationRun:
        fiscal_year = self._fiscal_years.get(run.fiscal_year_id)
        with LogContext.bind(
            run_id=run.id,
            tenant_id=run.tenant_id,
            fiscal_year=fiscal_year.year if fiscal_year is not None else None,
            actor_id=self.actor_id,
        ):
            logger.info("property_tax_run_started")
            try:
                with self.session.begin_nested():
                    if fiscal_year is None:
                        raise FiscalYearMissingError(fiscal_year_id=str(run.fiscal_year_id))
                    lines = self._calculate(run, fiscal_year)
            except Exception as exc:
                run.transition_to(RunStatus.FAILED)
                run.error_message = str(exc)
                run.finished_at = self.clock.now()
                run.updated_by_id = self.actor_id
                self.session.flush()
                logger.error("property_tax_run_failed", exc_info=True)
                return run

            run.transition_to(RunStatus.SUCCEEDED)
            run.finished_at = self.clock.now()
            run.updated_by_id = self.actor_id
            self.session.flush()

            logger.info(
                "property_tax_run_succeeded",
                extra={
                    "property_count": len(lines),
                    "exempt_count": sum(1 for line in lines if line.is_exempt),
                    "total_tax": str(sum((line.tax_amount for line in lines), Decimal("0"))),
                },
            )
            return run

    # ------------------------------------------------------------------
    # Calculation
    # ------------------------------------------------------------------

    def _calculate(self, run: CalculationRun, fiscal_year: FiscalYear) -> list[PropertyTaxLine]:
        properties = self._properties.for_scope(run.tenant_id, run.municipality_id)
        assessments = [self._assess(run, fiscal_year, prop) for prop in properties]

        lines = self.tax_engine.calculate(assessments=assessments)

        for line in lines:
            self.session.add(
                CalculationResult(
                    run=run,
                    property_id=line.property_id,
                    tax_amount=line.tax_amount,
                    breakdown=line.breakdown(),
                    created_by_id=self.actor_id,
                )
            )
        self.session.flush()
        return lines

    def _assess(
        self,
        run: CalculationRun,
        fiscal_year: FiscalYear,
        prop: Property,
    ) -> PropertyAssessment:
        assets = self._assets.for_property(prop.id)
        asset_ids = [asset.id for asset in assets]
        recorded = self._history.closing_values_for_year(asset_ids, fiscal_year.id)
        area = (
            self._properties.land_area_sqm(prop.id)
            if prop.category == PropertyCategory.LAND
            else None
        )
        years_elapsed = (
            fiscal_year.year - assets[0].acquired_on.year
            if prop.category == PropertyCategory.BUILDING and assets
            else None
        )

        valuation = self._valuations.for_tuple(
            run.tenant_id, run.municipality_id, fiscal_year.id, prop.id
        )
        if valuation is not None:
            assessed = valuation.assessed_value
        else:
            assessed = self._estimate(prop, assets, recorded, area, fiscal_year)

        tax_base = tax_base_for(
            prop.category,
            assessed,
            config=self.config,
            residential=prop.is_residential,
            area_sqm=area,
            years_elapsed=years_elapsed,
        )

        if valuation is None:
            self.session.add(
                AssetValuation(
                    tenant_id=run.tenant_id,
                    municipality_id=run.municipality_id,
                    fiscal_year_id=fiscal_year.id,
                    property_id=prop.id,
                    assessed_value=assessed,
                    tax_base_value=tax_base.quantize(_STORAGE_QUANTUM, rounding=ROUND_HALF_UP),
                    source=ValuationSource.AUTO_ESTIMATED.value,
                    created_by_id=self.actor_id,
                )
            )
            self.session.flush()
            logger.debug(
                "valuation_auto_estimated",
                extra={"property_id": str(prop.id), "assessed_value": str(assessed)},
            )

        return PropertyAssessment(
            property_id=prop.id,
            category=prop.category,
            assessed_value=assessed,
            tax_base_value=tax_base,
            reported_via_accounting=reported_via_accounting(
                prop.category, asset_ids, recorded.keys()
            ),
        )

    def _estimate(
        self,
        prop: Property,
        assets: list[FixedAsset],
        recorded: dict[UUID, Decimal],
        area: Decimal | None,
        fiscal_year: FiscalYear,
    ) -> Decimal:
        if prop.category == PropertyCategory.LAND:
            if area is None:
                return Decimal("0")
            return area * self.config.land_unit_price

        if prop.category == PropertyCategory.BUILDING:
            if not assets:
                return Decimal("0")
            return self._statutory_value(assets[0], fiscal_year)

        total = Decimal("0")
        for asset in assets:
            closing = recorded.get(asset.id)
            if closing is not None:
                total += closing
            else:
                total += self._statutory_value(asset, fiscal_year)
        return total

    def _statutory_value(self, asset: FixedAsset, fiscal_year: FiscalYear) -> Decimal:
        try:
            return self.valuation_service.valuate(asset, fiscal_year).valuation
        except ValuationError as exc:
            logger.warning(
                "statutory_valuation_fallback",
                extra={
                    "fixed_asset_id": str(asset.id),
                    "reason": exc.code,
                    "acquisition_cost": str(asset.acquisition_cost),
                },
            )
            return asset.acquisition_cost
