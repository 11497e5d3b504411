"""
ValuationService -- statutory assessed values and user-entered valuations.

``run_statutory_valuation`` is a read-only calculation for one asset.  The
previous fiscal year's persisted AssetValuation of the asset's property is
passed to the engine when that value is the asset's own: the property holds
only this asset, or the property is a building and this is its primary
(earliest acquired) asset.  A depreciable group's stored value is a sum
and cannot continue a single asset's decay, so the engine replays from
acquisition.

``record_valuation`` stores a value entered by a user.  Calculation runs
reuse it instead of estimating.
"""

from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from assettax_engines.statutory_valuation import (
    StatutoryValuationEngine,
    StatutoryValuationResult,
)
from assettax_kernel.exceptions import (
    AssetMissingError,
    FiscalYearMissingError,
    PropertyMissingError,
    ValuationExistsError,
)
from assettax_kernel.logging_config import get_logger
from assettax_kernel.models.asset_valuation import AssetValuation, ValuationSource
from assettax_kernel.models.fiscal_year import FiscalYear
from assettax_kernel.models.fixed_asset import FixedAsset
from assettax_kernel.models.property import PropertyCategory
from assettax_kernel.selectors.asset_selector import AssetSelector
from assettax_kernel.selectors.fiscal_year_selector import FiscalYearSelector
from assettax_kernel.selectors.property_selector import PropertySelector
from assettax_kernel.selectors.valuation_selector import ValuationSelector
from assettax_services.base import BaseService

logger = get_logger("services.valuation")


class ValuationService(BaseService[AssetValuation]):

    def __init__(
        self,
        session: Session,
        actor_id: UUID,
        engine: StatutoryValuationEngine | None = None,
    ):
        super().__init__(session, actor_id)
        self.engine = engine or StatutoryValuationEngine()
        self._assets = AssetSelector(session)
        self._fiscal_years = FiscalYearSelector(session)
        self._properties = PropertySelector(session)
        self._valuations = ValuationSelector(session)

    def run_statutory_valuation(
        self,
        fixed_asset_id: UUID,
        fiscal_year_id: UUID,
    ) -> StatutoryValuationResult:
        """
        Raises:
            AssetMissingError, FiscalYearMissingError,
            FiscalYearBeforeAcquisitionError.
        """
        asset = self._assets.get(fixed_asset_id)
        if asset is None:
            raise AssetMissingError(fixed_asset_id=str(fixed_asset_id))
        fiscal_year = self._fiscal_years.get(fiscal_year_id)
        if fiscal_year is None:
            raise FiscalYearMissingError(fiscal_year_id=str(fiscal_year_id))
        return self.valuate(asset, fiscal_year)

    def valuate(self, asset: FixedAsset, fiscal_year: FiscalYear) -> StatutoryValuationResult:
        policy = self._assets.policy_for(asset.id)
        return self.engine.calculate(
            acquisition_cost=asset.acquisition_cost,
            acquired_on=asset.acquired_on,
            fiscal_year=fiscal_year.year,
            useful_life_years=policy.useful_life_years if policy is not None else None,
            previous_valuation=self._previous_valuation(asset, fiscal_year),
        )

    def _previous_valuation(
        self,
        asset: FixedAsset,
        fiscal_year: FiscalYear,
    ) -> Decimal | None:
        previous_year = self._fiscal_years.previous(fiscal_year)
        if previous_year is None:
            return None
        if not self._valued_alone(asset):
            return None
        valuation = self._valuations.for_property_year(asset.property_id, previous_year.id)
        return valuation.assessed_value if valuation is not None else None

    def _valued_alone(self, asset: FixedAsset) -> bool:
        """
        True when the property's assessed value is this asset's value: the
        property's only asset, or the primary asset of a building.
        """
        assets = self._assets.for_property(asset.property_id)
        if len(assets) == 1:
            return True
        prop = self._properties.get(asset.property_id)
        return (
            prop is not None
            and prop.category == PropertyCategory.BUILDING
            and assets[0].id == asset.id
        )

    def record_valuation(
        self,
        tenant_id: UUID,
        municipality_id: UUID,
        fiscal_year_id: UUID,
        property_id: UUID,
        assessed_value: Decimal,
        tax_base_value: Decimal | None = None,
        note: str | None = None,
        special_measures: dict[str, Any] | None = None,
    ) -> AssetValuation:
        """
        Store a user-entered valuation for the tuple.

        ``tax_base_value`` defaults to the assessed value; calculation runs
        derive the tax base from ``assessed_value`` in any case.

        Raises:
            ValuationExistsError: the tuple already has a valuation.
        """
        fiscal_year = self._fiscal_years.get(fiscal_year_id)
        if fiscal_year is None:
            raise FiscalYearMissingError(fiscal_year_id=str(fiscal_year_id))
        if self._properties.get(property_id) is None:
            raise PropertyMissingError(property_id=str(property_id))

        existing = self._valuations.for_tuple(
            tenant_id, municipality_id, fiscal_year_id, property_id
        )
        if existing is not None:
            raise ValuationExistsError(
                property_id=str(property_id),
                fiscal_year=fiscal_year.year,
            )

        valuation = AssetValuation(
            tenant_id=tenant_id,
            municipality_id=municipality_id,
            fiscal_year_id=fiscal_year_id,
            property_id=property_id,
            assessed_value=assessed_value,
            tax_base_value=assessed_value if tax_base_value is None else tax_base_value,
            source=ValuationSource.USER.value,
            note=note,
            special_measures=special_measures,
            created_by_id=self.actor_id,
        )
        self.session.add(valuation)
        self.session.flush()

        logger.info(
            "valuation_recorded",
            extra={
                "property_id": str(property_id),
                "fiscal_year": fiscal_year.year,
                "assessed_value": str(assessed_value),
            },
        )
        return valuation
