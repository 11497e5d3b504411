"""AssetValuation lookups by uniqueness tuple."""

from uuid import UUID

from sqlalchemy import select

from assettax_kernel.models.asset_valuation import AssetValuation
from assettax_kernel.selectors.base import BaseSelector


class ValuationSelector(BaseSelector[AssetValuation]):

    def for_tuple(
        self,
        tenant_id: UUID,
        municipality_id: UUID,
        fiscal_year_id: UUID,
        property_id: UUID,
    ) -> AssetValuation | None:
        return self.session.execute(
            select(AssetValuation).where(
                AssetValuation.tenant_id == tenant_id,
                AssetValuation.municipality_id == municipality_id,
                AssetValuation.fiscal_year_id == fiscal_year_id,
                AssetValuation.property_id == property_id,
            )
        ).scalar_one_or_none()

    def for_property_year(
        self,
        property_id: UUID,
        fiscal_year_id: UUID,
    ) -> AssetValuation | None:
        """The property's valuation for a year in its own municipality."""
        return self.session.execute(
            select(AssetValuation).where(
                AssetValuation.property_id == property_id,
                AssetValuation.fiscal_year_id == fiscal_year_id,
            )
        ).scalars().first()
