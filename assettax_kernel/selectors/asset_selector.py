"""Fixed asset and depreciation policy lookups."""

from uuid import UUID

from sqlalchemy import select

from assettax_kernel.models.fixed_asset import DepreciationPolicy, FixedAsset
from assettax_kernel.selectors.base import BaseSelector


class AssetSelector(BaseSelector[FixedAsset]):
    """Read fixed assets by id or by owning property."""

    def get(self, fixed_asset_id: UUID) -> FixedAsset | None:
        return self.session.get(FixedAsset, fixed_asset_id)

    def policy_for(self, fixed_asset_id: UUID) -> DepreciationPolicy | None:
        return self.session.execute(
            select(DepreciationPolicy).where(
                DepreciationPolicy.fixed_asset_id == fixed_asset_id
            )
        ).scalar_one_or_none()

    def for_property(self, property_id: UUID) -> list[FixedAsset]:
        """Assets of a property, oldest acquisition first (ties by name)."""
        return list(
            self.session.execute(
                select(FixedAsset)
                .where(FixedAsset.property_id == property_id)
                .order_by(FixedAsset.acquired_on, FixedAsset.name)
            ).scalars()
        )
