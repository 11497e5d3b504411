"""
AssetRegistry -- creates properties, land parcels and fixed assets.

Fixed assets are validated against the packaged master data: the account
item, asset classification and depreciation method must be known keys,
and the method must map onto a method the amortization engine implements.
When ``useful_life_years`` is omitted the account item's range midpoint is
used.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from assettax_config.master_data import MasterData, get_master_data
from assettax_kernel.exceptions import MasterDataValidationError, PropertyMissingError
from assettax_kernel.logging_config import get_logger
from assettax_kernel.models.fixed_asset import DepreciationPolicy, FixedAsset
from assettax_kernel.models.property import LandParcel, Property, PropertyCategory
from assettax_kernel.selectors.property_selector import PropertySelector
from assettax_services.base import BaseService

logger = get_logger("services.asset_registry")


class AssetRegistry(BaseService[FixedAsset]):

    def __init__(
        self,
        session: Session,
        actor_id: UUID,
        master_data: MasterData | None = None,
    ):
        super().__init__(session, actor_id)
        self.master_data = master_data or get_master_data()
        self._properties = PropertySelector(session)

    def register_property(
        self,
        tenant_id: UUID,
        municipality_id: UUID,
        name: str,
        category: str,
        property_type: str | None = None,
    ) -> Property:
        try:
            category = PropertyCategory(category).value
        except ValueError:
            raise MasterDataValidationError(field="category", value=category) from None

        prop = Property(
            tenant_id=tenant_id,
            municipality_id=municipality_id,
            name=name,
            category=category,
            property_type=property_type,
            created_by_id=self.actor_id,
        )
        self.session.add(prop)
        self.session.flush()

        logger.info(
            "property_registered",
            extra={"property_id": str(prop.id), "category": category},
        )
        return prop

    def add_land_parcel(
        self,
        property_id: UUID,
        area_sqm: Decimal | None,
        parcel_no: str | None = None,
    ) -> LandParcel:
        if self._properties.get(property_id) is None:
            raise PropertyMissingError(property_id=str(property_id))
        if area_sqm is not None and area_sqm <= 0:
            raise MasterDataValidationError(field="area_sqm", value=str(area_sqm))

        parcel = LandParcel(
            property_id=property_id,
            parcel_no=parcel_no,
            area_sqm=area_sqm,
            created_by_id=self.actor_id,
        )
        self.session.add(parcel)
        self.session.flush()
        return parcel

    def register_fixed_asset(
        self,
        property_id: UUID,
        name: str,
        acquisition_cost: Decimal,
        acquired_on: date,
        *,
        account_item: str,
        depreciation_method: str,
        asset_type: str = "depreciable",
        asset_classification: str | None = None,
        useful_life_years: int | None = None,
        residual_rate: Decimal = Decimal("0"),
        service_start_date: date | None = None,
    ) -> FixedAsset:
        """
        Create a fixed asset and its depreciation policy.

        ``depreciation_method`` is a master-data method key.  The asset
        belongs to the tenant that owns ``property_id``.

        Raises:
            PropertyMissingError: unknown property.
            MasterDataValidationError: unknown key, unsupported method,
                non-positive cost or life, or residual rate outside [0, 1].
        """
        prop = self._properties.get(property_id)
        if prop is None:
            raise PropertyMissingError(property_id=str(property_id))

        master = self.master_data
        if not master.is_valid_account_item(account_item):
            raise MasterDataValidationError(field="account_item", value=account_item)
        if asset_classification is None:
            asset_classification = master.account_items[account_item].classification
        if not master.is_valid_classification(asset_classification):
            raise MasterDataValidationError(
                field="asset_classification", value=asset_classification
            )
        if not master.is_valid_method(depreciation_method):
            raise MasterDataValidationError(
                field="depreciation_method", value=depreciation_method
            )
        engine_method = master.engine_method_for(depreciation_method)
        if engine_method is None:
            raise MasterDataValidationError(
                field="depreciation_method", value=depreciation_method
            )

        if useful_life_years is None:
            useful_life_years = master.useful_life_for(account_item)
        if useful_life_years is None or useful_life_years <= 0:
            raise MasterDataValidationError(
                field="useful_life_years", value=str(useful_life_years)
            )
        if acquisition_cost <= 0:
            raise MasterDataValidationError(
                field="acquisition_cost", value=str(acquisition_cost)
            )
        if not Decimal("0") <= residual_rate <= Decimal("1"):
            raise MasterDataValidationError(field="residual_rate", value=str(residual_rate))

        asset = FixedAsset(
            tenant_id=prop.tenant_id,
            property_id=prop.id,
            name=name,
            asset_type=asset_type,
            acquisition_cost=acquisition_cost,
            acquired_on=acquired_on,
            service_start_date=service_start_date or acquired_on,
            account_item=account_item,
            asset_classification=asset_classification,
            created_by_id=self.actor_id,
        )
        self.session.add(asset)
        self.session.flush()

        policy = DepreciationPolicy(
            tenant_id=prop.tenant_id,
            fixed_asset=asset,
            method=engine_method,
            useful_life_years=useful_life_years,
            residual_rate=residual_rate,
            created_by_id=self.actor_id,
        )
        self.session.add(policy)
        self.session.flush()

        logger.info(
            "fixed_asset_registered",
            extra={
                "fixed_asset_id": str(asset.id),
                "property_id": str(prop.id),
                "account_item": account_item,
                "method": engine_method,
                "useful_life_years": useful_life_years,
            },
        )
        return asset
