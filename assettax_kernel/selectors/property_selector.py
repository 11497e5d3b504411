"""Property and land parcel lookups."""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from assettax_kernel.models.property import LandParcel, Property
from assettax_kernel.selectors.base import BaseSelector


class PropertySelector(BaseSelector[Property]):
    """Properties scoped by tenant and municipality."""

    def get(self, property_id: UUID) -> Property | None:
        return self.session.get(Property, property_id)

    def for_scope(self, tenant_id: UUID, municipality_id: UUID) -> list[Property]:
        """Every property the run must cover, in a stable order."""
        return list(
            self.session.execute(
                select(Property)
                .where(
                    Property.tenant_id == tenant_id,
                    Property.municipality_id == municipality_id,
                )
                .order_by(Property.category, Property.name, Property.id)
            ).scalars()
        )

    def land_area_sqm(self, property_id: UUID) -> Decimal | None:
        """
        Area of the property's first parcel that records one.

        Parcels are ordered by parcel number (unnumbered last), then by
        creation.  None when no parcel has an area.
        """
        return self.session.execute(
            select(LandParcel.area_sqm)
            .where(
                LandParcel.property_id == property_id,
                LandParcel.area_sqm.is_not(None),
            )
            .order_by(
                LandParcel.parcel_no.is_(None),
                LandParcel.parcel_no,
                LandParcel.created_at,
                LandParcel.id,
            )
            .limit(1)
        ).scalar_one_or_none()
