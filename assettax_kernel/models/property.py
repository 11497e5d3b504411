"""
Module: assettax_kernel.models.property
Responsibility: Taxable properties and the land parcels that measure them.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - category is one of land / building / depreciable_group.
    - LandParcel.area_sqm is positive when present.
"""

from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from assettax_kernel.db.base import TrackedBase, UUIDString


class PropertyCategory(str, Enum):
    """Tax category of a property; each has its own base rule and threshold."""

    LAND = "land"
    BUILDING = "building"
    DEPRECIABLE_GROUP = "depreciable_group"


RESIDENTIAL_PROPERTY_TYPE = "residential"


class Property(TrackedBase):
    """
    A taxable property of a tenant inside one municipality.

    Land is valued from its parcels, buildings from their primary fixed
    asset and depreciable groups from the sum of their fixed assets.
    """

    __tablename__ = "properties"

    __table_args__ = (
        CheckConstraint(
            "category IN ('land', 'building', 'depreciable_group')",
            name="ck_property_category",
        ),
        Index("idx_property_scope", "tenant_id", "municipality_id"),
    )

    tenant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("tenants.id"),
        nullable=False,
    )

    municipality_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("municipalities.id"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    category: Mapped[str] = mapped_column(String(30), nullable=False)

    # e.g. "residential" enables the small-scale residential land reduction
    property_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    land_parcels: Mapped[list["LandParcel"]] = relationship(
        back_populates="parent_property",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    fixed_assets: Mapped[list["FixedAsset"]] = relationship(  # noqa: F821
        back_populates="parent_property",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Property {self.name} ({self.category})>"

    @property
    def is_residential(self) -> bool:
        return self.property_type == RESIDENTIAL_PROPERTY_TYPE


class LandParcel(TrackedBase):
    """A registered parcel belonging to a land property."""

    __tablename__ = "land_parcels"

    __table_args__ = (
        CheckConstraint(
            "area_sqm IS NULL OR area_sqm > 0",
            name="ck_land_parcel_area_positive",
        ),
    )

    property_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("properties.id"),
        nullable=False,
    )

    parcel_no: Mapped[str | None] = mapped_column(String(50), nullable=True)

    area_sqm: Mapped[Decimal | None] = mapped_column(nullable=True)

    parent_property: Mapped[Property] = relationship(back_populates="land_parcels")

    def __repr__(self) -> str:
        return f"<LandParcel {self.parcel_no} {self.area_sqm} sqm>"
