"""
Module: assettax_kernel.models.fixed_asset
Responsibility: Fixed assets and their depreciation policies.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - acquisition_cost > 0.
    - At most one DepreciationPolicy per (tenant, fixed asset).
    - useful_life_years > 0 and 0 <= residual_rate <= 1.
    - Acquisition facts are fixed after creation for calculation purposes.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from assettax_kernel.db.base import TrackedBase, UUIDString


class DepreciationMethod(str, Enum):
    STRAIGHT_LINE = "straight_line"
    DECLINING_BALANCE = "declining_balance"


class FixedAsset(TrackedBase):
    """
    A depreciable asset held by a tenant and attached to a property.

    ``service_start_date`` defaults to ``acquired_on`` (set by AssetRegistry).
    """

    __tablename__ = "fixed_assets"

    __table_args__ = (
        CheckConstraint("acquisition_cost > 0", name="ck_fixed_asset_cost_positive"),
        Index("idx_fixed_asset_property", "property_id"),
        Index("idx_fixed_asset_tenant", "tenant_id"),
    )

    tenant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("tenants.id"),
        nullable=False,
    )

    property_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("properties.id"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    asset_type: Mapped[str] = mapped_column(String(50), nullable=False)

    acquisition_cost: Mapped[Decimal] = mapped_column(nullable=False)

    acquired_on: Mapped[date] = mapped_column(Date, nullable=False)

    service_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Master-data keys (assettax_config master_data/account_items.yaml)
    account_item: Mapped[str | None] = mapped_column(String(50), nullable=True)

    asset_classification: Mapped[str | None] = mapped_column(String(50), nullable=True)

    parent_property: Mapped["Property"] = relationship(  # noqa: F821
        back_populates="fixed_assets",
    )

    depreciation_policy: Mapped["DepreciationPolicy | None"] = relationship(
        back_populates="fixed_asset",
        uselist=False,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<FixedAsset {self.name} {self.acquisition_cost}>"


class DepreciationPolicy(TrackedBase):
    """Accounting depreciation settings for exactly one fixed asset."""

    __tablename__ = "depreciation_policies"

    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "fixed_asset_id", name="uq_depreciation_policy_asset"
        ),
        CheckConstraint(
            "method IN ('straight_line', 'declining_balance')",
            name="ck_depreciation_policy_method",
        ),
        CheckConstraint(
            "useful_life_years > 0", name="ck_depreciation_policy_life_positive"
        ),
        CheckConstraint(
            "residual_rate >= 0 AND residual_rate <= 1",
            name="ck_depreciation_policy_residual_range",
        ),
    )

    tenant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("tenants.id"),
        nullable=False,
    )

    fixed_asset_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("fixed_assets.id"),
        nullable=False,
    )

    method: Mapped[str] = mapped_column(String(30), nullable=False)

    useful_life_years: Mapped[int] = mapped_column(Integer, nullable=False)

    residual_rate: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    fixed_asset: Mapped[FixedAsset] = relationship(
        back_populates="depreciation_policy",
    )

    def __repr__(self) -> str:
        return f"<DepreciationPolicy {self.method} {self.useful_life_years}y>"
