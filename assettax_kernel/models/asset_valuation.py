"""
Module: assettax_kernel.models.asset_valuation
Responsibility: Statutory assessed valuation of a property for one
    municipality and fiscal year, either entered by a user or estimated by a
    calculation run.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Unique per (tenant_id, municipality_id, fiscal_year_id, property_id);
      this constraint is what keeps two runs for the same tuple from
      writing competing valuations.
    - assessed_value and tax_base_value are frozen once written
      (see db/immutability.py); note may still be edited.
"""

from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, CheckConstraint, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from assettax_kernel.db.base import TrackedBase, UUIDString


class ValuationSource(str, Enum):
    USER = "user"
    AUTO_ESTIMATED = "auto_estimated"


class AssetValuation(TrackedBase):
    """Assessed and tax-base value of one property in one fiscal year."""

    __tablename__ = "asset_valuations"

    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "municipality_id",
            "fiscal_year_id",
            "property_id",
            name="uq_asset_valuation_tuple",
        ),
        CheckConstraint(
            "source IN ('user', 'auto_estimated')",
            name="ck_asset_valuation_source",
        ),
        CheckConstraint(
            "assessed_value >= 0 AND tax_base_value >= 0",
            name="ck_asset_valuation_non_negative",
        ),
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

    fiscal_year_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("fiscal_years.id"),
        nullable=False,
    )

    property_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("properties.id"),
        nullable=False,
    )

    assessed_value: Mapped[Decimal] = mapped_column(nullable=False)

    tax_base_value: Mapped[Decimal] = mapped_column(nullable=False)

    source: Mapped[str] = mapped_column(
        String(20),
        default=ValuationSource.USER.value,
        nullable=False,
    )

    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    special_measures: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<AssetValuation property={self.property_id} {self.assessed_value} ({self.source})>"

    @property
    def is_user_entered(self) -> bool:
        return self.source == ValuationSource.USER
