"""
Module: assettax_kernel.models.depreciation_year
Responsibility: Append-only ledger of accounting book values, one row per
    (tenant, fixed asset, fiscal year).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Unique per (tenant_id, fixed_asset_id, fiscal_year_id).
    - opening, depreciation and closing are all non-negative.
    - closing_book_value == opening_book_value - depreciation_amount
      (written that way by AmortizationService).
    - Rows are never updated or deleted except inside an explicit recompute
      scope (see db/immutability.py).

Audit relevance:
    Later years read this row as ground truth.  The declining-balance
    switch-over scans these rows in ascending fiscal-year order, which is
    what idx_depreciation_year_asset_history serves.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from assettax_kernel.db.base import TrackedBase, UUIDString


class DepreciationYear(TrackedBase):
    """One fiscal year of accounting depreciation for one fixed asset."""

    __tablename__ = "depreciation_years"

    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "fixed_asset_id",
            "fiscal_year_id",
            name="uq_depreciation_year_asset_year",
        ),
        CheckConstraint(
            "opening_book_value >= 0 AND depreciation_amount >= 0 "
            "AND closing_book_value >= 0",
            name="ck_depreciation_year_non_negative",
        ),
        Index("idx_depreciation_year_asset_history", "fixed_asset_id", "fiscal_year_id"),
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

    fiscal_year_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("fiscal_years.id"),
        nullable=False,
    )

    opening_book_value: Mapped[Decimal] = mapped_column(nullable=False)

    depreciation_amount: Mapped[Decimal] = mapped_column(nullable=False)

    closing_book_value: Mapped[Decimal] = mapped_column(nullable=False)

    fiscal_year: Mapped["FiscalYear"] = relationship(lazy="joined")  # noqa: F821

    def __repr__(self) -> str:
        return (
            f"<DepreciationYear asset={self.fixed_asset_id} "
            f"{self.opening_book_value}->{self.closing_book_value}>"
        )
