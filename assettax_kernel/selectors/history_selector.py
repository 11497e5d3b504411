"""
Module: assettax_kernel.selectors.history_selector
Responsibility: Read the append-only DepreciationYear ledger.

The declining-balance switch-over needs the asset's history in ascending
fiscal-year order; ``history_before`` provides it from the
(fixed_asset_id, fiscal_year_id) index joined to FiscalYear.year.
"""

from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from assettax_kernel.domain.dtos import BookValueRecord
from assettax_kernel.models.depreciation_year import DepreciationYear
from assettax_kernel.models.fiscal_year import FiscalYear
from assettax_kernel.selectors.base import BaseSelector


def to_book_value_record(row: DepreciationYear, year: int) -> BookValueRecord:
    return BookValueRecord(
        fiscal_year=year,
        opening_book_value=row.opening_book_value,
        depreciation_amount=row.depreciation_amount,
        closing_book_value=row.closing_book_value,
    )


class DepreciationHistorySelector(BaseSelector[DepreciationYear]):
    """Queries over DepreciationYear keyed by (tenant, asset, fiscal year)."""

    def row_for(
        self,
        tenant_id: UUID,
        fixed_asset_id: UUID,
        fiscal_year_id: UUID,
    ) -> DepreciationYear | None:
        return self.session.execute(
            select(DepreciationYear).where(
                DepreciationYear.tenant_id == tenant_id,
                DepreciationYear.fixed_asset_id == fixed_asset_id,
                DepreciationYear.fiscal_year_id == fiscal_year_id,
            )
        ).scalar_one_or_none()

    def record_for(
        self,
        tenant_id: UUID,
        fixed_asset_id: UUID,
        fiscal_year: FiscalYear,
    ) -> BookValueRecord | None:
        row = self.row_for(tenant_id, fixed_asset_id, fiscal_year.id)
        if row is None:
            return None
        return to_book_value_record(row, fiscal_year.year)

    def history_before(
        self,
        tenant_id: UUID,
        fixed_asset_id: UUID,
        year: int,
    ) -> list[BookValueRecord]:
        """All recorded years strictly before ``year``, oldest first."""
        rows = self.session.execute(
            select(DepreciationYear, FiscalYear.year)
            .join(FiscalYear, FiscalYear.id == DepreciationYear.fiscal_year_id)
            .where(
                DepreciationYear.tenant_id == tenant_id,
                DepreciationYear.fixed_asset_id == fixed_asset_id,
                FiscalYear.year < year,
            )
            .order_by(FiscalYear.year)
        ).all()
        return [to_book_value_record(row, y) for row, y in rows]

    def later_years(
        self,
        tenant_id: UUID,
        fixed_asset_id: UUID,
        year: int,
    ) -> list[int]:
        """Fiscal years after ``year`` that already have a record."""
        return list(
            self.session.execute(
                select(FiscalYear.year)
                .join(DepreciationYear, FiscalYear.id == DepreciationYear.fiscal_year_id)
                .where(
                    DepreciationYear.tenant_id == tenant_id,
                    DepreciationYear.fixed_asset_id == fixed_asset_id,
                    FiscalYear.year > year,
                )
                .order_by(FiscalYear.year)
            ).scalars()
        )

    def closing_values_for_year(
        self,
        fixed_asset_ids: Iterable[UUID],
        fiscal_year_id: UUID,
    ) -> dict[UUID, Decimal]:
        """Map asset id -> current-year closing book value for assets that have one."""
        ids = list(fixed_asset_ids)
        if not ids:
            return {}
        rows = self.session.execute(
            select(DepreciationYear.fixed_asset_id, DepreciationYear.closing_book_value)
            .where(
                DepreciationYear.fixed_asset_id.in_(ids),
                DepreciationYear.fiscal_year_id == fiscal_year_id,
            )
        ).all()
        return {asset_id: closing for asset_id, closing in rows}

