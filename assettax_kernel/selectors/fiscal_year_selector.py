"""Fiscal-year sequence lookups."""

from uuid import UUID

from sqlalchemy import select

from assettax_kernel.models.fiscal_year import FiscalYear
from assettax_kernel.selectors.base import BaseSelector


class FiscalYearSelector(BaseSelector[FiscalYear]):
    """Fiscal years ordered by ``year``."""

    def get(self, fiscal_year_id: UUID) -> FiscalYear | None:
        return self.session.get(FiscalYear, fiscal_year_id)

    def previous(self, fiscal_year: FiscalYear) -> FiscalYear | None:
        """The fiscal year immediately before ``fiscal_year`` by calendar year.

        Gaps in the sequence are skipped: the latest year below wins.
        """
        return self.session.execute(
            select(FiscalYear)
            .where(FiscalYear.year < fiscal_year.year)
            .order_by(FiscalYear.year.desc())
            .limit(1)
        ).scalar_one_or_none()
