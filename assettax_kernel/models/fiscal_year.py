"""
Module: assettax_kernel.models.fiscal_year
Responsibility: Fiscal years for depreciation and property tax.  Ordering by
    ``year`` defines "previous fiscal year" for every recursive lookup.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - year is unique (uq_fiscal_year_year).
    - starts_on < ends_on (ck_fiscal_year_dates).
"""

from datetime import date

from sqlalchemy import CheckConstraint, Date, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from assettax_kernel.db.base import TrackedBase


class FiscalYear(TrackedBase):
    """
    One fiscal year.

    Depreciation and statutory valuation are keyed by the integer ``year``;
    the date range is informational.
    """

    __tablename__ = "fiscal_years"

    __table_args__ = (
        UniqueConstraint("year", name="uq_fiscal_year_year"),
        CheckConstraint("starts_on < ends_on", name="ck_fiscal_year_dates"),
    )

    year: Mapped[int] = mapped_column(Integer, nullable=False)

    starts_on: Mapped[date] = mapped_column(Date, nullable=False)

    ends_on: Mapped[date] = mapped_column(Date, nullable=False)

    def __repr__(self) -> str:
        return f"<FiscalYear {self.year}>"
