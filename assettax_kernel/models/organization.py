"""
Module: assettax_kernel.models.organization
Responsibility: Tenants own assets and properties; municipalities levy the
    tax.  Both are scoping plumbing for the calculation tables.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from assettax_kernel.db.base import TrackedBase


class Tenant(TrackedBase):
    """Owner of properties, fixed assets and calculation runs."""

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    plan: Mapped[str] = mapped_column(String(50), default="free", nullable=False)

    def __repr__(self) -> str:
        return f"<Tenant {self.name}>"


class Municipality(TrackedBase):
    """Taxing municipality, identified by its local government code."""

    __tablename__ = "municipalities"

    __table_args__ = (
        UniqueConstraint("code", name="uq_municipality_code"),
    )

    code: Mapped[str] = mapped_column(String(20), nullable=False)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    def __repr__(self) -> str:
        return f"<Municipality {self.code} {self.name}>"
