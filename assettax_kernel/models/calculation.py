"""
Module: assettax_kernel.models.calculation
Responsibility: Property-tax calculation runs and their per-property results.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Run status follows VALID_TRANSITIONS: queued -> running ->
      {succeeded, failed}.  succeeded and failed are terminal.
    - A run has at most one result per property (uq_calculation_result_property).
    - Results are append-only (see db/immutability.py).

Failure modes:
    - InvalidRunTransitionError from CalculationRun.transition_to().
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from assettax_kernel.db.base import TrackedBase, UUIDString
from assettax_kernel.exceptions import InvalidRunTransitionError


class RunStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


VALID_TRANSITIONS: dict[RunStatus, frozenset[RunStatus]] = {
    RunStatus.QUEUED: frozenset({RunStatus.RUNNING}),
    RunStatus.RUNNING: frozenset({RunStatus.SUCCEEDED, RunStatus.FAILED}),
    # Terminal
    RunStatus.SUCCEEDED: frozenset(),
    RunStatus.FAILED: frozenset(),
}

TERMINAL_STATUSES = frozenset({RunStatus.SUCCEEDED, RunStatus.FAILED})


class CalculationRun(TrackedBase):
    """
    One property-tax calculation for (tenant, municipality, fiscal year).

    A failed run carries the captured error message and owns no results.
    """

    __tablename__ = "calculation_runs"

    __table_args__ = (
        CheckConstraint(
            "status IN ('queued', 'running', 'succeeded', 'failed')",
            name="ck_calculation_run_status",
        ),
        Index("idx_calculation_run_scope", "tenant_id", "municipality_id", "fiscal_year_id"),
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

    status: Mapped[str] = mapped_column(
        String(20),
        default=RunStatus.QUEUED.value,
        nullable=False,
    )

    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    parameters: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    finished_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    municipality: Mapped["Municipality"] = relationship(lazy="joined")  # noqa: F821

    fiscal_year: Mapped["FiscalYear"] = relationship(lazy="joined")  # noqa: F821

    results: Mapped[list["CalculationResult"]] = relationship(
        back_populates="run",
        lazy="selectin",
        order_by="CalculationResult.created_at",
    )

    def __repr__(self) -> str:
        return f"<CalculationRun {self.id} {self.status}>"

    @property
    def status_enum(self) -> RunStatus:
        return RunStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.status_enum in TERMINAL_STATUSES

    def transition_to(self, target: RunStatus) -> None:
        """Move to ``target``.

        Raises: InvalidRunTransitionError if the move is not in VALID_TRANSITIONS.
        """
        if target not in VALID_TRANSITIONS[self.status_enum]:
            raise InvalidRunTransitionError(
                run_id=str(self.id),
                from_status=self.status,
                to_status=target.value,
            )
        self.status = target.value


class CalculationResult(TrackedBase):
    """Tax amount and breakdown for one property of one run."""

    __tablename__ = "calculation_results"

    __table_args__ = (
        UniqueConstraint(
            "calculation_run_id", "property_id", name="uq_calculation_result_property"
        ),
        CheckConstraint("tax_amount >= 0", name="ck_calculation_result_tax_non_negative"),
    )

    calculation_run_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("calculation_runs.id"),
        nullable=False,
    )

    property_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("properties.id"),
        nullable=False,
    )

    tax_amount: Mapped[Decimal] = mapped_column(nullable=False)

    # assessed_value, tax_base_value, tax_rate, tax_amount, exempt_reason
    breakdown: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    assessed_property: Mapped["Property"] = relationship(lazy="joined")  # noqa: F821

    run: Mapped[CalculationRun] = relationship(back_populates="results")

    def __repr__(self) -> str:
        return f"<CalculationResult property={self.property_id} tax={self.tax_amount}>"
