"""Calculation run and result lookups."""

from uuid import UUID

from sqlalchemy import select

from assettax_kernel.models.calculation import CalculationResult, CalculationRun
from assettax_kernel.selectors.base import BaseSelector


class CalculationRunSelector(BaseSelector[CalculationRun]):

    def get(self, run_id: UUID) -> CalculationRun | None:
        return self.session.get(CalculationRun, run_id)

    def results_for(self, run_id: UUID) -> list[CalculationResult]:
        return list(
            self.session.execute(
                select(CalculationResult)
                .where(CalculationResult.calculation_run_id == run_id)
                .order_by(CalculationResult.created_at, CalculationResult.id)
            ).scalars()
        )
