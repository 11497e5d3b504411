"""
Amortization Engine - accounting book value of one asset for one fiscal year.

Computes opening, depreciation and closing book value from the asset's
acquisition cost, its depreciation policy and its persisted history.  Two
methods are supported:

* straight_line: ``cost * (1 - residual_rate) / life`` every year.
* declining_balance: 200% declining balance with the statutory guarantee
  floor.  Once ordinary depreciation falls below ``cost * guarantee_rate``
  the asset switches to ``revised_base * revised_rate``, where the revised
  base is the opening value of the first year that fell below the guarantee.

The floor ``cost * residual_rate`` is never breached.  The closing value is
expressed at storage scale and depreciation is re-derived as
``opening - closing`` so the stored row balances exactly.

Usage:
    from assettax_engines.amortization import AmortizationEngine
    from assettax_kernel.domain.dtos import PolicyTerms

    engine = AmortizationEngine()
    result = engine.calculate(
        acquisition_cost=Decimal("1000000"),
        policy=PolicyTerms("straight_line", 10, Decimal("0.1")),
        previous=None,
        history=(),
    )
    result.depreciation_amount  # Decimal("90000")
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Sequence

from assettax_engines.rate_tables import (
    guarantee_rate,
    revised_rate,
    straight_line_rate,
)
from assettax_engines.tracer import traced_engine
from assettax_kernel.db.base import MONEY_SCALE
from assettax_kernel.domain.dtos import BookValueRecord, PolicyTerms
from assettax_kernel.exceptions import PolicyMissingError
from assettax_kernel.logging_config import get_logger
from assettax_kernel.models.fixed_asset import DepreciationMethod

logger = get_logger("engines.amortization")

_STORAGE_QUANTUM = Decimal(1).scaleb(-MONEY_SCALE)


class AmortizationRegime(str, Enum):
    """Which rule produced the year's depreciation."""

    FULLY_AMORTIZED = "fully_amortized"
    STRAIGHT_LINE = "straight_line"
    ORDINARY = "ordinary"
    REVISED = "revised"
    FLOOR_CAPPED = "floor_capped"


@dataclass(frozen=True)
class AmortizationResult:
    opening_book_value: Decimal
    depreciation_amount: Decimal
    closing_book_value: Decimal
    regime: AmortizationRegime
    floor_value: Decimal

    @property
    def is_fully_amortized(self) -> bool:
        return self.regime == AmortizationRegime.FULLY_AMORTIZED


def find_revised_base(
    opening: Decimal,
    previous: BookValueRecord | None,
    history: Sequence[BookValueRecord],
    declining_rate: Decimal,
    guarantee_amount: Decimal,
) -> Decimal:
    """
    Opening value of the first year whose ordinary depreciation fell below
    the guarantee amount.

    The current opening is used when there is no previous year or when the
    previous year was still in the ordinary regime (the switch happens this
    year).  Otherwise ``history`` is scanned oldest first.
    """
    if previous is None:
        return opening
    if previous.opening_book_value * declining_rate >= guarantee_amount:
        return opening
    for record in history:
        if record.opening_book_value * declining_rate < guarantee_amount:
            return record.opening_book_value
    return opening


class AmortizationEngine:
    """
    Pure accounting-depreciation calculator.

    No I/O: the caller supplies the previous year's record and the asset's
    prior history (ascending by fiscal year).
    """

    @traced_engine(
        "amortization",
        "1.0",
        fingerprint_fields=("acquisition_cost", "policy", "previous", "history"),
    )
    def calculate(
        self,
        *,
        acquisition_cost: Decimal,
        policy: PolicyTerms | None,
        previous: BookValueRecord | None = None,
        history: Sequence[BookValueRecord] = (),
    ) -> AmortizationResult:
        """
        Compute one fiscal year.

        Raises:
            PolicyMissingError: if ``policy`` is None.
        """
        if policy is None:
            raise PolicyMissingError(fixed_asset_id=None)

        opening = previous.closing_book_value if previous is not None else acquisition_cost
        floor = acquisition_cost * policy.residual_rate

        if opening <= floor:
            logger.debug(
                "amortization_fully_amortized",
                extra={"opening": str(opening), "floor": str(floor)},
            )
            return AmortizationResult(
                opening_book_value=opening,
                depreciation_amount=Decimal("0"),
                closing_book_value=opening,
                regime=AmortizationRegime.FULLY_AMORTIZED,
                floor_value=floor,
            )

        max_depreciable = opening - floor

        if policy.method == DepreciationMethod.STRAIGHT_LINE:
            amount, regime = self._straight_line(
                acquisition_cost, policy, max_depreciable
            )
        else:
            amount, regime = self._declining_balance(
                acquisition_cost, policy, opening, max_depreciable, previous, history
            )

        closing = self._closing_value(opening, amount, floor)

        return AmortizationResult(
            opening_book_value=opening,
            depreciation_amount=opening - closing,
            closing_book_value=closing,
            regime=regime,
            floor_value=floor,
        )

    def _straight_line(
        self,
        acquisition_cost: Decimal,
        policy: PolicyTerms,
        max_depreciable: Decimal,
    ) -> tuple[Decimal, AmortizationRegime]:
        annual = (
            acquisition_cost
            * (Decimal(1) - policy.residual_rate)
            / Decimal(policy.useful_life_years)
        )
        return min(annual, max_depreciable), AmortizationRegime.STRAIGHT_LINE

    def _declining_balance(
        self,
        acquisition_cost: Decimal,
        policy: PolicyTerms,
        opening: Decimal,
        max_depreciable: Decimal,
        previous: BookValueRecord | None,
        history: Sequence[BookValueRecord],
    ) -> tuple[Decimal, AmortizationRegime]:
        life = policy.useful_life_years
        declining_rate = 2 * straight_line_rate(life)

        normal = opening * declining_rate
        normal_limited = min(normal, max_depreciable)
        guarantee_amount = acquisition_cost * guarantee_rate(life)

        if normal >= guarantee_amount:
            return normal_limited, AmortizationRegime.ORDINARY

        revised_base = find_revised_base(
            opening, previous, history, declining_rate, guarantee_amount
        )
        revised_limited = min(revised_base * revised_rate(life), max_depreciable)

        logger.debug(
            "amortization_switch_over",
            extra={
                "normal": str(normal),
                "guarantee_amount": str(guarantee_amount),
                "revised_base": str(revised_base),
            },
        )

        # The residual floor outranks the revised amount when it already
        # capped the ordinary computation.
        if normal_limited < normal:
            return normal_limited, AmortizationRegime.FLOOR_CAPPED
        return revised_limited, AmortizationRegime.REVISED

    @staticmethod
    def _closing_value(opening: Decimal, amount: Decimal, floor: Decimal) -> Decimal:
        closing = (opening - amount).quantize(_STORAGE_QUANTUM, rounding=ROUND_HALF_UP)
        closing = max(closing, floor.quantize(_STORAGE_QUANTUM, rounding=ROUND_CEILING))
        return min(closing, opening)
