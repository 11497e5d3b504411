"""
Statutory Valuation Engine - municipal assessed value of a depreciable asset.

Independent of accounting depreciation: it uses its own decay table
(rate_tables.STATUTORY_DEPRECIATION_RATES), a half-year convention in the
acquisition year and a floor of 5% of acquisition cost.

    year 0:  cost * (1 - rate / 2)
    year n:  previous * (1 - rate)
    always:  max(value, cost * 0.05), rounded half-up to whole yen

When no persisted valuation exists for the previous fiscal year, the
previous value is rebuilt by replaying the decay from acquisition.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from assettax_engines.rate_tables import (
    FIRST_YEAR_FACTOR,
    STATUTORY_MINIMUM_RATE,
    statutory_depreciation_rate,
)
from assettax_engines.tracer import traced_engine
from assettax_kernel.exceptions import FiscalYearBeforeAcquisitionError
from assettax_kernel.logging_config import get_logger

logger = get_logger("engines.statutory_valuation")

_WHOLE_YEN = Decimal("1")


def round_yen(value: Decimal) -> Decimal:
    return value.quantize(_WHOLE_YEN, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class StatutoryValuationResult:
    years_elapsed: int
    valuation: Decimal
    depreciation_rate: Decimal
    is_minimum: bool
    minimum_value: Decimal
    previous_valuation: Decimal | None = None


def replay_valuation(
    acquisition_cost: Decimal,
    rate: Decimal,
    years_elapsed: int,
) -> Decimal:
    """
    Unrounded assessed value after ``years_elapsed`` years, rebuilt from
    acquisition.  The floor applies at every step after the first year and
    the replay stops once it is reached.
    """
    minimum = acquisition_cost * STATUTORY_MINIMUM_RATE
    value = acquisition_cost * (Decimal(1) - rate * FIRST_YEAR_FACTOR)
    for _ in range(years_elapsed):
        value = max(value * (Decimal(1) - rate), minimum)
        if value <= minimum:
            break
    return value


class StatutoryValuationEngine:
    """Pure assessed-valuation calculator for one asset and fiscal year."""

    @traced_engine(
        "statutory_valuation",
        "1.0",
        fingerprint_fields=(
            "acquisition_cost",
            "acquired_on",
            "fiscal_year",
            "useful_life_years",
            "previous_valuation",
        ),
    )
    def calculate(
        self,
        *,
        acquisition_cost: Decimal,
        acquired_on: date,
        fiscal_year: int,
        useful_life_years: int | None = None,
        previous_valuation: Decimal | None = None,
    ) -> StatutoryValuationResult:
        """
        Assessed value for ``fiscal_year``.

        ``previous_valuation`` is the persisted assessed value of the
        immediately preceding fiscal year, if any.

        Raises:
            FiscalYearBeforeAcquisitionError: fiscal_year < acquired_on.year.
        """
        years_elapsed = fiscal_year - acquired_on.year
        if years_elapsed < 0:
            raise FiscalYearBeforeAcquisitionError(
                fiscal_year=fiscal_year,
                acquired_year=acquired_on.year,
            )

        rate = statutory_depreciation_rate(useful_life_years)
        minimum = acquisition_cost * STATUTORY_MINIMUM_RATE

        if years_elapsed == 0:
            valuation = acquisition_cost * (Decimal(1) - rate * FIRST_YEAR_FACTOR)
            previous = None
        else:
            if previous_valuation is None:
                previous = replay_valuation(acquisition_cost, rate, years_elapsed - 1)
                logger.debug(
                    "statutory_valuation_replayed",
                    extra={"years": years_elapsed - 1, "previous": str(previous)},
                )
            else:
                previous = previous_valuation
            valuation = previous * (Decimal(1) - rate)

        final = max(valuation, minimum)

        return StatutoryValuationResult(
            years_elapsed=years_elapsed,
            valuation=round_yen(final),
            depreciation_rate=rate,
            is_minimum=final <= minimum,
            minimum_value=minimum,
            previous_valuation=round_yen(previous) if previous is not None else None,
        )
