"""
Statutory rate tables keyed by useful life in years.

Three independent tables:

* GUARANTEE_RATES and REVISED_RATES drive the 200% declining-balance
  switch-over in accounting depreciation.
* STATUTORY_DEPRECIATION_RATES drive the municipal assessed valuation of
  depreciable assets; they come from the older declining-balance schedule
  and are unrelated to the accounting tables.

Every table is a read-only mapping of int -> Decimal.  Untabulated useful
lives follow the fallback rule documented on each lookup function.
"""

from decimal import Decimal
from types import MappingProxyType
from typing import Mapping


def _table(rates: dict[int, str]) -> Mapping[int, Decimal]:
    return MappingProxyType({life: Decimal(rate) for life, rate in rates.items()})


GUARANTEE_RATES: Mapping[int, Decimal] = _table({
    2: "0.50847",
    3: "0.34776",
    4: "0.26505",
    5: "0.21600",
    6: "0.18327",
    7: "0.15909",
    8: "0.14065",
    9: "0.12577",
    10: "0.11430",
    15: "0.07909",
    20: "0.06141",
})

REVISED_RATES: Mapping[int, Decimal] = _table({
    2: "0.500",
    3: "0.334",
    4: "0.250",
    5: "0.200",
    6: "0.167",
    7: "0.143",
    8: "0.125",
    9: "0.112",
    10: "0.100",
    15: "0.067",
    20: "0.050",
})

STATUTORY_DEPRECIATION_RATES: Mapping[int, Decimal] = _table({
    2: "0.684",
    3: "0.536",
    4: "0.438",
    5: "0.369",
    6: "0.319",
    7: "0.280",
    8: "0.250",
    9: "0.226",
    10: "0.206",
    15: "0.142",
    20: "0.109",
    25: "0.088",
    30: "0.074",
})

# Untabulated guarantee rate = straight-line rate scaled by the 10-year entry.
GUARANTEE_FALLBACK_FACTOR = Decimal("0.11430")

# Statutory assessed value never drops below 5% of acquisition cost.
STATUTORY_MINIMUM_RATE = Decimal("0.05")

# Useful life assumed when an asset has no depreciation policy.
DEFAULT_STATUTORY_USEFUL_LIFE = 10

# First-year half-year convention for assessed valuation.
FIRST_YEAR_FACTOR = Decimal("0.5")


def straight_line_rate(useful_life_years: int) -> Decimal:
    return Decimal(1) / Decimal(useful_life_years)


def guarantee_rate(useful_life_years: int) -> Decimal:
    """Guarantee rate; untabulated lives use ``(1/life) * 0.11430``."""
    rate = GUARANTEE_RATES.get(useful_life_years)
    if rate is not None:
        return rate
    return straight_line_rate(useful_life_years) * GUARANTEE_FALLBACK_FACTOR


def revised_rate(useful_life_years: int) -> Decimal:
    """Revised rate; untabulated lives use the straight-line rate."""
    rate = REVISED_RATES.get(useful_life_years)
    if rate is not None:
        return rate
    return straight_line_rate(useful_life_years)


def statutory_depreciation_rate(useful_life_years: int | None) -> Decimal:
    """
    Statutory decay rate for assessed valuation.

    Exact table entries are returned as is.  Lives between two entries are
    linearly interpolated; lives outside the table clamp to the nearest
    edge.  ``None`` means no policy and uses DEFAULT_STATUTORY_USEFUL_LIFE.
    """
    life = DEFAULT_STATUTORY_USEFUL_LIFE if useful_life_years is None else useful_life_years

    exact = STATUTORY_DEPRECIATION_RATES.get(life)
    if exact is not None:
        return exact

    lives = sorted(STATUTORY_DEPRECIATION_RATES)
    if life < lives[0]:
        return STATUTORY_DEPRECIATION_RATES[lives[0]]
    if life > lives[-1]:
        return STATUTORY_DEPRECIATION_RATES[lives[-1]]

    lower = max(l for l in lives if l < life)
    upper = min(l for l in lives if l > life)
    rate_lower = STATUTORY_DEPRECIATION_RATES[lower]
    rate_upper = STATUTORY_DEPRECIATION_RATES[upper]
    ratio = Decimal(life - lower) / Decimal(upper - lower)
    return rate_lower + (rate_upper - rate_lower) * ratio
