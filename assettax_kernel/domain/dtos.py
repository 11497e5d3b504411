"""
Immutable value objects passed from selectors into the pure engines.

Engines never see ORM rows; selectors convert persisted history into these
frozen dataclasses so that a calculation is a function of plain values.
"""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class BookValueRecord:
    """One persisted year of accounting depreciation for one asset."""

    fiscal_year: int
    opening_book_value: Decimal
    depreciation_amount: Decimal
    closing_book_value: Decimal


@dataclass(frozen=True)
class PolicyTerms:
    """The depreciation policy fields the amortization engine reads."""

    method: str
    useful_life_years: int
    residual_rate: Decimal
