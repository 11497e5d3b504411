"""
Module: assettax_engines
Responsibility:
    Pure calculation engines: accounting amortization, statutory assessed
    valuation and property-tax rules.  No session, no clock, no I/O.

Architecture position:
    Engines -- may import assettax_kernel (domain DTOs, exceptions, enums,
    logging) and assettax_config.  MUST NOT import assettax_services.

Invariants enforced:
    - Decimal-only arithmetic.
    - Identical inputs produce identical outputs.
    - Every engine call is traced via ``@traced_engine``.

Usage:
    from assettax_engines import AmortizationEngine, StatutoryValuationEngine
    from assettax_engines import PropertyTaxEngine
"""

from assettax_engines.amortization import (
    AmortizationEngine,
    AmortizationRegime,
    AmortizationResult,
)
from assettax_engines.property_tax import (
    PropertyAssessment,
    PropertyTaxEngine,
    PropertyTaxLine,
    reported_via_accounting,
    tax_base_for,
)
from assettax_engines.statutory_valuation import (
    StatutoryValuationEngine,
    StatutoryValuationResult,
)

__all__ = [
    "AmortizationEngine",
    "AmortizationRegime",
    "AmortizationResult",
    "PropertyAssessment",
    "PropertyTaxEngine",
    "PropertyTaxLine",
    "reported_via_accounting",
    "tax_base_for",
    "StatutoryValuationEngine",
    "StatutoryValuationResult",
]
