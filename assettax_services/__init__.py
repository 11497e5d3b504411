"""
Services: the imperative shell around the pure engines.

Services take a caller-owned Session and flush; the caller commits.
"""

from assettax_services.amortization_service import AmortizationService
from assettax_services.asset_registry import AssetRegistry
from assettax_services.property_tax_orchestrator import PropertyTaxOrchestrator
from assettax_services.serialization import serialize_depreciation_year, serialize_run
from assettax_services.valuation_service import ValuationService

__all__ = [
    "AmortizationService",
    "AssetRegistry",
    "PropertyTaxOrchestrator",
    "ValuationService",
    "serialize_depreciation_year",
    "serialize_run",
]
