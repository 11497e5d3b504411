"""Read-only query selectors."""

from assettax_kernel.selectors.asset_selector import AssetSelector
from assettax_kernel.selectors.base import BaseSelector
from assettax_kernel.selectors.fiscal_year_selector import FiscalYearSelector
from assettax_kernel.selectors.history_selector import DepreciationHistorySelector
from assettax_kernel.selectors.property_selector import PropertySelector
from assettax_kernel.selectors.run_selector import CalculationRunSelector
from assettax_kernel.selectors.valuation_selector import ValuationSelector

__all__ = [
    "BaseSelector",
    "AssetSelector",
    "FiscalYearSelector",
    "DepreciationHistorySelector",
    "PropertySelector",
    "CalculationRunSelector",
    "ValuationSelector",
]
