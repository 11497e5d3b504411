"""ORM models for the asset tax kernel."""

from assettax_kernel.models.asset_valuation import AssetValuation, ValuationSource
from assettax_kernel.models.calculation import (
    TERMINAL_STATUSES,
    VALID_TRANSITIONS,
    CalculationResult,
    CalculationRun,
    RunStatus,
)
from assettax_kernel.models.depreciation_year import DepreciationYear
from assettax_kernel.models.fiscal_year import FiscalYear
from assettax_kernel.models.fixed_asset import (
    DepreciationMethod,
    DepreciationPolicy,
    FixedAsset,
)
from assettax_kernel.models.organization import Municipality, Tenant
from assettax_kernel.models.property import (
    RESIDENTIAL_PROPERTY_TYPE,
    LandParcel,
    Property,
    PropertyCategory,
)

__all__ = [
    "AssetValuation",
    "ValuationSource",
    "CalculationResult",
    "CalculationRun",
    "RunStatus",
    "VALID_TRANSITIONS",
    "TERMINAL_STATUSES",
    "DepreciationYear",
    "FiscalYear",
    "DepreciationMethod",
    "DepreciationPolicy",
    "FixedAsset",
    "Municipality",
    "Tenant",
    "LandParcel",
    "Property",
    "PropertyCategory",
    "RESIDENTIAL_PROPERTY_TYPE",
]
