"""
Typed exception hierarchy for the asset tax engine.

Every error has its own class, a machine-readable ``code`` class attribute
and structured attributes, so callers catch by type and serialize by field
instead of parsing messages.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    AssetTaxError (base)
    |
    +-- PolicyError
    |   +-- PolicyMissingError
    |
    +-- NotFoundError
    |   +-- AssetMissingError
    |   +-- FiscalYearMissingError
    |   +-- PropertyMissingError
    |   +-- CalculationRunMissingError
    |
    +-- ValuationError
    |   +-- FiscalYearBeforeAcquisitionError
    |   +-- ValuationExistsError
    |
    +-- HistoryError
    |   +-- DepreciationYearExistsError
    |   +-- DownstreamHistoryError
    |
    +-- RunError
    |   +-- InvalidRunTransitionError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- MasterDataValidationError

===============================================================================
ERROR CODES
===============================================================================

Category      | Code                            | When Raised
--------------|---------------------------------|--------------------------------------
Policy        | POLICY_MISSING                  | Asset has no depreciation policy
--------------|---------------------------------|--------------------------------------
Lookup        | ASSET_MISSING                   | Fixed asset id doesn't exist
              | FISCAL_YEAR_MISSING             | Fiscal year id doesn't exist
              | PROPERTY_MISSING                | Property id doesn't exist
              | CALCULATION_RUN_MISSING         | Run id doesn't exist
--------------|---------------------------------|--------------------------------------
Valuation     | FISCAL_YEAR_BEFORE_ACQUISITION  | Fiscal year precedes acquired_on year
              | VALUATION_EXISTS                | Tuple already has an AssetValuation
--------------|---------------------------------|--------------------------------------
History       | DEPRECIATION_YEAR_EXISTS        | Year already recorded (append-only)
              | DOWNSTREAM_HISTORY_EXISTS       | Recompute blocked by a later year
--------------|---------------------------------|--------------------------------------
Run           | INVALID_RUN_TRANSITION          | Status change not allowed
--------------|---------------------------------|--------------------------------------
Immutability  | IMMUTABILITY_VIOLATION          | Modifying an append-only row
--------------|---------------------------------|--------------------------------------
Master data   | MASTER_DATA_INVALID             | Unknown account item / method key

There is no arithmetic error kind: useful_life_years is required to be
positive, so every rate computation is total.
"""


class AssetTaxError(Exception):
    """
    Base exception for all asset tax errors.

    All subclasses carry a ``code`` class attribute.
    """

    code: str = "ASSET_TAX_ERROR"


# Policy


class PolicyError(AssetTaxError):
    """Base exception for depreciation policy errors."""

    code: str = "POLICY_ERROR"


class PolicyMissingError(PolicyError):
    """Fixed asset has no depreciation policy attached."""

    code: str = "POLICY_MISSING"

    def __init__(self, fixed_asset_id: str):
        self.fixed_asset_id = fixed_asset_id
        super().__init__("Depreciation policy not found")


# Lookup


class NotFoundError(AssetTaxError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class AssetMissingError(NotFoundError):
    code: str = "ASSET_MISSING"

    def __init__(self, fixed_asset_id: str | None = None):
        self.fixed_asset_id = fixed_asset_id
        super().__init__("Fixed asset not found")


class FiscalYearMissingError(NotFoundError):
    code: str = "FISCAL_YEAR_MISSING"

    def __init__(self, fiscal_year_id: str | None = None):
        self.fiscal_year_id = fiscal_year_id
        super().__init__("Fiscal year not found")


class PropertyMissingError(NotFoundError):
    code: str = "PROPERTY_MISSING"

    def __init__(self, property_id: str):
        self.property_id = property_id
        super().__init__(f"Property not found: {property_id}")


class CalculationRunMissingError(NotFoundError):
    code: str = "CALCULATION_RUN_MISSING"

    def __init__(self, run_id: str):
        self.run_id = run_id
        super().__init__(f"Calculation run not found: {run_id}")


# Valuation


class ValuationError(AssetTaxError):
    """Base exception for statutory valuation errors."""

    code: str = "VALUATION_ERROR"


class FiscalYearBeforeAcquisitionError(ValuationError):
    """The requested fiscal year precedes the year the asset was acquired."""

    code: str = "FISCAL_YEAR_BEFORE_ACQUISITION"

    def __init__(self, fiscal_year: int, acquired_year: int):
        self.fiscal_year = fiscal_year
        self.acquired_year = acquired_year
        super().__init__("Fiscal year is before acquisition date")


class ValuationExistsError(ValuationError):
    """An AssetValuation already exists for (property, municipality, fiscal year)."""

    code: str = "VALUATION_EXISTS"

    def __init__(self, property_id: str, fiscal_year: int):
        self.property_id = property_id
        self.fiscal_year = fiscal_year
        super().__init__(
            f"Valuation already recorded for property {property_id} in {fiscal_year}"
        )


# History


class HistoryError(AssetTaxError):
    """Base exception for depreciation history errors."""

    code: str = "HISTORY_ERROR"


class DepreciationYearExistsError(HistoryError):
    """The year was already recorded; use the explicit recompute operation."""

    code: str = "DEPRECIATION_YEAR_EXISTS"

    def __init__(self, fixed_asset_id: str, fiscal_year: int):
        self.fixed_asset_id = fixed_asset_id
        self.fiscal_year = fiscal_year
        super().__init__(
            f"Depreciation for asset {fixed_asset_id} in {fiscal_year} already recorded"
        )


class DownstreamHistoryError(HistoryError):
    """A later fiscal year was already computed from the record being recomputed."""

    code: str = "DOWNSTREAM_HISTORY_EXISTS"

    def __init__(self, fixed_asset_id: str, fiscal_year: int, later_years: list[int]):
        self.fixed_asset_id = fixed_asset_id
        self.fiscal_year = fiscal_year
        self.later_years = later_years
        super().__init__(
            f"Cannot recompute {fiscal_year} for asset {fixed_asset_id}: "
            f"later years {later_years} depend on it"
        )


# Calculation runs


class RunError(AssetTaxError):
    """Base exception for calculation run errors."""

    code: str = "RUN_ERROR"


class InvalidRunTransitionError(RunError):
    code: str = "INVALID_RUN_TRANSITION"

    def __init__(self, run_id: str, from_status: str, to_status: str):
        self.run_id = run_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Calculation run {run_id} cannot move from {from_status} to {to_status}"
        )


# Immutability


class ImmutabilityError(AssetTaxError):
    """Base exception for append-only violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an append-only record.

    DepreciationYear, AssetValuation financial fields and CalculationResult
    rows are append-only; terminal CalculationRuns keep their status.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Master data


class MasterDataValidationError(AssetTaxError):
    """A key does not exist in the account-item / classification master data."""

    code: str = "MASTER_DATA_INVALID"

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}: {value!r}")
