"""
JSON-ready views of runs and depreciation years.

Decimals become plain numbers (int when integral, float otherwise), dates
and datetimes ISO strings, UUIDs strings.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from assettax_kernel.models.calculation import CalculationResult, CalculationRun
from assettax_kernel.models.depreciation_year import DepreciationYear


def to_number(value: Decimal | None) -> int | float | None:
    if value is None:
        return None
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _str(value: UUID | None) -> str | None:
    return str(value) if value is not None else None


def serialize_result(result: CalculationResult) -> dict[str, Any]:
    breakdown = dict(result.breakdown)
    if isinstance(breakdown.get("tax_rate"), str):
        breakdown["tax_rate"] = to_number(Decimal(breakdown["tax_rate"]))
    prop = result.assessed_property
    return {
        "id": _str(result.id),
        "property_id": _str(result.property_id),
        "property_name": prop.name if prop is not None else None,
        "tax_amount": to_number(result.tax_amount),
        "breakdown": breakdown,
    }


def serialize_run(run: CalculationRun, include_results: bool = False) -> dict[str, Any]:
    data = {
        "id": _str(run.id),
        "tenant_id": _str(run.tenant_id),
        "municipality_id": _str(run.municipality_id),
        "municipality_name": run.municipality.name if run.municipality is not None else None,
        "fiscal_year_id": _str(run.fiscal_year_id),
        "fiscal_year": run.fiscal_year.year if run.fiscal_year is not None else None,
        "status": run.status,
        "error_message": run.error_message,
        "started_at": _iso(run.started_at),
        "finished_at": _iso(run.finished_at),
        "created_at": _iso(run.created_at),
        "updated_at": _iso(run.updated_at),
    }
    if include_results:
        data["results"] = [serialize_result(r) for r in run.results]
    return data


def serialize_depreciation_year(record: DepreciationYear) -> dict[str, Any]:
    return {
        "id": _str(record.id),
        "fixed_asset_id": _str(record.fixed_asset_id),
        "fiscal_year_id": _str(record.fiscal_year_id),
        "fiscal_year": record.fiscal_year.year if record.fiscal_year is not None else None,
        "opening_book_value": to_number(record.opening_book_value),
        "depreciation_amount": to_number(record.depreciation_amount),
        "closing_book_value": to_number(record.closing_book_value),
    }
