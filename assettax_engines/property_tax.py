"""
Property Tax Engine - tax base, exemption aggregation and tax amounts.

Pure functions over assessed values that the orchestrator has already
obtained.  Category rules:

* land: residential land with a recorded area splits its value into the
  first 200 sqm (divided by 6) and the remainder (divided by 3); other land
  is taxed on its assessed value.
* building: fewer than 3 years since acquisition of the primary asset
  halves the value.
* depreciable_group: taxed on its assessed value.

Exemption is decided per category on the sum of tax bases of the
check-eligible properties.  A depreciable group whose assets were all
already reported through accounting depreciation is not check-eligible.
Tax amounts are truncated to whole yen.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Collection, Sequence
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from typing import Any
from uuid import UUID

from assettax_config.schema import EXEMPT_REASON_BELOW_THRESHOLD, TaxConfig
from assettax_engines.tracer import traced_engine
from assettax_kernel.logging_config import get_logger
from assettax_kernel.models.property import PropertyCategory

logger = get_logger("engines.property_tax")


def truncate_yen(value: Decimal) -> Decimal:
    return value.quantize(Decimal("1"), rounding=ROUND_DOWN)


def residential_land_tax_base(
    assessed_value: Decimal,
    area_sqm: Decimal,
    config: TaxConfig,
) -> Decimal:
    """Small-scale residential reduction, proportional to area."""
    limit = config.small_scale_residential_limit_sqm
    if area_sqm <= limit:
        return assessed_value / config.small_scale_residential_divisor
    small_scale = limit / area_sqm * assessed_value
    general = (area_sqm - limit) / area_sqm * assessed_value
    return (
        small_scale / config.small_scale_residential_divisor
        + general / config.general_residential_divisor
    )


def tax_base_for(
    category: str,
    assessed_value: Decimal,
    *,
    config: TaxConfig,
    residential: bool = False,
    area_sqm: Decimal | None = None,
    years_elapsed: int | None = None,
) -> Decimal:
    """
    Tax base of one property.

    ``years_elapsed`` is measured from the building's primary fixed asset;
    None (no asset) leaves a building's value unchanged.
    """
    if category == PropertyCategory.LAND:
        if residential and area_sqm:
            return residential_land_tax_base(assessed_value, area_sqm, config)
        return assessed_value
    if category == PropertyCategory.BUILDING:
        if years_elapsed is not None and years_elapsed < config.new_construction_years:
            return assessed_value * config.new_construction_factor
        return assessed_value
    return assessed_value


def reported_via_accounting(
    category: str,
    fixed_asset_ids: Collection[UUID],
    recorded_asset_ids: Collection[UUID],
) -> bool:
    """
    True when a depreciable group's assets all carry a DepreciationYear for
    the fiscal year.  A group without assets has reported nothing.
    """
    if category != PropertyCategory.DEPRECIABLE_GROUP:
        return False
    if not fixed_asset_ids:
        return False
    return all(asset_id in recorded_asset_ids for asset_id in fixed_asset_ids)


@dataclass(frozen=True)
class PropertyAssessment:
    """Engine input: one property's assessed value and tax base."""

    property_id: UUID
    category: str
    assessed_value: Decimal
    tax_base_value: Decimal
    reported_via_accounting: bool = False


@dataclass(frozen=True)
class PropertyTaxLine:
    property_id: UUID
    category: str
    assessed_value: Decimal
    tax_base_value: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    exempt_reason: str | None

    @property
    def is_exempt(self) -> bool:
        return self.exempt_reason is not None

    def breakdown(self) -> dict[str, Any]:
        """JSON-ready breakdown stored on CalculationResult."""
        return {
            "assessed_value": int(self.assessed_value),
            "tax_base_value": int(self.tax_base_value),
            "tax_rate": str(self.tax_rate),
            "tax_amount": int(self.tax_amount),
            "exempt_reason": self.exempt_reason,
        }


class PropertyTaxEngine:
    """Applies exemption thresholds and the tax rate to a run's assessments."""

    def __init__(self, config: TaxConfig | None = None):
        self.config = config or TaxConfig.with_defaults()

    def category_totals(
        self,
        assessments: Sequence[PropertyAssessment],
    ) -> dict[str, Decimal]:
        """Sum of tax bases per category over check-eligible properties."""
        totals: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
        for assessment in assessments:
            if not assessment.reported_via_accounting:
                totals[assessment.category] += assessment.tax_base_value
        return dict(totals)

    def is_below_threshold(self, category: str, total: Decimal) -> bool:
        threshold = self.config.threshold_for(category)
        if threshold is None:
            return False
        return total < threshold

    @traced_engine("property_tax", "1.0", fingerprint_fields=("assessments",))
    def calculate(
        self,
        *,
        assessments: Sequence[PropertyAssessment],
    ) -> list[PropertyTaxLine]:
        totals = self.category_totals(assessments)
        exempt_categories = {
            category
            for category, total in totals.items()
            if self.is_below_threshold(category, total)
        }
        rate = self.config.standard_tax_rate

        logger.info(
            "property_tax_totals_computed",
            extra={
                "category_totals": {k: str(v) for k, v in totals.items()},
                "exempt_categories": sorted(exempt_categories),
            },
        )

        lines = []
        for assessment in assessments:
            exempt = (
                not assessment.reported_via_accounting
                and assessment.category in exempt_categories
            )
            if exempt:
                tax_amount = Decimal("0")
                reason = EXEMPT_REASON_BELOW_THRESHOLD
            else:
                tax_amount = truncate_yen(assessment.tax_base_value * rate)
                reason = None
            lines.append(
                PropertyTaxLine(
                    property_id=assessment.property_id,
                    category=assessment.category,
                    assessed_value=assessment.assessed_value,
                    tax_base_value=assessment.tax_base_value,
                    tax_rate=rate,
                    tax_amount=tax_amount,
                    exempt_reason=reason,
                )
            )
        return lines
