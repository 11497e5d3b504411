"""
Property-tax parameter schema.

Defaults are the standard municipal rules: 1.4% standard rate, exemption
thresholds per category, small-scale residential land reduction and the
new-construction reduction for buildings.  Municipalities with different
parameters load them from YAML:

    config = TaxConfig.from_yaml(Path("config/tokyo.yaml"))
"""

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Self

from assettax_config.loader import compute_checksum, load_yaml_file, parse_decimal
from assettax_kernel.logging_config import get_logger

logger = get_logger("config.schema")

EXEMPT_REASON_BELOW_THRESHOLD = "Below exemption threshold"

_DECIMAL_FIELDS = (
    "standard_tax_rate",
    "land_unit_price",
    "small_scale_residential_limit_sqm",
    "small_scale_residential_divisor",
    "general_residential_divisor",
    "new_construction_factor",
)


def _default_thresholds() -> dict[str, Decimal]:
    return {
        "land": Decimal("300000"),
        "building": Decimal("200000"),
        "depreciable_group": Decimal("1500000"),
    }


@dataclass(frozen=True)
class TaxConfig:
    """
    Municipal property-tax parameters.

    Amounts are yen; areas are square metres.
    """

    standard_tax_rate: Decimal = Decimal("0.014")
    exemption_thresholds: dict[str, Decimal] = field(default_factory=_default_thresholds)

    # Land estimate: area * unit price
    land_unit_price: Decimal = Decimal("100000")

    # Residential land: first 200 sqm at 1/6, remainder at 1/3
    small_scale_residential_limit_sqm: Decimal = Decimal("200")
    small_scale_residential_divisor: Decimal = Decimal("6")
    general_residential_divisor: Decimal = Decimal("3")

    # Buildings younger than 3 years are taxed on half their value
    new_construction_years: int = 3
    new_construction_factor: Decimal = Decimal("0.5")

    def threshold_for(self, category: str) -> Decimal | None:
        return self.exemption_thresholds.get(category)

    def checksum(self) -> str:
        return compute_checksum(asdict(self))

    @classmethod
    def with_defaults(cls) -> Self:
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Build from a plain dict (YAML, database); unknown keys raise TypeError."""
        logger.info(
            "tax_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        values = dict(data)
        for name in _DECIMAL_FIELDS:
            if name in values:
                values[name] = parse_decimal(values[name])
        if "exemption_thresholds" in values:
            thresholds = _default_thresholds()
            thresholds.update(
                {k: parse_decimal(v) for k, v in values["exemption_thresholds"].items()}
            )
            values["exemption_thresholds"] = thresholds
        if "new_construction_years" in values:
            values["new_construction_years"] = int(values["new_construction_years"])
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: Path) -> Self:
        data = load_yaml_file(path)
        return cls.from_dict(data.get("property_tax", data))
