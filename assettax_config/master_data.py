"""
Fixed-asset master data (``assettax_config.master_data``).

Account items, asset classifications, depreciation methods, depreciation
types and acquisition types are static lookup tables shipped as
``master_data/account_items.yaml``.  They are read-only; the engines never
compute them.  The asset registry uses them to validate keys and to default
a policy's useful life to the midpoint of the account item's range.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from assettax_config.loader import load_yaml_file
from assettax_kernel.logging_config import get_logger

logger = get_logger("config.master_data")

DEFAULT_MASTER_DATA_PATH = Path(__file__).parent / "master_data" / "account_items.yaml"


@dataclass(frozen=True)
class CodedEntry:
    key: str
    name: str
    code: str


@dataclass(frozen=True)
class AccountItem:
    key: str
    name: str
    code: str
    classification: str
    useful_life_range: tuple[int, int] | None

    @property
    def is_depreciable(self) -> bool:
        return self.useful_life_range is not None

    @property
    def default_useful_life(self) -> int | None:
        """Midpoint of the useful-life range, rounded down."""
        if self.useful_life_range is None:
            return None
        low, high = self.useful_life_range
        return (low + high) // 2


@dataclass(frozen=True)
class DepreciationMethodEntry:
    key: str
    name: str
    code: str
    engine_method: str | None


@dataclass(frozen=True)
class MasterData:
    asset_classifications: Mapping[str, CodedEntry]
    account_items: Mapping[str, AccountItem]
    depreciation_methods: Mapping[str, DepreciationMethodEntry]
    depreciation_types: Mapping[str, CodedEntry]
    acquisition_types: Mapping[str, CodedEntry]

    def useful_life_for(self, account_item_key: str) -> int | None:
        item = self.account_items.get(account_item_key)
        return item.default_useful_life if item is not None else None

    def account_item_name(self, key: str) -> str:
        item = self.account_items.get(key)
        return item.name if item is not None else key

    def asset_classification_name(self, key: str) -> str:
        entry = self.asset_classifications.get(key)
        return entry.name if entry is not None else key

    def is_valid_account_item(self, key: str) -> bool:
        return key in self.account_items

    def is_valid_classification(self, key: str) -> bool:
        return key in self.asset_classifications

    def is_valid_method(self, key: str) -> bool:
        return key in self.depreciation_methods

    def engine_method_for(self, key: str) -> str | None:
        entry = self.depreciation_methods.get(key)
        return entry.engine_method if entry is not None else None

    def options(self, table: str) -> list[tuple[str, str]]:
        """(name, key) pairs for a table, in file order."""
        return [(entry.name, key) for key, entry in getattr(self, table).items()]


def _coded(section: dict[str, Any]) -> Mapping[str, CodedEntry]:
    return MappingProxyType({
        key: CodedEntry(key=key, name=str(v["name"]), code=str(v["code"]))
        for key, v in section.items()
    })


def parse_master_data(data: dict[str, Any]) -> MasterData:
    """Turn the parsed YAML document into MasterData; missing keys raise KeyError."""
    account_items = {}
    for key, v in data["account_items"].items():
        life = v.get("useful_life")
        account_items[key] = AccountItem(
            key=key,
            name=str(v["name"]),
            code=str(v["code"]),
            classification=v["classification"],
            useful_life_range=(int(life[0]), int(life[1])) if life else None,
        )

    methods = {
        key: DepreciationMethodEntry(
            key=key,
            name=str(v["name"]),
            code=str(v["code"]),
            engine_method=v.get("engine_method"),
        )
        for key, v in data["depreciation_methods"].items()
    }

    return MasterData(
        asset_classifications=_coded(data["asset_classifications"]),
        account_items=MappingProxyType(account_items),
        depreciation_methods=MappingProxyType(methods),
        depreciation_types=_coded(data["depreciation_types"]),
        acquisition_types=_coded(data["acquisition_types"]),
    )


def load_master_data(path: Path) -> MasterData:
    master = parse_master_data(load_yaml_file(path))
    logger.info(
        "master_data_loaded",
        extra={"path": str(path), "account_items": len(master.account_items)},
    )
    return master


@lru_cache(maxsize=1)
def get_master_data() -> MasterData:
    """The packaged master data, loaded once per process."""
    return load_master_data(DEFAULT_MASTER_DATA_PATH)
