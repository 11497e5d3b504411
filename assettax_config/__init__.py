"""
Configuration for the asset tax engine.

``TaxConfig`` carries the municipal tax parameters; ``get_master_data()``
returns the account-item and method master data loaded from YAML.
"""

from assettax_config.master_data import MasterData, get_master_data
from assettax_config.schema import TaxConfig

__all__ = ["TaxConfig", "MasterData", "get_master_data"]
