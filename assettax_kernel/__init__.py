"""
Asset Tax Kernel

Persistence and infrastructure core for the fixed-asset tax engine:
- Append-only depreciation and valuation history
- Atomic property-tax calculation runs
- Typed errors with machine-readable codes
- Structured JSON logging
"""

__version__ = "0.1.0"
