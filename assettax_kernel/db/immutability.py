"""
ORM-level append-only enforcement for calculation history.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity             | When Immutable                     | Mutable fields
-------------------|------------------------------------|--------------------------
DepreciationYear   | ALWAYS, unless allow_recompute()   | audit metadata
AssetValuation     | Financial fields from creation     | note, audit metadata
CalculationResult  | ALWAYS (from creation)             | audit metadata
CalculationRun     | Once status is succeeded / failed  | audit metadata

Later fiscal years read DepreciationYear and AssetValuation rows as ground
truth, so they are never mutated as a side effect of computing another year.
Recomputing a year is the explicit AmortizationService.recompute_amortization
operation, which opens an ``allow_recompute(session)`` scope.

SQLAlchemy fires ``before_update`` / ``before_delete`` before any SQL is
sent; a listener that raises ImmutabilityViolationError aborts the flush.

Usage:

    from assettax_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session, object_session
from sqlalchemy.orm.attributes import get_history

from assettax_kernel.exceptions import ImmutabilityViolationError
from assettax_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

# Audit metadata may change on any row.
AUDIT_FIELDS = frozenset({"updated_at", "updated_by_id"})

ASSET_VALUATION_FROZEN_FIELDS = (
    "assessed_value",
    "tax_base_value",
    "source",
    "tenant_id",
    "municipality_id",
    "fiscal_year_id",
    "property_id",
)

_RECOMPUTE_FLAG = "assettax.allow_recompute"

_TERMINAL_RUN_STATUSES = ("succeeded", "failed")


@contextmanager
def allow_recompute(session: Session) -> Generator[Session, None, None]:
    """Permit rewriting DepreciationYear rows flushed inside this block."""
    previous = session.info.get(_RECOMPUTE_FLAG, False)
    session.info[_RECOMPUTE_FLAG] = True
    try:
        yield session
    finally:
        session.info[_RECOMPUTE_FLAG] = previous


def _recompute_allowed(target) -> bool:
    session = object_session(target)
    return bool(session is not None and session.info.get(_RECOMPUTE_FLAG))


def _changed_fields(target) -> list[str]:
    """Column attributes with pending changes, excluding audit metadata."""
    changed = []
    for attr in inspect(target).mapper.column_attrs:
        if attr.key in AUDIT_FIELDS:
            continue
        if get_history(target, attr.key).has_changes():
            changed.append(attr.key)
    return changed


def _block(entity_type: str, target, operation: str, reason: str, **extra) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            **extra,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


# DepreciationYear


def _check_depreciation_year_update(mapper, connection, target):
    if _recompute_allowed(target):
        return
    changed = _changed_fields(target)
    if not changed:
        return
    _block(
        "DepreciationYear",
        target,
        "UPDATE",
        "Depreciation history is append-only; use recompute_amortization",
        fields=changed,
    )


def _check_depreciation_year_delete(mapper, connection, target):
    if _recompute_allowed(target):
        return
    _block(
        "DepreciationYear",
        target,
        "DELETE",
        "Depreciation history cannot be deleted",
    )


# AssetValuation


def _check_asset_valuation_update(mapper, connection, target):
    changed = [
        f for f in ASSET_VALUATION_FROZEN_FIELDS
        if get_history(target, f).has_changes()
    ]
    if not changed:
        return
    _block(
        "AssetValuation",
        target,
        "UPDATE",
        "Recorded valuations cannot change their values",
        fields=changed,
    )


def _check_asset_valuation_delete(mapper, connection, target):
    _block(
        "AssetValuation",
        target,
        "DELETE",
        "Recorded valuations cannot be deleted",
    )


# CalculationResult


def _check_calculation_result_update(mapper, connection, target):
    changed = _changed_fields(target)
    if not changed:
        return
    _block(
        "CalculationResult",
        target,
        "UPDATE",
        "Calculation results are immutable",
        fields=changed,
    )


def _check_calculation_result_delete(mapper, connection, target):
    _block(
        "CalculationResult",
        target,
        "DELETE",
        "Calculation results cannot be deleted",
    )


# CalculationRun


def _was_terminal(target) -> bool:
    status_history = get_history(target, "status")
    if status_history.deleted:
        return status_history.deleted[0] in _TERMINAL_RUN_STATUSES
    return target.status in _TERMINAL_RUN_STATUSES


def _check_calculation_run_update(mapper, connection, target):
    if not _was_terminal(target):
        return
    changed = _changed_fields(target)
    if not changed:
        return
    _block(
        "CalculationRun",
        target,
        "UPDATE",
        "Finished calculation runs cannot be modified",
        fields=changed,
    )


def _check_calculation_run_delete(mapper, connection, target):
    if not _was_terminal(target):
        return
    _block(
        "CalculationRun",
        target,
        "DELETE",
        "Finished calculation runs cannot be deleted",
    )


def _listener_table():
    from assettax_kernel.models import (
        AssetValuation,
        CalculationResult,
        CalculationRun,
        DepreciationYear,
    )

    return (
        (DepreciationYear, "before_update", _check_depreciation_year_update),
        (DepreciationYear, "before_delete", _check_depreciation_year_delete),
        (AssetValuation, "before_update", _check_asset_valuation_update),
        (AssetValuation, "before_delete", _check_asset_valuation_delete),
        (CalculationResult, "before_update", _check_calculation_result_update),
        (CalculationResult, "before_delete", _check_calculation_result_delete),
        (CalculationRun, "before_update", _check_calculation_run_update),
        (CalculationRun, "before_delete", _check_calculation_run_delete),
    )


def register_immutability_listeners():
    """
    Register all append-only event listeners.

    Call after the models are importable and before any database work.
    Registering twice is a no-op.
    """
    for model, event_name, fn in _listener_table():
        if not event.contains(model, event_name, fn):
            event.listen(model, event_name, fn)
    logger.debug("immutability_listeners_registered")


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove append-only event listeners.

    WARNING: Only use this in tests that must violate the rules on purpose.
    """
    for model, event_name, fn in _listener_table():
        _safe_remove_listener(model, event_name, fn)
