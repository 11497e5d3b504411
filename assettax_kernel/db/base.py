"""
Module: assettax_kernel.db.base
Responsibility: Declarative base classes for every SQLAlchemy model in the
    asset tax kernel.  Fixes the UUID key convention, the column type map
    and the TrackedBase audit mixin.
Architecture position: Kernel > DB.  Lowest import target in the kernel;
    MUST NOT import from models/, selectors/ or any outer package.

Invariants enforced:
    - Every row carries a uuid4 primary key.
    - Decimal maps to Numeric(38, 9).  Book values, assessed values and tax
      amounts are never stored as float.
    - TrackedBase rows record who created and last touched them.

Failure modes:
    - IntegrityError on a duplicate primary key.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import JSON, Date, DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

# Storage scale of every monetary column.
MONEY_SCALE = 9


class UUIDString(TypeDecorator):
    """
    UUID stored as String(36) so the schema runs on PostgreSQL and SQLite alike.

    process_bind_param turns a UUID into its string form, process_result_value
    turns it back.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class Base(DeclarativeBase):
    """
    Declarative base for all asset tax models.

    Guarantees:
        - id is a uuid4 stored as String(36).
        - Decimal -> Numeric(38, 9), datetime -> timezone-aware DateTime.
        - dict -> JSON for breakdown and parameter payloads.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, MONEY_SCALE),
        datetime: DateTime(timezone=True),
        date: Date,
        PyUUID: UUIDString(),
        int: Integer,
        dict[str, Any]: JSON,
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


class TrackedBase(Base):
    """
    Abstract base with audit timestamps and actor tracking.

    created_at/updated_at and the actor columns are audit metadata, not
    financial data, so they may change even on append-only rows (see
    db/immutability.py).
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    created_by_id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    updated_by_id: Mapped[PyUUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )


# Re-export UUID for convenience
UUID = PyUUID
