"""
BaseService -- abstract base for every asset tax service.

Services receive a caller-owned ``Session`` and an ``actor_id``.  They
``flush()`` so that ids and constraints are checked immediately, and never
``commit()`` or ``rollback()``: the caller (``session_scope()``, a request
handler, a test) owns the transaction.  The one exception to "no rollback"
is the orchestrator's SAVEPOINT, which undoes only its own run's writes.
"""

from abc import ABC
from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from assettax_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for services.

    Non-goals:
        - Does NOT manage transaction lifecycle.
        - Does NOT provide read-only queries; those live in selectors.
    """

    def __init__(self, session: Session, actor_id: UUID):
        self.session = session
        self.actor_id = actor_id
