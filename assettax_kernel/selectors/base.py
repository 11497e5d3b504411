"""
Module: assettax_kernel.selectors.base
Responsibility: Abstract base for read-only query selectors.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain/.  Selectors NEVER add, delete, flush or commit.

Invariants enforced:
    - Read-only access on a caller-owned Session.
    - History is returned as frozen domain DTOs; lookups by id or uniqueness
      tuple return the ORM row for the calling service to read.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from assettax_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Subclasses implement domain-specific queries against ``self.session``.
    """

    def __init__(self, session: Session):
        self.session = session
