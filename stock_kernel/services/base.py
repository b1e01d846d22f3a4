"""
BaseService -- abstract base for kernel services that write.

Responsibility:
    Provides the common constructor and session-handling contract for every
    writing service.  Services receive a SQLAlchemy ``Session`` and persist
    through ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's transaction
      and never commit or roll back themselves.  The unit of work
      (``DatabaseHandle.session_scope``) owns commit/rollback, so a receipt,
      a loan or a checkout batch is all-or-nothing.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.

    Non-goals:
        - Read-only reports belong in ``stock_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
