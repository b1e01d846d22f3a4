"""
Module: stock_kernel.db.engine
Responsibility: SQLAlchemy engine construction, session factory management,
    and the transactional unit-of-work scope.  This is the single point of
    database connection configuration for the entire system.
Architecture position: Kernel > DB.  May import from db/base.py and
    stock_kernel.exceptions.  MUST NOT import from services/, selectors/,
    domain/, or outer layers (create_tables imports models lazily).

Invariants enforced:
    - Explicit lifetime: a DatabaseHandle is constructed at process start,
      injected into whatever needs it, and disposed at shutdown.  There is no
      module-level engine.
    - PostgreSQL sessions run at READ COMMITTED with explicit row-level
      locking (SELECT ... FOR UPDATE) wherever a lost update is possible.
    - session_scope() is all-or-nothing: commit on normal exit, rollback on
      any exception.

Failure modes:
    - StoreError wrapping any SQLAlchemyError raised inside session_scope()
      (lock timeout, deadlock, lost connection, constraint violation).
    - Connection pool exhaustion if pool_size + max_overflow is exceeded
      (surfaces as StoreError after pool_timeout seconds).
"""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from stock_kernel.exceptions import StoreError
from stock_kernel.logging_config import get_logger

logger = get_logger("db.engine")


class DatabaseHandle:
    """
    Owns one SQLAlchemy engine and its session factory.

    Contract:
        Construct with ``from_url`` (or directly from an Engine), pass the
        handle to InventoryEngine, call ``dispose()`` at shutdown.
    Guarantees:
        - ``session_scope()`` yields a session whose work is committed
          atomically or rolled back entirely.
        - Store failures surface as StoreError, never as raw driver errors.
    Non-goals:
        - Does not retry failed transactions; stock operations are not
          idempotent, so retries are the caller's decision.
    """

    def __init__(self, engine: Engine):
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_url(
        cls,
        database_url: str,
        echo: bool = False,
        pool_size: int = 15,
        max_overflow: int = 10,
        pool_pre_ping: bool = True,
        pool_timeout: int = 30,
        pool_recycle: int = 1800,
    ) -> "DatabaseHandle":
        """
        Build a handle from a database URL.

        PostgreSQL URLs get a tuned QueuePool and READ COMMITTED isolation.
        Other backends (SQLite for tests and local use) get SQLAlchemy's
        defaults, where FOR UPDATE is silently ignored.

        The pool_* and max_overflow arguments are passed straight to
        create_engine and only apply to PostgreSQL.  ``echo`` turns on
        SQLAlchemy statement logging for every backend.
        """
        url = make_url(database_url)
        dialect = url.get_backend_name()

        if dialect == "postgresql":
            pool_options = dict(
                pool_size=pool_size, max_overflow=max_overflow,
                pool_pre_ping=pool_pre_ping, pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
            )
            engine = create_engine(
                url, echo=echo, isolation_level="READ COMMITTED", **pool_options,
            )
        else:
            engine = create_engine(url, echo=echo)

        logger.info(
            "engine_initialized",
            extra={
                "dialect": dialect,
                "pool_size": pool_size if dialect == "postgresql" else None,
                "max_overflow": max_overflow if dialect == "postgresql" else None,
                "echo": echo,
            },
        )
        return cls(engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    def new_session(self) -> Session:
        """Get a new session; the caller owns commit/rollback/close."""
        return self._session_factory()

    @contextmanager
    def session_scope(self, operation: str = "transaction") -> Generator[Session, None, None]:
        """
        One unit of work: commit when the block exits cleanly, roll back
        otherwise, always close.

        Domain errors pass through untouched.  Any SQLAlchemyError comes out
        as StoreError(operation) chained to the driver error.

            with handle.session_scope("checkout") as session:
                store = InventoryStore(session)
        """
        session = self.new_session()
        logger.debug("transaction_started", extra={"operation": operation})
        try:
            yield session
            session.commit()
            logger.debug("transaction_committed", extra={"operation": operation})
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error(
                "transaction_failed",
                extra={"operation": operation, "error_type": type(exc).__name__},
                exc_info=True,
            )
            raise StoreError(operation, detail=str(exc)) from exc
        except Exception:
            session.rollback()
            logger.warning(
                "transaction_rolled_back",
                extra={"operation": operation},
                exc_info=True,
            )
            raise
        finally:
            session.close()

    def create_tables(self) -> None:
        """
        Create products and product_logs if missing.
        """
        from stock_kernel.db.base import Base
        import stock_kernel.models  # noqa: F401  (registers the tables)

        Base.metadata.create_all(self._engine)
        logger.info("tables_created", extra={"tables": sorted(Base.metadata.tables)})

    def drop_tables(self) -> None:
        """Drop products and product_logs (test teardown)."""
        from stock_kernel.db.base import Base
        import stock_kernel.models  # noqa: F401

        Base.metadata.drop_all(self._engine)

    def dispose(self) -> None:
        """Release all pooled connections."""
        self._engine.dispose()
        logger.info("engine_disposed")
