from typing import Iterator, Optional
from contextlib import contextmanager
import logging

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    func,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from holder_sleuth.config.settings import DatabaseSettings
from holder_sleuth.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)

metadata = MetaData()

checkpoints_table = Table(
    "checkpoints",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("timestamp", BigInteger, nullable=False, index=True),
    Column("block_number", BigInteger, nullable=False),
    Column("end_block", BigInteger, nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)

holders_table = Table(
    "holders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("address", String(42), nullable=False, unique=True),
    # Decimal string, balances can exceed any integer column
    Column("balance", String(100), nullable=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column(
        "updated_at",
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    ),
)


class Database:
    """SQLAlchemy-backed access to the checkpoint and holder tables."""

    def __init__(self, url: Optional[str] = None, engine: Optional[Engine] = None):
        """
        Initialize Database with a connection URL or a ready engine.

        Args:
            url: SQLAlchemy URL, defaults to the configured database
            engine: Existing engine, takes precedence over ``url``
        """
        self.url = url
        self._engine = engine

    @property
    def engine(self) -> Engine:
        """
        Get SQLAlchemy engine (cached).

        Returns:
            sqlalchemy.engine.Engine: SQLAlchemy engine
        """
        if self._engine is None:
            url = self.url or DatabaseSettings.from_env().get_connection_url()
            self._engine = create_engine(url)
        return self._engine

    def create_tables(self) -> None:
        """Create the checkpoint and holder tables if they do not exist."""
        try:
            metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not create tables: {e}") from e
        logger.info("Database tables are ready")

    @contextmanager
    def transaction(self, conn: Optional[Connection] = None) -> Iterator[Connection]:
        """
        Context manager for a database transaction.

        Reuses ``conn`` when given, so several store calls can share one
        transaction. Database errors are raised as PersistenceError.

        Example:
            with database.transaction() as conn:
                balances.apply_deltas(deltas, conn=conn)
                checkpoints.record(checkpoint, conn=conn)
        """
        if conn is not None:
            yield conn
            return

        try:
            with self.engine.begin() as conn:
                yield conn
        except SQLAlchemyError as e:
            logger.error(f"Database transaction failed: {e}")
            raise PersistenceError(f"Database transaction failed: {e}") from e

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
