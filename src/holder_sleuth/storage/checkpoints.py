"""Append-only record of processed ingestion windows."""

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import insert, select
from sqlalchemy.engine import Connection

from holder_sleuth.core.exceptions import PersistenceError
from .database import Database, checkpoints_table

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Checkpoint:
    timestamp: int
    block_number: int
    end_block: Optional[int] = None


def _to_checkpoint(row) -> Checkpoint:
    return Checkpoint(
        timestamp=int(row.timestamp),
        block_number=int(row.block_number),
        end_block=int(row.end_block) if row.end_block is not None else None,
    )


class CheckpointStore:
    """Reads the resume point and records one row per completed window."""

    def __init__(self, database: Database):
        self.database = database

    def latest(self, conn: Optional[Connection] = None) -> Optional[Checkpoint]:
        """Return the most recent checkpoint, or None if nothing was processed yet."""
        query = (
            select(checkpoints_table)
            .order_by(checkpoints_table.c.timestamp.desc(), checkpoints_table.c.id.desc())
            .limit(1)
        )
        with self.database.transaction(conn) as conn:
            row = conn.execute(query).first()
        return _to_checkpoint(row) if row is not None else None

    def record(self, checkpoint: Checkpoint, conn: Optional[Connection] = None) -> Checkpoint:
        """Append ``checkpoint``. Timestamps never go backwards."""
        with self.database.transaction(conn) as conn:
            previous = self.latest(conn)
            if previous is not None and checkpoint.timestamp < previous.timestamp:
                raise PersistenceError(
                    f"Checkpoint {checkpoint.timestamp} is older than {previous.timestamp}"
                )
            conn.execute(
                insert(checkpoints_table).values(
                    timestamp=checkpoint.timestamp,
                    block_number=checkpoint.block_number,
                    end_block=checkpoint.end_block,
                )
            )
        logger.info(
            f"Checkpoint recorded: timestamp={checkpoint.timestamp} block={checkpoint.block_number}"
        )
        return checkpoint

    def all(self, conn: Optional[Connection] = None) -> List[Checkpoint]:
        query = select(checkpoints_table).order_by(
            checkpoints_table.c.timestamp, checkpoints_table.c.id
        )
        with self.database.transaction(conn) as conn:
            return [_to_checkpoint(row) for row in conn.execute(query)]
