"""Cumulative per-address token balances."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Connection

from holder_sleuth.decoder.utils import normalize_address
from .database import Database, holders_table

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Holder:
    address: str
    balance: int


class BalanceStore:
    """Upserts holder balances.

    Deltas are added to the stored balance (absent addresses start at zero),
    so the stored value is always cumulative across windows.
    """

    def __init__(self, database: Database):
        self.database = database

    def get(self, address: str, conn: Optional[Connection] = None) -> Optional[Holder]:
        address = normalize_address(address)
        query = select(holders_table.c.balance).where(holders_table.c.address == address)
        with self.database.transaction(conn) as conn:
            balance = conn.execute(query).scalar()
        return Holder(address, int(balance)) if balance is not None else None

    def upsert(self, address: str, balance: int, conn: Optional[Connection] = None) -> Holder:
        """Store ``balance`` as the absolute balance of ``address``."""
        address = normalize_address(address)
        with self.database.transaction(conn) as conn:
            result = conn.execute(
                update(holders_table)
                .where(holders_table.c.address == address)
                .values(balance=str(balance))
            )
            if result.rowcount == 0:
                conn.execute(
                    insert(holders_table).values(address=address, balance=str(balance))
                )
        return Holder(address, balance)

    def apply_deltas(
        self, deltas: Dict[str, int], conn: Optional[Connection] = None
    ) -> List[Holder]:
        """Add each delta to the stored balance and return the new holders."""
        holders = []
        with self.database.transaction(conn) as conn:
            for address, delta in deltas.items():
                current = self.get(address, conn)
                balance = (current.balance if current else 0) + delta
                holders.append(self.upsert(address, balance, conn))
        logger.info(f"Updated balances for {len(holders)} holders")
        return holders

    def all(self, conn: Optional[Connection] = None) -> List[Holder]:
        query = select(holders_table.c.address, holders_table.c.balance).order_by(
            holders_table.c.address
        )
        with self.database.transaction(conn) as conn:
            return [Holder(row.address, int(row.balance)) for row in conn.execute(query)]
