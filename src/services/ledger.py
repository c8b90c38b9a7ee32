"""
Ledger - player statistics store

Implementations:
- InMemoryLedger: Dict-backed, lost on exit (default, tests)
- SqliteLedger: aiosqlite-backed PlayerStats table
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

import aiosqlite

from .player_stats import PlayerStats

logger = logging.getLogger(__name__)


class Ledger(ABC):
    """Abstract player statistics store keyed by player name"""

    async def initialize(self) -> None:  # noqa: B027
        """Open connections / create schema. Optional."""

    async def close(self) -> None:  # noqa: B027
        """Release resources. Optional."""

    @abstractmethod
    async def get(self, name: str) -> PlayerStats | None:
        """Stats for a player, or None if never seen"""
        pass

    @abstractmethod
    async def upsert(self, name: str, stats: PlayerStats) -> None:
        """Create or replace a player's stats"""
        pass

    @abstractmethod
    async def remove(self, name: str) -> None:
        pass

    async def get_many(self, names: list[str]) -> dict[str, PlayerStats]:
        """Stats for every known name in the list"""
        result = {}
        for name in names:
            stats = await self.get(name)
            if stats is not None:
                result[name] = stats
        return result


class InMemoryLedger(Ledger):
    """Dict-backed ledger"""

    def __init__(self):
        self._players: dict[str, PlayerStats] = {}

    async def get(self, name: str) -> PlayerStats | None:
        return self._players.get(name)

    async def upsert(self, name: str, stats: PlayerStats) -> None:
        self._players[name] = stats

    async def remove(self, name: str) -> None:
        self._players.pop(name, None)

    def __len__(self) -> int:
        return len(self._players)


class SqliteLedger(Ledger):
    """
    SQLite ledger.

    Table:
    - PlayerStats: one row per player name
    """

    def __init__(self, db_path: str):
        """
        Initialize storage.

        Args:
            db_path: Path to SQLite database file (":memory:" for a private in-memory DB)
        """
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async def initialize(self) -> None:
        """Initialize database connection and create tables."""
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row

        await self._db.executescript("""
            CREATE TABLE IF NOT EXISTS PlayerStats (
                name TEXT PRIMARY KEY,
                total_hands INTEGER NOT NULL DEFAULT 0,
                walks INTEGER NOT NULL DEFAULT 0,
                vpip_hands INTEGER NOT NULL DEFAULT 0,
                pfr_hands INTEGER NOT NULL DEFAULT 0,
                last_seen TEXT
            );
        """)
        await self._db.commit()
        logger.info(f"Ledger initialized: {self._db_path}")

    async def close(self) -> None:
        """Close database connection."""
        if self._db:
            await self._db.close()
            self._db = None

    def _require_db(self) -> aiosqlite.Connection:
        if not self._db:
            raise RuntimeError("Database not initialized")
        return self._db

    async def get(self, name: str) -> PlayerStats | None:
        db = self._require_db()
        async with db.execute(
            """
            SELECT name, total_hands, walks, vpip_hands, pfr_hands, last_seen
            FROM PlayerStats
            WHERE name = ?
            """,
            (name,),
        ) as cursor:
            row = await cursor.fetchone()

        if row is None:
            return None
        return PlayerStats(
            name=row["name"],
            total_hands=row["total_hands"],
            walks=row["walks"],
            vpip_hands=row["vpip_hands"],
            pfr_hands=row["pfr_hands"],
            last_seen=row["last_seen"],
        )

    async def upsert(self, name: str, stats: PlayerStats) -> None:
        db = self._require_db()
        await db.execute(
            """
            INSERT OR REPLACE INTO PlayerStats
            (name, total_hands, walks, vpip_hands, pfr_hands, last_seen)
            VALUES (?, ?, ?, ?, ?, COALESCE(?, datetime('now')))
            """,
            (
                name,
                stats.total_hands,
                stats.walks,
                stats.vpip_hands,
                stats.pfr_hands,
                stats.last_seen,
            ),
        )
        await db.commit()

    async def remove(self, name: str) -> None:
        db = self._require_db()
        await db.execute("DELETE FROM PlayerStats WHERE name = ?", (name,))
        await db.commit()
