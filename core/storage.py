# core/storage.py
import datetime
import json
import os
import sqlite3
from typing import Iterable, Set

import pytz

from .logger import get_logger
from .models import ItemId, Slot

logger = get_logger(__name__)

DB_PATH = os.getenv("DB_PATH", "/data/storefront_state.sqlite3")


def now_utc_iso() -> str:
    return datetime.datetime.now(tz=pytz.UTC).isoformat()


def _slot_name(slot) -> str:
    return slot.value if isinstance(slot, Slot) else str(slot)


class SetStore:
    """
    Durable item-id sets keyed by slot name ("cart", "wishlist").

    Every failure is logged and absorbed: load() falls back to an empty set
    and save() becomes a no-op.
    """

    def __init__(self, db_path: str = DB_PATH):
        self.db_path = db_path
        self._ready = False

    def _connect(self):
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        return sqlite3.connect(self.db_path)

    def ensure_db(self):
        if self._ready:
            return
        with self._connect() as con:
            cur = con.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS slots (
                    slot TEXT PRIMARY KEY,
                    item_ids TEXT,
                    updated_at TEXT
                )
            """
            )
            con.commit()
        self._ready = True

    def load(self, slot) -> Set[ItemId]:
        name = _slot_name(slot)
        try:
            self.ensure_db()
            with self._connect() as con:
                cur = con.cursor()
                cur.execute("SELECT item_ids FROM slots WHERE slot=?", (name,))
                row = cur.fetchone()
        except (sqlite3.Error, OSError) as e:
            logger.warning("Failed to read slot '%s' from %s: %s", name, self.db_path, e)
            return set()

        if not row or row[0] is None:
            return set()

        try:
            data = json.loads(row[0])
        except (TypeError, ValueError):
            logger.warning("Stored value for slot '%s' is not valid JSON; using empty set.", name)
            return set()

        if not isinstance(data, list):
            logger.warning(
                "Stored value for slot '%s' is %s, not an array; using empty set.",
                name, type(data).__name__,
            )
            return set()

        return {x for x in data if isinstance(x, str)}

    def save(self, slot, item_ids: Iterable[ItemId]) -> None:
        name = _slot_name(slot)
        try:
            payload = json.dumps(sorted(item_ids))
        except (TypeError, ValueError) as e:
            logger.error("Cannot serialize slot '%s': %s", name, e)
            return

        try:
            self.ensure_db()
            # Single statement, single transaction: readers see old or new, never partial
            with self._connect() as con:
                cur = con.cursor()
                cur.execute(
                    """
                    INSERT INTO slots (slot, item_ids, updated_at)
                    VALUES (?,?,?)
                    ON CONFLICT(slot) DO UPDATE SET
                        item_ids=excluded.item_ids,
                        updated_at=excluded.updated_at
                """,
                    (name, payload, now_utc_iso()),
                )
                con.commit()
        except (sqlite3.Error, OSError) as e:
            logger.error("Failed to persist slot '%s' to %s: %s", name, self.db_path, e)
            return

        logger.debug("Persisted slot '%s' (%s).", name, payload)

    def clear(self, slot) -> None:
        name = _slot_name(slot)
        try:
            self.ensure_db()
            with self._connect() as con:
                con.execute("DELETE FROM slots WHERE slot=?", (name,))
                con.commit()
        except (sqlite3.Error, OSError) as e:
            logger.error("Failed to clear slot '%s': %s", name, e)
            return
        logger.info("Cleared persisted slot '%s'.", name)
