from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import ClassVar, Iterable

from src.config.logger_config import logger
from src.health.application.ports import FailureLedgerPort
from src.health.domain.models import FailureRecord


class SQLiteFailureLedger(FailureLedgerPort):
    """Consecutive failure counters per domain, scoped by run epoch.

    Every mutation runs in its own transaction behind a lock so the ledger is
    consistent whenever a run is interrupted.
    """

    RECOVERY_SUFFIX: ClassVar[str] = ".corrupt"

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        try:
            self._ensure_schema()
        except Exception:
            self._conn.close()
            raise

    @classmethod
    def create_with_recovery(cls, db_path: str | Path) -> tuple[SQLiteFailureLedger, bool, str | None]:
        try:
            return cls(db_path), False, None
        except sqlite3.DatabaseError:
            original = Path(db_path)
            if not original.exists():
                raise
            backup = original.with_suffix(
                f"{original.suffix}{cls.RECOVERY_SUFFIX}.{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S')}"
            )
            original.replace(backup)
            logger.warning("Failure ledger {} was corrupted, moved to {} and started fresh", str(original), str(backup))
            return cls(db_path), True, str(backup)

    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS domains (
                url TEXT PRIMARY KEY,
                fails INTEGER NOT NULL DEFAULT 0,
                epoch INTEGER NOT NULL
            )
            """
        )
        self._conn.commit()

    def record_failure(self, domain: str, epoch: int) -> None:
        with self._lock:
            cur = self._conn.cursor()
            try:
                cur.execute("BEGIN IMMEDIATE")
                cur.execute("SELECT fails, epoch FROM domains WHERE url = ?", (domain,))
                row = cur.fetchone()
                if row is not None and int(row[1]) == epoch:
                    # Already counted in this run.
                    self._conn.commit()
                    return
                fails = int(row[0]) + 1 if row is not None else 1
                cur.execute(
                    """
                    INSERT INTO domains (url, fails, epoch) VALUES (?, ?, ?)
                    ON CONFLICT(url) DO UPDATE SET
                        fails = excluded.fails,
                        epoch = excluded.epoch
                    """,
                    (domain, fails, epoch),
                )
                self._conn.commit()
            except sqlite3.Error:
                self._conn.rollback()
                raise
        logger.debug("Recorded failure: domain={}, fails={}, epoch={}", domain, fails, epoch)

    def domains_at_or_above(self, threshold: int) -> list[str]:
        with self._lock:
            cur = self._conn.cursor()
            cur.execute("SELECT url FROM domains WHERE fails >= ?", (threshold,))
            return [str(row[0]) for row in cur.fetchall()]

    def prune_stale(self, epoch: int) -> int:
        with self._lock:
            cur = self._conn.cursor()
            try:
                cur.execute("DELETE FROM domains WHERE epoch != ?", (epoch,))
                deleted = cur.rowcount
                self._conn.commit()
            except sqlite3.Error:
                self._conn.rollback()
                raise
        return deleted

    def delete(self, domains: Iterable[str]) -> int:
        urls = [(domain,) for domain in domains]
        if not urls:
            return 0
        with self._lock:
            cur = self._conn.cursor()
            try:
                cur.execute("BEGIN IMMEDIATE")
                cur.executemany("DELETE FROM domains WHERE url = ?", urls)
                deleted = cur.rowcount
                self._conn.commit()
            except sqlite3.Error:
                self._conn.rollback()
                raise
        logger.info("Deleted {} removed domains from the failure ledger", deleted)
        return deleted

    def get(self, domain: str) -> FailureRecord | None:
        with self._lock:
            cur = self._conn.cursor()
            cur.execute("SELECT url, fails, epoch FROM domains WHERE url = ?", (domain,))
            row = cur.fetchone()
        if not row:
            return None
        return FailureRecord(url=str(row[0]), fails=int(row[1]), epoch=int(row[2]))

    def all_records(self) -> list[FailureRecord]:
        with self._lock:
            cur = self._conn.cursor()
            cur.execute("SELECT url, fails, epoch FROM domains ORDER BY url")
            rows = cur.fetchall()
        return [FailureRecord(url=str(row[0]), fails=int(row[1]), epoch=int(row[2])) for row in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()
