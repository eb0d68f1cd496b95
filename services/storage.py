from __future__ import annotations

import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from urllib.parse import urlparse

from config import settings
from models import Subscriber, Watch
from services.errors import StoreError, SubscriberNotFoundError

logger = logging.getLogger(__name__)


def _parse_timestamp(value: str | None) -> datetime | None:
    try:
        return datetime.fromisoformat(value) if value else None
    except ValueError:
        return None


def _row_to_watch(row: tuple) -> Watch:
    return Watch(
        id=row[0],
        subscriber_id=row[1],
        url=row[2],
        target_price=row[3],
        active=bool(row[4]),
        created_at=_parse_timestamp(row[5]),
    )


def validate_watch_url(url: str) -> str:
    normalized_url = (url or "").strip()
    parsed = urlparse(normalized_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("URL must start with http:// or https://")
    return normalized_url


def validate_target_price(target_price: int) -> int:
    if isinstance(target_price, bool) or not isinstance(target_price, int):
        raise ValueError("Target price must be an integer")
    if target_price < 0:
        raise ValueError("Target price cannot be negative")
    return target_price


def validate_email(email: str) -> str:
    normalized = (email or "").strip()
    local, _, domain = normalized.partition("@")
    if not local or not domain or " " in normalized:
        raise ValueError("A valid email address is required")
    return normalized


class WatchRepository:
    """sqlite-backed store for subscribers and their price watches.

    Every public method runs a single statement (or a single read followed by
    a single write) on its own connection, so callers on the scan loop and on
    the request handlers never share a transaction.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = db_path or settings.DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=5, check_same_thread=False)

    def _initialize(self) -> None:
        with self._connect() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS subscribers (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT NOT NULL UNIQUE,
                    created_at TEXT NOT NULL
                )
                """
            )
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS watches (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    subscriber_id INTEGER NOT NULL REFERENCES subscribers(id),
                    url TEXT NOT NULL,
                    target_price INTEGER NOT NULL CHECK (target_price >= 0),
                    is_active INTEGER NOT NULL DEFAULT 1,
                    created_at TEXT NOT NULL
                )
                """
            )
            connection.execute(
                "CREATE INDEX IF NOT EXISTS idx_watches_active ON watches(is_active)"
            )

    def get_subscriber_by_email(self, email: str) -> Subscriber | None:
        try:
            with self._connect() as connection:
                row = connection.execute(
                    "SELECT id, email, created_at FROM subscribers WHERE email = ?",
                    (email,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to look up subscriber {email}: {exc}") from exc
        if row is None:
            return None
        return Subscriber(id=row[0], email=row[1], created_at=_parse_timestamp(row[2]))

    def get_or_create_subscriber(self, email: str) -> Subscriber:
        normalized = validate_email(email)
        existing = self.get_subscriber_by_email(normalized)
        if existing is not None:
            return existing

        timestamp = datetime.now(UTC)
        try:
            with self._connect() as connection:
                cursor = connection.execute(
                    "INSERT OR IGNORE INTO subscribers (email, created_at) VALUES (?, ?)",
                    (normalized, timestamp.isoformat()),
                )
                connection.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to create subscriber {normalized}: {exc}") from exc

        if cursor.rowcount == 0:
            # inserted concurrently by another request
            subscriber = self.get_subscriber_by_email(normalized)
            if subscriber is None:
                raise StoreError(f"Subscriber {normalized} vanished after insert")
            return subscriber

        logger.info("Created subscriber %s (%s)", cursor.lastrowid, normalized)
        return Subscriber(id=cursor.lastrowid, email=normalized, created_at=timestamp)

    def get_subscriber_address(self, subscriber_id: int) -> str:
        try:
            with self._connect() as connection:
                row = connection.execute(
                    "SELECT email FROM subscribers WHERE id = ?",
                    (subscriber_id,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to read subscriber {subscriber_id}: {exc}") from exc
        if row is None:
            raise SubscriberNotFoundError(subscriber_id)
        return row[0]

    def add_watch(self, subscriber_id: int, normalized_url: str, target_price: int) -> Watch:
        """Insert an active watch. Inputs are expected to be validated already."""
        timestamp = datetime.now(UTC)
        try:
            with self._connect() as connection:
                cursor = connection.execute(
                    """
                    INSERT INTO watches (subscriber_id, url, target_price, is_active, created_at)
                    VALUES (?, ?, ?, 1, ?)
                    """,
                    (subscriber_id, normalized_url, target_price, timestamp.isoformat()),
                )
                connection.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to create watch for {normalized_url}: {exc}") from exc

        return Watch(
            id=cursor.lastrowid,
            subscriber_id=subscriber_id,
            url=normalized_url,
            target_price=target_price,
            active=True,
            created_at=timestamp,
        )

    def register_watch(self, email: str, url: str, target_price: int) -> Watch:
        """Look up or create the subscriber, then store a new active watch."""
        normalized_url = validate_watch_url(url)
        validate_target_price(target_price)
        subscriber = self.get_or_create_subscriber(email)
        watch = self.add_watch(subscriber.id, normalized_url, target_price)
        logger.info(
            "Registered watch %s for subscriber %s: %s at or below %s",
            watch.id,
            subscriber.id,
            watch.url,
            watch.target_price,
        )
        return watch

    def get_watch(self, watch_id: int) -> Watch:
        try:
            with self._connect() as connection:
                row = connection.execute(
                    """
                    SELECT id, subscriber_id, url, target_price, is_active, created_at
                    FROM watches WHERE id = ?
                    """,
                    (watch_id,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to read watch {watch_id}: {exc}") from exc
        if row is None:
            raise ValueError(f"Watch {watch_id} not found")
        return _row_to_watch(row)

    def list_watches(self, active_only: bool = False) -> list[Watch]:
        query = "SELECT id, subscriber_id, url, target_price, is_active, created_at FROM watches"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY id ASC"
        try:
            with self._connect() as connection:
                rows = connection.execute(query).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to list watches: {exc}") from exc
        return [_row_to_watch(row) for row in rows]

    def list_active_watches(self) -> list[Watch]:
        return self.list_watches(active_only=True)

    def set_watch_inactive(self, watch_id: int) -> bool:
        """Retire a watch. Returns False if it was already inactive."""
        try:
            with self._connect() as connection:
                cursor = connection.execute(
                    "UPDATE watches SET is_active = 0 WHERE id = ? AND is_active = 1",
                    (watch_id,),
                )
                connection.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to deactivate watch {watch_id}: {exc}") from exc

        if cursor.rowcount == 0:
            # distinguish an unknown id from one that was already retired
            try:
                self.get_watch(watch_id)
            except ValueError as exc:
                raise StoreError(f"Cannot deactivate unknown watch {watch_id}") from exc
            return False
        logger.info("Deactivated watch %s", watch_id)
        return True


__all__ = [
    "WatchRepository",
    "validate_email",
    "validate_target_price",
    "validate_watch_url",
]
