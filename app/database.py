# app/database.py
"""
Database handle, session management, and table creation.
Uses SQLAlchemy over an embedded SQLite file in WAL mode.

The Database object is constructed and opened explicitly at startup and
stored on app.state; request handlers get a session through get_db().
"""

import os
import sqlite3
import time
from datetime import datetime

from fastapi import Request
from sqlalchemy import create_engine, event, func, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.utils.logger import get_logger

logger = get_logger(__name__)

Base = declarative_base()

SLOW_QUERY_MS = 100


def _set_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode = WAL")
    cursor.execute("PRAGMA synchronous = NORMAL")
    cursor.execute("PRAGMA cache_size = 10000")
    cursor.execute("PRAGMA temp_store = MEMORY")
    cursor.close()


def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    conn.info.setdefault("query_start", []).append(time.perf_counter())


def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    started = conn.info["query_start"].pop()
    duration = (time.perf_counter() - started) * 1000
    if duration > SLOW_QUERY_MS:
        logger.warning(f"Slow query ({duration:.1f}ms): {statement[:100]}")


class Database:
    """Explicitly opened/closed handle around one SQLite engine."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self.engine: Engine | None = None
        self.SessionLocal = None

    def open(self) -> "Database":
        if self.engine is not None:
            return self
        self.engine = create_engine(
            self.url,
            connect_args={"check_same_thread": False},
            echo=self.echo,
        )
        event.listen(self.engine, "connect", _set_sqlite_pragmas)
        event.listen(self.engine, "before_cursor_execute", _before_cursor_execute)
        event.listen(self.engine, "after_cursor_execute", _after_cursor_execute)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        logger.info(f"🗄️  Database opened: {self.url}")
        return self

    def close(self):
        if self.engine is None:
            return
        self.engine.dispose()
        self.engine = None
        self.SessionLocal = None
        logger.info("Database connection closed")

    def session(self):
        if self.SessionLocal is None:
            raise RuntimeError("Database is not open")
        return self.SessionLocal()

    @property
    def path(self) -> str | None:
        return self.engine.url.database if self.engine is not None else None

    def create_tables(self):
        """
        Creates all tables and indexes. Safe to call multiple times.
        Import all models here so SQLAlchemy knows about them.
        """
        from app.models.event import Event                          # noqa
        from app.models.event_transaction import EventTransaction   # noqa
        from app.models.seat_reservation import SeatReservation     # noqa

        Base.metadata.create_all(bind=self.engine)

    def stats(self) -> dict:
        """Row counts per table plus on-disk size in MB."""
        from app.models.event import Event
        from app.models.event_transaction import EventTransaction
        from app.models.seat_reservation import SeatReservation

        db = self.session()
        try:
            result = {
                "events": db.query(func.count(Event.id)).scalar(),
                "transactions": db.query(func.count(EventTransaction.id)).scalar(),
                "reservations": db.query(func.count(SeatReservation.id)).scalar(),
                "size_mb": 0.0,
                "path": self.path,
            }
        finally:
            db.close()

        if self.path and os.path.exists(self.path):
            result["size_mb"] = round(os.path.getsize(self.path) / 1024 / 1024, 2)
        return result

    def backup(self, backup_path: str | None = None, backup_dir: str = "backups") -> str:
        """Online copy of the live database file using SQLite's backup API."""
        if backup_path is None:
            stamp = datetime.utcnow().strftime("%Y%m%dT%H%M%S")
            backup_path = os.path.join(backup_dir, f"suistage_{stamp}.db")
        os.makedirs(os.path.dirname(backup_path) or ".", exist_ok=True)

        raw = self.engine.raw_connection()
        target = sqlite3.connect(backup_path)
        try:
            raw.driver_connection.backup(target)
        finally:
            target.close()
            raw.close()
        logger.info(f"💾 Database backed up to {backup_path}")
        return backup_path

    def optimize(self):
        """ANALYZE + VACUUM + REINDEX. VACUUM cannot run inside a transaction."""
        logger.info("🔧 Optimizing database...")
        with self.engine.connect().execution_options(isolation_level="AUTOCOMMIT") as conn:
            conn.execute(text("ANALYZE"))
            conn.execute(text("VACUUM"))
            conn.execute(text("REINDEX"))
        logger.info("✅ Database optimized")


def get_db(request: Request):
    """FastAPI dependency — yields a DB session and closes it after request."""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
