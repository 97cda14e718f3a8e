"""Tests for the explicit Database handle."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import sqlite3
import pytest
from sqlalchemy import inspect, text
from app.database import Database
from app.services.event_service import EventService, coerce_event_fields


def make_fields():
    return {
        "name": "Sui Summit", "venue": "Expo", "date": "1900000000000",
        "organizer": "0x" + "b" * 64, "total_seats": "10", "available_seats": "10",
        "price_per_seat": "1", "is_active": True,
    }


class TestDatabase:
    def test_session_requires_open(self, tmp_path):
        database = Database(f"sqlite:///{tmp_path / 'closed.db'}")
        with pytest.raises(RuntimeError):
            database.session()

    def test_wal_mode_enabled(self, database):
        with database.engine.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"

    def test_tables_and_indexes_created(self, database):
        inspector = inspect(database.engine)
        assert {"events", "event_transactions", "seat_reservations"} <= set(inspector.get_table_names())
        index_names = {ix["name"] for ix in inspector.get_indexes("events")}
        assert {"idx_events_date", "idx_events_organizer", "idx_events_active", "idx_events_name"} <= index_names

    def test_create_tables_is_repeatable(self, database):
        database.create_tables()

    def test_stats_and_backup(self, database, tmp_path):
        db = database.session()
        try:
            EventService(db, None).upsert_event(coerce_event_fields("0x" + "a" * 64, make_fields()))
        finally:
            db.close()

        assert database.stats()["events"] == 1

        path = database.backup(str(tmp_path / "backups" / "copy.db"))
        conn = sqlite3.connect(path)
        try:
            assert conn.execute("SELECT COUNT(*) FROM events").fetchone()[0] == 1
        finally:
            conn.close()

    def test_optimize(self, database):
        database.optimize()

    def test_close_is_idempotent(self, database):
        database.close()
        database.close()
        assert database.engine is None
