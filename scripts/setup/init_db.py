# scripts/setup/init_db.py
"""
Initialize database — creates all tables and indexes.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.database import Database
from app.config import settings
from sqlalchemy import text


def main():
    print("🗄️  SuiStage DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    database = Database(settings.DATABASE_URL)
    try:
        database.open()
        with database.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            mode = conn.execute(text("PRAGMA journal_mode")).scalar()
        print(f"✅ Database connection OK (journal_mode={mode})")
    except Exception as e:
        print(f"❌ Cannot open database: {e}")
        print("\nCheck that DATABASE_URL points at a writable location.")
        sys.exit(1)

    print("\n📋 Creating tables...")
    database.create_tables()
    print("✅ All tables created")

    with database.engine.connect() as conn:
        result = conn.execute(text(
            "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        ))
        tables = [row[0] for row in result]

    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    stats = database.stats()
    print(f"\n   events={stats['events']} transactions={stats['transactions']} "
          f"reservations={stats['reservations']} size={stats['size_mb']} MB")
    database.close()

    print("\n🎉 Database ready! You can now start the backend:")
    print(f"   uvicorn app.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT} --reload")


if __name__ == "__main__":
    main()
