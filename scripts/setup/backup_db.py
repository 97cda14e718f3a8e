# scripts/setup/backup_db.py
"""
Online backup of the SQLite cache, safe while the backend is running.
Usage: python scripts/setup/backup_db.py
       python scripts/setup/backup_db.py --output /tmp/suistage.db
       python scripts/setup/backup_db.py --optimize
"""

import sys
import os
import argparse
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.database import Database
from app.config import settings


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--output", help="Backup file path (default: BACKUP_DIR/suistage_<timestamp>.db)")
    parser.add_argument("--optimize", action="store_true", help="Run ANALYZE/VACUUM/REINDEX after backup")
    args = parser.parse_args()

    database = Database(settings.DATABASE_URL).open()
    try:
        path = database.backup(args.output, backup_dir=settings.BACKUP_DIR)
        print(f"💾 Backup written to {path}")
        if args.optimize:
            database.optimize()
            print("🔧 Database optimized")
    except Exception as e:
        print(f"❌ Backup failed: {e}")
        sys.exit(1)
    finally:
        database.close()


if __name__ == "__main__":
    main()
