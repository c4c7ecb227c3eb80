"""
Initialize database — creates all tables and grows the slot pool.
Run once before first launch, or after raising SLOT_CAPACITY. Safe to re-run.
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from sqlalchemy import inspect, text
from app.database import SessionLocal, create_tables, engine
from app.config import settings
from app.services.parking_engine import parking_engine


def main():
    print("Parking DB Initialization")
    print("=" * 40)
    print(f"Database: {settings.DATABASE_URL}")

    # Test connection
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("Database connection OK")
    except Exception as e:
        print(f"Cannot connect to database: {e}")
        sys.exit(1)

    print("\nCreating tables...")
    create_tables()
    tables = inspect(engine).get_table_names()
    print(f"Tables in database ({len(tables)} total):")
    for t in sorted(tables):
        print(f"   - {t}")

    print(f"\nEnsuring slot capacity {settings.SLOT_CAPACITY}...")
    db = SessionLocal()
    try:
        added = parking_engine.initialize(db)
        summary = parking_engine.slot_summary(db)
    finally:
        db.close()
    print(f"Slots added: {added}")
    print(f"Slots total={summary.total} occupied={summary.occupied} free={summary.free}")

    print("\nDatabase ready! You can now start the backend:")
    print(f"   uvicorn app.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT}")


if __name__ == "__main__":
    main()
