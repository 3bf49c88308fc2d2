#!/usr/bin/env python3
"""
Create the SQLite database that records availability API requests.

Usage:
    uv run python src/scripts/init_db.py [--db data/db/availability.db]
"""

import argparse
import sqlite3
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DB_PATH

SCHEMA = [
    # One row per API call
    """
    CREATE TABLE IF NOT EXISTS api_requests (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        request_id TEXT UNIQUE NOT NULL,
        timestamp TEXT NOT NULL,
        endpoint TEXT NOT NULL,
        method TEXT NOT NULL,
        client_ip TEXT,
        calendars_uploaded INTEGER,
        upload_size_bytes INTEGER,
        date_from TEXT,
        date_to TEXT,
        status_code INTEGER NOT NULL,
        error_code TEXT,
        error_message TEXT,
        processing_time_ms INTEGER NOT NULL,
        days_computed INTEGER,
        events_expanded INTEGER
    )
    """,
    # Loaded calendars, validation errors and expansion warnings per call
    """
    CREATE TABLE IF NOT EXISTS api_request_details (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        request_id TEXT NOT NULL,
        detail_type TEXT NOT NULL CHECK(detail_type IN ('validation_error', 'calendar_loaded', 'warning')),
        message TEXT NOT NULL,
        FOREIGN KEY (request_id) REFERENCES api_requests(request_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_api_requests_timestamp ON api_requests(timestamp)",
    "CREATE INDEX IF NOT EXISTS idx_api_requests_status ON api_requests(status_code)",
    "CREATE INDEX IF NOT EXISTS idx_api_request_details_request ON api_request_details(request_id)",
]


def create_database(db_path: Path = DB_PATH) -> Path:
    """Create the request log tables in db_path; existing tables are left alone."""
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    try:
        conn.execute("PRAGMA foreign_keys = ON")
        for statement in SCHEMA:
            conn.execute(statement)
        conn.commit()
    finally:
        conn.close()

    return db_path


def main():
    parser = argparse.ArgumentParser(description="Create the API request log database")
    parser.add_argument("--db", type=Path, default=DB_PATH, help=f"Database path (default: {DB_PATH})")
    args = parser.parse_args()

    db_path = create_database(args.db)
    print(f"Database created successfully at: {db_path}")


if __name__ == "__main__":
    main()
