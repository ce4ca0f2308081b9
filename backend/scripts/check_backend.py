#!/usr/bin/env python3
"""
Quick checks so the backend can start. Run from repo root or backend/:
  poetry run python backend/scripts/check_backend.py
"""
import os
import socket
import sys
from pathlib import Path

# Run from backend/
backend_dir = Path(__file__).resolve().parent.parent
os.chdir(backend_dir)
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))


def main():
    errors = []

    # 1) .env
    if not (backend_dir / ".env").exists():
        print("WARN backend/.env missing (copy backend/.env.example); using environment only")

    # 2) Settings
    from mcp_console.config import STORAGE_DATABASE, settings

    missing = settings.missing_secrets()
    if missing:
        errors.append(f"Missing required secrets: {', '.join(missing)}")
        print("FAIL Secrets:", ", ".join(missing))
    else:
        print(f"OK  Settings (environment={settings.environment}, storage={settings.storage_backend})")

    # 3) Store (database backend only)
    if settings.storage_backend.lower() == STORAGE_DATABASE:
        try:
            from mcp_console.services.admin_service import table_counts
            from mcp_console.services.storage import SqlStore

            store = SqlStore(settings.database_url)
            store.create_tables()
            with store.session() as db:
                counts = table_counts(db)
            print("OK  Database (DATABASE_URL):", ", ".join(f"{t}={n}" for t, n in counts.items()))
        except Exception as e:
            errors.append(f"Database: {e}")
            print("FAIL Database:", e)
    else:
        print("OK  In-memory store (nothing to check)")

    # 4) App import (catches missing deps, bad imports)
    try:
        from mcp_console.main import app  # noqa: F401

        print("OK  App import (mcp_console.main)")
    except Exception as e:
        errors.append(f"App import: {e}")
        print("FAIL App import:", e)
        return 1

    # 5) Port 8000
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", 8000))
        print("OK  Port 8000 is free")
    except OSError:
        errors.append("Port 8000 is in use. Stop the other process or use another port (e.g. --port 8001).")
        print("FAIL Port 8000 is in use")

    if errors:
        print("\n---")
        for e in errors:
            print("•", e)
        return 1

    print("\nAll checks passed. Start with: poetry run mcp-console")
    return 0


if __name__ == "__main__":
    sys.exit(main())
