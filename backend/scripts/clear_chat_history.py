#!/usr/bin/env python3
"""Delete all chat sessions and messages from the database store (STORAGE_BACKEND=database).
Run from backend: poetry run python scripts/clear_chat_history.py
"""
import sys
from pathlib import Path

# Ensure backend is on path when run as script
backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from mcp_console.config import settings
from mcp_console.services.admin_service import clear_chat_history
from mcp_console.services.storage import SqlStore


def main():
    store = SqlStore(settings.database_url)
    db = store.session()
    try:
        deleted = clear_chat_history(db)
        print("Chat history cleared. Rows deleted:")
        for table, count in deleted.items():
            print(f"  {table}: {count}")
    except Exception as e:
        db.rollback()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
