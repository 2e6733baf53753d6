"""Create the local SQLite database and its table."""

from ipmonitor.core.config import get_settings
from ipmonitor.core.logging import configure_logging
from ipmonitor.storage.record_store import RecordStore


if __name__ == "__main__":
    configure_logging()
    settings = get_settings()
    store = RecordStore.initialize(settings.database_path)
    print(f"Database initialized at {settings.database_path} ({store.count_all()} records).")
    store.close()
