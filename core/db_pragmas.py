import logging

from django.db.utils import OperationalError

log = logging.getLogger(__name__)


def _is_in_memory(connection) -> bool:
    name = str(connection.settings_dict.get("NAME") or "")
    return name == ":memory:" or "mode=memory" in name


def enable_sqlite_pragmas(sender, connection, **kwargs):
    if connection.vendor != "sqlite":
        return

    try:
        with connection.cursor() as cursor:
            cursor.execute("PRAGMA busy_timeout=30000;")  # 30s
            cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.execute("PRAGMA foreign_keys=ON;")

            # journal_mode is persistent in the file and meaningless in memory
            if not _is_in_memory(connection):
                cursor.execute("PRAGMA journal_mode=WAL;")

    except OperationalError as e:
        msg = str(e).lower()
        if "database is locked" in msg:
            log.warning("SQLite is locked while applying PRAGMAs; continuing: %s", e)
            return
        raise
