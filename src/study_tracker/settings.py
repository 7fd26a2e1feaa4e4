"""Key/value settings stored alongside the data."""
import sqlite3

from study_tracker.db import get_connection

ALLOW_OUT_OF_ORDER_COMPLETION = "allow_out_of_order_completion"
CURRENT_USER_ID = "current_user_id"


def read_setting(conn: sqlite3.Connection, key: str, default: str = None) -> str | None:
    """Read a setting on an open connection, inside the caller's transaction."""
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    return row["value"] if row else default


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    value = read_setting(conn, key, default)
    conn.close()
    return value


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def read_allow_out_of_order_completion(conn: sqlite3.Connection) -> bool:
    return read_setting(conn, ALLOW_OUT_OF_ORDER_COMPLETION, "0") == "1"


def get_allow_out_of_order_completion(db_path: str) -> bool:
    return get_setting(db_path, ALLOW_OUT_OF_ORDER_COMPLETION, "0") == "1"


def set_allow_out_of_order_completion(db_path: str, enabled: bool) -> None:
    set_setting(db_path, ALLOW_OUT_OF_ORDER_COMPLETION, "1" if enabled else "0")
