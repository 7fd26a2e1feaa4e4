"""Learner accounts and the current-user session."""
import uuid
from datetime import datetime

import structlog

from study_tracker.db import get_connection
from study_tracker.errors import UserNotFoundError
from study_tracker.models import User
from study_tracker.settings import CURRENT_USER_ID, get_setting, set_setting

logger = structlog.get_logger(__name__)


def _row_to_user(row) -> User:
    return User(
        id=row["id"],
        display_name=row["display_name"],
        grade=row["grade"],
        created_at=row["created_at"],
    )


def create_user(db_path: str, display_name: str, grade: str | None = None, user_id: str | None = None) -> User:
    user = User(
        id=user_id or uuid.uuid4().hex,
        display_name=display_name,
        grade=grade,
        created_at=datetime.now().isoformat(),
    )
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO users (id, display_name, grade, created_at) VALUES (?, ?, ?, ?)",
        (user.id, user.display_name, user.grade, user.created_at),
    )
    conn.commit()
    conn.close()
    logger.info("user_created", user_id=user.id, grade=grade)
    return user


def get_user(db_path: str, user_id: str) -> User | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    conn.close()
    return _row_to_user(row) if row else None


def list_users(db_path: str) -> list[User]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM users ORDER BY created_at, display_name").fetchall()
    conn.close()
    return [_row_to_user(r) for r in rows]


def get_current_user_id(db_path: str) -> str | None:
    return get_setting(db_path, CURRENT_USER_ID)


def set_current_user(db_path: str, user_id: str) -> User:
    user = get_user(db_path, user_id)
    if user is None:
        raise UserNotFoundError(f"No user with id {user_id!r}")
    set_setting(db_path, CURRENT_USER_ID, user_id)
    return user
