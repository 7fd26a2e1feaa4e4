"""Review item persistence and stage completion."""
import json
import sqlite3
import uuid
from dataclasses import replace
from datetime import date, datetime

import structlog

from study_tracker.db import get_connection
from study_tracker.errors import ReviewItemNotFoundError, StaleReviewItemError
from study_tracker.models import ReviewItem, StageProgress, StudyRecord
from study_tracker.schedule import (
    classify_result, complete_stage, create_initial_progress, get_today_tasks, validate_item,
)
from study_tracker.settings import read_allow_out_of_order_completion
from study_tracker.stats import update_user_review_stats

logger = structlog.get_logger(__name__)


def _progress_to_json(progress: list[StageProgress]) -> str:
    return json.dumps([
        {
            "stage": p.stage,
            "scheduled_date": p.scheduled_date.isoformat(),
            "completed_date": p.completed_date.isoformat() if p.completed_date else None,
            "understanding": p.understanding,
        }
        for p in progress
    ])


def _progress_from_json(text: str) -> list[StageProgress]:
    return [
        StageProgress(
            stage=p["stage"],
            scheduled_date=date.fromisoformat(p["scheduled_date"]),
            completed_date=datetime.fromisoformat(p["completed_date"]) if p.get("completed_date") else None,
            understanding=p.get("understanding"),
        )
        for p in json.loads(text)
    ]


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _row_to_item(row) -> ReviewItem:
    return ReviewItem(
        id=row["id"],
        user_id=row["user_id"],
        subject=row["subject"],
        unit=row["unit"],
        content=row["content"] or "",
        study_record_id=row["study_record_id"],
        progress=_progress_from_json(row["progress"]),
        current_stage=row["current_stage"],
        is_completed=bool(row["is_completed"]),
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
        version=row["version"],
    )


def _write_item(conn: sqlite3.Connection, item: ReviewItem) -> ReviewItem:
    """Replace the whole stored record, checking the version it was read at."""
    validate_item(item)
    values = (
        item.user_id, item.subject, item.unit, item.content, item.study_record_id,
        _progress_to_json(item.progress), item.current_stage, int(item.is_completed),
        item.created_at.isoformat() if item.created_at else None,
        item.updated_at.isoformat() if item.updated_at else None,
    )
    if item.version == 0:
        if conn.execute("SELECT 1 FROM review_items WHERE id = ?", (item.id,)).fetchone():
            logger.warning("stale_review_item", review_item_id=item.id, version=item.version)
            raise StaleReviewItemError(f"Review item {item.id!r} already exists")
        # A dangling study_record_id fails here with sqlite3.IntegrityError.
        conn.execute(
            """INSERT INTO review_items (user_id, subject, unit, content, study_record_id,
                progress, current_stage, is_completed, created_at, updated_at, version, id)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 1, ?)""",
            values + (item.id,),
        )
    else:
        cursor = conn.execute(
            """UPDATE review_items SET user_id=?, subject=?, unit=?, content=?, study_record_id=?,
                progress=?, current_stage=?, is_completed=?, created_at=?, updated_at=?,
                version = version + 1
            WHERE id=? AND version=?""",
            values + (item.id, item.version),
        )
        if cursor.rowcount == 0:
            logger.warning("stale_review_item", review_item_id=item.id, version=item.version)
            raise StaleReviewItemError(
                f"Review item {item.id!r} changed since version {item.version} was read"
            )
    return replace(item, version=item.version + 1)


def save_review_item(db_path: str, item: ReviewItem) -> ReviewItem:
    """Upsert a review item; returns it with its new version."""
    conn = get_connection(db_path)
    try:
        with conn:
            saved = _write_item(conn, item)
    finally:
        conn.close()
    return saved


def create_review_item(
    db_path: str,
    user_id: str,
    subject: str,
    unit: str,
    content: str = "",
    study_record_id: str | None = None,
    base_date=None,
    now: datetime | None = None,
) -> ReviewItem:
    """Enter a studied unit into the review pipeline, scheduled from base_date."""
    now = now or datetime.now()
    item = ReviewItem(
        id=uuid.uuid4().hex,
        user_id=user_id,
        subject=subject,
        unit=unit,
        content=content,
        study_record_id=study_record_id,
        progress=create_initial_progress(base_date or now),
        created_at=now,
        updated_at=now,
    )
    item = save_review_item(db_path, item)
    logger.info("review_item_created", review_item_id=item.id, user_id=user_id, subject=subject)
    return item


def create_review_item_from_study_record(db_path: str, record: StudyRecord) -> ReviewItem:
    return create_review_item(
        db_path,
        user_id=record.user_id,
        subject=record.subject,
        unit=record.content,
        content=record.details or record.content,
        study_record_id=record.id,
        base_date=record.study_date,
    )


def get_review_item(db_path: str, item_id: str) -> ReviewItem | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM review_items WHERE id = ?", (item_id,)).fetchone()
    conn.close()
    return _row_to_item(row) if row else None


def get_review_items(db_path: str, user_id: str) -> list[ReviewItem]:
    """All of a user's review items, newest first."""
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM review_items WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
        (user_id,),
    ).fetchall()
    conn.close()
    return [_row_to_item(r) for r in rows]


def get_active_review_items(db_path: str, user_id: str) -> list[ReviewItem]:
    return [item for item in get_review_items(db_path, user_id) if not item.is_completed]


def get_completed_review_items(db_path: str, user_id: str) -> list[ReviewItem]:
    return [item for item in get_review_items(db_path, user_id) if item.is_completed]


def get_today_tasks_for_user(db_path: str, user_id: str, today=None) -> list:
    return get_today_tasks(get_active_review_items(db_path, user_id), today or date.today())


def delete_review_item(db_path: str, item_id: str) -> None:
    conn = get_connection(db_path)
    conn.execute("DELETE FROM review_items WHERE id = ?", (item_id,))
    conn.commit()
    conn.close()


def complete_review_stage(
    db_path: str,
    item_id: str,
    stage: int,
    understanding: int,
    now: datetime | None = None,
    time_spent: int = 0,
    question_id: str = "",
    feedback: str | None = None,
) -> ReviewItem:
    """Complete one stage in a single read-modify-write transaction and log the result."""
    now = now or datetime.now()
    conn = get_connection(db_path)
    try:
        with conn:
            conn.execute("BEGIN IMMEDIATE")
            allow_out_of_order = read_allow_out_of_order_completion(conn)
            row = conn.execute("SELECT * FROM review_items WHERE id = ?", (item_id,)).fetchone()
            if row is None:
                raise ReviewItemNotFoundError(f"No review item with id {item_id!r}")
            item = _row_to_item(row)
            updated = complete_stage(item, stage, understanding, now, allow_out_of_order)
            if updated is item:
                return item
            saved = _write_item(conn, updated)
            result = classify_result(understanding)
            conn.execute(
                """INSERT INTO review_results (user_id, review_item_id, question_id, stage,
                    understanding, result, time_spent, feedback, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (saved.user_id, item_id, question_id, stage, understanding, result,
                 time_spent, feedback, now.isoformat()),
            )
    finally:
        conn.close()
    logger.info(
        "review_stage_completed",
        review_item_id=item_id, stage=stage, understanding=understanding,
        result=result, item_completed=saved.is_completed,
    )
    update_user_review_stats(db_path, saved.user_id, now)
    return saved


def get_review_results(db_path: str, user_id: str) -> list[dict]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM review_results WHERE user_id = ? ORDER BY created_at, id",
        (user_id,),
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]
