"""Study records (logged sessions) and per-unit study logs."""
import sqlite3
import uuid
from datetime import date, datetime, timedelta

import structlog

from study_tracker.db import get_connection
from study_tracker.errors import StudyTrackerError
from study_tracker.models import SUBJECTS, StudyLog, StudyRecord, StudyStats
from study_tracker.reviews import create_review_item_from_study_record
from study_tracker.schedule import date_only

logger = structlog.get_logger(__name__)

UNDERSTANDING_LEVELS = ("excellent", "good", "fair", "poor")
STUDY_TYPES = ("lecture", "practice", "review", "test")


def _check_subject(subject: str) -> None:
    if subject not in SUBJECTS:
        raise ValueError(f"Unknown subject {subject!r}")


def _clean(text: str | None) -> str | None:
    if text is None or not text.strip():
        return None
    return text.strip()


def calculate_study_minutes(start_time: str, end_time: str) -> int:
    """Minutes between two HH:MM times, wrapping past midnight."""
    start_h, start_m = (int(x) for x in start_time.split(":"))
    end_h, end_m = (int(x) for x in end_time.split(":"))
    diff = (end_h * 60 + end_m) - (start_h * 60 + start_m)
    if diff < 0:
        diff += 24 * 60
    return diff


def _row_to_record(row) -> StudyRecord:
    return StudyRecord(
        id=row["id"],
        user_id=row["user_id"],
        study_date=row["study_date"],
        subject=row["subject"],
        study_minutes=row["study_minutes"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        content=row["content"],
        details=row["details"],
        memo=row["memo"],
        session_id=row["session_id"],
        should_review=bool(row["should_review"]),
        created_at=row["created_at"],
    )


def create_study_record(
    db_path: str,
    user_id: str,
    study_date,
    subject: str,
    study_minutes: int,
    start_time: str,
    end_time: str,
    content: str,
    details: str | None = None,
    memo: str | None = None,
    session_id: str | None = None,
    should_review: bool = False,
) -> StudyRecord:
    """Save a study session; with should_review, also enter it into the review pipeline."""
    _check_subject(subject)
    record = StudyRecord(
        id=uuid.uuid4().hex,
        user_id=user_id,
        study_date=date_only(study_date).isoformat(),
        subject=subject,
        study_minutes=study_minutes,
        start_time=start_time,
        end_time=end_time,
        content=content,
        details=_clean(details),
        memo=_clean(memo),
        session_id=session_id,
        should_review=should_review,
        created_at=datetime.now().isoformat(),
    )
    conn = get_connection(db_path)
    conn.execute(
        """INSERT INTO study_records (id, user_id, study_date, subject, study_minutes,
            start_time, end_time, content, details, memo, session_id, should_review, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (record.id, record.user_id, record.study_date, record.subject, record.study_minutes,
         record.start_time, record.end_time, record.content, record.details, record.memo,
         record.session_id, int(record.should_review), record.created_at),
    )
    conn.commit()
    conn.close()
    logger.info("study_record_created", record_id=record.id, user_id=user_id, subject=subject)

    if should_review:
        # The record stands even if the review item cannot be created.
        try:
            create_review_item_from_study_record(db_path, record)
        except (sqlite3.Error, StudyTrackerError) as exc:
            logger.error("review_item_create_failed", record_id=record.id, error=repr(exc))
    return record


def get_records_by_user(db_path: str, user_id: str, limit: int | None = None) -> list[StudyRecord]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM study_records WHERE user_id = ? ORDER BY study_date DESC, created_at DESC LIMIT ?",
        (user_id, -1 if limit is None else limit),
    ).fetchall()
    conn.close()
    return [_row_to_record(r) for r in rows]


def add_study_log(
    db_path: str,
    user_id: str,
    subject: str,
    unit: str,
    duration: int,
    understanding: str,
    study_date=None,
    study_type: str = "lecture",
    content: str = "",
    notes: str | None = None,
) -> StudyLog:
    _check_subject(subject)
    if understanding not in UNDERSTANDING_LEVELS:
        raise ValueError(f"Understanding must be one of {UNDERSTANDING_LEVELS}, got {understanding!r}")
    if study_type not in STUDY_TYPES:
        raise ValueError(f"Study type must be one of {STUDY_TYPES}, got {study_type!r}")
    day = date_only(study_date or date.today())
    conn = get_connection(db_path)
    cursor = conn.execute(
        """INSERT INTO study_logs (user_id, subject, unit, content, study_type, duration,
            understanding, notes, study_date, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (user_id, subject, unit, content, study_type, duration, understanding, notes,
         day.isoformat(), datetime.now().isoformat()),
    )
    conn.commit()
    log_id = cursor.lastrowid
    conn.close()
    return StudyLog(
        id=log_id, user_id=user_id, subject=subject, unit=unit, study_date=day,
        duration=duration, understanding=understanding, study_type=study_type,
        content=content, notes=notes,
    )


def get_study_logs(db_path: str, user_id: str, subject: str | None = None) -> list[StudyLog]:
    """A user's study logs, most recent study date first."""
    query = "SELECT * FROM study_logs WHERE user_id = ?"
    params = [user_id]
    if subject:
        query += " AND subject = ?"
        params.append(subject)
    query += " ORDER BY study_date DESC, id DESC"
    conn = get_connection(db_path)
    rows = conn.execute(query, params).fetchall()
    conn.close()
    return [
        StudyLog(
            id=r["id"],
            user_id=r["user_id"],
            subject=r["subject"],
            unit=r["unit"],
            study_date=date.fromisoformat(r["study_date"]),
            duration=r["duration"],
            understanding=r["understanding"],
            study_type=r["study_type"],
            content=r["content"] or "",
            notes=r["notes"],
        )
        for r in rows
    ]


def get_review_records(db_path: str, user_id: str) -> list[StudyRecord]:
    """Records flagged for review, most recently created first."""
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM study_records WHERE user_id = ? AND should_review = 1 ORDER BY created_at DESC",
        (user_id,),
    ).fetchall()
    conn.close()
    return [_row_to_record(r) for r in rows]


def _hours(minutes: int) -> float:
    return round(minutes / 60, 1)


def compute_study_stats(records: list[StudyRecord], today) -> StudyStats:
    """Total, this-week (from Monday) and per-subject hours, plus the last seven days."""
    today = date_only(today)
    week_start = today - timedelta(days=today.weekday())
    recent = {today - timedelta(days=i): 0 for i in range(6, -1, -1)}
    total = weekly = 0
    by_subject = {s: 0 for s in SUBJECTS}
    for r in records:
        day = date_only(r.study_date)
        total += r.study_minutes
        if day >= week_start:
            weekly += r.study_minutes
        by_subject[r.subject] = by_subject.get(r.subject, 0) + r.study_minutes
        if day in recent:
            recent[day] += r.study_minutes
    return StudyStats(
        total_hours=_hours(total),
        weekly_hours=_hours(weekly),
        subject_hours={s: _hours(m) for s, m in by_subject.items()},
        recent_days=[{"date": d.isoformat(), "hours": _hours(m)} for d, m in recent.items()],
    )


def get_study_stats(db_path: str, user_id: str, today=None) -> StudyStats:
    return compute_study_stats(get_records_by_user(db_path, user_id), today or date.today())
