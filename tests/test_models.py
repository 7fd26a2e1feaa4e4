"""Tests for data model classes."""
from datetime import date, datetime

from study_tracker.models import (
    SUBJECTS, ReviewItem, StageProgress, StudyProgress, StudyRecord, ReviewStats, User,
)


def test_stage_progress_pending_by_default():
    p = StageProgress(stage=1, scheduled_date=date(2024, 1, 2))
    assert p.completed_date is None
    assert p.understanding is None
    assert p.is_completed is False


def test_stage_progress_completed_when_dated():
    p = StageProgress(stage=2, scheduled_date=date(2024, 1, 4),
                      completed_date=datetime(2024, 1, 4, 10, 0), understanding=75)
    assert p.is_completed is True


def test_review_item_defaults():
    item = ReviewItem(id="x", user_id="u1", subject="math", unit="Vectors")
    assert item.current_stage == 1
    assert item.is_completed is False
    assert item.progress == []
    assert item.version == 0
    assert item.study_record_id is None


def test_study_record_defaults():
    r = StudyRecord(id="r", user_id="u1", study_date="2024-01-01", subject="english",
                    study_minutes=45, start_time="19:00", end_time="19:45", content="Reading")
    assert r.should_review is False
    assert r.details is None
    assert r.memo is None


def test_study_progress_defaults():
    p = StudyProgress(subject="math")
    assert p.total_units == 0
    assert p.average_understanding == 0.0
    assert p.last_study_date is None


def test_review_stats_defaults():
    s = ReviewStats()
    assert s.total_reviews_completed == 0
    assert s.average_understanding == 0.0


def test_user_grade_optional():
    assert User(id="u", display_name="Aoi").grade is None


def test_subjects():
    assert "math" in SUBJECTS
    assert len(SUBJECTS) == len(set(SUBJECTS))
