# tests/test_progress.py
from datetime import date, datetime

from study_tracker.models import ReviewItem, StudyLog
from study_tracker.progress import compute_study_progress, get_study_progress
from study_tracker.records import add_study_log
from study_tracker.reviews import create_review_item
from study_tracker.schedule import complete_stage, create_initial_progress

TODAY = date(2024, 1, 5)


def log(unit, understanding, subject="math", duration=30, day=date(2024, 1, 1)):
    return StudyLog(id=0, user_id="u1", subject=subject, unit=unit, study_date=day,
                    duration=duration, understanding=understanding)


def item(subject="math", base=date(2024, 1, 1), item_id="i"):
    return ReviewItem(id=item_id, user_id="u1", subject=subject, unit="x",
                      progress=create_initial_progress(base))


def test_empty_subject_yields_zeros():
    [summary] = compute_study_progress([], [], ["science"], TODAY)
    assert summary.subject == "science"
    assert summary.total_units == 0
    assert summary.completed_units == 0
    assert summary.pending_reviews == 0
    assert summary.overdue_reviews == 0
    assert summary.average_understanding == 0.0
    assert summary.total_study_time == 0
    assert summary.last_study_date is None


def test_units_and_mastery():
    logs = [
        log("Vectors", "excellent"),
        log("Vectors", "fair"),      # mean 3 -> mastered
        log("Matrices", "fair"),
        log("Matrices", "poor"),     # mean 1.5
        log("Tenses", "good", subject="english"),
    ]
    [math] = compute_study_progress([], logs, ["math"], TODAY)
    assert math.total_units == 2
    assert math.completed_units == 1
    assert math.average_understanding == (4 + 2 + 2 + 1) / 4
    assert math.total_study_time == 120


def test_last_study_date_is_latest():
    logs = [log("a", "good", day=date(2024, 1, 3)), log("b", "good", day=date(2024, 1, 1))]
    [summary] = compute_study_progress([], logs, ["math"], TODAY)
    assert summary.last_study_date == date(2024, 1, 3)


def test_pending_and_overdue_reviews():
    overdue = item(base=date(2024, 1, 1), item_id="overdue")   # stage 1 due 01-02
    due_today = item(base=date(2024, 1, 4), item_id="today")   # due 01-05
    finished = item(item_id="done")
    for stage in range(1, 6):
        finished = complete_stage(finished, stage, 80, datetime(2024, 1, 5))
    other = item(subject="english", item_id="eng")
    summaries = compute_study_progress(
        [overdue, due_today, finished, other], [], ["math", "english"], TODAY,
    )
    math, english = summaries
    assert math.pending_reviews == 2
    assert math.overdue_reviews == 1
    assert english.pending_reviews == 1


def test_summary_order_follows_subjects():
    summaries = compute_study_progress([], [], ["english", "math"], TODAY)
    assert [s.subject for s in summaries] == ["english", "math"]


def test_get_study_progress_from_db(db):
    add_study_log(db, "u1", "math", "Vectors", 45, "good", study_date=date(2024, 1, 1))
    create_review_item(db, "u1", "math", "Vectors", base_date=date(2024, 1, 1),
                       now=datetime(2024, 1, 1, 12, 0))
    [summary] = get_study_progress(db, "u1", subjects=["math"], today=TODAY)
    assert summary.total_units == 1
    assert summary.completed_units == 1
    assert summary.pending_reviews == 1
    assert summary.overdue_reviews == 1
    assert summary.total_study_time == 45
