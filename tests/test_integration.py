# tests/test_integration.py
"""End-to-end test of the core workflow."""
from datetime import date, datetime

from study_tracker.progress import get_study_progress
from study_tracker.records import add_study_log, create_study_record
from study_tracker.reviews import (
    complete_review_stage, get_completed_review_items, get_review_items,
    get_today_tasks_for_user,
)
from study_tracker.stats import get_cached_review_stats, get_grade_rankings
from study_tracker.users import create_user, set_current_user


def test_full_review_workflow(db):
    """Record a session, review it over a month, and check every report."""
    user = create_user(db, "Aoi", grade="1", user_id="u1")
    set_current_user(db, user.id)

    create_study_record(
        db, "u1", study_date="2024-01-01", subject="math", study_minutes=60,
        start_time="19:00", end_time="20:00", content="Quadratics", should_review=True,
    )
    add_study_log(db, "u1", "math", "Quadratics", 60, "good", study_date=date(2024, 1, 1))
    [item] = get_review_items(db, "u1")

    # Nothing due on the study day itself
    assert get_today_tasks_for_user(db, "u1", today=date(2024, 1, 1)) == []

    # Stage 1 is 3 days overdue on 01-05
    [task] = get_today_tasks_for_user(db, "u1", today=date(2024, 1, 5))
    assert (task.stage, task.is_overdue, task.days_past_due) == (1, True, 3)
    complete_review_stage(db, item.id, 1, 85, now=datetime(2024, 1, 5, 8, 0))

    # Stage 2 (due 01-04) is now the task, one day late
    [task] = get_today_tasks_for_user(db, "u1", today=date(2024, 1, 5))
    assert (task.stage, task.scheduled_date, task.days_past_due) == (2, date(2024, 1, 4), 1)
    complete_review_stage(db, item.id, 2, 65, now=datetime(2024, 1, 5, 8, 5))

    # Stage 3 is due 01-08, so nothing more today
    assert get_today_tasks_for_user(db, "u1", today=date(2024, 1, 5)) == []
    [summary] = get_study_progress(db, "u1", subjects=["math"], today=date(2024, 1, 5))
    assert summary.pending_reviews == 1
    assert summary.overdue_reviews == 0

    for stage, day in ((3, date(2024, 1, 8)), (4, date(2024, 1, 15)), (5, date(2024, 1, 31))):
        [task] = get_today_tasks_for_user(db, "u1", today=day)
        assert task.stage == stage and not task.is_overdue
        complete_review_stage(db, item.id, stage, 90, now=datetime.combine(day, datetime.min.time()))

    assert len(get_completed_review_items(db, "u1")) == 1
    assert get_today_tasks_for_user(db, "u1", today=date(2024, 3, 1)) == []

    stats = get_cached_review_stats(db, "u1")
    assert stats.total_reviews_completed == 5
    assert stats.average_understanding == (85 + 65 + 90 * 3) / 5
    assert get_grade_rankings(db)["1"][0]["user_id"] == "u1"

    [summary] = get_study_progress(db, "u1", subjects=["math"], today=date(2024, 3, 1))
    assert summary.pending_reviews == 0
    assert summary.total_units == 1
    assert summary.completed_units == 1
    assert summary.last_study_date == date(2024, 1, 1)
