"""Per-subject study progress summaries."""
from datetime import date

from study_tracker.models import SUBJECTS, ReviewItem, StudyLog, StudyProgress
from study_tracker.records import get_study_logs
from study_tracker.reviews import get_review_items
from study_tracker.schedule import current_progress, date_only, is_overdue

UNDERSTANDING_SCORES = {"excellent": 4, "good": 3, "fair": 2, "poor": 1}
GOOD_UNDERSTANDING = 3


def _mean_score(logs: list[StudyLog]) -> float:
    return sum(UNDERSTANDING_SCORES[log.understanding] for log in logs) / len(logs)


def compute_study_progress(
    items: list[ReviewItem],
    logs: list[StudyLog],
    subjects,
    today,
) -> list[StudyProgress]:
    today = date_only(today)
    summaries = []
    for subject in subjects:
        subject_items = [item for item in items if item.subject == subject]
        subject_logs = [log for log in logs if log.subject == subject]

        by_unit: dict[str, list[StudyLog]] = {}
        for log in subject_logs:
            by_unit.setdefault(log.unit, []).append(log)
        completed_units = sum(
            1 for unit_logs in by_unit.values() if _mean_score(unit_logs) >= GOOD_UNDERSTANDING
        )

        pending = [item for item in subject_items if not item.is_completed]
        overdue = [item for item in pending if is_overdue(current_progress(item), today)]

        summaries.append(StudyProgress(
            subject=subject,
            total_units=len(by_unit),
            completed_units=completed_units,
            pending_reviews=len(pending),
            overdue_reviews=len(overdue),
            average_understanding=_mean_score(subject_logs) if subject_logs else 0.0,
            total_study_time=sum(log.duration for log in subject_logs),
            last_study_date=max((log.study_date for log in subject_logs), default=None),
        ))
    return summaries


def get_study_progress(db_path: str, user_id: str, subjects=SUBJECTS, today=None) -> list[StudyProgress]:
    return compute_study_progress(
        get_review_items(db_path, user_id),
        get_study_logs(db_path, user_id),
        subjects,
        today or date.today(),
    )
