"""Fixed-interval review scheduling (1/3/7/14/30 days)."""
from dataclasses import replace
from datetime import date, datetime, timedelta

from study_tracker.errors import (
    InvalidStageError, MalformedUnitError, OutOfRangeScoreError, StageOrderError,
)
from study_tracker.models import ReviewItem, StageProgress, TodayTask

REVIEW_SCHEDULE = (
    (1, 1, "1 day later"),
    (2, 3, "3 days later"),
    (3, 7, "1 week later"),
    (4, 14, "2 weeks later"),
    (5, 30, "1 month later"),
)
STAGES = tuple(stage for stage, _, _ in REVIEW_SCHEDULE)
FINAL_STAGE = STAGES[-1]
SUCCESS_THRESHOLD = 70


def date_only(value) -> date:
    """Return the calendar date of a date, datetime or ISO string."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime):
        return value.date()
    return value


def _check_stage(stage: int) -> None:
    if stage not in STAGES:
        raise InvalidStageError(stage)


def stage_offset(stage: int) -> int:
    _check_stage(stage)
    return REVIEW_SCHEDULE[stage - 1][1]


def stage_label(stage: int) -> str:
    _check_stage(stage)
    return REVIEW_SCHEDULE[stage - 1][2]


def create_initial_progress(base_date) -> list[StageProgress]:
    """Build the five pending checkpoints for a unit studied on base_date."""
    base = date_only(base_date)
    return [
        StageProgress(stage=stage, scheduled_date=base + timedelta(days=days))
        for stage, days, _ in REVIEW_SCHEDULE
    ]


def validate_item(item: ReviewItem) -> None:
    """Raise MalformedUnitError unless progress holds stages 1-5 once each, in order."""
    stages = [getattr(p, "stage", None) for p in item.progress]
    if stages != list(STAGES):
        raise MalformedUnitError(
            f"Review item {item.id!r} has progress stages {stages}, expected {list(STAGES)}"
        )
    if item.current_stage not in STAGES:
        raise MalformedUnitError(
            f"Review item {item.id!r} has current stage {item.current_stage!r}"
        )
    if item.is_completed and item.current_stage != FINAL_STAGE:
        raise MalformedUnitError(
            f"Review item {item.id!r} is completed but its current stage is {item.current_stage}"
        )


def current_progress(item: ReviewItem) -> StageProgress:
    validate_item(item)
    return item.progress[item.current_stage - 1]


def classify_result(understanding: int) -> str:
    return "success" if understanding >= SUCCESS_THRESHOLD else "failure"


def complete_stage(
    item: ReviewItem,
    stage: int,
    understanding: int,
    now: datetime,
    allow_out_of_order: bool = False,
) -> ReviewItem:
    """Record an understanding score for one stage and advance the item.

    Returns an updated copy; the item passed in is left untouched.

    Args:
        item: Review item with five stage entries.
        stage: Stage being completed (1-5).
        understanding: Self-assessed score 0-100.
        now: Completion timestamp.
        allow_out_of_order: Permit completing any stage, or re-completing one.
            Once the item itself is completed further calls are a no-op.
    """
    _check_stage(stage)
    if isinstance(understanding, bool) or not isinstance(understanding, (int, float)) \
            or not 0 <= understanding <= 100:
        raise OutOfRangeScoreError(understanding)
    validate_item(item)

    target = item.progress[stage - 1]
    if item.is_completed:
        if allow_out_of_order:
            return item
        raise StageOrderError(f"Review item {item.id!r} is already completed")
    if not allow_out_of_order:
        if target.is_completed:
            raise StageOrderError(f"Stage {stage} of {item.id!r} is already completed")
        if stage != item.current_stage:
            raise StageOrderError(
                f"Stage {stage} of {item.id!r} is not the current stage ({item.current_stage})"
            )

    progress = [
        replace(p, completed_date=now, understanding=understanding) if p.stage == stage else replace(p)
        for p in item.progress
    ]
    return replace(
        item,
        progress=progress,
        current_stage=min(stage + 1, FINAL_STAGE),
        is_completed=stage == FINAL_STAGE,
        updated_at=now,
    )


def is_overdue(progress: StageProgress, today) -> bool:
    # Day granularity: a checkpoint due later today is not overdue.
    return not progress.is_completed and date_only(progress.scheduled_date) < date_only(today)


def days_past_due(progress: StageProgress, today) -> int:
    delta = (date_only(today) - date_only(progress.scheduled_date)).days
    return max(0, delta)


def get_today_tasks(items: list[ReviewItem], today) -> list[TodayTask]:
    """Current-stage checkpoints due today or earlier, overdue first then by date."""
    today = date_only(today)
    tasks = []
    for item in items:
        if item.is_completed:
            continue
        progress = current_progress(item)
        if progress.is_completed or date_only(progress.scheduled_date) > today:
            continue
        overdue = is_overdue(progress, today)
        tasks.append(TodayTask(
            review_item=item,
            stage=item.current_stage,
            scheduled_date=progress.scheduled_date,
            is_overdue=overdue,
            days_past_due=days_past_due(progress, today) if overdue else 0,
        ))
    tasks.sort(key=lambda t: (not t.is_overdue, date_only(t.scheduled_date)))
    return tasks
