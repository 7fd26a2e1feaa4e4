"""Data classes for the study tracker domain model."""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

SUBJECTS = (
    "math", "english", "japanese", "information",
    "science", "science1", "science2",
    "social", "social1", "social2",
)


@dataclass
class StageProgress:
    stage: int
    scheduled_date: date
    completed_date: Optional[datetime] = None
    understanding: Optional[int] = None

    @property
    def is_completed(self) -> bool:
        return self.completed_date is not None


@dataclass
class ReviewItem:
    id: str
    user_id: str
    subject: str
    unit: str
    content: str = ""
    study_record_id: Optional[str] = None
    progress: list = field(default_factory=list)  # list[StageProgress], stages 1..5
    current_stage: int = 1
    is_completed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 0


@dataclass
class TodayTask:
    review_item: ReviewItem
    stage: int
    scheduled_date: date
    is_overdue: bool
    days_past_due: int = 0


@dataclass
class StudyRecord:
    id: str
    user_id: str
    study_date: str  # YYYY-MM-DD
    subject: str
    study_minutes: int
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    content: str
    details: Optional[str] = None
    memo: Optional[str] = None
    session_id: Optional[str] = None
    should_review: bool = False
    created_at: Optional[str] = None


@dataclass
class StudyLog:
    id: int
    user_id: str
    subject: str
    unit: str
    study_date: date
    duration: int  # minutes
    understanding: str  # excellent / good / fair / poor
    study_type: str = "lecture"
    content: str = ""
    notes: Optional[str] = None


@dataclass
class StudyProgress:
    subject: str
    total_units: int = 0
    completed_units: int = 0
    pending_reviews: int = 0
    overdue_reviews: int = 0
    average_understanding: float = 0.0
    total_study_time: int = 0
    last_study_date: Optional[date] = None


@dataclass
class StudyStats:
    total_hours: float = 0.0
    weekly_hours: float = 0.0
    subject_hours: dict = field(default_factory=lambda: {s: 0.0 for s in SUBJECTS})
    recent_days: list = field(default_factory=list)


@dataclass
class ReviewStats:
    total_reviews_completed: int = 0
    total_understanding_score: int = 0
    average_understanding: float = 0.0
    last_calculated_at: Optional[str] = None


@dataclass
class User:
    id: str
    display_name: str
    grade: Optional[str] = None
    created_at: Optional[str] = None
