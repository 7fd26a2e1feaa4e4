"""Exceptions raised by the scheduler and the storage layer."""


class StudyTrackerError(Exception):
    """Base class for all study tracker errors."""


class InvalidStageError(StudyTrackerError, ValueError):
    def __init__(self, stage):
        super().__init__(f"Stage must be 1-5, got {stage!r}")
        self.stage = stage


class MalformedUnitError(StudyTrackerError, ValueError):
    """A review item whose progress does not cover stages 1-5 exactly once."""


class OutOfRangeScoreError(StudyTrackerError, ValueError):
    def __init__(self, understanding):
        super().__init__(f"Understanding must be 0-100, got {understanding!r}")
        self.understanding = understanding


class StageOrderError(StudyTrackerError):
    """Completing a stage out of order, twice, or on a finished item."""


class StaleReviewItemError(StudyTrackerError):
    """The stored review item changed since it was read."""


class ReviewItemNotFoundError(StudyTrackerError, LookupError):
    pass


class UserNotFoundError(StudyTrackerError, LookupError):
    pass
