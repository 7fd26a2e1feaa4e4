# tests/test_stats.py
from datetime import date, datetime

from study_tracker.reviews import complete_review_stage, create_review_item
from study_tracker.stats import (
    calculate_user_review_stats, get_cached_review_stats, get_grade_rankings,
    get_review_stats_by_grade, update_all_users_review_stats, update_user_review_stats,
)
from study_tracker.users import create_user

NOW = datetime(2024, 1, 5, 9, 0)


def review(db, user_id, *scores):
    item = create_review_item(db, user_id, "math", "Vectors", base_date=date(2024, 1, 1))
    for stage, score in enumerate(scores, 1):
        complete_review_stage(db, item.id, stage, score, now=NOW)


def test_stats_zero_without_results(db):
    create_user(db, "Aoi", user_id="u1")
    stats = calculate_user_review_stats(db, "u1")
    assert stats.total_reviews_completed == 0
    assert stats.total_understanding_score == 0
    assert stats.average_understanding == 0.0


def test_stats_after_reviews(db):
    create_user(db, "Aoi", user_id="u1")
    review(db, "u1", 90, 60)
    stats = calculate_user_review_stats(db, "u1")
    assert stats.total_reviews_completed == 2
    assert stats.total_understanding_score == 150
    assert stats.average_understanding == 75.0


def test_update_user_review_stats_caches_on_user(db):
    create_user(db, "Aoi", user_id="u1")
    review(db, "u1", 40)
    update_user_review_stats(db, "u1", now=NOW)
    cached = get_cached_review_stats(db, "u1")
    assert cached.total_reviews_completed == 1
    assert cached.average_understanding == 40.0
    assert cached.last_calculated_at == NOW.isoformat()


def test_cached_stats_missing_user(db):
    assert get_cached_review_stats(db, "ghost") is None


def test_update_all_users(db):
    create_user(db, "Aoi", user_id="u1")
    create_user(db, "Ren", user_id="u2")
    assert update_all_users_review_stats(db) == 2


def test_stats_by_grade(db):
    create_user(db, "Aoi", grade="1", user_id="u1")
    create_user(db, "Ren", grade="1", user_id="u2")
    create_user(db, "Sora", user_id="u3")
    review(db, "u1", 80)
    review(db, "u2", 60, 100)
    by_grade = get_review_stats_by_grade(db)
    assert by_grade["1"].total_reviews_completed == 3
    assert by_grade["1"].average_understanding == 80.0
    assert by_grade["other"].total_reviews_completed == 0


def test_grade_rankings(db):
    create_user(db, "Aoi", grade="2", user_id="u1")
    create_user(db, "Ren", grade="2", user_id="u2")
    create_user(db, "Sora", grade="2", user_id="u3")
    review(db, "u1", 50)
    review(db, "u2", 95, 85)
    rankings = get_grade_rankings(db)
    assert [r["user_name"] for r in rankings["2"]] == ["Ren", "Aoi"]
    assert rankings["2"][0]["average_understanding"] == 90.0
    assert rankings["2"][0]["total_reviews"] == 2
