"""Review statistics per learner, per grade, and grade rankings."""
from datetime import datetime

import structlog

from study_tracker.db import get_connection
from study_tracker.models import ReviewStats

logger = structlog.get_logger(__name__)

NO_GRADE = "other"


def calculate_user_review_stats(db_path: str, user_id: str) -> ReviewStats:
    """Totals over the user's review results that carry an understanding score."""
    conn = get_connection(db_path)
    row = conn.execute(
        """SELECT COUNT(understanding) as t, COALESCE(SUM(understanding), 0) as s
        FROM review_results WHERE user_id = ?""",
        (user_id,),
    ).fetchone()
    conn.close()
    return ReviewStats(
        total_reviews_completed=row["t"],
        total_understanding_score=row["s"],
        average_understanding=(row["s"] / row["t"]) if row["t"] else 0.0,
        last_calculated_at=datetime.now().isoformat(),
    )


def update_user_review_stats(db_path: str, user_id: str, now: datetime | None = None) -> ReviewStats:
    """Recalculate and cache the stats on the user's row."""
    stats = calculate_user_review_stats(db_path, user_id)
    stats.last_calculated_at = (now or datetime.now()).isoformat()
    conn = get_connection(db_path)
    conn.execute(
        """UPDATE users SET total_reviews_completed=?, total_understanding_score=?,
            average_understanding=?, stats_calculated_at=?
        WHERE id=?""",
        (stats.total_reviews_completed, stats.total_understanding_score,
         stats.average_understanding, stats.last_calculated_at, user_id),
    )
    conn.commit()
    conn.close()
    return stats


def get_cached_review_stats(db_path: str, user_id: str) -> ReviewStats | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    conn.close()
    if row is None:
        return None
    return ReviewStats(
        total_reviews_completed=row["total_reviews_completed"],
        total_understanding_score=row["total_understanding_score"],
        average_understanding=row["average_understanding"],
        last_calculated_at=row["stats_calculated_at"],
    )


def update_all_users_review_stats(db_path: str) -> int:
    conn = get_connection(db_path)
    user_ids = [r["id"] for r in conn.execute("SELECT id FROM users").fetchall()]
    conn.close()
    for user_id in user_ids:
        update_user_review_stats(db_path, user_id)
    logger.info("review_stats_batch_updated", users=len(user_ids))
    return len(user_ids)


def get_review_stats_by_grade(db_path: str) -> dict[str, ReviewStats]:
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT COALESCE(u.grade, ?) as grade,
            COUNT(r.understanding) as t,
            COALESCE(SUM(r.understanding), 0) as s
        FROM users u
        LEFT JOIN review_results r ON r.user_id = u.id
        GROUP BY COALESCE(u.grade, ?)""",
        (NO_GRADE, NO_GRADE),
    ).fetchall()
    conn.close()
    now = datetime.now().isoformat()
    return {
        r["grade"]: ReviewStats(
            total_reviews_completed=r["t"],
            total_understanding_score=r["s"],
            average_understanding=(r["s"] / r["t"]) if r["t"] else 0.0,
            last_calculated_at=now,
        )
        for r in rows
    }


def get_grade_rankings(db_path: str) -> dict[str, list[dict]]:
    """Learners with at least one review, best average understanding first per grade."""
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT u.id, u.display_name, COALESCE(u.grade, ?) as grade,
            COUNT(r.understanding) as t,
            AVG(r.understanding) as avg
        FROM users u
        JOIN review_results r ON r.user_id = u.id
        WHERE r.understanding IS NOT NULL
        GROUP BY u.id
        ORDER BY avg DESC, t DESC""",
        (NO_GRADE,),
    ).fetchall()
    conn.close()
    rankings: dict[str, list[dict]] = {}
    for r in rows:
        rankings.setdefault(r["grade"], []).append({
            "user_id": r["id"],
            "user_name": r["display_name"],
            "average_understanding": round(r["avg"], 1),
            "total_reviews": r["t"],
        })
    return rankings
