"""Achievement engine tables.

Creates workouts, workout_progress, user_achievements,
notification_preferences and notifications.

Revision ID: 001_achievement_engine
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_achievement_engine"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Workouts ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS workouts (
            id VARCHAR(64) PRIMARY KEY,
            title VARCHAR(256) NOT NULL,
            description TEXT,
            difficulty VARCHAR(16) NOT NULL
                CHECK (difficulty IN ('beginner', 'intermediate', 'advanced')),
            duration_seconds INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # --- Workout Progress ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS workout_progress (
            id BIGSERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL,
            workout_id VARCHAR(64) NOT NULL REFERENCES workouts(id),
            completed_at TIMESTAMPTZ NOT NULL,
            duration_seconds INTEGER NOT NULL CHECK (duration_seconds >= 0),
            rating INTEGER,
            notes TEXT
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_workout_progress_user
        ON workout_progress(user_id)
    """)

    # --- User Achievements ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_achievements (
            id BIGSERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL,
            achievement_id VARCHAR(64) NOT NULL,
            earned_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_achievements_user_achievement_key UNIQUE (user_id, achievement_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_achievements_user
        ON user_achievements(user_id)
    """)

    # --- Notification Preferences ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS notification_preferences (
            user_id VARCHAR(64) PRIMARY KEY,
            achievement_notifications BOOLEAN NOT NULL DEFAULT true,
            friend_request_notifications BOOLEAN NOT NULL DEFAULT true,
            friend_activity_notifications BOOLEAN NOT NULL DEFAULT true,
            streak_notifications BOOLEAN NOT NULL DEFAULT true,
            milestone_notifications BOOLEAN NOT NULL DEFAULT true,
            updated_at TIMESTAMPTZ
        )
    """)

    # --- Notifications ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS notifications (
            id BIGSERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL,
            type VARCHAR(32) NOT NULL
                CHECK (type IN ('achievement', 'friend_request', 'friend_activity', 'streak', 'milestone')),
            title VARCHAR(256) NOT NULL,
            message TEXT NOT NULL,
            data JSONB NOT NULL DEFAULT '{}',
            read BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_notifications_user_created
        ON notifications(user_id, created_at)
    """)


def downgrade() -> None:
    for table in [
        "notifications",
        "notification_preferences",
        "user_achievements",
        "workout_progress",
        "workouts",
    ]:
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")  # noqa: S608
