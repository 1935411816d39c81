"""Workout stats aggregation tests."""

from datetime import date, datetime, timedelta, timezone

from fitquest.achievements.stats import (
    CompletedWorkout,
    compute_best_streak,
    compute_current_streak,
    compute_workout_stats,
)

TODAY = date(2026, 3, 10)


def days_before(*offsets: int) -> set[date]:
    return {TODAY - timedelta(days=o) for o in offsets}


def completion(workout_id: str, days_ago: int, duration: int = 600, difficulty: str | None = "beginner"):
    at = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc) - timedelta(days=days_ago)
    return CompletedWorkout(workout_id, at, duration, difficulty)


class TestCurrentStreak:
    def test_no_workouts(self):
        assert compute_current_streak(set(), TODAY) == 0

    def test_three_days_ending_today(self):
        assert compute_current_streak(days_before(0, 1, 2), TODAY) == 3

    def test_ending_yesterday_still_alive(self):
        assert compute_current_streak(days_before(1, 2, 3), TODAY) == 3

    def test_two_day_gap_breaks_streak(self):
        assert compute_current_streak(days_before(2, 3, 4), TODAY) == 0

    def test_gap_in_history_stops_count(self):
        assert compute_current_streak(days_before(0, 1, 3, 4, 5), TODAY) == 2


class TestBestStreak:
    def test_empty(self):
        assert compute_best_streak(set()) == 0

    def test_longest_run_in_history(self):
        assert compute_best_streak(days_before(0, 5, 6, 7, 8, 20, 21)) == 4


class TestComputeWorkoutStats:
    def test_empty_history_is_all_zero(self):
        stats = compute_workout_stats([], TODAY)
        assert stats.total_workouts == 0
        assert stats.current_streak_days == 0
        assert stats.unique_exercises_count == 0

    def test_aggregates(self):
        rows = [
            completion("w-1", 0, 1200, "advanced"),
            completion("w-1", 1, 600),
            completion("w-2", 2, 300, "advanced"),
            completion("w-3", 9, 900, "intermediate"),
        ]
        stats = compute_workout_stats(rows, TODAY)
        assert stats.total_workouts == 4
        assert stats.total_duration_seconds == 3000
        assert stats.current_streak_days == 3
        assert stats.unique_exercises_count == 3
        assert stats.advanced_difficulty_completions == 2
        assert stats.best_streak_days == 3

    def test_same_day_counts_once_for_streak(self):
        rows = [completion("w-1", 0), completion("w-2", 0), completion("w-3", 0)]
        assert compute_workout_stats(rows, TODAY).current_streak_days == 1

    def test_negative_durations_ignored(self):
        rows = [completion("w-1", 0, -50), completion("w-2", 0, 100)]
        assert compute_workout_stats(rows, TODAY).total_duration_seconds == 100

    def test_unknown_workout_difficulty_not_advanced(self):
        rows = [completion("gone", 0, difficulty=None)]
        assert compute_workout_stats(rows, TODAY).advanced_difficulty_completions == 0

    def test_days_use_utc(self):
        # 23:30 at UTC-5 on the 9th is 04:30 UTC on the 10th.
        local = timezone(timedelta(hours=-5))
        rows = [CompletedWorkout("w-1", datetime(2026, 3, 9, 23, 30, tzinfo=local), 600)]
        stats = compute_workout_stats(rows, date(2026, 3, 12))
        assert stats.current_streak_days == 0
        assert compute_workout_stats(rows, date(2026, 3, 11)).current_streak_days == 1
