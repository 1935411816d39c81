"""Achievement evaluator tests — pure, no database."""

from fitquest.achievements.catalog import load_catalog
from fitquest.achievements.evaluator import evaluate, progress_towards
from fitquest.achievements.stats import WorkoutStats


def ids(definitions):
    return [d.id for d in definitions]


class TestEvaluate:
    def test_streak_3_newly_earned(self, catalog):
        stats = WorkoutStats(current_streak_days=3)
        assert ids(evaluate(catalog, stats, set())) == ["streak-3"]

    def test_already_earned_skipped(self, catalog):
        stats = WorkoutStats(current_streak_days=3)
        assert evaluate(catalog, stats, {"streak-3"}) == []

    def test_all_zero_stats_yield_nothing(self, catalog):
        assert evaluate(catalog, WorkoutStats(), set()) == []

    def test_total_workouts_alone_earns_nothing(self, catalog):
        assert evaluate(catalog, WorkoutStats(total_workouts=500), set()) == []

    def test_each_category_reads_its_stat(self, catalog):
        assert ids(evaluate(catalog, WorkoutStats(total_duration_seconds=3600), set())) == ["duration-60"]
        assert ids(evaluate(catalog, WorkoutStats(advanced_difficulty_completions=1), set())) == ["difficulty-1"]
        assert ids(evaluate(catalog, WorkoutStats(unique_exercises_count=3), set())) == ["variety-3"]

    def test_one_below_threshold_not_earned(self, catalog):
        assert evaluate(catalog, WorkoutStats(current_streak_days=2, total_duration_seconds=3599), set()) == []

    def test_results_in_catalog_order(self, catalog):
        stats = WorkoutStats(
            current_streak_days=7,
            total_duration_seconds=5 * 3600,
            advanced_difficulty_completions=5,
            unique_exercises_count=10,
        )
        assert ids(evaluate(catalog, stats, set())) == [
            "streak-3", "streak-7",
            "duration-60", "duration-300",
            "difficulty-1", "difficulty-5",
            "variety-3", "variety-10",
        ]

    def test_idempotent_for_same_inputs(self, catalog):
        stats = WorkoutStats(current_streak_days=14, unique_exercises_count=3)
        earned = {"streak-3"}
        assert evaluate(catalog, stats, earned) == evaluate(catalog, stats, earned)

    def test_accepts_any_collection_of_ids(self, catalog):
        stats = WorkoutStats(current_streak_days=7)
        assert ids(evaluate(catalog, stats, ["streak-3"])) == ["streak-7"]

    def test_streak_reset_does_not_earn(self, catalog):
        stats = WorkoutStats(total_workouts=40, current_streak_days=0, best_streak_days=30)
        assert [d for d in evaluate(catalog, stats, set()) if d.category == "streak"] == []


class TestMonotonicity:
    def test_more_stats_never_earn_fewer(self, catalog):
        pairs = [
            (WorkoutStats(), WorkoutStats(current_streak_days=3)),
            (WorkoutStats(current_streak_days=3), WorkoutStats(current_streak_days=30, unique_exercises_count=3)),
            (
                WorkoutStats(total_duration_seconds=3600, advanced_difficulty_completions=1),
                WorkoutStats(total_duration_seconds=72000, advanced_difficulty_completions=15, unique_exercises_count=20),
            ),
        ]
        for already in (set(), {"streak-3"}, {"duration-60", "variety-3"}):
            for low, high in pairs:
                assert set(ids(evaluate(catalog, low, already))) <= set(ids(evaluate(catalog, high, already)))


class TestProgress:
    def test_progress_capped_at_one(self, catalog):
        progress = progress_towards(catalog, WorkoutStats(current_streak_days=10))
        assert progress["streak-3"] == 1.0
        assert progress["streak-7"] == 1.0
        assert progress["streak-14"] == 10 / 14
        assert progress["variety-3"] == 0.0

    def test_progress_covers_every_achievement(self):
        catalog = load_catalog()
        assert set(progress_towards(catalog, WorkoutStats())) == {d.id for d in catalog}
