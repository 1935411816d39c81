"""Pydantic response models for achievement endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class AchievementDefinitionResponse(BaseModel):
    id: str
    name: str
    description: str
    category: str
    requirement: int
    reward_points: int


class AllAchievementsResponse(BaseModel):
    achievements: list[AchievementDefinitionResponse]


class EarnedAchievementResponse(AchievementDefinitionResponse):
    earned_at: datetime


class UnearnedAchievementResponse(AchievementDefinitionResponse):
    progress: float = 0.0


class WorkoutStatsResponse(BaseModel):
    total_workouts: int
    total_duration_seconds: int
    current_streak_days: int
    best_streak_days: int
    unique_exercises_count: int
    advanced_difficulty_completions: int


class AchievementStatusResponse(BaseModel):
    earned: list[EarnedAchievementResponse]
    unearned: list[UnearnedAchievementResponse]
    total_points: int
    stats: WorkoutStatsResponse


class PointsResponse(BaseModel):
    total_points: int


class EvaluateResponse(BaseModel):
    new_achievements: list[AchievementDefinitionResponse]
    total_points: int


# --- Workouts ---


class CompleteWorkoutRequest(BaseModel):
    duration_seconds: int = Field(..., ge=0)
    completed_at: datetime | None = None
    rating: int | None = Field(None, ge=1, le=5)
    notes: str | None = Field(None, max_length=2000)


class CompleteWorkoutResponse(BaseModel):
    progress_id: str
    workout_id: str
    completed_at: datetime
    new_achievements: list[AchievementDefinitionResponse] = []
