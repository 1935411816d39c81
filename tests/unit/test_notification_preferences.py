"""Preference gating tests — pure, no database."""

import pytest
from pydantic import ValidationError

from fitquest.notifications.preferences import (
    PREFERENCE_FIELDS,
    TYPE_PREFERENCE,
    VALID_TYPES,
    default_preferences,
    should_deliver,
)
from fitquest.notifications.schemas import NotificationPreferences, UpdatePreferencesRequest


class TestDefaults:
    def test_all_gates_on(self):
        prefs = default_preferences("u-1")
        assert prefs.user_id == "u-1"
        assert all(getattr(prefs, f) is True for f in PREFERENCE_FIELDS)

    def test_preferences_are_immutable(self):
        prefs = default_preferences("u-1")
        with pytest.raises(ValidationError):
            prefs.streak_notifications = False


class TestShouldDeliver:
    def test_every_type_maps_to_a_field(self):
        assert set(TYPE_PREFERENCE.values()) == set(PREFERENCE_FIELDS)
        assert VALID_TYPES == {"achievement", "friend_request", "friend_activity", "streak", "milestone"}

    def test_defaults_deliver_everything(self):
        prefs = default_preferences("u-1")
        assert all(should_deliver(prefs, t) for t in VALID_TYPES)

    def test_disabled_type_suppressed_others_unaffected(self):
        prefs = NotificationPreferences(user_id="u-1", achievement_notifications=False)
        assert should_deliver(prefs, "achievement") is False
        assert should_deliver(prefs, "streak") is True
        assert should_deliver(prefs, "friend_request") is True


class TestUpdateRequest:
    def test_omitted_fields_excluded(self):
        body = UpdatePreferencesRequest(streak_notifications=False)
        assert body.model_dump(exclude_none=True) == {"streak_notifications": False}

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            UpdatePreferencesRequest(email_notifications=False)
