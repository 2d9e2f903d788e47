"""Tests for settings configuration."""

from __future__ import annotations

import pytest

from ankizen.infrastructure.config.settings import Settings, get_settings


class TestSettings:
    """Test Settings class."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in (
            "ANKIZEN_NEW_CARDS_PER_DAY",
            "ANKIZEN_LEECH_QUARANTINE_DAYS",
            "ANKIZEN_LEECH_EASE_PENALTY",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.new_cards_per_day == 20
        assert settings.max_reviews_per_day == 200
        assert settings.initial_good_interval == 3
        assert settings.initial_easy_interval == 5
        assert settings.lapse_again_interval == 1
        assert settings.leech_consecutive_threshold == 4
        assert settings.leech_total_threshold == 8
        assert settings.leech_mature_interval == 21
        assert settings.leech_quarantine_days == 180
        assert settings.leech_ease_penalty == 0.5

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ANKIZEN_NEW_CARDS_PER_DAY", "35")
        monkeypatch.setenv("ANKIZEN_SHUFFLE_STUDY_QUEUE", "true")
        monkeypatch.setenv("ANKIZEN_DATABASE_PATH", "/tmp/cards.db")
        monkeypatch.setenv("ANKIZEN_LEECH_EASE_PENALTY", "0.3")

        settings = Settings(_env_file=None)

        assert settings.new_cards_per_day == 35
        assert settings.shuffle_study_queue is True
        assert settings.database_path == "/tmp/cards.db"
        assert settings.leech_ease_penalty == 0.3

    def test_field_names_accepted(self) -> None:
        settings = Settings(_env_file=None, leech_quarantine_days=90)

        assert settings.leech_quarantine_days == 90

    def test_env_file(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ANKIZEN_MAX_REVIEWS_PER_DAY", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("ANKIZEN_MAX_REVIEWS_PER_DAY=80\nUNRELATED=1\n")

        settings = Settings(_env_file=env_file)

        assert settings.max_reviews_per_day == 80

    def test_get_settings(self) -> None:
        assert isinstance(get_settings(), Settings)
