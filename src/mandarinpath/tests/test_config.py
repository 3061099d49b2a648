"""Tests for configuration settings."""
import os

import pytest

from mandarinpath.config import Settings, settings


def test_base_directories_exist():
    """Test that all required directories exist."""
    from mandarinpath.config import (
        DATA_DIR,
        MEDIA_DIR,
        PRONUNCIATIONS_DIR,
    )

    assert DATA_DIR.exists()
    assert MEDIA_DIR.exists()
    assert PRONUNCIATIONS_DIR.exists()


def test_settings_defaults():
    """Test default settings values."""
    assert settings.learning.strength_max == 100
    assert settings.learning.correct_step == 10
    assert settings.learning.incorrect_step == 5
    assert settings.learning.weak_word_threshold == 60
    assert settings.learning.passing_score == 70
    assert settings.learning.character_passing_score == 80
    assert settings.learning.recent_activity_limit == 10
    assert settings.speech.fallback_score == 75


def test_test_environment_is_used():
    assert settings.api.base_url == "http://testserver/api"
    assert settings.database.url == os.environ["DATABASE_URL"]


def test_validate_rejects_bad_url():
    test_settings = Settings()
    test_settings.api.base_url = "localhost:3001"
    with pytest.raises(ValueError, match="API_URL"):
        test_settings.validate()


def test_validate_rejects_bad_fallback_score():
    test_settings = Settings()
    test_settings.speech.fallback_score = 120
    with pytest.raises(ValueError, match="SPEECH_FALLBACK_SCORE"):
        test_settings.validate()


def test_validate_rejects_empty_task_size():
    test_settings = Settings()
    test_settings.learning.words_per_task = 0
    with pytest.raises(ValueError, match="WORDS_PER_TASK"):
        test_settings.validate()


if __name__ == "__main__":
    pytest.main([__file__])
