"""
Unit Tests for ConfigManager
============================

Purpose
-------
Test layered configuration: packaged YAML defaults, override files and
in-memory overrides.
"""

import pytest

from tutorboard.core.config.manager import ConfigManager
from tutorboard.core.exceptions import ConfigurationError


@pytest.mark.unit
class TestConfigManager:
    """Test configuration reads and overrides."""

    def test_packaged_defaults(self):
        steps = ConfigManager.get("onboarding.steps")

        assert [step["id"] for step in steps] == [
            "welcome",
            "profile_setup",
            "best_practices",
            "ai_tools_intro",
            "first_student_guide",
        ]
        assert ConfigManager.get("onboarding.minutes_per_step") == 5
        assert ConfigManager.get("achievements.tiers.sessions_count") == [10, 50, 100, 500]

    def test_missing_key_returns_default(self):
        assert ConfigManager.get("does.not.exist", "fallback") == "fallback"

    def test_override_wins(self):
        ConfigManager.set_override("onboarding.minutes_per_step", 10)

        assert ConfigManager.get("onboarding.minutes_per_step") == 10

    def test_clear_overrides(self):
        ConfigManager.set_override("onboarding.minutes_per_step", 10)
        ConfigManager.clear_overrides()

        assert ConfigManager.get("onboarding.minutes_per_step") == 5

    def test_reads_are_copies(self):
        steps = ConfigManager.get("onboarding.steps")
        steps.clear()

        assert len(ConfigManager.get("onboarding.steps")) == 5

    def test_validator_rejects_override(self):
        def positive(value):
            if value <= 0:
                raise ValueError("must be positive")
            return value

        ConfigManager.register_validator("onboarding.minutes_per_step", positive)

        with pytest.raises(ConfigurationError):
            ConfigManager.set_override("onboarding.minutes_per_step", 0)
        assert ConfigManager.get("onboarding.minutes_per_step") == 5

    def test_yaml_override_directory(self, tmp_path):
        (tmp_path / "onboarding.yaml").write_text(
            "onboarding:\n  minutes_per_step: 7\n", encoding="utf-8"
        )

        ConfigManager.initialize(tmp_path)

        assert ConfigManager.get("onboarding.minutes_per_step") == 7
        assert len(ConfigManager.get("onboarding.steps")) == 5

    def test_yaml_must_be_mapping(self, tmp_path):
        (tmp_path / "broken.yaml").write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            ConfigManager.initialize(tmp_path)
