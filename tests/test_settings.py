"""
Tests for engine settings loading.
"""

import logging

import pytest
from pydantic import ValidationError
from surveyflow.settings import DEFAULT_SETTINGS, EngineSettings, SettingsError, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SURVEYFLOW_SETTINGS", "SURVEYFLOW_MAX_QUESTIONS", "SURVEYFLOW_OVERALL_ROLLUP"):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    """Published limits."""

    def test_defaults(self):
        """Defaults match the product limits."""
        assert DEFAULT_SETTINGS.max_questions == 200
        assert DEFAULT_SETTINGS.weight_dominance_percent == 50.0
        assert DEFAULT_SETTINGS.weight_variance_ratio == 5.0
        assert DEFAULT_SETTINGS.min_scorable_for_weight_checks == 3
        assert DEFAULT_SETTINGS.overall_rollup == "mean"

    def test_load_without_sources(self):
        """No file and no environment gives the defaults."""
        assert load_settings() == DEFAULT_SETTINGS

    def test_frozen(self):
        """Settings are immutable."""
        with pytest.raises(ValidationError):
            DEFAULT_SETTINGS.max_questions = 5


class TestLoading:
    """YAML file and environment overrides."""

    def test_yaml_file(self, tmp_path):
        """Values come from the YAML file."""
        path = tmp_path / "settings.yaml"
        path.write_text("max_questions: 50\noverall_rollup: weighted\n", encoding="utf-8")
        settings = load_settings(path)
        assert settings.max_questions == 50
        assert settings.overall_rollup == "weighted"

    def test_empty_yaml_file(self, tmp_path):
        """An empty file means defaults."""
        path = tmp_path / "settings.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(path) == DEFAULT_SETTINGS

    def test_env_path(self, tmp_path, monkeypatch):
        """SURVEYFLOW_SETTINGS names the file."""
        path = tmp_path / "settings.yaml"
        path.write_text("text_preview_length: 20\n", encoding="utf-8")
        monkeypatch.setenv("SURVEYFLOW_SETTINGS", str(path))
        assert load_settings().text_preview_length == 20

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        """Environment overrides win over the file."""
        path = tmp_path / "settings.yaml"
        path.write_text("max_questions: 50\n", encoding="utf-8")
        monkeypatch.setenv("SURVEYFLOW_MAX_QUESTIONS", "75")
        monkeypatch.setenv("SURVEYFLOW_OVERALL_ROLLUP", "none")
        settings = load_settings(path)
        assert settings.max_questions == 75
        assert settings.overall_rollup == "none"

    def test_missing_env_file_is_ignored(self, tmp_path, monkeypatch, caplog):
        """A missing file from the environment is logged, not fatal."""
        monkeypatch.setenv("SURVEYFLOW_SETTINGS", str(tmp_path / "missing.yaml"))
        with caplog.at_level(logging.WARNING, logger="surveyflow.settings"):
            settings = load_settings()
        assert settings == DEFAULT_SETTINGS
        assert "not found" in caplog.text


class TestErrors:
    """Bad settings raise SettingsError."""

    def test_missing_explicit_file(self, tmp_path):
        """An explicitly requested file must exist."""
        with pytest.raises(SettingsError):
            load_settings(tmp_path / "missing.yaml")

    def test_not_a_mapping(self, tmp_path):
        """The file must hold a mapping."""
        path = tmp_path / "settings.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(SettingsError):
            load_settings(path)

    def test_unknown_key(self, tmp_path):
        """Unknown keys are rejected."""
        path = tmp_path / "settings.yaml"
        path.write_text("max_qestions: 10\n", encoding="utf-8")
        with pytest.raises(SettingsError):
            load_settings(path)

    def test_unknown_rollup(self, monkeypatch):
        """Rollup names must be registered."""
        monkeypatch.setenv("SURVEYFLOW_OVERALL_ROLLUP", "median")
        with pytest.raises(SettingsError):
            load_settings()

    def test_out_of_range(self):
        """Range constraints are enforced on direct construction too."""
        with pytest.raises(ValueError):
            EngineSettings(max_questions=0)

    def test_bad_env_number(self, monkeypatch):
        """Non-numeric overrides are rejected."""
        monkeypatch.setenv("SURVEYFLOW_MAX_QUESTIONS", "lots")
        with pytest.raises(SettingsError):
            load_settings()
