"""Tests for settings loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError
from config.settings import MemoryConfig, Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("ASSISTANT_SESSION_DIR", "ASSISTANT_MODEL", "ASSISTANT_PROVIDER"):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    """Test defaults, YAML loading and environment overrides."""

    def test_memory_defaults(self):
        """Memory defaults match the documented values."""
        config = MemoryConfig()
        assert config.max_context_turns == 3
        assert config.max_context_tokens == 8000
        assert config.enable_diff_compression
        assert config.enable_summarization
        assert config.session_storage_path == Path(".assistant/sessions")
        assert config.session_max_age_days == 30

    def test_missing_file_gives_defaults(self, tmp_path):
        """A missing settings file is not an error."""
        settings = Settings.from_yaml(tmp_path / "missing.yaml")
        assert settings.memory == MemoryConfig()
        assert settings.default_provider == "openai"

    def test_partial_memory_section(self, tmp_path):
        """Keys absent from the file keep their defaults."""
        path = tmp_path / "assistant.yaml"
        path.write_text("memory:\n  max_context_turns: 10\ntemperature: 0.2\n")

        settings = Settings.from_yaml(path)

        assert settings.memory.max_context_turns == 10
        assert settings.memory.max_context_tokens == 8000
        assert settings.temperature == 0.2

    def test_bundled_example(self):
        """The shipped example file loads cleanly."""
        path = Path(__file__).resolve().parent.parent / "config" / "assistant.yaml"
        settings = Settings.from_yaml(path)
        assert settings.memory.session_cache_size == 32

    def test_environment_overrides(self, tmp_path, monkeypatch):
        """Environment variables win over file values."""
        monkeypatch.setenv("ASSISTANT_SESSION_DIR", str(tmp_path / "elsewhere"))
        monkeypatch.setenv("ASSISTANT_PROVIDER", "anthropic")
        monkeypatch.setenv("ASSISTANT_MODEL", "claude-test")
        path = tmp_path / "assistant.yaml"
        path.write_text("default_provider: openai\nmemory:\n  max_context_turns: 5\n")

        settings = Settings.from_yaml(path)

        assert settings.memory.session_storage_path == tmp_path / "elsewhere"
        assert settings.memory.max_context_turns == 5
        assert settings.default_provider == "anthropic"
        assert settings.default_model == "claude-test"

    def test_explicit_model_beats_environment(self, monkeypatch):
        """ASSISTANT_MODEL only fills in a missing model."""
        monkeypatch.setenv("ASSISTANT_MODEL", "from-env")
        assert Settings(default_model="explicit").default_model == "explicit"

    def test_invalid_values(self):
        """Out-of-range values are rejected."""
        with pytest.raises(ValidationError):
            MemoryConfig(max_context_turns=0)
        with pytest.raises(ValidationError):
            Settings(temperature=5)

    def test_non_mapping_document(self, tmp_path):
        """A YAML document that is not a mapping is rejected."""
        path = tmp_path / "assistant.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ValueError):
            Settings.from_yaml(path)
