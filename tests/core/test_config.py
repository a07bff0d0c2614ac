"""Tests for the YAML configuration loader."""

from pathlib import Path

import pytest

from lmpilot.core.config import ConfigError, ConfigLoader
from lmpilot.core.resource_path import get_config_path


class TestConfigLoader:
    """Test suite for ConfigLoader."""

    def test_load_and_get(self, tmp_path: Path) -> None:
        """Test loading a file and reading nested keys."""
        path = tmp_path / "pilot.yaml"
        path.write_text("endpoint:\n  base_url: http://x/v1\ntiming:\n  tick_interval: 0.25\n")

        config = ConfigLoader.load(path)

        assert config.get("endpoint.base_url") == "http://x/v1"
        assert config.get("timing.tick_interval") == 0.25

    def test_get_default(self) -> None:
        """Test defaults for missing keys and non-section parents."""
        config = ConfigLoader({"model": {"id": "m"}})
        assert config.get("model.temperature", default=0.4) == 0.4
        assert config.get("model.id.deeper", default="x") == "x"
        assert config.get("missing") is None

    def test_empty_file(self, tmp_path: Path) -> None:
        """Test that an empty file yields an empty configuration."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert ConfigLoader.load(path).to_dict() == {}

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing file raises ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            ConfigLoader.load(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Test that invalid YAML raises ConfigError."""
        path = tmp_path / "bad.yaml"
        path.write_text("model: [unclosed\n")
        with pytest.raises(ConfigError, match="Failed to load"):
            ConfigLoader.load(path)

    def test_non_mapping_root(self, tmp_path: Path) -> None:
        """Test that a list at the root is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            ConfigLoader.load(path)

    def test_set_creates_sections(self) -> None:
        """Test that set() creates intermediate sections."""
        config = ConfigLoader()
        config.set("model.id", "qwen")
        config.set("endpoint", "not-a-section")
        config.set("endpoint.api_key", "k")

        assert config.get("model.id") == "qwen"
        assert config.get("endpoint.api_key") == "k"

    def test_shipped_pilot_config(self) -> None:
        """Test that the bundled pilot.yaml loads with the expected sections."""
        config = ConfigLoader.load(get_config_path("pilot.yaml"))
        assert config.get("endpoint.base_url") == "http://localhost:1234/v1"
        assert config.get("timing.request_timeout") == 8.0
        assert "wheelBrakes" in config.get("model.system_prompt")
