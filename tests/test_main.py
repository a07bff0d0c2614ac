"""Tests for the command line entry point."""

import asyncio

import httpx
import pytest

from lmpilot.core.config import ConfigLoader
from lmpilot.llm.client import ChatClient
from lmpilot.main import LMPilot, load_config, main, parse_args


class TestArgs:
    """Tests for argument parsing and config overrides."""

    def test_defaults(self) -> None:
        """Test that no arguments leaves everything unset."""
        args = parse_args([])
        assert args.config is None
        assert args.model is None
        assert args.duration is None
        assert args.chat is None
        assert args.log_raw_reply is False

    def test_overrides_applied(self, tmp_path) -> None:
        """Test that CLI values override the config file."""
        path = tmp_path / "pilot.yaml"
        path.write_text("model:\n  id: from-file\nendpoint:\n  base_url: http://file/v1\n")

        config = load_config(
            parse_args(["--config", str(path), "--model", "from-cli", "--log-raw-reply"])
        )

        assert config.get("model.id") == "from-cli"
        assert config.get("endpoint.base_url") == "http://file/v1"
        assert config.get("timing.log_raw_reply") is True


class TestLMPilot:
    """Tests for the application wiring."""

    def test_run_applies_model_commands(self, make_completion) -> None:
        """Test that a short run moves the plane under the model's command."""
        config = ConfigLoader(
            {
                "model": {"id": "pilot-7b"},
                "timing": {"tick_interval": 0.05},
                "simulation": {"physics_hz": 100, "target_fps": 100},
            }
        )
        app = LMPilot(config)
        app.client = ChatClient(
            transport=httpx.MockTransport(lambda r: make_completion('{"throttle": 1.0}'))
        )
        app.ticker.client = app.client

        asyncio.run(app.run(duration=0.3))

        assert app.slot.current.throttle == 1.0
        assert app.plane.get_position().z > 0.0
        assert not app.ticker.is_running()

    def test_chat_once(self, make_completion) -> None:
        """Test the one-shot chat path."""
        app = LMPilot(ConfigLoader({"model": {"id": "pilot-7b"}}))
        app.client = ChatClient(transport=httpx.MockTransport(lambda r: make_completion("Hello.")))

        assert asyncio.run(app.chat_once("Say hello")) == "Hello."


def test_main_reports_fatal_errors(tmp_path) -> None:
    """Test that configuration errors give exit code 1."""
    path = tmp_path / "bad.yaml"
    path.write_text("model:\n  max_tokens: 0\n")
    assert main(["--config", str(path), "--duration", "0"]) == 1


def test_main_missing_config(tmp_path) -> None:
    """Test that a missing config file gives exit code 1."""
    assert main(["--config", str(tmp_path / "missing.yaml")]) == 1


@pytest.fixture(autouse=True)
def _restore_logging(isolated_logging, monkeypatch):
    """main() reconfigures logging; keep its files out of the real home."""
    monkeypatch.setenv("HOME", str(isolated_logging))
    yield
