"""Pytest configuration and fixtures for all tests."""

import asyncio
from pathlib import Path

import httpx
import pytest

from lmpilot.control.observation import IVehicleState
from lmpilot.core.logging_system import initialize_logging, shutdown_logging
from lmpilot.physics.vectors import Vector3


def configure_test_logging(log_dir: Path) -> None:
    """Send log output to log_dir, with the console handler off."""
    config = log_dir / "logging.yaml"
    config.write_text(
        f"log_dir: {log_dir.as_posix()}\n"
        "console:\n"
        "  enabled: false\n"
        "components:\n"
        "  ticker:\n"
        "    level: DEBUG\n",
        encoding="utf-8",
    )
    initialize_logging(config, use_platform_dir=False)


@pytest.fixture(scope="session", autouse=True)
def initialize_test_logging(tmp_path_factory):
    """Keep test runs from writing into the platform log directory."""
    configure_test_logging(tmp_path_factory.mktemp("logs"))

    yield

    shutdown_logging()


class StaticVehicle(IVehicleState):
    """Vehicle that reports a pose set by the test."""

    def __init__(self, position: Vector3 | None = None) -> None:
        self.position = position or Vector3.zero()
        self.forward = Vector3.forward()
        self.up = Vector3.up()

    def get_position(self) -> Vector3:
        return self.position

    def get_forward(self) -> Vector3:
        return self.forward

    def get_up(self) -> Vector3:
        return self.up


@pytest.fixture
def vehicle() -> StaticVehicle:
    """A stationary vehicle at the origin, nose along +Z."""
    return StaticVehicle()


def completion_response(content: str | None, status_code: int = 200) -> httpx.Response:
    """Build an OpenAI-style chat completion response."""
    return httpx.Response(
        status_code,
        json={
            "id": "chatcmpl-test",
            "object": "chat.completion",
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": content},
                    "finish_reason": "stop",
                }
            ],
        },
    )


async def hang_forever(request: httpx.Request) -> httpx.Response:
    """Mock handler that never answers on its own."""
    await asyncio.sleep(3600)
    return completion_response("{}")


@pytest.fixture
def make_completion():
    """Factory for chat completion responses."""
    return completion_response


@pytest.fixture
def hanging_handler():
    """Mock transport handler that blocks until cancelled."""
    return hang_forever


@pytest.fixture
def isolated_logging(tmp_path):
    """Let a test reconfigure logging, then restore the test configuration."""
    yield tmp_path

    shutdown_logging()
    restored = tmp_path / "restored"
    restored.mkdir(exist_ok=True)
    configure_test_logging(restored)
