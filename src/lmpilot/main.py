"""LMPilot - language-model actuator loop for a kinematic aircraft.

Main entry point. Loads configuration, wires the chat client, command slot,
ticker and demo plane together, and runs the simulation loop.

Typical usage:
    python -m lmpilot.main --model qwen2.5-7b-instruct --duration 30
    python -m lmpilot.main --config config/pilot.yaml --log-raw-reply
    python -m lmpilot.main --chat "Say hello in one sentence."
"""

import argparse
import asyncio
import sys

from lmpilot.control.actuator import CommandPublishedEvent, CommandSlot
from lmpilot.control.ticker import ActuatorTicker, TickerSettings
from lmpilot.core.config import ConfigLoader
from lmpilot.core.event_bus import EventBus
from lmpilot.core.game_loop import SimulationLoop
from lmpilot.core.logging_system import get_logger, initialize_logging, shutdown_logging
from lmpilot.core.resource_path import get_config_path
from lmpilot.llm.client import ChatClient, ChatMessage, EndpointConfig
from lmpilot.sim.kinematic_plane import KinematicPlane

logger = get_logger(__name__)


def load_config(args: argparse.Namespace) -> ConfigLoader:
    """Load the pilot configuration and apply command line overrides.

    Args:
        args: Parsed command line arguments.

    Returns:
        Configuration with overrides applied.
    """
    if args.config:
        config = ConfigLoader.load(args.config)
    elif get_config_path("pilot.yaml").exists():
        config = ConfigLoader.load(get_config_path("pilot.yaml"))
    else:
        config = ConfigLoader()

    overrides = {
        "endpoint.base_url": args.base_url,
        "endpoint.api_key": args.api_key,
        "model.id": args.model,
    }
    for key, value in overrides.items():
        if value is not None:
            config.set(key, value)
    if args.log_raw_reply:
        config.set("timing.log_raw_reply", True)

    return config


class LMPilot:
    """Application wiring for the demo host.

    Owns the kinematic plane and its simulation loop (the host side) and the
    ticker that feeds the plane's command slot (the control side).
    """

    def __init__(self, config: ConfigLoader) -> None:
        """Initialize the application.

        Args:
            config: Loaded configuration.
        """
        self.settings = TickerSettings.from_config(config)
        self.client = ChatClient(EndpointConfig.from_config(config))

        self.event_bus = EventBus()
        self.event_bus.subscribe(CommandPublishedEvent, self._on_command)
        self.slot = CommandSlot(self.event_bus)
        self.plane = KinematicPlane()

        self.ticker = ActuatorTicker(self.client, self.plane, self.slot, self.settings)
        self.sim_loop = SimulationLoop(
            self._step,
            physics_hz=int(config.get("simulation.physics_hz", 60)),
            target_fps=int(config.get("simulation.target_fps", 60)),
        )

    def _step(self, dt: float) -> None:
        self.plane.step(dt, self.slot.current)

    def _on_command(self, event: CommandPublishedEvent) -> None:
        logger.info("Applied %s at %s", event.command, self.plane.get_position())

    async def run(self, duration: float | None = None) -> None:
        """Run the simulation, with the ticker if auto_start is set.

        Args:
            duration: Seconds to run, or None to run until interrupted.
        """
        if self.settings.auto_start:
            self.ticker.start()

        try:
            await self.sim_loop.run(duration)
        finally:
            self.ticker.stop()
            await self.ticker.join()
            logger.info(
                "Ticks: %d, published: %d, failures: %s",
                self.ticker.stats.ticks,
                self.ticker.stats.successes,
                self.ticker.stats.failures or "none",
            )

    async def chat_once(self, prompt: str) -> str:
        """Send a single prompt and return the reply.

        Args:
            prompt: User message.

        Returns:
            Model reply text.
        """
        return await self.client.chat(
            self.settings.model,
            [
                ChatMessage("system", "You are a helpful assistant."),
                ChatMessage("user", prompt),
            ],
            temperature=self.settings.temperature,
            max_tokens=200,
            timeout=self.settings.request_timeout if self.settings.request_timeout > 0 else None,
        )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description="LMPilot - language-model actuator loop")

    parser.add_argument("--config", type=str, help="Path to pilot configuration YAML")
    parser.add_argument("--base-url", type=str, help="Chat endpoint root (e.g. http://localhost:1234/v1)")
    parser.add_argument("--api-key", type=str, help="Bearer credential for the endpoint")
    parser.add_argument("--model", type=str, help="Model identifier")
    parser.add_argument(
        "--duration",
        type=float,
        help="Seconds to run the simulation (default: until interrupted)",
    )
    parser.add_argument(
        "--log-raw-reply",
        action="store_true",
        help="Log every raw model reply",
    )
    parser.add_argument(
        "--chat",
        type=str,
        metavar="PROMPT",
        help="Send one prompt, print the reply and exit",
    )

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success).
    """
    args = parse_args(argv)

    logging_config = get_config_path("logging.yaml")
    initialize_logging(logging_config if logging_config.exists() else None)

    try:
        app = LMPilot(load_config(args))
        if args.chat:
            print(asyncio.run(app.chat_once(args.chat)))
        else:
            asyncio.run(app.run(args.duration))
        return 0
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.exception("Fatal error: %s", e)
        return 1
    finally:
        shutdown_logging()


if __name__ == "__main__":
    sys.exit(main())
