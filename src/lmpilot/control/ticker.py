"""Periodic loop that asks the model for actuator commands.

The ticker runs as its own asyncio task, independent of any frame loop. Each
tick samples the vehicle, sends one observation to the chat endpoint, and
publishes the parsed command to the command slot. A failing tick is logged
and skipped; only stop() ends the loop.

Typical usage example:
    from lmpilot.control.ticker import ActuatorTicker, TickerSettings

    ticker = ActuatorTicker(client, plane, slot, TickerSettings(model="qwen2.5-7b"))
    ticker.start()
    ...
    ticker.stop()
    await ticker.join()
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from lmpilot.control.actuator import ActuatorCommand, CommandSlot, CommandSource
from lmpilot.control.observation import (
    IVehicleState,
    Observation,
    VelocityEstimator,
    build_observation,
)
from lmpilot.control.parser import extract_json_object, parse_command
from lmpilot.core.config import ConfigLoader
from lmpilot.core.errors import ConfigurationError, ExtractionError, PilotError, TransportError
from lmpilot.core.event_bus import Event, EventBus
from lmpilot.core.logging_system import LoggerMixin
from lmpilot.llm.client import ChatClient, ChatMessage

# Floor on the wait between ticks, in seconds
MIN_TICK_INTERVAL = 0.05

DEFAULT_SYSTEM_PROMPT = (
    "You control an aircraft. Respond only with a JSON object containing the fields "
    "aileron (-1..1), elevator (-1..1), rudder (-1..1), throttle (0..1), airbrake (0..1), "
    "wheelBrakes (0..1)."
)

USER_PROMPT_TEMPLATE = "Observation:\n{observation}\n\nReturn only the JSON with the actuator values."


class TickerState(Enum):
    """Lifecycle of the ticker."""

    IDLE = "idle"
    RUNNING = "running"
    REQUESTING = "requesting"


@dataclass
class TickFailedEvent(Event):
    """Published when a tick ends without a new command.

    Attributes:
        error: What went wrong.
    """

    error: Exception


@dataclass(frozen=True)
class TickerSettings:
    """Model and timing settings, fixed for the life of a run.

    Attributes:
        model: Model identifier. The ticker refuses to start when blank.
        system_prompt: System message sent with every observation.
        temperature: Sampling temperature.
        max_tokens: Reply length limit (must be positive).
        tick_interval: Seconds between ticks (floored at MIN_TICK_INTERVAL).
        request_timeout: Seconds before a request is aborted; <= 0 disables.
        auto_start: Whether the host should start the ticker immediately.
        log_raw_reply: Log every raw model reply at info level.
    """

    model: str = ""
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    temperature: float = 0.4
    max_tokens: int = 120
    tick_interval: float = 0.5
    request_timeout: float = 8.0
    auto_start: bool = True
    log_raw_reply: bool = False

    def __post_init__(self) -> None:
        if self.max_tokens <= 0:
            raise ConfigurationError(f"max_tokens must be positive, got {self.max_tokens}")

    @classmethod
    def from_config(cls, config: ConfigLoader) -> "TickerSettings":
        """Build from the 'model' and 'timing' sections of a configuration.

        Args:
            config: Loaded configuration.

        Returns:
            TickerSettings with defaults for missing keys.

        Raises:
            ConfigurationError: If a value has the wrong type or range.
        """
        try:
            return cls(
                model=str(config.get("model.id", "") or ""),
                system_prompt=str(config.get("model.system_prompt", DEFAULT_SYSTEM_PROMPT)),
                temperature=float(config.get("model.temperature", 0.4)),
                max_tokens=int(config.get("model.max_tokens", 120)),
                tick_interval=float(config.get("timing.tick_interval", 0.5)),
                request_timeout=float(config.get("timing.request_timeout", 8.0)),
                auto_start=_flag(config, "timing.auto_start", True),
                log_raw_reply=_flag(config, "timing.log_raw_reply", False),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid ticker settings: {e}") from e


def _flag(config: ConfigLoader, key: str, default: bool) -> bool:
    # YAML gives real booleans; a quoted "false" would otherwise read as True
    value = config.get(key, default)
    if not isinstance(value, bool):
        raise ConfigurationError(f"{key} must be true or false, got {value!r}")
    return value


@dataclass
class TickerStats:
    """Counters for completed ticks."""

    ticks: int = 0
    successes: int = 0
    failures: dict[str, int] = field(default_factory=dict)

    def record_failure(self, error: Exception) -> None:
        name = type(error).__name__
        self.failures[name] = self.failures.get(name, 0) + 1

    @property
    def failure_count(self) -> int:
        return sum(self.failures.values())


class ActuatorTicker(LoggerMixin):
    """Polls the chat endpoint for commands at a fixed cadence.

    Ticks never overlap: the next wait starts only after the previous
    request, parse and publish have settled.

    Examples:
        >>> ticker = ActuatorTicker(client, plane, slot, settings)
        >>> ticker.start()
        True
        >>> ticker.state
        <TickerState.RUNNING: 'running'>
    """

    def __init__(
        self,
        client: ChatClient,
        vehicle: IVehicleState,
        slot: CommandSlot,
        settings: TickerSettings,
        event_bus: EventBus | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the ticker in the IDLE state.

        Args:
            client: Chat client used for every request.
            vehicle: Source of position and orientation.
            slot: Where parsed commands are published.
            settings: Model and timing settings.
            event_bus: Optional bus for TickFailedEvent notifications.
            clock: Monotonic clock used for velocity estimation.
        """
        self.attach_logger("ticker")
        self.client = client
        self.vehicle = vehicle
        self.slot = slot
        self.settings = settings
        self.event_bus = event_bus
        self.stats = TickerStats()

        self._estimator = VelocityEstimator(clock)
        self._state = TickerState.IDLE
        self._task: asyncio.Task[None] | None = None
        self._stopping: asyncio.Event | None = None

    @property
    def state(self) -> TickerState:
        return self._state

    def is_running(self) -> bool:
        """True from start() until stop()."""
        return self._state is not TickerState.IDLE

    def start(self) -> bool:
        """Start the tick loop on the running event loop.

        The first tick fires immediately.

        Returns:
            True if the loop was started, False if it was already running or
            the model identifier is blank.
        """
        if self.is_running():
            return False

        if not self.settings.model.strip():
            self._log.warning("Model is empty, not starting")
            return False

        self._estimator.reset()
        self._state = TickerState.RUNNING
        # One flag per run; a restarted ticker never clears an old task's flag
        self._stopping = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(
            self._run(self._stopping), name="actuator-ticker"
        )
        self._log.info(
            "Ticker started (model=%s, interval=%.2fs, timeout=%.1fs)",
            self.settings.model,
            self.settings.tick_interval,
            self.settings.request_timeout,
        )
        return True

    def stop(self) -> None:
        """Cancel the loop, including any in-flight request or wait.

        Safe to call repeatedly. Use join() to wait for the task to finish.
        A reply that arrives after stop() is discarded, even if the
        cancellation itself was lost.
        """
        if self._stopping is not None:
            self._stopping.set()
        if self._task is not None and not self._task.done():
            self._task.cancel()
            self._log.info("Ticker stop requested")
        self._state = TickerState.IDLE

    async def join(self) -> None:
        """Wait until the loop task has finished."""
        if self._task is not None:
            await asyncio.wait([self._task])

    async def _run(self, stopping: asyncio.Event) -> None:
        first = True
        try:
            while not stopping.is_set():
                if not first:
                    await asyncio.sleep(max(MIN_TICK_INTERVAL, self.settings.tick_interval))
                    if stopping.is_set():
                        break
                first = False
                await self._tick(stopping)
        finally:
            if self._task is asyncio.current_task():
                self._state = TickerState.IDLE
            self._log.info(
                "Ticker stopped after %d ticks (%d ok, %d failed)",
                self.stats.ticks,
                self.stats.successes,
                self.stats.failure_count,
            )

    async def tick(self) -> ActuatorCommand | None:
        """Run one request/parse/publish cycle while the loop is stopped.

        Failures are logged, counted and published as TickFailedEvent; the
        slot keeps its previous command. Cancellation propagates.

        Returns:
            The published command, or None if the tick failed.

        Raises:
            RuntimeError: If the loop task is still active.
        """
        if self._task is not None and not self._task.done():
            raise RuntimeError("Ticker loop is active, a manual tick would overlap it")
        return await self._tick(asyncio.Event())

    async def _tick(self, stopping: asyncio.Event) -> ActuatorCommand | None:
        self.stats.ticks += 1
        try:
            command = await self._query_and_apply(stopping)
        except PilotError as e:
            self._report_failure(e)
            return None
        except Exception as e:  # pylint: disable=broad-exception-caught
            self._log.error("Unexpected error in tick %d: %s", self.stats.ticks, e, exc_info=True)
            self._report_failure(e)
            return None

        if command is not None:
            self.stats.successes += 1
        return command

    def build_messages(self, observation: Observation) -> list[ChatMessage]:
        """Build the system and user messages for one observation."""
        return [
            ChatMessage("system", self.settings.system_prompt),
            ChatMessage("user", USER_PROMPT_TEMPLATE.format(observation=observation.to_json())),
        ]

    async def _query_and_apply(self, stopping: asyncio.Event) -> ActuatorCommand | None:
        observation = build_observation(self.vehicle, self._estimator, self.slot.current)
        messages = self.build_messages(observation)
        timeout = self.settings.request_timeout if self.settings.request_timeout > 0 else None

        previous_state = self._state
        self._state = TickerState.REQUESTING
        try:
            reply = await self.client.chat(
                self.settings.model,
                messages,
                temperature=self.settings.temperature,
                max_tokens=self.settings.max_tokens,
                timeout=timeout,
            )
        finally:
            # stop() during the request already moved us to IDLE
            if self._state is TickerState.REQUESTING:
                self._state = previous_state

        # A cancel racing the response can be swallowed by wait_for
        if stopping.is_set():
            self._log.debug("Discarding reply received after stop")
            return None

        if self.settings.log_raw_reply:
            self._log.info("Model reply: %s", reply)

        candidate = extract_json_object(reply)
        if not candidate:
            raise ExtractionError("Reply did not contain a JSON object", text=reply)

        command = parse_command(candidate)
        self.slot.publish(command, CommandSource.MODEL)
        self._log.debug("Tick %d published %s", self.stats.ticks, command)
        return command

    def _report_failure(self, error: Exception) -> None:
        self.stats.record_failure(error)

        if isinstance(error, TransportError) and error.status_code is not None:
            self._log.warning(
                "Tick %d failed (%s %d): %s\n%s",
                self.stats.ticks,
                type(error).__name__,
                error.status_code,
                error,
                error.body,
            )
        else:
            self._log.warning("Tick %d failed (%s): %s", self.stats.ticks, type(error).__name__, error)

        if self.event_bus is not None:
            try:
                self.event_bus.publish(TickFailedEvent(error=error))
            except Exception:  # pylint: disable=broad-exception-caught
                self._log.exception("TickFailedEvent subscriber raised")
