"""Actuator command model and the current-command slot.

An ActuatorCommand is the six-value control vector the model produces and
the motion integrator consumes. Every instance is clamped on construction, so
an out-of-range command cannot exist.

Typical usage example:
    from lmpilot.control.actuator import ActuatorCommand, CommandSlot, CommandSource

    slot = CommandSlot()
    slot.publish(ActuatorCommand(throttle=0.8, elevator=0.1), CommandSource.MODEL)
    current = slot.current
"""

import json
import logging
import math
import threading
from dataclasses import asdict, dataclass, replace
from enum import Enum

from lmpilot.core.event_bus import Event, EventBus

logger = logging.getLogger(__name__)

# Attribute name -> (wire name, lower bound, upper bound)
FIELD_RANGES: dict[str, tuple[str, float, float]] = {
    "aileron": ("aileron", -1.0, 1.0),
    "elevator": ("elevator", -1.0, 1.0),
    "rudder": ("rudder", -1.0, 1.0),
    "throttle": ("throttle", 0.0, 1.0),
    "airbrake": ("airbrake", 0.0, 1.0),
    "wheel_brakes": ("wheelBrakes", 0.0, 1.0),
}


def clamp(value: float, low: float, high: float) -> float:
    """Clamp a value into [low, high].

    NaN becomes 0.0 (itself inside every actuator range); infinities go to
    the nearest bound.

    Args:
        value: Value to clamp.
        low: Lower bound.
        high: Upper bound.

    Returns:
        Clamped float.

    Examples:
        >>> clamp(2.0, -1.0, 1.0)
        1.0
        >>> clamp(float("nan"), 0.0, 1.0)
        0.0
    """
    value = float(value)
    if math.isnan(value):
        return max(low, min(high, 0.0))
    return max(low, min(high, value))


@dataclass(frozen=True)
class ActuatorCommand:
    """Control surface and throttle positions.

    Attributes:
        aileron: Roll (-1.0 = full left, 1.0 = full right).
        elevator: Pitch (-1.0 = nose up, 1.0 = nose down, as with a pushed stick).
        rudder: Yaw (-1.0 = full left, 1.0 = full right).
        throttle: Forward thrust fraction (0.0 to 1.0).
        airbrake: Airbrake fraction (0.0 to 1.0).
        wheel_brakes: Wheel brake fraction (0.0 to 1.0).
    """

    aileron: float = 0.0
    elevator: float = 0.0
    rudder: float = 0.0
    throttle: float = 0.0
    airbrake: float = 0.0
    wheel_brakes: float = 0.0

    def __post_init__(self) -> None:
        """Clamp all fields to their valid ranges."""
        for name, (_, low, high) in FIELD_RANGES.items():
            object.__setattr__(self, name, clamp(getattr(self, name), low, high))

    def clamp(self) -> "ActuatorCommand":
        """Return a clamped copy. Instances are always clamped, so this is idempotent."""
        return replace(self)

    def to_dict(self) -> dict[str, float]:
        """Serialize with wire field names (wheel_brakes -> wheelBrakes)."""
        values = asdict(self)
        return {wire: values[name] for name, (wire, _, _) in FIELD_RANGES.items()}

    def to_json(self, indent: int | None = 2) -> str:
        """Render the command as JSON using wire field names."""
        return json.dumps(self.to_dict(), indent=indent)

    def __str__(self) -> str:
        return (
            f"ActuatorCommand(ail={self.aileron:+.2f}, ele={self.elevator:+.2f}, "
            f"rud={self.rudder:+.2f}, thr={self.throttle:.2f}, "
            f"abk={self.airbrake:.2f}, whl={self.wheel_brakes:.2f})"
        )


class CommandSource(Enum):
    """Writer of the current command."""

    MODEL = "model"
    MANUAL = "manual"


@dataclass
class CommandPublishedEvent(Event):
    """Published whenever the slot receives a new command.

    Attributes:
        command: The command now current.
        source: Who wrote it.
    """

    command: ActuatorCommand
    source: CommandSource


class CommandSlot:
    """Single-value holder of the command the vehicle should act on.

    One writer at a time (the ticker or a manual override) replaces the whole
    immutable command; readers on any thread always see a complete command.
    There is no history.

    Examples:
        >>> slot = CommandSlot()
        >>> slot.current == ActuatorCommand()
        True
    """

    def __init__(self, event_bus: EventBus | None = None) -> None:
        """Initialize with the zero command.

        Args:
            event_bus: Optional bus that receives a CommandPublishedEvent per publish.
        """
        self._lock = threading.Lock()
        self._command = ActuatorCommand()
        self._source: CommandSource | None = None
        self._event_bus = event_bus

    @property
    def current(self) -> ActuatorCommand:
        """Latest published command (zero command before the first publish)."""
        with self._lock:
            return self._command

    @property
    def source(self) -> CommandSource | None:
        """Writer of the latest command, or None if nothing was published."""
        with self._lock:
            return self._source

    def publish(self, command: ActuatorCommand, source: CommandSource = CommandSource.MODEL) -> None:
        """Replace the current command.

        Args:
            command: New command.
            source: Writer of the command.
        """
        with self._lock:
            self._command = command
            self._source = source

        if self._event_bus is not None:
            # Subscribers run after the command is already current
            try:
                self._event_bus.publish(CommandPublishedEvent(command=command, source=source))
            except Exception:  # pylint: disable=broad-exception-caught
                logger.exception("CommandPublishedEvent subscriber raised")
