"""Per-tick vehicle snapshots sent to the model.

Typical usage example:
    from lmpilot.control.observation import VelocityEstimator, build_observation

    estimator = VelocityEstimator()
    obs = build_observation(vehicle, estimator, slot.current)
    prompt = obs.to_json()
"""

import json
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from lmpilot.control.actuator import ActuatorCommand
from lmpilot.physics.vectors import Vector3

# Lower bound on elapsed time between samples, in seconds
MIN_VELOCITY_DT = 1e-4


class IVehicleState(ABC):
    """Read-only view of the vehicle pose, sampled once per tick."""

    @abstractmethod
    def get_position(self) -> Vector3:
        """World position."""

    @abstractmethod
    def get_forward(self) -> Vector3:
        """Unit vector along the nose."""

    @abstractmethod
    def get_up(self) -> Vector3:
        """Unit vector out of the canopy."""


@dataclass(frozen=True)
class Observation:
    """Snapshot of the vehicle for one request.

    Attributes:
        position: World position.
        forward: Forward direction.
        up: Up direction.
        velocity: Estimated velocity (position delta over elapsed time).
        last_command: Command the vehicle is currently acting on.
    """

    position: Vector3
    forward: Vector3
    up: Vector3
    velocity: Vector3
    last_command: ActuatorCommand

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": self.position.to_dict(),
            "forward": self.forward.to_dict(),
            "up": self.up.to_dict(),
            "velocity": self.velocity.to_dict(),
            "lastCommand": self.last_command.to_dict(),
        }

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


class VelocityEstimator:
    """Estimates velocity from successive position samples.

    The first sample reports zero velocity. Elapsed time is floored at
    MIN_VELOCITY_DT so samples taken back to back cannot blow up.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._last_position: Vector3 | None = None
        self._last_time = 0.0

    def update(self, position: Vector3) -> Vector3:
        """Record a position sample and return the estimated velocity.

        Args:
            position: Current position.

        Returns:
            Velocity since the previous sample.
        """
        now = self._clock()
        velocity = Vector3.zero()

        if self._last_position is not None:
            dt = max(now - self._last_time, MIN_VELOCITY_DT)
            velocity = (position - self._last_position) / dt

        self._last_position = position
        self._last_time = now
        return velocity

    def reset(self) -> None:
        """Forget the previous sample."""
        self._last_position = None


def build_observation(
    vehicle: IVehicleState,
    estimator: VelocityEstimator,
    last_command: ActuatorCommand,
) -> Observation:
    """Sample the vehicle and build a fresh observation.

    Args:
        vehicle: Vehicle state source.
        estimator: Velocity estimator fed with this sample.
        last_command: Command currently applied to the vehicle.

    Returns:
        New Observation.
    """
    position = vehicle.get_position()
    return Observation(
        position=position,
        forward=vehicle.get_forward(),
        up=vehicle.get_up(),
        velocity=estimator.update(position),
        last_command=last_command,
    )
