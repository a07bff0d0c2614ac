"""Non-physical aircraft that flies wherever its actuators point it.

Forward speed follows the throttle, brakes scale it down, and the control
surfaces rotate the body at fixed rates. No lift, drag or gravity: the plane
exists so the control loop has something to observe.

Typical usage example:
    from lmpilot.sim.kinematic_plane import KinematicPlane

    plane = KinematicPlane()
    plane.step(1 / 60, slot.current)
"""

import math

import numpy as np
import numpy.typing as npt

from lmpilot.control.actuator import ActuatorCommand
from lmpilot.control.observation import IVehicleState
from lmpilot.physics.vectors import Vector3


def _axis_rotation(angle: float, a: int, b: int) -> npt.NDArray[np.float64]:
    """Rotation that turns basis row a toward row b by angle radians."""
    m = np.eye(3)
    c, s = math.cos(angle), math.sin(angle)
    m[a, a] = c
    m[a, b] = s
    m[b, a] = -s
    m[b, b] = c
    return m


class KinematicPlane(IVehicleState):
    """Kinematic aircraft model driven by an ActuatorCommand.

    Orientation is stored as a 3x3 matrix whose rows are the body right, up
    and forward axes in world coordinates.

    Attributes:
        max_forward_speed: Speed at full throttle, m/s.
        roll_rate: Roll rate at full aileron, deg/s.
        pitch_rate: Pitch rate at full elevator, deg/s.
        yaw_rate: Yaw rate at full rudder, deg/s.
        brake_slowdown: Speed multiplier with brakes fully applied.

    Examples:
        >>> plane = KinematicPlane()
        >>> plane.step(1.0, ActuatorCommand(throttle=1.0))
        >>> plane.get_position()
        Vector3(x=0.0, y=0.0, z=5.0)
    """

    RIGHT, UP, FORWARD = 0, 1, 2

    def __init__(
        self,
        position: Vector3 | None = None,
        max_forward_speed: float = 5.0,
        roll_rate: float = 90.0,
        pitch_rate: float = 70.0,
        yaw_rate: float = 50.0,
        brake_slowdown: float = 0.3,
    ) -> None:
        self.max_forward_speed = max_forward_speed
        self.roll_rate = roll_rate
        self.pitch_rate = pitch_rate
        self.yaw_rate = yaw_rate
        self.brake_slowdown = brake_slowdown

        self._position = (position or Vector3.zero()).to_array()
        self._basis = np.eye(3)

    def get_position(self) -> Vector3:
        return Vector3.from_array(self._position)

    def get_forward(self) -> Vector3:
        return Vector3.from_array(self._basis[self.FORWARD])

    def get_up(self) -> Vector3:
        return Vector3.from_array(self._basis[self.UP])

    def get_right(self) -> Vector3:
        return Vector3.from_array(self._basis[self.RIGHT])

    def forward_speed(self, command: ActuatorCommand) -> float:
        """Speed along the nose for a command, brakes included."""
        speed = command.throttle * self.max_forward_speed
        brake = max(command.airbrake, command.wheel_brakes)
        return speed + (speed * self.brake_slowdown - speed) * brake

    def step(self, dt: float, command: ActuatorCommand) -> None:
        """Advance the plane by dt seconds under a command.

        Translates along the current nose, then rotates: positive elevator
        pitches the nose down (stick forward), positive rudder yaws right,
        positive aileron rolls right.

        Args:
            dt: Time step in seconds.
            command: Actuator positions to apply.
        """
        self._position = self._position + self._basis[self.FORWARD] * (
            self.forward_speed(command) * dt
        )

        yaw = math.radians(command.rudder * self.yaw_rate * dt)
        pitch = math.radians(command.elevator * self.pitch_rate * dt)
        roll = math.radians(command.aileron * self.roll_rate * dt)

        rotation = (
            _axis_rotation(roll, self.UP, self.RIGHT)
            @ _axis_rotation(pitch, self.UP, self.FORWARD)
            @ _axis_rotation(yaw, self.FORWARD, self.RIGHT)
        )
        self._basis = self._orthonormalize(rotation @ self._basis)

    @classmethod
    def _orthonormalize(cls, basis: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """Remove accumulated drift, keeping forward exact."""
        forward = basis[cls.FORWARD] / np.linalg.norm(basis[cls.FORWARD])
        right = np.cross(basis[cls.UP], forward)
        right /= np.linalg.norm(right)
        up = np.cross(forward, right)
        return np.array([right, up, forward])
