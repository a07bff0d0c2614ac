"""Immutable 3D vectors for vehicle state snapshots.

Axes follow a left-handed, Y-up convention: X is right, Y is up, Z is
forward. Observations carry these vectors to the model as {"x", "y", "z"}
objects.

Typical usage example:
    from lmpilot.physics.vectors import Vector3

    position = Vector3(0.0, 120.0, 0.0)
    velocity = (position - last_position) / dt
"""

import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt


@dataclass(frozen=True)
class Vector3:
    """3D vector with common operations.

    Attributes:
        x: X component (right).
        y: Y component (up).
        z: Z component (forward).

    Examples:
        >>> Vector3(1.0, 2.0, 3.0) + Vector3(4.0, 5.0, 6.0)
        Vector3(x=5.0, y=7.0, z=9.0)
    """

    x: float
    y: float
    z: float

    def __add__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> "Vector3":
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    def __rmul__(self, scalar: float) -> "Vector3":
        return self.__mul__(scalar)

    def __truediv__(self, scalar: float) -> "Vector3":
        """Divide vector by scalar.

        Raises:
            ZeroDivisionError: If scalar is zero.
        """
        if scalar == 0:
            raise ZeroDivisionError("Cannot divide vector by zero")
        return Vector3(self.x / scalar, self.y / scalar, self.z / scalar)

    def magnitude(self) -> float:
        """Calculate the length of the vector.

        Examples:
            >>> Vector3(3.0, 4.0, 0.0).magnitude()
            5.0
        """
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def normalized(self) -> "Vector3":
        """Return a unit vector in the same direction.

        Raises:
            ValueError: If magnitude is zero.
        """
        mag = self.magnitude()
        if mag == 0:
            raise ValueError("Cannot normalize zero vector")
        return self / mag

    def to_array(self) -> npt.NDArray[np.float64]:
        """Convert to numpy array [x, y, z]."""
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: npt.NDArray[np.float64]) -> "Vector3":
        """Create vector from the first three elements of a numpy array."""
        return cls(float(arr[0]), float(arr[1]), float(arr[2]))

    def to_dict(self) -> dict[str, float]:
        """Serialize as {"x": ..., "y": ..., "z": ...}."""
        return {"x": self.x, "y": self.y, "z": self.z}

    @classmethod
    def zero(cls) -> "Vector3":
        return cls(0.0, 0.0, 0.0)

    @classmethod
    def up(cls) -> "Vector3":
        return cls(0.0, 1.0, 0.0)

    @classmethod
    def forward(cls) -> "Vector3":
        return cls(0.0, 0.0, 1.0)

    def __str__(self) -> str:
        return f"Vector3(x={self.x:.2f}, y={self.y:.2f}, z={self.z:.2f})"

    def __repr__(self) -> str:
        return f"Vector3(x={self.x}, y={self.y}, z={self.z})"
