"""Demo vehicle for exercising the control loop without a game engine."""

from lmpilot.sim.kinematic_plane import KinematicPlane

__all__ = ["KinematicPlane"]
