"""Asynchronous frame loop with a fixed simulation timestep.

Stands in for a game engine's update cycle. It runs as a task on the same
event loop as the ticker, yielding between frames so network I/O keeps
flowing.

Typical usage example:
    from lmpilot.core.game_loop import SimulationLoop

    loop = SimulationLoop(lambda dt: plane.step(dt, slot.current), physics_hz=60)
    await loop.run(duration=30.0)
"""

import asyncio
import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class SimulationLoop:
    """Frame loop with fixed timestep updates.

    Updates run at physics_hz regardless of the achieved frame rate; the
    accumulator is clamped to five steps so a stalled frame cannot cause a
    spiral of catch-up updates.

    Examples:
        >>> loop = SimulationLoop(update, physics_hz=60, target_fps=30)
        >>> await loop.run(duration=5.0)
    """

    def __init__(
        self,
        update: Callable[[float], None],
        physics_hz: int = 60,
        target_fps: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the loop.

        Args:
            update: Called with the fixed timestep once per simulation step.
            physics_hz: Simulation update rate in Hz.
            target_fps: Frame rate the loop sleeps to maintain.
            clock: Monotonic time source.
        """
        self.update = update
        self.physics_hz = physics_hz
        self.target_fps = target_fps
        self._clock = clock

        self.physics_dt = 1.0 / physics_hz
        self.frame_time_target = 1.0 / target_fps

        self.running = False
        self.frame_count = 0
        self.step_count = 0
        self.physics_accumulator = 0.0
        self.last_time = 0.0

    async def run(self, duration: float | None = None) -> None:
        """Run frames until stop() is called or duration seconds elapse.

        Args:
            duration: Optional run time in seconds.
        """
        self.running = True
        start = self.last_time = self._clock()
        logger.info("Simulation loop started")

        try:
            while self.running:
                await self._frame()
                if duration is not None and self.last_time - start >= duration:
                    break
        finally:
            self.running = False
            logger.info("Simulation loop stopped after %d steps", self.step_count)

    async def _frame(self) -> None:
        """Execute one frame."""
        current_time = self._clock()
        self.physics_accumulator += current_time - self.last_time
        self.last_time = current_time

        max_accumulator = self.physics_dt * 5
        if self.physics_accumulator > max_accumulator:
            logger.warning("Physics accumulator clamped: %.3fs", self.physics_accumulator)
            self.physics_accumulator = max_accumulator

        while self.physics_accumulator >= self.physics_dt:
            self.update(self.physics_dt)
            self.physics_accumulator -= self.physics_dt
            self.step_count += 1

        self.frame_count += 1

        # Always yield, even when behind schedule
        elapsed = self._clock() - current_time
        await asyncio.sleep(max(0.0, self.frame_time_target - elapsed))

    def stop(self) -> None:
        """Stop the loop at the end of the current frame."""
        self.running = False
        logger.info("Simulation loop stop requested")

    def is_running(self) -> bool:
        return self.running
