"""Actuator polling and command application.

Typical usage:
    from lmpilot.control import ActuatorTicker, CommandSlot, TickerSettings

    slot = CommandSlot()
    ticker = ActuatorTicker(client, plane, slot, TickerSettings(model="my-model"))
    ticker.start()
"""

from lmpilot.control.actuator import (
    ActuatorCommand,
    CommandPublishedEvent,
    CommandSlot,
    CommandSource,
)
from lmpilot.control.observation import IVehicleState, Observation, VelocityEstimator
from lmpilot.control.parser import extract_json_object, parse_command, try_parse_command
from lmpilot.control.ticker import (
    ActuatorTicker,
    TickerSettings,
    TickerState,
    TickFailedEvent,
)

__all__ = [
    "ActuatorCommand",
    "ActuatorTicker",
    "CommandPublishedEvent",
    "CommandSlot",
    "CommandSource",
    "IVehicleState",
    "Observation",
    "TickFailedEvent",
    "TickerSettings",
    "TickerState",
    "VelocityEstimator",
    "extract_json_object",
    "parse_command",
    "try_parse_command",
]
