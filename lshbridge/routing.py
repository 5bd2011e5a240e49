"""Routing of decoded MQTT commands to bridge actions.

Service-topic commands are bridge-scoped and never depend on controller
synchronization. Device-topic commands may touch controller-backed state.
Actuator writes are therefore dropped while the runtime model is stale.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, Mapping

from lshbridge.mqtt_decoder import Codec, CommandShape, DecodedCommand
from lshbridge.payloads import validate_click_fields

logger = logging.getLogger(__name__)

_UINT8_MAX = 255
_REQUIRED_COMMANDS = (
    "boot",
    "system_reset",
    "system_reboot",
    "ping",
    "request_details",
    "request_state",
    "failover",
    "network_click_request",
    "network_click_confirm",
    "set_single_actuator",
    "set_state",
    "network_click_ack",
    "failover_click",
)


class TypedCommandResult(enum.Enum):
    """Outcome of the bridge-side handling of one typed command."""

    HANDLED = "handled"
    UNSUPPORTED = "unsupported"
    INVALID = "invalid"
    DELIVERY_FAILED = "delivery_failed"


class Action(enum.Enum):
    """What the bridge runtime should do with one inbound command."""

    IGNORE = "ignore"
    SCHEDULE_MQTT_RESYNC = "schedule_mqtt_resync"
    RESET = "reset"
    REBOOT = "reboot"
    PUBLISH_SERVICE_PING = "publish_service_ping"
    PUBLISH_DEVICE_PING = "publish_device_ping"
    SERVE_DETAILS = "serve_details"
    SERVE_STATE = "serve_state"
    SEND_GENERAL_FAILOVER = "send_general_failover"
    DROP_CONTROLLER_EVENT = "drop_controller_event"
    STAGE_SINGLE_ACTUATOR = "stage_single_actuator"
    STAGE_PACKED_STATE = "stage_packed_state"
    SEND_CLICK = "send_click"
    DROP_INVALID = "drop_invalid"
    FORWARD_RAW = "forward_raw"
    DROP_UNSUPPORTED = "drop_unsupported"


class CommandRouter:
    """Maps decoded commands to actions according to the topic they came from.

    ``command_ids`` maps each protocol command name (``boot``,
    ``system_reset``, ``system_reboot``, ``ping``, ``request_details``,
    ``request_state``, ``failover``, ``network_click_request``,
    ``network_click_confirm``, ``set_single_actuator``, ``set_state``,
    ``network_click_ack``, ``failover_click``) to its numeric id.
    ``codec`` is the MQTT wire codec. ``raw_forward_allowed`` says whether
    the controller link speaks that same codec, so that unknown payloads can
    be forwarded byte for byte.
    """

    def __init__(self, command_ids: Mapping[str, int], codec: Codec, raw_forward_allowed: bool) -> None:
        missing = [name for name in _REQUIRED_COMMANDS if name not in command_ids]
        if missing:
            raise ValueError(f"missing command ids: {', '.join(missing)}")
        ids = {name: command_ids[name] for name in _REQUIRED_COMMANDS}
        for name, value in ids.items():
            if not 0 <= value <= _UINT8_MAX:
                raise ValueError(f"command id for {name} is outside 0..255")
        if len(set(ids.values())) != len(ids):
            raise ValueError("command ids must be distinct")

        self.codec = Codec(codec)
        self.raw_forward_allowed = bool(raw_forward_allowed)
        self._names = {value: name for name, value in ids.items()}

    def _name(self, command: int) -> str | None:
        return self._names.get(command)

    def route_service(self, command: int) -> Action:
        """Return the action for a command received on the service topic."""
        name = self._name(command)
        if name == "boot":
            return Action.SCHEDULE_MQTT_RESYNC
        if name == "system_reset":
            return Action.RESET
        if name == "system_reboot":
            return Action.REBOOT
        if name == "ping":
            return Action.PUBLISH_SERVICE_PING
        return Action.IGNORE

    def route_device(self, decoded: DecodedCommand, synchronized: bool) -> Action:
        """Return the action for a command received on the device topic.

        ``synchronized`` tells whether the runtime model currently mirrors a
        fresh controller state. A device ping is answered only then; the caller
        still checks controller connectivity before replying.
        """
        name = self._name(decoded.command)

        if name == "system_reset":
            return Action.RESET
        if name == "system_reboot":
            return Action.REBOOT
        if name == "ping":
            return Action.PUBLISH_DEVICE_PING if synchronized else Action.IGNORE
        if name == "request_details":
            return Action.SERVE_DETAILS
        if name == "request_state":
            return Action.SERVE_STATE
        if name == "failover":
            return Action.SEND_GENERAL_FAILOVER
        if name in ("network_click_request", "network_click_confirm"):
            logger.debug("dropping command %d: it is a controller-originated event", decoded.command)
            return Action.DROP_CONTROLLER_EVENT
        if name == "set_single_actuator":
            if not synchronized:
                return Action.IGNORE
            if decoded.shape is CommandShape.SET_SINGLE_ACTUATOR:
                return Action.STAGE_SINGLE_ACTUATOR
            return Action.DROP_INVALID
        if name == "set_state":
            if not synchronized:
                return Action.IGNORE
            if decoded.shape is CommandShape.SET_PACKED_STATE:
                return Action.STAGE_PACKED_STATE
            return Action.DROP_INVALID
        if name in ("network_click_ack", "failover_click"):
            if decoded.shape is CommandShape.CLICK and validate_click_fields(
                decoded.click_type, decoded.clickable_id, decoded.correlation_id
            ):
                return Action.SEND_CLICK
            logger.debug("dropping invalid click command %d", decoded.command)
            return Action.DROP_INVALID

        if self.raw_forward_allowed:
            return Action.FORWARD_RAW
        logger.debug("dropping unsupported command %d: codecs differ", decoded.command)
        return Action.DROP_UNSUPPORTED

    def handle_typed(
        self,
        decoded: DecodedCommand,
        stage_single: Callable[[int, bool], bool],
        stage_packed: Callable[[bytes], bool],
        send_click: Callable[[int, int, int, int], bool],
    ) -> TypedCommandResult:
        """Deliver a command whose fields the bridge interprets itself.

        ``stage_single(actuator_id, state)``, ``stage_packed(packed_state)``
        and ``send_click(command, click_type, clickable_id, correlation_id)``
        perform the side effects and return whether they succeeded.
        """
        name = self._name(decoded.command)

        if name == "set_single_actuator":
            if decoded.shape is not CommandShape.SET_SINGLE_ACTUATOR:
                return TypedCommandResult.INVALID
            if stage_single(decoded.actuator_id, decoded.state):
                return TypedCommandResult.HANDLED
            return TypedCommandResult.INVALID

        if name == "set_state":
            if decoded.shape is not CommandShape.SET_PACKED_STATE:
                return TypedCommandResult.INVALID
            if stage_packed(decoded.packed_state):
                return TypedCommandResult.HANDLED
            return TypedCommandResult.INVALID

        if name in ("network_click_ack", "failover_click"):
            if decoded.shape is not CommandShape.CLICK or not validate_click_fields(
                decoded.click_type, decoded.clickable_id, decoded.correlation_id
            ):
                return TypedCommandResult.INVALID
            if not send_click(decoded.command, decoded.click_type, decoded.clickable_id, decoded.correlation_id):
                return TypedCommandResult.DELIVERY_FAILED
            return TypedCommandResult.HANDLED

        return TypedCommandResult.UNSUPPORTED