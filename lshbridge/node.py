"""Homie node wrapper for one cached controller actuator."""

from __future__ import annotations

import enum
import logging
from typing import Callable

logger = logging.getLogger(__name__)

TRUE_LITERAL = "true"
FALSE_LITERAL = "false"


class HomieRejection(enum.Enum):
    """Why a Homie ``set`` command was dropped by the bridge."""

    RUNTIME_DESYNCHRONIZED = "runtime_desynchronized"
    INVALID_PAYLOAD = "invalid_payload"
    STAGE_FAILED = "stage_failed"


def homie_node_id(actuator_id: int) -> str:
    """Return the decimal Homie node ID for a numeric actuator ID."""
    if not 0 <= actuator_id <= 255:
        raise ValueError(f"actuator ID {actuator_id} is outside 0..255")
    return str(actuator_id)


def parse_homie_set_value(value: str) -> bool:
    """Parse a Homie boolean literal, raising ValueError on anything else."""
    if value == TRUE_LITERAL:
        return True
    if value == FALSE_LITERAL:
        return False
    raise ValueError(f"invalid Homie boolean value: {value!r}")


class ActuatorNode:
    """Mirrors one controller actuator as a Homie node."""

    def __init__(self, actuator_id: int, index: int) -> None:
        self.node_id = homie_node_id(actuator_id)
        self.actuator_id = actuator_id
        self.index = index
        logger.debug("created node %s at index %d", self.node_id, index)

    def handle_set(
        self,
        value: str,
        synchronized: bool,
        stage: Callable[[int, bool], bool],
    ) -> HomieRejection | None:
        """Stage a Homie write through ``stage``; return the rejection reason if dropped.

        Every write is consumed here: unsafe or invalid values are dropped
        locally instead of reaching the controller.
        """
        if not synchronized:
            logger.debug("node %s: waiting for state sync, ignoring command", self.node_id)
            return HomieRejection.RUNTIME_DESYNCHRONIZED

        try:
            new_state = parse_homie_set_value(value)
        except ValueError:
            return HomieRejection.INVALID_PAYLOAD

        if not stage(self.actuator_id, new_state):
            logger.debug("node %s: failed to stage desired state", self.node_id)
            return HomieRejection.STAGE_FAILED

        logger.info("command sent to turn light %s", "on" if new_state else "off")
        return None

    def state_literal(self, state: bool) -> str:
        """Return the Homie payload that publishes ``state``."""
        return TRUE_LITERAL if state else FALSE_LITERAL