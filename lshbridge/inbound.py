"""Admission checks for MQTT messages arriving on the bridge's command topics.

Messages are queued as raw bytes and parsed later in the main loop, so only
complete, non-retained frames that fit the fixed inbound buffer are accepted.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Union

logger = logging.getLogger(__name__)

Payload = Union[bytes, bytearray, memoryview, str]


class MessageSource(enum.Enum):
    """Topic family an inbound command arrived on."""

    DEVICE = "device"
    SERVICE = "service"


class RejectReason(enum.Enum):
    """Why an inbound MQTT command was refused."""

    MALFORMED = "malformed"
    RETAINED = "retained"
    FRAGMENTED = "fragmented"
    OVERSIZE = "oversize"


class InboundRejected(Exception):
    """Raised when a message on a command topic cannot be accepted."""

    def __init__(self, reason: RejectReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason


@dataclass(frozen=True)
class InboundMessage:
    """A complete command frame accepted for later processing."""

    source: MessageSource
    payload: bytes


def _as_bytes(payload: Payload) -> bytes:
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return bytes(payload)


def admit_message(
    topic: str,
    payload: Payload,
    retain: bool = False,
    index: int = 0,
    total: int | None = None,
    device_topic: str | None = None,
    service_topic: str | None = None,
    max_size: int = 0,
) -> InboundMessage | None:
    """Classify and validate one MQTT delivery.

    Returns None when ``topic`` is neither the device nor the service topic.
    ``total`` is the full announced payload size and defaults to the length of
    ``payload``. Raises InboundRejected for retained, fragmented, empty or
    oversized frames.
    """
    if device_topic and topic == device_topic:
        source = MessageSource.DEVICE
    elif service_topic and topic == service_topic:
        source = MessageSource.SERVICE
    else:
        return None

    data = _as_bytes(payload)
    length = len(data)
    if total is None:
        total = length

    if retain:
        # Stale retained writes must never be replayed after a reconnect.
        raise InboundRejected(RejectReason.RETAINED, "retained commands are never replayed")

    if total == 0 or length == 0:
        raise InboundRejected(RejectReason.FRAGMENTED, "zero-length or incomplete payload")

    if total > max_size:
        raise InboundRejected(RejectReason.OVERSIZE, f"payload of {total} bytes exceeds {max_size}")

    if index != 0 or length != total:
        raise InboundRejected(RejectReason.FRAGMENTED, "fragmented payload delivery is not accepted")

    logger.debug("admitted %d-byte command from %s topic", length, source.value)
    return InboundMessage(source, data)