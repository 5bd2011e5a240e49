"""Small file-backed cache that persists controller topology details.

The record format is byte-stable and independent of any in-memory layout:
``magic[4] version name_len actuator_count button_count``, followed by the raw
name bytes, the actuator IDs, the button IDs and a little-endian FNV-1a
checksum over everything before it.
"""

from __future__ import annotations

import logging
import os
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

MAGIC = b"LSHD"
VERSION = 2

_FNV_OFFSET_BASIS = 2166136261
_FNV_PRIME = 16777619
_HEADER_SIZE = len(MAGIC) + 4
_CHECKSUM_SIZE = 4
_UINT8_MAX = 255


class CacheRecordError(ValueError):
    """Raised when details cannot be encoded or a stored record is invalid."""


@dataclass(frozen=True)
class CacheLimits:
    """Capacity limits that bound a serialized topology record."""

    max_name_length: int = 32
    max_actuators: int = 32
    max_buttons: int = 32

    def __post_init__(self) -> None:
        if not 1 <= self.max_name_length <= _UINT8_MAX:
            raise ValueError("max_name_length must be between 1 and 255")
        for label, value in (("max_actuators", self.max_actuators), ("max_buttons", self.max_buttons)):
            if not 0 <= value <= _UINT8_MAX:
                raise ValueError(f"{label} must be between 0 and 255")

    @property
    def min_record_size(self) -> int:
        """Smallest record length that can possibly be valid."""
        return _HEADER_SIZE + _CHECKSUM_SIZE

    @property
    def max_record_size(self) -> int:
        """Largest record length these limits allow."""
        return _HEADER_SIZE + self.max_name_length + self.max_actuators + self.max_buttons + _CHECKSUM_SIZE


@dataclass(frozen=True)
class DeviceDetails:
    """Controller topology snapshot: device name plus actuator and button IDs."""

    name: str
    actuator_ids: tuple[int, ...] = field(default_factory=tuple)
    button_ids: tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "actuator_ids", tuple(self.actuator_ids))
        object.__setattr__(self, "button_ids", tuple(self.button_ids))


def record_checksum(data: bytes) -> int:
    """Return the 32-bit FNV-1a checksum of ``data``."""
    checksum = _FNV_OFFSET_BASIS
    for byte in data:
        checksum ^= byte
        checksum = (checksum * _FNV_PRIME) & 0xFFFFFFFF
    return checksum


def validate_ids(ids: Iterable[int]) -> bool:
    """Return True when every ID is a unique value in 1..255."""
    seen: set[int] = set()
    for identifier in ids:
        if not 1 <= identifier <= _UINT8_MAX or identifier in seen:
            return False
        seen.add(identifier)
    return True


def encode_record(details: DeviceDetails, limits: CacheLimits | None = None) -> bytes:
    """Serialize ``details`` into a checksummed cache record."""
    limits = limits or CacheLimits()
    name_bytes = details.name.encode("utf-8")

    if not name_bytes:
        raise CacheRecordError("device name must not be empty")
    if len(name_bytes) > limits.max_name_length:
        raise CacheRecordError("device name is longer than the cache allows")
    if len(details.actuator_ids) > limits.max_actuators:
        raise CacheRecordError("too many actuator IDs")
    if len(details.button_ids) > limits.max_buttons:
        raise CacheRecordError("too many button IDs")
    if not validate_ids(details.actuator_ids) or not validate_ids(details.button_ids):
        raise CacheRecordError("IDs must be unique values between 1 and 255")

    record = bytearray(MAGIC)
    record += bytes((VERSION, len(name_bytes), len(details.actuator_ids), len(details.button_ids)))
    record += name_bytes
    record += bytes(details.actuator_ids)
    record += bytes(details.button_ids)
    record += struct.pack("<I", record_checksum(record))
    return bytes(record)


def decode_record(record: bytes, limits: CacheLimits | None = None) -> DeviceDetails:
    """Validate and decode a cache record, raising CacheRecordError on any defect."""
    limits = limits or CacheLimits()
    length = len(record)

    if not limits.min_record_size <= length <= limits.max_record_size:
        raise CacheRecordError("record length is out of range")
    if record[: len(MAGIC)] != MAGIC:
        raise CacheRecordError("bad record magic")

    version, name_length, actuator_count, button_count = record[len(MAGIC) : _HEADER_SIZE]
    if version != VERSION:
        raise CacheRecordError(f"unsupported record version {version}")
    if name_length == 0 or name_length > limits.max_name_length:
        raise CacheRecordError("invalid name length")
    if actuator_count > limits.max_actuators or button_count > limits.max_buttons:
        raise CacheRecordError("invalid ID counts")

    expected = _HEADER_SIZE + name_length + actuator_count + button_count + _CHECKSUM_SIZE
    if length != expected:
        raise CacheRecordError("record length does not match its header")

    body = record[:-_CHECKSUM_SIZE]
    (stored_checksum,) = struct.unpack("<I", record[-_CHECKSUM_SIZE:])
    if stored_checksum != record_checksum(body):
        raise CacheRecordError("record checksum mismatch")

    offset = _HEADER_SIZE
    raw_name = record[offset : offset + name_length]
    offset += name_length
    actuator_ids = tuple(record[offset : offset + actuator_count])
    offset += actuator_count
    button_ids = tuple(record[offset : offset + button_count])

    if not validate_ids(actuator_ids) or not validate_ids(button_ids):
        raise CacheRecordError("record holds zero or duplicate IDs")

    # Names are stored without a terminator; an embedded NUL ends the name.
    name = bytes(raw_name).split(b"\0", 1)[0].decode("utf-8", errors="replace")
    return DeviceDetails(name, actuator_ids, button_ids)


class DetailsCacheStore:
    """Persists one topology record in a single file."""

    def __init__(self, path: str | os.PathLike[str], limits: CacheLimits | None = None) -> None:
        self.path = Path(path)
        self.limits = limits or CacheLimits()

    def load(self) -> DeviceDetails | None:
        """Return the cached details, or None when missing or invalid."""
        try:
            record = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("cannot read topology cache %s: %s", self.path, exc)
            return None

        try:
            return decode_record(record, self.limits)
        except CacheRecordError as exc:
            logger.warning("ignoring invalid topology cache %s: %s", self.path, exc)
            return None

    def save(self, details: DeviceDetails) -> None:
        """Validate and atomically write ``details`` as the new cache baseline."""
        record = encode_record(details, self.limits)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temporary = self.path.with_name(self.path.name + ".tmp")
        with open(temporary, "wb") as handle:
            handle.write(record)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temporary, self.path)

    def clear(self) -> bool:
        """Remove the cached record; return True if one existed."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        return True