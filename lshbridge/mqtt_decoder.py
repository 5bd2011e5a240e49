"""Shallow decoder for the small MQTT command payloads the bridge handles.

Commands are one-level maps with single-character keys. The decoder reads
them directly, in JSON or MessagePack, without building a generic document
tree. The command id under the payload key is required. Any unknown key,
trailing data, or value of an unexpected kind makes the whole payload invalid.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Union

_UINT8_MAX = 255
_JSON_WHITESPACE = b" \n\r\t"

Payload = Union[bytes, bytearray, memoryview, str]


class DecodeError(ValueError):
    """Raised when a payload does not match the shallow command grammar."""


class Codec(enum.Enum):
    """Wire codec used on the MQTT side."""

    JSON = "json"
    MSGPACK = "msgpack"


class CommandShape(enum.Enum):
    """Which typed fields of a decoded command are complete and usable."""

    COMMAND_ONLY = "command_only"
    SET_SINGLE_ACTUATOR = "set_single_actuator"
    SET_PACKED_STATE = "set_packed_state"
    CLICK = "click"


@dataclass(frozen=True)
class CommandIds:
    """Protocol command ids and single-character keys the decoder relies on."""

    set_single_actuator: int
    set_state: int
    network_click_ack: int
    failover_click: int
    id_key: str
    type_key: str
    correlation_key: str
    payload_key: str = "p"
    state_key: str = "s"

    def __post_init__(self) -> None:
        for command in (self.set_single_actuator, self.set_state, self.network_click_ack, self.failover_click):
            if not 0 <= command <= _UINT8_MAX:
                raise ValueError(f"command id {command} is outside 0..255")
        keys = self.keys
        for key in keys:
            if len(key) != 1 or not key.isascii():
                raise ValueError(f"protocol key {key!r} must be one ASCII character")
        if len(set(keys)) != len(keys):
            raise ValueError("protocol keys must be distinct")

    @property
    def keys(self) -> tuple[str, str, str, str, str]:
        """All protocol keys: payload, id, state, type, correlation."""
        return (self.payload_key, self.id_key, self.state_key, self.type_key, self.correlation_key)


@dataclass(frozen=True)
class DecodedCommand:
    """Result of a shallow decode."""

    command: int
    shape: CommandShape = CommandShape.COMMAND_ONLY
    actuator_id: int = 0
    state: bool = False
    packed_state: bytes = b""
    click_type: int = 0
    clickable_id: int = 0
    correlation_id: int = 0


@dataclass
class _Fields:
    command: int = 0
    actuator_id: int = 0
    state: bool = False
    packed_state: bytes = b""
    click_type: int = 0
    correlation_id: int = 0
    seen: set[str] = field(default_factory=set)


def _as_bytes(payload: Payload) -> bytes:
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return bytes(payload)


def _check_max_packed(max_packed_bytes: int) -> None:
    if not 0 <= max_packed_bytes <= _UINT8_MAX:
        raise ValueError("max_packed_bytes must be between 0 and 255")


class _JsonCursor:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def _skip_whitespace(self) -> None:
        while self._pos < len(self._data) and self._data[self._pos] in _JSON_WHITESPACE:
            self._pos += 1

    def _current(self) -> int | None:
        return self._data[self._pos] if self._pos < len(self._data) else None

    def accept(self, char: str) -> bool:
        self._skip_whitespace()
        if self._current() != ord(char):
            return False
        self._pos += 1
        return True

    def expect(self, char: str) -> None:
        if not self.accept(char):
            raise DecodeError(f"expected {char!r} at offset {self._pos}")

    def peek(self, char: str) -> bool:
        self._skip_whitespace()
        return self._current() == ord(char)

    def read_key(self) -> int:
        self._skip_whitespace()
        if self._current() != ord('"'):
            raise DecodeError("expected a quoted key")
        self._pos += 1
        key = self._current()
        if key is None:
            raise DecodeError("truncated key")
        self._pos += 1
        if self._current() != ord('"'):
            raise DecodeError("keys must be exactly one character")
        self._pos += 1
        return key

    def next_is_array(self) -> bool:
        return self.peek("[")

    def read_uint8(self) -> int:
        self._skip_whitespace()
        current = self._current()
        if current is None or not 0x30 <= current <= 0x39:
            raise DecodeError("expected an unsigned integer")
        value = 0
        while current is not None and 0x30 <= current <= 0x39:
            value = value * 10 + (current - 0x30)
            if value > _UINT8_MAX:
                raise DecodeError("integer does not fit in one byte")
            self._pos += 1
            current = self._current()
        return value

    def read_binary_state(self) -> bool:
        self._skip_whitespace()
        if self._data.startswith(b"true", self._pos):
            self._pos += 4
            return True
        if self._data.startswith(b"false", self._pos):
            self._pos += 5
            return False
        raw = self.read_uint8()
        if raw > 1:
            raise DecodeError("binary state must be 0 or 1")
        return raw == 1

    def read_packed_state(self, max_bytes: int) -> bytes:
        self.expect("[")
        values = bytearray()
        if self.accept("]"):
            return bytes(values)
        while True:
            if len(values) >= max_bytes:
                raise DecodeError("packed state is longer than allowed")
            values.append(self.read_uint8())
            if self.accept("]"):
                return bytes(values)
            self.expect(",")

    def at_end(self) -> bool:
        self._skip_whitespace()
        return self._pos == len(self._data)


class _MsgPackCursor:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def _read_byte(self) -> int:
        if self._pos >= len(self._data):
            raise DecodeError("truncated payload")
        byte = self._data[self._pos]
        self._pos += 1
        return byte

    def _peek_byte(self) -> int | None:
        return self._data[self._pos] if self._pos < len(self._data) else None

    def _read_uint16(self) -> int:
        if len(self._data) - self._pos < 2:
            raise DecodeError("truncated 16-bit value")
        value = int.from_bytes(self._data[self._pos : self._pos + 2], "big")
        self._pos += 2
        return value

    def read_map_size(self) -> int:
        marker = self._read_byte()
        if marker & 0xF0 == 0x80:
            return marker & 0x0F
        if marker == 0xDE:
            size = self._read_uint16()
            if size > _UINT8_MAX:
                raise DecodeError("map is too large")
            return size
        raise DecodeError("expected a map")

    def read_key(self) -> int:
        marker = self._read_byte()
        if marker & 0xE0 == 0xA0:
            length = marker & 0x1F
        elif marker == 0xD9:
            length = self._read_byte()
        else:
            raise DecodeError("expected a string key")
        if length != 1:
            raise DecodeError("keys must be exactly one character")
        return self._read_byte()

    def next_is_array(self) -> bool:
        marker = self._peek_byte()
        return marker is not None and (marker & 0xF0 == 0x90 or marker == 0xDC)

    def read_uint8(self) -> int:
        marker = self._read_byte()
        if marker <= 0x7F:
            return marker
        if marker == 0xCC:
            return self._read_byte()
        if marker == 0xCD:
            value = self._read_uint16()
            if value > _UINT8_MAX:
                raise DecodeError("integer does not fit in one byte")
            return value
        raise DecodeError("expected an unsigned integer")

    def read_binary_state(self) -> bool:
        marker = self._peek_byte()
        if marker is None:
            raise DecodeError("truncated payload")
        if marker in (0xC2, 0xC3):
            self._pos += 1
            return marker == 0xC3
        raw = self.read_uint8()
        if raw > 1:
            raise DecodeError("binary state must be 0 or 1")
        return raw == 1

    def read_packed_state(self, max_bytes: int) -> bytes:
        marker = self._read_byte()
        if marker & 0xF0 == 0x90:
            length = marker & 0x0F
        elif marker == 0xDC:
            length = self._read_uint16()
        else:
            raise DecodeError("expected an array")
        if length > max_bytes:
            raise DecodeError("packed state is longer than allowed")
        return bytes(self.read_uint8() for _ in range(length))

    def at_end(self) -> bool:
        return self._pos == len(self._data)


def _read_field(key: int, cursor: _JsonCursor | _MsgPackCursor, ids: CommandIds, max_packed: int, fields: _Fields) -> None:
    name = chr(key)
    if name == ids.payload_key:
        fields.command = cursor.read_uint8()
        fields.seen.add("command")
    elif name == ids.id_key:
        fields.actuator_id = cursor.read_uint8()
        fields.seen.add("id")
    elif name == ids.state_key:
        if cursor.next_is_array():
            fields.packed_state = cursor.read_packed_state(max_packed)
            fields.seen.add("packed")
        else:
            fields.state = cursor.read_binary_state()
            fields.seen.add("state")
    elif name == ids.type_key:
        fields.click_type = cursor.read_uint8()
        fields.seen.add("type")
    elif name == ids.correlation_key:
        fields.correlation_id = cursor.read_uint8()
        fields.seen.add("correlation")
    else:
        raise DecodeError(f"unknown key {name!r}")


def _finish(fields: _Fields, ids: CommandIds) -> DecodedCommand:
    if "command" not in fields.seen:
        raise DecodeError("payload has no command id")

    seen = fields.seen
    shape = CommandShape.COMMAND_ONLY
    if fields.command == ids.set_single_actuator and {"id", "state"} <= seen:
        shape = CommandShape.SET_SINGLE_ACTUATOR
    elif fields.command == ids.set_state and "packed" in seen:
        shape = CommandShape.SET_PACKED_STATE
    elif fields.command in (ids.network_click_ack, ids.failover_click) and {"type", "id", "correlation"} <= seen:
        shape = CommandShape.CLICK

    return DecodedCommand(
        command=fields.command,
        shape=shape,
        actuator_id=fields.actuator_id,
        state=fields.state,
        packed_state=fields.packed_state,
        click_type=fields.click_type,
        clickable_id=fields.actuator_id,
        correlation_id=fields.correlation_id,
    )


def decode_json_command(payload: Payload, command_ids: CommandIds, max_packed_bytes: int = _UINT8_MAX) -> DecodedCommand:
    """Decode a JSON command object, raising DecodeError when it is malformed."""
    _check_max_packed(max_packed_bytes)
    cursor = _JsonCursor(_as_bytes(payload))
    fields = _Fields()

    cursor.expect("{")
    if cursor.peek("}"):
        raise DecodeError("empty command object")

    while True:
        key = cursor.read_key()
        cursor.expect(":")
        _read_field(key, cursor, command_ids, max_packed_bytes, fields)
        if cursor.accept("}"):
            break
        cursor.expect(",")

    if not cursor.at_end():
        raise DecodeError("trailing data after command object")
    return _finish(fields, command_ids)


def decode_msgpack_command(payload: Payload, command_ids: CommandIds, max_packed_bytes: int = _UINT8_MAX) -> DecodedCommand:
    """Decode a MessagePack command map, raising DecodeError when it is malformed."""
    _check_max_packed(max_packed_bytes)
    cursor = _MsgPackCursor(_as_bytes(payload))
    fields = _Fields()

    size = cursor.read_map_size()
    if size == 0:
        raise DecodeError("empty command map")
    for _ in range(size):
        key = cursor.read_key()
        _read_field(key, cursor, command_ids, max_packed_bytes, fields)

    if not cursor.at_end():
        raise DecodeError("trailing data after command map")
    return _finish(fields, command_ids)


def decode_command(
    payload: Payload, codec: Codec, command_ids: CommandIds, max_packed_bytes: int = _UINT8_MAX
) -> DecodedCommand:
    """Decode ``payload`` with the decoder for ``codec``."""
    if not payload:
        raise DecodeError("empty payload")
    if codec is Codec.MSGPACK:
        return decode_msgpack_command(payload, command_ids, max_packed_bytes)
    return decode_json_command(payload, command_ids, max_packed_bytes)