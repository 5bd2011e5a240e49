"""Wire payloads the bridge builds itself, plus click-field validation.

The authoritative state publish has a fixed, shallow shape:
``{"p": <command id>, "s": [<packed state bytes>...]}``. It is written
directly in the active MQTT codec, with no generic document in between.
"""

from __future__ import annotations

import enum
from typing import Iterable

from lshbridge.mqtt_decoder import Codec

_UINT8_MAX = 255
_MSGPACK_FIXMAP_2 = 0x82
_MSGPACK_FIXSTR_1 = 0xA1
_MSGPACK_UINT8 = 0xCC
_MSGPACK_FIXARRAY = 0x90
_MSGPACK_ARRAY16 = 0xDC
_MSGPACK_POSITIVE_FIXINT_MAX = 0x7F
_MSGPACK_FIXARRAY_MAX = 15


class ClickType(enum.IntEnum):
    """Click kinds that may travel over the network channel."""

    LONG = 1
    SUPER_LONG = 2


def _check_uint8(value: int, label: str = "value") -> int:
    if not 0 <= value <= _UINT8_MAX:
        raise ValueError(f"{label} {value} is outside 0..255")
    return value


def validate_click_fields(click_type: int, clickable_id: int, correlation_id: int) -> bool:
    """Return True for a network click with a long/super-long type and non-zero IDs."""
    if click_type not in (ClickType.LONG, ClickType.SUPER_LONG):
        return False
    return clickable_id != 0 and correlation_id != 0


def encode_json_uint8(value: int) -> bytes:
    """Return the decimal JSON text of a byte value."""
    return str(_check_uint8(value)).encode("ascii")


def encode_msgpack_uint8(value: int) -> bytes:
    """Return the shortest MessagePack encoding of a byte value."""
    _check_uint8(value)
    if value <= _MSGPACK_POSITIVE_FIXINT_MAX:
        return bytes((value,))
    return bytes((_MSGPACK_UINT8, value))


def _msgpack_array_header(count: int) -> bytes:
    if count <= _MSGPACK_FIXARRAY_MAX:
        return bytes((_MSGPACK_FIXARRAY | count,))
    return bytes((_MSGPACK_ARRAY16, 0, count))


def build_state_payload(command_id: int, packed_state: Iterable[int], codec: Codec) -> bytes:
    """Build the compact state publish for ``codec``.

    Raises ValueError when the command id or a packed byte does not fit in
    one byte, or when there are more than 255 packed bytes.
    """
    _check_uint8(command_id, "command id")
    state = bytes(packed_state)
    if len(state) > _UINT8_MAX:
        raise ValueError("packed state holds more than 255 bytes")

    if codec is Codec.MSGPACK:
        parts = [
            bytes((_MSGPACK_FIXMAP_2, _MSGPACK_FIXSTR_1, ord("p"))),
            encode_msgpack_uint8(command_id),
            bytes((_MSGPACK_FIXSTR_1, ord("s"))),
            _msgpack_array_header(len(state)),
        ]
        parts.extend(encode_msgpack_uint8(byte) for byte in state)
        return b"".join(parts)

    items = b",".join(encode_json_uint8(byte) for byte in state)
    return b'{"p":' + encode_json_uint8(command_id) + b',"s":[' + items + b"]}"