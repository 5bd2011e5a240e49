import pytest

from lshbridge.mqtt_decoder import (
    Codec,
    CommandIds,
    CommandShape,
    DecodeError,
    decode_command,
    decode_json_command,
    decode_msgpack_command,
)

IDS = CommandIds(
    set_single_actuator=2,
    set_state=3,
    network_click_ack=5,
    failover_click=6,
    id_key="i",
    type_key="t",
    correlation_key="c",
)


def test_json_set_single_actuator():
    result = decode_json_command(b'{"p":2,"i":7,"s":true}', IDS)
    assert result.shape is CommandShape.SET_SINGLE_ACTUATOR
    assert result.command == 2
    assert result.actuator_id == 7
    assert result.clickable_id == 7
    assert result.state is True


@pytest.mark.parametrize("literal, expected", [("true", True), ("false", False), ("1", True), ("0", False)])
def test_json_binary_state_forms(literal, expected):
    result = decode_json_command('{"p":2,"i":7,"s":' + literal + "}", IDS)
    assert result.state is expected
    assert result.shape is CommandShape.SET_SINGLE_ACTUATOR


def test_json_whitespace_is_tolerated():
    compact = decode_json_command(b'{"p":2,"i":7,"s":false}', IDS)
    spaced = decode_json_command(b' \n{ "p" : 2 ,\t"i": 7, "s" :false }\r\n', IDS)
    assert spaced == compact


def test_json_packed_state():
    result = decode_json_command(b'{"p":3,"s":[1, 255 ,0]}', IDS)
    assert result.shape is CommandShape.SET_PACKED_STATE
    assert result.packed_state == b"\x01\xff\x00"


def test_json_empty_packed_state():
    result = decode_json_command(b'{"p":3,"s":[]}', IDS)
    assert result.shape is CommandShape.SET_PACKED_STATE
    assert result.packed_state == b""


def test_json_packed_state_limit():
    assert decode_json_command(b'{"p":3,"s":[1,2]}', IDS, 2).packed_state == b"\x01\x02"
    with pytest.raises(DecodeError):
        decode_json_command(b'{"p":3,"s":[1,2,3]}', IDS, 2)


def test_json_click_shape_and_incomplete_click():
    click = decode_json_command(b'{"p":5,"t":1,"i":4,"c":9}', IDS)
    assert click.shape is CommandShape.CLICK
    assert (click.click_type, click.clickable_id, click.correlation_id) == (1, 4, 9)

    partial = decode_json_command(b'{"p":6,"t":1,"i":4}', IDS)
    assert partial.shape is CommandShape.COMMAND_ONLY


def test_json_command_only_and_leading_zeros():
    result = decode_json_command(b'{"p":009}', IDS)
    assert result.command == 9
    assert result.shape is CommandShape.COMMAND_ONLY


def test_json_str_and_bytes_agree():
    assert decode_json_command('{"p":2,"i":1,"s":1}', IDS) == decode_json_command(b'{"p":2,"i":1,"s":1}', IDS)


@pytest.mark.parametrize(
    "payload",
    [
        b"",
        b"{}",
        b"[1]",
        b'{"p":256}',
        b'{"p":-1}',
        b'{"x":1}',
        b'{"pp":1}',
        b'{"p":1,}',
        b'{"p":1} x',
        b'{"p":1',
        b'{"s":true}',
        b'{"p":2,"s":2}',
        b'{"p":2,"s":truex}',
        b'{"p":3,"s":[1,]}',
        b'{"p":3,"s":[256]}',
    ],
)
def test_json_malformed_payloads(payload):
    with pytest.raises(DecodeError):
        decode_json_command(payload, IDS)


def test_msgpack_matches_json():
    packed = b"\x83\xa1p\x02\xa1i\x07\xa1s\xc3"
    assert decode_msgpack_command(packed, IDS) == decode_json_command(b'{"p":2,"i":7,"s":true}', IDS)


def test_msgpack_integer_encodings_agree():
    fixint = decode_msgpack_command(b"\x81\xa1p\x7f", IDS)
    uint8 = decode_msgpack_command(b"\x81\xa1p\xcc\x7f", IDS)
    uint16 = decode_msgpack_command(b"\x81\xa1p\xcd\x00\x7f", IDS)
    assert fixint == uint8 == uint16
    assert fixint.command == 0x7F


def test_msgpack_map16_and_str8_key():
    expected = decode_msgpack_command(b"\x81\xa1p\x02", IDS)
    assert decode_msgpack_command(b"\xde\x00\x01\xa1p\x02", IDS) == expected
    assert decode_msgpack_command(b"\x81\xd9\x01p\x02", IDS) == expected


def test_msgpack_packed_state_array_forms():
    fixarray = decode_msgpack_command(b"\x82\xa1p\x03\xa1s\x93\x01\xcc\xff\x00", IDS)
    assert fixarray.shape is CommandShape.SET_PACKED_STATE
    assert fixarray.packed_state == b"\x01\xff\x00"

    array16 = decode_msgpack_command(b"\x82\xa1p\x03\xa1s\xdc\x00\x02\x01\x02", IDS)
    assert array16.packed_state == b"\x01\x02"


def test_msgpack_packed_state_limit():
    with pytest.raises(DecodeError):
        decode_msgpack_command(b"\x82\xa1p\x03\xa1s\x92\x01\x02", IDS, 1)


def test_msgpack_binary_state_from_integer():
    result = decode_msgpack_command(b"\x83\xa1p\x02\xa1i\x03\xa1s\x00", IDS)
    assert result.state is False
    assert result.shape is CommandShape.SET_SINGLE_ACTUATOR


@pytest.mark.parametrize(
    "payload",
    [
        b"",
        b"\x80",
        b"\x91\x01",
        b"\x81\xa2pp\x02",
        b"\x81\xa1p\x02\x00",
        b"\x81\xa1p",
        b"\x81\xa1p\xff",
        b"\x81\xa1p\xcd\x01\x00",
        b"\xdf\x00\x00\x00\x01\xa1p\x02",
        b"\x81\xa1x\x01",
        b"\x81\xa1s\xc3",
        b"\x82\xa1p\x02\xa1s\x02",
    ],
)
def test_msgpack_malformed_payloads(payload):
    with pytest.raises(DecodeError):
        decode_msgpack_command(payload, IDS)


def test_decode_command_dispatches_by_codec():
    json_result = decode_command(b'{"p":5,"t":2,"i":1,"c":3}', Codec.JSON, IDS)
    msgpack_result = decode_command(b"\x84\xa1p\x05\xa1t\x02\xa1i\x01\xa1c\x03", Codec.MSGPACK, IDS)
    assert json_result == msgpack_result
    assert json_result.shape is CommandShape.CLICK


@pytest.mark.parametrize("codec", list(Codec))
def test_decode_command_rejects_empty_payload(codec):
    with pytest.raises(DecodeError):
        decode_command(b"", codec, IDS)


def test_command_ids_validation():
    with pytest.raises(ValueError):
        CommandIds(1, 2, 3, 4, id_key="id", type_key="t", correlation_key="c")
    with pytest.raises(ValueError):
        CommandIds(1, 2, 3, 4, id_key="p", type_key="t", correlation_key="c")
    with pytest.raises(ValueError):
        CommandIds(1, 2, 3, 300, id_key="i", type_key="t", correlation_key="c")


def test_invalid_max_packed_bytes():
    with pytest.raises(ValueError):
        decode_json_command(b'{"p":1}', IDS, 256)