# lshbridge

Pure-Python building blocks for a bridge between an LSH controller on a
serial link and an MQTT broker that uses the Homie convention. The package has
no third-party runtime dependencies.

## Modules

- `lshbridge.cache_store` stores the controller topology: the device name, the
  actuator IDs and the button IDs.
  - `encode_record` turns a `DeviceDetails` into a byte-stable record. The
    record has the magic `LSHD`, version 2, the counts, the raw name bytes, the
    IDs and a little-endian FNV-1a checksum. `decode_record` checks and reads a
    record back.
  - Both functions raise `CacheRecordError` for an empty or overlong name, for
    too many IDs, for zero or duplicate IDs, and for a bad magic, version,
    length or checksum. `CacheLimits` sets the size bounds.
  - `DetailsCacheStore` keeps one record in a file. `save` writes it
    atomically. `load` returns `None` when the file is missing or invalid.
    `clear` removes the file and returns whether it existed.
- `lshbridge.node` holds `ActuatorNode`, one Homie node per actuator.
  - `homie_node_id` gives the decimal node ID.
  - `parse_homie_set_value` accepts only `"true"` and `"false"`.
  - `ActuatorNode.handle_set` stages a write through a callback. It returns a
    `HomieRejection` when the runtime is desynchronized, when the value is
    invalid, or when staging fails.
- `lshbridge.mqtt_decoder` is a shallow decoder for the inbound one-level
  command maps, in JSON or MessagePack. It offers `decode_command`,
  `decode_json_command` and `decode_msgpack_command`.
  - `CommandIds` supplies the protocol command ids and keys.
  - The result is a `DecodedCommand`. Its `CommandShape` says whether it is a
    plain command, a single-actuator write, a packed-state write or a click.
  - Unknown keys, trailing data and malformed values raise `DecodeError`.
- `lshbridge.options` holds `BridgeOptions`, `LoggingMode` and
  `should_disable_logging`.
- `lshbridge.payloads` builds and checks payloads.
  - `build_state_payload` writes the compact `{"p": ..., "s": [...]}` state
    publish directly in the chosen `Codec`.
  - `encode_json_uint8` and `encode_msgpack_uint8` encode single byte values.
  - `validate_click_fields` accepts only `ClickType.LONG` or
    `ClickType.SUPER_LONG` with non-zero clickable and correlation IDs.
- `lshbridge.inbound` provides `admit_message`, which classifies one MQTT
  delivery.
  - It returns an `InboundMessage` from the device or service topic.
  - It returns `None` for any other topic.
  - It raises `InboundRejected` with a `RejectReason` for retained, empty,
    fragmented or oversized frames.
- `lshbridge.routing` provides `CommandRouter`, which maps decoded commands to
  an `Action`.
  - `route_service` handles the service topic.
  - `route_device` handles the device topic. Actuator writes are ignored while
    the runtime is not synchronized.
  - `handle_typed` performs typed commands through callbacks and returns a
    `TypedCommandResult`.

## Example

```python
from lshbridge.cache_store import DetailsCacheStore, DeviceDetails, CacheLimits

store = DetailsCacheStore("details.bin", CacheLimits())
store.save(DeviceDetails(name="kitchen", actuator_ids=[1, 2, 3], button_ids=[4]))
print(store.load())
```

## What this package does not do

The package is a set of pure functions and small classes. It does not include
any of the following:

- an MQTT client, a Homie device runtime or a serial link to the controller
- a main loop that ties these pieces together
- main-loop phase breadcrumbs for reset diagnostics
- any command-line program

## Running the tests

```
pip install -e ".[test]"
pytest
```