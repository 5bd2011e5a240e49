"""Building blocks for an LSH serial controller to Homie/MQTT bridge: topology cache, command decoding, payloads and routing."""

__version__ = "0.1.0"