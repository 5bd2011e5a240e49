import pytest

from lshbridge.options import BridgeOptions, LoggingMode, should_disable_logging


def test_default_options():
    options = BridgeOptions()
    assert options.serial is None
    assert options.disable_led_feedback is True
    assert options.disable_reset_trigger is False
    assert options.disable_wifi_sleep is True
    assert options.logging_mode is LoggingMode.AUTO_FROM_BUILD


def test_options_override():
    options = BridgeOptions(serial="uart1", disable_wifi_sleep=False, logging_mode=LoggingMode.ENABLED)
    assert options.serial == "uart1"
    assert options.disable_wifi_sleep is False
    assert options.logging_mode is LoggingMode.ENABLED
    assert options.disable_led_feedback is True


@pytest.mark.parametrize(
    "mode, debug_build, expected",
    [
        (LoggingMode.ENABLED, False, False),
        (LoggingMode.ENABLED, True, False),
        (LoggingMode.DISABLED, False, True),
        (LoggingMode.DISABLED, True, True),
        (LoggingMode.AUTO_FROM_BUILD, True, False),
        (LoggingMode.AUTO_FROM_BUILD, False, True),
    ],
)
def test_should_disable_logging(mode, debug_build, expected):
    assert should_disable_logging(mode, debug_build) is expected


def test_auto_mode_defaults_to_release_build():
    assert should_disable_logging(LoggingMode.AUTO_FROM_BUILD) is True