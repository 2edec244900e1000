"""
Device Type Vocabulary

Stored enum values (``FIXTURE_16FT_POWER_ENTRY``) are what the database holds;
display values (``fixture-16ft-power-entry``) are what the API speaks.
"""

import logging
from typing import Optional

from models.device import DeviceType, DeviceStatus
from services.errors import ValidationError

logger = logging.getLogger(__name__)

DEVICE_TYPE_DISPLAY = {
    DeviceType.FIXTURE_16FT_POWER_ENTRY.value: 'fixture-16ft-power-entry',
    DeviceType.FIXTURE_12FT_POWER_ENTRY.value: 'fixture-12ft-power-entry',
    DeviceType.FIXTURE_8FT_POWER_ENTRY.value: 'fixture-8ft-power-entry',
    DeviceType.FIXTURE_16FT_FOLLOWER.value: 'fixture-16ft-follower',
    DeviceType.FIXTURE_12FT_FOLLOWER.value: 'fixture-12ft-follower',
    DeviceType.FIXTURE_8FT_FOLLOWER.value: 'fixture-8ft-follower',
    DeviceType.MOTION_SENSOR.value: 'motion',
    DeviceType.LIGHT_SENSOR.value: 'light-sensor',
}

DEVICE_TYPE_FROM_DISPLAY = {display: stored for stored, display in DEVICE_TYPE_DISPLAY.items()}

DEVICE_TYPE_LABELS = {
    DeviceType.FIXTURE_16FT_POWER_ENTRY.value: '16ft Power Entry',
    DeviceType.FIXTURE_12FT_POWER_ENTRY.value: '12ft Power Entry',
    DeviceType.FIXTURE_8FT_POWER_ENTRY.value: '8ft Power Entry',
    DeviceType.FIXTURE_16FT_FOLLOWER.value: '16ft Follower',
    DeviceType.FIXTURE_12FT_FOLLOWER.value: '12ft Follower',
    DeviceType.FIXTURE_8FT_FOLLOWER.value: '8ft Follower',
    DeviceType.MOTION_SENSOR.value: 'Motion Sensor',
    DeviceType.LIGHT_SENSOR.value: 'Light Sensor',
}

DEVICE_STATUS_DISPLAY = {
    DeviceStatus.ONLINE.value: 'online',
    DeviceStatus.OFFLINE.value: 'offline',
    DeviceStatus.MISSING.value: 'missing',
    DeviceStatus.DUPLICATE.value: 'offline',
}

DEVICE_STATUS_FROM_DISPLAY = {
    'online': DeviceStatus.ONLINE.value,
    'offline': DeviceStatus.OFFLINE.value,
    'missing': DeviceStatus.MISSING.value,
}

DISPLAY_DEVICE_TYPES = tuple(DEVICE_TYPE_DISPLAY.values())
DISPLAY_FIXTURE_TYPES = tuple(t for t in DISPLAY_DEVICE_TYPES if t.startswith('fixture-'))

# Older clients send the bare 'fixture' type on update
LEGACY_FIXTURE_TYPE = 'fixture'


def to_display_type(stored: str) -> str:
    return DEVICE_TYPE_DISPLAY.get(stored, DEVICE_TYPE_DISPLAY[DeviceType.FIXTURE_16FT_POWER_ENTRY.value])


def from_display_type(display: str, strict: bool = False) -> str:
    """
    Convert a display type to its stored form.

    Unknown values map to FIXTURE_16FT_POWER_ENTRY, or raise ValidationError when strict.
    """
    stored = DEVICE_TYPE_FROM_DISPLAY.get(display)
    if stored:
        return stored
    if strict:
        raise ValidationError(
            f"Invalid device type: {display}",
            {'allowed': list(DISPLAY_DEVICE_TYPES)},
        )
    logger.warning(f"Unknown display device type '{display}', defaulting to FIXTURE_16FT_POWER_ENTRY")
    return DeviceType.FIXTURE_16FT_POWER_ENTRY.value


def to_display_status(stored: str) -> str:
    return DEVICE_STATUS_DISPLAY.get(stored, 'offline')


def from_display_status(display: Optional[str]) -> str:
    return DEVICE_STATUS_FROM_DISPLAY.get(display, DeviceStatus.OFFLINE.value)


def is_display_status(value) -> bool:
    return isinstance(value, str) and value in DEVICE_STATUS_FROM_DISPLAY


def is_fixture_type(value) -> bool:
    """True for fixture types in stored, display or legacy form."""
    if not isinstance(value, str):
        return False
    return value.startswith('FIXTURE_') or value.startswith('fixture-') or value == LEGACY_FIXTURE_TYPE


def get_device_type_label(value: str) -> str:
    stored = DEVICE_TYPE_FROM_DISPLAY.get(value, value)
    return DEVICE_TYPE_LABELS.get(stored, value)


def get_fixture_length(value: str) -> Optional[int]:
    """Fixture length in feet, None for sensors."""
    display = DEVICE_TYPE_DISPLAY.get(value, value)
    if not is_fixture_type(display):
        return None
    for length in (16, 12, 8):
        if f'{length}ft' in display:
            return length
    return None
