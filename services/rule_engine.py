"""
Rule Engine

Evaluates trigger -> condition -> action rules against test events and renders
them as plain-English previews. Rules are plain dicts (Rule.to_dict() or a
draft straight from the editor), so unsaved rules can be previewed too.

Condition keys: zone, device_id, duration, level, operator, schedule_time,
schedule_days, schedule_frequency, schedule_date.
Action keys: zones, devices, brightness, duration, return_to_bms, email_manager.
"""

import logging
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

TRIGGERS = ('motion', 'no_motion', 'daylight', 'bms', 'schedule', 'fault')
OPERATORS = ('>', '<', '=', '>=')
SCHEDULE_FREQUENCIES = ('daily', 'weekly', 'custom')
DAY_NAMES = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']

DEFAULT_ZONE = 'Zone A'
OTHER_ZONE = 'Zone B'


def _condition(rule: dict) -> dict:
    return rule.get('condition') or {}


def _action(rule: dict) -> dict:
    return rule.get('action') or {}


def _targets_match(condition: dict, event: dict) -> bool:
    """Zone or device named by the condition matches the event; no target matches anything."""
    zone = condition.get('zone')
    device_id = condition.get('device_id')
    if not zone and not device_id:
        return True
    if zone and event.get('zone') == zone:
        return True
    if device_id and event.get('device_id') == device_id:
        return True
    return False


def compare_level(value: float, operator: str, threshold: float) -> bool:
    if operator == '>':
        return value > threshold
    if operator == '<':
        return value < threshold
    if operator == '>=':
        return value >= threshold
    if operator == '=':
        return value == threshold
    raise ValueError(f"Unsupported operator: {operator}")


def simulate_rule(rule: dict, event: dict) -> Dict[str, object]:
    """
    Would this rule fire for this event?

    Events look like {'trigger': 'motion', 'zone': 'Produce', 'motion': True}.
    Returns {'triggered': bool, 'reason': str}.
    """
    trigger = rule.get('trigger')
    if not rule.get('enabled', True):
        return {'triggered': False, 'reason': 'Rule is disabled'}
    if event.get('trigger') != trigger:
        return {'triggered': False, 'reason': 'Trigger type mismatch'}

    condition = _condition(rule)

    if trigger == 'motion':
        motion = bool(event.get('motion'))
        if motion and _targets_match(condition, event):
            return {'triggered': True, 'reason': 'Motion detected in target zone/device'}
        reason = 'Motion detected but not in target zone/device' if motion else 'No motion detected'
        return {'triggered': False, 'reason': reason}

    if trigger == 'no_motion':
        if not event.get('motion') and _targets_match(condition, event):
            return {'triggered': True, 'reason': 'No motion in target zone/device for required duration'}
        return {'triggered': False, 'reason': 'Motion still detected or wrong zone/device'}

    if trigger == 'daylight':
        level = event.get('daylight') or 0
        threshold = condition.get('level') or 0
        operator = condition.get('operator') or '>'
        zone_match = not condition.get('zone') or event.get('zone') == condition.get('zone')
        level_match = compare_level(level, operator, threshold)
        if level_match and zone_match:
            return {
                'triggered': True,
                'reason': f"Daylight level {level}fc {operator} {threshold}fc in target zone",
            }
        if level_match:
            return {'triggered': False, 'reason': 'Daylight level matches but wrong zone'}
        return {
            'triggered': False,
            'reason': f"Daylight level {level}fc does not meet condition {operator} {threshold}fc",
        }

    if trigger == 'schedule':
        scheduled = condition.get('schedule_time')
        if event.get('time') != scheduled:
            return {
                'triggered': False,
                'reason': f"Time {event.get('time')} does not match scheduled time {scheduled}",
            }
        weekday = event.get('weekday')
        days = condition.get('schedule_days') or []
        if condition.get('schedule_frequency') == 'weekly' and weekday is not None and weekday not in days:
            return {'triggered': False, 'reason': f"{DAY_NAMES[weekday % 7]} is not a scheduled day"}
        return {'triggered': True, 'reason': 'Scheduled time reached'}

    if trigger == 'bms':
        return {'triggered': True, 'reason': 'BMS command received'}

    if trigger == 'fault':
        if _targets_match(condition, event):
            return {'triggered': True, 'reason': 'Fault detected in target zone/device'}
        return {'triggered': False, 'reason': 'Fault detected outside target zone/device'}

    logger.warning(f"simulate_rule: unknown trigger {trigger!r}")
    return {'triggered': False, 'reason': f"Unknown trigger: {trigger}"}


def example_events(rule: dict) -> List[dict]:
    """Sample events that exercise both outcomes of the rule's trigger."""
    trigger = rule.get('trigger')
    condition = _condition(rule)
    zone = condition.get('zone') or DEFAULT_ZONE

    if trigger == 'motion':
        return [
            {'id': 'motion-1', 'name': 'Motion detected in target zone',
             'trigger': 'motion', 'zone': zone, 'motion': True},
            {'id': 'motion-2', 'name': 'Motion detected in different zone',
             'trigger': 'motion', 'zone': OTHER_ZONE, 'motion': True},
            {'id': 'motion-3', 'name': 'No motion',
             'trigger': 'motion', 'zone': zone, 'motion': False},
        ]

    if trigger == 'no_motion':
        return [
            {'id': 'no-motion-1', 'name': f"No motion for {condition.get('duration') or 30} minutes",
             'trigger': 'no_motion', 'zone': zone, 'motion': False},
            {'id': 'no-motion-2', 'name': 'Motion detected (should not trigger)',
             'trigger': 'no_motion', 'zone': zone, 'motion': True},
        ]

    if trigger == 'daylight':
        threshold = condition.get('level') or 100
        operator = condition.get('operator') or '>'
        above, below = threshold + 10, threshold - 10
        hit, miss = (above, below) if operator in ('>', '>=') else (below, above)
        if operator == '=':
            hit, miss = threshold, above
        return [
            {'id': 'daylight-1', 'name': f"Daylight {operator} {threshold}fc (would trigger)",
             'trigger': 'daylight', 'zone': zone, 'daylight': hit},
            {'id': 'daylight-2', 'name': f"Daylight {miss}fc (would not trigger)",
             'trigger': 'daylight', 'zone': zone, 'daylight': miss},
        ]

    if trigger == 'schedule':
        time = condition.get('schedule_time') or '08:00'
        return [
            {'id': 'schedule-1', 'name': f"At scheduled time {time}", 'trigger': 'schedule', 'time': time},
            {'id': 'schedule-2', 'name': 'At different time (would not trigger)',
             'trigger': 'schedule', 'time': '12:00' if time != '12:00' else '13:00'},
        ]

    if trigger == 'bms':
        return [{'id': 'bms-1', 'name': 'BMS command received', 'trigger': 'bms'}]

    if trigger == 'fault':
        return [
            {'id': 'fault-1', 'name': 'Fault reported in target zone',
             'trigger': 'fault', 'zone': zone, 'device_id': condition.get('device_id')},
            {'id': 'fault-2', 'name': 'Fault reported elsewhere',
             'trigger': 'fault', 'zone': OTHER_ZONE},
        ]

    return []


def _trigger_text(trigger: str, condition: dict) -> str:
    zone = condition.get('zone')
    device_id = condition.get('device_id')
    where = f" in {zone}" if zone else f" at {device_id}" if device_id else ''

    if trigger == 'motion':
        return f"When motion is detected{where}"
    if trigger == 'no_motion':
        return f"When no motion is detected{where} for {condition.get('duration') or 0} minutes"
    if trigger == 'daylight':
        return (
            f"When daylight level is {condition.get('operator') or '>'} "
            f"{condition.get('level') or 0} fc{where}"
        )
    if trigger == 'bms':
        return 'When a BMS command is received'
    if trigger == 'schedule':
        time = condition.get('schedule_time')
        if not time:
            return 'At scheduled time'
        frequency = condition.get('schedule_frequency')
        if frequency == 'weekly':
            days = condition.get('schedule_days') or []
            names = ', '.join(DAY_NAMES[d % 7] for d in days) or 'selected days'
            return f"At {time} on {names}"
        if frequency == 'custom':
            return f"At {time} on {condition.get('schedule_date')}"
        return f"At {time} daily"
    if trigger == 'fault':
        return 'When a fault is detected'
    return f"When {trigger} occurs"


def _action_text(action: dict) -> str:
    parts = []
    if action.get('email_manager'):
        parts.append('email the store manager')

    zones = action.get('zones') or []
    devices = action.get('devices') or []
    if zones or devices:
        if len(zones) == 1:
            parts.append(f"set {zones[0]}")
        elif zones:
            more = '...' if len(zones) > 2 else ''
            parts.append(f"set {len(zones)} zones ({', '.join(zones[:2])}{more})")
        else:
            parts.append(f"set {len(devices)} device(s)")
        if action.get('brightness') is not None:
            parts.append(f"to {action['brightness']}% brightness")
        if action.get('duration'):
            parts.append(f"for {action['duration']} minutes")
        if action.get('return_to_bms'):
            parts.append('then return control to BMS')
    return ' '.join(parts)


def preview_rule(rule: dict) -> str:
    """Plain-English sentence describing the rule."""
    trigger = rule.get('trigger')
    if not trigger:
        return 'Start building your rule by selecting a trigger...'

    trigger_text = _trigger_text(trigger, _condition(rule))
    action_text = _action_text(_action(rule))
    if not action_text:
        return f"{trigger_text} → [configure action]"
    return f"{trigger_text} → {action_text}"


def validate_rule_payload(condition: Optional[dict], action: Optional[dict]) -> List[str]:
    """Problems with the condition/action documents, empty when valid."""
    problems = []
    condition = condition or {}
    action = action or {}
    if not isinstance(condition, dict):
        return ['condition must be an object']
    if not isinstance(action, dict):
        return ['action must be an object']

    operator = condition.get('operator')
    if operator is not None and operator not in OPERATORS:
        problems.append(f"operator must be one of {', '.join(OPERATORS)}")
    frequency = condition.get('schedule_frequency')
    if frequency is not None and frequency not in SCHEDULE_FREQUENCIES:
        problems.append(f"schedule_frequency must be one of {', '.join(SCHEDULE_FREQUENCIES)}")
    level = condition.get('level')
    if level is not None and (isinstance(level, bool) or not isinstance(level, (int, float))):
        problems.append('level must be a number')
    days = condition.get('schedule_days') or []
    if not isinstance(days, list):
        days = [days]
    for day in days:
        if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
            problems.append('schedule_days must contain integers 0-6')
            break
    time = condition.get('schedule_time')
    if time is not None and not _is_hh_mm(time):
        problems.append('schedule_time must be HH:MM')

    brightness = action.get('brightness')
    if brightness is not None:
        if isinstance(brightness, bool) or not isinstance(brightness, (int, float)) or not 0 <= brightness <= 100:
            problems.append('brightness must be between 0 and 100')
    return problems


def validate_event(event: dict) -> List[str]:
    """Problems with a simulator test event, empty when valid."""
    problems = []
    daylight = event.get('daylight')
    if daylight is not None and (isinstance(daylight, bool) or not isinstance(daylight, (int, float))):
        problems.append('daylight must be a number')
    weekday = event.get('weekday')
    if weekday is not None and (isinstance(weekday, bool) or not isinstance(weekday, int) or not 0 <= weekday <= 6):
        problems.append('weekday must be an integer 0-6')
    motion = event.get('motion')
    if motion is not None and not isinstance(motion, bool):
        problems.append('motion must be true or false')
    time = event.get('time')
    if time is not None and not isinstance(time, str):
        problems.append('time must be HH:MM')
    return problems


def _is_hh_mm(value) -> bool:
    if not isinstance(value, str) or len(value) != 5 or value[2] != ':':
        return False
    hours, minutes = value[:2], value[3:]
    if not (hours.isdigit() and minutes.isdigit()):
        return False
    return int(hours) < 24 and int(minutes) < 60
