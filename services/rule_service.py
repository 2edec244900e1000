"""
Rule Service
CRUD for automation rules, overrides and schedules.
"""

import logging
from typing import List, Optional

from sqlalchemy import select, or_

from models import db, Rule, Zone
from models.rule import RULE_TYPES, TARGET_TYPES, TRIGGER_TYPES
from services.db_retry import with_db_retry
from services.errors import NotFoundError, ValidationError, parse_datetime
from services.rule_engine import validate_rule_payload

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    'name', 'description', 'rule_type', 'target_type', 'target_id', 'trigger',
    'condition', 'action', 'override_bms', 'duration', 'site_id', 'zone_id',
    'target_zones', 'enabled',
)


def _validate(values: dict) -> None:
    if 'name' in values and not values['name']:
        raise ValidationError("Rule name is required")
    if values.get('rule_type') is not None and values['rule_type'] not in RULE_TYPES:
        raise ValidationError(f"rule_type must be one of {', '.join(RULE_TYPES)}")
    if values.get('target_type') is not None and values['target_type'] not in TARGET_TYPES:
        raise ValidationError(f"target_type must be one of {', '.join(TARGET_TYPES)}")
    if 'trigger' in values and values['trigger'] not in TRIGGER_TYPES:
        raise ValidationError(f"trigger must be one of {', '.join(TRIGGER_TYPES)}")
    duration = values.get('duration')
    if duration is not None and (isinstance(duration, bool) or not isinstance(duration, int) or duration < 0):
        raise ValidationError("duration must be a non-negative number of minutes")
    if values.get('target_zones') is not None and not isinstance(values['target_zones'], list):
        raise ValidationError("target_zones must be a list of zone IDs")

    problems = validate_rule_payload(values.get('condition'), values.get('action'))
    if problems:
        raise ValidationError('; '.join(problems), {'problems': problems})

    zone_id = values.get('zone_id')
    if zone_id and not db.session.get(Zone, zone_id):
        raise NotFoundError(f"Zone with ID {zone_id} not found")


@with_db_retry
def list_rules(site_id: Optional[str] = None, zone_id: Optional[str] = None) -> List[Rule]:
    """Newest first. zone_id takes precedence over site_id."""
    stmt = select(Rule).order_by(Rule.created_at.desc())
    if zone_id:
        stmt = stmt.where(Rule.zone_id == zone_id)
    elif site_id:
        site_zone_ids = select(Zone.id).where(Zone.site_id == site_id)
        stmt = stmt.where(or_(Rule.zone_id.in_(site_zone_ids), Rule.site_id == site_id))
    return list(db.session.scalars(stmt))


def get_rule(rule_id: str) -> Optional[Rule]:
    return db.session.get(Rule, rule_id)


def create_rule(name: str, trigger: str, condition: dict = None, action: dict = None, **fields) -> Rule:
    values = {'name': name, 'trigger': trigger, 'condition': condition, 'action': action, **fields}
    _validate(values)

    zone_id = fields.get('zone_id')
    site_id = fields.get('site_id')
    if zone_id and not site_id:
        site_id = db.session.get(Zone, zone_id).site_id

    rule = Rule(
        name=name,
        description=fields.get('description'),
        rule_type=fields.get('rule_type') or 'rule',
        target_type=fields.get('target_type') or 'zone',
        target_id=fields.get('target_id'),
        trigger=trigger,
        condition=condition or {},
        action=action or {},
        override_bms=bool(fields.get('override_bms', False)),
        duration=fields.get('duration'),
        site_id=site_id,
        zone_id=zone_id,
        target_zones=fields.get('target_zones') or [],
        enabled=fields.get('enabled', True) is not False,
    )
    db.session.add(rule)
    db.session.commit()
    logger.info(f"Created {rule.rule_type} {rule.id} ({rule.name}) on trigger {rule.trigger}")
    return rule


def update_rule(rule_id: str, **updates) -> Rule:
    rule = db.session.get(Rule, rule_id)
    if not rule:
        raise NotFoundError(f"Rule with ID {rule_id} not found")

    supplied = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS and v is not None}
    _validate(supplied)
    for field, value in supplied.items():
        setattr(rule, field, value)
    if 'last_triggered' in updates and updates['last_triggered'] is not None:
        rule.last_triggered = parse_datetime('last_triggered', updates['last_triggered'])

    db.session.commit()
    return rule


def delete_rule(rule_id: str) -> None:
    rule = db.session.get(Rule, rule_id)
    if not rule:
        raise NotFoundError(f"Rule with ID {rule_id} not found")
    db.session.delete(rule)
    db.session.commit()
    logger.info(f"Deleted rule {rule_id}")
