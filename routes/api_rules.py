"""
Rules API Routes
Automation rules, overrides and schedules, plus the editor's preview and
test-event simulator. Preview/simulate accept unsaved drafts.
"""

import logging

from flask import Blueprint, request, jsonify

from models import db
from services import rule_service
from services.rule_engine import (
    preview_rule,
    simulate_rule,
    example_events,
    validate_event,
    validate_rule_payload,
)
from services.errors import FusionError, ValidationError
from utils.etag_helper import with_etag

logger = logging.getLogger(__name__)

api_rules_bp = Blueprint('api_rules', __name__, url_prefix='/api/rules')


@api_rules_bp.route('', methods=['GET'])
@with_etag
def list_rules():
    try:
        rules = rule_service.list_rules(
            site_id=request.args.get('site_id'),
            zone_id=request.args.get('zone_id'),
        )
        return jsonify({'success': True, 'rules': [r.to_dict() for r in rules]})
    except Exception as e:
        logger.error(f"Error listing rules: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_rules_bp.route('/<rule_id>', methods=['GET'])
def get_rule(rule_id):
    rule = rule_service.get_rule(rule_id)
    if not rule:
        return jsonify({'success': False, 'message': 'Rule not found'}), 404
    return jsonify({'success': True, 'rule': rule.to_dict()})


@api_rules_bp.route('', methods=['POST'])
def create_rule():
    try:
        data = request.get_json(silent=True) or {}
        fields = {k: data[k] for k in rule_service.UPDATABLE_FIELDS if k in data}
        for key in ('name', 'trigger', 'condition', 'action'):
            fields.pop(key, None)
        rule = rule_service.create_rule(
            name=data.get('name'),
            trigger=data.get('trigger'),
            condition=data.get('condition'),
            action=data.get('action'),
            **fields,
        )
        return jsonify({'success': True, 'rule': rule.to_dict()}), 201
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating rule: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_rules_bp.route('/<rule_id>', methods=['PUT', 'PATCH'])
def update_rule(rule_id):
    try:
        data = request.get_json(silent=True) or {}
        updates = {k: data[k] for k in rule_service.UPDATABLE_FIELDS + ('last_triggered',) if k in data}
        rule = rule_service.update_rule(rule_id, **updates)
        return jsonify({'success': True, 'rule': rule.to_dict()})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating rule {rule_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_rules_bp.route('/<rule_id>', methods=['DELETE'])
def delete_rule(rule_id):
    try:
        rule_service.delete_rule(rule_id)
        return jsonify({'success': True})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting rule {rule_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


def _rule_from_request(data: dict) -> dict:
    """
    A saved rule (by rule_id) or the inline draft in data['rule'].

    Drafts are checked the same way saved rules are; ValidationError on a bad draft.
    """
    if data.get('rule_id'):
        rule = rule_service.get_rule(data['rule_id'])
        return rule.to_dict() if rule else None
    rule = data.get('rule') or {}
    if not isinstance(rule, dict):
        raise ValidationError('rule must be an object')
    problems = validate_rule_payload(rule.get('condition'), rule.get('action'))
    if problems:
        raise ValidationError('; '.join(problems), {'problems': problems})
    return rule


@api_rules_bp.route('/preview', methods=['POST'])
def preview():
    try:
        data = request.get_json(silent=True) or {}
        rule = _rule_from_request(data)
        if rule is None:
            return jsonify({'success': False, 'message': 'Rule not found'}), 404
        return jsonify({'success': True, 'preview': preview_rule(rule)})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code


@api_rules_bp.route('/simulate', methods=['POST'])
def simulate():
    try:
        data = request.get_json(silent=True) or {}
        rule = _rule_from_request(data)
        if rule is None:
            return jsonify({'success': False, 'message': 'Rule not found'}), 404
        event = data.get('event')
        if not isinstance(event, dict):
            return jsonify({'success': False, 'message': 'event is required'}), 400
        problems = validate_event(event)
        if problems:
            raise ValidationError('; '.join(problems), {'problems': problems})
        result = simulate_rule(rule, event)
        return jsonify({'success': True, **result})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except ValueError as e:
        return jsonify({'success': False, 'message': str(e)}), 400


@api_rules_bp.route('/example-events', methods=['POST'])
def get_example_events():
    try:
        data = request.get_json(silent=True) or {}
        rule = _rule_from_request(data)
        if rule is None:
            return jsonify({'success': False, 'message': 'Rule not found'}), 404
        return jsonify({'success': True, 'events': example_events(rule)})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
