"""
Groups API Routes
Group CRUD plus single-member add/remove for drag-and-drop on the map.
"""

import logging

from flask import Blueprint, request, jsonify

from models import db
from services import group_service
from services.errors import FusionError
from utils.etag_helper import with_etag

logger = logging.getLogger(__name__)

api_groups_bp = Blueprint('api_groups', __name__, url_prefix='/api/groups')

GROUP_FIELDS = ('name', 'description', 'color', 'device_ids', 'person_ids')


@api_groups_bp.route('', methods=['GET'])
@with_etag
def list_groups():
    try:
        site_id = request.args.get('site_id')
        if not site_id:
            return jsonify({'success': False, 'message': 'site_id is required'}), 400
        groups = group_service.list_groups(site_id)
        return jsonify({'success': True, 'groups': [g.to_dict() for g in groups]})
    except Exception as e:
        logger.error(f"Error listing groups: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_groups_bp.route('/<group_id>', methods=['GET'])
def get_group(group_id):
    group = group_service.get_group(group_id)
    if not group:
        return jsonify({'success': False, 'message': 'Group not found'}), 404
    return jsonify({'success': True, 'group': group.to_dict()})


@api_groups_bp.route('', methods=['POST'])
def create_group():
    try:
        data = request.get_json(silent=True) or {}
        group = group_service.create_group(
            name=data.get('name'),
            site_id=data.get('site_id'),
            **{k: data[k] for k in GROUP_FIELDS[1:] if k in data},
        )
        return jsonify({'success': True, 'group': group.to_dict()}), 201
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating group: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_groups_bp.route('/<group_id>', methods=['PUT', 'PATCH'])
def update_group(group_id):
    try:
        data = request.get_json(silent=True) or {}
        group = group_service.update_group(group_id, **{k: data[k] for k in GROUP_FIELDS if k in data})
        return jsonify({'success': True, 'group': group.to_dict()})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating group {group_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_groups_bp.route('/<group_id>', methods=['DELETE'])
def delete_group(group_id):
    try:
        return jsonify({'success': True, 'group': group_service.delete_group(group_id)})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting group {group_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_groups_bp.route('/<group_id>/devices/<device_id>', methods=['POST', 'DELETE'])
def group_device(group_id, device_id):
    try:
        if request.method == 'POST':
            group = group_service.add_device(group_id, device_id)
        else:
            group = group_service.remove_device(group_id, device_id)
        return jsonify({'success': True, 'group': group.to_dict()})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error changing device {device_id} in group {group_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_groups_bp.route('/<group_id>/people/<person_id>', methods=['POST', 'DELETE'])
def group_person(group_id, person_id):
    try:
        if request.method == 'POST':
            group = group_service.add_person(group_id, person_id)
        else:
            group = group_service.remove_person(group_id, person_id)
        return jsonify({'success': True, 'group': group.to_dict()})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error changing person {person_id} in group {group_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500
