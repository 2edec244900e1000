"""
Zones API Routes
Floor-plan zones, bulk save from the map editor, and zone auto-detection.
"""

import logging

from flask import Blueprint, request, jsonify

from models import db
from services import zone_service
from services.errors import FusionError
from utils.etag_helper import with_etag

logger = logging.getLogger(__name__)

api_zones_bp = Blueprint('api_zones', __name__, url_prefix='/api/zones')


@api_zones_bp.route('', methods=['GET'])
@with_etag
def list_zones():
    try:
        zones = zone_service.list_zones(request.args.get('site_id'))
        return jsonify({'success': True, 'zones': [z.to_dict() for z in zones]})
    except Exception as e:
        logger.error(f"Error listing zones: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_zones_bp.route('/<zone_id>', methods=['GET'])
def get_zone(zone_id):
    zone = zone_service.get_zone(zone_id)
    if not zone:
        return jsonify({'success': False, 'message': 'Zone not found'}), 404
    return jsonify({'success': True, 'zone': zone.to_dict()})


@api_zones_bp.route('', methods=['POST'])
def create_zone():
    try:
        data = request.get_json(silent=True) or {}
        zone = zone_service.create_zone(
            name=data.get('name'),
            site_id=data.get('site_id'),
            color=data.get('color'),
            description=data.get('description'),
            polygon=data.get('polygon'),
            device_ids=data.get('device_ids'),
        )
        return jsonify({'success': True, 'zone': zone.to_dict()}), 201
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating zone: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_zones_bp.route('/<zone_id>', methods=['PUT', 'PATCH'])
def update_zone(zone_id):
    try:
        data = request.get_json(silent=True) or {}
        updates = {k: data[k] for k in zone_service.UPDATABLE_FIELDS if k in data}
        zone = zone_service.update_zone(zone_id, **updates)
        return jsonify({'success': True, 'zone': zone.to_dict()})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating zone {zone_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_zones_bp.route('/<zone_id>', methods=['DELETE'])
def delete_zone(zone_id):
    try:
        zone_service.delete_zone(zone_id)
        return jsonify({'success': True})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting zone {zone_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_zones_bp.route('/save-all', methods=['POST'])
def save_all_zones():
    try:
        data = request.get_json(silent=True) or {}
        zones = data.get('zones')
        if not isinstance(zones, list):
            return jsonify({'success': False, 'message': 'zones must be a list'}), 400
        result = zone_service.save_all_zones(data.get('site_id'), zones)
        return jsonify(result)
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error saving zones: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_zones_bp.route('/detect', methods=['POST'])
def detect_zones():
    """Proposed zones only; nothing is saved."""
    try:
        data = request.get_json(silent=True) or {}
        site_id = data.get('site_id') or request.args.get('site_id')
        return jsonify({'success': True, 'zones': zone_service.detect_zones(site_id)})
    except Exception as e:
        logger.error(f"Error detecting zones: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500
