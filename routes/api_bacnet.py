"""
BACnet API Routes
Zone to building-management-system object mappings.
"""

import logging

from flask import Blueprint, request, jsonify

from models import db
from services import bacnet_service
from services.errors import FusionError
from utils.etag_helper import with_etag

logger = logging.getLogger(__name__)

api_bacnet_bp = Blueprint('api_bacnet', __name__, url_prefix='/api/bacnet')


@api_bacnet_bp.route('', methods=['GET'])
@with_etag
def list_mappings():
    try:
        mappings = bacnet_service.list_mappings(request.args.get('site_id'))
        return jsonify({'success': True, 'mappings': mappings})
    except Exception as e:
        logger.error(f"Error listing BACnet mappings: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_bacnet_bp.route('/zones/<zone_id>', methods=['GET'])
def get_mapping(zone_id):
    mapping = bacnet_service.get_mapping(zone_id)
    if not mapping:
        return jsonify({'success': False, 'message': 'No BACnet mapping for this zone'}), 404
    return jsonify({'success': True, 'mapping': mapping.to_dict()})


@api_bacnet_bp.route('/zones/<zone_id>', methods=['POST'])
def create_mapping(zone_id):
    try:
        data = request.get_json(silent=True) or {}
        mapping = bacnet_service.create_mapping(
            zone_id,
            bacnet_object_id=data.get('bacnet_object_id'),
            status=data.get('status') or 'NOT_ASSIGNED',
        )
        return jsonify({'success': True, 'mapping': mapping.to_dict()}), 201
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating BACnet mapping for zone {zone_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_bacnet_bp.route('/zones/<zone_id>', methods=['PUT', 'PATCH'])
def update_mapping(zone_id):
    try:
        data = request.get_json(silent=True) or {}
        mapping = bacnet_service.update_mapping(
            zone_id,
            bacnet_object_id=data.get('bacnet_object_id'),
            status=data.get('status'),
            last_connected=data.get('last_connected'),
        )
        return jsonify({'success': True, 'mapping': mapping.to_dict()})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating BACnet mapping for zone {zone_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_bacnet_bp.route('/zones/<zone_id>', methods=['DELETE'])
def delete_mapping(zone_id):
    try:
        bacnet_service.delete_mapping(zone_id)
        return jsonify({'success': True})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting BACnet mapping for zone {zone_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500
