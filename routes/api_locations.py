"""
Locations API Routes
"""

import logging

from flask import Blueprint, request, jsonify

from models import db
from services import location_service
from services.errors import FusionError
from utils.etag_helper import with_etag

logger = logging.getLogger(__name__)

api_locations_bp = Blueprint('api_locations', __name__, url_prefix='/api/locations')

CREATE_FIELDS = ('parent_id', 'image_url', 'vector_data_url', 'zoom_bounds')


@api_locations_bp.route('', methods=['GET'])
@with_etag
def list_locations():
    try:
        site_id = request.args.get('site_id')
        if not site_id:
            return jsonify({'success': False, 'message': 'site_id is required'}), 400
        locations = location_service.list_locations(site_id)
        return jsonify({'success': True, 'locations': [loc.to_dict() for loc in locations]})
    except Exception as e:
        logger.error(f"Error fetching locations: {e}")
        return jsonify({'success': False, 'message': f"Failed to fetch locations: {e}"}), 500


@api_locations_bp.route('', methods=['POST'])
def create_location():
    try:
        data = request.get_json(silent=True) or {}
        location = location_service.create_location(
            site_id=data.get('site_id'),
            name=data.get('name'),
            type=data.get('type'),
            **{k: data[k] for k in CREATE_FIELDS if k in data},
        )
        return jsonify({'success': True, 'location': location.to_dict()}), 201
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating location: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_locations_bp.route('/<location_id>', methods=['PUT', 'PATCH'])
def update_location(location_id):
    try:
        data = request.get_json(silent=True) or {}
        updates = {k: data[k] for k in location_service.UPDATABLE_FIELDS if k in data}
        location = location_service.update_location(location_id, **updates)
        return jsonify({'success': True, 'location': location.to_dict()})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating location {location_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_locations_bp.route('/<location_id>', methods=['DELETE'])
def delete_location(location_id):
    try:
        location_service.delete_location(location_id)
        return jsonify({'success': True})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting location {location_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500
