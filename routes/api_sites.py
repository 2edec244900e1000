"""
Sites API Routes
Retail stores: list, lookup by store number, create, update, ensure-exists, delete.
"""

import logging

from flask import Blueprint, request, jsonify

from models import db
from services import site_service
from services.errors import FusionError
from utils.etag_helper import with_etag

logger = logging.getLogger(__name__)

api_sites_bp = Blueprint('api_sites', __name__, url_prefix='/api/sites')


@api_sites_bp.route('', methods=['GET'])
@with_etag
def list_sites():
    try:
        store_number = request.args.get('store_number')
        if store_number:
            site = site_service.get_site_by_store_number(store_number)
            sites = [site] if site else []
        else:
            sites = site_service.list_sites()
        return jsonify({'success': True, 'sites': [s.to_dict() for s in sites]})
    except Exception as e:
        logger.error(f"Error listing sites: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_sites_bp.route('/<site_id>', methods=['GET'])
def get_site(site_id):
    try:
        site = site_service.get_site(site_id)
        if not site:
            return jsonify({'success': False, 'message': 'Site not found'}), 404
        include_image = request.args.get('include_image', 'false').lower() == 'true'
        return jsonify({'success': True, 'site': site.to_dict(include_image=include_image)})
    except Exception as e:
        logger.error(f"Error getting site {site_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_sites_bp.route('', methods=['POST'])
def create_site():
    try:
        data = request.get_json(silent=True) or {}
        site = site_service.create_site(
            name=data.get('name'),
            store_number=data.get('store_number'),
            address=data.get('address'),
        )
        return jsonify({'success': True, 'site': site.to_dict()}), 201
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating site: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_sites_bp.route('/ensure', methods=['POST'])
def ensure_site():
    """Idempotent create for clients that generate site IDs themselves."""
    try:
        data = request.get_json(silent=True) or {}
        if not data.get('id') or not data.get('name'):
            return jsonify({'success': False, 'message': 'id and name are required'}), 400
        site = site_service.ensure_site_exists(
            site_id=data['id'],
            name=data['name'],
            store_number=data.get('store_number'),
            address=data.get('address'),
        )
        return jsonify({'success': True, 'site': site.to_dict()})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error ensuring site: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_sites_bp.route('/<site_id>', methods=['PUT', 'PATCH'])
def update_site(site_id):
    try:
        data = request.get_json(silent=True) or {}
        updates = {k: data[k] for k in site_service.UPDATABLE_FIELDS if k in data}
        site = site_service.update_site(site_id, **updates)
        return jsonify({'success': True, 'site': site.to_dict()})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating site {site_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_sites_bp.route('/<site_id>', methods=['DELETE'])
def delete_site(site_id):
    try:
        site_service.delete_site(site_id)
        return jsonify({'success': True})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting site {site_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500
