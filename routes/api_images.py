"""
Images API Routes
Base64 site floor plans and library object images.
"""

import logging

from flask import Blueprint, request, jsonify

from models import db
from services import image_service
from services.errors import FusionError

logger = logging.getLogger(__name__)

api_images_bp = Blueprint('api_images', __name__, url_prefix='/api/images')


@api_images_bp.route('/sites/<site_id>', methods=['GET'])
def get_site_image(site_id):
    try:
        return jsonify({'success': True, 'image': image_service.get_site_image(site_id)})
    except Exception as e:
        logger.error(f"Error getting site image for {site_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_images_bp.route('/sites/<site_id>', methods=['PUT', 'POST'])
def save_site_image(site_id):
    try:
        data = request.get_json(silent=True) or {}
        return jsonify(image_service.save_site_image(site_id, data.get('image_data')))
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error saving site image for {site_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_images_bp.route('/library/<library_id>', methods=['GET'])
def get_library_image(library_id):
    try:
        return jsonify({'success': True, 'image': image_service.get_library_image(library_id)})
    except Exception as e:
        logger.error(f"Error getting library image {library_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_images_bp.route('/library/<library_id>', methods=['PUT', 'POST'])
def save_library_image(library_id):
    try:
        data = request.get_json(silent=True) or {}
        result = image_service.save_library_image(
            library_id,
            data.get('image_data'),
            mime_type=data.get('mime_type') or image_service.DEFAULT_MIME_TYPE,
        )
        return jsonify(result)
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error saving library image {library_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_images_bp.route('/library/<library_id>', methods=['DELETE'])
def remove_library_image(library_id):
    try:
        return jsonify(image_service.remove_library_image(library_id))
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error removing library image {library_id}: {e}")
        return jsonify({'success': False, 'message': f"Failed to remove library image: {e}"}), 500
