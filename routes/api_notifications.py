"""
Notifications API Routes
"""

import logging

from flask import Blueprint, request, jsonify

from services import notification_service
from utils.etag_helper import with_etag

logger = logging.getLogger(__name__)

api_notifications_bp = Blueprint('api_notifications', __name__, url_prefix='/api/notifications')


@api_notifications_bp.route('', methods=['GET'])
@with_etag
def list_notifications():
    try:
        notifications = notification_service.list_notifications(request.args.get('site_id') or None)
        return jsonify({
            'success': True,
            'notifications': [notification_service.serialize_notification(n) for n in notifications],
        })
    except Exception as e:
        logger.error(f"Error building notifications: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500
