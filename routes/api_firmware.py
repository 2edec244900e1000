"""
Firmware API Routes
Campaign management and per-device progress reporting.
"""

import logging

from flask import Blueprint, request, jsonify

from models import db
from services import firmware_service
from services.device_service import serialize_device
from services.errors import FusionError
from utils.etag_helper import with_etag

logger = logging.getLogger(__name__)

api_firmware_bp = Blueprint('api_firmware', __name__, url_prefix='/api/firmware')


@api_firmware_bp.route('/campaigns', methods=['GET'])
@with_etag
def list_campaigns():
    try:
        include_completed = request.args.get('include_completed', 'false').lower() == 'true'
        campaigns = firmware_service.list_campaigns(request.args.get('site_id'), include_completed)
        return jsonify({'success': True, 'campaigns': [c.to_dict() for c in campaigns]})
    except Exception as e:
        logger.error(f"Error listing firmware campaigns: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_firmware_bp.route('/campaigns', methods=['POST'])
def create_campaign():
    try:
        data = request.get_json(silent=True) or {}
        campaign = firmware_service.create_campaign(
            name=data.get('name'),
            version=data.get('version'),
            device_types_display=data.get('device_types') or [],
            description=data.get('description'),
            file_url=data.get('file_url'),
            site_id=data.get('site_id'),
            scheduled_at=data.get('scheduled_at'),
        )
        return jsonify({'success': True, 'campaign': campaign.to_dict()}), 201
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating firmware campaign: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_firmware_bp.route('/campaigns/<campaign_id>', methods=['GET'])
def get_campaign(campaign_id):
    try:
        campaign = firmware_service.get_campaign(campaign_id)
        return jsonify({'success': True, 'campaign': campaign.to_dict(include_devices=True)})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error getting firmware campaign {campaign_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_firmware_bp.route('/campaigns/<campaign_id>/status', methods=['PUT', 'PATCH'])
def update_campaign_status(campaign_id):
    try:
        data = request.get_json(silent=True) or {}
        campaign = firmware_service.update_campaign_status(campaign_id, data.get('status'))
        return jsonify({'success': True, 'campaign': campaign.to_dict()})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating firmware campaign {campaign_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_firmware_bp.route('/campaigns/<campaign_id>/eligible-devices', methods=['GET'])
def get_eligible_devices(campaign_id):
    try:
        devices = firmware_service.get_eligible_devices(campaign_id)
        return jsonify({'success': True, 'devices': [serialize_device(d, False) for d in devices]})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error listing eligible devices for {campaign_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_firmware_bp.route('/campaigns/<campaign_id>/devices', methods=['POST'])
def add_devices(campaign_id):
    try:
        data = request.get_json(silent=True) or {}
        device_ids = data.get('device_ids')
        if not isinstance(device_ids, list):
            return jsonify({'success': False, 'message': 'device_ids must be a list'}), 400
        return jsonify(firmware_service.add_devices_to_campaign(campaign_id, device_ids))
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error adding devices to campaign {campaign_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_firmware_bp.route('/campaigns/<campaign_id>/devices/<device_pk>/start', methods=['POST'])
def start_device_update(campaign_id, device_pk):
    try:
        record = firmware_service.start_device_update(device_pk, campaign_id)
        return jsonify({'success': True, 'update': record.to_dict(include_device=True)})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error starting update of {device_pk} in {campaign_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_firmware_bp.route('/campaigns/<campaign_id>/devices/<device_pk>/complete', methods=['POST'])
def complete_device_update(campaign_id, device_pk):
    try:
        data = request.get_json(silent=True) or {}
        if not isinstance(data.get('success'), bool):
            return jsonify({'success': False, 'message': 'success must be true or false'}), 400
        result = firmware_service.complete_device_update(
            device_pk, campaign_id, data['success'], data.get('error_message')
        )
        return jsonify(result)
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error completing update of {device_pk} in {campaign_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_firmware_bp.route('/campaigns/<campaign_id>', methods=['DELETE'])
def delete_campaign(campaign_id):
    try:
        firmware_service.delete_campaign(campaign_id)
        return jsonify({'success': True})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting firmware campaign {campaign_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_firmware_bp.route('/devices/<device_pk>', methods=['GET'])
def get_device_firmware(device_pk):
    try:
        return jsonify({'success': True, 'device': firmware_service.get_device_firmware(device_pk)})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error getting firmware for device {device_pk}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500
