"""
Devices API Routes
Fixtures and sensors: CRUD, search, components, bulk delete, and the map
editor's arrange/align helpers. Payloads use display types and statuses.
"""

import logging

from flask import Blueprint, request, jsonify

from models import db
from services import device_service
from services.device_service import serialize_device
from services.errors import FusionError
from utils.etag_helper import with_etag

logger = logging.getLogger(__name__)

api_devices_bp = Blueprint('api_devices', __name__, url_prefix='/api/devices')

CREATE_FIELDS = ('signal', 'battery', 'x', 'y', 'orientation', 'warranty_status', 'warranty_expiry')
UPDATE_FIELDS = device_service.UPDATABLE_FIELDS + ('type', 'status', 'warranty_expiry')


def _include_components() -> bool:
    return request.args.get('include_components', 'true').lower() != 'false'


@api_devices_bp.route('', methods=['GET'])
@with_etag
def list_devices():
    try:
        devices = device_service.list_devices(request.args.get('site_id'))
        include_components = _include_components()
        return jsonify({
            'success': True,
            'devices': [serialize_device(d, include_components) for d in devices],
        })
    except Exception as e:
        logger.error(f"Error listing devices: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_devices_bp.route('/search', methods=['GET'])
def search_devices():
    try:
        devices = device_service.search_devices(request.args.get('q', ''), request.args.get('site_id'))
        return jsonify({'success': True, 'devices': [serialize_device(d) for d in devices]})
    except Exception as e:
        logger.error(f"Error searching devices: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_devices_bp.route('/<device_pk>', methods=['GET'])
def get_device(device_pk):
    try:
        device = device_service.get_device(device_pk)
        if not device:
            return jsonify({'success': False, 'message': 'Device not found'}), 404
        return jsonify({'success': True, 'device': serialize_device(device, _include_components())})
    except Exception as e:
        logger.error(f"Error getting device {device_pk}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_devices_bp.route('/<device_pk>/components', methods=['GET'])
def get_components(device_pk):
    try:
        components = device_service.get_components(device_pk)
        return jsonify({
            'success': True,
            'components': [device_service.serialize_component(c) for c in components],
        })
    except Exception as e:
        logger.error(f"Error getting components for {device_pk}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_devices_bp.route('', methods=['POST'])
def create_device():
    try:
        data = request.get_json(silent=True) or {}
        device = device_service.create_device(
            site_id=data.get('site_id'),
            device_id=data.get('device_id'),
            serial_number=data.get('serial_number'),
            type=data.get('type'),
            status=data.get('status') or 'offline',
            components=data.get('components'),
            **{k: data[k] for k in CREATE_FIELDS if k in data},
        )
        return jsonify({'success': True, 'device': serialize_device(device)}), 201
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating device: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_devices_bp.route('/<device_pk>', methods=['PUT', 'PATCH'])
def update_device(device_pk):
    try:
        data = request.get_json(silent=True) or {}
        updates = {k: data[k] for k in UPDATE_FIELDS if k in data}
        device = device_service.update_device(device_pk, **updates)
        return jsonify({'success': True, 'device': serialize_device(device)})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating device {device_pk}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_devices_bp.route('/<device_pk>', methods=['DELETE'])
def delete_device(device_pk):
    try:
        device_service.delete_device(device_pk)
        return jsonify({'success': True})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting device {device_pk}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_devices_bp.route('/delete-many', methods=['POST'])
def delete_many():
    try:
        data = request.get_json(silent=True) or {}
        ids = data.get('ids')
        if not isinstance(ids, list):
            return jsonify({'success': False, 'message': 'ids must be a list'}), 400
        return jsonify(device_service.delete_devices(ids))
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting devices: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_devices_bp.route('/arrange', methods=['POST'])
def arrange_devices():
    try:
        data = request.get_json(silent=True) or {}
        if not data.get('zone_id') or not isinstance(data.get('device_ids'), list):
            return jsonify({'success': False, 'message': 'zone_id and device_ids are required'}), 400
        devices = device_service.arrange_devices(
            data['zone_id'], data['device_ids'], padding=data.get('padding', 0.02)
        )
        return jsonify({'success': True, 'devices': [serialize_device(d, False) for d in devices]})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error arranging devices: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_devices_bp.route('/align', methods=['POST'])
def align_devices():
    try:
        data = request.get_json(silent=True) or {}
        if not isinstance(data.get('device_ids'), list):
            return jsonify({'success': False, 'message': 'device_ids must be a list'}), 400
        devices = device_service.align_devices(data['device_ids'])
        return jsonify({'success': True, 'devices': [serialize_device(d, False) for d in devices]})
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error aligning devices: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500
