"""
Faults API Routes
"""

import logging

from flask import Blueprint, request, jsonify

from models import db
from services import fault_service
from services.errors import FusionError
from utils.etag_helper import with_etag

logger = logging.getLogger(__name__)

api_faults_bp = Blueprint('api_faults', __name__, url_prefix='/api/faults')


@api_faults_bp.route('', methods=['GET'])
@with_etag
def list_faults():
    try:
        site_id = request.args.get('site_id')
        if not site_id:
            return jsonify({'success': False, 'message': 'site_id is required'}), 400
        include_resolved = request.args.get('include_resolved', 'false').lower() == 'true'
        faults = fault_service.list_faults(site_id, include_resolved)
        return jsonify({'success': True, 'faults': [f.to_dict() for f in faults]})
    except Exception as e:
        logger.error(f"Error listing faults: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_faults_bp.route('/<fault_id>', methods=['GET'])
def get_fault(fault_id):
    fault = fault_service.get_fault(fault_id)
    if not fault:
        return jsonify({'success': False, 'message': 'Fault not found'}), 404
    return jsonify({'success': True, 'fault': fault.to_dict()})


@api_faults_bp.route('', methods=['POST'])
def create_fault():
    try:
        data = request.get_json(silent=True) or {}
        fault = fault_service.create_fault(
            device_id=data.get('device_id'),
            fault_type=data.get('fault_type'),
            description=data.get('description'),
            detected_at=data.get('detected_at'),
        )
        return jsonify({'success': True, 'fault': fault.to_dict()}), 201
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating fault: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_faults_bp.route('/<fault_id>', methods=['PUT', 'PATCH'])
def update_fault(fault_id):
    try:
        data = request.get_json(silent=True) or {}
        fault = fault_service.update_fault(
            fault_id,
            resolved=data.get('resolved'),
            resolved_at=data.get('resolved_at'),
            description=data.get('description'),
        )
        return jsonify({'success': True, 'fault': fault.to_dict()})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating fault {fault_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_faults_bp.route('/<fault_id>', methods=['DELETE'])
def delete_fault(fault_id):
    try:
        fault_service.delete_fault(fault_id)
        return jsonify({'success': True})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting fault {fault_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500
