"""
People API Routes
Site staff, their photos, and role-group syncing.
"""

import logging

from flask import Blueprint, request, jsonify

from models import db
from services import person_service
from services.errors import FusionError
from utils.etag_helper import with_etag

logger = logging.getLogger(__name__)

api_people_bp = Blueprint('api_people', __name__, url_prefix='/api/people')

PERSON_FIELDS = ('email', 'role', 'image_url', 'x', 'y')


@api_people_bp.route('', methods=['GET'])
@with_etag
def list_people():
    try:
        site_id = request.args.get('site_id')
        if not site_id:
            return jsonify({'success': False, 'message': 'site_id is required'}), 400
        people = person_service.list_people(site_id)
        return jsonify({'success': True, 'people': [p.to_dict() for p in people]})
    except Exception as e:
        logger.error(f"Error listing people: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_people_bp.route('/<person_id>', methods=['GET'])
def get_person(person_id):
    person = person_service.get_person(person_id)
    if not person:
        return jsonify({'success': False, 'message': 'Person not found'}), 404
    return jsonify({'success': True, 'person': person.to_dict()})


@api_people_bp.route('', methods=['POST'])
def create_person():
    try:
        data = request.get_json(silent=True) or {}
        person = person_service.create_person(
            site_id=data.get('site_id'),
            first_name=data.get('first_name'),
            last_name=data.get('last_name'),
            **{k: data[k] for k in PERSON_FIELDS if k in data},
        )
        return jsonify({'success': True, 'person': person.to_dict()}), 201
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating person: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_people_bp.route('/<person_id>', methods=['PUT', 'PATCH'])
def update_person(person_id):
    try:
        data = request.get_json(silent=True) or {}
        updates = {k: data[k] for k in person_service.UPDATABLE_FIELDS if k in data}
        person = person_service.update_person(person_id, **updates)
        return jsonify({'success': True, 'person': person.to_dict()})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating person {person_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_people_bp.route('/<person_id>', methods=['DELETE'])
def delete_person(person_id):
    try:
        return jsonify({'success': True, 'person': person_service.delete_person(person_id)})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting person {person_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_people_bp.route('/<person_id>/image', methods=['POST'])
def save_image(person_id):
    try:
        data = request.get_json(silent=True) or {}
        person = person_service.save_image(person_id, data.get('image_data'))
        return jsonify({'success': True, 'person': person.to_dict()})
    except FusionError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error saving image for person {person_id}: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500


@api_people_bp.route('/sync-role-groups', methods=['POST'])
def sync_role_groups():
    try:
        data = request.get_json(silent=True) or {}
        if not data.get('site_id'):
            return jsonify({'success': False, 'message': 'site_id is required'}), 400
        result = person_service.sync_all_to_role_groups(data['site_id'])
        return jsonify({'success': True, **result})
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error syncing role groups: {e}")
        return jsonify({'success': False, 'message': str(e)}), 500
