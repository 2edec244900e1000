"""
Fusion commissioning backend.

Flask application factory: configuration from the environment, the shared
SQLAlchemy instance, one blueprint per resource under /api, and the
FusionError -> JSON translation used by every route.
"""

import os
import logging

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from models import db
from services.errors import FusionError

logger = logging.getLogger(__name__)

API_BLUEPRINTS = [
    ('routes.api_sites', 'api_sites_bp'),
    ('routes.api_zones', 'api_zones_bp'),
    ('routes.api_devices', 'api_devices_bp'),
    ('routes.api_bacnet', 'api_bacnet_bp'),
    ('routes.api_rules', 'api_rules_bp'),
    ('routes.api_firmware', 'api_firmware_bp'),
    ('routes.api_faults', 'api_faults_bp'),
    ('routes.api_groups', 'api_groups_bp'),
    ('routes.api_people', 'api_people_bp'),
    ('routes.api_locations', 'api_locations_bp'),
    ('routes.api_images', 'api_images_bp'),
    ('routes.api_notifications', 'api_notifications_bp'),
    ('routes.health_production', 'health_production_bp'),
]


def _configure_logging():
    level_name = os.environ.get('LOG_LEVEL', 'INFO').upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )


def _is_testing(database_url: str) -> bool:
    return os.environ.get('FLASK_ENV') == 'testing' or database_url.startswith('sqlite:///:memory:')


def create_app(config: dict = None) -> Flask:
    load_dotenv()
    _configure_logging()

    app = Flask(__name__)

    database_url = os.environ.get('DATABASE_URL', 'sqlite:///fusion.db')
    # Heroku-style URLs
    if database_url.startswith('postgres://'):
        database_url = database_url.replace('postgres://', 'postgresql://', 1)

    app.config.update(
        SECRET_KEY=os.environ.get('SESSION_SECRET', 'dev-secret-change-me'),
        SQLALCHEMY_DATABASE_URI=database_url,
        SQLALCHEMY_ENGINE_OPTIONS={'pool_pre_ping': True},
        JSON_SORT_KEYS=False,
        DB_RETRY_ATTEMPTS=int(os.environ.get('DB_RETRY_ATTEMPTS', '3')),
        DB_RETRY_WAIT_SECONDS=float(os.environ.get('DB_RETRY_WAIT_SECONDS', '0.2')),
        TESTING=_is_testing(database_url),
    )
    if config:
        app.config.update(config)

    db.init_app(app)

    from utils.startup_validation import BlueprintRegistry, run_startup_validation

    registry = BlueprintRegistry(app)
    for module_path, blueprint_name in API_BLUEPRINTS:
        registry.register(module_path, blueprint_name)
    app.extensions['fusion_blueprints'] = registry

    _register_error_handlers(app)

    if app.config['TESTING']:
        with app.app_context():
            db.create_all()
    else:
        app.extensions['fusion_startup_report'] = run_startup_validation(app)

    from routes.health_production import mark_startup_complete
    mark_startup_complete()

    logger.info(f"Fusion API ready ({len(registry.loaded)} blueprints, db={app.config['SQLALCHEMY_DATABASE_URI'].split(':')[0]})")
    return app


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(FusionError)
    def handle_fusion_error(e):
        db.session.rollback()
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(404)
    def handle_not_found(e):
        return jsonify({'success': False, 'message': 'Not found'}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return jsonify({'success': False, 'message': 'Method not allowed'}), 405

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return jsonify({'success': False, 'message': e.description}), e.code
        db.session.rollback()
        logger.error(f"Unhandled error: {e}", exc_info=True)
        return jsonify({'success': False, 'message': 'Internal server error'}), 500
