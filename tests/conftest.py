"""
Root pytest configuration and fixtures for unit and integration tests.
"""
import pytest
import os
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Test configuration
os.environ['FLASK_ENV'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite:///:memory:'
os.environ['SESSION_SECRET'] = 'test-secret-key-for-testing-only'
os.environ['DB_RETRY_WAIT_SECONDS'] = '0'


@pytest.fixture(scope='session')
def app():
    """Create and configure a test Flask application."""
    from app import create_app
    from models import db

    # create_app() creates the schema when running under FLASK_ENV=testing
    test_app = create_app({'TESTING': True})

    with test_app.app_context():
        yield test_app
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def _clean_tables(app):
    """Empty every table after each test."""
    yield
    from models import db

    db.session.rollback()
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()
    db.session.remove()


@pytest.fixture(scope='function')
def client(app):
    """Create a test client for the Flask application."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """The Flask-SQLAlchemy session bound to the test app."""
    from models import db
    return db.session


@pytest.fixture
def site(db_session):
    from models import Site

    site = Site(name='Store 1042', store_number='1042', address='1 Market St')
    db_session.add(site)
    db_session.commit()
    return site


@pytest.fixture
def make_device(db_session, site):
    """Factory for top-level devices in the default site."""
    from models import Device, DeviceType, DeviceStatus

    counter = {'n': 0}

    def _make(**overrides):
        counter['n'] += 1
        values = {
            'site_id': site.id,
            'device_id': f"FX-{counter['n']:03d}",
            'serial_number': f"SN-{counter['n']:05d}",
            'type': DeviceType.FIXTURE_16FT_POWER_ENTRY.value,
            'status': DeviceStatus.ONLINE.value,
            'signal': 80,
        }
        values.update(overrides)
        device = Device(**values)
        db_session.add(device)
        db_session.commit()
        return device

    return _make


@pytest.fixture
def make_zone(db_session, site):
    from models import Zone

    def _make(name='Produce', polygon=None, **overrides):
        zone = Zone(
            site_id=overrides.pop('site_id', site.id),
            name=name,
            polygon=polygon if polygon is not None else [
                {'x': 0.1, 'y': 0.1},
                {'x': 0.5, 'y': 0.1},
                {'x': 0.5, 'y': 0.5},
                {'x': 0.1, 'y': 0.5},
            ],
            **overrides,
        )
        db_session.add(zone)
        db_session.commit()
        return zone

    return _make
