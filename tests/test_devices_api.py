"""
Devices API: display/stored type conversion, components, search, bulk
delete and the arrange/align map helpers.
"""

import random

import pytest

from models import Device, DeviceType, DeviceStatus
from services.device_service import generate_components_for_fixture, generate_warranty_expiry
from datetime import datetime


def _create(client, site_id, **overrides):
    payload = {
        'site_id': site_id,
        'device_id': 'FX-100',
        'serial_number': 'SN-100',
        'type': 'fixture-16ft-power-entry',
    }
    payload.update(overrides)
    return client.post('/api/devices', json=payload)


class TestCreateDevice:

    def test_stores_enum_and_returns_display_values(self, client, site, db_session):
        response = _create(client, site.id, type='motion', status='online', signal=55)
        assert response.status_code == 201
        device = response.get_json()['device']
        assert device['type'] == 'motion'
        assert device['type_label'] == 'Motion Sensor'
        assert device['status'] == 'online'

        stored = db_session.get(Device, device['id'])
        assert stored.type == DeviceType.MOTION_SENSOR.value
        assert stored.status == DeviceStatus.ONLINE.value

    def test_defaults_to_offline(self, client, site):
        device = _create(client, site.id).get_json()['device']
        assert device['status'] == 'offline'
        assert device['signal'] == 0

    @pytest.mark.parametrize('overrides', [
        {'type': 'lava-lamp'},
        {'status': 'sleeping'},
        {'signal': 101},
        {'x': 1.5},
        {'orientation': -1},
        {'device_id': ''},
    ])
    def test_rejects_invalid_payloads(self, client, site, overrides):
        response = _create(client, site.id, **overrides)
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_unknown_site_is_404(self, client):
        assert _create(client, 'nope').status_code == 404

    def test_components_are_children(self, client, site):
        response = _create(client, site.id, components=[
            {'component_type': 'Driver', 'component_serial_number': 'DRV-1', 'warranty_status': 'Active'},
            {'component_type': 'Lens', 'component_serial_number': 'LNS-1'},
        ])
        device = response.get_json()['device']
        assert sorted(c['component_type'] for c in device['components']) == ['Driver', 'Lens']

        listed = client.get(f'/api/devices?site_id={site.id}').get_json()['devices']
        assert [d['id'] for d in listed] == [device['id']]

        components = client.get(f"/api/devices/{device['id']}/components").get_json()['components']
        assert {c['component_serial_number'] for c in components} == {'DRV-1', 'LNS-1'}

    def test_component_requires_type_and_serial(self, client, site):
        response = _create(client, site.id, components=[{'component_type': 'Driver'}])
        assert response.status_code == 400


class TestUpdateDevice:

    def test_update_converts_type_and_status(self, client, make_device, db_session):
        device = make_device()
        response = client.put(f'/api/devices/{device.id}', json={
            'type': 'light-sensor',
            'status': 'missing',
            'x': 0.25,
        })
        assert response.status_code == 200
        body = response.get_json()['device']
        assert body['type'] == 'light-sensor'
        assert body['status'] == 'missing'
        assert body['x'] == 0.25

    def test_legacy_fixture_type(self, client, make_device):
        device = make_device(type=DeviceType.MOTION_SENSOR.value)
        body = client.put(f'/api/devices/{device.id}', json={'type': 'fixture'}).get_json()['device']
        assert body['type'] == 'fixture-16ft-power-entry'

    def test_update_rejects_invalid_type(self, client, make_device):
        device = make_device()
        assert client.put(f'/api/devices/{device.id}', json={'type': 'bogus'}).status_code == 400

    def test_update_missing_device(self, client):
        assert client.put('/api/devices/nope', json={'x': 0.1}).status_code == 404


class TestSearchAndDelete:

    def test_search_is_case_insensitive(self, client, site, make_device):
        make_device(device_id='AISLE-7-A', serial_number='XYZ-1')
        make_device(device_id='DAIRY-1', serial_number='abc-aisle')
        make_device(device_id='BAKERY-2', serial_number='QQQ')

        devices = client.get(f'/api/devices/search?q=aisle&site_id={site.id}').get_json()['devices']
        assert {d['device_id'] for d in devices} == {'AISLE-7-A', 'DAIRY-1'}

        assert client.get('/api/devices/search?q=aisle').get_json()['devices'] == []

    def test_search_treats_wildcards_literally(self, client, site, make_device):
        make_device(device_id='A_1', serial_number='S-1')
        make_device(device_id='AB1', serial_number='S-2')
        make_device(device_id='XYZ', serial_number='S-3')

        devices = client.get(f'/api/devices/search?q=a_1&site_id={site.id}').get_json()['devices']
        assert [d['device_id'] for d in devices] == ['A_1']
        assert client.get(f'/api/devices/search?q=%25&site_id={site.id}').get_json()['devices'] == []

    def test_delete_many_reports_actual_count(self, client, make_device, db_session):
        first, second = make_device(), make_device()
        response = client.post('/api/devices/delete-many', json={'ids': [first.id, second.id, 'ghost']})
        assert response.get_json() == {'success': True, 'deleted': 2}

    def test_delete_many_requires_list(self, client):
        assert client.post('/api/devices/delete-many', json={'ids': 'x'}).status_code == 400

    def test_delete_device(self, client, make_device):
        device_pk = make_device().id
        assert client.delete(f'/api/devices/{device_pk}').status_code == 200
        assert client.get(f'/api/devices/{device_pk}').status_code == 404


class TestMapHelpers:

    def test_arrange_places_devices_inside_zone(self, client, make_zone, make_device):
        zone = make_zone()
        devices = [make_device() for _ in range(4)]

        response = client.post('/api/devices/arrange', json={
            'zone_id': zone.id,
            'device_ids': [d.id for d in devices],
        })
        assert response.status_code == 200
        arranged = response.get_json()['devices']
        assert len(arranged) == 4
        for device in arranged:
            assert 0.12 <= device['x'] <= 0.48
            assert 0.12 <= device['y'] <= 0.48

    def test_arrange_missing_zone(self, client):
        response = client.post('/api/devices/arrange', json={'zone_id': 'nope', 'device_ids': []})
        assert response.status_code == 404

    def test_align_flips_horizontal_majority(self, client, make_device):
        fixtures = [make_device(orientation=0), make_device(orientation=10), make_device(orientation=90)]
        sensor = make_device(type=DeviceType.MOTION_SENSOR.value, orientation=0)

        response = client.post('/api/devices/align', json={
            'device_ids': [d.id for d in fixtures] + [sensor.id],
        })
        aligned = response.get_json()['devices']
        assert {d['id'] for d in aligned} == {d.id for d in fixtures}
        assert {d['orientation'] for d in aligned} == {90}


def test_generate_components_for_fixture_is_deterministic_with_seed():
    now = datetime(2025, 6, 1)
    first = generate_components_for_fixture('SN-1', rng=random.Random(7), now=now)
    second = generate_components_for_fixture('SN-1', rng=random.Random(7), now=now)
    assert first == second
    assert [c['component_type'] for c in first] == ['LED Module', 'Driver', 'Lens', 'Mounting Bracket']
    for component in first:
        assert component['component_serial_number'].startswith('SN-1-')
        expected = 'Active' if component['warranty_expiry'] > now else 'Expired'
        assert component['warranty_status'] == expected


def test_generate_warranty_expiry_handles_leap_day():
    assert generate_warranty_expiry(datetime(2024, 2, 29)) == datetime(2029, 2, 28)
    assert generate_warranty_expiry(datetime(2025, 1, 15)) == datetime(2030, 1, 15)
