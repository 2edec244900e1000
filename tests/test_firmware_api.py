"""
Firmware campaigns: creation, eligibility, enrollment and the per-device
PENDING -> IN_PROGRESS -> COMPLETED/FAILED flow with recomputed counters.
"""

import pytest

from models import Device, DeviceType, FirmwareUpdate, FirmwareDeviceUpdate


@pytest.fixture
def campaign(client, site):
    response = client.post('/api/firmware/campaigns', json={
        'name': 'Spring driver update',
        'version': '2.1.0',
        'device_types': ['fixture-16ft-power-entry'],
        'site_id': site.id,
        'file_url': 'https://firmware.example.com/2.1.0.bin',
    })
    assert response.status_code == 201
    return response.get_json()['campaign']


class TestCampaigns:

    def test_create_stores_enum_types(self, campaign, db_session):
        assert campaign['status'] == 'PENDING'
        assert campaign['device_types'] == [DeviceType.FIXTURE_16FT_POWER_ENTRY.value]
        assert campaign['total_devices'] == 0

    @pytest.mark.parametrize('payload', [
        {'version': '1.0', 'device_types': []},
        {'name': 'x', 'device_types': []},
        {'name': 'x', 'version': '1.0', 'device_types': ['toaster']},
        {'name': 'x', 'version': '1.0', 'device_types': [], 'file_url': 'ftp://host/file.bin'},
    ])
    def test_create_rejects_invalid(self, client, payload):
        assert client.post('/api/firmware/campaigns', json=payload).status_code == 400

    def test_create_with_unknown_site_is_404(self, client):
        response = client.post('/api/firmware/campaigns', json={
            'name': 'x', 'version': '1.0', 'device_types': [], 'site_id': 'nope',
        })
        assert response.status_code == 404

    def test_list_hides_completed_by_default(self, client, campaign):
        client.put(f"/api/firmware/campaigns/{campaign['id']}/status", json={'status': 'COMPLETED'})

        assert client.get('/api/firmware/campaigns').get_json()['campaigns'] == []
        listed = client.get('/api/firmware/campaigns?include_completed=true').get_json()['campaigns']
        assert [c['id'] for c in listed] == [campaign['id']]

    def test_status_update_stamps_times(self, client, campaign):
        response = client.put(f"/api/firmware/campaigns/{campaign['id']}/status", json={'status': 'IN_PROGRESS'})
        assert response.get_json()['campaign']['started_at'] is not None

        response = client.put(f"/api/firmware/campaigns/{campaign['id']}/status", json={'status': 'DONE'})
        assert response.status_code == 400

    def test_missing_campaign_is_404(self, client):
        assert client.get('/api/firmware/campaigns/nope').status_code == 404
        assert client.delete('/api/firmware/campaigns/nope').status_code == 404


class TestDeviceFlow:

    def test_eligible_devices_skip_current_version_and_other_types(self, client, campaign, make_device):
        eligible = make_device(firmware_version='2.0.0')
        make_device(firmware_version='2.1.0')
        make_device(type=DeviceType.MOTION_SENSOR.value)

        devices = client.get(f"/api/firmware/campaigns/{campaign['id']}/eligible-devices").get_json()['devices']
        assert [d['id'] for d in devices] == [eligible.id]

    def test_add_devices_rejects_unknown_ids(self, client, campaign, make_device):
        device = make_device()
        response = client.post(f"/api/firmware/campaigns/{campaign['id']}/devices", json={
            'device_ids': [device.id, 'ghost'],
        })
        assert response.status_code == 404
        assert response.get_json()['context']['missing'] == ['ghost']

    def test_full_campaign_lifecycle(self, client, campaign, make_device, db_session):
        first = make_device(firmware_version='2.0.0')
        second = make_device(firmware_version='2.0.0')
        first_id, second_id = first.id, second.id
        base = f"/api/firmware/campaigns/{campaign['id']}"

        response = client.post(f'{base}/devices', json={'device_ids': [first_id, second_id]})
        assert response.get_json() == {'success': True, 'count': 2}

        detail = client.get(base).get_json()['campaign']
        assert detail['total_devices'] == 2
        assert detail['pending'] == 2
        assert len(detail['device_updates']) == 2

        firmware = client.get(f'/api/firmware/devices/{first_id}').get_json()['device']
        assert firmware['firmware_status'] == 'UPDATE_AVAILABLE'
        assert firmware['firmware_target'] == '2.1.0'
        assert len(firmware['active_updates']) == 1

        response = client.post(f'{base}/devices/{first_id}/start')
        assert response.get_json()['update']['status'] == 'IN_PROGRESS'
        detail = client.get(base).get_json()['campaign']
        assert detail['status'] == 'IN_PROGRESS'
        assert detail['in_progress'] == 1

        response = client.post(f'{base}/devices/{first_id}/complete', json={'success': True})
        assert response.get_json() == {'success': True}
        response = client.post(f'{base}/devices/{second_id}/complete', json={
            'success': False,
            'error_message': 'Checksum mismatch',
        })
        assert response.status_code == 200

        detail = client.get(base).get_json()['campaign']
        assert detail['status'] == 'COMPLETED'
        assert detail['completed'] == 1
        assert detail['failed'] == 1
        assert detail['completed_at'] is not None

        db_session.expire_all()
        updated = db_session.get(Device, first_id)
        assert updated.firmware_version == '2.1.0'
        assert updated.firmware_status == 'UP_TO_DATE'
        assert updated.firmware_target is None
        failed = db_session.get(Device, second_id)
        assert failed.firmware_status == 'UPDATE_FAILED'
        assert failed.firmware_target == '2.1.0'
        failed_record = db_session.query(FirmwareDeviceUpdate).filter_by(
            firmware_update_id=campaign['id'], device_id=second_id,
        ).one()
        assert failed_record.status == 'FAILED'
        assert failed_record.retry_count == 1
        assert failed_record.error_message == 'Checksum mismatch'

        stored = db_session.get(FirmwareUpdate, campaign['id'])
        assert (stored.total_devices, stored.completed, stored.failed) == (2, 1, 1)

    def test_complete_requires_boolean_success(self, client, campaign, make_device):
        device = make_device()
        client.post(f"/api/firmware/campaigns/{campaign['id']}/devices", json={'device_ids': [device.id]})
        response = client.post(
            f"/api/firmware/campaigns/{campaign['id']}/devices/{device.id}/complete",
            json={'success': 'yes'},
        )
        assert response.status_code == 400

    def test_device_not_in_campaign_is_404(self, client, campaign, make_device):
        device = make_device()
        response = client.post(f"/api/firmware/campaigns/{campaign['id']}/devices/{device.id}/start")
        assert response.status_code == 404

    def test_delete_campaign(self, client, campaign):
        assert client.delete(f"/api/firmware/campaigns/{campaign['id']}").status_code == 200
        assert client.get(f"/api/firmware/campaigns/{campaign['id']}").status_code == 404
