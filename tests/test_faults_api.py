"""
Faults API: recording, resolving and listing faults by site.
"""

from datetime import datetime


def _record(client, device_id, **overrides):
    payload = {
        'device_id': device_id,
        'fault_type': 'thermal-overheat',
        'description': 'Driver running hot',
    }
    payload.update(overrides)
    return client.post('/api/faults', json=payload)


class TestFaultsApi:

    def test_create_fault_embeds_device(self, client, make_device):
        device = make_device()
        response = _record(client, device.id, detected_at='2025-04-01T10:00:00Z')
        assert response.status_code == 201
        fault = response.get_json()['fault']
        assert fault['resolved'] is False
        assert fault['detected_at'] == '2025-04-01T10:00:00'
        assert fault['device']['device_id'] == device.device_id
        assert fault['device']['components'] == []

    def test_create_validates_device_and_type(self, client, make_device):
        device = make_device()
        assert _record(client, 'ghost').status_code == 404
        assert _record(client, device.id, fault_type='gremlins').status_code == 400
        assert _record(client, device.id, detected_at='yesterday').status_code == 400

    def test_list_requires_site(self, client):
        assert client.get('/api/faults').status_code == 400

    def test_list_newest_first_and_hides_resolved(self, client, site, make_device):
        device = make_device()
        old = _record(client, device.id, detected_at='2025-01-01T00:00:00').get_json()['fault']
        new = _record(client, device.id, detected_at='2025-02-01T00:00:00').get_json()['fault']
        resolved = _record(client, device.id, detected_at='2025-03-01T00:00:00').get_json()['fault']
        client.put(f"/api/faults/{resolved['id']}", json={'resolved': True})

        faults = client.get(f'/api/faults?site_id={site.id}').get_json()['faults']
        assert [f['id'] for f in faults] == [new['id'], old['id']]

        faults = client.get(f'/api/faults?site_id={site.id}&include_resolved=true').get_json()['faults']
        assert [f['id'] for f in faults] == [resolved['id'], new['id'], old['id']]

    def test_resolve_and_reopen(self, client, make_device):
        device = make_device()
        fault = _record(client, device.id).get_json()['fault']

        resolved = client.put(f"/api/faults/{fault['id']}", json={'resolved': True}).get_json()['fault']
        assert resolved['resolved'] is True
        assert resolved['resolved_at'] is not None
        assert datetime.fromisoformat(resolved['resolved_at']) <= datetime.utcnow()

        reopened = client.put(f"/api/faults/{fault['id']}", json={'resolved': False}).get_json()['fault']
        assert reopened['resolved'] is False
        assert reopened['resolved_at'] is None

    def test_resolve_with_explicit_time(self, client, make_device):
        device = make_device()
        fault = _record(client, device.id).get_json()['fault']
        response = client.put(f"/api/faults/{fault['id']}", json={
            'resolved': True,
            'resolved_at': '2025-05-05T05:05:05',
        })
        assert response.get_json()['fault']['resolved_at'] == '2025-05-05T05:05:05'

    def test_update_and_delete_missing_fault(self, client):
        assert client.put('/api/faults/nope', json={'resolved': True}).status_code == 404
        assert client.delete('/api/faults/nope').status_code == 404
        assert client.get('/api/faults/nope').status_code == 404

    def test_delete_fault(self, client, make_device):
        device = make_device()
        fault = _record(client, device.id).get_json()['fault']
        assert client.delete(f"/api/faults/{fault['id']}").status_code == 200
        assert client.get(f"/api/faults/{fault['id']}").status_code == 404
