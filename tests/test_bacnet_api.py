"""
BACnet mapping API: one mapping per zone, upsert on update.
"""


class TestBacnetMappings:

    def test_create_and_list(self, client, site, make_zone):
        produce = make_zone('Produce')
        make_zone('Dairy')

        response = client.post(f'/api/bacnet/zones/{produce.id}', json={
            'bacnet_object_id': 'AV-101',
            'status': 'CONNECTED',
        })
        assert response.status_code == 201
        mapping = response.get_json()['mapping']
        assert mapping['zone_name'] == 'Produce'
        assert mapping['status'] == 'CONNECTED'

        mappings = client.get(f'/api/bacnet?site_id={site.id}').get_json()['mappings']
        # unmapped zones are left out
        assert [m['zone_id'] for m in mappings] == [produce.id]
        assert mappings[0]['bacnet_object_id'] == 'AV-101'

    def test_second_mapping_for_zone_conflicts(self, client, make_zone):
        zone = make_zone()
        assert client.post(f'/api/bacnet/zones/{zone.id}', json={'bacnet_object_id': 'AV-1'}).status_code == 201
        response = client.post(f'/api/bacnet/zones/{zone.id}', json={'bacnet_object_id': 'AV-2'})
        assert response.status_code == 409
        assert response.get_json()['category'] == 'conflict'

    def test_create_defaults_to_not_assigned(self, client, make_zone):
        zone = make_zone()
        mapping = client.post(f'/api/bacnet/zones/{zone.id}', json={}).get_json()['mapping']
        assert mapping['status'] == 'NOT_ASSIGNED'
        assert mapping['bacnet_object_id'] is None

    def test_invalid_status_rejected(self, client, make_zone):
        zone = make_zone()
        response = client.post(f'/api/bacnet/zones/{zone.id}', json={'status': 'MAYBE'})
        assert response.status_code == 400

    def test_unknown_zone_is_404(self, client):
        assert client.post('/api/bacnet/zones/nope', json={}).status_code == 404
        assert client.put('/api/bacnet/zones/nope', json={'status': 'ERROR'}).status_code == 404
        assert client.get('/api/bacnet/zones/nope').status_code == 404

    def test_update_upserts(self, client, make_zone):
        zone = make_zone()
        response = client.put(f'/api/bacnet/zones/{zone.id}', json={
            'bacnet_object_id': 'AV-9',
            'status': 'CONNECTED',
            'last_connected': '2025-03-01T12:00:00Z',
        })
        assert response.status_code == 200
        mapping = response.get_json()['mapping']
        assert mapping['last_connected'] == '2025-03-01T12:00:00'

        response = client.patch(f'/api/bacnet/zones/{zone.id}', json={'status': 'ERROR'})
        mapping = response.get_json()['mapping']
        assert mapping['status'] == 'ERROR'
        assert mapping['bacnet_object_id'] == 'AV-9'

    def test_delete_mapping(self, client, make_zone):
        zone = make_zone()
        client.post(f'/api/bacnet/zones/{zone.id}', json={'bacnet_object_id': 'AV-1'})
        assert client.delete(f'/api/bacnet/zones/{zone.id}').status_code == 200
        assert client.delete(f'/api/bacnet/zones/{zone.id}').status_code == 404

    def test_list_without_site_is_empty(self, client):
        assert client.get('/api/bacnet').get_json()['mappings'] == []
