"""
Zones API: CRUD with device membership, save-all from the map editor, and auto-detection.
"""

from models import Zone, Rule, BACnetMapping


class TestZoneCrud:

    def test_create_zone_skips_unknown_devices(self, client, site, make_device):
        device = make_device()
        response = client.post('/api/zones', json={
            'name': 'Produce',
            'site_id': site.id,
            'device_ids': [device.id, 'ghost-device'],
        })
        assert response.status_code == 201
        zone = response.get_json()['zone']
        assert zone['device_ids'] == [device.id]
        assert zone['color'] == '#4c7dff'

    def test_create_zone_requires_name_and_site(self, client, site):
        assert client.post('/api/zones', json={'site_id': site.id}).status_code == 400
        assert client.post('/api/zones', json={'name': 'Dairy'}).status_code == 400
        assert client.post('/api/zones', json={'name': 'Dairy', 'site_id': 'nope'}).status_code == 404

    def test_create_zone_rejects_bad_polygon(self, client, site):
        response = client.post('/api/zones', json={
            'name': 'Bakery',
            'site_id': site.id,
            'polygon': [{'x': 0.1}],
        })
        assert response.status_code == 400

    def test_list_zones_for_site(self, client, site, make_zone):
        make_zone('Produce')
        make_zone('Dairy')

        response = client.get(f'/api/zones?site_id={site.id}')
        assert [z['name'] for z in response.get_json()['zones']] == ['Produce', 'Dairy']

        assert client.get('/api/zones').get_json()['zones'] == []

    def test_update_replaces_membership(self, client, make_zone, make_device):
        first, second = make_device(), make_device()
        zone = make_zone()

        response = client.put(f'/api/zones/{zone.id}', json={'device_ids': [first.id]})
        assert response.get_json()['zone']['device_ids'] == [first.id]

        response = client.put(f'/api/zones/{zone.id}', json={'device_ids': [second.id], 'name': 'Deli'})
        body = response.get_json()['zone']
        assert body['device_ids'] == [second.id]
        assert body['name'] == 'Deli'

    def test_update_clears_nullable_fields(self, client, make_zone):
        zone = make_zone()
        client.put(f'/api/zones/{zone.id}', json={'description': 'Front of store', 'min_daylight': 40})

        response = client.put(f'/api/zones/{zone.id}', json={
            'description': None,
            'min_daylight': None,
            'polygon': None,
            'name': None,
        })
        body = response.get_json()['zone']
        assert body['description'] is None
        assert body['min_daylight'] is None
        assert body['polygon'] is None
        assert body['name'] == 'Produce'

    def test_update_without_fields_keeps_values(self, client, make_zone):
        zone = make_zone(description='Front of store')
        body = client.put(f'/api/zones/{zone.id}', json={'color': '#000000'}).get_json()['zone']
        assert body['description'] == 'Front of store'
        assert len(body['polygon']) == 4

    def test_update_rejects_unknown_devices(self, client, make_zone):
        zone = make_zone()
        response = client.put(f'/api/zones/{zone.id}', json={'device_ids': ['ghost']})
        assert response.status_code == 400
        assert response.get_json()['context']['invalid_device_ids'] == ['ghost']

    def test_delete_zone(self, client, make_zone):
        zone_id = make_zone().id
        assert client.delete(f'/api/zones/{zone_id}').status_code == 200
        assert client.get(f'/api/zones/{zone_id}').status_code == 404
        assert client.delete(f'/api/zones/{zone_id}').status_code == 404

    def test_delete_zone_drops_mapping_and_detaches_rules(self, client, make_zone, db_session):
        zone_id = make_zone('Produce').id
        assert client.post(f'/api/bacnet/zones/{zone_id}', json={'bacnet_object_id': 'AV-12'}).status_code == 201
        rule_id = client.post('/api/rules', json={
            'name': 'Produce motion',
            'trigger': 'motion',
            'condition': {'zone': 'Produce'},
            'zone_id': zone_id,
        }).get_json()['rule']['id']

        assert client.delete(f'/api/zones/{zone_id}').status_code == 200

        db_session.expire_all()
        assert db_session.query(BACnetMapping).filter_by(zone_id=zone_id).count() == 0
        rule = db_session.get(Rule, rule_id)
        assert rule is not None
        assert rule.zone_id is None
        assert client.get(f'/api/rules/{rule_id}').get_json()['rule']['zone_id'] is None


class TestSaveAll:

    def test_save_all_creates_updates_and_deletes(self, client, site, make_zone, make_device, db_session):
        kept = make_zone('Kept')
        dropped = make_zone('Dropped')
        device = make_device()
        dropped_id = dropped.id

        response = client.post('/api/zones/save-all', json={
            'site_id': site.id,
            'zones': [
                {'id': kept.id, 'name': 'Kept Renamed', 'device_ids': [device.id, 'ghost']},
                {'id': 'zone-new', 'name': 'Brand New', 'polygon': [
                    {'x': 0, 'y': 0}, {'x': 1, 'y': 0}, {'x': 1, 'y': 1},
                ]},
            ],
        })
        assert response.status_code == 200
        assert response.get_json() == {'success': True, 'saved': 2}

        db_session.expire_all()
        assert db_session.get(Zone, dropped_id) is None
        renamed = db_session.get(Zone, kept.id)
        assert renamed.name == 'Kept Renamed'
        assert renamed.device_ids == [device.id]
        created = db_session.get(Zone, 'zone-new')
        assert created.site_id == site.id
        assert len(created.polygon) == 3

    def test_save_all_requires_zone_list(self, client, site):
        response = client.post('/api/zones/save-all', json={'site_id': site.id, 'zones': 'nope'})
        assert response.status_code == 400

    def test_save_all_requires_ids_and_names(self, client, site):
        response = client.post('/api/zones/save-all', json={'site_id': site.id, 'zones': [{'name': 'x'}]})
        assert response.status_code == 400


def test_detect_zones_clusters_positioned_devices(client, site, make_device):
    make_device(x=0.1, y=0.1)
    make_device(x=0.15, y=0.12)
    make_device(x=0.9, y=0.9)
    make_device(x=None, y=None)

    response = client.post('/api/zones/detect', json={'site_id': site.id})
    assert response.status_code == 200
    zones = response.get_json()['zones']
    assert len(zones) == 2
    assert sorted(len(z['device_ids']) for z in zones) == [1, 2]
    assert zones[0]['name'].startswith('Zone 1 - ')
    # detection never persists
    assert client.get(f'/api/zones?site_id={site.id}').get_json()['zones'] == []
