"""
Sites API: CRUD, store-number lookup and the idempotent ensure endpoint.
"""

from models import Site, Zone, Device


class TestSitesApi:

    def test_create_and_get_site(self, client):
        response = client.post('/api/sites', json={'name': 'Downtown', 'store_number': '77'})
        assert response.status_code == 201
        site = response.get_json()['site']
        assert site['name'] == 'Downtown'
        assert site['has_image'] is False

        response = client.get(f"/api/sites/{site['id']}")
        assert response.status_code == 200
        assert response.get_json()['site']['store_number'] == '77'

    def test_create_site_requires_name(self, client):
        response = client.post('/api/sites', json={'store_number': '77'})
        assert response.status_code == 400
        body = response.get_json()
        assert body['success'] is False
        assert body['category'] == 'validation'

    def test_get_missing_site_is_404(self, client):
        response = client.get('/api/sites/does-not-exist')
        assert response.status_code == 404
        assert response.get_json()['success'] is False

    def test_list_filters_by_store_number(self, client, site):
        client.post('/api/sites', json={'name': 'Other', 'store_number': '9'})

        response = client.get('/api/sites?store_number=1042')
        sites = response.get_json()['sites']
        assert [s['id'] for s in sites] == [site.id]

        response = client.get('/api/sites')
        assert len(response.get_json()['sites']) == 2

    def test_include_image_only_on_request(self, client, site, db_session):
        site.image_url = 'data:image/png;base64,AAAA'
        db_session.commit()

        plain = client.get(f'/api/sites/{site.id}').get_json()['site']
        assert 'image_url' not in plain
        assert plain['has_image'] is True

        full = client.get(f'/api/sites/{site.id}?include_image=true').get_json()['site']
        assert full['image_url'] == 'data:image/png;base64,AAAA'

    def test_update_ignores_unknown_and_null_fields(self, client, site):
        response = client.put(f'/api/sites/{site.id}', json={
            'name': 'Renamed',
            'address': None,
            'id': 'hijack',
        })
        assert response.status_code == 200
        updated = response.get_json()['site']
        assert updated['id'] == site.id
        assert updated['name'] == 'Renamed'
        assert updated['address'] == '1 Market St'

    def test_update_missing_site_is_404(self, client):
        response = client.patch('/api/sites/nope', json={'name': 'x'})
        assert response.status_code == 404


class TestEnsureSite:

    def test_returns_existing_site_by_id(self, client, site):
        response = client.post('/api/sites/ensure', json={'id': site.id, 'name': 'Ignored'})
        assert response.status_code == 200
        assert response.get_json()['site']['name'] == 'Store 1042'

    def test_matches_by_store_number(self, client, site, db_session):
        response = client.post('/api/sites/ensure', json={
            'id': 'client-generated-id',
            'name': 'Store 1042 copy',
            'store_number': '1042',
        })
        assert response.get_json()['site']['id'] == site.id
        assert db_session.get(Site, 'client-generated-id') is None

    def test_creates_under_client_id(self, client, db_session):
        response = client.post('/api/sites/ensure', json={'id': 'site-abc', 'name': 'New Store'})
        assert response.status_code == 200
        assert response.get_json()['site']['id'] == 'site-abc'
        assert db_session.get(Site, 'site-abc') is not None

    def test_requires_id_and_name(self, client):
        response = client.post('/api/sites/ensure', json={'name': 'No id'})
        assert response.status_code == 400


def test_delete_site_cascades(client, site, make_zone, make_device, db_session):
    zone = make_zone()
    device = make_device()
    zone_id, device_id, site_id = zone.id, device.id, site.id

    response = client.delete(f'/api/sites/{site_id}')
    assert response.status_code == 200

    db_session.expire_all()
    assert db_session.get(Zone, zone_id) is None
    assert db_session.get(Device, device_id) is None

    assert client.delete(f'/api/sites/{site_id}').status_code == 404
