"""
Groups and people: membership scoped to a site, plus automatic role groups.
"""

import pytest

from models import Site, Group


@pytest.fixture
def other_site(db_session):
    site = Site(name='Store 2001', store_number='2001')
    db_session.add(site)
    db_session.commit()
    return site


def _person(client, site_id, **overrides):
    payload = {'site_id': site_id, 'first_name': 'Ada', 'last_name': 'Lovelace'}
    payload.update(overrides)
    return client.post('/api/people', json=payload)


class TestGroups:

    def test_create_group_with_members(self, client, site, make_device):
        device = make_device()
        person = _person(client, site.id).get_json()['person']

        response = client.post('/api/groups', json={
            'name': 'Night crew',
            'site_id': site.id,
            'device_ids': [device.id, device.id],
            'person_ids': [person['id']],
        })
        assert response.status_code == 201
        group = response.get_json()['group']
        assert group['device_ids'] == [device.id]
        assert group['person_ids'] == [person['id']]

    def test_members_must_belong_to_site(self, client, site, other_site, db_session):
        from models import Device
        foreign = Device(site_id=other_site.id, device_id='X', serial_number='X')
        db_session.add(foreign)
        db_session.commit()

        response = client.post('/api/groups', json={
            'name': 'Mixed',
            'site_id': site.id,
            'device_ids': [foreign.id],
        })
        assert response.status_code == 400
        assert response.get_json()['context']['missing_device_ids'] == [foreign.id]

    def test_create_requires_name_and_known_site(self, client, site):
        assert client.post('/api/groups', json={'name': ' ', 'site_id': site.id}).status_code == 400
        assert client.post('/api/groups', json={'name': 'x', 'site_id': 'nope'}).status_code == 404

    def test_list_requires_site(self, client):
        assert client.get('/api/groups').status_code == 400

    def test_update_diffs_membership(self, client, site, make_device):
        first, second = make_device(), make_device()
        group = client.post('/api/groups', json={
            'name': 'Aisle 5', 'site_id': site.id, 'device_ids': [first.id],
        }).get_json()['group']

        response = client.put(f"/api/groups/{group['id']}", json={
            'device_ids': [second.id],
            'color': '#000000',
        })
        updated = response.get_json()['group']
        assert updated['device_ids'] == [second.id]
        assert updated['color'] == '#000000'
        assert updated['name'] == 'Aisle 5'

    def test_single_member_add_and_remove(self, client, site, make_device):
        device = make_device()
        group = client.post('/api/groups', json={'name': 'Map', 'site_id': site.id}).get_json()['group']
        path = f"/api/groups/{group['id']}/devices/{device.id}"

        assert client.post(path).get_json()['group']['device_ids'] == [device.id]
        # adding twice is a no-op
        assert client.post(path).get_json()['group']['device_ids'] == [device.id]
        assert client.delete(path).get_json()['group']['device_ids'] == []

        assert client.post(f"/api/groups/{group['id']}/devices/ghost").status_code == 404
        assert client.post(f"/api/groups/nope/devices/{device.id}").status_code == 404

    def test_delete_group_returns_snapshot(self, client, site, make_device):
        device = make_device()
        group = client.post('/api/groups', json={
            'name': 'Gone', 'site_id': site.id, 'device_ids': [device.id],
        }).get_json()['group']

        deleted = client.delete(f"/api/groups/{group['id']}").get_json()['group']
        assert deleted['name'] == 'Gone'
        assert deleted['device_ids'] == []
        assert client.get(f"/api/groups/{group['id']}").status_code == 404


class TestPeople:

    def test_create_person_joins_role_group(self, client, site, db_session):
        response = _person(client, site.id, role='Store Manager', email='ada@example.com')
        assert response.status_code == 201
        person = response.get_json()['person']

        group = db_session.query(Group).filter_by(site_id=site.id, name='Store Manager').one()
        assert group.person_ids == [person['id']]
        assert group.color == '#4c7dff'
        assert group.description == 'Auto-generated group for Store Manager role'
        assert person['group_ids'] == [group.id]

    def test_custom_role_gets_custom_color(self, client, site, db_session):
        _person(client, site.id, role='Night Baker')
        group = db_session.query(Group).filter_by(name='Night Baker').one()
        assert group.color == '#8b5cf6'

    def test_role_change_moves_between_groups(self, client, site, db_session):
        person = _person(client, site.id, role='Associate').get_json()['person']
        client.put(f"/api/people/{person['id']}", json={'role': 'Department Lead'})

        db_session.expire_all()
        associate = db_session.query(Group).filter_by(name='Associate').one()
        lead = db_session.query(Group).filter_by(name='Department Lead').one()
        assert associate.person_ids == []
        assert lead.person_ids == [person['id']]

    def test_blank_role_clears_role_and_membership(self, client, site, db_session):
        person = _person(client, site.id, role='Associate', email='ada@example.com').get_json()['person']
        response = client.put(f"/api/people/{person['id']}", json={'role': '', 'email': ''})
        updated = response.get_json()['person']
        assert updated['role'] is None
        assert updated['email'] is None

        db_session.expire_all()
        associate = db_session.query(Group).filter_by(name='Associate').one()
        assert associate.person_ids == []

    def test_same_role_reuses_group(self, client, site, db_session):
        _person(client, site.id, role='Associate')
        _person(client, site.id, first_name='Grace', last_name='Hopper', role='Associate')
        groups = db_session.query(Group).filter_by(name='Associate').all()
        assert len(groups) == 1
        assert len(groups[0].person_ids) == 2

    @pytest.mark.parametrize('overrides', [
        {'first_name': ''},
        {'last_name': None},
        {'email': 'not-an-email'},
        {'x': 2},
    ])
    def test_create_rejects_invalid(self, client, site, overrides):
        assert _person(client, site.id, **overrides).status_code == 400

    def test_create_unknown_site_is_404(self, client):
        assert _person(client, 'nope').status_code == 404

    def test_list_newest_first(self, client, site):
        first = _person(client, site.id).get_json()['person']
        second = _person(client, site.id, first_name='Grace').get_json()['person']
        people = client.get(f'/api/people?site_id={site.id}').get_json()['people']
        assert {p['id'] for p in people} == {first['id'], second['id']}
        assert client.get('/api/people').status_code == 400

    def test_save_image(self, client, site):
        person = _person(client, site.id).get_json()['person']
        response = client.post(f"/api/people/{person['id']}/image", json={'image_data': 'data:image/png;base64,AA'})
        assert response.get_json()['person']['image_url'] == 'data:image/png;base64,AA'
        assert client.post(f"/api/people/{person['id']}/image", json={}).status_code == 400

    def test_delete_person_returns_snapshot(self, client, site):
        person = _person(client, site.id).get_json()['person']
        deleted = client.delete(f"/api/people/{person['id']}").get_json()['person']
        assert deleted['first_name'] == 'Ada'
        assert client.get(f"/api/people/{person['id']}").status_code == 404

    def test_sync_role_groups(self, client, site, db_session):
        from models import Person
        db_session.add_all([
            Person(site_id=site.id, first_name='A', last_name='One', role='Associate'),
            Person(site_id=site.id, first_name='B', last_name='Two'),
        ])
        db_session.commit()

        response = client.post('/api/people/sync-role-groups', json={'site_id': site.id})
        body = response.get_json()
        assert body['synced'] == 1
        assert body['total'] == 2
        assert db_session.query(Group).filter_by(name='Associate').count() == 1
