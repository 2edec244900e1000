"""
Rules: API CRUD plus the rule engine's simulator, example events and previews.
"""

import pytest

from services.rule_engine import (
    compare_level,
    example_events,
    preview_rule,
    simulate_rule,
    validate_event,
    validate_rule_payload,
)


class TestRulesApi:

    def test_create_rule_inherits_site_from_zone(self, client, site, make_zone):
        zone = make_zone('Produce')
        response = client.post('/api/rules', json={
            'name': 'Lights on with motion',
            'trigger': 'motion',
            'condition': {'zone': 'Produce'},
            'action': {'zones': ['Produce'], 'brightness': 80},
            'zone_id': zone.id,
        })
        assert response.status_code == 201
        rule = response.get_json()['rule']
        assert rule['site_id'] == site.id
        assert rule['zone_name'] == 'Produce'
        assert rule['enabled'] is True
        assert rule['rule_type'] == 'rule'

        listed = client.get(f'/api/rules?site_id={site.id}').get_json()['rules']
        assert [r['id'] for r in listed] == [rule['id']]
        by_zone = client.get(f'/api/rules?zone_id={zone.id}').get_json()['rules']
        assert [r['id'] for r in by_zone] == [rule['id']]

    @pytest.mark.parametrize('payload', [
        {'trigger': 'motion'},
        {'name': 'x', 'trigger': 'earthquake'},
        {'name': 'x', 'trigger': 'daylight', 'condition': {'operator': '!='}},
        {'name': 'x', 'trigger': 'motion', 'action': {'brightness': 150}},
        {'name': 'x', 'trigger': 'schedule', 'condition': {'schedule_time': '25:00'}},
        {'name': 'x', 'trigger': 'motion', 'duration': -5},
    ])
    def test_create_rejects_invalid_rules(self, client, payload):
        response = client.post('/api/rules', json=payload)
        assert response.status_code == 400

    def test_create_with_unknown_zone_is_404(self, client):
        response = client.post('/api/rules', json={'name': 'x', 'trigger': 'bms', 'zone_id': 'nope'})
        assert response.status_code == 404

    def test_update_and_delete(self, client):
        rule = client.post('/api/rules', json={'name': 'BMS', 'trigger': 'bms'}).get_json()['rule']

        response = client.put(f"/api/rules/{rule['id']}", json={
            'enabled': False,
            'last_triggered': '2025-01-02T03:04:05',
        })
        updated = response.get_json()['rule']
        assert updated['enabled'] is False
        assert updated['last_triggered'] == '2025-01-02T03:04:05'

        assert client.delete(f"/api/rules/{rule['id']}").status_code == 200
        assert client.get(f"/api/rules/{rule['id']}").status_code == 404

    def test_preview_and_simulate_saved_rule(self, client):
        rule = client.post('/api/rules', json={
            'name': 'Motion',
            'trigger': 'motion',
            'condition': {'zone': 'Dairy'},
            'action': {'zones': ['Dairy'], 'brightness': 100},
        }).get_json()['rule']

        preview = client.post('/api/rules/preview', json={'rule_id': rule['id']}).get_json()['preview']
        assert preview == 'When motion is detected in Dairy → set Dairy to 100% brightness'

        result = client.post('/api/rules/simulate', json={
            'rule_id': rule['id'],
            'event': {'trigger': 'motion', 'zone': 'Dairy', 'motion': True},
        }).get_json()
        assert result['success'] is True
        assert result['triggered'] is True

    def test_simulate_requires_event(self, client):
        response = client.post('/api/rules/simulate', json={'rule': {'trigger': 'bms'}})
        assert response.status_code == 400

    def test_simulate_unknown_rule_is_404(self, client):
        response = client.post('/api/rules/simulate', json={'rule_id': 'nope', 'event': {}})
        assert response.status_code == 404

    def test_example_events_for_draft(self, client):
        events = client.post('/api/rules/example-events', json={
            'rule': {'trigger': 'no_motion', 'condition': {'zone': 'Deli', 'duration': 15}},
        }).get_json()['events']
        assert [e['id'] for e in events] == ['no-motion-1', 'no-motion-2']
        assert events[0]['name'] == 'No motion for 15 minutes'

    @pytest.mark.parametrize('event', [
        {'trigger': 'daylight', 'daylight': 'bright'},
        {'trigger': 'schedule', 'time': '08:00', 'weekday': 'Mon'},
        {'trigger': 'schedule', 'time': '08:00', 'weekday': 9},
        {'trigger': 'motion', 'motion': 'yes'},
    ])
    def test_simulate_rejects_malformed_events(self, client, event):
        response = client.post('/api/rules/simulate', json={
            'rule': {'trigger': event['trigger'], 'condition': {
                'level': 50, 'schedule_time': '08:00', 'schedule_frequency': 'weekly', 'schedule_days': [1],
            }},
            'event': event,
        })
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    @pytest.mark.parametrize('endpoint', ['preview', 'simulate', 'example-events'])
    def test_malformed_drafts_are_rejected(self, client, endpoint):
        response = client.post(f'/api/rules/{endpoint}', json={
            'rule': {'trigger': 'schedule', 'condition': {
                'schedule_time': '08:00', 'schedule_frequency': 'weekly', 'schedule_days': ['Mon'],
            }},
            'event': {'trigger': 'schedule', 'time': '08:00'},
        })
        assert response.status_code == 400
        assert 'schedule_days must contain integers 0-6' in response.get_json()['context']['problems']

    def test_daylight_draft_with_text_level_is_rejected(self, client):
        response = client.post('/api/rules/preview', json={
            'rule': {'trigger': 'daylight', 'condition': {'level': 'high'}},
        })
        assert response.status_code == 400


class TestSimulateRule:

    def test_disabled_rule_never_fires(self):
        result = simulate_rule({'trigger': 'bms', 'enabled': False}, {'trigger': 'bms'})
        assert result == {'triggered': False, 'reason': 'Rule is disabled'}

    def test_trigger_mismatch(self):
        result = simulate_rule({'trigger': 'motion'}, {'trigger': 'bms'})
        assert result['triggered'] is False
        assert result['reason'] == 'Trigger type mismatch'

    def test_motion_without_target_matches_any_zone(self):
        result = simulate_rule({'trigger': 'motion'}, {'trigger': 'motion', 'zone': 'Anywhere', 'motion': True})
        assert result['triggered'] is True

    def test_motion_in_other_zone(self):
        rule = {'trigger': 'motion', 'condition': {'zone': 'Produce'}}
        result = simulate_rule(rule, {'trigger': 'motion', 'zone': 'Dairy', 'motion': True})
        assert result == {'triggered': False, 'reason': 'Motion detected but not in target zone/device'}

    def test_motion_matches_device(self):
        rule = {'trigger': 'motion', 'condition': {'device_id': 'FX-1'}}
        result = simulate_rule(rule, {'trigger': 'motion', 'device_id': 'FX-1', 'motion': True})
        assert result['triggered'] is True

    def test_no_motion(self):
        rule = {'trigger': 'no_motion', 'condition': {'zone': 'Deli'}}
        assert simulate_rule(rule, {'trigger': 'no_motion', 'zone': 'Deli', 'motion': False})['triggered']
        assert not simulate_rule(rule, {'trigger': 'no_motion', 'zone': 'Deli', 'motion': True})['triggered']

    @pytest.mark.parametrize('operator,level,expected', [
        ('>', 60, True),
        ('>', 50, False),
        ('<', 40, True),
        ('>=', 50, True),
        ('=', 50, True),
        ('=', 51, False),
    ])
    def test_daylight_operators(self, operator, level, expected):
        rule = {'trigger': 'daylight', 'condition': {'level': 50, 'operator': operator}}
        result = simulate_rule(rule, {'trigger': 'daylight', 'daylight': level})
        assert result['triggered'] is expected

    def test_daylight_wrong_zone(self):
        rule = {'trigger': 'daylight', 'condition': {'level': 50, 'operator': '>', 'zone': 'Produce'}}
        result = simulate_rule(rule, {'trigger': 'daylight', 'daylight': 80, 'zone': 'Dairy'})
        assert result == {'triggered': False, 'reason': 'Daylight level matches but wrong zone'}

    def test_schedule_time_and_weekday(self):
        rule = {'trigger': 'schedule', 'condition': {
            'schedule_time': '08:00', 'schedule_frequency': 'weekly', 'schedule_days': [1, 2],
        }}
        assert simulate_rule(rule, {'trigger': 'schedule', 'time': '08:00', 'weekday': 1})['triggered']
        assert not simulate_rule(rule, {'trigger': 'schedule', 'time': '09:00', 'weekday': 1})['triggered']
        result = simulate_rule(rule, {'trigger': 'schedule', 'time': '08:00', 'weekday': 0})
        assert result == {'triggered': False, 'reason': 'Sun is not a scheduled day'}

    def test_fault_outside_target(self):
        rule = {'trigger': 'fault', 'condition': {'zone': 'Produce'}}
        assert not simulate_rule(rule, {'trigger': 'fault', 'zone': 'Dairy'})['triggered']

    def test_compare_level_rejects_unknown_operator(self):
        with pytest.raises(ValueError):
            compare_level(1, '!=', 2)


class TestExampleEvents:

    @pytest.mark.parametrize('trigger', ['motion', 'no_motion', 'daylight', 'schedule', 'bms', 'fault'])
    def test_first_event_triggers(self, trigger):
        rule = {'trigger': trigger, 'condition': {
            'zone': 'Produce', 'level': 40, 'operator': '<', 'schedule_time': '07:30',
        }}
        events = example_events(rule)
        assert events
        assert simulate_rule(rule, events[0])['triggered'] is True
        if len(events) > 1:
            assert simulate_rule(rule, events[1])['triggered'] is False

    def test_daylight_equals_hits_threshold(self):
        rule = {'trigger': 'daylight', 'condition': {'level': 30, 'operator': '='}}
        events = example_events(rule)
        assert events[0]['daylight'] == 30
        assert events[1]['daylight'] == 40

    def test_unknown_trigger_has_no_events(self):
        assert example_events({'trigger': 'weather'}) == []


class TestPreviewRule:

    def test_without_trigger(self):
        assert preview_rule({}) == 'Start building your rule by selecting a trigger...'

    def test_without_action(self):
        assert preview_rule({'trigger': 'bms'}) == 'When a BMS command is received → [configure action]'

    def test_weekly_schedule_with_many_zones(self):
        rule = {
            'trigger': 'schedule',
            'condition': {'schedule_time': '06:00', 'schedule_frequency': 'weekly', 'schedule_days': [1, 3]},
            'action': {'zones': ['A', 'B', 'C'], 'brightness': 50, 'duration': 30, 'return_to_bms': True},
        }
        assert preview_rule(rule) == (
            'At 06:00 on Mon, Wed → set 3 zones (A, B...) to 50% brightness '
            'for 30 minutes then return control to BMS'
        )

    def test_email_only_action(self):
        rule = {'trigger': 'fault', 'action': {'email_manager': True}}
        assert preview_rule(rule) == 'When a fault is detected → email the store manager'


def test_validate_rule_payload_collects_problems():
    problems = validate_rule_payload(
        {'operator': '~', 'schedule_days': [9], 'schedule_frequency': 'hourly'},
        {'brightness': True},
    )
    assert len(problems) == 4
    assert validate_rule_payload({'operator': '>='}, {'brightness': 0}) == []
    assert validate_rule_payload({'schedule_days': 'Mon'}, None) == ['schedule_days must contain integers 0-6']


def test_validate_event():
    assert validate_event({'trigger': 'daylight', 'daylight': 80, 'weekday': 6, 'motion': False}) == []
    assert validate_event({'daylight': True, 'weekday': -1, 'motion': 1, 'time': 800}) == [
        'daylight must be a number',
        'weekday must be an integer 0-6',
        'motion must be true or false',
        'time must be HH:MM',
    ]
