#!/usr/bin/env python3
"""
Demo Site Seeder
Creates a store with a floor of fixtures, sensors, zones, a motion rule and a
couple of open faults so the map and notifications have something to show.

Usage:
    python scripts/seed_demo_site.py [store_number]
"""

import os
import sys
import random
import logging

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app
from services import site_service, device_service, zone_service, rule_service, fault_service

logger = logging.getLogger(__name__)

FIXTURE_ROWS = 4
FIXTURES_PER_ROW = 6

ZONES = [
    {'name': 'Produce', 'color': '#4c7dff', 'polygon': [
        {'x': 0.05, 'y': 0.05}, {'x': 0.48, 'y': 0.05}, {'x': 0.48, 'y': 0.48}, {'x': 0.05, 'y': 0.48},
    ]},
    {'name': 'Dairy', 'color': '#10b981', 'polygon': [
        {'x': 0.52, 'y': 0.05}, {'x': 0.95, 'y': 0.05}, {'x': 0.95, 'y': 0.48}, {'x': 0.52, 'y': 0.48},
    ]},
    {'name': 'Checkout', 'color': '#f59e0b', 'polygon': [
        {'x': 0.05, 'y': 0.52}, {'x': 0.95, 'y': 0.52}, {'x': 0.95, 'y': 0.95}, {'x': 0.05, 'y': 0.95},
    ]},
]


def seed(store_number: str, rng: random.Random):
    existing = site_service.get_site_by_store_number(store_number)
    if existing:
        print(f"Store {store_number} already exists ({existing.id}), skipping")
        return existing

    site = site_service.create_site(
        name=f"Store {store_number}",
        store_number=store_number,
        address='100 Demo Way',
    )

    fixtures = []
    for row in range(FIXTURE_ROWS):
        for col in range(FIXTURES_PER_ROW):
            n = row * FIXTURES_PER_ROW + col + 1
            serial = f"FX{store_number}{n:03d}"
            fixture_type = 'fixture-16ft-power-entry' if col == 0 else 'fixture-16ft-follower'
            fixtures.append(device_service.create_device(
                site_id=site.id,
                device_id=f"FIX-{n:03d}",
                serial_number=serial,
                type=fixture_type,
                status=rng.choice(['online'] * 8 + ['offline', 'missing']),
                signal=rng.randint(5, 100),
                x=0.1 + col * 0.15,
                y=0.15 + row * 0.22,
                orientation=0,
                warranty_expiry=device_service.generate_warranty_expiry(),
                components=device_service.generate_components_for_fixture(serial, rng=rng),
            ))

    for n, (x, y) in enumerate([(0.25, 0.25), (0.75, 0.25), (0.5, 0.75)], start=1):
        device_service.create_device(
            site_id=site.id,
            device_id=f"MS-{n:03d}",
            serial_number=f"MS{store_number}{n:03d}",
            type='motion',
            status='online',
            signal=rng.randint(40, 100),
            battery=rng.randint(20, 100),
            x=x,
            y=y,
        )
    device_service.create_device(
        site_id=site.id,
        device_id='LS-001',
        serial_number=f"LS{store_number}001",
        type='light-sensor',
        status='online',
        signal=90,
        x=0.9,
        y=0.1,
    )

    zones = []
    for zone_fields in ZONES:
        zones.append(zone_service.create_zone(site_id=site.id, **zone_fields))
    device_service.arrange_devices(zones[0].id, [f.id for f in fixtures[:FIXTURES_PER_ROW]])

    rule_service.create_rule(
        name='Produce lights on motion',
        trigger='motion',
        condition={'zone': 'Produce'},
        action={'zones': ['Produce'], 'brightness': 100},
        duration=15,
        zone_id=zones[0].id,
    )

    for fixture, fault_type in zip(rng.sample(fixtures, 2), ('thermal-overheat', 'electrical-driver')):
        fault_service.create_fault(
            device_id=fixture.id,
            fault_type=fault_type,
            description=f"Reported during demo commissioning of {fixture.device_id}",
        )

    print(f"Seeded store {store_number}: {len(fixtures)} fixtures, 4 sensors, {len(zones)} zones")
    return site


def main():
    store_number = sys.argv[1] if len(sys.argv) > 1 else '1042'
    app = create_app()
    with app.app_context():
        from models import db
        db.create_all()
        seed(store_number, random.Random(store_number))


if __name__ == '__main__':
    main()
