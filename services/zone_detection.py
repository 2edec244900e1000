"""
Zone Detection
Proposes zones by clustering positioned devices. Nothing is persisted here.
"""

import math
from collections import Counter
from typing import List, Sequence

ZONE_COLORS = [
    '#4c7dff',
    '#f97316',
    '#22c55e',
    '#eab308',
    '#8b5cf6',
    '#ec4899',
    '#06b6d4',
    '#f59e0b',
    '#10b981',
    '#6366f1',
]

MAX_ZONES = 12
CLUSTER_RADIUS = 0.4
POLYGON_PADDING = 0.02


def _bounds(devices: Sequence[dict]) -> dict:
    xs = [d['x'] for d in devices]
    ys = [d['y'] for d in devices]
    return {'min_x': min(xs), 'max_x': max(xs), 'min_y': min(ys), 'max_y': max(ys)}


def spatial_clustering(devices: Sequence[dict], radius: float = CLUSTER_RADIUS) -> List[List[dict]]:
    """Greedy clustering: each unclaimed device seeds a cluster of every unclaimed device within radius of it."""
    clusters = []
    claimed = set()
    for seed in devices:
        if seed['id'] in claimed:
            continue
        cluster = [seed]
        claimed.add(seed['id'])
        for other in devices:
            if other['id'] in claimed:
                continue
            if math.hypot(seed['x'] - other['x'], seed['y'] - other['y']) < radius:
                cluster.append(other)
                claimed.add(other['id'])
        clusters.append(cluster)
    return clusters


def _area_name(devices: Sequence[dict]) -> str:
    names = []
    for device in devices:
        location = device.get('location')
        if location:
            names.append(location.split(' - ')[0] or 'Area')
    if not names:
        return 'Area'
    # first name to reach the top count wins ties
    counts = Counter(names)
    top = max(counts.values())
    return next(name for name in names if counts[name] == top)


def detect_zones_from_devices(devices: Sequence[dict]) -> List[dict]:
    """
    Devices are dicts with id, x, y and an optional 'location' label
    ("Produce - Aisle 3"). Returns proposed zones with name, color,
    description, closed rectangular polygon and device_ids.
    """
    positioned = [d for d in devices if d.get('x') is not None and d.get('y') is not None]
    if not positioned:
        return []

    clusters = spatial_clustering(positioned)

    if len(clusters) > MAX_ZONES:
        clusters.sort(key=len, reverse=True)
        keep = clusters[:MAX_ZONES]
        for idx, extra in enumerate(clusters[MAX_ZONES:]):
            keep[idx % len(keep)].extend(extra)
        clusters = keep

    zones = []
    for index, cluster in enumerate(clusters):
        bounds = _bounds(cluster)
        left = max(0.0, bounds['min_x'] - POLYGON_PADDING)
        right = min(1.0, bounds['max_x'] + POLYGON_PADDING)
        top = max(0.0, bounds['min_y'] - POLYGON_PADDING)
        bottom = min(1.0, bounds['max_y'] + POLYGON_PADDING)
        area = _area_name(cluster)
        zones.append({
            'name': f"Zone {index + 1} - {area}",
            'color': ZONE_COLORS[index % len(ZONE_COLORS)],
            'description': f"{len(cluster)} devices in {area}",
            'polygon': [
                {'x': left, 'y': top},
                {'x': right, 'y': top},
                {'x': right, 'y': bottom},
                {'x': left, 'y': bottom},
                {'x': left, 'y': top},
            ],
            'device_ids': [d['id'] for d in cluster],
        })
    return zones
