"""
Map Geometry

Pure functions over normalized (0-1) floor-plan coordinates: hit-testing,
screen transforms, grid arrangement and fixture alignment.
"""

import math
from typing import Dict, List, Optional, Sequence

from services.device_types import is_fixture_type


def _xy(point):
    if isinstance(point, dict):
        return point.get('x'), point.get('y')
    return point.x, point.y


def point_in_polygon(point, polygon: Optional[Sequence]) -> bool:
    """Ray casting. Polygons with fewer than three vertices contain nothing."""
    if not polygon or len(polygon) < 3:
        return False

    px, py = _xy(point)
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = _xy(polygon[i])
        xj, yj = _xy(polygon[j])
        if (yi > py) != (yj > py):
            if px < (xj - xi) * (py - yi) / (yj - yi) + xi:
                inside = not inside
        j = i
    return inside


def find_zone_for_device(device, zones: Sequence):
    """First zone whose polygon contains the device, None when unpositioned."""
    x, y = _xy(device)
    if x is None or y is None:
        return None
    for zone in zones:
        polygon = zone.get('polygon') if isinstance(zone, dict) else zone.polygon
        if point_in_polygon({'x': x, 'y': y}, polygon):
            return zone
    return None


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def screen_to_normalized(screen_x: float, screen_y: float, width: float, height: float,
                         offset_x: float = 0.0, offset_y: float = 0.0, scale: float = 1.0) -> Dict[str, float]:
    """Invert the canvas pan (offset) and zoom (scale) and normalize to the image size."""
    if width <= 0 or height <= 0 or scale <= 0:
        raise ValueError("width, height and scale must be positive")
    x = (screen_x - offset_x) / scale / width
    y = (screen_y - offset_y) / scale / height
    return {'x': _clamp(x), 'y': _clamp(y)}


def normalized_to_screen(x: float, y: float, width: float, height: float,
                         offset_x: float = 0.0, offset_y: float = 0.0, scale: float = 1.0) -> Dict[str, float]:
    return {
        'x': _clamp(x) * width * scale + offset_x,
        'y': _clamp(y) * height * scale + offset_y,
    }


def polygon_bounds(polygon: Sequence) -> Optional[Dict[str, float]]:
    if not polygon:
        return None
    xs = [_xy(p)[0] for p in polygon]
    ys = [_xy(p)[1] for p in polygon]
    return {'min_x': min(xs), 'max_x': max(xs), 'min_y': min(ys), 'max_y': max(ys)}


def arrange_devices_in_zone(devices: Sequence, zone, padding: float = 0.02) -> List[dict]:
    """
    Lay devices out on a grid inside the zone's padded bounding box.

    Returns [{'device_id', 'updates': {'x', 'y', 'zone'}}, ...]; empty when the
    zone has no polygon or the padded box has no area.
    """
    polygon = zone.get('polygon') if isinstance(zone, dict) else zone.polygon
    zone_name = zone.get('name') if isinstance(zone, dict) else zone.name
    bounds = polygon_bounds(polygon)
    if not bounds or not devices:
        return []

    min_x = bounds['min_x'] + padding
    max_x = bounds['max_x'] - padding
    min_y = bounds['min_y'] + padding
    max_y = bounds['max_y'] - padding
    width = max_x - min_x
    height = max_y - min_y
    if width <= 0 or height <= 0:
        return []

    cols = math.ceil(math.sqrt(len(devices)))
    rows = math.ceil(len(devices) / cols)
    spacing_x = width / (cols + 1)
    spacing_y = height / (rows + 1)

    updates = []
    for idx, device in enumerate(devices):
        col = idx % cols
        row = idx // cols
        device_id = device.get('id') if isinstance(device, dict) else device.id
        updates.append({
            'device_id': device_id,
            'updates': {
                'x': _clamp(min_x + spacing_x * (col + 1), min_x, max_x),
                'y': _clamp(min_y + spacing_y * (row + 1), min_y, max_y),
                'zone': zone_name,
            },
        })
    return updates


def calculate_alignment_updates(devices: Sequence) -> List[dict]:
    """
    Flip every fixture to one orientation. Orientations within 45 degrees of 0
    count as horizontal; when horizontals are the majority (or tied) all become
    vertical (90), otherwise all become horizontal (0). Sensors are ignored.
    """
    fixtures = []
    for device in devices:
        if isinstance(device, dict):
            device_id, device_type, orientation = device.get('id'), device.get('type'), device.get('orientation')
        else:
            device_id, device_type, orientation = device.id, device.type, device.orientation
        if is_fixture_type(device_type):
            fixtures.append((device_id, orientation or 0))

    if not fixtures:
        return []

    horizontal = 0
    for _, orientation in fixtures:
        normalized = orientation % 360
        if normalized <= 45 or normalized >= 315:
            horizontal += 1
    vertical = len(fixtures) - horizontal

    target = 90 if horizontal >= vertical else 0
    return [{'device_id': device_id, 'updates': {'orientation': target}} for device_id, _ in fixtures]
