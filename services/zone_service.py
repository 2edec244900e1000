"""
Zone Service
Zone CRUD, bulk save of a site's zone layout, and device membership.
"""

import logging
from typing import List, Optional

from sqlalchemy import select

from models import db, Site, Zone, ZoneDevice, Device
from models.zone import DEFAULT_ZONE_COLOR
from services.db_retry import with_db_retry
from services.errors import NotFoundError, ValidationError
from services.zone_detection import detect_zones_from_devices

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    'name', 'color', 'description', 'polygon', 'device_ids', 'daylight_enabled', 'min_daylight',
)


def _existing_device_ids(site_id: str, device_ids: List[str]) -> set:
    if not device_ids:
        return set()
    return set(db.session.scalars(
        select(Device.id).where(Device.id.in_(device_ids), Device.site_id == site_id)
    ))


def _validate_polygon(polygon) -> Optional[list]:
    if polygon is None:
        return None
    if not isinstance(polygon, list):
        raise ValidationError("polygon must be a list of {x, y} points")
    points = []
    for point in polygon:
        if not isinstance(point, dict) or 'x' not in point or 'y' not in point:
            raise ValidationError("polygon points must have x and y")
        try:
            points.append({'x': float(point['x']), 'y': float(point['y'])})
        except (TypeError, ValueError):
            raise ValidationError("polygon coordinates must be numbers")
    return points


def _replace_members(zone: Zone, device_ids: List[str]) -> None:
    zone.device_links.clear()
    db.session.flush()
    seen = set()
    for device_id in device_ids:
        if device_id in seen:
            continue
        seen.add(device_id)
        zone.device_links.append(ZoneDevice(device_id=device_id))


@with_db_retry
def list_zones(site_id: Optional[str]) -> List[Zone]:
    if not site_id:
        return []
    return list(db.session.scalars(
        select(Zone).where(Zone.site_id == site_id).order_by(Zone.created_at.asc())
    ))


def get_zone(zone_id: str) -> Optional[Zone]:
    return db.session.get(Zone, zone_id)


@with_db_retry
def create_zone(name: str, site_id: str, color: str = None, description: str = None,
                polygon: list = None, device_ids: List[str] = None) -> Zone:
    """Create a zone. Device IDs not found in the site are skipped with a warning."""
    if not name:
        raise ValidationError("Zone name is required")
    if not site_id:
        raise ValidationError("site_id is required")
    if not db.session.get(Site, site_id):
        raise NotFoundError(f"Site {site_id} not found")

    device_ids = device_ids or []
    existing = _existing_device_ids(site_id, device_ids)
    valid_ids = [d for d in device_ids if d in existing]
    invalid_ids = [d for d in device_ids if d not in existing]
    if invalid_ids:
        preview = ', '.join(invalid_ids[:5]) + ('...' if len(invalid_ids) > 5 else '')
        logger.warning(f"Zone creation: skipping {len(invalid_ids)} device IDs that don't exist: {preview}")

    zone = Zone(
        name=name,
        site_id=site_id,
        color=color or DEFAULT_ZONE_COLOR,
        description=description,
        polygon=_validate_polygon(polygon),
    )
    db.session.add(zone)
    _replace_members(zone, valid_ids)
    db.session.commit()
    logger.info(f"Created zone {zone.id} ({zone.name}) with {len(valid_ids)} devices")
    return zone


@with_db_retry
def update_zone(zone_id: str, **updates) -> Zone:
    zone = db.session.get(Zone, zone_id)
    if not zone:
        raise NotFoundError(f"Zone with ID {zone_id} not found")

    device_ids = updates.pop('device_ids', None)
    if device_ids is not None:
        existing = _existing_device_ids(zone.site_id, device_ids)
        invalid_ids = [d for d in device_ids if d not in existing]
        if invalid_ids:
            raise ValidationError(
                f"The following device IDs do not exist: {', '.join(invalid_ids)}",
                {'invalid_device_ids': invalid_ids},
            )
        _replace_members(zone, device_ids)

    for field in ('name', 'color', 'daylight_enabled'):
        if updates.get(field) is not None:
            setattr(zone, field, updates[field])
    # an explicit null clears these
    for field in ('description', 'min_daylight'):
        if field in updates:
            setattr(zone, field, updates[field])
    if 'polygon' in updates:
        zone.polygon = _validate_polygon(updates['polygon'])

    db.session.commit()
    return zone


def delete_zone(zone_id: str) -> None:
    zone = db.session.get(Zone, zone_id)
    if not zone:
        raise NotFoundError(f"Zone with ID {zone_id} not found")
    db.session.delete(zone)
    db.session.commit()
    logger.info(f"Deleted zone {zone_id}")


def save_all_zones(site_id: str, zones: List[dict]) -> dict:
    """
    Make the site's zones match the given list: missing zones are deleted,
    known IDs are overwritten, unknown IDs are created under that ID.
    """
    if not site_id:
        raise ValidationError("site_id is required")
    if not db.session.get(Site, site_id):
        raise NotFoundError(f"Site {site_id} not found")

    polygons = {}
    for data in zones:
        if not isinstance(data, dict) or not data.get('id') or not data.get('name'):
            raise ValidationError("Each zone needs an id and a name")
        polygons[data['id']] = _validate_polygon(data.get('polygon'))

    existing = {z.id: z for z in db.session.scalars(select(Zone).where(Zone.site_id == site_id))}
    for zone_id, zone in existing.items():
        if zone_id not in polygons:
            db.session.delete(zone)

    for data in zones:
        requested = data.get('device_ids') or []
        known = _existing_device_ids(site_id, requested)
        device_ids = [d for d in requested if d in known]
        if len(device_ids) != len(requested):
            logger.warning(f"save_all_zones: zone {data['id']} skipped {len(requested) - len(device_ids)} unknown devices")
        zone = existing.get(data['id'])
        if zone is None:
            zone = Zone(id=data['id'], site_id=site_id)
            db.session.add(zone)
        zone.name = data['name']
        zone.color = data.get('color') or DEFAULT_ZONE_COLOR
        zone.description = data.get('description')
        zone.polygon = polygons[data['id']]
        _replace_members(zone, device_ids)

    db.session.commit()
    logger.info(f"Saved {len(zones)} zones for site {site_id}")
    return {'success': True, 'saved': len(zones)}


def detect_zones(site_id: str) -> List[dict]:
    """Propose zones from the positions of the site's top-level devices."""
    if not site_id:
        return []
    devices = db.session.scalars(
        select(Device)
        .where(Device.site_id == site_id, Device.parent_id.is_(None))
        .order_by(Device.created_at.asc())
    )
    candidates = []
    for device in devices:
        location = None
        if device.zone_links:
            location = device.zone_links[0].zone.name
        candidates.append({'id': device.id, 'x': device.x, 'y': device.y, 'location': location})
    return detect_zones_from_devices(candidates)
