"""
Device Service

Fixtures and sensors on a site's floor plan. Components (LED module, driver,
lens, bracket) are child Device rows; everything returned to API clients goes
through serialize_device() so types and statuses use their display form.
"""

import random
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select, or_

from models import db, Site, Device, DeviceType, DeviceStatus, Zone
from services import device_types
from services.db_retry import with_db_retry
from services.errors import NotFoundError, ValidationError, check_range, parse_datetime
from services.map_geometry import arrange_devices_in_zone, calculate_alignment_updates

logger = logging.getLogger(__name__)

COMPONENT_TYPES = ('LED Module', 'Driver', 'Lens', 'Mounting Bracket')

UPDATABLE_FIELDS = (
    'device_id', 'serial_number', 'signal', 'battery', 'x', 'y', 'orientation',
    'warranty_status', 'cct',
)


def serialize_component(component: Device) -> dict:
    return {
        'id': component.id,
        'component_type': component.component_type or '',
        'component_serial_number': component.component_serial_number or '',
        'warranty_status': component.warranty_status,
        'warranty_expiry': component.warranty_expiry.isoformat() if component.warranty_expiry else None,
        'build_date': component.build_date.isoformat() if component.build_date else None,
        'status': device_types.to_display_status(component.status),
    }


def serialize_device(device: Device, include_components: bool = True) -> dict:
    data = {
        'id': device.id,
        'site_id': device.site_id,
        'device_id': device.device_id,
        'serial_number': device.serial_number,
        'type': device_types.to_display_type(device.type),
        'type_label': device_types.get_device_type_label(device.type),
        'signal': device.signal or 0,
        'battery': device.battery,
        'status': device_types.to_display_status(device.status),
        'x': device.x,
        'y': device.y,
        'orientation': device.orientation,
        'cct': device.cct,
        'warranty_status': device.warranty_status,
        'warranty_expiry': device.warranty_expiry.isoformat() if device.warranty_expiry else None,
        'firmware_version': device.firmware_version,
        'firmware_target': device.firmware_target,
        'firmware_status': device.firmware_status,
        'last_firmware_update': device.last_firmware_update.isoformat() if device.last_firmware_update else None,
        'zone_ids': device.zone_ids,
    }
    if include_components and device.components:
        data['components'] = [serialize_component(c) for c in device.components]
    return data


def _validate_ranges(values: dict) -> None:
    check_range('signal', values.get('signal'), 0, 100)
    check_range('battery', values.get('battery'), 0, 100)
    check_range('x', values.get('x'), 0, 1)
    check_range('y', values.get('y'), 0, 1)
    check_range('orientation', values.get('orientation'), 0, 360)


def _top_level_query(site_id: str):
    return (
        select(Device)
        .where(Device.site_id == site_id, Device.parent_id.is_(None))
        .order_by(Device.created_at.asc())
    )


@with_db_retry
def list_devices(site_id: Optional[str]) -> List[Device]:
    if not site_id:
        return []
    return list(db.session.scalars(_top_level_query(site_id)))


@with_db_retry
def search_devices(query: str, site_id: Optional[str]) -> List[Device]:
    """Case-insensitive substring match on device_id or serial number."""
    if not site_id:
        return []
    term = query or ''
    # % and _ in the query are literal text
    stmt = _top_level_query(site_id).where(
        or_(
            Device.device_id.icontains(term, autoescape=True),
            Device.serial_number.icontains(term, autoescape=True),
        )
    )
    return list(db.session.scalars(stmt))


@with_db_retry
def get_device(device_id: str) -> Optional[Device]:
    return db.session.get(Device, device_id)


def _build_component(parent: Device, fields: dict) -> Device:
    component_type = fields.get('component_type')
    serial = fields.get('component_serial_number')
    if not component_type or not serial:
        raise ValidationError("Components need component_type and component_serial_number")
    return Device(
        site_id=parent.site_id,
        device_id=f"{parent.device_id}-{component_type}",
        serial_number=serial,
        type=DeviceType.FIXTURE_16FT_POWER_ENTRY.value,
        status=DeviceStatus.ONLINE.value,
        component_type=component_type,
        component_serial_number=serial,
        warranty_status=fields.get('warranty_status'),
        warranty_expiry=parse_datetime('warranty_expiry', fields.get('warranty_expiry')),
        build_date=parse_datetime('build_date', fields.get('build_date')),
    )


@with_db_retry
def create_device(site_id: str, device_id: str, serial_number: str, type: str, status: str = 'offline',
                  components: List[dict] = None, **fields) -> Device:
    if not site_id:
        raise ValidationError("site_id is required")
    if not db.session.get(Site, site_id):
        raise NotFoundError(f"Site {site_id} not found")
    if not device_id or not serial_number:
        raise ValidationError("device_id and serial_number are required")
    if not type:
        raise ValidationError("Device type is required")
    stored_type = device_types.from_display_type(type, strict=True)
    if status is not None and not device_types.is_display_status(status):
        raise ValidationError(f"Invalid device status: {status}")
    _validate_ranges(fields)

    device = Device(
        site_id=site_id,
        device_id=device_id,
        serial_number=serial_number,
        type=stored_type,
        status=device_types.from_display_status(status or 'offline'),
        signal=fields.get('signal'),
        battery=fields.get('battery'),
        x=fields.get('x'),
        y=fields.get('y'),
        orientation=fields.get('orientation'),
        warranty_status=fields.get('warranty_status'),
        warranty_expiry=parse_datetime('warranty_expiry', fields.get('warranty_expiry')),
    )
    for component in components or []:
        device.components.append(_build_component(device, component))

    db.session.add(device)
    db.session.commit()
    logger.info(f"Created device {device.device_id} ({stored_type}) with {len(device.components)} components")
    return device


@with_db_retry
def update_device(device_pk: str, **updates) -> Device:
    device = db.session.get(Device, device_pk)
    if not device:
        raise NotFoundError(f"Device with ID {device_pk} not found")
    _validate_ranges(updates)

    if updates.get('type') is not None:
        new_type = updates['type']
        if new_type == device_types.LEGACY_FIXTURE_TYPE:
            device.type = DeviceType.FIXTURE_16FT_POWER_ENTRY.value
        else:
            device.type = device_types.from_display_type(new_type, strict=True)

    if updates.get('status') is not None:
        if not device_types.is_display_status(updates['status']):
            raise ValidationError(f"Invalid device status: {updates['status']}")
        device.status = device_types.from_display_status(updates['status'])

    for field in UPDATABLE_FIELDS:
        if field in updates and updates[field] is not None:
            setattr(device, field, updates[field])

    if updates.get('warranty_expiry') is not None:
        device.warranty_expiry = parse_datetime('warranty_expiry', updates['warranty_expiry'])

    db.session.commit()
    return device


def delete_device(device_pk: str) -> None:
    device = db.session.get(Device, device_pk)
    if not device:
        raise NotFoundError(f"Device with ID {device_pk} not found")
    db.session.delete(device)
    db.session.commit()
    logger.info(f"Deleted device {device_pk}")


def delete_devices(ids: List[str]) -> dict:
    devices = list(db.session.scalars(select(Device).where(Device.id.in_(ids or []))))
    for device in devices:
        db.session.delete(device)
    db.session.commit()
    logger.info(f"Deleted {len(devices)} of {len(ids or [])} requested devices")
    return {'success': True, 'deleted': len(devices)}


@with_db_retry
def get_components(device_pk: str) -> List[Device]:
    return list(db.session.scalars(
        select(Device).where(Device.parent_id == device_pk).order_by(Device.created_at.asc())
    ))


def arrange_devices(zone_id: str, device_ids: List[str], padding: float = 0.02) -> List[Device]:
    """Grid the given devices inside the zone's bounding box and persist their positions."""
    zone = db.session.get(Zone, zone_id)
    if not zone:
        raise NotFoundError(f"Zone with ID {zone_id} not found")
    devices = list(db.session.scalars(
        select(Device).where(Device.id.in_(device_ids or []), Device.site_id == zone.site_id)
    ))
    order = {device_id: index for index, device_id in enumerate(device_ids)}
    devices.sort(key=lambda d: order[d.id])

    by_id = {d.id: d for d in devices}
    updates = arrange_devices_in_zone(devices, zone, padding=padding)
    for update in updates:
        device = by_id[update['device_id']]
        device.x = update['updates']['x']
        device.y = update['updates']['y']
    db.session.commit()
    return [by_id[u['device_id']] for u in updates]


def align_devices(device_ids: List[str]) -> List[Device]:
    """Give every selected fixture the same orientation."""
    devices = list(db.session.scalars(select(Device).where(Device.id.in_(device_ids or []))))
    by_id = {d.id: d for d in devices}
    updates = calculate_alignment_updates(devices)
    for update in updates:
        by_id[update['device_id']].orientation = update['updates']['orientation']
    db.session.commit()
    return [by_id[u['device_id']] for u in updates]


def generate_warranty_expiry(now: datetime = None) -> datetime:
    """Five years out."""
    now = now or datetime.utcnow()
    try:
        return now.replace(year=now.year + 5)
    except ValueError:
        # Feb 29
        return now.replace(year=now.year + 5, day=28)


def generate_components_for_fixture(fixture_serial: str, rng: random.Random = None, now: datetime = None) -> List[dict]:
    """
    Component dicts for a new fixture with a spread of warranty states:
    roughly 15% expired, 20% expiring within 30 days, the rest active.
    """
    rng = rng or random.Random()
    now = now or datetime.utcnow()
    components = []
    for component_type in COMPONENT_TYPES:
        roll = rng.random()
        if roll < 0.15:
            expiry = now - timedelta(days=rng.randint(30, 209))
        elif roll < 0.35:
            expiry = now + timedelta(days=rng.randint(0, 29))
        else:
            expiry = now + timedelta(days=365 + rng.randint(0, 1459))
        type_code = component_type.replace(' ', '')[:3].upper()
        components.append({
            'component_type': component_type,
            'component_serial_number': f"{fixture_serial}-{type_code}-{rng.randint(0, 9999):04d}",
            'warranty_status': 'Active' if expiry > now else 'Expired',
            'warranty_expiry': expiry,
            'build_date': datetime(2024, rng.randint(1, 12), rng.randint(1, 28)),
        })
    return components
