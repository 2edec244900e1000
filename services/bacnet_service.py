"""
BACnet Mapping Service
One building-management-system object per zone, tracked for integration status.
"""

import logging
from typing import List, Optional

from sqlalchemy import select

from models import db, Zone, BACnetMapping, BACnetStatus
from services.errors import NotFoundError, ValidationError, ConflictError, parse_datetime

logger = logging.getLogger(__name__)

VALID_STATUSES = {status.value for status in BACnetStatus}


def _check_status(status: Optional[str]) -> None:
    if status is not None and status not in VALID_STATUSES:
        raise ValidationError(f"Invalid BACnet status: {status}", {'allowed': sorted(VALID_STATUSES)})


def _require_zone(zone_id: str) -> Zone:
    zone = db.session.get(Zone, zone_id)
    if not zone:
        raise NotFoundError(f"Zone with ID {zone_id} not found")
    return zone


def list_mappings(site_id: Optional[str]) -> List[dict]:
    """Mapped zones of a site, in zone creation order."""
    if not site_id:
        return []
    zones = db.session.scalars(
        select(Zone).where(Zone.site_id == site_id).order_by(Zone.created_at.asc())
    )
    entries = []
    for zone in zones:
        mapping = zone.bacnet_mapping
        if not mapping:
            continue
        entries.append({
            'zone_id': zone.id,
            'zone_name': zone.name,
            'bacnet_object_id': mapping.bacnet_object_id,
            'status': mapping.status or BACnetStatus.NOT_ASSIGNED.value,
            'last_connected': mapping.last_connected.isoformat() if mapping.last_connected else None,
        })
    return entries


def get_mapping(zone_id: str) -> Optional[BACnetMapping]:
    return db.session.scalars(select(BACnetMapping).where(BACnetMapping.zone_id == zone_id)).first()


def create_mapping(zone_id: str, bacnet_object_id: str = None,
                   status: str = BACnetStatus.NOT_ASSIGNED.value) -> BACnetMapping:
    _check_status(status)
    _require_zone(zone_id)
    if get_mapping(zone_id):
        raise ConflictError(f"Zone {zone_id} already has a BACnet mapping")

    mapping = BACnetMapping(
        zone_id=zone_id,
        bacnet_object_id=bacnet_object_id or None,
        status=status or BACnetStatus.NOT_ASSIGNED.value,
    )
    db.session.add(mapping)
    db.session.commit()
    logger.info(f"Created BACnet mapping for zone {zone_id} -> {mapping.bacnet_object_id}")
    return mapping


def update_mapping(zone_id: str, bacnet_object_id: str = None, status: str = None,
                   last_connected=None) -> BACnetMapping:
    """Upsert: creates the mapping when the zone has none."""
    _check_status(status)
    last_connected = parse_datetime('last_connected', last_connected)

    mapping = get_mapping(zone_id)
    if mapping is None:
        _require_zone(zone_id)
        mapping = BACnetMapping(
            zone_id=zone_id,
            bacnet_object_id=bacnet_object_id or None,
            status=status or BACnetStatus.NOT_ASSIGNED.value,
            last_connected=last_connected,
        )
        db.session.add(mapping)
    else:
        if bacnet_object_id is not None:
            mapping.bacnet_object_id = bacnet_object_id
        if status is not None:
            mapping.status = status
        if last_connected is not None:
            mapping.last_connected = last_connected

    db.session.commit()
    return mapping


def delete_mapping(zone_id: str) -> None:
    mapping = get_mapping(zone_id)
    if not mapping:
        raise NotFoundError(f"No BACnet mapping for zone {zone_id}")
    db.session.delete(mapping)
    db.session.commit()
    logger.info(f"Deleted BACnet mapping for zone {zone_id}")
