"""
Fault Service
Device faults: manual entries and ones derived from device status.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select

from models import db, Device, Fault, FAULT_TYPES
from services.db_retry import with_db_retry
from services.errors import NotFoundError, ValidationError, parse_datetime

logger = logging.getLogger(__name__)


@with_db_retry
def list_faults(site_id: str, include_resolved: bool = False) -> List[Fault]:
    """Faults of every device on the site, most recently detected first."""
    if not site_id:
        return []
    stmt = (
        select(Fault)
        .join(Fault.device)
        .where(Device.site_id == site_id)
        .order_by(Fault.detected_at.desc())
    )
    if not include_resolved:
        stmt = stmt.where(Fault.resolved.is_(False))
    return list(db.session.scalars(stmt))


@with_db_retry
def get_fault(fault_id: str) -> Optional[Fault]:
    return db.session.get(Fault, fault_id)


def create_fault(device_id: str, fault_type: str, description: str, detected_at=None) -> Fault:
    if not db.session.get(Device, device_id):
        raise NotFoundError(f"Device {device_id} not found")
    if fault_type not in FAULT_TYPES:
        raise ValidationError(f"Invalid fault type: {fault_type}", {'allowed': list(FAULT_TYPES)})
    if description is None:
        raise ValidationError("description is required")

    fault = Fault(
        device_id=device_id,
        fault_type=fault_type,
        description=description,
        resolved=False,
    )
    detected = parse_datetime('detected_at', detected_at)
    if detected:
        fault.detected_at = detected
    db.session.add(fault)
    db.session.commit()
    logger.info(f"Recorded {fault_type} fault {fault.id} on device {device_id}")
    return fault


def update_fault(fault_id: str, resolved: bool = None, resolved_at=None, description: str = None) -> Fault:
    """
    resolved=True stamps resolved_at (given value or now); resolved=False clears it.
    With resolved omitted, resolved_at is taken as given.
    """
    fault = db.session.get(Fault, fault_id)
    if not fault:
        raise NotFoundError(f"Fault {fault_id} not found")

    resolved_at = parse_datetime('resolved_at', resolved_at)
    if resolved is True:
        fault.resolved = True
        fault.resolved_at = resolved_at or datetime.utcnow()
    elif resolved is False:
        fault.resolved = False
        fault.resolved_at = None
    elif resolved_at is not None:
        fault.resolved_at = resolved_at

    if description is not None:
        fault.description = description

    db.session.commit()
    return fault


def delete_fault(fault_id: str) -> None:
    fault = db.session.get(Fault, fault_id)
    if not fault:
        raise NotFoundError(f"Fault {fault_id} not found")
    db.session.delete(fault)
    db.session.commit()
    logger.info(f"Deleted fault {fault_id}")
