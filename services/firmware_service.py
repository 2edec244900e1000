"""
Firmware Campaign Service

Campaigns target device types (optionally within one site). Devices are
enrolled as per-device records, then moved PENDING -> IN_PROGRESS ->
COMPLETED/FAILED as the field reports back. Campaign counters are always
recomputed from the per-device records.
"""

import logging
from datetime import datetime
from typing import List, Optional
from urllib.parse import urlparse

from sqlalchemy import select

from models import (
    db,
    Device,
    Site,
    FirmwareStatus,
    FirmwareUpdate,
    FirmwareDeviceUpdate,
    FirmwareUpdateStatus,
    FirmwareDeviceStatus,
)
from models.firmware import FINISHED_DEVICE_STATUSES
from services import device_types
from services.db_retry import with_db_retry
from services.errors import NotFoundError, ValidationError, parse_datetime

logger = logging.getLogger(__name__)

CAMPAIGN_STATUSES = {status.value for status in FirmwareUpdateStatus}
ACTIVE_DEVICE_STATUSES = (FirmwareDeviceStatus.PENDING.value, FirmwareDeviceStatus.IN_PROGRESS.value)


def _require_campaign(campaign_id: str) -> FirmwareUpdate:
    campaign = db.session.get(FirmwareUpdate, campaign_id)
    if not campaign:
        raise NotFoundError(f"Campaign {campaign_id} not found")
    return campaign


def _require_record(campaign_id: str, device_id: str) -> FirmwareDeviceUpdate:
    record = db.session.scalars(
        select(FirmwareDeviceUpdate).where(
            FirmwareDeviceUpdate.firmware_update_id == campaign_id,
            FirmwareDeviceUpdate.device_id == device_id,
        )
    ).first()
    if not record:
        raise NotFoundError(f"Device {device_id} is not part of campaign {campaign_id}")
    return record


def refresh_counts(campaign: FirmwareUpdate) -> dict:
    db.session.flush()
    db.session.refresh(campaign, attribute_names=['device_updates'])
    counts = campaign.status_counts()
    campaign.total_devices = len(campaign.device_updates)
    campaign.completed = counts[FirmwareDeviceStatus.COMPLETED.value]
    campaign.failed = counts[FirmwareDeviceStatus.FAILED.value]
    campaign.in_progress = counts[FirmwareDeviceStatus.IN_PROGRESS.value]
    return counts


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


@with_db_retry
def list_campaigns(site_id: Optional[str] = None, include_completed: bool = False) -> List[FirmwareUpdate]:
    stmt = select(FirmwareUpdate).order_by(FirmwareUpdate.created_at.desc())
    if site_id:
        stmt = stmt.where(FirmwareUpdate.site_id == site_id)
    if not include_completed:
        stmt = stmt.where(FirmwareUpdate.status != FirmwareUpdateStatus.COMPLETED.value)
    return list(db.session.scalars(stmt))


def create_campaign(name: str, version: str, device_types_display: List[str], description: str = None,
                    file_url: str = None, site_id: str = None, scheduled_at=None) -> FirmwareUpdate:
    if not name or not str(name).strip():
        raise ValidationError("Campaign name is required")
    if not version or not str(version).strip():
        raise ValidationError("Firmware version is required")
    if file_url and not _is_http_url(file_url):
        raise ValidationError("file_url must be an http(s) URL")
    if not isinstance(device_types_display, list):
        raise ValidationError("device_types must be a list")
    if site_id and not db.session.get(Site, site_id):
        raise NotFoundError(f"Site {site_id} not found")

    stored_types = [device_types.from_display_type(t, strict=True) for t in device_types_display]

    campaign = FirmwareUpdate(
        name=name,
        description=description,
        version=version,
        file_url=file_url,
        site_id=site_id,
        device_types=stored_types,
        scheduled_at=parse_datetime('scheduled_at', scheduled_at),
        status=FirmwareUpdateStatus.PENDING.value,
        total_devices=0,
        completed=0,
        failed=0,
        in_progress=0,
    )
    db.session.add(campaign)
    db.session.commit()
    logger.info(f"Created firmware campaign {campaign.id} ({name} v{version}) for {stored_types}")
    return campaign


@with_db_retry
def get_campaign(campaign_id: str) -> FirmwareUpdate:
    return _require_campaign(campaign_id)


def update_campaign_status(campaign_id: str, status: str) -> FirmwareUpdate:
    if status not in CAMPAIGN_STATUSES:
        raise ValidationError(f"Invalid campaign status: {status}", {'allowed': sorted(CAMPAIGN_STATUSES)})
    campaign = _require_campaign(campaign_id)

    campaign.status = status
    if status == FirmwareUpdateStatus.IN_PROGRESS.value:
        campaign.started_at = datetime.utcnow()
    elif status == FirmwareUpdateStatus.COMPLETED.value:
        campaign.completed_at = datetime.utcnow()

    db.session.commit()
    logger.info(f"Campaign {campaign_id} -> {status}")
    return campaign


@with_db_retry
def get_eligible_devices(campaign_id: str) -> List[Device]:
    """Top-level devices of the campaign's types that are not already on its version."""
    campaign = _require_campaign(campaign_id)
    if not campaign.device_types:
        return []
    stmt = (
        select(Device)
        .where(Device.parent_id.is_(None), Device.type.in_(campaign.device_types))
        .order_by(Device.device_id.asc())
    )
    if campaign.site_id:
        stmt = stmt.where(Device.site_id == campaign.site_id)
    return [d for d in db.session.scalars(stmt) if d.firmware_version != campaign.version]


def add_devices_to_campaign(campaign_id: str, device_ids: List[str]) -> dict:
    campaign = _require_campaign(campaign_id)
    devices = list(db.session.scalars(select(Device).where(Device.id.in_(device_ids or []))))
    missing = set(device_ids or []) - {d.id for d in devices}
    if missing:
        raise NotFoundError(f"Devices not found: {', '.join(sorted(missing))}", {'missing': sorted(missing)})

    existing = {r.device_id: r for r in campaign.device_updates}
    for device in devices:
        record = existing.get(device.id)
        if record is None:
            record = FirmwareDeviceUpdate(device_id=device.id)
            campaign.device_updates.append(record)
        record.status = FirmwareDeviceStatus.PENDING.value
        record.error_message = None
        record.retry_count = 0

        device.firmware_target = campaign.version
        device.firmware_status = FirmwareStatus.UPDATE_AVAILABLE.value

    refresh_counts(campaign)
    db.session.commit()
    logger.info(f"Enrolled {len(devices)} devices in campaign {campaign_id}")
    return {'success': True, 'count': len(devices)}


@with_db_retry
def get_device_firmware(device_pk: str) -> dict:
    device = db.session.get(Device, device_pk)
    if not device:
        raise NotFoundError(f"Device {device_pk} not found")
    active = db.session.scalars(
        select(FirmwareDeviceUpdate)
        .where(
            FirmwareDeviceUpdate.device_id == device_pk,
            FirmwareDeviceUpdate.status.in_(ACTIVE_DEVICE_STATUSES),
        )
        .order_by(FirmwareDeviceUpdate.created_at.desc())
    )
    return {
        'id': device.id,
        'device_id': device.device_id,
        'firmware_version': device.firmware_version,
        'firmware_target': device.firmware_target,
        'firmware_status': device.firmware_status,
        'last_firmware_update': device.last_firmware_update.isoformat() if device.last_firmware_update else None,
        'active_updates': [record.to_dict(include_campaign=True) for record in active],
    }


def start_device_update(device_pk: str, campaign_id: str) -> FirmwareDeviceUpdate:
    campaign = _require_campaign(campaign_id)
    record = _require_record(campaign_id, device_pk)

    record.status = FirmwareDeviceStatus.IN_PROGRESS.value
    record.started_at = datetime.utcnow()
    record.error_message = None
    record.device.firmware_status = FirmwareStatus.UPDATE_IN_PROGRESS.value

    refresh_counts(campaign)
    if campaign.status == FirmwareUpdateStatus.PENDING.value:
        campaign.status = FirmwareUpdateStatus.IN_PROGRESS.value
        campaign.started_at = campaign.started_at or datetime.utcnow()

    db.session.commit()
    return record


def complete_device_update(device_pk: str, campaign_id: str, success: bool,
                           error_message: str = None) -> dict:
    campaign = _require_campaign(campaign_id)
    record = _require_record(campaign_id, device_pk)
    now = datetime.utcnow()
    device = record.device

    record.completed_at = now
    record.error_message = None if success else (error_message or None)
    if success:
        record.status = FirmwareDeviceStatus.COMPLETED.value
        device.firmware_version = campaign.version
        device.firmware_status = FirmwareStatus.UP_TO_DATE.value
        device.firmware_target = None
        device.last_firmware_update = now
    else:
        record.status = FirmwareDeviceStatus.FAILED.value
        record.retry_count = (record.retry_count or 0) + 1
        device.firmware_status = FirmwareStatus.UPDATE_FAILED.value
        device.firmware_target = campaign.version

    counts = refresh_counts(campaign)
    finished = sum(counts[status] for status in FINISHED_DEVICE_STATUSES)
    if campaign.total_devices and finished == campaign.total_devices:
        campaign.status = FirmwareUpdateStatus.COMPLETED.value
        campaign.completed_at = now
        logger.info(f"Campaign {campaign_id} completed: {campaign.completed} ok, {campaign.failed} failed")
    elif campaign.status == FirmwareUpdateStatus.PENDING.value and campaign.in_progress > 0:
        campaign.status = FirmwareUpdateStatus.IN_PROGRESS.value

    if not success:
        logger.warning(f"Firmware update failed for device {device_pk} in campaign {campaign_id}: {error_message}")

    db.session.commit()
    return {'success': True}


def delete_campaign(campaign_id: str) -> None:
    campaign = _require_campaign(campaign_id)
    db.session.delete(campaign)
    db.session.commit()
    logger.info(f"Deleted firmware campaign {campaign_id}")
