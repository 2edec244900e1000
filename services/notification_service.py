"""
Notification Service

Notifications are not stored. Each request derives them from open faults,
warranty dates, device health and firmware campaign state, newest first.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select, and_, or_

from models import (
    db,
    Device,
    DeviceStatus,
    Fault,
    FirmwareStatus,
    FirmwareUpdate,
    FirmwareDeviceUpdate,
    FirmwareUpdateStatus,
    FirmwareDeviceStatus,
)
from services.db_retry import with_db_retry

logger = logging.getLogger(__name__)

FAULT_LIMIT = 20
WARRANTY_LIMIT = 50
HEALTH_LIMIT = 50
CAMPAIGN_LIMIT = 10
FAILED_RECORDS_PER_CAMPAIGN = 10
FIRMWARE_AVAILABLE_LIMIT = 50

WARRANTY_WINDOW_DAYS = 30
WEAK_SIGNAL_THRESHOLD = 20

NOTIFIED_CAMPAIGN_STATUSES = (
    FirmwareUpdateStatus.IN_PROGRESS.value,
    FirmwareUpdateStatus.COMPLETED.value,
    FirmwareUpdateStatus.FAILED.value,
)


def _notification(id: str, type: str, title: str, message: str, timestamp: datetime,
                  link: str, site_id: Optional[str]) -> dict:
    return {
        'id': id,
        'type': type,
        'title': title,
        'message': message,
        'timestamp': timestamp,
        'read': False,
        'link': link,
        'site_id': site_id,
    }


def _fault_notifications(site_id: Optional[str]) -> List[dict]:
    stmt = (
        select(Fault)
        .join(Fault.device)
        .where(Fault.resolved.is_(False))
        .order_by(Fault.detected_at.desc())
        .limit(FAULT_LIMIT)
    )
    if site_id:
        stmt = stmt.where(Device.site_id == site_id)

    notifications = []
    for fault in db.session.scalars(stmt):
        device = fault.device
        notifications.append(_notification(
            f"fault-{fault.id}",
            'fault',
            f"{fault.title} Detected",
            f"{fault.description} (Device: {device.device_id})",
            fault.detected_at,
            f"/faults?id={fault.id}&siteId={device.site_id}",
            device.site_id,
        ))
    return notifications


def _warranty_notifications(site_id: Optional[str], now: datetime) -> List[dict]:
    cutoff = now + timedelta(days=WARRANTY_WINDOW_DAYS)
    stmt = (
        select(Device)
        .where(Device.warranty_expiry.is_not(None), Device.warranty_expiry <= cutoff)
        .order_by(Device.warranty_expiry.asc())
        .limit(WARRANTY_LIMIT)
    )
    if site_id:
        stmt = stmt.where(Device.site_id == site_id)

    notifications = []
    for device in db.session.scalars(stmt):
        expired = device.warranty_expiry < now
        date_text = device.warranty_expiry.strftime('%Y-%m-%d')
        notifications.append(_notification(
            f"warranty-{device.id}",
            'warranty',
            'Warranty Expired' if expired else 'Warranty Expiring Soon',
            f"Device {device.device_id} warranty {'expired' if expired else 'expires'} on {date_text}.",
            device.warranty_expiry,
            f"/lookup?id={device.id}&siteId={device.site_id}",
            device.site_id,
        ))
    return notifications


def _health_notifications(site_id: Optional[str]) -> List[dict]:
    stmt = (
        select(Device)
        .where(or_(
            and_(Device.signal > 0, Device.signal < WEAK_SIGNAL_THRESHOLD),
            Device.status == DeviceStatus.MISSING.value,
        ))
        .order_by(Device.updated_at.desc())
        .limit(HEALTH_LIMIT)
    )
    if site_id:
        stmt = stmt.where(Device.site_id == site_id)

    notifications = []
    for device in db.session.scalars(stmt):
        if device.status == DeviceStatus.MISSING.value:
            title = 'Device Missing'
            message = f"Device {device.device_id} is reported as MISSING."
        else:
            title = 'Weak Signal'
            message = f"Device {device.device_id} has poor signal strength ({device.signal}%)."
        notifications.append(_notification(
            f"health-{device.id}",
            'device',
            title,
            message,
            device.updated_at,
            f"/faults?id={device.id}&siteId={device.site_id}",
            device.site_id,
        ))
    return notifications


def _campaign_link(campaign: FirmwareUpdate, device_id: str = None) -> str:
    link = f"/firmware?id={campaign.id}"
    if device_id:
        link += f"&deviceId={device_id}"
    if campaign.site_id:
        link += f"&siteId={campaign.site_id}"
    return link


def _firmware_notifications(site_id: Optional[str]) -> List[dict]:
    stmt = (
        select(FirmwareUpdate)
        .where(FirmwareUpdate.status.in_(NOTIFIED_CAMPAIGN_STATUSES))
        .order_by(FirmwareUpdate.updated_at.desc())
        .limit(CAMPAIGN_LIMIT)
    )
    if site_id:
        stmt = stmt.where(FirmwareUpdate.site_id == site_id)

    notifications = []
    for campaign in db.session.scalars(stmt):
        key = f"firmware-campaign-{campaign.id}"
        if campaign.status == FirmwareUpdateStatus.COMPLETED.value and campaign.completed_at:
            notifications.append(_notification(
                key, 'firmware', 'Firmware Update Completed',
                f'Campaign "{campaign.name}" completed successfully. {campaign.completed} devices updated.',
                campaign.completed_at, _campaign_link(campaign), campaign.site_id,
            ))
        elif campaign.status == FirmwareUpdateStatus.FAILED.value:
            notifications.append(_notification(
                key, 'firmware', 'Firmware Update Failed',
                f'Campaign "{campaign.name}" failed. {campaign.failed} devices failed to update.',
                campaign.updated_at, _campaign_link(campaign), campaign.site_id,
            ))
        elif campaign.status == FirmwareUpdateStatus.IN_PROGRESS.value:
            notifications.append(_notification(
                key, 'firmware', 'Firmware Update In Progress',
                f'Campaign "{campaign.name}" is updating {campaign.in_progress} devices.',
                campaign.started_at or campaign.updated_at, _campaign_link(campaign), campaign.site_id,
            ))

        failed_records = db.session.scalars(
            select(FirmwareDeviceUpdate)
            .where(
                FirmwareDeviceUpdate.firmware_update_id == campaign.id,
                FirmwareDeviceUpdate.status == FirmwareDeviceStatus.FAILED.value,
            )
            .order_by(FirmwareDeviceUpdate.updated_at.desc())
            .limit(FAILED_RECORDS_PER_CAMPAIGN)
        )
        for record in failed_records:
            notifications.append(_notification(
                f"firmware-device-{record.id}",
                'firmware',
                'Device Firmware Update Failed',
                f"Device {record.device.device_id} failed to update firmware: "
                f"{record.error_message or 'Unknown error'}",
                record.completed_at or record.updated_at,
                _campaign_link(campaign, record.device_id),
                record.device.site_id,
            ))
    return notifications


def _firmware_available_notifications(site_id: Optional[str]) -> List[dict]:
    stmt = (
        select(Device)
        .where(Device.firmware_status == FirmwareStatus.UPDATE_AVAILABLE.value)
        .order_by(Device.updated_at.desc())
        .limit(FIRMWARE_AVAILABLE_LIMIT)
    )
    if site_id:
        stmt = stmt.where(Device.site_id == site_id)

    return [
        _notification(
            f"firmware-available-{device.id}",
            'firmware',
            'Firmware Update Available',
            f"Device {device.device_id} has firmware update available "
            f"({device.firmware_version or 'unknown'} → {device.firmware_target or 'unknown'}).",
            device.updated_at,
            f"/lookup?id={device.id}&siteId={device.site_id}",
            device.site_id,
        )
        for device in db.session.scalars(stmt)
    ]


@with_db_retry
def list_notifications(site_id: Optional[str] = None, now: datetime = None) -> List[dict]:
    """All current notifications for a site (or every site), newest first."""
    now = now or datetime.utcnow()
    notifications = []
    notifications.extend(_fault_notifications(site_id))
    notifications.extend(_warranty_notifications(site_id, now))
    notifications.extend(_health_notifications(site_id))
    notifications.extend(_firmware_notifications(site_id))
    notifications.extend(_firmware_available_notifications(site_id))

    notifications.sort(key=lambda n: n['timestamp'] or datetime.min, reverse=True)
    logger.debug(f"Built {len(notifications)} notifications for site {site_id or 'all'}")
    return notifications


def serialize_notification(notification: dict) -> dict:
    data = dict(notification)
    timestamp = data.get('timestamp')
    data['timestamp'] = timestamp.isoformat() if timestamp else None
    return data
