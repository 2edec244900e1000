"""
Firmware Campaign Models
Batch firmware updates targeting devices by type and site, tracked per device.
"""

from enum import Enum
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, DateTime, Text, ForeignKey, Index
from .base import Base, JSONBCompatible, generate_uuid, isoformat

if TYPE_CHECKING:
    from .site import Site
    from .device import Device


class FirmwareUpdateStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class FirmwareDeviceStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


FINISHED_DEVICE_STATUSES = (
    FirmwareDeviceStatus.COMPLETED.value,
    FirmwareDeviceStatus.FAILED.value,
    FirmwareDeviceStatus.SKIPPED.value,
)


class FirmwareUpdate(Base):
    """A firmware update campaign."""
    __tablename__ = "firmware_updates"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    version: Mapped[str] = mapped_column(String(64), nullable=False)
    file_url: Mapped[Optional[str]] = mapped_column(String(1024))

    site_id: Mapped[Optional[str]] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), index=True)
    device_types: Mapped[list] = mapped_column(JSONBCompatible, default=list, nullable=False)  # stored DeviceType values

    status: Mapped[str] = mapped_column(String(16), nullable=False, default=FirmwareUpdateStatus.PENDING.value, index=True)
    total_devices: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    completed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    failed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    in_progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    scheduled_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    site: Mapped[Optional["Site"]] = relationship(back_populates="firmware_updates")
    device_updates: Mapped[list["FirmwareDeviceUpdate"]] = relationship(
        back_populates="firmware_update",
        cascade="all, delete-orphan",
        order_by="FirmwareDeviceUpdate.created_at.desc()",
    )

    def __repr__(self):
        return f'<FirmwareUpdate {self.name} v{self.version} ({self.status})>'

    def status_counts(self) -> dict:
        counts = {status.value: 0 for status in FirmwareDeviceStatus}
        for record in self.device_updates:
            counts[record.status] = counts.get(record.status, 0) + 1
        return counts

    def to_dict(self, include_devices: bool = False):
        counts = self.status_counts()
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "file_url": self.file_url,
            "site_id": self.site_id,
            "site": self.site.to_summary() if self.site else None,
            "device_types": self.device_types or [],
            "status": self.status,
            "total_devices": len(self.device_updates),
            "completed": counts[FirmwareDeviceStatus.COMPLETED.value],
            "failed": counts[FirmwareDeviceStatus.FAILED.value],
            "in_progress": counts[FirmwareDeviceStatus.IN_PROGRESS.value],
            "pending": counts[FirmwareDeviceStatus.PENDING.value],
            "scheduled_at": isoformat(self.scheduled_at),
            "started_at": isoformat(self.started_at),
            "completed_at": isoformat(self.completed_at),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
        if include_devices:
            data["device_updates"] = [record.to_dict(include_device=True) for record in self.device_updates]
        return data


class FirmwareDeviceUpdate(Base):
    """Per-device status inside a campaign."""
    __tablename__ = "firmware_device_updates"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_uuid)
    firmware_update_id: Mapped[str] = mapped_column(
        ForeignKey("firmware_updates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    device_id: Mapped[str] = mapped_column(ForeignKey("devices.id", ondelete="CASCADE"), nullable=False, index=True)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default=FirmwareDeviceStatus.PENDING.value)
    error_message: Mapped[Optional[str]] = mapped_column(Text)
    retry_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    firmware_update: Mapped["FirmwareUpdate"] = relationship(back_populates="device_updates")
    device: Mapped["Device"] = relationship(back_populates="firmware_updates")

    __table_args__ = (
        Index('ix_firmware_device_updates_campaign_device', 'firmware_update_id', 'device_id', unique=True),
    )

    def __repr__(self):
        return f'<FirmwareDeviceUpdate campaign={self.firmware_update_id} device={self.device_id} ({self.status})>'

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_DEVICE_STATUSES

    def to_dict(self, include_device: bool = False, include_campaign: bool = False):
        data = {
            "id": self.id,
            "firmware_update_id": self.firmware_update_id,
            "device_id": self.device_id,
            "status": self.status,
            "error_message": self.error_message,
            "retry_count": self.retry_count,
            "started_at": isoformat(self.started_at),
            "completed_at": isoformat(self.completed_at),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
        if include_device and self.device:
            data["device"] = self.device.to_summary()
        if include_campaign and self.firmware_update:
            campaign = self.firmware_update
            data["campaign"] = {
                "id": campaign.id,
                "name": campaign.name,
                "version": campaign.version,
                "status": campaign.status,
            }
        return data
