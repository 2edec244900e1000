"""
Device Model
Lighting fixtures and sensors placed on a site's floor plan.

Components (LED module, driver, lens, bracket) are stored as child devices
that point at their fixture through ``parent_id``.
"""

from enum import Enum
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Float, DateTime, ForeignKey, Index
from .base import Base, JSONBCompatible, generate_uuid, isoformat

if TYPE_CHECKING:
    from .site import Site
    from .zone import ZoneDevice
    from .group import GroupDevice
    from .fault import Fault
    from .firmware import FirmwareDeviceUpdate


class DeviceType(str, Enum):
    FIXTURE_16FT_POWER_ENTRY = "FIXTURE_16FT_POWER_ENTRY"
    FIXTURE_12FT_POWER_ENTRY = "FIXTURE_12FT_POWER_ENTRY"
    FIXTURE_8FT_POWER_ENTRY = "FIXTURE_8FT_POWER_ENTRY"
    FIXTURE_16FT_FOLLOWER = "FIXTURE_16FT_FOLLOWER"
    FIXTURE_12FT_FOLLOWER = "FIXTURE_12FT_FOLLOWER"
    FIXTURE_8FT_FOLLOWER = "FIXTURE_8FT_FOLLOWER"
    MOTION_SENSOR = "MOTION_SENSOR"
    LIGHT_SENSOR = "LIGHT_SENSOR"


class DeviceStatus(str, Enum):
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"
    MISSING = "MISSING"
    DUPLICATE = "DUPLICATE"


class FirmwareStatus(str, Enum):
    UP_TO_DATE = "UP_TO_DATE"
    UPDATE_AVAILABLE = "UPDATE_AVAILABLE"
    UPDATE_IN_PROGRESS = "UPDATE_IN_PROGRESS"
    UPDATE_FAILED = "UPDATE_FAILED"
    UNKNOWN = "UNKNOWN"


class Device(Base):
    __tablename__ = "devices"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_uuid)
    site_id: Mapped[str] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), nullable=False, index=True)

    # Human-facing label printed on the fixture, not unique across sites
    device_id: Mapped[str] = mapped_column(String(128), nullable=False)
    serial_number: Mapped[str] = mapped_column(String(128), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default=DeviceType.FIXTURE_16FT_POWER_ENTRY.value)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=DeviceStatus.OFFLINE.value)

    # Normalized map coordinates 0-1, orientation in degrees
    x: Mapped[Optional[float]] = mapped_column(Float)
    y: Mapped[Optional[float]] = mapped_column(Float)
    orientation: Mapped[Optional[float]] = mapped_column(Float)

    signal: Mapped[Optional[int]] = mapped_column(Integer)
    battery: Mapped[Optional[int]] = mapped_column(Integer)
    build_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    cct: Mapped[Optional[int]] = mapped_column(Integer)
    warranty_status: Mapped[Optional[str]] = mapped_column(String(32))
    warranty_expiry: Mapped[Optional[datetime]] = mapped_column(DateTime, index=True)
    parts_list: Mapped[Optional[list]] = mapped_column(JSONBCompatible)

    # Component fields, set only on child rows
    parent_id: Mapped[Optional[str]] = mapped_column(ForeignKey("devices.id", ondelete="CASCADE"), index=True)
    component_type: Mapped[Optional[str]] = mapped_column(String(64))
    component_serial_number: Mapped[Optional[str]] = mapped_column(String(128))

    firmware_version: Mapped[Optional[str]] = mapped_column(String(64))
    firmware_target: Mapped[Optional[str]] = mapped_column(String(64))
    firmware_status: Mapped[str] = mapped_column(String(32), nullable=False, default=FirmwareStatus.UNKNOWN.value)
    last_firmware_update: Mapped[Optional[datetime]] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    site: Mapped["Site"] = relationship(back_populates="devices")
    parent: Mapped[Optional["Device"]] = relationship(back_populates="components", remote_side="Device.id")
    components: Mapped[list["Device"]] = relationship(
        back_populates="parent",
        cascade="all, delete-orphan",
        order_by="Device.created_at",
    )
    zone_links: Mapped[list["ZoneDevice"]] = relationship(back_populates="device", cascade="all, delete-orphan")
    group_links: Mapped[list["GroupDevice"]] = relationship(back_populates="device", cascade="all, delete-orphan")
    faults: Mapped[list["Fault"]] = relationship(back_populates="device", cascade="all, delete-orphan")
    firmware_updates: Mapped[list["FirmwareDeviceUpdate"]] = relationship(
        back_populates="device", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index('ix_devices_site_parent', 'site_id', 'parent_id'),
    )

    def __repr__(self):
        return f'<Device {self.device_id} ({self.type})>'

    @property
    def is_component(self) -> bool:
        return self.parent_id is not None

    @property
    def zone_ids(self) -> list:
        return [link.zone_id for link in self.zone_links]

    def to_summary(self):
        """Compact stored-form view used inside fault and firmware payloads."""
        return {
            "id": self.id,
            "device_id": self.device_id,
            "serial_number": self.serial_number,
            "type": self.type,
            "status": self.status,
            "site_id": self.site_id,
            "x": self.x,
            "y": self.y,
            "firmware_version": self.firmware_version,
            "firmware_status": self.firmware_status,
        }

    def to_dict(self):
        return {
            **self.to_summary(),
            "orientation": self.orientation,
            "signal": self.signal,
            "battery": self.battery,
            "build_date": isoformat(self.build_date),
            "cct": self.cct,
            "warranty_status": self.warranty_status,
            "warranty_expiry": isoformat(self.warranty_expiry),
            "parts_list": self.parts_list,
            "parent_id": self.parent_id,
            "component_type": self.component_type,
            "component_serial_number": self.component_serial_number,
            "firmware_target": self.firmware_target,
            "last_firmware_update": isoformat(self.last_firmware_update),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
