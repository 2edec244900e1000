"""
Zone Model
Named polygonal regions on a site's floor plan that group devices for rule targeting.
"""

from typing import Optional, TYPE_CHECKING
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Float, Boolean, DateTime, Text, ForeignKey, Index
from .base import Base, JSONBCompatible, generate_uuid, isoformat

if TYPE_CHECKING:
    from .site import Site
    from .device import Device
    from .bacnet_mapping import BACnetMapping
    from .rule import Rule

DEFAULT_ZONE_COLOR = "#4c7dff"


class ZoneDevice(Base):
    """Junction table between zones and the devices they contain."""
    __tablename__ = "zone_devices"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_uuid)
    zone_id: Mapped[str] = mapped_column(ForeignKey("zones.id", ondelete="CASCADE"), nullable=False, index=True)
    device_id: Mapped[str] = mapped_column(ForeignKey("devices.id", ondelete="CASCADE"), nullable=False, index=True)

    zone: Mapped["Zone"] = relationship(back_populates="device_links")
    device: Mapped["Device"] = relationship(back_populates="zone_links")

    __table_args__ = (
        Index('ix_zone_devices_composite', 'zone_id', 'device_id', unique=True),
    )

    def __repr__(self):
        return f'<ZoneDevice zone_id={self.zone_id} device_id={self.device_id}>'


class Zone(Base):
    __tablename__ = "zones"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_uuid)
    site_id: Mapped[str] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    color: Mapped[str] = mapped_column(String(16), nullable=False, default=DEFAULT_ZONE_COLOR)
    description: Mapped[Optional[str]] = mapped_column(Text)

    # [{"x": 0.1, "y": 0.2}, ...] in normalized map coordinates
    polygon: Mapped[Optional[list]] = mapped_column(JSONBCompatible)

    daylight_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    min_daylight: Mapped[Optional[float]] = mapped_column(Float)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    site: Mapped["Site"] = relationship(back_populates="zones")
    device_links: Mapped[list["ZoneDevice"]] = relationship(
        back_populates="zone", cascade="all, delete-orphan", lazy="selectin"
    )
    bacnet_mapping: Mapped[Optional["BACnetMapping"]] = relationship(
        back_populates="zone", cascade="all, delete-orphan", uselist=False
    )
    rules: Mapped[list["Rule"]] = relationship(back_populates="zone")

    def __repr__(self):
        return f'<Zone {self.id}: {self.name}>'

    @property
    def device_ids(self) -> list:
        return [link.device_id for link in self.device_links]

    def to_dict(self):
        return {
            "id": self.id,
            "site_id": self.site_id,
            "name": self.name,
            "color": self.color,
            "description": self.description,
            "polygon": self.polygon,
            "device_ids": self.device_ids,
            "daylight_enabled": self.daylight_enabled,
            "min_daylight": self.min_daylight,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
