"""
Site Model
A physical retail location (formerly "store") holding zones, devices and people.
"""

from typing import Optional, TYPE_CHECKING
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, DateTime, Text
from .base import Base, generate_uuid, isoformat

if TYPE_CHECKING:
    from .device import Device
    from .zone import Zone
    from .person import Person
    from .group import Group
    from .location import Location
    from .firmware import FirmwareUpdate


class Site(Base):
    __tablename__ = "sites"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    store_number: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    address: Mapped[Optional[str]] = mapped_column(String(512))

    # Floor-plan image, base64 data URL or remote URL
    image_url: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    zones: Mapped[list["Zone"]] = relationship(back_populates="site", cascade="all, delete-orphan")
    devices: Mapped[list["Device"]] = relationship(back_populates="site", cascade="all, delete-orphan")
    people: Mapped[list["Person"]] = relationship(back_populates="site", cascade="all, delete-orphan")
    groups: Mapped[list["Group"]] = relationship(back_populates="site", cascade="all, delete-orphan")
    locations: Mapped[list["Location"]] = relationship(back_populates="site", cascade="all, delete-orphan")
    firmware_updates: Mapped[list["FirmwareUpdate"]] = relationship(
        back_populates="site", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f'<Site {self.id}: {self.name}>'

    def to_dict(self, include_image: bool = False):
        data = {
            "id": self.id,
            "name": self.name,
            "store_number": self.store_number,
            "address": self.address,
            "has_image": bool(self.image_url),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
        if include_image:
            data["image_url"] = self.image_url
        return data

    def to_summary(self):
        return {"id": self.id, "name": self.name, "store_number": self.store_number}
