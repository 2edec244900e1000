"""
Group Models
Arbitrary named sets of devices and people within one site.
"""

from typing import Optional, TYPE_CHECKING
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, DateTime, Text, ForeignKey, Index
from .base import Base, generate_uuid, isoformat

if TYPE_CHECKING:
    from .site import Site
    from .device import Device
    from .person import Person

DEFAULT_GROUP_COLOR = "#4c7dff"


class GroupDevice(Base):
    __tablename__ = "group_devices"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_uuid)
    group_id: Mapped[str] = mapped_column(ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    device_id: Mapped[str] = mapped_column(ForeignKey("devices.id", ondelete="CASCADE"), nullable=False, index=True)

    group: Mapped["Group"] = relationship(back_populates="device_links")
    device: Mapped["Device"] = relationship(back_populates="group_links")

    __table_args__ = (
        Index('ix_group_devices_composite', 'group_id', 'device_id', unique=True),
    )


class GroupPerson(Base):
    __tablename__ = "group_people"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_uuid)
    group_id: Mapped[str] = mapped_column(ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    person_id: Mapped[str] = mapped_column(ForeignKey("people.id", ondelete="CASCADE"), nullable=False, index=True)

    group: Mapped["Group"] = relationship(back_populates="person_links")
    person: Mapped["Person"] = relationship(back_populates="group_links")

    __table_args__ = (
        Index('ix_group_people_composite', 'group_id', 'person_id', unique=True),
    )


class Group(Base):
    __tablename__ = "groups"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_uuid)
    site_id: Mapped[str] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    color: Mapped[str] = mapped_column(String(16), nullable=False, default=DEFAULT_GROUP_COLOR)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    site: Mapped["Site"] = relationship(back_populates="groups")
    device_links: Mapped[list["GroupDevice"]] = relationship(
        back_populates="group", cascade="all, delete-orphan", lazy="selectin"
    )
    person_links: Mapped[list["GroupPerson"]] = relationship(
        back_populates="group", cascade="all, delete-orphan", lazy="selectin"
    )

    def __repr__(self):
        return f'<Group {self.id}: {self.name}>'

    @property
    def device_ids(self) -> list:
        return [link.device_id for link in self.device_links]

    @property
    def person_ids(self) -> list:
        return [link.person_id for link in self.person_links]

    def to_dict(self):
        return {
            "id": self.id,
            "site_id": self.site_id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "device_ids": self.device_ids,
            "person_ids": self.person_ids,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
