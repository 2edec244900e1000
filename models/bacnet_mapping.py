"""
BACnet Mapping Model
Associates a zone with a building-management-system object ID.
"""

from enum import Enum
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, DateTime, ForeignKey
from .base import Base, generate_uuid, isoformat

if TYPE_CHECKING:
    from .zone import Zone


class BACnetStatus(str, Enum):
    CONNECTED = "CONNECTED"
    ERROR = "ERROR"
    NOT_ASSIGNED = "NOT_ASSIGNED"


class BACnetMapping(Base):
    __tablename__ = "bacnet_mappings"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_uuid)
    zone_id: Mapped[str] = mapped_column(
        ForeignKey("zones.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    bacnet_object_id: Mapped[Optional[str]] = mapped_column(String(128))
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=BACnetStatus.NOT_ASSIGNED.value)
    last_connected: Mapped[Optional[datetime]] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    zone: Mapped["Zone"] = relationship(back_populates="bacnet_mapping")

    def __repr__(self):
        return f'<BACnetMapping zone_id={self.zone_id} object={self.bacnet_object_id} ({self.status})>'

    @property
    def is_connected(self) -> bool:
        return self.status == BACnetStatus.CONNECTED.value

    def to_dict(self):
        return {
            "id": self.id,
            "zone_id": self.zone_id,
            "zone_name": self.zone.name if self.zone else None,
            "bacnet_object_id": self.bacnet_object_id,
            "status": self.status,
            "last_connected": isoformat(self.last_connected),
        }
