"""
Location Model
Floor-plan layers for a site: ``base`` plans and ``zoom`` views nested under a parent.
"""

from typing import Optional, TYPE_CHECKING
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, DateTime, Text, ForeignKey
from .base import Base, JSONBCompatible, generate_uuid, isoformat

if TYPE_CHECKING:
    from .site import Site

LOCATION_TYPES = ("base", "zoom")


class Location(Base):
    __tablename__ = "locations"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_uuid)
    site_id: Mapped[str] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_id: Mapped[Optional[str]] = mapped_column(ForeignKey("locations.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    vector_data_url: Mapped[Optional[str]] = mapped_column(Text)
    zoom_bounds: Mapped[Optional[dict]] = mapped_column(JSONBCompatible)  # {minX, minY, maxX, maxY}

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    site: Mapped["Site"] = relationship(back_populates="locations")
    parent: Mapped[Optional["Location"]] = relationship(back_populates="children", remote_side="Location.id")
    children: Mapped[list["Location"]] = relationship(back_populates="parent", cascade="all, delete-orphan")

    def __repr__(self):
        return f'<Location {self.name} ({self.type})>'

    def to_dict(self):
        return {
            "id": self.id,
            "site_id": self.site_id,
            "parent_id": self.parent_id,
            "name": self.name,
            "type": self.type,
            "image_url": self.image_url,
            "vector_data_url": self.vector_data_url,
            "zoom_bounds": self.zoom_bounds,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
