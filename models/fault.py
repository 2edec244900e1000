"""
Fault Model
Recorded device problems, manually entered or derived from device status.
"""

from typing import Optional, TYPE_CHECKING
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Boolean, DateTime, Text, ForeignKey
from .base import Base, generate_uuid, isoformat

if TYPE_CHECKING:
    from .device import Device

FAULT_TYPES = (
    "environmental-ingress",
    "electrical-driver",
    "thermal-overheat",
    "installation-wiring",
    "control-integration",
    "manufacturing-defect",
    "mechanical-structural",
    "optical-output",
)


class Fault(Base):
    __tablename__ = "faults"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_uuid)
    device_id: Mapped[str] = mapped_column(ForeignKey("devices.id", ondelete="CASCADE"), nullable=False, index=True)
    fault_type: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    resolved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    detected_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    device: Mapped["Device"] = relationship(back_populates="faults")

    def __repr__(self):
        return f'<Fault {self.fault_type} device={self.device_id} resolved={self.resolved}>'

    @property
    def title(self) -> str:
        """'thermal-overheat' -> 'Thermal Overheat'"""
        return " ".join(part.capitalize() for part in self.fault_type.split("-"))

    def to_dict(self, include_device: bool = True):
        data = {
            "id": self.id,
            "device_id": self.device_id,
            "fault_type": self.fault_type,
            "description": self.description,
            "resolved": self.resolved,
            "resolved_at": isoformat(self.resolved_at),
            "detected_at": isoformat(self.detected_at),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
        if include_device and self.device:
            device = self.device.to_dict()
            device["components"] = [component.to_summary() for component in self.device.components]
            data["device"] = device
        return data
