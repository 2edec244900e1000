"""
Rule Model
Trigger -> condition -> action lighting automation, optionally an override or a schedule.

Condition and action are free-form JSON documents, shaped by services.rule_engine.
"""

from typing import Optional, TYPE_CHECKING
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Boolean, DateTime, Text, ForeignKey
from .base import Base, JSONBCompatible, generate_uuid, isoformat

if TYPE_CHECKING:
    from .zone import Zone

RULE_TYPES = ("rule", "override", "schedule")
TARGET_TYPES = ("zone", "device")
TRIGGER_TYPES = ("motion", "no_motion", "daylight", "bms", "schedule", "fault")


class Rule(Base):
    __tablename__ = "rules"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    rule_type: Mapped[str] = mapped_column(String(16), nullable=False, default="rule")
    target_type: Mapped[str] = mapped_column(String(16), nullable=False, default="zone")
    target_id: Mapped[Optional[str]] = mapped_column(String(64))

    trigger: Mapped[str] = mapped_column(String(16), nullable=False)
    condition: Mapped[Optional[dict]] = mapped_column(JSONBCompatible)
    action: Mapped[Optional[dict]] = mapped_column(JSONBCompatible)

    override_bms: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    duration: Mapped[Optional[int]] = mapped_column(Integer)  # minutes

    site_id: Mapped[Optional[str]] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), index=True)
    zone_id: Mapped[Optional[str]] = mapped_column(ForeignKey("zones.id", ondelete="SET NULL"), index=True)
    target_zones: Mapped[list] = mapped_column(JSONBCompatible, default=list, nullable=False)

    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_triggered: Mapped[Optional[datetime]] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    zone: Mapped[Optional["Zone"]] = relationship(back_populates="rules")

    def __repr__(self):
        return f'<Rule {self.id}: {self.name} ({self.trigger})>'

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "rule_type": self.rule_type,
            "target_type": self.target_type,
            "target_id": self.target_id,
            "trigger": self.trigger,
            "condition": self.condition or {},
            "action": self.action or {},
            "override_bms": self.override_bms,
            "duration": self.duration,
            "site_id": self.site_id,
            "zone_id": self.zone_id,
            "zone_name": self.zone.name if self.zone else None,
            "target_zones": self.target_zones or [],
            "enabled": self.enabled,
            "last_triggered": isoformat(self.last_triggered),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
