from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime, Text
from .base import Base, generate_uuid


class LibraryImage(Base):
    """Image blob for a fixture library object, keyed by its library identifier."""
    __tablename__ = "library_images"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_uuid)
    library_id: Mapped[str] = mapped_column(String(128), unique=True, nullable=False, index=True)
    image_data: Mapped[str] = mapped_column(Text, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(64), nullable=False, default="image/jpeg")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<LibraryImage {self.library_id} ({self.mime_type})>'
