"""
Location Service
Floor-plan layers: base plans and the zoom views cut from them.
"""

import logging
from typing import List, Optional

from sqlalchemy import select

from models import db, Site, Location
from models.location import LOCATION_TYPES
from services.db_retry import with_db_retry
from services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('name', 'image_url', 'vector_data_url', 'zoom_bounds')


@with_db_retry
def list_locations(site_id: str) -> List[Location]:
    """Flat list, newest first; clients rebuild the hierarchy from parent_id."""
    return list(db.session.scalars(
        select(Location).where(Location.site_id == site_id).order_by(Location.created_at.desc())
    ))


def get_location(location_id: str) -> Optional[Location]:
    return db.session.get(Location, location_id)


def create_location(site_id: str, name: str, type: str, parent_id: str = None, image_url: str = None,
                    vector_data_url: str = None, zoom_bounds: dict = None) -> Location:
    if not db.session.get(Site, site_id):
        raise NotFoundError("Site not found")
    if type not in LOCATION_TYPES:
        raise ValidationError(f"Location type must be one of {', '.join(LOCATION_TYPES)}")
    if not name:
        raise ValidationError("Location name is required")
    if parent_id:
        parent = db.session.get(Location, parent_id)
        if not parent or parent.site_id != site_id:
            raise NotFoundError(f"Parent location {parent_id} not found")

    location = Location(
        site_id=site_id,
        name=name,
        type=type,
        parent_id=parent_id,
        image_url=image_url,
        vector_data_url=vector_data_url,
        zoom_bounds=zoom_bounds,
    )
    db.session.add(location)
    db.session.commit()
    logger.info(f"Created {type} location {location.id} ({name}) for site {site_id}")
    return location


def update_location(location_id: str, **updates) -> Location:
    location = db.session.get(Location, location_id)
    if not location:
        raise NotFoundError(f"Location {location_id} not found")
    for field in UPDATABLE_FIELDS:
        if field in updates and updates[field] is not None:
            setattr(location, field, updates[field])
    db.session.commit()
    return location


def delete_location(location_id: str) -> None:
    location = db.session.get(Location, location_id)
    if not location:
        raise NotFoundError(f"Location {location_id} not found")
    db.session.delete(location)
    db.session.commit()
    logger.info(f"Deleted location {location_id} and its zoom views")
