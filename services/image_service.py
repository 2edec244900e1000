"""
Image Service
Site floor-plan images and library object images stored in the database as
base64 data URLs. Every call goes through the transient-error retry.
"""

import logging
from typing import Optional

from sqlalchemy import select

from models import db, Site, LibraryImage
from services.db_retry import with_db_retry
from services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = 'image/jpeg'


@with_db_retry
def save_site_image(site_id: str, image_data: str) -> dict:
    if not image_data:
        raise ValidationError("image_data is required")
    site = db.session.get(Site, site_id)
    if not site:
        raise NotFoundError(f"Site with ID {site_id} not found")
    site.image_url = image_data
    db.session.commit()
    logger.info(f"Site image saved for {site_id}, size: {len(image_data)} chars")
    return {'success': True, 'site_id': site_id}


@with_db_retry
def get_site_image(site_id: str) -> Optional[str]:
    image = db.session.scalars(select(Site.image_url).where(Site.id == site_id)).first()
    if not image:
        logger.debug(f"No image stored for site {site_id}")
    return image or None


def _get_library_row(library_id: str) -> Optional[LibraryImage]:
    return db.session.scalars(select(LibraryImage).where(LibraryImage.library_id == library_id)).first()


@with_db_retry
def save_library_image(library_id: str, image_data: str, mime_type: str = DEFAULT_MIME_TYPE) -> dict:
    if not image_data:
        raise ValidationError("image_data is required")
    row = _get_library_row(library_id)
    if row is None:
        row = LibraryImage(library_id=library_id)
        db.session.add(row)
    row.image_data = image_data
    row.mime_type = mime_type or DEFAULT_MIME_TYPE
    db.session.commit()
    logger.info(f"Library image saved for {library_id}, size: {len(image_data)} chars")
    return {'success': True, 'library_id': library_id}


@with_db_retry
def get_library_image(library_id: str) -> Optional[str]:
    row = _get_library_row(library_id)
    return row.image_data if row else None


@with_db_retry
def remove_library_image(library_id: str) -> dict:
    row = _get_library_row(library_id)
    if row is not None:
        db.session.delete(row)
        db.session.commit()
        logger.info(f"Removed library image {library_id}")
    return {'success': True}
