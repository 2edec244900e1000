"""
Site Service
CRUD for sites (retail stores) plus the idempotent ensure-exists used by clients
that generate site IDs locally.
"""

import logging
from typing import Optional, List

from sqlalchemy import select

from models import db, Site
from services.db_retry import with_db_retry
from services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('name', 'store_number', 'address')


@with_db_retry
def list_sites() -> List[Site]:
    return list(db.session.scalars(select(Site).order_by(Site.created_at.asc())))


@with_db_retry
def get_site(site_id: str) -> Optional[Site]:
    return db.session.get(Site, site_id)


@with_db_retry
def get_site_by_store_number(store_number: str) -> Optional[Site]:
    return db.session.scalars(
        select(Site).where(Site.store_number == store_number).order_by(Site.created_at.asc())
    ).first()


def create_site(name: str, store_number: str = None, address: str = None, site_id: str = None) -> Site:
    if not name or not str(name).strip():
        raise ValidationError("Site name is required")

    site = Site(name=name, store_number=store_number, address=address)
    if site_id:
        site.id = site_id
    db.session.add(site)
    db.session.commit()
    logger.info(f"Created site {site.id} ({site.name})")
    return site


def update_site(site_id: str, **updates) -> Site:
    site = db.session.get(Site, site_id)
    if not site:
        raise NotFoundError(f"Site {site_id} not found")

    for field in UPDATABLE_FIELDS:
        if field in updates and updates[field] is not None:
            setattr(site, field, updates[field])

    db.session.commit()
    return site


def ensure_site_exists(site_id: str, name: str, store_number: str = None, address: str = None) -> Site:
    """
    Return the site with this id, else the first site with this store number,
    else create one under the given id.
    """
    existing = db.session.get(Site, site_id)
    if existing:
        return existing

    if store_number:
        by_store_number = get_site_by_store_number(store_number)
        if by_store_number:
            logger.info(f"ensure_site_exists: matched store number {store_number} to site {by_store_number.id}")
            return by_store_number

    return create_site(name=name, store_number=store_number, address=address, site_id=site_id)


def delete_site(site_id: str) -> None:
    site = db.session.get(Site, site_id)
    if not site:
        raise NotFoundError(f"Site {site_id} not found")
    db.session.delete(site)
    db.session.commit()
    logger.info(f"Deleted site {site_id} and its zones, devices, people, groups and locations")
