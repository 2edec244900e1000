"""
Person Service

Site staff plus automatic role groups: anyone with a role is kept in a site
group named after that role, created on first use.
"""

import re
import logging
from typing import List, Optional

from sqlalchemy import select

from models import db, Site, Person, Group, GroupPerson
from services.db_retry import with_db_retry
from services.errors import NotFoundError, ValidationError, check_range

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$')

SITE_ROLE_TYPES = (
    'Store Manager',
    'Assistant Manager',
    'Department Lead',
    'Associate',
    'Facilities Technician',
    'Regional Manager',
)
STANDARD_ROLE_COLOR = '#4c7dff'
CUSTOM_ROLE_COLOR = '#8b5cf6'

UPDATABLE_FIELDS = ('first_name', 'last_name', 'email', 'role', 'image_url', 'x', 'y')


def _validate(values: dict) -> None:
    for field in ('first_name', 'last_name'):
        if field in values and (values[field] is None or not str(values[field]).strip()):
            raise ValidationError(f"{field} is required")
    email = values.get('email')
    if email and not EMAIL_PATTERN.match(email):
        raise ValidationError(f"Invalid email address: {email}")
    check_range('x', values.get('x'), 0, 1)
    check_range('y', values.get('y'), 0, 1)


def _find_role_group(site_id: str, role: str) -> Optional[Group]:
    return db.session.scalars(
        select(Group).where(Group.site_id == site_id, Group.name == role).order_by(Group.created_at.asc())
    ).first()


def ensure_role_group(site_id: str, role: str) -> Optional[Group]:
    if not role or not role.strip():
        return None
    group = _find_role_group(site_id, role)
    if group:
        return group

    group = Group(
        site_id=site_id,
        name=role,
        description=f"Auto-generated group for {role} role",
        color=STANDARD_ROLE_COLOR if role in SITE_ROLE_TYPES else CUSTOM_ROLE_COLOR,
    )
    db.session.add(group)
    db.session.flush()
    logger.info(f'Created role group "{role}" for site {site_id}')
    return group


def sync_person_to_role_group(person: Person, new_role: Optional[str], old_role: Optional[str] = None) -> None:
    """Move person out of the old role group and into the new one. Caller commits."""
    if old_role and old_role != new_role:
        old_group = _find_role_group(person.site_id, old_role)
        if old_group:
            for link in list(old_group.person_links):
                if link.person_id == person.id:
                    old_group.person_links.remove(link)

    group = ensure_role_group(person.site_id, new_role) if new_role else None
    if group and person.id not in group.person_ids:
        group.person_links.append(GroupPerson(person_id=person.id))


def get_person(person_id: str) -> Optional[Person]:
    return db.session.get(Person, person_id)


def list_people(site_id: str) -> List[Person]:
    return list(db.session.scalars(
        select(Person).where(Person.site_id == site_id).order_by(Person.created_at.desc())
    ))


def create_person(site_id: str, first_name: str, last_name: str, **fields) -> Person:
    _validate({'first_name': first_name, 'last_name': last_name, **fields})
    if not db.session.get(Site, site_id):
        raise NotFoundError(f"Site {site_id} not found")

    person = Person(
        site_id=site_id,
        first_name=first_name,
        last_name=last_name,
        email=fields.get('email') or None,
        role=fields.get('role') or None,
        image_url=fields.get('image_url'),
        x=fields.get('x'),
        y=fields.get('y'),
    )
    db.session.add(person)
    db.session.flush()
    if person.role:
        sync_person_to_role_group(person, person.role)

    db.session.commit()
    logger.info(f"Created person {person.id} ({person.full_name})")
    return person


def update_person(person_id: str, **updates) -> Person:
    person = db.session.get(Person, person_id)
    if not person:
        raise NotFoundError(f"Person with ID {person_id} not found")

    supplied = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS and v is not None}
    _validate(supplied)

    old_role = person.role
    for field, value in supplied.items():
        setattr(person, field, value)
    # blank email or role clears it
    for field in ('email', 'role'):
        if field in supplied and supplied[field] == '':
            setattr(person, field, None)

    if 'role' in supplied:
        sync_person_to_role_group(person, supplied['role'] or None, old_role)

    db.session.commit()
    return person


def delete_person(person_id: str) -> dict:
    person = db.session.get(Person, person_id)
    if not person:
        raise NotFoundError(f"Person with ID {person_id} not found")
    data = person.to_dict()
    db.session.delete(person)
    db.session.commit()
    logger.info(f"Deleted person {person_id}")
    return data


@with_db_retry
def save_image(person_id: str, image_data: str) -> Person:
    """Store a base64 data URL (or plain URL) as the person's image."""
    if not image_data:
        raise ValidationError("image_data is required")
    person = db.session.get(Person, person_id)
    if not person:
        raise NotFoundError(f"Person with ID {person_id} not found")
    person.image_url = image_data
    db.session.commit()
    logger.info(f"Person image saved for {person_id}")
    return person


def sync_all_to_role_groups(site_id: str) -> dict:
    people = list(db.session.scalars(select(Person).where(Person.site_id == site_id)))
    results = []
    for person in people:
        if not person.role:
            continue
        sync_person_to_role_group(person, person.role)
        results.append({'person_id': person.id, 'success': True})

    db.session.commit()
    return {
        'synced': sum(1 for r in results if r['success']),
        'total': len(people),
        'results': results,
    }
