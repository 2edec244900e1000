"""
Group Service
Named sets of devices and people. Members must belong to the group's site.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select

from models import db, Site, Device, Person, Group, GroupDevice, GroupPerson
from models.group import DEFAULT_GROUP_COLOR
from services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _missing_ids(model, ids: Iterable[str], site_id: str) -> List[str]:
    ids = list(ids or [])
    if not ids:
        return []
    found = set(db.session.scalars(select(model.id).where(model.id.in_(ids), model.site_id == site_id)))
    return [i for i in ids if i not in found]


def _check_members(site_id: str, device_ids=None, person_ids=None) -> None:
    missing_devices = _missing_ids(Device, device_ids, site_id)
    if missing_devices:
        raise ValidationError(
            f"Device(s) not found or wrong site: {', '.join(missing_devices)}",
            {'missing_device_ids': missing_devices},
        )
    missing_people = _missing_ids(Person, person_ids, site_id)
    if missing_people:
        raise ValidationError(
            f"Person(s) not found or wrong site: {', '.join(missing_people)}",
            {'missing_person_ids': missing_people},
        )


def _require_group(group_id: str) -> Group:
    group = db.session.get(Group, group_id)
    if not group:
        raise NotFoundError(f"Group {group_id} not found")
    return group


def get_group(group_id: str) -> Optional[Group]:
    return db.session.get(Group, group_id)


def list_groups(site_id: str) -> List[Group]:
    return list(db.session.scalars(
        select(Group).where(Group.site_id == site_id).order_by(Group.created_at.desc())
    ))


def create_group(name: str, site_id: str, description: str = None, color: str = None,
                 device_ids: List[str] = None, person_ids: List[str] = None) -> Group:
    if not name or not str(name).strip():
        raise ValidationError("Group name is required")
    if not site_id or not db.session.get(Site, site_id):
        raise NotFoundError(f"Site {site_id} not found")
    _check_members(site_id, device_ids, person_ids)

    group = Group(
        name=name,
        site_id=site_id,
        description=description,
        color=color or DEFAULT_GROUP_COLOR,
    )
    for device_id in dict.fromkeys(device_ids or []):
        group.device_links.append(GroupDevice(device_id=device_id))
    for person_id in dict.fromkeys(person_ids or []):
        group.person_links.append(GroupPerson(person_id=person_id))

    db.session.add(group)
    db.session.commit()
    logger.info(f"Created group {group.id} ({name}) with {len(group.device_links)} devices, "
                f"{len(group.person_links)} people")
    return group


def _diff_links(links: list, key: str, wanted: List[str], factory) -> None:
    wanted = list(dict.fromkeys(wanted))
    for link in list(links):
        if getattr(link, key) not in wanted:
            links.remove(link)
    present = {getattr(link, key) for link in links}
    for member_id in wanted:
        if member_id not in present:
            links.append(factory(member_id))


def update_group(group_id: str, name: str = None, description: str = None, color: str = None,
                 device_ids: List[str] = None, person_ids: List[str] = None) -> Group:
    group = _require_group(group_id)
    if name is not None and not str(name).strip():
        raise ValidationError("Group name is required")
    _check_members(group.site_id, device_ids, person_ids)

    if device_ids is not None:
        _diff_links(group.device_links, 'device_id', device_ids, lambda i: GroupDevice(device_id=i))
    if person_ids is not None:
        _diff_links(group.person_links, 'person_id', person_ids, lambda i: GroupPerson(person_id=i))

    if name is not None:
        group.name = name
    if description is not None:
        group.description = description
    if color is not None:
        group.color = color

    db.session.commit()
    return group


def add_device(group_id: str, device_id: str) -> Group:
    group = _require_group(group_id)
    if _missing_ids(Device, [device_id], group.site_id):
        raise NotFoundError("Device not found or does not belong to this site")
    if device_id not in group.device_ids:
        group.device_links.append(GroupDevice(device_id=device_id))
        db.session.commit()
    return group


def remove_device(group_id: str, device_id: str) -> Group:
    group = _require_group(group_id)
    for link in list(group.device_links):
        if link.device_id == device_id:
            group.device_links.remove(link)
    db.session.commit()
    return group


def add_person(group_id: str, person_id: str) -> Group:
    group = _require_group(group_id)
    if _missing_ids(Person, [person_id], group.site_id):
        raise NotFoundError("Person not found or does not belong to this site")
    if person_id not in group.person_ids:
        group.person_links.append(GroupPerson(person_id=person_id))
        db.session.commit()
    return group


def remove_person(group_id: str, person_id: str) -> Group:
    group = _require_group(group_id)
    for link in list(group.person_links):
        if link.person_id == person_id:
            group.person_links.remove(link)
    db.session.commit()
    return group


def delete_group(group_id: str) -> dict:
    """Delete and return the group as it looked, minus its (cascaded) memberships."""
    group = _require_group(group_id)
    data = group.to_dict()
    data['device_ids'] = []
    data['person_ids'] = []
    db.session.delete(group)
    db.session.commit()
    logger.info(f"Deleted group {group_id}")
    return data
