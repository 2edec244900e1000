"""
Fusion data model.

Every model subclasses the shared declarative ``Base`` so ``db.create_all()``
and Alembic see one metadata object.
"""

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine

from .base import Base

db = SQLAlchemy(model_class=Base)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


from .site import Site  # noqa: E402
from .device import Device, DeviceType, DeviceStatus, FirmwareStatus  # noqa: E402
from .zone import Zone, ZoneDevice  # noqa: E402
from .bacnet_mapping import BACnetMapping, BACnetStatus  # noqa: E402
from .rule import Rule  # noqa: E402
from .firmware import (  # noqa: E402
    FirmwareUpdate,
    FirmwareDeviceUpdate,
    FirmwareUpdateStatus,
    FirmwareDeviceStatus,
)
from .fault import Fault, FAULT_TYPES  # noqa: E402
from .person import Person  # noqa: E402
from .group import Group, GroupDevice, GroupPerson  # noqa: E402
from .location import Location  # noqa: E402
from .library_image import LibraryImage  # noqa: E402

__all__ = [
    "db",
    "Base",
    "Site",
    "Device",
    "DeviceType",
    "DeviceStatus",
    "FirmwareStatus",
    "Zone",
    "ZoneDevice",
    "BACnetMapping",
    "BACnetStatus",
    "Rule",
    "FirmwareUpdate",
    "FirmwareDeviceUpdate",
    "FirmwareUpdateStatus",
    "FirmwareDeviceStatus",
    "Fault",
    "FAULT_TYPES",
    "Person",
    "Group",
    "GroupDevice",
    "GroupPerson",
    "Location",
    "LibraryImage",
]
