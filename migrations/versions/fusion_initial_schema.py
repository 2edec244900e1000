"""Initial Fusion schema: sites, devices, zones, rules, firmware, people

Revision ID: fusion_initial_v1
Revises: 
Create Date: 2025-06-01 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = 'fusion_initial_v1'
down_revision = None
branch_labels = None
depends_on = None

JSON = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def _id():
    return sa.Column('id', sa.String(length=64), nullable=False)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade():
    op.create_table(
        'sites',
        _id(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('store_number', sa.String(length=64), nullable=True),
        sa.Column('address', sa.String(length=512), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_sites_store_number', 'sites', ['store_number'])

    op.create_table(
        'devices',
        _id(),
        sa.Column('site_id', sa.String(length=64), nullable=False),
        sa.Column('device_id', sa.String(length=128), nullable=False),
        sa.Column('serial_number', sa.String(length=128), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('x', sa.Float(), nullable=True),
        sa.Column('y', sa.Float(), nullable=True),
        sa.Column('orientation', sa.Float(), nullable=True),
        sa.Column('signal', sa.Integer(), nullable=True),
        sa.Column('battery', sa.Integer(), nullable=True),
        sa.Column('build_date', sa.DateTime(), nullable=True),
        sa.Column('cct', sa.Integer(), nullable=True),
        sa.Column('warranty_status', sa.String(length=32), nullable=True),
        sa.Column('warranty_expiry', sa.DateTime(), nullable=True),
        sa.Column('parts_list', JSON, nullable=True),
        sa.Column('parent_id', sa.String(length=64), nullable=True),
        sa.Column('component_type', sa.String(length=64), nullable=True),
        sa.Column('component_serial_number', sa.String(length=128), nullable=True),
        sa.Column('firmware_version', sa.String(length=64), nullable=True),
        sa.Column('firmware_target', sa.String(length=64), nullable=True),
        sa.Column('firmware_status', sa.String(length=32), nullable=False),
        sa.Column('last_firmware_update', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['site_id'], ['sites.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['parent_id'], ['devices.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_devices_site_id', 'devices', ['site_id'])
    op.create_index('ix_devices_parent_id', 'devices', ['parent_id'])
    op.create_index('ix_devices_warranty_expiry', 'devices', ['warranty_expiry'])
    op.create_index('ix_devices_site_parent', 'devices', ['site_id', 'parent_id'])

    op.create_table(
        'zones',
        _id(),
        sa.Column('site_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('color', sa.String(length=16), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('polygon', JSON, nullable=True),
        sa.Column('daylight_enabled', sa.Boolean(), nullable=False),
        sa.Column('min_daylight', sa.Float(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['site_id'], ['sites.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_zones_site_id', 'zones', ['site_id'])

    op.create_table(
        'zone_devices',
        _id(),
        sa.Column('zone_id', sa.String(length=64), nullable=False),
        sa.Column('device_id', sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(['zone_id'], ['zones.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['device_id'], ['devices.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_zone_devices_zone_id', 'zone_devices', ['zone_id'])
    op.create_index('ix_zone_devices_device_id', 'zone_devices', ['device_id'])
    op.create_index('ix_zone_devices_composite', 'zone_devices', ['zone_id', 'device_id'], unique=True)

    op.create_table(
        'bacnet_mappings',
        _id(),
        sa.Column('zone_id', sa.String(length=64), nullable=False),
        sa.Column('bacnet_object_id', sa.String(length=128), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('last_connected', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['zone_id'], ['zones.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_bacnet_mappings_zone_id', 'bacnet_mappings', ['zone_id'], unique=True)

    op.create_table(
        'rules',
        _id(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('rule_type', sa.String(length=16), nullable=False),
        sa.Column('target_type', sa.String(length=16), nullable=False),
        sa.Column('target_id', sa.String(length=64), nullable=True),
        sa.Column('trigger', sa.String(length=16), nullable=False),
        sa.Column('condition', JSON, nullable=True),
        sa.Column('action', JSON, nullable=True),
        sa.Column('override_bms', sa.Boolean(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('site_id', sa.String(length=64), nullable=True),
        sa.Column('zone_id', sa.String(length=64), nullable=True),
        sa.Column('target_zones', JSON, nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False),
        sa.Column('last_triggered', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['site_id'], ['sites.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['zone_id'], ['zones.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_rules_site_id', 'rules', ['site_id'])
    op.create_index('ix_rules_zone_id', 'rules', ['zone_id'])
    op.create_index('ix_rules_created_at', 'rules', ['created_at'])

    op.create_table(
        'firmware_updates',
        _id(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('version', sa.String(length=64), nullable=False),
        sa.Column('file_url', sa.String(length=1024), nullable=True),
        sa.Column('site_id', sa.String(length=64), nullable=True),
        sa.Column('device_types', JSON, nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('total_devices', sa.Integer(), nullable=False),
        sa.Column('completed', sa.Integer(), nullable=False),
        sa.Column('failed', sa.Integer(), nullable=False),
        sa.Column('in_progress', sa.Integer(), nullable=False),
        sa.Column('scheduled_at', sa.DateTime(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['site_id'], ['sites.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_firmware_updates_site_id', 'firmware_updates', ['site_id'])
    op.create_index('ix_firmware_updates_status', 'firmware_updates', ['status'])

    op.create_table(
        'firmware_device_updates',
        _id(),
        sa.Column('firmware_update_id', sa.String(length=64), nullable=False),
        sa.Column('device_id', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('retry_count', sa.Integer(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['firmware_update_id'], ['firmware_updates.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['device_id'], ['devices.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_firmware_device_updates_firmware_update_id', 'firmware_device_updates', ['firmware_update_id'])
    op.create_index('ix_firmware_device_updates_device_id', 'firmware_device_updates', ['device_id'])
    op.create_index(
        'ix_firmware_device_updates_campaign_device',
        'firmware_device_updates',
        ['firmware_update_id', 'device_id'],
        unique=True,
    )

    op.create_table(
        'faults',
        _id(),
        sa.Column('device_id', sa.String(length=64), nullable=False),
        sa.Column('fault_type', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('resolved', sa.Boolean(), nullable=False),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.Column('detected_at', sa.DateTime(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['device_id'], ['devices.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_faults_device_id', 'faults', ['device_id'])
    op.create_index('ix_faults_resolved', 'faults', ['resolved'])
    op.create_index('ix_faults_detected_at', 'faults', ['detected_at'])

    op.create_table(
        'people',
        _id(),
        sa.Column('site_id', sa.String(length=64), nullable=False),
        sa.Column('first_name', sa.String(length=120), nullable=False),
        sa.Column('last_name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=120), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('x', sa.Float(), nullable=True),
        sa.Column('y', sa.Float(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['site_id'], ['sites.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_people_site_id', 'people', ['site_id'])

    op.create_table(
        'groups',
        _id(),
        sa.Column('site_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('color', sa.String(length=16), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['site_id'], ['sites.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_groups_site_id', 'groups', ['site_id'])

    op.create_table(
        'group_devices',
        _id(),
        sa.Column('group_id', sa.String(length=64), nullable=False),
        sa.Column('device_id', sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['device_id'], ['devices.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_group_devices_group_id', 'group_devices', ['group_id'])
    op.create_index('ix_group_devices_device_id', 'group_devices', ['device_id'])
    op.create_index('ix_group_devices_composite', 'group_devices', ['group_id', 'device_id'], unique=True)

    op.create_table(
        'group_people',
        _id(),
        sa.Column('group_id', sa.String(length=64), nullable=False),
        sa.Column('person_id', sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['person_id'], ['people.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_group_people_group_id', 'group_people', ['group_id'])
    op.create_index('ix_group_people_person_id', 'group_people', ['person_id'])
    op.create_index('ix_group_people_composite', 'group_people', ['group_id', 'person_id'], unique=True)

    op.create_table(
        'locations',
        _id(),
        sa.Column('site_id', sa.String(length=64), nullable=False),
        sa.Column('parent_id', sa.String(length=64), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('vector_data_url', sa.Text(), nullable=True),
        sa.Column('zoom_bounds', JSON, nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['site_id'], ['sites.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['parent_id'], ['locations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_locations_site_id', 'locations', ['site_id'])
    op.create_index('ix_locations_parent_id', 'locations', ['parent_id'])

    op.create_table(
        'library_images',
        _id(),
        sa.Column('library_id', sa.String(length=128), nullable=False),
        sa.Column('image_data', sa.Text(), nullable=False),
        sa.Column('mime_type', sa.String(length=64), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_library_images_library_id', 'library_images', ['library_id'], unique=True)


def downgrade():
    # Children first
    for table in (
        'library_images',
        'locations',
        'group_people',
        'group_devices',
        'groups',
        'people',
        'faults',
        'firmware_device_updates',
        'firmware_updates',
        'rules',
        'bacnet_mappings',
        'zone_devices',
        'zones',
        'devices',
        'sites',
    ):
        op.drop_table(table)
