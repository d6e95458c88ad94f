"""initial tracking schema: lots, zones, stays, sensors, qr snapshots

Revision ID: 3f1c9a7e2b10
Revises:
Create Date: 2026-10-17 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c9a7e2b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'lots',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('identification', sa.String(length=255), nullable=False),
        sa.Column('initial_animals', sa.Integer(), nullable=False),
        sa.Column('final_animals', sa.Integer(), nullable=True),
        sa.Column('food_regime', sa.String(length=100), nullable=True),
        sa.Column('iberian_percentage', sa.Float(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('parent_lot_id', sa.Uuid(), sa.ForeignKey('lots.id', name='fk_lots_parent_lot_id_lots'), nullable=True),
        sa.Column('piece_type', sa.String(length=100), nullable=True),
        sa.Column('custom_data', sa.JSON(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_lots_organization_id', 'lots', ['organization_id'], unique=False)
    op.create_index('ix_lots_parent_lot_id', 'lots', ['parent_lot_id'], unique=False)

    op.create_table(
        'zones',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('stage', sa.String(length=20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('targets', sa.JSON(), nullable=False),
        sa.Column('fixed_info', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_zones_organization_id', 'zones', ['organization_id'], unique=False)
    op.create_index('ix_zones_stage', 'zones', ['stage'], unique=False)

    op.create_table(
        'stays',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('lot_id', sa.Uuid(), sa.ForeignKey('lots.id', name='fk_stays_lot_id_lots'), nullable=False),
        sa.Column('zone_id', sa.Uuid(), sa.ForeignKey('zones.id', name='fk_stays_zone_id_zones'), nullable=False),
        sa.Column('entry_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('exit_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_stays_zone_id', 'stays', ['zone_id'], unique=False)
    op.create_index('ix_stays_lot_entry', 'stays', ['lot_id', 'entry_time'], unique=False)
    # One open stay per lot
    op.create_index(
        'uq_stays_open_lot',
        'stays',
        ['lot_id'],
        unique=True,
        postgresql_where=sa.text('exit_time IS NULL'),
    )

    op.create_table(
        'sensors',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('zone_id', sa.Uuid(), sa.ForeignKey('zones.id', name='fk_sensors_zone_id_zones'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('device_id', sa.String(length=64), nullable=False),
        sa.Column('sensor_type', sa.String(length=50), nullable=False),
        sa.Column('unit', sa.String(length=20), nullable=True),
        sa.Column('validation_min', sa.Float(), nullable=True),
        sa.Column('validation_max', sa.Float(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('device_id', name='uq_sensors_device_id'),
    )
    op.create_index('ix_sensors_organization_id', 'sensors', ['organization_id'], unique=False)
    op.create_index('ix_sensors_zone_id', 'sensors', ['zone_id'], unique=False)

    op.create_table(
        'sensor_readings',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('sensor_id', sa.Uuid(), sa.ForeignKey('sensors.id', name='fk_sensor_readings_sensor_id_sensors'), nullable=False),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_simulated', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_sensor_readings_sensor_ts', 'sensor_readings', ['sensor_id', 'timestamp'], unique=False)

    op.create_table(
        'qr_snapshots',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('lot_id', sa.Uuid(), sa.ForeignKey('lots.id', name='fk_qr_snapshots_lot_id_lots'), nullable=False),
        sa.Column('public_token', sa.String(length=128), nullable=False),
        sa.Column('snapshot_data', sa.JSON(), nullable=False),
        sa.Column('data_hash', sa.String(length=64), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('scan_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('rotated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('public_token', name='uq_qr_snapshots_public_token'),
    )
    op.create_index('ix_qr_snapshots_lot_id', 'qr_snapshots', ['lot_id'], unique=False)

    op.create_table(
        'lot_templates',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('custom_fields', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('organization_id', name='uq_lot_templates_organization_id'),
    )

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('old_data', sa.JSON(), nullable=True),
        sa.Column('new_data', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_audit_log_organization_id', 'audit_log', ['organization_id'], unique=False)
    op.create_index('ix_audit_log_entity', 'audit_log', ['entity_type', 'entity_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_audit_log_entity', table_name='audit_log')
    op.drop_index('ix_audit_log_organization_id', table_name='audit_log')
    op.drop_table('audit_log')
    op.drop_table('lot_templates')
    op.drop_index('ix_qr_snapshots_lot_id', table_name='qr_snapshots')
    op.drop_table('qr_snapshots')
    op.drop_index('ix_sensor_readings_sensor_ts', table_name='sensor_readings')
    op.drop_table('sensor_readings')
    op.drop_index('ix_sensors_zone_id', table_name='sensors')
    op.drop_index('ix_sensors_organization_id', table_name='sensors')
    op.drop_table('sensors')
    op.drop_index('uq_stays_open_lot', table_name='stays')
    op.drop_index('ix_stays_lot_entry', table_name='stays')
    op.drop_index('ix_stays_zone_id', table_name='stays')
    op.drop_table('stays')
    op.drop_index('ix_zones_stage', table_name='zones')
    op.drop_index('ix_zones_organization_id', table_name='zones')
    op.drop_table('zones')
    op.drop_index('ix_lots_parent_lot_id', table_name='lots')
    op.drop_index('ix_lots_organization_id', table_name='lots')
    op.drop_table('lots')
