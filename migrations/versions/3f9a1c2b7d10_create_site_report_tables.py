"""Create site report tables

Revision ID: 3f9a1c2b7d10
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f9a1c2b7d10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('trade', sa.String(length=255), nullable=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('display_order', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_companies_name', 'companies', ['name'], unique=False)
    op.create_index('ix_companies_completed_order', 'companies', ['is_completed', 'display_order'], unique=False)

    op.create_table(
        'materials',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('specification', sa.String(length=255), nullable=False),
        sa.Column('unit', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    # Composite key used for report merging; intentionally not unique
    op.create_index('ix_materials_name_spec', 'materials', ['name', 'specification'], unique=False)

    op.create_table(
        'equipments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('specification', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_equipments_name_spec', 'equipments', ['name', 'specification'], unique=False)

    op.create_table(
        'work_details',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('personnel_count', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('personnel_count >= 0', name='chk_work_details_personnel_nonneg'),
    )
    op.create_index('ix_work_details_date_company', 'work_details', ['date', 'company_id'], unique=False)

    op.create_table(
        'daily_materials',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('material_id', sa.Integer(), sa.ForeignKey('materials.id', ondelete='CASCADE'), nullable=False),
        sa.Column('quantity', sa.Numeric(10, 3), nullable=False),
    )
    op.create_index('ix_daily_materials_date_material', 'daily_materials', ['date', 'material_id'], unique=False)

    op.create_table(
        'work_equipments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('work_detail_id', sa.Integer(), sa.ForeignKey('work_details.id', ondelete='CASCADE'), nullable=False),
        sa.Column('equipment_id', sa.Integer(), sa.ForeignKey('equipments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('equipment_count', sa.Integer(), nullable=False),
    )
    op.create_index('ix_work_equipments_work_detail_id', 'work_equipments', ['work_detail_id'], unique=False)
    op.create_index('ix_work_equipments_equipment_id', 'work_equipments', ['equipment_id'], unique=False)

    op.create_table(
        'weather',
        sa.Column('date', sa.Date(), primary_key=True),
        sa.Column('min_temp', sa.String(length=16), nullable=False),
        sa.Column('max_temp', sa.String(length=16), nullable=False),
        sa.Column('condition', sa.String(length=64), nullable=False),
        sa.Column('fetched_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'sites',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'max_rows',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('page_name', sa.String(length=64), nullable=False, unique=True),
        sa.Column('max_rows', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade():
    op.drop_table('max_rows')
    op.drop_table('sites')
    op.drop_table('weather')
    op.drop_index('ix_work_equipments_equipment_id', table_name='work_equipments')
    op.drop_index('ix_work_equipments_work_detail_id', table_name='work_equipments')
    op.drop_table('work_equipments')
    op.drop_index('ix_daily_materials_date_material', table_name='daily_materials')
    op.drop_table('daily_materials')
    op.drop_index('ix_work_details_date_company', table_name='work_details')
    op.drop_table('work_details')
    op.drop_index('ix_equipments_name_spec', table_name='equipments')
    op.drop_table('equipments')
    op.drop_index('ix_materials_name_spec', table_name='materials')
    op.drop_table('materials')
    op.drop_index('ix_companies_completed_order', table_name='companies')
    op.drop_index('ix_companies_name', table_name='companies')
    op.drop_table('companies')
