"""create_school_directory_tables

Revision ID: 3c1d9a7e5b20
Revises:
Create Date: 2026-10-17 11:42:08.415223

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1d9a7e5b20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'schools',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('city', sa.String(), nullable=False),
        sa.Column('district', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('board', sa.String(), nullable=False),
        sa.Column('established', sa.Integer(), nullable=True),
        sa.Column('principal_name', sa.String(), nullable=True),
        sa.Column('principal_email', sa.String(), nullable=True),
        sa.Column('principal_phone', sa.String(), nullable=True),
        sa.Column('contact_email', sa.String(), nullable=True),
        sa.Column('contact_phone', sa.String(), nullable=True),
        sa.Column('alternate_contact_name', sa.String(), nullable=True),
        sa.Column('alternate_contact_phone', sa.String(), nullable=True),
        sa.Column('website', sa.String(), nullable=True),
        sa.Column('street_address', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('state', sa.String(), nullable=True),
        sa.Column('pincode', sa.String(), nullable=True),
        sa.Column('landmark', sa.String(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(), nullable=True),
        sa.Column('facilities', sa.JSON(), nullable=True),
        sa.Column('achievements', sa.JSON(), nullable=True),
        sa.Column('ratings', sa.JSON(), nullable=True),
        sa.Column('fee_structure', sa.JSON(), nullable=True),
        sa.Column('admission_process', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_schools_name'), 'schools', ['name'], unique=True)
    op.create_index(op.f('ix_schools_city'), 'schools', ['city'], unique=False)
    op.create_index(op.f('ix_schools_district'), 'schools', ['district'], unique=False)

    op.create_table(
        'school_images',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('school_id', sa.Uuid(), nullable=False),
        sa.Column('image_url', sa.String(), nullable=False),
        sa.Column('image_type', sa.String(), nullable=False, server_default='general'),
        sa.Column('title', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "image_type IN ('infrastructure', 'events', 'general')",
            name='ck_school_images_image_type',
        ),
    )
    op.create_index(op.f('ix_school_images_school_id'), 'school_images', ['school_id'], unique=False)
    op.create_index(op.f('ix_school_images_display_order'), 'school_images', ['display_order'], unique=False)

    op.create_table(
        'cities',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('district', sa.String(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index(op.f('ix_cities_id'), 'cities', ['id'], unique=False)

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False, server_default='user'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('last_sign_in_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'school_ratings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('school_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('overall', sa.SmallInteger(), nullable=False),
        sa.Column('facility', sa.SmallInteger(), nullable=False),
        sa.Column('faculty', sa.SmallInteger(), nullable=False),
        sa.Column('activities', sa.SmallInteger(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['school_id'], ['schools.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('school_id', 'user_id', name='uq_school_ratings_school_user'),
    )
    op.create_index(op.f('ix_school_ratings_id'), 'school_ratings', ['id'], unique=False)
    op.create_index(op.f('ix_school_ratings_school_id'), 'school_ratings', ['school_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_school_ratings_school_id'), table_name='school_ratings')
    op.drop_index(op.f('ix_school_ratings_id'), table_name='school_ratings')
    op.drop_table('school_ratings')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
    op.drop_index(op.f('ix_cities_id'), table_name='cities')
    op.drop_table('cities')
    op.drop_index(op.f('ix_school_images_display_order'), table_name='school_images')
    op.drop_index(op.f('ix_school_images_school_id'), table_name='school_images')
    op.drop_table('school_images')
    op.drop_index(op.f('ix_schools_district'), table_name='schools')
    op.drop_index(op.f('ix_schools_city'), table_name='schools')
    op.drop_index(op.f('ix_schools_name'), table_name='schools')
    op.drop_table('schools')
