"""create_sharing_tables

Revision ID: 3b9e0c4f2a71
Revises:
Create Date: 2026-10-19 09:12:44.118203

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3b9e0c4f2a71'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'buckets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('owner_email', sa.String(255), nullable=False),
        sa.Column('region', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_buckets_owner_email', 'buckets', ['owner_email'])

    op.create_table(
        'members',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('bucket_name', sa.String(255), sa.ForeignKey('buckets.name'), nullable=False),
        sa.Column('permissions', sa.Text(), nullable=False),
        sa.Column('scope_type', sa.String(20), nullable=False),
        sa.Column('scope_folders', sa.Text(), nullable=False),
        sa.Column('invited_by', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        # at most one member row per (email, bucket), relied on by the accept upsert
        sa.UniqueConstraint('email', 'bucket_name', name='uq_member_email_bucket'),
    )

    op.create_table(
        'invitations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('bucket_name', sa.String(255), sa.ForeignKey('buckets.name'), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('permissions', sa.Text(), nullable=False),
        sa.Column('scope_type', sa.String(20), nullable=False),
        sa.Column('scope_folders', sa.Text(), nullable=False),
        sa.Column('created_by', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('accepted', sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        'file_ownership',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('bucket_name', sa.String(255), nullable=False),
        sa.Column('file_path', sa.String(1024), nullable=False),
        sa.Column('owner_email', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('bucket_name', 'file_path', name='uq_file_ownership_path'),
    )

    op.create_table(
        'shares',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('bucket_name', sa.String(255), sa.ForeignKey('buckets.name'), nullable=False),
        sa.Column('items', sa.Text(), nullable=False),
        sa.Column('created_by', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
    )


def downgrade():
    # Drop tables in reverse order
    op.drop_table('shares')
    op.drop_table('file_ownership')
    op.drop_table('invitations')
    op.drop_table('members')
    op.drop_index('ix_buckets_owner_email', 'buckets')
    op.drop_table('buckets')
