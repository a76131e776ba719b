"""Initial storefront schema

Revision ID: 001
Revises: 
Create Date: 2024-05-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'apps',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('long_description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('category', sa.String(20), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('demo_url', sa.Text(), nullable=True),
        sa.Column('github_url', sa.Text(), nullable=True),
        sa.Column('technologies', sa.JSON(), nullable=False),
        sa.Column('features', sa.JSON(), nullable=False),
        sa.Column('is_premium', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_apps_category_active', 'apps', ['category', 'is_active'])

    op.create_table(
        'testimonials',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('company', sa.Text(), nullable=True),
        sa.Column('position', sa.Text(), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('rating', sa.Numeric(2, 1), nullable=False, server_default='5.0'),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'demo_sessions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('app_id', sa.String(36), sa.ForeignKey('apps.id'), nullable=False),
        sa.Column('session_token', sa.String(128), nullable=False, unique=True),
        sa.Column('ip_address', sa.String(64), nullable=False),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_demo_sessions_ip_app_created', 'demo_sessions', ['ip_address', 'app_id', 'created_at'])
    op.create_index(
        'ix_demo_sessions_ip_app_active_end',
        'demo_sessions',
        ['ip_address', 'app_id', 'is_active', 'end_time'],
    )

    op.create_table(
        'purchases',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('app_id', sa.String(36), sa.ForeignKey('apps.id'), nullable=False),
        sa.Column('customer_email', sa.Text(), nullable=False),
        sa.Column('customer_name', sa.Text(), nullable=True),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('stripe_payment_intent_id', sa.String(255), nullable=False, unique=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_purchases_app_id', 'purchases', ['app_id'])

    op.create_table(
        'contact_submissions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('project_type', sa.Text(), nullable=True),
        sa.Column('budget', sa.Text(), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )


def downgrade():
    op.drop_table('contact_submissions')
    op.drop_index('ix_purchases_app_id', 'purchases')
    op.drop_table('purchases')
    op.drop_index('ix_demo_sessions_ip_app_active_end', 'demo_sessions')
    op.drop_index('ix_demo_sessions_ip_app_created', 'demo_sessions')
    op.drop_table('demo_sessions')
    op.drop_table('testimonials')
    op.drop_index('ix_apps_category_active', 'apps')
    op.drop_table('apps')
