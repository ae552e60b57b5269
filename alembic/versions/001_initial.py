"""Initial migration

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Prices table
    op.create_table(
        'prices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('city', sa.String(length=64), nullable=False),
        sa.Column('vegetable', sa.String(length=128), nullable=False),
        sa.Column('wholesale_price', sa.Integer(), nullable=True),
        sa.Column('retail_min_price', sa.String(length=32), nullable=True),
        sa.Column('retail_max_price', sa.String(length=32), nullable=True),
        sa.Column('shopmall_min_price', sa.String(length=32), nullable=True),
        sa.Column('shopmall_max_price', sa.String(length=32), nullable=True),
        sa.Column('unit', sa.String(length=32), nullable=True),
        sa.Column('image', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_prices_date_city', 'prices', ['date', 'city'])
    op.create_index('ix_prices_vegetable_date', 'prices', ['vegetable', 'date'])

    # Email queue table
    op.create_table(
        'email_queue',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email_to', sa.Text(), nullable=False),
        sa.Column('subject', sa.Text(), nullable=False),
        sa.Column('html_body', sa.Text(), nullable=False),
        sa.Column('email_cc', sa.Text(), nullable=True),
        sa.Column('attachment_path', sa.Text(), nullable=True),
        sa.Column('is_sent', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('sent_on', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade() -> None:
    op.drop_table('email_queue')
    op.drop_index('ix_prices_vegetable_date', table_name='prices')
    op.drop_index('ix_prices_date_city', table_name='prices')
    op.drop_table('prices')
