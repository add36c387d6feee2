"""add_profile_fields

Revision ID: 002
Revises: 001
Create Date: 2026-03-02 14:05:00.000000

Add the editable profile fields to users: player headline and bio, test
scores, social links, and the coach organization.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

NEW_COLUMNS = [
    sa.Column('title', sa.String(200), nullable=True),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('sat', sa.Integer(), nullable=True),
    sa.Column('act', sa.Integer(), nullable=True),
    sa.Column('instagram_url', sa.String(500), nullable=True),
    sa.Column('x_url', sa.String(500), nullable=True),
    sa.Column('organization', sa.String(200), nullable=True),
]


def upgrade() -> None:
    for column in NEW_COLUMNS:
        op.add_column('users', column)


def downgrade() -> None:
    for column in reversed(NEW_COLUMNS):
        op.drop_column('users', column.name)
