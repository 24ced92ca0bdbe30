"""seed roles table

Revision ID: 8c02f5ad61e7
Revises: 3b7e1c94d2a0
Create Date: 2026-10-18 10:20:03.551870

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '8c02f5ad61e7'
down_revision: Union[str, Sequence[str], None] = '3b7e1c94d2a0'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.execute(
        """
        INSERT INTO roles (name)
        VALUES ('ORGANIZER'), ('ADMIN')
        ON CONFLICT (name) DO NOTHING
        """
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DELETE FROM roles WHERE name IN ('ORGANIZER', 'ADMIN')")
