"""initial shop ledger schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _existing_tables(conn) -> set:
    return set(sa.inspect(conn).get_table_names())


def upgrade() -> None:
    """Create every table that is not there yet; databases built by create_all are left untouched."""
    from database import Base
    import models  # noqa: F401

    conn = op.get_bind()
    existing = _existing_tables(conn)
    tables = [t for t in Base.metadata.sorted_tables if t.name not in existing]
    Base.metadata.create_all(bind=conn, tables=tables)


def downgrade() -> None:
    from database import Base
    import models  # noqa: F401

    conn = op.get_bind()
    Base.metadata.drop_all(bind=conn)
