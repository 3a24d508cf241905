"""create books table

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "books",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.Text(), nullable=False, server_default=""),
        sa.Column("author", sa.Text()),
        sa.Column("isbn", sa.Text()),
        sa.Column("cover_url", sa.Text()),
        sa.Column("rating", sa.Float()),
        sa.Column("finished_on", sa.Date()),
        sa.Column("review", sa.Text()),
        sa.Column("notes", sa.Text()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        if_not_exists=True,
    )
    op.create_index("books_finished_on_idx", "books", ["finished_on"], if_not_exists=True)


def downgrade() -> None:
    op.drop_index("books_finished_on_idx", table_name="books")
    op.drop_table("books")
