"""Initial schema: restaurants and restaurant_awards.

Revision ID: 0001
Revises:
Create Date: 2026-01-01

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "restaurants",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), default=""),
        sa.Column("address", sa.String(500), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("latitude", sa.String(32), default=""),
        sa.Column("longitude", sa.String(32), default=""),
        sa.Column("cuisine", sa.String(255), default=""),
        sa.Column("facilities_and_services", sa.Text(), default=""),
        sa.Column("phone_number", sa.String(32), default=""),
        sa.Column("website_url", sa.String(500), default=""),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_restaurants_url", "restaurants", ["url"], unique=True)
    op.create_index("ix_restaurants_name", "restaurants", ["name"])
    op.create_index("ix_restaurants_location", "restaurants", ["location"])

    op.create_table(
        "restaurant_awards",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("restaurant_id", sa.Integer(), sa.ForeignKey("restaurants.id"), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("distinction", sa.String(32), nullable=False),
        sa.Column("price", sa.String(64), nullable=False),
        sa.Column("green_star", sa.Boolean(), default=False),
        sa.Column("wayback_url", sa.String(1000), default=""),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("restaurant_id", "year", name="uq_restaurant_awards_restaurant_year"),
    )
    op.create_index("ix_restaurant_awards_year", "restaurant_awards", ["year"])
    op.create_index("ix_restaurant_awards_distinction", "restaurant_awards", ["distinction"])


def downgrade() -> None:
    op.drop_index("ix_restaurant_awards_distinction", table_name="restaurant_awards")
    op.drop_index("ix_restaurant_awards_year", table_name="restaurant_awards")
    op.drop_table("restaurant_awards")
    op.drop_index("ix_restaurants_location", table_name="restaurants")
    op.drop_index("ix_restaurants_name", table_name="restaurants")
    op.drop_index("ix_restaurants_url", table_name="restaurants")
    op.drop_table("restaurants")
