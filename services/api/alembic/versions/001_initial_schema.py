"""Initial schema: users, recipes, cookbook, calorie entries, meal plans, pantry, shopping lists

Revision ID: 001_initial_schema
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _user_fk() -> sa.Column:
    return sa.Column("user_id", sa.String(128), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("email", sa.String(320), unique=True, nullable=True),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("profile_image_url", sa.Text, nullable=True),
        sa.Column("gender", sa.String(10), nullable=True),
        sa.Column("age", sa.Integer, nullable=True),
        sa.Column("height_cm", sa.Integer, nullable=True),
        sa.Column("weight_kg", sa.Float, nullable=True),
        sa.Column("activity_level", sa.String(20), nullable=True),
        sa.Column("goal", sa.String(20), nullable=True),
        sa.Column("cooking_skill_level", sa.String(20), nullable=True),
        sa.Column("allergies", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("dietary_restrictions", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        sa.Column("daily_calorie_target", sa.Integer, nullable=True),
        sa.Column("daily_macros", sa.JSON, nullable=True),
        sa.Column("subscription_tier", sa.String(10), nullable=False, server_default="basic"),
        sa.Column("subscription_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "recipes",
        sa.Column("id", sa.String(36), primary_key=True),
        _user_fk(),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("ingredients", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("instructions", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("prep_time", sa.Integer, nullable=True),
        sa.Column("cook_time", sa.Integer, nullable=True),
        sa.Column("servings", sa.Integer, nullable=True),
        sa.Column("calories", sa.Integer, nullable=True),
        sa.Column("macros", sa.JSON, nullable=True),
        sa.Column("tags", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("chef_mode", sa.String(20), nullable=False),
        sa.Column("difficulty", sa.String(20), nullable=True),
        sa.Column("cuisine", sa.String(50), nullable=True),
        sa.Column("meal_type", sa.String(20), nullable=True),
        sa.Column("image_url", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("idx_recipes_user_created_at", "recipes", ["user_id", "created_at"])

    op.create_table(
        "saved_recipes",
        sa.Column("id", sa.String(36), primary_key=True),
        _user_fk(),
        sa.Column("recipe_id", sa.String(36), sa.ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("collection_name", sa.String(100), nullable=False, server_default="favorites"),
        sa.Column("saved_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "recipe_id", "collection_name", name="uq_saved_recipe_collection"),
    )

    op.create_table(
        "calorie_entries",
        sa.Column("id", sa.String(36), primary_key=True),
        _user_fk(),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("meal_type", sa.String(20), nullable=False),
        sa.Column("food_name", sa.Text, nullable=False),
        sa.Column("calories", sa.Integer, nullable=False),
        sa.Column("macros", sa.JSON, nullable=True),
        sa.Column("quantity", sa.Float, nullable=True),
        sa.Column("unit", sa.String(20), nullable=True),
        sa.Column("image_url", sa.Text, nullable=True),
        sa.Column("source", sa.String(20), nullable=False, server_default="manual"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("idx_calorie_entries_user_date", "calorie_entries", ["user_id", "date"])

    op.create_table(
        "meal_plans",
        sa.Column("id", sa.String(36), primary_key=True),
        _user_fk(),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("goal", sa.String(20), nullable=True),
        sa.Column("dietary_restrictions", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("meals", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("shopping_list", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("total_calories", sa.Integer, nullable=True),
        sa.Column("daily_macros", sa.JSON, nullable=True),
        sa.Column("tips", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "pantry_items",
        sa.Column("id", sa.String(36), primary_key=True),
        _user_fk(),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("quantity", sa.Float, nullable=True),
        sa.Column("unit", sa.String(20), nullable=True),
        sa.Column("category", sa.String(30), nullable=True),
        sa.Column("expiry_date", sa.Date, nullable=True),
        sa.Column("added_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("idx_pantry_items_user_expiry", "pantry_items", ["user_id", "expiry_date"])

    op.create_table(
        "shopping_lists",
        sa.Column("id", sa.String(36), primary_key=True),
        _user_fk(),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("items", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("completed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("shopping_lists")
    op.drop_table("pantry_items")
    op.drop_table("meal_plans")
    op.drop_table("calorie_entries")
    op.drop_table("saved_recipes")
    op.drop_table("recipes")
    op.drop_table("users")
