"""SQLAlchemy ORM models for ChefGPT.

Tables:
- users: Profile keyed by the identity provider's subject id
- recipes: AI-generated recipes owned by a user
- saved_recipes: Cookbook join rows (user x recipe x collection)
- calorie_entries: Logged food with calories and macros
- meal_plans: Generated multi-day plans with their shopping list
- pantry_items: Ingredients on hand with optional expiry date
- shopping_lists: Named item lists
"""

from __future__ import annotations

import uuid
from datetime import datetime, date
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    Date,
    Text,
    Integer,
    Boolean,
    Float,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from .db import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Application profile for an identity-provider account.

    Created on the first authenticated request; never hard-deleted.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[Optional[str]] = mapped_column(String(320), unique=True, nullable=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    profile_image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Demographics feeding the nutrition calculator
    gender: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height_cm: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    weight_kg: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    activity_level: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    goal: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    cooking_skill_level: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    allergies: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    dietary_restrictions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")

    # Last computed calculator output; refreshed on profile update
    daily_calorie_target: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    daily_macros: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    subscription_tier: Mapped[str] = mapped_column(String(10), nullable=False, default="basic")
    subscription_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    recipes: Mapped[list["Recipe"]] = relationship(
        "Recipe", back_populates="user", cascade="all, delete-orphan"
    )


class Recipe(Base):
    __tablename__ = "recipes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ingredients: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    instructions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    prep_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    cook_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    servings: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    # Per serving
    calories: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    macros: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    chef_mode: Mapped[str] = mapped_column(String(20), nullable=False)
    difficulty: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    cuisine: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    meal_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    user: Mapped["User"] = relationship("User", back_populates="recipes")
    saved_by: Mapped[list["SavedRecipe"]] = relationship(
        "SavedRecipe", back_populates="recipe", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_recipes_user_created_at", "user_id", "created_at"),
    )


class SavedRecipe(Base):
    """Cookbook entry. Removed together with its recipe."""
    __tablename__ = "saved_recipes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    recipe_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    collection_name: Mapped[str] = mapped_column(String(100), nullable=False, default="favorites")
    saved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="saved_by")

    __table_args__ = (
        UniqueConstraint("user_id", "recipe_id", "collection_name", name="uq_saved_recipe_collection"),
    )


class CalorieEntry(Base):
    __tablename__ = "calorie_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    # Stored in UTC
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    meal_type: Mapped[str] = mapped_column(String(20), nullable=False)
    food_name: Mapped[str] = mapped_column(Text, nullable=False)
    calories: Mapped[int] = mapped_column(Integer, nullable=False)
    macros: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    quantity: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    unit: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="manual")  # manual | photo | recipe
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("idx_calorie_entries_user_date", "user_id", "date"),
    )


class MealPlan(Base):
    """Generated plan. Written once by the generation call, read-only afterwards."""
    __tablename__ = "meal_plans"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    goal: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    dietary_restrictions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    meals: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    shopping_list: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    total_calories: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    daily_macros: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    tips: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class PantryItem(Base):
    __tablename__ = "pantry_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    unit: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("idx_pantry_items_user_expiry", "user_id", "expiry_date"),
    )


class ShoppingList(Base):
    __tablename__ = "shopping_lists"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
