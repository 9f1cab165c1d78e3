"""Pydantic schemas for ChefGPT API.

Request/response models for:
- Users & nutrition targets
- Recipes, cookbook
- Meal plans
- Pantry
- Calorie entries & daily summaries
- Shopping lists
"""

from datetime import datetime, date
from typing import Optional, Literal

from pydantic import BaseModel, Field, field_validator

from .services.nutrition_service import ActivityLevel, BMRFormula, Goal, Sex
from .services.pantry_freshness import ExpiryStatus

ChefMode = Literal["pantry", "master", "macros", "mixology", "meal-plan"]
MealType = Literal["breakfast", "lunch", "dinner", "snack", "post-workout"]
SkillLevel = Literal["beginner", "intermediate", "advanced", "expert"]


class MacroGrams(BaseModel):
    protein: float = Field(0, ge=0)
    carbs: float = Field(0, ge=0)
    fat: float = Field(0, ge=0)
    fiber: float = Field(0, ge=0)


# --- Users ---

class UserOut(BaseModel):
    id: str
    email: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    profile_image_url: Optional[str]
    gender: Optional[str]
    age: Optional[int]
    height_cm: Optional[int]
    weight_kg: Optional[float]
    activity_level: Optional[str]
    goal: Optional[str]
    cooking_skill_level: Optional[str]
    allergies: list[str] = []
    dietary_restrictions: list[str] = []
    timezone: str
    daily_calorie_target: Optional[int]
    daily_macros: Optional[dict]
    subscription_tier: str
    subscription_expires_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class UserProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    profile_image_url: Optional[str] = None
    gender: Optional[Sex] = None
    age: Optional[int] = Field(None, gt=0, le=120)
    height_cm: Optional[int] = Field(None, gt=0, le=300)
    weight_kg: Optional[float] = Field(None, gt=0, le=500)
    activity_level: Optional[ActivityLevel] = None
    goal: Optional[Goal] = None
    cooking_skill_level: Optional[SkillLevel] = None
    allergies: Optional[list[str]] = None
    dietary_restrictions: Optional[list[str]] = None
    timezone: Optional[str] = Field(None, max_length=64)

    @field_validator("timezone", "allergies", "dietary_restrictions")
    @classmethod
    def _not_null(cls, value, info):
        # Omit the field to leave it unchanged; these columns always hold a value
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


# --- Nutrition ---

class NutritionTargetsRequest(BaseModel):
    # Range checks live in the calculator so every caller gets the same errors
    sex: str
    weight_kg: float
    height_cm: float
    age: float
    activity_level: str
    goal: str
    formula: str = BMRFormula.MIFFLIN_ST_JEOR.value


class MacroSplitOut(BaseModel):
    protein_g: int
    carbs_g: int
    fat_g: int
    fiber_g: int

    class Config:
        from_attributes = True


class NutritionTargetsOut(BaseModel):
    bmr: int
    maintenance_calories: int
    target_calories: int
    macros: MacroSplitOut
    bmi: float
    bmi_category: str
    formula: BMRFormula
    activity_level: ActivityLevel
    goal: Goal

    class Config:
        from_attributes = True


class DailyTotalsOut(BaseModel):
    day: date
    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    fiber_g: float
    entry_count: int

    class Config:
        from_attributes = True


class NutrientProgressOut(BaseModel):
    consumed: float
    target: float
    remaining: float
    percent: float

    class Config:
        from_attributes = True


# --- Recipes ---

class MacroTargets(BaseModel):
    calories: Optional[int] = Field(None, gt=0)
    protein: Optional[int] = Field(None, ge=0)
    carbs: Optional[int] = Field(None, ge=0)
    fat: Optional[int] = Field(None, ge=0)


class RecipeGenerateRequest(BaseModel):
    chef_mode: ChefMode
    ingredients: list[str] = []
    use_pantry: bool = False
    meal_type: Optional[MealType] = None
    cuisine: Optional[str] = Field(None, max_length=50)
    dietary_restrictions: list[str] = []
    cooking_time: Optional[int] = Field(None, ge=1, le=600)
    servings: Optional[int] = Field(None, ge=1, le=12)
    difficulty: Optional[str] = Field(None, max_length=20)
    equipment: list[str] = []
    goal: Optional[Goal] = None
    macro_targets: Optional[MacroTargets] = None


class RecipeOut(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str]
    ingredients: list[str] = []
    instructions: list[str] = []
    prep_time: Optional[int]
    cook_time: Optional[int]
    servings: Optional[int]
    calories: Optional[int]
    macros: Optional[dict]
    tags: list[str] = []
    chef_mode: str
    difficulty: Optional[str]
    cuisine: Optional[str]
    meal_type: Optional[str]
    image_url: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class RecipeListOut(BaseModel):
    """Lighter recipe model for list views (no ingredients/instructions)."""
    id: str
    title: str
    description: Optional[str]
    calories: Optional[int]
    macros: Optional[dict]
    chef_mode: str
    cuisine: Optional[str]
    meal_type: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class SavedRecipeCreate(BaseModel):
    recipe_id: str
    collection_name: str = Field("favorites", min_length=1, max_length=100)


class SavedRecipeOut(BaseModel):
    id: str
    collection_name: str
    saved_at: datetime
    recipe: RecipeListOut

    class Config:
        from_attributes = True


# --- Meal Plans ---

class UserStats(BaseModel):
    sex: str
    weight_kg: float
    height_cm: float
    age: float


class MealPlanPreferences(BaseModel):
    cuisines: list[str] = []
    exclude_ingredients: list[str] = []


class MealPlanGenerateRequest(BaseModel):
    days: int = Field(7, ge=1, le=14)
    start_date: Optional[date] = None
    goal: Optional[Goal] = None
    activity_level: Optional[ActivityLevel] = None
    dietary_restrictions: list[str] = []
    user_stats: Optional[UserStats] = None  # overrides the stored profile
    preferences: Optional[MealPlanPreferences] = None


class MealPlanOut(BaseModel):
    id: str
    name: str
    start_date: date
    end_date: date
    goal: Optional[str]
    dietary_restrictions: list[str] = []
    meals: list[dict] = []
    shopping_list: list[str] = []
    total_calories: Optional[int]
    daily_macros: Optional[dict]
    tips: list[str] = []
    created_at: datetime

    class Config:
        from_attributes = True


class MealPlanGenerateOut(MealPlanOut):
    targets: NutritionTargetsOut


# --- Pantry ---

class PantryItemBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    quantity: Optional[float] = Field(None, ge=0)
    unit: Optional[str] = Field(None, max_length=20)
    category: Optional[str] = Field(None, max_length=30)
    expiry_date: Optional[date] = None


class PantryItemCreate(PantryItemBase):
    pass


class PantryItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    quantity: Optional[float] = Field(None, ge=0)
    unit: Optional[str] = Field(None, max_length=20)
    category: Optional[str] = Field(None, max_length=30)
    expiry_date: Optional[date] = None


class PantryItemOut(PantryItemBase):
    id: str
    user_id: str
    added_at: datetime
    expiry_status: ExpiryStatus
    days_until_expiry: Optional[int]

    class Config:
        from_attributes = True


class PantrySummaryOut(BaseModel):
    total: int
    counts: dict[str, int]


# --- Calorie Tracking ---

class CalorieEntryCreate(BaseModel):
    date: Optional[datetime] = None  # defaults to now
    meal_type: MealType
    food_name: str = Field(..., min_length=1, max_length=200)
    calories: int = Field(..., ge=0)
    macros: Optional[MacroGrams] = None
    quantity: Optional[float] = Field(None, gt=0)
    unit: Optional[str] = Field(None, max_length=20)
    image_url: Optional[str] = None


class CalorieEntryFromRecipe(BaseModel):
    recipe_id: str
    servings: float = Field(1.0, gt=0, le=20)
    meal_type: MealType
    date: Optional[datetime] = None


class CalorieEntryOut(BaseModel):
    id: str
    date: datetime
    meal_type: str
    food_name: str
    calories: int
    macros: Optional[dict]
    quantity: Optional[float]
    unit: Optional[str]
    image_url: Optional[str]
    source: str
    created_at: datetime

    class Config:
        from_attributes = True


class DailySummaryOut(BaseModel):
    date: date
    timezone: str
    totals: DailyTotalsOut
    targets: Optional[NutritionTargetsOut] = None
    progress: dict[str, NutrientProgressOut] = {}
    entries: list[CalorieEntryOut] = []


# --- Shopping Lists ---

class ShoppingListCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    items: list[str] = []
    completed: bool = False


class ShoppingListUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    items: Optional[list[str]] = None
    completed: Optional[bool] = None


class ShoppingListOut(BaseModel):
    id: str
    name: str
    items: list[str]
    completed: bool
    created_at: datetime

    class Config:
        from_attributes = True
