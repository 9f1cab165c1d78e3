import re
import logging
from typing import List, Optional, Sequence
from pydantic import BaseModel, Field, field_validator

from ..core.ai_client import ai_client
from ..core.text import clean_md, clean_lines
from ..schemas import MacroGrams, MealPlanPreferences, RecipeGenerateRequest
from ..settings import settings
from .nutrition_service import Goal, NutritionTargets, round_half_up, split_macros

logger = logging.getLogger("chefgpt.ai")


class AIGenerationError(RuntimeError):
    """The AI provider was unavailable or returned unusable output."""


def _coerce_whole_number(value):
    # Models sometimes answer 12.5 or "15 minutes" for integer fields
    if value is None:
        return 0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return round_half_up(value)
    if isinstance(value, str):
        match = re.search(r"\d+(?:\.\d+)?", value)
        return round_half_up(float(match.group())) if match else 0
    return value


class GeneratedRecipe(BaseModel):
    title: str = "Untitled Recipe"
    description: str = ""
    ingredients: List[str] = []
    instructions: List[str] = []
    prep_time: int = 0
    cook_time: int = 0
    servings: int = 1
    calories: int = 0  # per serving
    macros: MacroGrams = MacroGrams()
    tags: List[str] = []
    difficulty: str = "intermediate"
    cuisine: str = ""
    tips: List[str] = []

    @field_validator("prep_time", "cook_time", "servings", "calories", mode="before")
    @classmethod
    def _whole(cls, value):
        return _coerce_whole_number(value)


class PlannedMeal(BaseModel):
    day: int
    meal_type: str
    recipe: GeneratedRecipe


class GeneratedMealPlan(BaseModel):
    total_calories: int = 0
    daily_macros: MacroGrams = MacroGrams()
    meals: List[PlannedMeal] = []
    shopping_list: List[str] = []
    tips: List[str] = []

    @field_validator("total_calories", mode="before")
    @classmethod
    def _whole(cls, value):
        return _coerce_whole_number(value)


class AnalyzedFood(BaseModel):
    name: str
    quantity: str = "1 portion"
    calories: int = 0
    macros: MacroGrams = MacroGrams()

    @field_validator("calories", mode="before")
    @classmethod
    def _whole(cls, value):
        return _coerce_whole_number(value)

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity_text(cls, value):
        return "1 portion" if value is None else str(value)


class FoodAnalysis(BaseModel):
    foods: List[AnalyzedFood] = []
    total_calories: int = 0
    total_macros: MacroGrams = MacroGrams()
    confidence: float = Field(0.5, ge=0, le=1)
    source: str = "ai"  # ai or mock

    @field_validator("total_calories", mode="before")
    @classmethod
    def _whole(cls, value):
        return _coerce_whole_number(value)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp(cls, value):
        if value is None:
            return 0.5
        return min(max(float(value), 0.0), 1.0)


BASE_CHEF_PROMPT = (
    "You are a professional chef AI assistant. Create detailed, accurate recipes "
    "with proper nutritional information. Always respond with valid JSON."
)

CHEF_MODE_PROMPTS = {
    "pantry": "You are PantryChef. Use the available ingredients efficiently and minimize waste.",
    "master": "You are MasterChef. Create restaurant-quality recipes with detailed techniques.",
    "macros": "You are MacrosChef. Hit the requested macronutrient targets while keeping the dish flavorful.",
    "mixology": "You are MixologyMaestro. Create creative cocktails and beverages with proper mixing techniques.",
    "meal-plan": "You are MealPlanChef. Create balanced, nutritious meals that fit a broader meal plan.",
}

RECIPE_JSON_SHAPE = """{
  "title": string,
  "description": string,
  "ingredients": string[],
  "instructions": string[],
  "prep_time": number (minutes),
  "cook_time": number (minutes),
  "servings": number,
  "calories": number (per serving),
  "macros": { "protein": number, "carbs": number, "fat": number, "fiber": number } (grams per serving),
  "tags": string[],
  "difficulty": string,
  "cuisine": string,
  "tips": string[]
}"""

MEAL_PLAN_SYSTEM_PROMPT = (
    "You are MealPlanChef, an AI nutritionist and meal planning expert. Create personalized "
    "meal plans based on user goals, dietary restrictions and nutritional targets. "
    "Always respond with valid JSON."
)

FOOD_ANALYSIS_SYSTEM_PROMPT = (
    "You are an expert nutritionist and food analyst. Identify the foods in the image, "
    "estimate portions and calculate calories and macronutrients as accurately as possible."
)

FOOD_ANALYSIS_PROMPT = """Analyze this food image. Identify all visible foods, estimate portion sizes and calculate calories and macronutrients.

Respond with JSON in this format:
{
  "foods": [
    { "name": string, "quantity": string, "calories": number,
      "macros": { "protein": number, "carbs": number, "fat": number, "fiber": number } }
  ],
  "total_calories": number,
  "total_macros": { "protein": number, "carbs": number, "fat": number, "fiber": number },
  "confidence": number (0-1)
}"""

# (meal_type, share of the daily calorie target)
PLAN_MEAL_SHARES = (("breakfast", 0.25), ("lunch", 0.35), ("dinner", 0.40))

_MOCK_MEALS = {
    "breakfast": [
        ("Greek Yogurt Berry Bowl", ["1 cup greek yogurt", "1/2 cup mixed berries", "2 tbsp granola", "1 tsp honey"], True),
        ("Spinach Feta Omelette", ["3 eggs", "1 cup spinach", "30 g feta", "1 tsp olive oil"], True),
        ("Overnight Oats", ["1/2 cup rolled oats", "3/4 cup almond milk", "1 tbsp chia seeds", "1 banana"], True),
        ("Turkey Breakfast Wrap", ["1 whole wheat tortilla", "80 g turkey breast", "2 eggs", "1/4 avocado"], False),
    ],
    "lunch": [
        ("Quinoa Chickpea Salad", ["1 cup cooked quinoa", "1/2 cup chickpeas", "1 cucumber", "1 tbsp olive oil", "1 lemon"], True),
        ("Grilled Chicken Rice Bowl", ["150 g chicken breast", "1 cup brown rice", "1 cup broccoli", "1 tbsp soy sauce"], False),
        ("Lentil Vegetable Soup", ["1 cup red lentils", "1 carrot", "1 celery stalk", "1 onion", "2 cups vegetable stock"], True),
        ("Tuna Whole Grain Sandwich", ["1 can tuna", "2 slices whole grain bread", "1 tomato", "1 cup lettuce"], False),
    ],
    "dinner": [
        ("Baked Salmon with Sweet Potato", ["150 g salmon fillet", "1 sweet potato", "1 cup green beans", "1 lemon"], False),
        ("Tofu Vegetable Stir-Fry", ["200 g firm tofu", "1 bell pepper", "1 cup broccoli", "1 cup brown rice", "1 tbsp soy sauce"], True),
        ("Turkey Chili", ["150 g lean ground turkey", "1/2 cup kidney beans", "1 can diced tomatoes", "1 onion"], False),
        ("Chickpea Spinach Curry", ["1 cup chickpeas", "2 cups spinach", "1/2 cup coconut milk", "1 onion", "1 cup basmati rice"], True),
    ],
}

_MOCK_DRINK_INGREDIENTS = ["60 ml gin", "30 ml fresh lime juice", "15 ml simple syrup", "soda water", "mint leaves"]
_MOCK_DEFAULT_INGREDIENTS = ["2 chicken breasts", "1 cup brown rice", "2 cups broccoli", "2 cloves garlic", "1 tbsp olive oil"]

_PLANT_BASED = {"vegetarian", "vegan", "plant-based"}


def _join(values: Sequence[str]) -> str:
    return ", ".join(v for v in values if v) or "None"


class ChefAIService:
    def __init__(self):
        self.mode = settings.ai_mode

    # --- Recipes ---

    def build_recipe_prompt(self, params: RecipeGenerateRequest, pantry_items: Sequence[str] = ()) -> str:
        lines = ["Create a recipe with the following requirements:"]
        if params.ingredients:
            lines.append(f"- Use these ingredients: {_join(params.ingredients)}")
        if pantry_items:
            lines.append(f"- Available pantry items, use the first ones before they expire: {_join(pantry_items)}")
        if params.meal_type:
            lines.append(f"- Meal type: {params.meal_type}")
        if params.cuisine:
            lines.append(f"- Cuisine: {params.cuisine}")
        if params.dietary_restrictions:
            lines.append(f"- Dietary restrictions: {_join(params.dietary_restrictions)}")
        if params.cooking_time:
            lines.append(f"- Maximum cooking time: {params.cooking_time} minutes")
        if params.servings:
            lines.append(f"- Servings: {params.servings}")
        if params.difficulty:
            lines.append(f"- Difficulty level: {params.difficulty}")
        if params.equipment:
            lines.append(f"- Available equipment: {_join(params.equipment)}")
        if params.goal:
            lines.append(f"- Nutrition goal: {params.goal.value}")
        targets = params.macro_targets
        if targets:
            parts = []
            if targets.calories:
                parts.append(f"{targets.calories} calories")
            if targets.protein:
                parts.append(f"{targets.protein}g protein")
            if targets.carbs:
                parts.append(f"{targets.carbs}g carbs")
            if targets.fat:
                parts.append(f"{targets.fat}g fat")
            if parts:
                lines.append(f"- Target nutrition per serving: {', '.join(parts)}")
        lines.append("")
        lines.append(f"Respond with JSON in this exact format:\n{RECIPE_JSON_SHAPE}")
        return "\n".join(lines)

    async def generate_recipe(self, params: RecipeGenerateRequest, pantry_items: Sequence[str] = ()) -> GeneratedRecipe:
        """Generate a recipe for one chef mode. Raises AIGenerationError on failure."""
        if self.mode == "mock":
            return self._mock_recipe(params, pantry_items)

        system_prompt = f"{BASE_CHEF_PROMPT} {CHEF_MODE_PROMPTS.get(params.chef_mode, '')}".strip()
        recipe = await ai_client.generate_json(
            self.build_recipe_prompt(params, pantry_items),
            GeneratedRecipe,
            system_instruction=system_prompt,
        )
        if recipe is None:
            raise AIGenerationError("Failed to generate recipe")
        return self._sanitize_recipe(recipe)

    def _sanitize_recipe(self, recipe: GeneratedRecipe) -> GeneratedRecipe:
        """Strip markdown artifacts and numbering from AI text."""
        recipe.title = clean_md(recipe.title) or "Untitled Recipe"
        recipe.description = clean_md(recipe.description)
        recipe.ingredients = clean_lines(recipe.ingredients)
        recipe.instructions = clean_lines(recipe.instructions, numbered=True)
        recipe.tips = clean_lines(recipe.tips)
        recipe.servings = max(recipe.servings, 1)
        return recipe

    def _mock_recipe(self, params: RecipeGenerateRequest, pantry_items: Sequence[str]) -> GeneratedRecipe:
        """Deterministic recipe for local development and tests."""
        if params.chef_mode == "mixology":
            ingredients = list(params.ingredients) or list(_MOCK_DRINK_INGREDIENTS)
            title = "Garden Gimlet"
        else:
            ingredients = list(params.ingredients) or list(pantry_items[:6]) or list(_MOCK_DEFAULT_INGREDIENTS)
            title = f"{clean_md(ingredients[0]).title()} Skillet"

        targets = params.macro_targets
        calories = targets.calories if targets and targets.calories else 450
        split = split_macros(calories, params.goal or Goal.MAINTAIN_WEIGHT)
        macros = MacroGrams(
            protein=targets.protein if targets and targets.protein is not None else split.protein_g,
            carbs=targets.carbs if targets and targets.carbs is not None else split.carbs_g,
            fat=targets.fat if targets and targets.fat is not None else split.fat_g,
            fiber=6,
        )
        cook_time = min(params.cooking_time or 25, 25)

        return GeneratedRecipe(
            title=title,
            description=f"A {params.chef_mode} recipe built around {_join(ingredients[:3])}.",
            ingredients=ingredients,
            instructions=[
                "Prep and measure all ingredients.",
                f"Cook the {clean_md(ingredients[0])} until done.",
                "Combine everything, season to taste and serve.",
            ],
            prep_time=10,
            cook_time=cook_time,
            servings=params.servings or 2,
            calories=calories,
            macros=macros,
            tags=[params.chef_mode, *params.dietary_restrictions],
            difficulty=params.difficulty or "intermediate",
            cuisine=params.cuisine or "International",
            tips=["Taste and adjust seasoning before serving."],
        )

    # --- Meal Plans ---

    def build_meal_plan_prompt(
        self,
        *,
        days: int,
        targets: NutritionTargets,
        dietary_restrictions: Sequence[str],
        preferences: Optional[MealPlanPreferences],
    ) -> str:
        macros = targets.macros
        lines = [
            f"Create a {days}-day meal plan for:",
            f"- Goal: {targets.goal.value}",
            f"- Activity level: {targets.activity_level.value}",
            f"- Daily calorie target: {targets.target_calories} kcal",
            f"- Daily macro targets: {macros.protein_g}g protein, {macros.carbs_g}g carbs, "
            f"{macros.fat_g}g fat, {macros.fiber_g}g fiber",
            f"- Dietary restrictions: {_join(dietary_restrictions)}",
        ]
        if preferences and preferences.cuisines:
            lines.append(f"- Preferred cuisines: {_join(preferences.cuisines)}")
        if preferences and preferences.exclude_ingredients:
            lines.append(f"- Never use: {_join(preferences.exclude_ingredients)}")
        lines.append("")
        lines.append(
            "Include breakfast, lunch and dinner for each day with ingredients, instructions, "
            "prep/cook times and nutrition per serving."
        )
        lines.append(
            "Respond with JSON in this format:\n"
            "{\n"
            '  "total_calories": number,\n'
            '  "daily_macros": { "protein": number, "carbs": number, "fat": number, "fiber": number },\n'
            f'  "meals": [ {{ "day": number, "meal_type": string, "recipe": {RECIPE_JSON_SHAPE} }} ],\n'
            '  "shopping_list": string[],\n'
            '  "tips": string[]\n'
            "}"
        )
        return "\n".join(lines)

    async def generate_meal_plan(
        self,
        *,
        days: int,
        targets: NutritionTargets,
        dietary_restrictions: Sequence[str] = (),
        preferences: Optional[MealPlanPreferences] = None,
    ) -> GeneratedMealPlan:
        """Generate a plan constrained by the user's computed targets. Raises AIGenerationError on failure."""
        if self.mode == "mock":
            return self._mock_meal_plan(days, targets, dietary_restrictions, preferences)

        plan = await ai_client.generate_json(
            self.build_meal_plan_prompt(
                days=days,
                targets=targets,
                dietary_restrictions=dietary_restrictions,
                preferences=preferences,
            ),
            GeneratedMealPlan,
            system_instruction=MEAL_PLAN_SYSTEM_PROMPT,
        )
        if plan is None:
            raise AIGenerationError("Failed to generate meal plan")

        for meal in plan.meals:
            self._sanitize_recipe(meal.recipe)
        plan.shopping_list = clean_lines(plan.shopping_list)
        plan.tips = clean_lines(plan.tips)
        return plan

    def _mock_meal_plan(
        self,
        days: int,
        targets: NutritionTargets,
        dietary_restrictions: Sequence[str],
        preferences: Optional[MealPlanPreferences],
    ) -> GeneratedMealPlan:
        plant_based = bool(_PLANT_BASED & {r.lower() for r in dietary_restrictions})
        excluded = [e.lower() for e in (preferences.exclude_ingredients if preferences else [])]

        def allowed(option) -> bool:
            _, ingredients, vegetarian = option
            if plant_based and not vegetarian:
                return False
            return not any(word in item.lower() for item in ingredients for word in excluded)

        meals: list[PlannedMeal] = []
        shopping: list[str] = []
        for day in range(1, days + 1):
            for meal_type, share in PLAN_MEAL_SHARES:
                options = [o for o in _MOCK_MEALS[meal_type] if allowed(o)] or _MOCK_MEALS[meal_type]
                title, ingredients, _ = options[(day - 1) % len(options)]
                kcal = round_half_up(targets.target_calories * share)
                split = split_macros(kcal, targets.goal)
                meals.append(PlannedMeal(
                    day=day,
                    meal_type=meal_type,
                    recipe=GeneratedRecipe(
                        title=title,
                        description=f"{meal_type.title()} for day {day}.",
                        ingredients=list(ingredients),
                        instructions=["Prep the ingredients.", "Cook and assemble.", "Serve."],
                        prep_time=10,
                        cook_time=20,
                        servings=1,
                        calories=kcal,
                        macros=MacroGrams(
                            protein=split.protein_g,
                            carbs=split.carbs_g,
                            fat=split.fat_g,
                            fiber=round(split.fiber_g * share, 1),
                        ),
                        tags=["meal-plan", *dietary_restrictions],
                        difficulty="novice",
                        cuisine="International",
                    ),
                ))
                for item in ingredients:
                    if item not in shopping:
                        shopping.append(item)

        return GeneratedMealPlan(
            total_calories=targets.target_calories,
            daily_macros=MacroGrams(**targets.macros.as_macros()),
            meals=meals,
            shopping_list=sorted(shopping),
            tips=[
                "Batch-cook grains and proteins at the start of the week.",
                "Drink water with every meal.",
            ],
        )

    # --- Photo analysis ---

    async def analyze_food_photo(self, image_bytes: bytes, mime_type: str, meal_type: Optional[str] = None) -> FoodAnalysis:
        """Estimate foods, calories and macros from a meal photo. Raises AIGenerationError on failure."""
        if self.mode == "mock":
            return self._mock_food_analysis(meal_type)

        analysis = await ai_client.generate_json(
            FOOD_ANALYSIS_PROMPT,
            FoodAnalysis,
            system_instruction=FOOD_ANALYSIS_SYSTEM_PROMPT,
            images=[(image_bytes, mime_type)],
        )
        if analysis is None:
            raise AIGenerationError("Failed to analyze food image")
        for food in analysis.foods:
            food.name = clean_md(food.name) or "Unknown food"
        analysis.source = "ai"
        return analysis

    def _mock_food_analysis(self, meal_type: Optional[str]) -> FoodAnalysis:
        """Conservative example numbers, not a real estimate."""
        calories = {"breakfast": 400, "lunch": 550, "dinner": 450, "snack": 200}.get(meal_type or "", 350)
        macros = MacroGrams(protein=18, carbs=45, fat=12, fiber=6)
        return FoodAnalysis(
            foods=[AnalyzedFood(name="Mixed plate", quantity="1 portion", calories=calories, macros=macros)],
            total_calories=calories,
            total_macros=macros,
            confidence=0.3,
            source="mock",
        )


ai_service = ChefAIService()
