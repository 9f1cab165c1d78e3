"""Nutrition & goal calculator.

Single implementation of the calorie math shared by onboarding, the profile
page, meal-plan generation and macro targeting:

    estimate_bmr -> maintenance_calories -> adjust_for_goal -> split_macros

plus the per-day aggregation of logged calorie entries. Everything here is
pure. Bad input raises NutritionInputError; nothing falls back to 0 or to a
default tier.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo
from enum import Enum
from typing import Any, Iterable, Mapping, Optional


class NutritionInputError(ValueError):
    """Raised when a calculator input is missing, out of range or unknown."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ActivityLevel(str, Enum):
    SEDENTARY = "sedentary"
    LIGHTLY_ACTIVE = "lightly_active"
    MODERATELY_ACTIVE = "moderately_active"
    VERY_ACTIVE = "very_active"
    EXTREMELY_ACTIVE = "extremely_active"


class Goal(str, Enum):
    LOSE_WEIGHT = "lose_weight"
    GAIN_MUSCLE = "gain_muscle"
    MAINTAIN_WEIGHT = "maintain_weight"
    EAT_HEALTHY = "eat_healthy"


class BMRFormula(str, Enum):
    MIFFLIN_ST_JEOR = "mifflin_st_jeor"
    HARRIS_BENEDICT = "harris_benedict"


ACTIVITY_MULTIPLIERS: dict[ActivityLevel, float] = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHTLY_ACTIVE: 1.375,
    ActivityLevel.MODERATELY_ACTIVE: 1.55,
    ActivityLevel.VERY_ACTIVE: 1.725,
    ActivityLevel.EXTREMELY_ACTIVE: 1.9,
}

GOAL_ADJUSTMENTS: dict[Goal, float] = {
    Goal.LOSE_WEIGHT: 0.85,
    Goal.GAIN_MUSCLE: 1.10,
    Goal.MAINTAIN_WEIGHT: 1.0,
    Goal.EAT_HEALTHY: 1.0,
}

# (protein, carbs, fat) as fractions of total calories
MACRO_RATIOS: dict[Goal, tuple[float, float, float]] = {
    Goal.LOSE_WEIGHT: (0.35, 0.40, 0.25),
    Goal.GAIN_MUSCLE: (0.30, 0.45, 0.25),
    Goal.MAINTAIN_WEIGHT: (0.25, 0.45, 0.30),
    Goal.EAT_HEALTHY: (0.25, 0.45, 0.30),
}

KCAL_PER_G_PROTEIN = 4
KCAL_PER_G_CARBS = 4
KCAL_PER_G_FAT = 9
FIBER_TARGET_G = 25

MACRO_KEYS = ("protein", "carbs", "fat", "fiber")


@dataclass(frozen=True)
class MacroSplit:
    protein_g: int
    carbs_g: int
    fat_g: int
    fiber_g: int = FIBER_TARGET_G

    @property
    def kcal(self) -> int:
        return (
            self.protein_g * KCAL_PER_G_PROTEIN
            + self.carbs_g * KCAL_PER_G_CARBS
            + self.fat_g * KCAL_PER_G_FAT
        )

    def as_macros(self) -> dict[str, int]:
        """Shape used by Recipe.macros / User.daily_macros."""
        return {
            "protein": self.protein_g,
            "carbs": self.carbs_g,
            "fat": self.fat_g,
            "fiber": self.fiber_g,
        }


@dataclass(frozen=True)
class NutritionTargets:
    bmr: int
    maintenance_calories: int
    target_calories: int
    macros: MacroSplit
    bmi: float
    bmi_category: str
    formula: BMRFormula
    activity_level: ActivityLevel
    goal: Goal


@dataclass(frozen=True)
class DailyTotals:
    day: date
    calories: float = 0.0
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0
    fiber_g: float = 0.0
    entry_count: int = 0


@dataclass(frozen=True)
class NutrientProgress:
    consumed: float
    target: float
    remaining: float
    percent: float


@dataclass(frozen=True)
class DailyProgress:
    totals: DailyTotals
    targets: Optional[NutritionTargets] = None
    progress: dict[str, NutrientProgress] = field(default_factory=dict)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up, like the web client's Math.round."""
    return int(math.floor(value + 0.5))


def _require_positive(name: str, value: Any) -> float:
    if value is None or value == "":
        raise NutritionInputError(name, f"{name} is required")
    if isinstance(value, bool):
        raise NutritionInputError(name, f"{name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise NutritionInputError(name, f"{name} must be a number, got {value!r}")
    if not math.isfinite(number) or number <= 0:
        raise NutritionInputError(name, f"{name} must be greater than zero, got {value!r}")
    return number


def _coerce_enum(enum_cls, value: Any, name: str):
    if isinstance(value, enum_cls):
        return value
    if value is None or value == "":
        raise NutritionInputError(name, f"{name} is required")
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise NutritionInputError(name, f"Unknown {name} {value!r}; expected one of: {allowed}")


def parse_sex(value: Any) -> Sex:
    return _coerce_enum(Sex, value, "sex")


def parse_activity_level(value: Any) -> ActivityLevel:
    return _coerce_enum(ActivityLevel, value, "activity_level")


def parse_goal(value: Any) -> Goal:
    return _coerce_enum(Goal, value, "goal")


def estimate_bmr(
    sex: Any,
    weight_kg: Any,
    height_cm: Any,
    age: Any,
    formula: Any = BMRFormula.MIFFLIN_ST_JEOR,
) -> int:
    """Basal metabolic rate in kcal/day.

    Mifflin-St Jeor is canonical. Harris-Benedict is only used when the caller
    asks for it explicitly. Any sex other than "male" takes the non-male
    constants.
    """
    sex = parse_sex(sex)
    weight = _require_positive("weight_kg", weight_kg)
    height = _require_positive("height_cm", height_cm)
    years = _require_positive("age", age)
    formula = _coerce_enum(BMRFormula, formula, "formula")
    male = sex is Sex.MALE

    if formula is BMRFormula.HARRIS_BENEDICT:
        if male:
            bmr = 88.362 + 13.397 * weight + 4.799 * height - 5.677 * years
        else:
            bmr = 447.593 + 9.247 * weight + 3.098 * height - 4.330 * years
    else:
        bmr = 10 * weight + 6.25 * height - 5 * years + (5 if male else -161)

    if bmr <= 0:
        raise NutritionInputError("bmr", "Inputs produce a non-positive BMR; check weight, height and age")
    return round_half_up(bmr)


def maintenance_calories(bmr: Any, activity_level: Any) -> int:
    """BMR scaled by the activity multiplier."""
    base = _require_positive("bmr", bmr)
    level = parse_activity_level(activity_level)
    return round_half_up(base * ACTIVITY_MULTIPLIERS[level])


def adjust_for_goal(maintenance_kcal: Any, goal: Any) -> int:
    """Apply the goal's deficit or surplus."""
    kcal = _require_positive("maintenance_kcal", maintenance_kcal)
    return round_half_up(kcal * GOAL_ADJUSTMENTS[parse_goal(goal)])


def split_macros(target_kcal: Any, goal: Any) -> MacroSplit:
    """Allocate calories into protein/carbs/fat grams. Fiber is a fixed 25 g."""
    kcal = _require_positive("target_kcal", target_kcal)
    protein, carbs, fat = MACRO_RATIOS[parse_goal(goal)]
    return MacroSplit(
        protein_g=round_half_up(kcal * protein / KCAL_PER_G_PROTEIN),
        carbs_g=round_half_up(kcal * carbs / KCAL_PER_G_CARBS),
        fat_g=round_half_up(kcal * fat / KCAL_PER_G_FAT),
    )


def calculate_bmi(weight_kg: Any, height_cm: Any) -> float:
    weight = _require_positive("weight_kg", weight_kg)
    height_m = _require_positive("height_cm", height_cm) / 100
    return round(weight / (height_m ** 2), 1)


def bmi_category(bmi: float) -> str:
    if bmi < 18.5:
        return "underweight"
    if bmi < 25:
        return "normal"
    if bmi < 30:
        return "overweight"
    return "obese"


def compute_targets(
    *,
    sex: Any,
    weight_kg: Any,
    height_cm: Any,
    age: Any,
    activity_level: Any,
    goal: Any,
    formula: Any = BMRFormula.MIFFLIN_ST_JEOR,
) -> NutritionTargets:
    """Run the full pipeline for one person."""
    level = parse_activity_level(activity_level)
    goal = parse_goal(goal)
    formula = _coerce_enum(BMRFormula, formula, "formula")

    bmr = estimate_bmr(sex, weight_kg, height_cm, age, formula)
    maintenance = maintenance_calories(bmr, level)
    target = adjust_for_goal(maintenance, goal)
    bmi = calculate_bmi(weight_kg, height_cm)

    return NutritionTargets(
        bmr=bmr,
        maintenance_calories=maintenance,
        target_calories=target,
        macros=split_macros(target, goal),
        bmi=bmi,
        bmi_category=bmi_category(bmi),
        formula=formula,
        activity_level=level,
        goal=goal,
    )


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def targets_for_profile(profile: Any, formula: Any = BMRFormula.MIFFLIN_ST_JEOR) -> NutritionTargets:
    """Compute targets from a User row (or any object with the same profile fields)."""
    return compute_targets(
        sex=_field(profile, "gender"),
        weight_kg=_field(profile, "weight_kg"),
        height_cm=_field(profile, "height_cm"),
        age=_field(profile, "age"),
        activity_level=_field(profile, "activity_level"),
        goal=_field(profile, "goal"),
        formula=formula,
    )


def to_utc(value: datetime) -> datetime:
    """Normalise a timestamp to aware UTC. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_date(value: date, tz: tzinfo) -> date:
    if not isinstance(value, datetime):
        return value
    return to_utc(value).astimezone(tz).date()


def _amount(value: Any) -> float:
    return float(value) if value is not None else 0.0


def aggregate_daily(entries: Iterable[Any], day: date, tz: Optional[tzinfo] = None) -> DailyTotals:
    """Sum the calorie entries logged on `day` in the given timezone.

    Entries are CalorieEntry rows or mappings with `date`, `calories` and a
    `macros` dict. Missing macro fields count as zero.
    """
    zone = tz or timezone.utc
    if isinstance(day, datetime):
        day = day.date()

    calories = 0.0
    sums = dict.fromkeys(MACRO_KEYS, 0.0)
    count = 0
    for entry in entries:
        logged = _field(entry, "date")
        if logged is None or local_date(logged, zone) != day:
            continue
        count += 1
        calories += _amount(_field(entry, "calories"))
        macros = _field(entry, "macros") or {}
        for key in MACRO_KEYS:
            sums[key] += _amount(macros.get(key))

    return DailyTotals(
        day=day,
        calories=round(calories, 1),
        protein_g=round(sums["protein"], 1),
        carbs_g=round(sums["carbs"], 1),
        fat_g=round(sums["fat"], 1),
        fiber_g=round(sums["fiber"], 1),
        entry_count=count,
    )


def _progress(consumed: float, target: float) -> NutrientProgress:
    percent = round(consumed / target * 100, 1) if target > 0 else 0.0
    return NutrientProgress(
        consumed=consumed,
        target=float(target),
        remaining=round(target - consumed, 1),
        percent=percent,
    )


def compare_to_targets(totals: DailyTotals, targets: Optional[NutritionTargets]) -> DailyProgress:
    if targets is None:
        return DailyProgress(totals=totals)

    return DailyProgress(
        totals=totals,
        targets=targets,
        progress={
            "calories": _progress(totals.calories, targets.target_calories),
            "protein_g": _progress(totals.protein_g, targets.macros.protein_g),
            "carbs_g": _progress(totals.carbs_g, targets.macros.carbs_g),
            "fat_g": _progress(totals.fat_g, targets.macros.fat_g),
            "fiber_g": _progress(totals.fiber_g, targets.macros.fiber_g),
        },
    )


def calculate_macros_for_log(recipe_calories: Any, recipe_macros: Optional[dict], servings: Any) -> dict:
    """
    Scale a recipe's per-serving nutrition for a calorie entry.
    Rounds macros to one decimal so we don't store float artifacts (e.g., 14.000000002).
    """
    portions = _require_positive("servings", servings)
    macros = recipe_macros or {}
    return {
        "calories": round_half_up(_amount(recipe_calories) * portions),
        "macros": {key: round(_amount(macros.get(key)) * portions, 1) for key in MACRO_KEYS},
    }
