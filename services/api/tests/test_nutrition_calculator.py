import pytest

from chefgpt.services.nutrition_service import (
    ACTIVITY_MULTIPLIERS,
    ActivityLevel,
    BMRFormula,
    Goal,
    NutritionInputError,
    adjust_for_goal,
    bmi_category,
    calculate_bmi,
    calculate_macros_for_log,
    compute_targets,
    estimate_bmr,
    maintenance_calories,
    round_half_up,
    split_macros,
)


def test_round_half_up_matches_client_rounding():
    assert round_half_up(1648.75) == 1649
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3  # not banker's rounding
    assert round_half_up(2.49) == 2


@pytest.mark.parametrize("weight,height,age", [(70, 175, 30), (55.5, 162, 41), (102, 190, 67)])
def test_male_bmr_exceeds_female_by_166(weight, height, age):
    male = estimate_bmr("male", weight, height, age)
    female = estimate_bmr("female", weight, height, age)
    assert male - female == 166


def test_non_male_sex_uses_female_constants():
    assert estimate_bmr("other", 70, 175, 30) == estimate_bmr("female", 70, 175, 30)


def test_sex_is_case_insensitive():
    assert estimate_bmr("Male", 70, 175, 30) == estimate_bmr("male", 70, 175, 30)


def test_sedentary_is_bmr_times_1_2():
    assert maintenance_calories(1500, "sedentary") == 1800
    assert maintenance_calories(1649, ActivityLevel.SEDENTARY) == 1979


def test_maintenance_is_monotonic_in_activity():
    levels = sorted(ACTIVITY_MULTIPLIERS, key=ACTIVITY_MULTIPLIERS.get)
    values = [maintenance_calories(1600, level) for level in levels]
    assert values == sorted(values)
    assert len(set(values)) == len(values)


@pytest.mark.parametrize("kcal", [1200, 1979, 2500, 3333])
def test_goal_adjustments(kcal):
    assert adjust_for_goal(kcal, "lose_weight") == round_half_up(kcal * 0.85)
    assert adjust_for_goal(kcal, "gain_muscle") == round_half_up(kcal * 1.10)
    assert adjust_for_goal(kcal, "maintain_weight") == kcal
    assert adjust_for_goal(kcal, "eat_healthy") == kcal


@pytest.mark.parametrize("goal", list(Goal))
@pytest.mark.parametrize("kcal", [1200, 1682, 2150, 3001, 3835])
def test_macro_calories_add_back_up(goal, kcal):
    split = split_macros(kcal, goal)
    # Each gram count is off by at most half a gram
    assert abs(split.kcal - kcal) <= 0.5 * (4 + 4 + 9)
    assert split.fiber_g == 25


def test_macro_rounding_drift_worst_case():
    split = split_macros(3835, Goal.LOSE_WEIGHT)
    assert (split.protein_g, split.carbs_g, split.fat_g) == (336, 384, 107)
    assert split.kcal == 3843


def test_end_to_end_example():
    targets = compute_targets(
        sex="male",
        weight_kg=70,
        height_cm=175,
        age=30,
        activity_level="sedentary",
        goal="lose_weight",
    )
    assert targets.bmr == 1649
    assert targets.maintenance_calories == 1979
    assert targets.target_calories == 1682
    assert targets.macros.as_macros() == {"protein": 147, "carbs": 168, "fat": 47, "fiber": 25}
    assert targets.formula is BMRFormula.MIFFLIN_ST_JEOR
    assert targets.bmi == 22.9
    assert targets.bmi_category == "normal"


def test_harris_benedict_only_when_requested():
    assert estimate_bmr("male", 70, 175, 30, formula="harris_benedict") == 1696
    assert estimate_bmr("male", 70, 175, 30) == 1649


@pytest.mark.parametrize(
    "kwargs,field",
    [
        ({"weight_kg": 0}, "weight_kg"),
        ({"weight_kg": -3}, "weight_kg"),
        ({"height_cm": None}, "height_cm"),
        ({"age": "thirty"}, "age"),
        ({"sex": "robot"}, "sex"),
        ({"activity_level": "couch"}, "activity_level"),
        ({"goal": "bulk"}, "goal"),
        ({"formula": "katch"}, "formula"),
    ],
)
def test_invalid_inputs_raise_with_field(kwargs, field):
    params = dict(
        sex="female",
        weight_kg=60,
        height_cm=165,
        age=28,
        activity_level="moderately_active",
        goal="maintain_weight",
    )
    params.update(kwargs)
    with pytest.raises(NutritionInputError) as exc:
        compute_targets(**params)
    assert exc.value.field == field


def test_non_positive_bmr_is_rejected():
    with pytest.raises(NutritionInputError) as exc:
        estimate_bmr("female", 1, 1, 100)
    assert exc.value.field == "bmr"


def test_unknown_activity_level_is_not_silently_defaulted():
    with pytest.raises(NutritionInputError):
        maintenance_calories(1500, "moderate")


def test_bmi_categories():
    assert calculate_bmi(70, 175) == 22.9
    assert bmi_category(18.4) == "underweight"
    assert bmi_category(18.5) == "normal"
    assert bmi_category(25) == "overweight"
    assert bmi_category(30) == "obese"


def test_macros_for_log_scales_per_serving_values():
    logged = calculate_macros_for_log(450, {"protein": 30, "carbs": 40, "fat": 12}, 1.5)
    assert logged["calories"] == 675
    assert logged["macros"] == {"protein": 45.0, "carbs": 60.0, "fat": 18.0, "fiber": 0.0}


def test_macros_for_log_rejects_zero_servings():
    with pytest.raises(NutritionInputError) as exc:
        calculate_macros_for_log(450, {}, 0)
    assert exc.value.field == "servings"
