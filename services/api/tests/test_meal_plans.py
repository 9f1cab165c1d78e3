from chefgpt.services.ai_service import ai_service
from chefgpt.services.nutrition_service import compute_targets


def test_generate_plan_from_profile(client, auth_headers, profile_user):
    res = client.post("/api/meal-plans/generate", headers=auth_headers,
                      json={"days": 3, "start_date": "2026-04-06"})
    assert res.status_code == 201, res.text
    plan = res.json()

    assert plan["targets"]["target_calories"] == 1682
    assert plan["total_calories"] == 1682
    assert plan["daily_macros"] == {"protein": 147, "carbs": 168, "fat": 47, "fiber": 25}
    assert plan["start_date"] == "2026-04-06"
    assert plan["end_date"] == "2026-04-08"
    assert len(plan["meals"]) == 9
    assert {m["meal_type"] for m in plan["meals"]} == {"breakfast", "lunch", "dinner"}
    assert plan["shopping_list"] == sorted(set(plan["shopping_list"]))

    day_one = sum(m["recipe"]["calories"] for m in plan["meals"] if m["day"] == 1)
    assert abs(day_one - 1682) <= 2

    res = client.get(f"/api/meal-plans/{plan['id']}", headers=auth_headers)
    assert res.status_code == 200
    assert len(client.get("/api/meal-plans", headers=auth_headers).json()) == 1


def test_user_stats_override_profile(client, auth_headers):
    res = client.post("/api/meal-plans/generate", headers=auth_headers, json={
        "days": 1,
        "goal": "gain_muscle",
        "activity_level": "very_active",
        "user_stats": {"sex": "female", "weight_kg": 60, "height_cm": 165, "age": 28},
    })
    assert res.status_code == 201, res.text
    expected = compute_targets(
        sex="female", weight_kg=60, height_cm=165, age=28,
        activity_level="very_active", goal="gain_muscle",
    )
    assert res.json()["targets"]["target_calories"] == expected.target_calories
    assert res.json()["goal"] == "gain_muscle"


def test_plan_without_profile_is_422_with_field(client, auth_headers):
    res = client.post("/api/meal-plans/generate", headers=auth_headers, json={"days": 2})
    assert res.status_code == 422
    assert res.json()["field"] in {"activity_level", "goal", "sex"}


def test_plan_days_are_bounded(client, auth_headers, profile_user):
    res = client.post("/api/meal-plans/generate", headers=auth_headers, json={"days": 30})
    assert res.status_code == 422


def test_vegetarian_plan_excludes_meat(client, auth_headers, profile_user):
    res = client.post("/api/meal-plans/generate", headers=auth_headers, json={
        "days": 4,
        "dietary_restrictions": ["vegetarian"],
        "preferences": {"exclude_ingredients": ["chickpea"]},
    })
    shopping = " ".join(res.json()["shopping_list"]).lower()
    for word in ("chicken", "turkey", "salmon", "tuna", "chickpea"):
        assert word not in shopping


def test_meal_plans_are_private(client, auth_headers, other_headers, profile_user):
    plan = client.post("/api/meal-plans/generate", headers=auth_headers, json={"days": 1}).json()
    assert client.get(f"/api/meal-plans/{plan['id']}", headers=other_headers).status_code == 404
    assert client.get("/api/meal-plans", headers=other_headers).json() == []


def test_gemini_failure_is_502(client, auth_headers, profile_user, monkeypatch):
    monkeypatch.setattr(ai_service, "mode", "gemini")
    res = client.post("/api/meal-plans/generate", headers=auth_headers, json={"days": 1})
    assert res.status_code == 502
