import io

from chefgpt.models import User


def _log(client, headers, **fields):
    payload = {"meal_type": "lunch", "food_name": "Burrito", "calories": 600}
    payload.update(fields)
    res = client.post("/api/calories/manual", headers=headers, json=payload)
    assert res.status_code == 201, res.text
    return res.json()


def test_manual_entry(client, auth_headers):
    entry = _log(client, auth_headers, date="2026-03-14T12:30:00Z",
                 macros={"protein": 30, "carbs": 70, "fat": 20, "fiber": 9})
    assert entry["source"] == "manual"
    assert entry["calories"] == 600
    assert entry["macros"]["protein"] == 30


def test_manual_entry_rejects_negative_calories(client, auth_headers):
    res = client.post("/api/calories/manual", headers=auth_headers,
                      json={"meal_type": "lunch", "food_name": "Air", "calories": -5})
    assert res.status_code == 422


def test_daily_summary_against_targets(client, auth_headers, profile_user):
    _log(client, auth_headers, date="2026-03-14T08:00:00Z", calories=500, macros={"protein": 40})
    _log(client, auth_headers, date="2026-03-14T19:00:00Z", calories=341, macros={"protein": 33.5, "carbs": 20})
    _log(client, auth_headers, date="2026-03-15T08:00:00Z", calories=999)

    res = client.get("/api/calories/daily", headers=auth_headers, params={"date": "2026-03-14"})
    assert res.status_code == 200
    data = res.json()
    assert data["timezone"] == "UTC"
    assert data["totals"]["calories"] == 841
    assert data["totals"]["protein_g"] == 73.5
    assert data["totals"]["entry_count"] == 2
    assert data["targets"]["target_calories"] == 1682
    assert data["progress"]["calories"]["percent"] == 50.0
    assert len(data["entries"]) == 2


def test_daily_summary_uses_profile_timezone(client, auth_headers, db_session):
    db_session.add(User(id="user_test_1", timezone="America/Los_Angeles"))
    db_session.commit()

    # 05:00 UTC on the 15th is the evening of the 14th in Los Angeles
    _log(client, auth_headers, date="2026-03-15T05:00:00Z", calories=700)

    la = client.get("/api/calories/daily", headers=auth_headers, params={"date": "2026-03-14"}).json()
    assert la["timezone"] == "America/Los_Angeles"
    assert la["totals"]["calories"] == 700
    assert la["targets"] is None
    assert la["progress"] == {}

    next_day = client.get("/api/calories/daily", headers=auth_headers, params={"date": "2026-03-15"}).json()
    assert next_day["totals"]["calories"] == 0


def test_list_entries_by_range(client, auth_headers):
    _log(client, auth_headers, date="2026-03-10T12:00:00Z", food_name="A")
    _log(client, auth_headers, date="2026-03-12T12:00:00Z", food_name="B")
    _log(client, auth_headers, date="2026-03-14T12:00:00Z", food_name="C")

    res = client.get("/api/calories", headers=auth_headers,
                     params={"start_date": "2026-03-11", "end_date": "2026-03-14"})
    assert res.status_code == 200
    assert [e["food_name"] for e in res.json()] == ["B", "C"]

    res = client.get("/api/calories", headers=auth_headers,
                     params={"start_date": "2026-03-14", "end_date": "2026-03-11"})
    assert res.status_code == 422


def test_log_from_recipe_scales_servings(client, auth_headers):
    recipe = client.post("/api/recipes/generate", headers=auth_headers, json={
        "chef_mode": "macros",
        "ingredients": ["chicken breast", "rice"],
        "macro_targets": {"calories": 500, "protein": 40, "carbs": 50, "fat": 14},
    }).json()

    res = client.post("/api/calories/from-recipe", headers=auth_headers, json={
        "recipe_id": recipe["id"],
        "servings": 2,
        "meal_type": "dinner",
        "date": "2026-03-14T19:00:00Z",
    })
    assert res.status_code == 201
    entry = res.json()
    assert entry["source"] == "recipe"
    assert entry["calories"] == 1000
    assert entry["macros"]["protein"] == 80
    assert entry["quantity"] == 2
    assert entry["unit"] == "serving"


def test_log_from_someone_elses_recipe_is_404(client, auth_headers, other_headers):
    recipe = client.post("/api/recipes/generate", headers=auth_headers, json={"chef_mode": "master"}).json()
    res = client.post("/api/calories/from-recipe", headers=other_headers, json={
        "recipe_id": recipe["id"], "meal_type": "lunch",
    })
    assert res.status_code == 404


def test_analyze_photo_logs_entries(client, auth_headers):
    files = {"image": ("lunch.jpg", io.BytesIO(b"\xff\xd8\xff fake jpeg"), "image/jpeg")}
    res = client.post("/api/calories/analyze-photo", headers=auth_headers, files=files, data={"meal_type": "lunch"})
    assert res.status_code == 201, res.text
    data = res.json()
    assert data["analysis"]["source"] == "mock"
    assert len(data["entries"]) == len(data["analysis"]["foods"]) == 1
    entry = data["entries"][0]
    assert entry["source"] == "photo"
    assert entry["meal_type"] == "lunch"
    assert entry["quantity"] == 1
    assert entry["unit"] == "portion"


def test_analyze_photo_rejects_empty_and_non_images(client, auth_headers):
    empty = {"image": ("empty.jpg", io.BytesIO(b""), "image/jpeg")}
    assert client.post("/api/calories/analyze-photo", headers=auth_headers, files=empty).status_code == 400

    text = {"image": ("notes.txt", io.BytesIO(b"hello"), "text/plain")}
    assert client.post("/api/calories/analyze-photo", headers=auth_headers, files=text).status_code == 400


def test_analyze_photo_rejects_large_upload(client, auth_headers, monkeypatch):
    from chefgpt.settings import settings
    monkeypatch.setattr(settings, "max_upload_bytes", 16)
    files = {"image": ("big.png", io.BytesIO(b"x" * 64), "image/png")}
    assert client.post("/api/calories/analyze-photo", headers=auth_headers, files=files).status_code == 413


def test_delete_entry_is_scoped_to_owner(client, auth_headers, other_headers):
    entry = _log(client, auth_headers)
    assert client.delete(f"/api/calories/{entry['id']}", headers=other_headers).status_code == 404
    assert client.delete(f"/api/calories/{entry['id']}", headers=auth_headers).status_code == 204
    assert client.get("/api/calories", headers=auth_headers).json() == []
