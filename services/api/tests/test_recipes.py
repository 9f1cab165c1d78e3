from datetime import date, timedelta

from chefgpt.models import SavedRecipe


def _generate(client, headers, **fields):
    payload = {"chef_mode": "master"}
    payload.update(fields)
    res = client.post("/api/recipes/generate", headers=headers, json=payload)
    assert res.status_code == 201, res.text
    return res.json()


def test_generate_recipe_is_persisted(client, auth_headers):
    recipe = _generate(client, auth_headers, chef_mode="pantry", ingredients=["tofu", "bok choy"], servings=3)
    assert recipe["chef_mode"] == "pantry"
    assert recipe["ingredients"][:2] == ["tofu", "bok choy"]
    assert recipe["servings"] == 3
    assert recipe["instructions"]

    res = client.get(f"/api/recipes/{recipe['id']}", headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["title"] == recipe["title"]


def test_macro_targets_drive_recipe_nutrition(client, auth_headers):
    recipe = _generate(client, auth_headers, chef_mode="macros",
                       macro_targets={"calories": 600, "protein": 50})
    assert recipe["calories"] == 600
    assert recipe["macros"]["protein"] == 50


def test_pantry_mode_uses_items_expiring_first(client, auth_headers):
    today = date.today()
    for name, days in [("flour", None), ("spinach", 1), ("old milk", -2), ("carrots", 5)]:
        body = {"name": name}
        if days is not None:
            body["expiry_date"] = (today + timedelta(days=days)).isoformat()
        client.post("/api/pantry/", headers=auth_headers, json=body)

    recipe = _generate(client, auth_headers, chef_mode="pantry")
    assert recipe["ingredients"] == ["spinach", "carrots", "flour"]


def test_invalid_chef_mode_is_422(client, auth_headers):
    res = client.post("/api/recipes/generate", headers=auth_headers, json={"chef_mode": "sous"})
    assert res.status_code == 422


def test_list_recipes_filters(client, auth_headers, other_headers):
    _generate(client, auth_headers, chef_mode="mixology")
    _generate(client, auth_headers, chef_mode="master", ingredients=["salmon"])
    _generate(client, other_headers, chef_mode="master")

    all_mine = client.get("/api/recipes", headers=auth_headers).json()
    assert len(all_mine) == 2

    drinks = client.get("/api/recipes", headers=auth_headers, params={"chef_mode": "mixology"}).json()
    assert [r["chef_mode"] for r in drinks] == ["mixology"]

    salmon = client.get("/api/recipes", headers=auth_headers, params={"q": "SALMON"}).json()
    assert len(salmon) == 1


def test_recipes_are_private(client, auth_headers, other_headers):
    recipe = _generate(client, auth_headers)
    assert client.get(f"/api/recipes/{recipe['id']}", headers=other_headers).status_code == 404
    assert client.delete(f"/api/recipes/{recipe['id']}", headers=other_headers).status_code == 404


def test_cookbook_save_list_and_unsave(client, auth_headers):
    recipe = _generate(client, auth_headers)

    res = client.post("/api/cookbook", headers=auth_headers, json={"recipe_id": recipe["id"]})
    assert res.status_code == 201
    saved = res.json()
    assert saved["collection_name"] == "favorites"
    assert saved["recipe"]["id"] == recipe["id"]

    # Saving again is a no-op
    again = client.post("/api/cookbook", headers=auth_headers, json={"recipe_id": recipe["id"]})
    assert again.status_code == 200
    assert again.json()["id"] == saved["id"]

    client.post("/api/cookbook", headers=auth_headers, json={"recipe_id": recipe["id"], "collection_name": "weeknight"})
    assert len(client.get("/api/cookbook", headers=auth_headers).json()) == 2
    assert len(client.get("/api/cookbook", headers=auth_headers, params={"collection": "weeknight"}).json()) == 1

    assert client.delete(f"/api/cookbook/{recipe['id']}", headers=auth_headers).status_code == 204
    assert client.get("/api/cookbook", headers=auth_headers).json() == []
    assert client.delete(f"/api/cookbook/{recipe['id']}", headers=auth_headers).status_code == 404


def test_cannot_save_another_users_recipe(client, auth_headers, other_headers):
    recipe = _generate(client, auth_headers)
    res = client.post("/api/cookbook", headers=other_headers, json={"recipe_id": recipe["id"]})
    assert res.status_code == 404


def test_deleting_recipe_removes_cookbook_entries(client, auth_headers, db_session):
    recipe = _generate(client, auth_headers)
    client.post("/api/cookbook", headers=auth_headers, json={"recipe_id": recipe["id"]})

    assert client.delete(f"/api/recipes/{recipe['id']}", headers=auth_headers).status_code == 204
    assert client.get(f"/api/recipes/{recipe['id']}", headers=auth_headers).status_code == 404
    assert db_session.query(SavedRecipe).count() == 0
    assert client.get("/api/cookbook", headers=auth_headers).json() == []
