def test_shopping_list_crud(client, auth_headers):
    res = client.post("/api/shopping-lists", headers=auth_headers,
                      json={"name": "Weekend", "items": ["eggs", "bread"]})
    assert res.status_code == 201
    sl = res.json()
    assert sl["completed"] is False

    res = client.patch(f"/api/shopping-lists/{sl['id']}", headers=auth_headers,
                       json={"items": ["eggs", "bread", "butter"], "completed": True})
    assert res.status_code == 200
    assert res.json()["items"] == ["eggs", "bread", "butter"]
    assert res.json()["completed"] is True
    assert res.json()["name"] == "Weekend"

    assert len(client.get("/api/shopping-lists", headers=auth_headers).json()) == 1
    assert client.delete(f"/api/shopping-lists/{sl['id']}", headers=auth_headers).status_code == 204
    assert client.get("/api/shopping-lists", headers=auth_headers).json() == []


def test_shopping_list_from_meal_plan(client, auth_headers, profile_user):
    plan = client.post("/api/meal-plans/generate", headers=auth_headers, json={"days": 2}).json()

    res = client.post(f"/api/shopping-lists/from-meal-plan/{plan['id']}", headers=auth_headers)
    assert res.status_code == 201
    sl = res.json()
    assert sl["items"] == plan["shopping_list"]
    assert plan["name"] in sl["name"]


def test_shopping_lists_are_private(client, auth_headers, other_headers, profile_user):
    sl = client.post("/api/shopping-lists", headers=auth_headers, json={"name": "Mine"}).json()
    assert client.patch(f"/api/shopping-lists/{sl['id']}", headers=other_headers,
                        json={"name": "Stolen"}).status_code == 404

    plan = client.post("/api/meal-plans/generate", headers=auth_headers, json={"days": 1}).json()
    res = client.post(f"/api/shopping-lists/from-meal-plan/{plan['id']}", headers=other_headers)
    assert res.status_code == 404
