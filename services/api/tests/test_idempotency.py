import pytest
import uuid
import json
from unittest.mock import patch, AsyncMock
from fakeredis import FakeAsyncRedis
from chefgpt.infra.idempotency import idempotency_precheck, idempotency_store_result, idempotency_clear_key
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse

# --- Mocking Redis ---

@pytest.fixture
def fake_redis():
    return FakeAsyncRedis(decode_responses=True)

@pytest.fixture
def patch_redis_client(fake_redis):
    with patch("chefgpt.infra.idempotency.get_redis", return_value=fake_redis):
        yield

def _request(headers, body=b'{"chef_mode": "master"}'):
    req = AsyncMock(spec=Request)
    req.headers = headers
    req.method = "POST"
    req.url.path = "/api/recipes/generate"
    req.body = AsyncMock(return_value=body)
    return req

# --- Unit Tests for Logic ---

@pytest.mark.asyncio
async def test_missing_header_skips_idempotency(patch_redis_client):
    res = await idempotency_precheck(_request({}), user_id="u1", route_key="test")
    assert res is None

@pytest.mark.asyncio
async def test_missing_header_when_required(patch_redis_client):
    with pytest.raises(HTTPException) as exc:
        await idempotency_precheck(_request({}), user_id="u1", route_key="test", required=True)
    assert exc.value.status_code == 400

@pytest.mark.asyncio
async def test_idempotency_flow(fake_redis, patch_redis_client):
    idem_key = str(uuid.uuid4())
    req = _request({"Idempotency-Key": idem_key})

    # 1. First call -> returns key to proceed
    res = await idempotency_precheck(req, user_id="u1", route_key="recipe_generate")
    assert isinstance(res, tuple)
    rkey, rhash, body = res
    assert rkey == f"chefgpt:idemp:u1:recipe_generate:{idem_key}"
    assert b"chef_mode" in body

    data = json.loads(await fake_redis.get(rkey))
    assert data["state"] == "processing"

    # 2. Concurrent duplicate -> 409
    with pytest.raises(HTTPException) as exc:
        await idempotency_precheck(req, user_id="u1", route_key="recipe_generate")
    assert exc.value.status_code == 409

    # 3. Store result
    await idempotency_store_result(rkey, rhash, status=201, body={"id": "r1"})
    data = json.loads(await fake_redis.get(rkey))
    assert data["state"] == "done"
    assert data["status"] == 201

    # 4. Replay
    res2 = await idempotency_precheck(req, user_id="u1", route_key="recipe_generate")
    assert isinstance(res2, JSONResponse)
    assert json.loads(res2.body) == {"id": "r1"}
    assert res2.status_code == 201

    # 5. Same key, different payload -> 409
    with pytest.raises(HTTPException) as exc:
        await idempotency_precheck(_request({"Idempotency-Key": idem_key}, body=b"{}"), user_id="u1", route_key="recipe_generate")
    assert exc.value.status_code == 409

@pytest.mark.asyncio
async def test_keys_are_scoped_per_user(fake_redis, patch_redis_client):
    req = _request({"Idempotency-Key": "shared"})
    first = await idempotency_precheck(req, user_id="u1", route_key="r")
    second = await idempotency_precheck(req, user_id="u2", route_key="r")
    assert isinstance(first, tuple) and isinstance(second, tuple)
    assert first[0] != second[0]

@pytest.mark.asyncio
async def test_clear_key_releases_lock(fake_redis, patch_redis_client):
    req = _request({"Idempotency-Key": "retry-me"})
    rkey, _, _ = await idempotency_precheck(req, user_id="u1", route_key="r")
    await idempotency_clear_key(rkey)
    assert await fake_redis.get(rkey) is None
    assert isinstance(await idempotency_precheck(req, user_id="u1", route_key="r"), tuple)

# --- Integration Test with DB and Client ---

def test_generate_recipe_replays_with_same_key(client, auth_headers, db_session):
    from chefgpt.models import Recipe

    headers = {**auth_headers, "Idempotency-Key": "gen-1"}
    payload = {"chef_mode": "master", "ingredients": ["mushrooms"]}

    first = client.post("/api/recipes/generate", headers=headers, json=payload)
    second = client.post("/api/recipes/generate", headers=headers, json=payload)
    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()["id"] == second.json()["id"]
    assert db_session.query(Recipe).count() == 1

    conflict = client.post("/api/recipes/generate", headers=headers, json={"chef_mode": "mixology"})
    assert conflict.status_code == 409

def test_generate_without_key_creates_each_time(client, auth_headers, db_session):
    from chefgpt.models import Recipe

    for _ in range(2):
        assert client.post("/api/recipes/generate", headers=auth_headers, json={"chef_mode": "master"}).status_code == 201
    assert db_session.query(Recipe).count() == 2
