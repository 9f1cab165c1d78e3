from fastapi import APIRouter

from ..core.ai_client import ai_client
from ..infra.redis_client import ping_redis

router = APIRouter()


@router.get("/ready")
async def ready():
    return {"ok": True, "redis_ok": await ping_redis(), "ai": ai_client.status()}
