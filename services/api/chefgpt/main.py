# ChefGPT API Main Entry Point
import logging
import sys
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from . import __version__
from .settings import settings
from .core.rate_limit import limiter
from .infra.redis_client import close_redis
from .services.ai_service import AIGenerationError
from .services.nutrition_service import NutritionInputError
from .routers.ready import router as ready_router
from .routers.users import router as users_router
from .routers.nutrition import router as nutrition_router
from .routers.recipes import router as recipes_router
from .routers.cookbook import router as cookbook_router
from .routers.meal_plans import router as meal_plans_router
from .routers.pantry import router as pantry_router
from .routers.calories import router as calories_router
from .routers.shopping_lists import router as shopping_lists_router

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger("chefgpt")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("ChefGPT API started (ai_mode=%s)", settings.ai_mode)
    yield
    await close_redis()


app = FastAPI(title="ChefGPT API", version=__version__, lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NutritionInputError)
async def nutrition_input_error_handler(request: Request, exc: NutritionInputError):
    logger.info("Rejected nutrition input on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc), "field": exc.field})


@app.exception_handler(AIGenerationError)
async def ai_generation_error_handler(request: Request, exc: AIGenerationError):
    logger.error("AI generation failed on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


app.include_router(ready_router, prefix="/api", tags=["ready"])
app.include_router(users_router, prefix="/api", tags=["users"])
app.include_router(nutrition_router, prefix="/api", tags=["nutrition"])
app.include_router(recipes_router, prefix="/api", tags=["recipes"])
app.include_router(cookbook_router, prefix="/api", tags=["cookbook"])
app.include_router(meal_plans_router, prefix="/api", tags=["meal-plans"])
app.include_router(pantry_router, prefix="/api/pantry", tags=["pantry"])
app.include_router(calories_router, prefix="/api", tags=["calories"])
app.include_router(shopping_lists_router, prefix="/api", tags=["shopping-lists"])