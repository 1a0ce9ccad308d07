"""Main API router: aggregates all endpoint modules."""

from fastapi import APIRouter

from promptea.api.challenges import router as challenges_router
from promptea.api.health import router as health_router
from promptea.api.openai import router as openai_router
from promptea.api.prompts import router as prompts_router
from promptea.api.refine import router as refine_router
from promptea.api.users import router as users_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(prompts_router, prefix="/prompts", tags=["prompts"])
api_router.include_router(openai_router, tags=["openai"])
api_router.include_router(refine_router, tags=["refine"])
api_router.include_router(challenges_router, prefix="/challenges", tags=["challenges"])
api_router.include_router(users_router, prefix="/users", tags=["users"])
