"""API v1 router aggregator."""

from fastapi import APIRouter

from app.api.v1.articles import routes as articles
from app.api.v1.generation import routes as generation
from app.api.v1.moderation import routes as moderation

api_router = APIRouter()

api_router.include_router(articles.router, prefix="/articles", tags=["Articles"])
api_router.include_router(moderation.router, prefix="/moderation", tags=["Moderation"])
api_router.include_router(generation.router, prefix="/generation", tags=["Generation"])
