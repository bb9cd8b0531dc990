"""
Main API router configuration.
"""

from fastapi import APIRouter
from app.api.endpoints import projects, eval_templates

public_router = APIRouter()

# Public API, authenticated with API keys
public_router.include_router(projects.router, tags=["projects"])
public_router.include_router(eval_templates.router, tags=["evaluation templates"])
