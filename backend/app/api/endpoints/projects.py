"""
Public projects endpoint.

Returns the project a project-level API key belongs to.
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.core.database import get_db
from app.core.logging import log_error
from app.models.project import Project
from app.schemas.project import ProjectListResponse, ProjectSummary
from app.services.api_auth_service import AuthScope, require_project_scope

router = APIRouter()

# Every method goes through key verification before the method check
HANDLED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"]


@router.api_route("/projects", methods=HANDLED_METHODS, response_model=ProjectListResponse)
async def projects(
    request: Request,
    scope: AuthScope = Depends(require_project_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the project of the API key.

    Deleted projects are returned as well so callers can tell a deleted
    project from a missing one. The response is a list for forward
    compatibility; it holds at most one project.
    """
    if request.method != "GET":
        logger.error(f"Method not allowed for {request.method} on /api/public/projects")
        return JSONResponse(
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            content={"message": "Method not allowed"},
        )

    try:
        # Soft-deleted projects are included
        result = await db.execute(
            select(Project.id, Project.name).where(Project.id == scope.project_id)
        )
        rows = result.all()
    except SQLAlchemyError as e:
        log_error(e, context={"endpoint": "/api/public/projects", "layer": "database"})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error"},
        )
    except Exception as e:
        log_error(e, context={"endpoint": "/api/public/projects"})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal server error"},
        )

    return ProjectListResponse(
        data=[ProjectSummary(id=row.id, name=row.name) for row in rows]
    )
