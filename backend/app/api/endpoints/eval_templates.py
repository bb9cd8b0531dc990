"""
Public evaluation template endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.evals.managed_templates import list_managed_templates
from app.schemas.eval_template import (
    EvalTemplateCreate,
    EvalTemplateResponse,
    EvaluatorSummary,
    EvaluatorsByTemplateNameResponse,
)
from app.services.api_auth_service import AuthScope, require_project_scope
from app.services.eval_template_service import eval_template_service

router = APIRouter()


class ManagedTemplateResponse(BaseModel):
    name: str
    prompt: str
    output_score: str
    output_reasoning: str


@router.post(
    "/evals/templates",
    response_model=EvalTemplateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_eval_template(
    request: EvalTemplateCreate,
    scope: AuthScope = Depends(require_project_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a new version of an evaluation template.

    With ``referenced_evaluators=update`` every evaluator using an older
    version of the template is moved to the new version.
    """
    template = await eval_template_service.create_template(db, scope.project_id, request)
    return EvalTemplateResponse.model_validate(template)


@router.get("/evals/templates/{template_id}", response_model=EvalTemplateResponse)
async def get_eval_template(
    template_id: str,
    scope: AuthScope = Depends(require_project_scope),
    db: AsyncSession = Depends(get_db),
):
    """Get a single template version."""
    template = await eval_template_service.get_template(db, scope.project_id, template_id)
    return EvalTemplateResponse.model_validate(template)


@router.get(
    "/evals/evaluators",
    response_model=EvaluatorsByTemplateNameResponse,
)
async def get_evaluators_by_template_name(
    template_name: str = Query(..., min_length=1),
    scope: AuthScope = Depends(require_project_scope),
    db: AsyncSession = Depends(get_db),
):
    """Active evaluators that reference a template name."""
    evaluators = await eval_template_service.evaluators_by_template_name(
        db, scope.project_id, template_name
    )
    return EvaluatorsByTemplateNameResponse(
        evaluators=[EvaluatorSummary.model_validate(e) for e in evaluators],
        count=len(evaluators),
    )


@router.get("/evals/managed-templates", response_model=List[ManagedTemplateResponse])
async def get_managed_templates(scope: AuthScope = Depends(require_project_scope)):
    """Built-in templates that can prefill the authoring form."""
    return [
        ManagedTemplateResponse(
            name=t.name,
            prompt=t.prompt.strip(),
            output_score=t.output_score,
            output_reasoning=t.output_reasoning,
        )
        for t in list_managed_templates()
    ]
