"""
Tests for the evaluation template service.
"""

import json

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

import app.services.eval_template_service as service_module
from app.core.exceptions import judge_templates_exception_handler
from app.models.eval_template import EvalTemplate, JobConfiguration
from app.schemas.eval_template import EvalTemplateCreate
from app.services.eval_template_service import eval_template_service
from app.utils.exceptions import TemplateVersionConflictError
from tests.factories import create_test_eval_template, create_test_job_configuration


def _payload(**overrides) -> EvalTemplateCreate:
    data = {
        "name": "helpfulness",
        "prompt": "Is {output} a helpful answer to {input}?",
        "provider": "openai",
        "model": "gpt-4o-mini",
        "output_schema": {"score": "Score between 0 and 1", "reasoning": "One sentence reasoning"},
    }
    data.update(overrides)
    return EvalTemplateCreate(**data)


class StaleVersionFunc:
    """Reads the latest version as it was before a concurrent save committed."""

    @staticmethod
    def max(column):
        return func.max(column) - 1


@pytest.mark.asyncio
async def test_failed_repoint_rolls_back_new_version(db_session, project, monkeypatch):
    template = await create_test_eval_template(db_session, project)
    job = await create_test_job_configuration(db_session, project, template)
    # rollback expires loaded objects
    project_id, template_id, job_id = project.id, template.id, job.id

    def failing_update(*args, **kwargs):
        raise OperationalError("UPDATE job_configurations", {}, Exception("connection lost"))

    monkeypatch.setattr(service_module, "update", failing_update)

    with pytest.raises(OperationalError):
        await eval_template_service.create_template(
            db_session, project_id, _payload(referenced_evaluators="update")
        )

    stored = (
        await db_session.execute(select(EvalTemplate.id).where(EvalTemplate.project_id == project_id))
    ).scalars().all()
    assert stored == [template_id]
    pinned = await db_session.scalar(
        select(JobConfiguration.eval_template_id).where(JobConfiguration.id == job_id)
    )
    assert pinned == template_id


@pytest.mark.asyncio
async def test_concurrent_version_is_a_conflict(db_session, project, monkeypatch):
    await create_test_eval_template(db_session, project, version=1)
    project_id = project.id

    monkeypatch.setattr(service_module, "func", StaleVersionFunc)

    with pytest.raises(TemplateVersionConflictError) as exc_info:
        await eval_template_service.create_template(db_session, project_id, _payload())

    assert "Please retry" in exc_info.value.message
    count = await db_session.scalar(
        select(func.count()).select_from(EvalTemplate).where(EvalTemplate.project_id == project_id)
    )
    assert count == 1


@pytest.mark.asyncio
async def test_version_conflict_maps_to_409():
    response = await judge_templates_exception_handler(None, TemplateVersionConflictError("helpfulness"))

    assert response.status_code == 409
    assert json.loads(response.body) == {
        "message": "Another version of template 'helpfulness' was saved at the same time. Please retry."
    }
