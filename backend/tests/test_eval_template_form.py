"""
Tests for the evaluation template form.

The form talks to the real app through ``httpx.ASGITransport``.
"""

import json

import httpx
import pytest
from sqlalchemy import select

from main import app
from app.evals.client import CreateTemplateFailed, EvalTemplateClient, EvaluatorsResult
from app.evals.form import EvalTemplateForm, SubmissionFailure, SubmissionSuccess
from app.evals.managed_templates import select_prefill
from app.evals.referenced_evaluators import ReferencedEvaluators
from app.models.eval_template import JobConfiguration
from app.utils.exceptions import FormDisabledError, ValidationError
from app.utils.prompt_variables import VARIABLE_ERROR_MESSAGE
from tests.factories import create_test_eval_template, create_test_job_configuration


@pytest.fixture
async def template_client(client, project_key):
    api_client = EvalTemplateClient(
        project_key,
        base_url="http://testserver",
        transport=httpx.ASGITransport(app=app),
    )
    yield api_client
    await api_client.aclose()


class StubClient:
    """Client double returning canned results."""

    def __init__(self, create_result=None, evaluators=None):
        self.create_result = create_result
        self.evaluators = evaluators or EvaluatorsResult(evaluators=[])
        self.created = []

    async def create_template(self, candidate):
        self.created.append(candidate)
        return self.create_result

    async def evaluators_by_template_name(self, template_name):
        return self.evaluators


def _fill(form: EvalTemplateForm, prompt="Is {output} a good answer to {input}?"):
    form.set_value("name", "helpfulness")
    form.set_value("prompt", prompt)
    form.set_value("output_score", "Score between 0 and 1")
    form.set_value("output_reasoning", "One sentence reasoning")
    form.model_params.apply_prefill("openai", "gpt-4o-mini", {"temperature": 0})


@pytest.mark.asyncio
async def test_variables_follow_prompt_edits():
    form = EvalTemplateForm("p1", StubClient(), is_editing=True)

    form.set_value("prompt", "Hi {input}, is {input} same as {output}?")
    assert form.variables == ["input", "output"]

    form.set_value("prompt", "Only {context} and {bad-1}")
    assert form.variables == ["context"]


@pytest.mark.asyncio
async def test_new_template_submission_redirects(template_client, project):
    form = EvalTemplateForm(project.id, template_client, is_editing=True)
    _fill(form)

    result = await form.submit()

    assert isinstance(result, SubmissionSuccess)
    assert result.redirect_to == f"/project/{project.id}/evals/templates/{result.template.id}"
    assert result.template.version == 1
    assert form.is_editing is False
    assert form.values["name"] == ""
    assert form.notifications == []


@pytest.mark.asyncio
async def test_prevent_redirect(template_client, project):
    calls = []
    form = EvalTemplateForm(
        project.id,
        template_client,
        is_editing=True,
        prevent_redirect=True,
        on_form_success=lambda: calls.append("success"),
        on_editing_change=lambda editing: calls.append(editing),
    )
    _fill(form)

    result = await form.submit()

    assert isinstance(result, SubmissionSuccess)
    assert result.redirect_to is None
    assert calls == ["success", False]


@pytest.mark.asyncio
async def test_invalid_variable_blocks_submission():
    stub = StubClient()
    form = EvalTemplateForm("p1", stub, is_editing=True)
    _fill(form, prompt="Rate {score-1}")

    result = await form.submit()

    assert isinstance(result, SubmissionFailure)
    assert result.field_errors == {"prompt": VARIABLE_ERROR_MESSAGE}
    assert stub.created == []


@pytest.mark.asyncio
async def test_underscore_variable_is_submitted(template_client, project):
    form = EvalTemplateForm(project.id, template_client, is_editing=True)
    _fill(form, prompt="Rate {score_a}")

    result = await form.submit()

    assert isinstance(result, SubmissionSuccess)
    assert result.template.record["vars"] == ["score_a"]


@pytest.mark.asyncio
async def test_missing_model_is_reported_with_field_path():
    stub = StubClient()
    form = EvalTemplateForm("p1", stub, is_editing=True)
    _fill(form)
    form.model_params.reset()

    result = await form.submit()

    assert result.form_error == "provider: Select a provider"
    assert form.form_error == "provider: Select a provider"
    assert stub.created == []


@pytest.mark.asyncio
async def test_server_message_is_shown_verbatim():
    stub = StubClient(create_result=CreateTemplateFailed(message="Model not available", status_code=400))
    form = EvalTemplateForm("p1", stub, is_editing=True)
    _fill(form)

    result = await form.submit()

    assert isinstance(result, SubmissionFailure)
    assert form.form_error == "Model not available"
    # failed saves keep the form in edit mode with its values
    assert form.is_editing is True
    assert form.values["name"] == "helpfulness"


@pytest.mark.asyncio
async def test_unstructured_error_is_serialized(project_key):
    def handler(request):
        return httpx.Response(502, text="Bad gateway")

    api_client = EvalTemplateClient(
        project_key, base_url="http://testserver", transport=httpx.MockTransport(handler)
    )
    form = EvalTemplateForm("p1", api_client, is_editing=True)
    _fill(form)

    result = await form.submit()
    await api_client.aclose()

    assert json.loads(result.form_error) == {"status_code": 502, "body": "Bad gateway"}


@pytest.mark.asyncio
async def test_form_is_read_only_outside_edit_mode():
    form = EvalTemplateForm("p1", StubClient())

    with pytest.raises(FormDisabledError):
        form.set_value("name", "x")
    with pytest.raises(FormDisabledError):
        await form.submit()


@pytest.mark.asyncio
async def test_no_referencing_evaluators_forces_persist(template_client, db_session, project):
    template = await create_test_eval_template(db_session, project)
    form = EvalTemplateForm(
        project.id,
        template_client,
        prefill=select_prefill(None, template),
        existing_template_id=template.id,
        existing_template_name=template.name,
        is_editing=True,
    )

    choice = await form.load_referenced_evaluators()
    form.set_value("referenced_evaluators", ReferencedEvaluators.UPDATE)

    assert choice.disabled is True
    assert form.referenced_evaluators == ReferencedEvaluators.PERSIST


@pytest.mark.asyncio
async def test_failed_evaluator_lookup_keeps_persist():
    stub = StubClient(evaluators=EvaluatorsResult(evaluators=[], error="connection refused"))
    form = EvalTemplateForm(
        "p1",
        stub,
        existing_template_id="t1",
        existing_template_name="helpfulness",
        is_editing=True,
    )

    choice = await form.load_referenced_evaluators()

    assert choice is None
    assert form.referenced_evaluators == ReferencedEvaluators.PERSIST
    form.set_value("referenced_evaluators", "update")
    assert form.referenced_evaluators == ReferencedEvaluators.PERSIST


@pytest.mark.asyncio
async def test_unknown_policy_is_rejected():
    form = EvalTemplateForm("p1", StubClient(), is_editing=True)

    with pytest.raises(ValidationError) as exc_info:
        form.set_value("referenced_evaluators", "bogus")

    assert exc_info.value.field == "referenced_evaluators"
    assert form.referenced_evaluators == ReferencedEvaluators.PERSIST


@pytest.mark.asyncio
async def test_update_policy_shows_confirmation(template_client, db_session, project):
    template = await create_test_eval_template(db_session, project)
    job = await create_test_job_configuration(db_session, project, template)
    form = EvalTemplateForm(
        project.id,
        template_client,
        prefill=select_prefill(None, template),
        existing_template_id=template.id,
        existing_template_name=template.name,
        is_editing=True,
    )

    choice = await form.load_referenced_evaluators()
    assert choice.count == 1
    assert form.referenced_evaluators == ReferencedEvaluators.UPDATE

    form.set_value("prompt", "Is {output} really helpful?")
    result = await form.submit()

    assert isinstance(result, SubmissionSuccess)
    assert [toast.title for toast in form.notifications] == ["Updated evaluators"]
    repointed = await db_session.scalar(
        select(JobConfiguration.eval_template_id).where(JobConfiguration.id == job.id)
    )
    assert repointed == result.template.id


@pytest.mark.asyncio
async def test_persist_policy_shows_no_confirmation(template_client, db_session, project):
    template = await create_test_eval_template(db_session, project)
    job = await create_test_job_configuration(db_session, project, template)
    form = EvalTemplateForm(
        project.id,
        template_client,
        prefill=select_prefill(None, template),
        existing_template_id=template.id,
        existing_template_name=template.name,
        is_editing=True,
    )
    await form.load_referenced_evaluators()

    form.set_value("referenced_evaluators", "persist")
    result = await form.submit()

    assert isinstance(result, SubmissionSuccess)
    assert result.template.version == 2
    assert form.notifications == []
    pinned = await db_session.scalar(
        select(JobConfiguration.eval_template_id).where(JobConfiguration.id == job.id)
    )
    assert pinned == template.id


@pytest.mark.asyncio
async def test_existing_template_prefills_model_selection(db_session, project):
    template = await create_test_eval_template(db_session, project)

    form = EvalTemplateForm(
        project.id,
        StubClient(),
        prefill=select_prefill(None, template),
        existing_template_name=template.name,
    )

    assert form.values["name"] == template.name
    assert form.values["output_score"] == "Score between 0 and 1"
    assert form.model_params.provider == "openai"
    assert form.model_params.final_model_params() == {"temperature": 0.2}
