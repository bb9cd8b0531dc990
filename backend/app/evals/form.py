"""
Evaluation template authoring form.

``EvalTemplateForm`` holds the state of one form instance: field values,
the model selection and the referenced-evaluators policy. Derived values
such as the prompt variables are recomputed whenever they are read.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from app.evals.client import CreateTemplateFailed, EvalTemplateClient, TemplateCreated
from app.evals.managed_templates import EvalTemplatePrefill
from app.evals.model_params import ModelParamsState
from app.evals.referenced_evaluators import (
    ReferencedEvaluators,
    ReferencedEvaluatorsChoice,
    resolve_referenced_evaluators,
)
from app.schemas.eval_template import EvalTemplateFormValues, SelectedModel
from app.utils.exceptions import FormDisabledError
from app.utils.prompt_variables import extract_variables, is_valid_variable

FORM_FIELDS = ("name", "prompt", "output_score", "output_reasoning", "referenced_evaluators")


@dataclass(frozen=True)
class Toast:
    title: str
    description: str


@dataclass(frozen=True)
class SubmissionSuccess:
    template: TemplateCreated
    redirect_to: Optional[str] = None


@dataclass(frozen=True)
class SubmissionFailure:
    form_error: Optional[str] = None
    field_errors: Dict[str, str] = field(default_factory=dict)


SubmissionResult = Union[SubmissionSuccess, SubmissionFailure]


def _first_error(exc: PydanticValidationError) -> str:
    error = exc.errors()[0]
    path = ".".join(str(part) for part in error.get("loc", ()))
    return f"{path}: {error.get('msg')}"


class EvalTemplateForm:
    """
    State and submit logic of the template form.

    Args:
        project_id: Project the template belongs to
        client: Public API client used to persist the template
        prefill: Initial values, see ``select_prefill``
        existing_template_id: Id of the template being edited
        existing_template_name: Name of the template being edited
        is_editing: Whether fields may be changed and the form submitted
        prevent_redirect: Skip navigation to the new template after saving
        on_form_success: Called after a successful save
        on_editing_change: Called with ``False`` when edit mode ends
    """

    def __init__(
        self,
        project_id: str,
        client: EvalTemplateClient,
        prefill: Optional[EvalTemplatePrefill] = None,
        existing_template_id: Optional[str] = None,
        existing_template_name: Optional[str] = None,
        is_editing: bool = False,
        prevent_redirect: bool = False,
        on_form_success: Optional[Callable[[], None]] = None,
        on_editing_change: Optional[Callable[[bool], None]] = None,
    ):
        self.project_id = project_id
        self.client = client
        self.prefill = prefill
        self.existing_template_id = existing_template_id
        self.existing_template_name = existing_template_name
        self.is_editing = is_editing
        self.prevent_redirect = prevent_redirect
        self.on_form_success = on_form_success
        self.on_editing_change = on_editing_change

        self.model_params = ModelParamsState()
        if prefill and prefill.selected_model:
            selected = prefill.selected_model
            self.model_params.apply_prefill(selected.provider, selected.model, selected.model_params)

        self.referenced_evaluators_choice: Optional[ReferencedEvaluatorsChoice] = None
        self.form_error: Optional[str] = None
        self.field_errors: Dict[str, str] = {}
        self.notifications: List[Toast] = []

        self._defaults = self._default_values()
        self.values: Dict[str, Any] = dict(self._defaults)

    def _default_values(self) -> Dict[str, Any]:
        prefill = self.prefill
        return {
            "name": self.existing_template_name or (prefill.name if prefill else "") or "",
            "prompt": prefill.prompt if prefill else None,
            "output_score": prefill.output_score if prefill else None,
            "output_reasoning": prefill.output_reasoning if prefill else None,
            "referenced_evaluators": ReferencedEvaluators.PERSIST,
        }

    @property
    def variables(self) -> List[str]:
        """Valid variables of the current prompt."""
        return [name for name in extract_variables(self.values.get("prompt") or "") if is_valid_variable(name)]

    @property
    def referenced_evaluators(self) -> ReferencedEvaluators:
        return self.values["referenced_evaluators"]

    def set_value(self, name: str, value: Any) -> None:
        if name not in FORM_FIELDS:
            raise KeyError(f"Unknown form field: {name}")
        if not self.is_editing:
            raise FormDisabledError(name)
        if name == "referenced_evaluators":
            choice = self.referenced_evaluators_choice or resolve_referenced_evaluators(0)
            value = choice.choose(value)
        self.values[name] = value

    def validate(self) -> Dict[str, str]:
        """Field errors keyed by field name; empty when the form is valid."""
        try:
            EvalTemplateFormValues.model_validate(self.values)
        except PydanticValidationError as exc:
            errors: Dict[str, str] = {}
            for error in exc.errors():
                loc = error.get("loc") or ("__root__",)
                errors.setdefault(str(loc[0]), error.get("msg"))
            self.field_errors = errors
            return errors
        self.field_errors = {}
        return {}

    async def load_referenced_evaluators(self) -> Optional[ReferencedEvaluatorsChoice]:
        """
        Count evaluators that use the edited template and preselect the policy.

        Does nothing for new templates.
        """
        if not self.existing_template_name:
            return None

        result = await self.client.evaluators_by_template_name(self.existing_template_name)
        if not result.ok:
            logger.warning(
                f"Could not load evaluators for template '{self.existing_template_name}': {result.error}"
            )
            return None

        choice = resolve_referenced_evaluators(result.count)
        self.referenced_evaluators_choice = choice
        self.values["referenced_evaluators"] = choice.default
        return choice

    def build_candidate(self, values: EvalTemplateFormValues) -> Dict[str, Any]:
        return {
            "name": values.name,
            "prompt": values.prompt,
            "provider": self.model_params.provider,
            "model": self.model_params.model,
            "model_params": self.model_params.final_model_params(),
            "vars": self.variables,
            "output_schema": {
                "score": values.output_score,
                "reasoning": values.output_reasoning,
            },
            "referenced_evaluators": values.referenced_evaluators.value,
        }

    async def submit(self) -> SubmissionResult:
        """
        Validate and save the template.

        Returns:
            SubmissionSuccess with the created template and redirect path, or
            SubmissionFailure with field errors or a form error
        """
        if not self.is_editing:
            raise FormDisabledError("submit")

        self.form_error = None
        field_errors = self.validate()
        if field_errors:
            return SubmissionFailure(field_errors=field_errors)

        values = EvalTemplateFormValues.model_validate(self.values)
        logger.info(
            "eval_templates:update_form_submit"
            if self.existing_template_id
            else "eval_templates:new_form_submit"
        )

        candidate = self.build_candidate(values)
        try:
            SelectedModel.model_validate(candidate)
        except PydanticValidationError as exc:
            self.form_error = _first_error(exc)
            return SubmissionFailure(form_error=self.form_error)

        result = await self.client.create_template(candidate)
        if isinstance(result, CreateTemplateFailed):
            self.form_error = result.message
            logger.error(f"Failed to save eval template '{values.name}': {result.message}")
            return SubmissionFailure(form_error=self.form_error)

        if values.referenced_evaluators == ReferencedEvaluators.UPDATE and self.existing_template_id:
            self.notifications.append(
                Toast(
                    title="Updated evaluators",
                    description="Updated referenced evaluators to use new template version.",
                )
            )

        if self.on_form_success:
            self.on_form_success()
        self.reset()
        self.is_editing = False
        if self.on_editing_change:
            self.on_editing_change(False)

        if self.prevent_redirect:
            return SubmissionSuccess(template=result)
        return SubmissionSuccess(
            template=result,
            redirect_to=f"/project/{self.project_id}/evals/templates/{result.id}",
        )

    def reset(self) -> None:
        """Restore the initial field values and clear errors."""
        self.values = dict(self._defaults)
        self.field_errors = {}
        self.form_error = None
