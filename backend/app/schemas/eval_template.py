"""
Evaluation template Pydantic schemas.

``EvalTemplateFormValues`` validates the authoring form field by field;
``SelectedModel`` is the stricter check applied to the assembled template
before it is sent; ``EvalTemplateCreate`` is the public API request body.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from app.evals.referenced_evaluators import ReferencedEvaluators
from app.utils.prompt_variables import VARIABLE_ERROR_MESSAGE, invalid_variables


def _require(value: Optional[str], message: str) -> str:
    if value is None or value == "":
        raise PydanticCustomError("required", message)
    return value


class OutputSchema(BaseModel):
    """What the judge returns: a numeric score and its reasoning."""
    score: str = Field(..., min_length=1)
    reasoning: str = Field(..., min_length=1)


class ModelConfig(BaseModel):
    """Request parameters forwarded to the judge model."""
    model_config = ConfigDict(extra="forbid")

    max_tokens: Optional[int] = Field(None, gt=0)
    temperature: Optional[float] = Field(None, ge=0)
    top_p: Optional[float] = Field(None, ge=0, le=1)


class SelectedModel(BaseModel):
    model_config = ConfigDict(validate_default=True, protected_namespaces=())

    provider: Optional[str] = None
    model: Optional[str] = None
    model_params: ModelConfig

    @field_validator("provider")
    @classmethod
    def provider_required(cls, v):
        return _require(v, "Select a provider")

    @field_validator("model")
    @classmethod
    def model_required(cls, v):
        return _require(v, "Select a model")


class EvalTemplateFormValues(BaseModel):
    """Field-level rules of the template authoring form."""
    model_config = ConfigDict(validate_default=True)

    name: Optional[str] = None
    prompt: Optional[str] = None
    output_score: Optional[str] = None
    output_reasoning: Optional[str] = None
    referenced_evaluators: ReferencedEvaluators = ReferencedEvaluators.PERSIST

    @field_validator("name")
    @classmethod
    def name_required(cls, v):
        return _require(v, "Enter a name")

    @field_validator("prompt")
    @classmethod
    def prompt_is_valid(cls, v):
        v = _require(v, "Enter a prompt")
        if invalid_variables(v):
            raise PydanticCustomError("invalid_variable", VARIABLE_ERROR_MESSAGE)
        return v

    @field_validator("output_score")
    @classmethod
    def score_required(cls, v):
        return _require(v, "Enter a score function")

    @field_validator("output_reasoning")
    @classmethod
    def reasoning_required(cls, v):
        return _require(v, "Enter a reasoning function")

    @field_validator("referenced_evaluators", mode="before")
    @classmethod
    def default_policy(cls, v):
        return ReferencedEvaluators.PERSIST if v is None else v


class EvalTemplateCreate(BaseModel):
    """Schema for creating a new evaluation template version."""
    model_config = ConfigDict(protected_namespaces=())

    name: str = Field(..., min_length=1, max_length=200)
    prompt: str = Field(..., min_length=1)
    provider: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=200)
    model_params: ModelConfig = Field(default_factory=ModelConfig)
    vars: List[str] = Field(default_factory=list)
    output_schema: OutputSchema
    referenced_evaluators: ReferencedEvaluators = ReferencedEvaluators.PERSIST


class EvalTemplateResponse(BaseModel):
    """Schema for an evaluation template version."""
    id: str
    project_id: str
    name: str
    version: int
    prompt: str
    provider: str
    model: str
    model_params: Dict[str, Any]
    vars: List[str]
    output_schema: Dict[str, str]
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())


class EvaluatorSummary(BaseModel):
    """An evaluator referencing a template."""
    id: str
    score_name: str
    status: str
    eval_template_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class EvaluatorsByTemplateNameResponse(BaseModel):
    evaluators: List[EvaluatorSummary]
    count: int
