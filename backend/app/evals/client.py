"""
Async client for the public API, used by the template form.

Calls return typed results instead of raising, so callers never have to
guess the shape of an error.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import httpx
from loguru import logger

from app.core.config import settings


@dataclass(frozen=True)
class TemplateCreated:
    id: str
    name: str
    version: int
    record: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CreateTemplateFailed:
    message: str
    status_code: Optional[int] = None


CreateTemplateResult = Union[TemplateCreated, CreateTemplateFailed]


@dataclass(frozen=True)
class EvaluatorsResult:
    evaluators: List[Dict[str, Any]]
    error: Optional[str] = None

    @property
    def count(self) -> int:
        return len(self.evaluators)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ProjectSummary:
    id: str
    name: str


def error_message(status_code: Optional[int], body: Any = None, exc: Optional[BaseException] = None) -> str:
    """
    Message for a failed call.

    A string ``message`` (or ``detail``) in a JSON body is used verbatim;
    anything else is serialized as JSON.
    """
    if isinstance(body, dict):
        for key in ("message", "detail"):
            if isinstance(body.get(key), str):
                return body[key]

    raw: Dict[str, Any] = {}
    if status_code is not None:
        raw["status_code"] = status_code
    if body is not None:
        raw["body"] = body
    if exc is not None:
        raw["error"] = exc.__class__.__name__
        raw["detail"] = str(exc)
    return json.dumps(raw, default=str)


def _body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


class EvalTemplateClient:
    """Public API client authenticated with a project-level API key."""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.APP_BASE_URL,
            timeout=timeout or settings.CLIENT_TIMEOUT_SECONDS,
            headers={
                "Authorization": f"Bearer {api_key}",
                "User-Agent": "judge-templates-client/1.0",
            },
            transport=transport,
        )

    async def __aenter__(self) -> "EvalTemplateClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def create_template(self, candidate: Dict[str, Any]) -> CreateTemplateResult:
        try:
            response = await self._client.post("/api/public/evals/templates", json=candidate)
        except httpx.HTTPError as exc:
            logger.error(f"Template creation request failed: {exc}")
            return CreateTemplateFailed(message=error_message(None, exc=exc))

        body = _body(response)
        if response.status_code != 201 or not isinstance(body, dict) or "id" not in body:
            return CreateTemplateFailed(
                message=error_message(response.status_code, body),
                status_code=response.status_code,
            )
        return TemplateCreated(
            id=body["id"],
            name=body.get("name", candidate.get("name", "")),
            version=body.get("version", 1),
            record=body,
        )

    async def evaluators_by_template_name(self, template_name: str) -> EvaluatorsResult:
        try:
            response = await self._client.get(
                "/api/public/evals/evaluators", params={"template_name": template_name}
            )
        except httpx.HTTPError as exc:
            logger.error(f"Evaluator lookup failed: {exc}")
            return EvaluatorsResult(evaluators=[], error=error_message(None, exc=exc))

        body = _body(response)
        if response.status_code != 200 or not isinstance(body, dict):
            return EvaluatorsResult(evaluators=[], error=error_message(response.status_code, body))
        return EvaluatorsResult(evaluators=list(body.get("evaluators", [])))

    async def get_projects(self) -> List[ProjectSummary]:
        """Projects visible to the key; raises ``httpx.HTTPStatusError`` on failure."""
        response = await self._client.get("/api/public/projects")
        response.raise_for_status()
        return [ProjectSummary(id=p["id"], name=p["name"]) for p in response.json()["data"]]
