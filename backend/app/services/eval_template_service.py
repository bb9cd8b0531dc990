"""
Evaluation template persistence.

Templates are versioned by name within a project. Creating a template with
an existing name stores the next version; depending on the referenced
evaluators policy, evaluators of older versions are repointed to it.
"""

from typing import List

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.evals.referenced_evaluators import ReferencedEvaluators
from app.models.eval_template import EvalTemplate, JobConfiguration, JobConfigurationStatus
from app.schemas.eval_template import EvalTemplateCreate
from app.utils.exceptions import TemplateNotFoundError, TemplateVersionConflictError, ValidationError
from app.utils.prompt_variables import VARIABLE_ERROR_MESSAGE, extract_variables, invalid_variables


class EvalTemplateService:
    """Service for creating and reading evaluation templates."""

    async def create_template(
        self,
        db: AsyncSession,
        project_id: str,
        payload: EvalTemplateCreate,
    ) -> EvalTemplate:
        """
        Store a new template version.

        The insert and the evaluator update run in one transaction.

        Args:
            db: Database session
            project_id: Project from the caller's API key
            payload: Validated request body

        Returns:
            The created template row
        """
        bad_variables = invalid_variables(payload.prompt)
        if bad_variables:
            logger.info(f"Rejected template '{payload.name}': invalid variables {bad_variables}")
            raise ValidationError(VARIABLE_ERROR_MESSAGE, field="prompt")

        try:
            latest_version = await db.scalar(
                select(func.max(EvalTemplate.version)).where(
                    EvalTemplate.project_id == project_id,
                    EvalTemplate.name == payload.name,
                )
            )

            template = EvalTemplate(
                project_id=project_id,
                name=payload.name,
                version=(latest_version or 0) + 1,
                prompt=payload.prompt,
                vars=extract_variables(payload.prompt),
                output_schema=payload.output_schema.model_dump(),
                provider=payload.provider,
                model=payload.model,
                model_params=payload.model_params.model_dump(exclude_none=True),
            )
            db.add(template)
            await db.flush()

            repointed = 0
            if payload.referenced_evaluators == ReferencedEvaluators.UPDATE and latest_version:
                previous_versions = select(EvalTemplate.id).where(
                    EvalTemplate.project_id == project_id,
                    EvalTemplate.name == payload.name,
                    EvalTemplate.id != template.id,
                )
                result = await db.execute(
                    update(JobConfiguration)
                    .where(
                        JobConfiguration.project_id == project_id,
                        JobConfiguration.eval_template_id.in_(previous_versions),
                    )
                    .values(eval_template_id=template.id)
                    .execution_options(synchronize_session=False)
                )
                repointed = result.rowcount or 0

            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.warning(f"Version conflict while saving eval template '{payload.name}': {e.orig}")
            raise TemplateVersionConflictError(payload.name) from e
        except Exception:
            await db.rollback()
            raise

        await db.refresh(template)
        logger.info(
            f"Created eval template '{template.name}' v{template.version} in project {project_id}"
            f" ({repointed} evaluator(s) repointed)"
        )
        return template

    async def get_template(self, db: AsyncSession, project_id: str, template_id: str) -> EvalTemplate:
        template = await db.scalar(
            select(EvalTemplate).where(
                EvalTemplate.id == template_id,
                EvalTemplate.project_id == project_id,
            )
        )
        if template is None:
            raise TemplateNotFoundError(template_id)
        return template

    async def evaluators_by_template_name(
        self,
        db: AsyncSession,
        project_id: str,
        template_name: str,
    ) -> List[JobConfiguration]:
        """Active evaluators that use any version of the named template."""
        result = await db.execute(
            select(JobConfiguration)
            .join(EvalTemplate, JobConfiguration.eval_template_id == EvalTemplate.id)
            .where(
                JobConfiguration.project_id == project_id,
                JobConfiguration.status == JobConfigurationStatus.ACTIVE.value,
                EvalTemplate.name == template_name,
            )
            .order_by(JobConfiguration.created_at)
        )
        return list(result.scalars().all())


# Global service instance
eval_template_service = EvalTemplateService()
