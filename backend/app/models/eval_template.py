"""
Evaluation template and evaluator (job configuration) models.
"""

from datetime import datetime
import enum

from sqlalchemy import Column, String, Text, DateTime, Integer, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.project import generate_id


class JobConfigurationStatus(str, enum.Enum):
    """Status of an evaluator."""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class EvalTemplate(Base):
    """
    LLM-as-judge evaluation template.

    Rows are immutable: editing a template inserts a new row with the same
    name and the next version number.
    """

    __tablename__ = "eval_templates"
    __table_args__ = (
        UniqueConstraint("project_id", "name", "version", name="uq_eval_templates_project_name_version"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    project_id = Column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name = Column(String(200), nullable=False, index=True)
    version = Column(Integer, nullable=False, default=1)

    prompt = Column(Text, nullable=False)
    vars = Column(JSON, nullable=False, default=list)
    # {"score": "...", "reasoning": "..."}
    output_schema = Column(JSON, nullable=False)

    provider = Column(String(100), nullable=False)
    model = Column(String(200), nullable=False)
    model_params = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    job_configurations = relationship("JobConfiguration", back_populates="eval_template")

    def __repr__(self):
        return f"<EvalTemplate(id={self.id}, name='{self.name}', version={self.version})>"


class JobConfiguration(Base):
    """An evaluator: runs an evaluation template against project data."""

    __tablename__ = "job_configurations"

    id = Column(String(36), primary_key=True, default=generate_id)
    project_id = Column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    eval_template_id = Column(
        String(36), ForeignKey("eval_templates.id", ondelete="SET NULL"), nullable=True, index=True
    )
    score_name = Column(String(200), nullable=False)
    status = Column(String(20), nullable=False, default=JobConfigurationStatus.ACTIVE.value)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    eval_template = relationship("EvalTemplate", back_populates="job_configurations")

    def __repr__(self):
        return f"<JobConfiguration(id={self.id}, score_name='{self.score_name}', status={self.status})>"
