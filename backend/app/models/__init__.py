"""
Database models for the judge templates application.
"""

from .project import Organization, Project
from .api_key import APIKey
from .eval_template import EvalTemplate, JobConfiguration, JobConfigurationStatus

__all__ = [
    "Organization",
    "Project",
    "APIKey",
    "EvalTemplate",
    "JobConfiguration",
    "JobConfigurationStatus",
]
