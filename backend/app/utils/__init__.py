"""
Utility modules for the judge templates application.
"""

from .exceptions import (
    JudgeTemplatesException,
    AuthenticationError,
    AuthorizationError,
    TemplateNotFoundError,
    ValidationError,
    FormDisabledError,
    TemplateVersionConflictError,
)

__all__ = [
    "JudgeTemplatesException",
    "AuthenticationError",
    "AuthorizationError",
    "TemplateNotFoundError",
    "ValidationError",
    "FormDisabledError",
    "TemplateVersionConflictError",
]
