"""
Custom exception classes for the judge templates application.
"""

from typing import Optional


class JudgeTemplatesException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(self.message)


class AuthenticationError(JudgeTemplatesException):
    """Raised when an API key cannot be verified."""

    def __init__(self, message: str = "Authentication failed", detail: Optional[str] = None):
        super().__init__(message, detail)


class AuthorizationError(JudgeTemplatesException):
    """Raised when a verified key has the wrong access level."""

    def __init__(
        self,
        message: str = "Invalid API key. Are you using an organization key?",
        detail: Optional[str] = None,
    ):
        super().__init__(message, detail)


class TemplateNotFoundError(JudgeTemplatesException):
    """Raised when an evaluation template is not found."""

    def __init__(self, template_id: str, detail: Optional[str] = None):
        message = f"Evaluation template not found: {template_id}"
        super().__init__(message, detail)
        self.template_id = template_id


class ValidationError(JudgeTemplatesException):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(message, detail)
        self.field = field


class FormDisabledError(JudgeTemplatesException):
    """Raised when a value is written to a form that is not in edit mode."""

    def __init__(self, field: str):
        super().__init__(f"Form is not editable: cannot set '{field}'")
        self.field = field


class TemplateVersionConflictError(JudgeTemplatesException):
    """Raised when another version of the same template was stored first."""

    def __init__(self, template_name: str, detail: Optional[str] = None):
        message = (
            f"Another version of template '{template_name}' was saved at the same time. "
            "Please retry."
        )
        super().__init__(message, detail)
        self.template_name = template_name
