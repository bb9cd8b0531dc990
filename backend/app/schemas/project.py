"""
Project schemas for the public API.
"""

from typing import List
from pydantic import BaseModel, ConfigDict


class ProjectSummary(BaseModel):
    id: str
    name: str

    model_config = ConfigDict(from_attributes=True)


class ProjectListResponse(BaseModel):
    """A list even though a project key only ever sees one project."""
    data: List[ProjectSummary]
