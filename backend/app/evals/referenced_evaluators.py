"""
How existing evaluators react when a template gets a new version.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from app.utils.exceptions import ValidationError


class ReferencedEvaluators(str, enum.Enum):
    """Policy for evaluators that reference an edited template."""
    PERSIST = "persist"  # keep evaluators on their pinned version
    UPDATE = "update"    # repoint evaluators to the new version


@dataclass(frozen=True)
class ReferencedEvaluatorsChoice:
    count: int
    default: ReferencedEvaluators
    disabled: bool
    description: str

    def choose(self, policy: ReferencedEvaluators | str | None) -> ReferencedEvaluators:
        """Return the policy that applies when the user picks ``policy``."""
        if policy is None:
            return self.default
        try:
            chosen = ReferencedEvaluators(policy)
        except ValueError as e:
            raise ValidationError(
                f"Unknown referenced evaluators policy: {policy}",
                field="referenced_evaluators",
            ) from e
        return self.default if self.disabled else chosen


def resolve_referenced_evaluators(count: int) -> ReferencedEvaluatorsChoice:
    """
    Build the policy choice offered for ``count`` referencing evaluators.

    With no referencing evaluators only ``persist`` is possible and the
    choice is fixed. Otherwise ``update`` is preselected.
    """
    count = max(int(count or 0), 0)
    summary = f"{count} evaluator(s) are currently using this template."
    if count == 0:
        return ReferencedEvaluatorsChoice(
            count=0,
            default=ReferencedEvaluators.PERSIST,
            disabled=True,
            description=f"{summary} No evaluators to update.",
        )
    return ReferencedEvaluatorsChoice(
        count=count,
        default=ReferencedEvaluators.UPDATE,
        disabled=False,
        description=f"{summary} Choose how to handle existing evaluators with this update.",
    )
