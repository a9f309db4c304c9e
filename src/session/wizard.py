"""Step history for the resume wizard.

The wizard's position is a value: every navigation returns a new
``WizardHistory`` instead of mutating the current one.
"""

from dataclasses import dataclass, field
from enum import Enum


class WizardStep(str, Enum):
    """Steps of the resume lifecycle."""

    UPLOAD = "upload"
    JOB_DESCRIPTION = "job_description"
    GENERATING = "generating"
    REVIEW = "review"
    FINAL = "final"


@dataclass(frozen=True)
class WizardHistory:
    """Visited steps plus a pointer to the current one.

    Attributes:
        steps: Steps in the order they were visited.
        index: Position of the current step in ``steps``.
    """

    steps: tuple[WizardStep, ...] = field(default=(WizardStep.UPLOAD,))
    index: int = 0

    @property
    def current(self) -> WizardStep:
        return self.steps[self.index]

    @property
    def can_go_back(self) -> bool:
        return self.index > 0

    @property
    def can_go_forward(self) -> bool:
        return self.index < len(self.steps) - 1

    def push_state(self, step: WizardStep) -> "WizardHistory":
        """Move to ``step``, discarding any steps ahead of the current one."""
        steps = self.steps[: self.index + 1] + (step,)
        return WizardHistory(steps=steps, index=len(steps) - 1)

    def go_back(self) -> "WizardHistory":
        """Return the history one step back (unchanged at the first step)."""
        if not self.can_go_back:
            return self
        return WizardHistory(steps=self.steps, index=self.index - 1)

    def go_forward(self) -> "WizardHistory":
        """Return the history one step forward (unchanged at the last step)."""
        if not self.can_go_forward:
            return self
        return WizardHistory(steps=self.steps, index=self.index + 1)
