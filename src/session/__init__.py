"""Session state for the resume wizard.

Public API:
- ReviewSession: Per-session drafts, tone switching, refinement and undo
- WizardHistory: Step history with back/forward navigation
- WizardStep: Enum of wizard steps
"""

from src.session.service import ReviewSession, SessionBusyError, SessionError
from src.session.wizard import WizardHistory, WizardStep

__all__ = [
    "ReviewSession",
    "SessionError",
    "SessionBusyError",
    "WizardHistory",
    "WizardStep",
]
