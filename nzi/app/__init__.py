"""Dashboard state and the staged config editor."""

from nzi.app.controller import ApplyOutcome, DraftController, Mode, NoDraftError
from nzi.app.dashboard import Dashboard
from nzi.app.draft import ConfigDraft, Section

__all__ = [
    "ApplyOutcome",
    "ConfigDraft",
    "Dashboard",
    "DraftController",
    "Mode",
    "NoDraftError",
    "Section",
]
