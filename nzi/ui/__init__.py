"""Terminal rendering."""

from nzi.ui.display import render_dashboard

__all__ = ["render_dashboard"]
