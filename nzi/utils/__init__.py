"""Utility modules for the dashboard."""

from nzi.utils.retry import create_retry_decorator, with_retry

__all__ = [
    "create_retry_decorator",
    "with_retry",
]
