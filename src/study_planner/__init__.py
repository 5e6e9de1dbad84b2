"""
Readiness-adaptive study planner.

Turns a daily check-in into a sized, difficulty-adjusted study plan and
learns from completed sessions.
"""

from .config.loader import load_settings

__all__ = ["load_settings"]
