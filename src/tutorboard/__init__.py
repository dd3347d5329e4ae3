"""
tutorboard: onboarding and achievement progression engine for the tutoring
dashboard.
"""

__version__ = "0.1.0"
