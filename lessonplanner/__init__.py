"""
Lesson planner - recurring lesson schedules and payment calculations for course institutions.
"""

__version__ = "0.1.0"
