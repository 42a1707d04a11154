"""HabitCheck: habit tracking and cough incident logging with dashboard statistics."""

__version__ = "1.0.0"
