"""
LifeQuest: turn habits, studies, reading, goals, screen-time discipline and
schedules into XP, levels and a title.
"""

__version__ = "1.0.0"
