"""ChoreQuest: household task tracker with points, streaks and levels."""

__version__ = '0.1.0'
