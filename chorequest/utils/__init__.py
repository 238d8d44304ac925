"""Utility helpers for ChoreQuest."""
