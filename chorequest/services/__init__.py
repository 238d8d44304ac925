"""Business logic services for ChoreQuest."""
