"""Turn execution engine."""

from toolloop.engine.turn import IterationBudget, TurnEngine, UsageTracker

__all__ = ["IterationBudget", "TurnEngine", "UsageTracker"]
