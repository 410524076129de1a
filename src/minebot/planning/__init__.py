"""Deterministic planning over the tooling chain."""

from .goals import CRAFTING_TABLE, Defer, GoalPlanner, PlannerThresholds, Reachability
from .reachability import ReachabilityProbe

__all__ = [
    "CRAFTING_TABLE",
    "Defer",
    "GoalPlanner",
    "PlannerThresholds",
    "Reachability",
    "ReachabilityProbe",
]
