"""Autonomous survival agent core: perception, planning, reasoning and execution."""

__version__ = "0.1.0"
