"""Reasoning-service integration and planner/LLM arbitration."""

from .arbiter import ArbitratedDecision, DecisionArbiter, clean_response, parse_decision
from .ollama import OllamaReasoningClient
from .service import ReasoningProbe, ReasoningService

__all__ = [
    "ArbitratedDecision",
    "DecisionArbiter",
    "OllamaReasoningClient",
    "ReasoningProbe",
    "ReasoningService",
    "clean_response",
    "parse_decision",
]
