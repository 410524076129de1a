"""Single-flight action execution."""

from .executor import ActionExecutor, parse_coordinates
from .flight import SingleFlight

__all__ = ["ActionExecutor", "SingleFlight", "parse_coordinates"]
