"""Error taxonomy shared by the arbiter, the executor and the loop."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Classification carried by failed results and fallback decisions."""

    PERCEPTION_PARTIAL = "PerceptionPartial"
    REASONING_UNREACHABLE = "ReasoningUnreachable"
    REASONING_MALFORMED_OUTPUT = "ReasoningMalformedOutput"
    REASONING_INVALID_ACTION = "ReasoningInvalidAction"
    ACTION_TARGET_NOT_FOUND = "ActionTargetNotFound"
    ACTION_MISSING_MATERIALS = "ActionMissingMaterials"
    ACTION_NO_PLACEMENT_SITE = "ActionNoPlacementSite"
    ACTION_TIMEOUT = "ActionTimeout"
    ACTION_BUSY = "ActionBusy"
    ACTION_FAILED = "ActionFailed"
    LOOP_ERROR = "LoopError"


class WorldUnavailableError(RuntimeError):
    """Raised at startup when the world-interaction capability cannot be reached."""


class ActionError(Exception):
    """Base class for failures detected by an action handler."""

    kind = ErrorKind.ACTION_FAILED


class TargetNotFoundError(ActionError):
    kind = ErrorKind.ACTION_TARGET_NOT_FOUND


class MissingMaterialsError(ActionError):
    kind = ErrorKind.ACTION_MISSING_MATERIALS


class NoPlacementSiteError(ActionError):
    kind = ErrorKind.ACTION_NO_PLACEMENT_SITE


class ActionTimeoutError(ActionError):
    kind = ErrorKind.ACTION_TIMEOUT


class ReasoningError(Exception):
    """Base class for reasoning-service failures; always recovered by the arbiter."""

    kind = ErrorKind.REASONING_MALFORMED_OUTPUT


class ReasoningUnreachableError(ReasoningError):
    kind = ErrorKind.REASONING_UNREACHABLE


class ReasoningMalformedOutputError(ReasoningError):
    kind = ErrorKind.REASONING_MALFORMED_OUTPUT


class ReasoningInvalidActionError(ReasoningError):
    kind = ErrorKind.REASONING_INVALID_ACTION
