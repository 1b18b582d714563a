from __future__ import annotations

from typing import Any, Dict, Optional


class StaffMatchError(Exception):
    """Base class for errors raised by the matching core."""


class ValidationError(StaffMatchError, ValueError):
    """Missing or malformed target criteria or request options."""


class NotFoundError(StaffMatchError, LookupError):
    """A referenced target or candidate pool source could not be resolved."""


class UpstreamDependencyError(StaffMatchError):
    """
    A document fetch or AI call failed.

    Never surfaced to callers of the engine: the stage that raised it is
    dropped and the deterministic result is used instead.
    """

    def __init__(self, message: str, *, stage: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.stage = stage
        self.context = dict(context or {})
