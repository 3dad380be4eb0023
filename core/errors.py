"""
CrossDocError hierarchy for the cross-document consistency engine.

Provides typed exceptions so callers can tell input-boundary failures apart
from failures inside a single rule, and so logging can categorize them
without parsing message strings.

Hierarchy:
    CrossDocError                       (base of all engine errors)
    ├── ConfigurationError              (bad config file or value)
    ├── BundleLoadError                 (malformed normalized document JSON)
    ├── RuleExecutionError              (a rule raised while evaluating)
    └── PatchValidationError            (patch missing required fields)
"""

from typing import List, Optional


class CrossDocError(Exception):
    """Base exception for all cross-document engine errors."""

    def __init__(self, message: str, *, document_type: Optional[str] = None,
                 rule: Optional[str] = None, cause: Optional[Exception] = None):
        self.document_type = document_type
        self.rule = rule
        self.cause = cause
        super().__init__(message)
        if cause and not self.__cause__:
            self.__cause__ = cause

    def to_dict(self) -> dict:
        """Structured representation for logging."""
        d = {
            "error_type": type(self).__name__,
            "message": str(self),
        }
        if self.document_type:
            d["document_type"] = self.document_type
        if self.rule:
            d["rule"] = self.rule
        if self.cause:
            d["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return d


# ── Configuration ────────────────────────────────────────────────────

class ConfigurationError(CrossDocError):
    """Unreadable config file or a value of the wrong type."""
    pass


# ── Input boundary ───────────────────────────────────────────────────

class BundleLoadError(CrossDocError):
    """Normalized document JSON could not be turned into a bundle."""
    pass


# ── Rule evaluation ──────────────────────────────────────────────────

class RuleExecutionError(CrossDocError):
    """A rule raised while evaluating; logged by the engine, never re-raised."""
    pass


# ── Patches ──────────────────────────────────────────────────────────

class PatchValidationError(CrossDocError):
    """Patch is missing documentType, documentId or newValue."""

    def __init__(self, message: str = "Invalid patch", *,
                 errors: Optional[List[str]] = None, **kwargs):
        self.errors = list(errors or [])
        super().__init__(message, **kwargs)

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["errors"] = self.errors
        return d
