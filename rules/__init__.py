"""
Cross-document rules.

The issue model lives in ``rules.base``; the rule library and its registry
in ``rules.registry`` (import it directly, it pulls in the fix builders).
"""

from .base import (
    Severity,
    Category,
    IssueLocation,
    Patch,
    Suggestion,
    Issue,
    RuleFunction,
)

__all__ = [
    'Severity',
    'Category',
    'IssueLocation',
    'Patch',
    'Suggestion',
    'Issue',
    'RuleFunction',
]
