"""
Cross-document validation pipeline.

The engine that runs the rule registry over a bundle, report persistence,
and the change-impact lookup.
"""

from .engine import (
    CrossDocEngine,
    ValidationResult,
    build_validation_result,
    save_validation_report,
)
from .impact import (
    FIELD_MAPPINGS,
    AffectedField,
    find_affected_documents,
    find_affected_fields,
)

__all__ = [
    'CrossDocEngine',
    'ValidationResult',
    'build_validation_result',
    'save_validation_report',
    'FIELD_MAPPINGS',
    'AffectedField',
    'find_affected_documents',
    'find_affected_fields',
]
