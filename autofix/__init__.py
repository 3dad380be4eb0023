"""
Auto-fix: fix builders and the engine that applies their patches.
"""

from .fixes import (
    fix_primary_endpoint_drift,
    fix_dose_inconsistent,
    fix_sap_method_mismatch,
    generate_autofix_suggestions,
    ensure_suggestions,
)
from .engine import (
    FixStrategy,
    AutoFixRequest,
    AutoFixResult,
    DocumentRef,
    apply_autofixes,
    save_autofix_report,
)

__all__ = [
    'fix_primary_endpoint_drift',
    'fix_dose_inconsistent',
    'fix_sap_method_mismatch',
    'generate_autofix_suggestions',
    'ensure_suggestions',
    'FixStrategy',
    'AutoFixRequest',
    'AutoFixResult',
    'DocumentRef',
    'apply_autofixes',
    'save_autofix_report',
]
