"""
Change tracking for auto-fix patches.
"""

from .change_tracker import (
    ChangeLogEntry,
    LineDiff,
    ImpactEstimate,
    track_change,
    describe_change,
    describe_changes,
    generate_diff,
    format_diff,
    generate_unified_diff,
    validate_patch,
    merge_patches,
    estimate_impact,
)

__all__ = [
    'ChangeLogEntry',
    'LineDiff',
    'ImpactEstimate',
    'track_change',
    'describe_change',
    'describe_changes',
    'generate_diff',
    'format_diff',
    'generate_unified_diff',
    'validate_patch',
    'merge_patches',
    'estimate_impact',
]
