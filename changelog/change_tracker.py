"""
Change tracking for auto-fix patches.

Stateless helpers that record, describe, diff, validate, merge and size up
patches. Nothing here touches document storage.
"""

import difflib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from documents.schema import DocumentType
from rules.base import Patch

logger = logging.getLogger(__name__)

DESCRIPTION_MAX_LENGTH = 50


@dataclass(frozen=True)
class ChangeLogEntry:
    """One applied patch. Append-only; never modified after creation."""
    timestamp: str
    document_type: DocumentType
    document_id: str
    field: str
    old_value: str
    new_value: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp,
            'documentType': self.document_type.value,
            'documentId': self.document_id,
            'field': self.field,
            'oldValue': self.old_value,
            'newValue': self.new_value,
            'reason': self.reason,
        }


def track_change(
    document_type: DocumentType,
    document_id: str,
    field: str,
    old_value: str,
    new_value: str,
    reason: str,
) -> ChangeLogEntry:
    """Record a change with the current UTC timestamp."""
    return ChangeLogEntry(
        timestamp=datetime.now(timezone.utc).isoformat(),
        document_type=DocumentType(document_type),
        document_id=document_id,
        field=field,
        old_value=old_value,
        new_value=new_value,
        reason=reason,
    )


# =============================================================================
# Descriptions
# =============================================================================

def _truncate(text: str, max_length: int = DESCRIPTION_MAX_LENGTH) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + '...'


def describe_change(entry: ChangeLogEntry) -> str:
    """One-line summary: ``Changed SAP name: "old" → "new". Reason: ...``"""
    return (
        f'Changed {entry.document_type.value} {entry.field}: '
        f'"{_truncate(entry.old_value)}" → "{_truncate(entry.new_value)}". '
        f'Reason: {entry.reason}'
    )


def describe_changes(entries: Sequence[ChangeLogEntry]) -> str:
    """Multi-line summary grouped by document type, in first-seen order."""
    if not entries:
        return 'No changes made.'

    grouped: Dict[DocumentType, List[ChangeLogEntry]] = {}
    for entry in entries:
        grouped.setdefault(entry.document_type, []).append(entry)

    lines: List[str] = []
    for doc_type, changes in grouped.items():
        lines.append(f"{doc_type.value}:")
        lines.extend(f"  - {describe_change(change)}" for change in changes)
    return '\n'.join(lines)


# =============================================================================
# Diffs
# =============================================================================

@dataclass
class LineDiff:
    """Set-based line comparison. Reordered lines count as unchanged."""
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[str]]:
        return {'added': self.added, 'removed': self.removed, 'unchanged': self.unchanged}


def generate_diff(old_value: str, new_value: str) -> LineDiff:
    """
    Compare two texts line by line using set membership.

    This is not a sequence diff: moving a line does not register as a change
    and duplicate lines are not counted. Use ``generate_unified_diff`` when
    order matters.
    """
    old_lines = old_value.split('\n')
    new_lines = new_value.split('\n')
    old_set = set(old_lines)
    new_set = set(new_lines)

    diff = LineDiff()
    for line in old_lines:
        if line in new_set:
            diff.unchanged.append(line)
        else:
            diff.removed.append(line)

    unchanged = set(diff.unchanged)
    for line in new_lines:
        if line not in old_set and line not in unchanged:
            diff.added.append(line)

    return diff


def format_diff(diff: LineDiff) -> str:
    """Removed lines as ``- ``, then added lines as ``+ ``."""
    lines = [f"- {line}" for line in diff.removed]
    lines.extend(f"+ {line}" for line in diff.added)
    return '\n'.join(lines)


def generate_unified_diff(
    old_value: str,
    new_value: str,
    from_label: str = 'old',
    to_label: str = 'new',
    context: int = 3,
) -> str:
    """Order-aware unified diff of two texts."""
    return '\n'.join(difflib.unified_diff(
        old_value.split('\n'),
        new_value.split('\n'),
        fromfile=from_label,
        tofile=to_label,
        n=context,
        lineterm='',
    ))


# =============================================================================
# Patches
# =============================================================================

def validate_patch(patch: Patch) -> Tuple[bool, List[str]]:
    """
    Check the fields a patch needs before it can be applied.

    ``block_id``, ``field`` and ``old_value`` are optional.

    Returns:
        (valid, errors)
    """
    errors: List[str] = []
    if not patch.document_type:
        errors.append('Patch missing documentType')
    if not patch.document_id:
        errors.append('Patch missing documentId')
    if not patch.new_value:
        errors.append('Patch missing newValue')
    return not errors, errors


def patch_key(patch: Patch) -> Tuple[Optional[DocumentType], Optional[str], str]:
    return patch.document_type, patch.document_id, patch.field or 'root'


def merge_patches(patches: Sequence[Patch]) -> List[Patch]:
    """
    Collapse patches sharing (document type, document id, field).

    The last patch for a key wins; keys keep the position of their first
    occurrence.
    """
    merged: Dict[Tuple, Patch] = {}
    for patch in patches:
        merged[patch_key(patch)] = patch
    return list(merged.values())


@dataclass(frozen=True)
class ImpactEstimate:
    documents_affected: int
    fields_changed: int
    total_changes: int

    def to_dict(self) -> Dict[str, int]:
        return {
            'documentsAffected': self.documents_affected,
            'fieldsChanged': self.fields_changed,
            'totalChanges': self.total_changes,
        }


def estimate_impact(patches: Sequence[Patch]) -> ImpactEstimate:
    """Count distinct documents and distinct (document type, field) pairs."""
    documents = {(p.document_type, p.document_id) for p in patches}
    fields = {(p.document_type, p.field) for p in patches if p.field}
    return ImpactEstimate(
        documents_affected=len(documents),
        fields_changed=len(fields),
        total_changes=len(patches),
    )
