"""
Auto-fix engine.

Turns the auto-fixable suggestions attached to selected issues into a merged
patch set plus a change log. Patches are only reported, never written; the
caller persists them.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Sequence

from changelog.change_tracker import ChangeLogEntry, merge_patches, track_change, validate_patch
from core.errors import PatchValidationError
from documents.schema import CrossDocBundle, DocumentType
from rules.base import Issue, Patch

logger = logging.getLogger(__name__)


class FixStrategy(str, Enum):
    """Which document is treated as the source of truth."""
    ALIGN_TO_PROTOCOL = 'align_to_protocol'
    ALIGN_TO_SAP = 'align_to_sap'
    ALIGN_TO_IB = 'align_to_ib'
    CUSTOM = 'custom'


@dataclass
class AutoFixRequest:
    """Issue codes to fix and the strategy to record."""
    issue_ids: List[str]
    strategy: FixStrategy = FixStrategy.ALIGN_TO_PROTOCOL

    def __post_init__(self):
        self.strategy = FixStrategy(self.strategy)


@dataclass(frozen=True)
class DocumentRef:
    document_type: DocumentType
    document_id: str

    def to_dict(self) -> Dict[str, str]:
        return {'type': self.document_type.value, 'id': self.document_id}


@dataclass
class AutoFixResult:
    applied_patches: List[Patch] = field(default_factory=list)
    updated_documents: List[DocumentRef] = field(default_factory=list)
    remaining_issues: List[Issue] = field(default_factory=list)
    changelog: List[ChangeLogEntry] = field(default_factory=list)
    strategy: FixStrategy = FixStrategy.ALIGN_TO_PROTOCOL
    rejected_patches: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'strategy': self.strategy.value,
            'appliedPatches': [p.to_dict() for p in self.applied_patches],
            'updatedDocuments': [d.to_dict() for d in self.updated_documents],
            'remainingIssues': [i.to_dict() for i in self.remaining_issues],
            'changelog': [e.to_dict() for e in self.changelog],
            'rejectedPatches': self.rejected_patches,
        }


def apply_autofixes(
    issues: Sequence[Issue],
    bundle: CrossDocBundle,
    request: AutoFixRequest,
) -> AutoFixResult:
    """
    Apply the first auto-fixable suggestion of every requested issue.

    Issues whose code is not requested pass through to ``remaining_issues``,
    as do requested issues with no auto-fixable suggestion. Invalid patches
    are dropped and logged. Valid patches are merged by (document type,
    document id, field) with the last one winning; the changelog keeps one
    entry per surviving patch.

    Raises:
        ValueError: ``bundle`` or ``request`` is None
    """
    if bundle is None:
        raise ValueError("apply_autofixes requires a bundle")
    if request is None:
        raise ValueError("apply_autofixes requires a request")

    requested = set(request.issue_ids)
    applied: List[Patch] = []
    changelog: List[ChangeLogEntry] = []
    remaining: List[Issue] = []
    rejected = 0

    for issue in issues:
        if issue.code not in requested:
            remaining.append(issue)
            continue

        suggestion = next((s for s in issue.suggestions if s.auto_fixable), None)
        if suggestion is None:
            logger.info(f"No auto-fix available for {issue.code}")
            remaining.append(issue)
            continue

        for patch in suggestion.patches:
            valid, errors = validate_patch(patch)
            if not valid:
                rejected += 1
                error = PatchValidationError(
                    f"Dropped patch from {issue.code}",
                    errors=errors,
                    rule=issue.code,
                    document_type=patch.document_type.value if patch.document_type else None,
                )
                logger.warning(f"{error}: {', '.join(error.errors)}", extra={'rule': issue.code})
                continue

            applied.append(patch)
            changelog.append(track_change(
                patch.document_type,
                patch.document_id,
                patch.field or 'content',
                patch.old_value or '',
                patch.new_value,
                f"Auto-fix for {issue.code}: {issue.message}",
            ))

    merged = merge_patches(applied)

    # changelog covers only patches that survived the merge
    kept = {id(patch) for patch in merged}
    superseded = len(applied) - len(merged)
    changelog = [entry for patch, entry in zip(applied, changelog) if id(patch) in kept]
    if superseded:
        logger.info(f"{superseded} patch(es) superseded by later patches for the same field")

    updated: List[DocumentRef] = []
    for patch in merged:
        ref = DocumentRef(patch.document_type, patch.document_id)
        if ref not in updated:
            updated.append(ref)

    logger.info(
        f"Auto-fix ({request.strategy.value}): {len(merged)} patch(es) across "
        f"{len(updated)} document(s), {len(remaining)} issue(s) remaining"
    )

    return AutoFixResult(
        applied_patches=merged,
        updated_documents=updated,
        remaining_issues=remaining,
        changelog=changelog,
        strategy=request.strategy,
        rejected_patches=rejected,
    )


def save_autofix_report(result: AutoFixResult, output_dir: str) -> str:
    """Save auto-fix result to output directory.

    Returns the path to the saved file.
    """
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, 'autofix_report.json')
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(result.to_dict(), f, indent=2)
    logger.info(f"Saved auto-fix report to {path}")
    return path
