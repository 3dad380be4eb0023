"""
Issue model for cross-document rules.

A rule is an async callable ``(bundle, alignments) -> List[Issue]``. Issues
are produced fresh on every run; nothing about them persists between runs.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from alignment.links import Alignments
from documents.schema import CrossDocBundle, DocumentType


class Severity(str, Enum):
    CRITICAL = 'critical'
    ERROR = 'error'
    WARNING = 'warning'
    INFO = 'info'


class Category(str, Enum):
    """Document pairing an issue belongs to."""
    IB_PROTOCOL = 'IB_PROTOCOL'
    PROTOCOL_ICF = 'PROTOCOL_ICF'
    PROTOCOL_SAP = 'PROTOCOL_SAP'
    PROTOCOL_CSR = 'PROTOCOL_CSR'
    SAP_CSR = 'SAP_CSR'
    GLOBAL = 'GLOBAL'


@dataclass(frozen=True)
class IssueLocation:
    """Where in a document an issue was found."""
    document_type: DocumentType
    section_id: Optional[str] = None
    block_id: Optional[str] = None
    field: Optional[str] = None
    line: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {'documentType': self.document_type.value}
        if self.section_id:
            d['sectionId'] = self.section_id
        if self.block_id:
            d['blockId'] = self.block_id
        if self.field:
            d['field'] = self.field
        if self.line is not None:
            d['line'] = self.line
        return d


@dataclass(frozen=True)
class Patch:
    """
    Atomic proposed edit to one document field.

    ``document_type``, ``document_id`` and ``new_value`` are required for a
    patch to be applied; they are optional here so malformed patches coming
    from outside can still be represented and rejected by validation.
    """
    document_type: Optional[DocumentType] = None
    document_id: Optional[str] = None
    new_value: Optional[str] = None
    block_id: Optional[str] = None
    field: Optional[str] = None
    old_value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            'documentType': self.document_type.value if self.document_type else None,
            'documentId': self.document_id,
            'newValue': self.new_value,
        }
        if self.block_id:
            d['blockId'] = self.block_id
        if self.field:
            d['field'] = self.field
        if self.old_value is not None:
            d['oldValue'] = self.old_value
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Patch":
        doc_type = data.get('documentType')
        return cls(
            document_type=DocumentType(doc_type) if doc_type else None,
            document_id=data.get('documentId'),
            new_value=data.get('newValue'),
            block_id=data.get('blockId'),
            field=data.get('field'),
            old_value=data.get('oldValue'),
        )


@dataclass(frozen=True)
class Suggestion:
    """A proposed remedy; auto-fixable ones carry the patches realizing it."""
    id: str
    label: str
    auto_fixable: bool = False
    patches: List[Patch] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'label': self.label,
            'autoFixable': self.auto_fixable,
            'patches': [p.to_dict() for p in self.patches],
        }


@dataclass
class Issue:
    """A consistency defect reported by a rule."""
    code: str
    severity: Severity
    message: str
    locations: List[IssueLocation] = field(default_factory=list)
    details: Optional[str] = None
    suggestions: List[Suggestion] = field(default_factory=list)
    category: Optional[Category] = None

    @property
    def auto_fixable(self) -> bool:
        return any(s.auto_fixable for s in self.suggestions)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            'code': self.code,
            'severity': self.severity.value,
            'message': self.message,
            'locations': [loc.to_dict() for loc in self.locations],
        }
        if self.category:
            d['category'] = self.category.value
        if self.details:
            d['details'] = self.details
        if self.suggestions:
            d['suggestions'] = [s.to_dict() for s in self.suggestions]
        return d


RuleFunction = Callable[[CrossDocBundle, Alignments], Awaitable[List[Issue]]]
