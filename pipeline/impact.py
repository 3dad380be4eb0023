"""
Change-impact lookup.

Maps a field edited in one document to the document types that restate it,
and to the name that field carries there.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Union

from documents.schema import DocumentType

logger = logging.getLogger(__name__)


# source document type -> field key -> consuming document types
FIELD_MAPPINGS: Dict[DocumentType, Dict[str, List[DocumentType]]] = {
    DocumentType.PROTOCOL: {
        'primary_endpoint': [DocumentType.SAP, DocumentType.CSR, DocumentType.ICF],
        'secondary_endpoints': [DocumentType.SAP, DocumentType.CSR],
        'inclusion_criteria': [DocumentType.ICF],
        'exclusion_criteria': [DocumentType.ICF],
        'study_duration': [DocumentType.ICF, DocumentType.SAP],
        'visit_schedule': [DocumentType.ICF, DocumentType.SAP],
        'treatment_arms': [DocumentType.SAP, DocumentType.CSR, DocumentType.ICF],
        'sample_size': [DocumentType.SAP],
        'objectives': [DocumentType.IB, DocumentType.SAP, DocumentType.CSR],
    },
    DocumentType.IB: {
        'mechanism_of_action': [DocumentType.PROTOCOL],
        'dosing_information': [DocumentType.PROTOCOL, DocumentType.ICF],
        'safety_profile': [DocumentType.PROTOCOL, DocumentType.ICF],
        'contraindications': [DocumentType.PROTOCOL, DocumentType.ICF],
    },
    DocumentType.SAP: {
        'analysis_populations': [DocumentType.CSR],
        'statistical_methods': [DocumentType.CSR],
    },
}

# consuming document type -> source field key -> field name in that document
RELATED_FIELDS: Dict[DocumentType, Dict[str, str]] = {
    DocumentType.SAP: {
        'primary_endpoint': 'primary_analysis_endpoint',
        'secondary_endpoints': 'secondary_analysis_endpoints',
    },
    DocumentType.CSR: {
        'primary_endpoint': 'primary_efficacy_endpoint',
        'secondary_endpoints': 'secondary_efficacy_endpoints',
    },
    DocumentType.ICF: {
        'primary_endpoint': 'study_purpose',
        'inclusion_criteria': 'eligibility_requirements',
        'exclusion_criteria': 'eligibility_requirements',
    },
}


@dataclass(frozen=True)
class AffectedField:
    document_type: DocumentType
    field: str

    def to_dict(self) -> Dict[str, str]:
        return {'documentType': self.document_type.value, 'field': self.field}


def normalize_field_key(field: str) -> str:
    """``"Primary Endpoint"`` -> ``"primary_endpoint"``."""
    return re.sub(r'\s+', '_', field.strip().lower())


def find_affected_documents(
    document_type: Union[DocumentType, str],
    field: str,
) -> List[DocumentType]:
    """
    Document types that consume ``field`` of ``document_type``.

    Unknown document types and fields yield an empty list.
    """
    try:
        source = DocumentType(document_type)
    except ValueError:
        logger.debug(f"Unknown document type for impact lookup: {document_type!r}")
        return []
    return list(FIELD_MAPPINGS.get(source, {}).get(normalize_field_key(field), []))


def find_affected_fields(
    document_type: Union[DocumentType, str],
    field: str,
) -> List[AffectedField]:
    """Like ``find_affected_documents``, with the field name used in each target."""
    key = normalize_field_key(field)
    return [
        AffectedField(target, RELATED_FIELDS.get(target, {}).get(key, key))
        for target in find_affected_documents(document_type, field)
    ]
