"""
Normalized regulatory document snapshots and the bundle loader.
"""

from .schema import (
    DocumentType,
    EntityLevel,
    EndpointDataType,
    Objective,
    DoseRecord,
    Endpoint,
    TreatmentArm,
    Visit,
    AnalysisPopulation,
    ProcedureDescription,
    SapEndpoint,
    StatisticalTest,
    CsrEndpoint,
    StructuredIbDocument,
    StructuredProtocolDocument,
    StructuredIcfDocument,
    StructuredSapDocument,
    StructuredCsrDocument,
    CrossDocBundle,
)
from .loader import bundle_from_dict, load_bundle

__all__ = [
    'DocumentType',
    'EntityLevel',
    'EndpointDataType',
    'Objective',
    'DoseRecord',
    'Endpoint',
    'TreatmentArm',
    'Visit',
    'AnalysisPopulation',
    'ProcedureDescription',
    'SapEndpoint',
    'StatisticalTest',
    'CsrEndpoint',
    'StructuredIbDocument',
    'StructuredProtocolDocument',
    'StructuredIcfDocument',
    'StructuredSapDocument',
    'StructuredCsrDocument',
    'CrossDocBundle',
    'bundle_from_dict',
    'load_bundle',
]
