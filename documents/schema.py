"""
Structured Document Schema - normalized document snapshots.

These are the shapes external loaders produce from raw document content and
the single contract the aligners and rules depend on. Every document variant
is an immutable snapshot keyed by its document id; entity ids are unique
within their owning document.

Serialization uses camelCase keys (``to_dict``/``from_dict``).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Tuple


class DocumentType(str, Enum):
    """The five regulatory documents checked against each other."""
    IB = "IB"
    PROTOCOL = "PROTOCOL"
    ICF = "ICF"
    SAP = "SAP"
    CSR = "CSR"


class EntityLevel(str, Enum):
    """Objective / endpoint level."""
    PRIMARY = "primary"
    SECONDARY = "secondary"
    EXPLORATORY = "exploratory"


class EndpointDataType(str, Enum):
    """Statistical data type of an endpoint."""
    CONTINUOUS = "continuous"
    BINARY = "binary"
    TIME_TO_EVENT = "time_to_event"
    ORDINAL = "ordinal"
    COUNT = "count"


# =============================================================================
# Helpers
# =============================================================================

def _get(data: Dict[str, Any], camel: str, snake: Optional[str] = None, default: Any = None) -> Any:
    """Read a key by its camelCase name, falling back to snake_case."""
    if camel in data:
        return data[camel]
    if snake and snake in data:
        return data[snake]
    return default


def _tuple(items: Optional[List[Any]], factory=None) -> Tuple[Any, ...]:
    if not items:
        return ()
    if factory is None:
        return tuple(items)
    return tuple(factory(item) for item in items)


def _optional_enum(enum_cls, value):
    if value in (None, ''):
        return None
    return enum_cls(value)


def _strip_none(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


# =============================================================================
# Entities
# =============================================================================

@dataclass(frozen=True)
class Objective:
    """Study objective as stated in the IB or the Protocol."""
    id: str
    type: EntityLevel
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "type": self.type.value, "text": self.text}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Objective":
        return cls(
            id=data["id"],
            type=EntityLevel(data["type"]),
            text=data.get("text") or data.get("description") or "",
        )


@dataclass(frozen=True)
class DoseRecord:
    """A dose regimen described in the IB."""
    id: str
    dose: str
    route: str = ""
    frequency: str = ""
    duration: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _strip_none({
            "id": self.id,
            "dose": self.dose,
            "route": self.route,
            "frequency": self.frequency,
            "duration": self.duration,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DoseRecord":
        return cls(
            id=data["id"],
            dose=data.get("dose", ""),
            route=data.get("route", ""),
            frequency=data.get("frequency", ""),
            duration=data.get("duration"),
        )


@dataclass(frozen=True)
class Endpoint:
    """Protocol endpoint."""
    id: str
    type: EntityLevel
    name: str
    description: str = ""
    data_type: Optional[EndpointDataType] = None
    variable: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _strip_none({
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "description": self.description,
            "dataType": self.data_type.value if self.data_type else None,
            "variable": self.variable,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Endpoint":
        return cls(
            id=data["id"],
            type=EntityLevel(data["type"]),
            name=data.get("name", ""),
            description=data.get("description") or "",
            data_type=_optional_enum(EndpointDataType, _get(data, "dataType", "data_type")),
            variable=data.get("variable"),
        )


@dataclass(frozen=True)
class TreatmentArm:
    """One study group with its own dose, route and frequency."""
    id: str
    name: str
    dose: Optional[str] = None
    route: Optional[str] = None
    frequency: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _strip_none({
            "id": self.id,
            "name": self.name,
            "dose": self.dose,
            "route": self.route,
            "frequency": self.frequency,
            "description": self.description,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TreatmentArm":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            dose=data.get("dose"),
            route=data.get("route"),
            frequency=data.get("frequency"),
            description=data.get("description"),
        )


@dataclass(frozen=True)
class Visit:
    """Scheduled Protocol visit."""
    id: str
    name: str
    day: Optional[int] = None
    week: Optional[int] = None
    procedures: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return _strip_none({
            "id": self.id,
            "name": self.name,
            "day": self.day,
            "week": self.week,
            "procedures": list(self.procedures),
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Visit":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            day=data.get("day"),
            week=data.get("week"),
            procedures=_tuple(data.get("procedures")),
        )


@dataclass(frozen=True)
class AnalysisPopulation:
    """Analysis set such as FAS, PPS or SAF."""
    id: str
    name: str
    abbreviation: str = ""
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "abbreviation": self.abbreviation,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisPopulation":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            abbreviation=data.get("abbreviation", ""),
            description=data.get("description", ""),
        )


@dataclass(frozen=True)
class ProcedureDescription:
    """Participant-facing procedure description in the ICF."""
    id: str
    name: str
    description: str = ""
    invasive: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "invasive": self.invasive,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProcedureDescription":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description", ""),
            invasive=bool(data.get("invasive", False)),
        )


@dataclass(frozen=True)
class SapEndpoint:
    """Endpoint as formalized in the SAP."""
    id: str
    name: str
    description: str = ""
    variable: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _strip_none({
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "variable": self.variable,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SapEndpoint":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description") or "",
            variable=data.get("variable"),
        )


@dataclass(frozen=True)
class StatisticalTest:
    """Statistical test the SAP assigns to an endpoint."""
    endpoint_id: str
    test: str
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _strip_none({
            "endpointId": self.endpoint_id,
            "test": self.test,
            "description": self.description,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatisticalTest":
        return cls(
            endpoint_id=_get(data, "endpointId", "endpoint_id"),
            test=data.get("test", ""),
            description=data.get("description"),
        )


@dataclass(frozen=True)
class CsrEndpoint:
    """Endpoint as reported in the CSR."""
    id: str
    name: str
    result: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _strip_none({"id": self.id, "name": self.name, "result": self.result})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CsrEndpoint":
        return cls(id=data["id"], name=data.get("name", ""), result=data.get("result"))


# =============================================================================
# Documents
# =============================================================================

@dataclass(frozen=True)
class StructuredIbDocument:
    """Investigator's Brochure."""
    document_type: ClassVar[DocumentType] = DocumentType.IB

    id: str
    version: Optional[str] = None
    objectives: Tuple[Objective, ...] = ()
    mechanism_of_action: Optional[str] = None
    target_population: Optional[str] = None
    key_risk_profile: Tuple[str, ...] = ()
    dosing_information: Tuple[DoseRecord, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return _strip_none({
            "id": self.id,
            "version": self.version,
            "objectives": [o.to_dict() for o in self.objectives],
            "mechanismOfAction": self.mechanism_of_action,
            "targetPopulation": self.target_population,
            "keyRiskProfile": list(self.key_risk_profile),
            "dosingInformation": [d.to_dict() for d in self.dosing_information],
            "metadata": dict(self.metadata) if self.metadata else None,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StructuredIbDocument":
        return cls(
            id=data["id"],
            version=data.get("version"),
            objectives=_tuple(data.get("objectives"), Objective.from_dict),
            mechanism_of_action=_get(data, "mechanismOfAction", "mechanism_of_action"),
            target_population=_get(data, "targetPopulation", "target_population"),
            key_risk_profile=_tuple(_get(data, "keyRiskProfile", "key_risk_profile")),
            dosing_information=_tuple(
                _get(data, "dosingInformation", "dosing_information"), DoseRecord.from_dict
            ),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass(frozen=True)
class StructuredProtocolDocument:
    """Clinical trial Protocol."""
    document_type: ClassVar[DocumentType] = DocumentType.PROTOCOL

    id: str
    version: Optional[str] = None
    objectives: Tuple[Objective, ...] = ()
    endpoints: Tuple[Endpoint, ...] = ()
    arms: Tuple[TreatmentArm, ...] = ()
    visit_schedule: Tuple[Visit, ...] = ()
    inclusion_criteria: Tuple[str, ...] = ()
    exclusion_criteria: Tuple[str, ...] = ()
    analysis_populations: Tuple[AnalysisPopulation, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)

    def endpoints_of(self, level: EntityLevel) -> List[Endpoint]:
        return [ep for ep in self.endpoints if ep.type == level]

    def endpoint(self, endpoint_id: str) -> Optional[Endpoint]:
        return next((ep for ep in self.endpoints if ep.id == endpoint_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return _strip_none({
            "id": self.id,
            "version": self.version,
            "objectives": [o.to_dict() for o in self.objectives],
            "endpoints": [e.to_dict() for e in self.endpoints],
            "arms": [a.to_dict() for a in self.arms],
            "visitSchedule": [v.to_dict() for v in self.visit_schedule],
            "inclusionCriteria": list(self.inclusion_criteria),
            "exclusionCriteria": list(self.exclusion_criteria),
            "analysisPopulations": [p.to_dict() for p in self.analysis_populations],
            "metadata": dict(self.metadata) if self.metadata else None,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StructuredProtocolDocument":
        return cls(
            id=data["id"],
            version=data.get("version"),
            objectives=_tuple(data.get("objectives"), Objective.from_dict),
            endpoints=_tuple(data.get("endpoints"), Endpoint.from_dict),
            arms=_tuple(data.get("arms"), TreatmentArm.from_dict),
            visit_schedule=_tuple(_get(data, "visitSchedule", "visit_schedule"), Visit.from_dict),
            inclusion_criteria=_tuple(_get(data, "inclusionCriteria", "inclusion_criteria")),
            exclusion_criteria=_tuple(_get(data, "exclusionCriteria", "exclusion_criteria")),
            analysis_populations=_tuple(
                _get(data, "analysisPopulations", "analysis_populations"), AnalysisPopulation.from_dict
            ),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass(frozen=True)
class StructuredIcfDocument:
    """Informed Consent Form."""
    document_type: ClassVar[DocumentType] = DocumentType.ICF

    id: str
    version: Optional[str] = None
    procedure_descriptions: Tuple[ProcedureDescription, ...] = ()
    visit_burden: Optional[str] = None
    risks: Tuple[str, ...] = ()
    benefits: Tuple[str, ...] = ()
    treatment_descriptions: Tuple[str, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return _strip_none({
            "id": self.id,
            "version": self.version,
            "procedureDescriptions": [p.to_dict() for p in self.procedure_descriptions],
            "visitBurden": self.visit_burden,
            "risks": list(self.risks),
            "benefits": list(self.benefits),
            "treatmentDescriptions": list(self.treatment_descriptions),
            "metadata": dict(self.metadata) if self.metadata else None,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StructuredIcfDocument":
        return cls(
            id=data["id"],
            version=data.get("version"),
            procedure_descriptions=_tuple(
                _get(data, "procedureDescriptions", "procedure_descriptions"), ProcedureDescription.from_dict
            ),
            visit_burden=_get(data, "visitBurden", "visit_burden"),
            risks=_tuple(data.get("risks")),
            benefits=_tuple(data.get("benefits")),
            treatment_descriptions=_tuple(_get(data, "treatmentDescriptions", "treatment_descriptions")),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass(frozen=True)
class StructuredSapDocument:
    """Statistical Analysis Plan."""
    document_type: ClassVar[DocumentType] = DocumentType.SAP

    id: str
    version: Optional[str] = None
    primary_endpoints: Tuple[SapEndpoint, ...] = ()
    secondary_endpoints: Tuple[SapEndpoint, ...] = ()
    statistical_tests: Tuple[StatisticalTest, ...] = ()
    sample_size_driver_endpoint: Optional[str] = None
    analysis_populations: Tuple[AnalysisPopulation, ...] = ()
    missing_data_strategy: Optional[str] = None
    multiplicity_strategy: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)

    def endpoints_of(self, level: EntityLevel) -> Tuple[SapEndpoint, ...]:
        if level == EntityLevel.PRIMARY:
            return self.primary_endpoints
        if level == EntityLevel.SECONDARY:
            return self.secondary_endpoints
        return ()

    def endpoint(self, endpoint_id: str) -> Optional[SapEndpoint]:
        return next(
            (ep for ep in self.primary_endpoints + self.secondary_endpoints if ep.id == endpoint_id),
            None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return _strip_none({
            "id": self.id,
            "version": self.version,
            "primaryEndpoints": [e.to_dict() for e in self.primary_endpoints],
            "secondaryEndpoints": [e.to_dict() for e in self.secondary_endpoints],
            "statisticalTests": [t.to_dict() for t in self.statistical_tests],
            "sampleSizeDriverEndpoint": self.sample_size_driver_endpoint,
            "analysisPopulations": [p.to_dict() for p in self.analysis_populations],
            "missingDataStrategy": self.missing_data_strategy,
            "multiplicityStrategy": self.multiplicity_strategy,
            "metadata": dict(self.metadata) if self.metadata else None,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StructuredSapDocument":
        return cls(
            id=data["id"],
            version=data.get("version"),
            primary_endpoints=_tuple(_get(data, "primaryEndpoints", "primary_endpoints"), SapEndpoint.from_dict),
            secondary_endpoints=_tuple(
                _get(data, "secondaryEndpoints", "secondary_endpoints"), SapEndpoint.from_dict
            ),
            statistical_tests=_tuple(
                _get(data, "statisticalTests", "statistical_tests"), StatisticalTest.from_dict
            ),
            sample_size_driver_endpoint=_get(data, "sampleSizeDriverEndpoint", "sample_size_driver_endpoint"),
            analysis_populations=_tuple(
                _get(data, "analysisPopulations", "analysis_populations"), AnalysisPopulation.from_dict
            ),
            missing_data_strategy=_get(data, "missingDataStrategy", "missing_data_strategy"),
            multiplicity_strategy=_get(data, "multiplicityStrategy", "multiplicity_strategy"),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass(frozen=True)
class StructuredCsrDocument:
    """Clinical Study Report."""
    document_type: ClassVar[DocumentType] = DocumentType.CSR

    id: str
    version: Optional[str] = None
    actual_methods: Tuple[str, ...] = ()
    analysis_sets: Tuple[AnalysisPopulation, ...] = ()
    reported_primary_endpoints: Tuple[CsrEndpoint, ...] = ()
    reported_secondary_endpoints: Tuple[CsrEndpoint, ...] = ()
    deviations_overview: Tuple[str, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)

    def endpoints_of(self, level: EntityLevel) -> Tuple[CsrEndpoint, ...]:
        if level == EntityLevel.PRIMARY:
            return self.reported_primary_endpoints
        if level == EntityLevel.SECONDARY:
            return self.reported_secondary_endpoints
        return ()

    def to_dict(self) -> Dict[str, Any]:
        return _strip_none({
            "id": self.id,
            "version": self.version,
            "actualMethods": list(self.actual_methods),
            "analysisSets": [p.to_dict() for p in self.analysis_sets],
            "reportedPrimaryEndpoints": [e.to_dict() for e in self.reported_primary_endpoints],
            "reportedSecondaryEndpoints": [e.to_dict() for e in self.reported_secondary_endpoints],
            "deviationsOverview": list(self.deviations_overview),
            "metadata": dict(self.metadata) if self.metadata else None,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StructuredCsrDocument":
        return cls(
            id=data["id"],
            version=data.get("version"),
            actual_methods=_tuple(_get(data, "actualMethods", "actual_methods")),
            analysis_sets=_tuple(_get(data, "analysisSets", "analysis_sets"), AnalysisPopulation.from_dict),
            reported_primary_endpoints=_tuple(
                _get(data, "reportedPrimaryEndpoints", "reported_primary_endpoints"), CsrEndpoint.from_dict
            ),
            reported_secondary_endpoints=_tuple(
                _get(data, "reportedSecondaryEndpoints", "reported_secondary_endpoints"), CsrEndpoint.from_dict
            ),
            deviations_overview=_tuple(_get(data, "deviationsOverview", "deviations_overview")),
            metadata=dict(data.get("metadata") or {}),
        )


# =============================================================================
# Bundle
# =============================================================================

@dataclass(frozen=True)
class CrossDocBundle:
    """
    Zero or one snapshot of each document type.

    Partial bundles are valid; pairings that need an absent document simply
    produce no links and no issues.
    """
    ib: Optional[StructuredIbDocument] = None
    protocol: Optional[StructuredProtocolDocument] = None
    icf: Optional[StructuredIcfDocument] = None
    sap: Optional[StructuredSapDocument] = None
    csr: Optional[StructuredCsrDocument] = None

    def get(self, document_type: DocumentType):
        return {
            DocumentType.IB: self.ib,
            DocumentType.PROTOCOL: self.protocol,
            DocumentType.ICF: self.icf,
            DocumentType.SAP: self.sap,
            DocumentType.CSR: self.csr,
        }[DocumentType(document_type)]

    def documents(self) -> Iterator[Tuple[DocumentType, Any]]:
        """Present documents in IB, Protocol, SAP, ICF, CSR order."""
        for doc_type in (DocumentType.IB, DocumentType.PROTOCOL, DocumentType.SAP,
                         DocumentType.ICF, DocumentType.CSR):
            doc = self.get(doc_type)
            if doc is not None:
                yield doc_type, doc

    def to_dict(self) -> Dict[str, Any]:
        return {doc_type.value.lower(): doc.to_dict() for doc_type, doc in self.documents()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CrossDocBundle":
        def load(key, doc_cls):
            raw = data.get(key) or data.get(key.upper())
            return doc_cls.from_dict(raw) if raw else None

        return cls(
            ib=load("ib", StructuredIbDocument),
            protocol=load("protocol", StructuredProtocolDocument),
            icf=load("icf", StructuredIcfDocument),
            sap=load("sap", StructuredSapDocument),
            csr=load("csr", StructuredCsrDocument),
        )
