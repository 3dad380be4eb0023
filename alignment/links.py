"""
Alignment link types.

A link pairs (or fails to pair) an entity from one document with its
counterparts in others. Links are ephemeral analysis artifacts: they are
recomputed on every run and never written back into documents.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from documents.schema import EntityLevel


def _link_dict(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


@dataclass(frozen=True)
class ObjectiveLink:
    """IB objective <-> Protocol objective."""
    type: EntityLevel
    ib_objective_id: Optional[str] = None
    protocol_objective_id: Optional[str] = None
    similarity_score: float = 0.0
    aligned: bool = False

    @property
    def is_orphan(self) -> bool:
        return self.ib_objective_id is None or self.protocol_objective_id is None

    def to_dict(self) -> Dict[str, Any]:
        return _link_dict({
            "ibObjectiveId": self.ib_objective_id,
            "protocolObjectiveId": self.protocol_objective_id,
            "type": self.type.value,
            "similarityScore": round(self.similarity_score, 4),
            "aligned": self.aligned,
        })


@dataclass(frozen=True)
class EndpointLink:
    """Protocol endpoint <-> SAP endpoint <-> CSR reported endpoint."""
    type: EntityLevel
    protocol_endpoint_id: Optional[str] = None
    sap_endpoint_id: Optional[str] = None
    csr_endpoint_id: Optional[str] = None
    similarity_score: float = 0.0
    aligned: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return _link_dict({
            "protocolEndpointId": self.protocol_endpoint_id,
            "sapEndpointId": self.sap_endpoint_id,
            "csrEndpointId": self.csr_endpoint_id,
            "type": self.type.value,
            "similarityScore": round(self.similarity_score, 4),
            "aligned": self.aligned,
        })


@dataclass(frozen=True)
class DoseLink:
    """IB dose record <-> Protocol treatment arm."""
    ib_dose_id: Optional[str] = None
    protocol_arm_id: Optional[str] = None
    similarity_score: float = 0.0
    aligned: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return _link_dict({
            "ibDoseId": self.ib_dose_id,
            "protocolArmId": self.protocol_arm_id,
            "similarityScore": round(self.similarity_score, 4),
            "aligned": self.aligned,
        })


@dataclass(frozen=True)
class PopulationLink:
    """Analysis population across Protocol, SAP and CSR. Not yet populated."""
    protocol_population_id: Optional[str] = None
    sap_population_id: Optional[str] = None
    csr_population_id: Optional[str] = None
    similarity_score: float = 0.0
    aligned: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return _link_dict({
            "protocolPopulationId": self.protocol_population_id,
            "sapPopulationId": self.sap_population_id,
            "csrPopulationId": self.csr_population_id,
            "similarityScore": round(self.similarity_score, 4),
            "aligned": self.aligned,
        })


@dataclass(frozen=True)
class VisitLink:
    """Protocol visit <-> ICF procedure. Not yet populated."""
    protocol_visit_id: Optional[str] = None
    icf_procedure_id: Optional[str] = None
    similarity_score: float = 0.0
    aligned: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return _link_dict({
            "protocolVisitId": self.protocol_visit_id,
            "icfProcedureId": self.icf_procedure_id,
            "similarityScore": round(self.similarity_score, 4),
            "aligned": self.aligned,
        })


@dataclass
class Alignments:
    """All links computed for one bundle."""
    objectives: List[ObjectiveLink] = field(default_factory=list)
    endpoints: List[EndpointLink] = field(default_factory=list)
    doses: List[DoseLink] = field(default_factory=list)
    populations: List[PopulationLink] = field(default_factory=list)
    visits: List[VisitLink] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        return {
            "objectives": len(self.objectives),
            "endpoints": len(self.endpoints),
            "doses": len(self.doses),
            "populations": len(self.populations),
            "visits": len(self.visits),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "objectives": [link.to_dict() for link in self.objectives],
            "endpoints": [link.to_dict() for link in self.endpoints],
            "doses": [link.to_dict() for link in self.doses],
            "populations": [link.to_dict() for link in self.populations],
            "visits": [link.to_dict() for link in self.visits],
        }
