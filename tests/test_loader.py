"""
Tests for documents.loader and the document schema's dict conversion.
"""

import json

import pytest

from core.errors import BundleLoadError
from documents import (
    CrossDocBundle,
    DocumentType,
    EndpointDataType,
    EntityLevel,
    StructuredProtocolDocument,
    bundle_from_dict,
    load_bundle,
)


def _make_bundle_data():
    return {
        "protocol": {
            "id": "prot-1",
            "version": "2.0",
            "objectives": [{"id": "p-o1", "type": "primary", "text": "Evaluate efficacy"}],
            "endpoints": [{
                "id": "p-e1",
                "type": "primary",
                "name": "HbA1c change",
                "description": "Change from baseline in HbA1c",
                "dataType": "continuous",
            }],
            "arms": [{"id": "a1", "name": "Drug X", "dose": "10 mg", "route": "oral"}],
        },
        "SAP": {
            "id": "sap-1",
            "primary_endpoints": [{"id": "s-e1", "name": "HbA1c change"}],
            "statisticalTests": [{"endpointId": "p-e1", "test": "ANCOVA"}],
        },
    }


class TestBundleFromDict:

    def test_parses_documents(self):
        bundle = bundle_from_dict(_make_bundle_data())
        assert bundle.ib is None
        assert bundle.protocol.id == "prot-1"
        assert bundle.protocol.endpoints[0].data_type == EndpointDataType.CONTINUOUS
        assert bundle.protocol.objectives[0].type == EntityLevel.PRIMARY

    def test_uppercase_and_snake_case_keys(self):
        bundle = bundle_from_dict(_make_bundle_data())
        assert bundle.sap.primary_endpoints[0].name == "HbA1c change"
        assert bundle.sap.statistical_tests[0].endpoint_id == "p-e1"

    def test_document_order(self):
        bundle = bundle_from_dict(_make_bundle_data())
        assert [doc_type for doc_type, _ in bundle.documents()] == [DocumentType.PROTOCOL, DocumentType.SAP]

    def test_empty_bundle(self):
        assert bundle_from_dict({}) == CrossDocBundle()

    def test_not_a_mapping(self):
        with pytest.raises(BundleLoadError, match="mapping"):
            bundle_from_dict(["protocol"])

    def test_missing_id(self):
        data = _make_bundle_data()
        del data["protocol"]["id"]
        with pytest.raises(BundleLoadError, match="Missing required field"):
            bundle_from_dict(data)

    def test_unknown_level(self):
        data = _make_bundle_data()
        data["protocol"]["objectives"][0]["type"] = "tertiary"
        with pytest.raises(BundleLoadError, match="Malformed bundle"):
            bundle_from_dict(data)


class TestLoadBundle:

    def test_json(self, tmp_path):
        path = tmp_path / "bundle.json"
        path.write_text(json.dumps(_make_bundle_data()), encoding="utf-8")
        assert load_bundle(path).protocol.arms[0].dose == "10 mg"

    def test_yaml(self, tmp_path):
        path = tmp_path / "bundle.yaml"
        path.write_text(
            "ib:\n"
            "  id: ib-1\n"
            "  objectives:\n"
            "    - {id: ib-o1, type: primary, text: Evaluate efficacy}\n",
            encoding="utf-8",
        )
        bundle = load_bundle(str(path))
        assert bundle.ib.objectives[0].text == "Evaluate efficacy"

    def test_missing_file(self, tmp_path):
        with pytest.raises(BundleLoadError, match="not found"):
            load_bundle(tmp_path / "absent.json")

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "bundle.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(BundleLoadError) as exc_info:
            load_bundle(path)
        assert exc_info.value.cause is not None


class TestDocumentDicts:

    def test_protocol_round_trip(self):
        protocol = bundle_from_dict(_make_bundle_data()).protocol
        assert StructuredProtocolDocument.from_dict(protocol.to_dict()) == protocol

    def test_camel_case_output(self):
        data = bundle_from_dict(_make_bundle_data()).to_dict()
        assert set(data) == {"protocol", "sap"}
        assert data["protocol"]["endpoints"][0]["dataType"] == "continuous"
        assert data["sap"]["statisticalTests"][0]["endpointId"] == "p-e1"
