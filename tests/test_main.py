"""
Tests for the command-line entry point.
"""

import json
import logging

import pytest

from main import build_parser, main


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _write_bundle(tmp_path, sap_name="Overall survival", sap_description="Time to death from any cause"):
    data = {
        "protocol": {
            "id": "prot-1",
            "version": "2.0",
            "endpoints": [{
                "id": "p-e1",
                "type": "primary",
                "name": "HbA1c change",
                "description": "Change from baseline in HbA1c at Week 24",
                "dataType": "continuous",
            }],
        },
        "sap": {
            "id": "sap-1",
            "version": "1.0",
            "primaryEndpoints": [{"id": "s-e1", "name": sap_name, "description": sap_description}],
        },
    }
    path = tmp_path / "bundle.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


class TestParser:

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_autofix_requires_issue(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["autofix", "bundle.json"])

    def test_repeatable_issue(self):
        args = build_parser().parse_args(["autofix", "b.json", "-i", "A", "--issue", "B", "-s", "align_to_sap"])
        assert args.issues == ["A", "B"]
        assert args.strategy == "align_to_sap"


class TestValidateCommand:

    def test_clean_bundle(self, tmp_path, capsys):
        path = tmp_path / "bundle.json"
        path.write_text("{}", encoding="utf-8")
        assert main(["validate", str(path)]) == 0
        assert "No cross-document issues found." in capsys.readouterr().out

    def test_critical_issue_exit_code(self, tmp_path, capsys):
        assert main(["validate", _write_bundle(tmp_path)]) == 1
        out = capsys.readouterr().out
        assert "[CRITICAL] PROTOCOL_SAP PRIMARY_ENDPOINT_DRIFT" in out
        assert out.index("[CRITICAL]") == 0

    def test_writes_report(self, tmp_path):
        out_dir = tmp_path / "reports"
        main(["--output-dir", str(out_dir), "validate", _write_bundle(tmp_path)])
        with open(out_dir / "validation_report.json", encoding="utf-8") as f:
            data = json.load(f)
        assert data["summary"]["critical"] == 1

    def test_missing_bundle(self, tmp_path):
        assert main(["validate", str(tmp_path / "absent.json")]) == 1

    def test_bad_config(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("primary_objective_policy: closest\n", encoding="utf-8")
        assert main(["--config", str(config), "validate", _write_bundle(tmp_path)]) == 1


class TestAutofixCommand:

    def test_fixes_drift(self, tmp_path, capsys):
        out_dir = tmp_path / "reports"
        code = main([
            "-o", str(out_dir), "autofix", _write_bundle(tmp_path), "--issue", "PRIMARY_ENDPOINT_DRIFT",
        ])
        assert code == 0

        out = capsys.readouterr().out
        assert out.startswith("SAP:")
        assert 'Changed SAP name: "Overall survival" → "HbA1c change"' in out

        with open(out_dir / "autofix_report.json", encoding="utf-8") as f:
            report = json.load(f)
        assert report["strategy"] == "align_to_protocol"
        assert [p["field"] for p in report["appliedPatches"]] == ["name", "description"]

    def test_unrequested_code_leaves_critical(self, tmp_path, capsys):
        code = main(["autofix", _write_bundle(tmp_path), "--issue", "TEST_MISMATCH"])
        assert code == 1
        assert "No changes made." in capsys.readouterr().out
