import json

import main
from rule_utils import make_finding
from schemas import AnalysisReport, Severity
from settings import settings


def _report(*severities):
    findings = [make_finding(f"r{i}", "t", s, "d") for i, s in enumerate(severities)]
    return AnalysisReport(document_name="x.txt", findings=findings)


def test_summary_counts_and_overall_risk():
    summary = main.summarize(_report(Severity.LOW, Severity.MEDIUM, Severity.MEDIUM))
    assert summary["total"] == 3
    assert summary["counts"] == {"low": 1, "medium": 2, "high": 0}
    assert summary["overall_risk"] == "medium"
    assert main.summarize(_report())["overall_risk"] == "low"


def test_safe_out_dir_is_stable_and_filesystem_safe(tmp_path):
    first = main.safe_out_dir(tmp_path, "contrato final (v2)/copia")
    assert first == main.safe_out_dir(tmp_path, "contrato final (v2)/copia")
    assert first.parent == tmp_path
    assert "/" not in first.name and " " not in first.name


def test_batch_run_writes_one_report_per_document(tmp_path, monkeypatch, lease_text):
    data_dir = tmp_path / "data"
    out_dir = tmp_path / "outputs"
    data_dir.mkdir()
    (data_dir / "locacion.txt").write_text(lease_text("2 meses"), encoding="utf-8")
    (data_dir / "ignorar.csv").write_text("a,b", encoding="utf-8")
    monkeypatch.setattr(settings, "CL_DATA_DIR", str(data_dir))
    monkeypatch.setattr(settings, "CL_OUTPUT_DIR", str(out_dir))

    assert main.main() == 0

    [report_path] = list(out_dir.glob("*/findings.json"))
    payload = json.loads(report_path.read_text(encoding="utf-8"))
    assert payload["status"] == "ok"
    assert "document" not in payload
    assert payload["summary"]["overall_risk"] == "high"


def test_missing_data_dir_is_an_error(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "CL_DATA_DIR", str(tmp_path / "nope"))
    assert main.main() == 1
