# main.py: local batch runner, every document in CL_DATA_DIR -> outputs/<doc>/findings.json
from __future__ import annotations

import hashlib
import json
import logging
import re
import sys
from pathlib import Path
from typing import Dict, List

from telemetry import go_quiet

go_quiet()

from document_analysis import analyze_document  # noqa: E402  (after go_quiet: quiets the PDF stack)
from schemas import AnalysisReport, Severity  # noqa: E402
from settings import settings  # noqa: E402

logger = logging.getLogger("contractlens.runner")

SUPPORTED_SUFFIXES = (".pdf", ".docx", ".txt")


def safe_out_dir(outputs_dir: Path, raw_name: str) -> Path:
    stem = re.sub(r"[^A-Za-z0-9._-]+", "_", raw_name)[:50]
    h = hashlib.sha1(raw_name.encode("utf-8")).hexdigest()[:8]
    return outputs_dir / f"{stem}-{h}"


def summarize(report: AnalysisReport) -> Dict[str, object]:
    counts = {s.value: 0 for s in Severity}
    for f in report.findings:
        counts[f.severity.value] += 1
    overall = next((s for s in (Severity.HIGH, Severity.MEDIUM) if counts[s.value]), Severity.LOW)
    return {"total": len(report.findings), "counts": counts, "overall_risk": overall.value}


def save_report(report: AnalysisReport, out_dir: Path) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    payload = report.model_dump(mode="json", exclude={"document"})
    payload["summary"] = summarize(report)
    path = out_dir / "findings.json"
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return path


def collect_documents(data_dir: Path) -> List[Path]:
    return sorted(p for p in data_dir.iterdir() if p.is_file() and p.suffix.lower() in SUPPORTED_SUFFIXES)


def process_document(path: Path, outputs_dir: Path) -> AnalysisReport:
    report = analyze_document(path.read_bytes(), path.name)
    out = save_report(report, safe_out_dir(outputs_dir, path.stem))
    logger.info("%s: status=%s findings=%d -> %s", path.name, report.status, len(report.findings), out)
    return report


def main() -> int:
    data_dir = Path(settings.CL_DATA_DIR)
    outputs_dir = Path(settings.CL_OUTPUT_DIR)
    if not data_dir.is_dir():
        logger.error("Data directory %s does not exist", data_dir)
        return 1

    documents = collect_documents(data_dir)
    if not documents:
        logger.warning("No .pdf/.docx/.txt documents in %s", data_dir)
        return 0

    outputs_dir.mkdir(parents=True, exist_ok=True)
    failed = 0
    for path in documents:
        report = process_document(path, outputs_dir)
        if report.status != "ok":
            failed += 1
    logger.info("=== Done: %d documents, %d not analyzable ===", len(documents), failed)
    return 0


if __name__ == "__main__":
    sys.exit(main())
