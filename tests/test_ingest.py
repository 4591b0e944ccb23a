import time

import pytest

import ingest
from errors import ExtractionFailure
from ingest import decode_plain_text, detect_source_kind, extract_text
from schemas import SourceKind

PDF_TEXT = "CONTRATO DE LOCACIÓN. El locatario abona el canon mensual."


@pytest.mark.parametrize(
    "filename, mime, kind",
    [
        ("contrato.docx", None, SourceKind.WORD_PROCESSOR),
        ("contrato.PDF", None, SourceKind.DIGITAL_TEXT),
        ("escaneo.jpg", None, SourceKind.SCANNED_OCR),
        ("nota.txt", None, SourceKind.PLAIN),
        (None, "text/plain; charset=utf-8", SourceKind.PLAIN),
        (None, "image/png", SourceKind.SCANNED_OCR),
        ("sin_extension", None, SourceKind.DIGITAL_TEXT),
    ],
)
def test_detect_source_kind(filename, mime, kind):
    assert detect_source_kind(filename, mime) == kind


def test_plain_text_drops_the_bom():
    assert decode_plain_text("\ufeffHola".encode("utf-8")) == "Hola"


def test_plain_text_upload():
    result = extract_text("hola mundo".encode("utf-8"), filename="nota.txt")
    assert result.text == "hola mundo"
    assert result.source_kind == SourceKind.PLAIN
    assert result.notes == ["detected:plain"]


def test_empty_upload_fails():
    with pytest.raises(ExtractionFailure) as exc:
        extract_text(b"", filename="a.pdf")
    assert exc.value.notes == ["input:empty"]


def test_pdf_text_layer_is_used_when_present(monkeypatch):
    monkeypatch.setattr(ingest, "extract_pdf_text", lambda data: PDF_TEXT)
    monkeypatch.setattr(ingest, "extract_pdf_ocr", lambda data: pytest.fail("OCR should not run"))
    result = extract_text(b"%PDF-1.7", filename="contrato.pdf")
    assert result.text == PDF_TEXT
    assert result.source_kind == SourceKind.DIGITAL_TEXT


def test_thin_text_layer_falls_back_to_ocr(monkeypatch):
    monkeypatch.setattr(ingest, "extract_pdf_text", lambda data: "  \f  1 ")
    monkeypatch.setattr(ingest, "extract_pdf_ocr", lambda data: PDF_TEXT)
    result = extract_text(b"%PDF-1.7", filename="escaneado.pdf")
    assert result.source_kind == SourceKind.SCANNED_OCR
    assert result.text == PDF_TEXT
    assert "pdf-text:empty" in result.notes


def test_parser_error_falls_back_to_ocr(monkeypatch):
    def broken(data):
        raise ValueError("bad xref")

    monkeypatch.setattr(ingest, "extract_pdf_text", broken)
    monkeypatch.setattr(ingest, "extract_pdf_ocr", lambda data: PDF_TEXT)
    result = extract_text(b"%PDF-1.7", filename="roto.pdf")
    assert result.source_kind == SourceKind.SCANNED_OCR
    assert "pdf-text:error:ValueError" in result.notes


def test_parser_and_ocr_both_failing_is_an_extraction_failure(monkeypatch):
    def broken(data):
        raise RuntimeError("tesseract missing")

    monkeypatch.setattr(ingest, "extract_pdf_text", lambda data: "")
    monkeypatch.setattr(ingest, "extract_pdf_ocr", broken)
    with pytest.raises(ExtractionFailure) as exc:
        extract_text(b"%PDF-1.7", filename="vacio.pdf")
    assert "pdf-text:empty" in exc.value.notes
    assert "ocr:error:RuntimeError" in exc.value.notes


def test_slow_extraction_times_out(monkeypatch):
    def slow(data):
        time.sleep(0.5)
        return PDF_TEXT

    monkeypatch.setattr(ingest, "extract_pdf_text", slow)
    with pytest.raises(ExtractionFailure) as exc:
        extract_text(b"%PDF-1.7", filename="lento.pdf", timeout=0.05)
    assert "timeout:0.05s" in exc.value.notes
