"""
Text extraction for uploaded documents.

PDF text layer via pdfplumber (pages joined with form feeds), OCR fallback
via PyMuPDF rendering + pytesseract, DOCX via python-docx, plain text as
UTF-8. Every extraction runs under a timeout.
"""
from __future__ import annotations

import io
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import docx
import fitz  # PyMuPDF
import pdfplumber
import pytesseract
from PIL import Image

from errors import EXTRACTION_FAILED_MESSAGE, ExtractionFailure
from offset_mapper import PAGE_BREAK
from schemas import ExtractionResult, SourceKind
from settings import settings

logger = logging.getLogger("contractlens.ingest")

MIN_TEXT_LAYER_CHARS = 20      # below this a PDF is treated as scanned
OCR_ZOOM = 2.0                 # render at 2x for better OCR

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PDF_MIME = "application/pdf"
IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp")


def detect_source_kind(filename: Optional[str] = None, mime: Optional[str] = None) -> SourceKind:
    """
    Guess the extraction path from filename and MIME type.

    PDFs start as digital text; the OCR fallback decides later whether the
    document was actually scanned. Unknown inputs are tried as PDF.
    """
    suffix = Path(filename or "").suffix.lower()
    mime = (mime or "").lower()
    if suffix == ".docx" or DOCX_MIME in mime:
        return SourceKind.WORD_PROCESSOR
    if suffix == ".pdf" or PDF_MIME in mime:
        return SourceKind.DIGITAL_TEXT
    if suffix in IMAGE_SUFFIXES or mime.startswith("image/"):
        return SourceKind.SCANNED_OCR
    if suffix in (".txt", ".text") or mime.startswith("text/"):
        return SourceKind.PLAIN
    return SourceKind.DIGITAL_TEXT


# ---- Extractors ----
def extract_docx_text(data: bytes) -> str:
    document = docx.Document(io.BytesIO(data))
    return "\n".join(p.text for p in document.paragraphs)


def extract_pdf_text(data: bytes) -> str:
    pages = []
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            pages.append((page.extract_text() or "").strip())
    return PAGE_BREAK.join(pages)


def ocr_image(img: "Image.Image", lang: Optional[str] = None) -> str:
    return pytesseract.image_to_string(img, lang=lang or settings.CL_OCR_LANG)


def extract_pdf_ocr(data: bytes, lang: Optional[str] = None) -> str:
    pages = []
    pdf_document = fitz.open(stream=data, filetype="pdf")
    try:
        for page in pdf_document:
            pix = page.get_pixmap(matrix=fitz.Matrix(OCR_ZOOM, OCR_ZOOM))
            img = Image.open(io.BytesIO(pix.tobytes("png")))
            pages.append(ocr_image(img, lang).strip())
    finally:
        pdf_document.close()
    return PAGE_BREAK.join(pages)


def extract_image_ocr(data: bytes, lang: Optional[str] = None) -> str:
    with Image.open(io.BytesIO(data)) as img:
        return ocr_image(img, lang)


def decode_plain_text(data: bytes) -> str:
    return data.decode("utf-8", errors="replace").lstrip("\ufeff")


def _visible_chars(text: str) -> int:
    return sum(1 for c in text if not c.isspace())


def _extract_pdf(data: bytes, notes: List[str]) -> Tuple[str, SourceKind]:
    """Text layer first; OCR when the layer is missing, too thin, or the parser fails."""
    try:
        text = extract_pdf_text(data)
        if _visible_chars(text) >= MIN_TEXT_LAYER_CHARS:
            return text, SourceKind.DIGITAL_TEXT
        notes.append("pdf-text:empty")
        logger.info("PDF text layer too thin (%d chars); trying OCR", _visible_chars(text))
    except Exception as e:
        notes.append(f"pdf-text:error:{type(e).__name__}")
        logger.warning("pdfplumber failed (%s); trying OCR", e)

    try:
        return extract_pdf_ocr(data), SourceKind.SCANNED_OCR
    except Exception as e:
        notes.append(f"ocr:error:{type(e).__name__}")
        raise ExtractionFailure(EXTRACTION_FAILED_MESSAGE, notes) from e


def _extract(data: bytes, kind: SourceKind, notes: List[str]) -> Tuple[str, SourceKind]:
    if kind == SourceKind.WORD_PROCESSOR:
        return extract_docx_text(data), kind
    if kind == SourceKind.PLAIN:
        return decode_plain_text(data), kind
    if kind == SourceKind.SCANNED_OCR:
        return extract_image_ocr(data), kind
    return _extract_pdf(data, notes)


def run_with_timeout(fn: Callable, timeout: float):
    """Run fn in a worker thread; raises concurrent.futures.TimeoutError when it overruns."""
    executor = ThreadPoolExecutor(max_workers=1)
    try:
        return executor.submit(fn).result(timeout=timeout)
    finally:
        # do not block on a stuck extractor
        executor.shutdown(wait=False, cancel_futures=True)


def extract_text(
    data: bytes,
    filename: Optional[str] = None,
    mime: Optional[str] = None,
    timeout: Optional[float] = None,
) -> ExtractionResult:
    """
    Extract raw text from document bytes.

    Raises:
        ExtractionFailure: nothing could be extracted (parser and OCR both
            failed, unsupported content, or timeout)
    """
    if not data:
        raise ExtractionFailure(EXTRACTION_FAILED_MESSAGE, ["input:empty"])

    kind = detect_source_kind(filename, mime)
    notes: List[str] = [f"detected:{kind.value}"]
    limit = timeout if timeout is not None else settings.CL_EXTRACT_TIMEOUT_SECONDS

    try:
        text, final_kind = run_with_timeout(lambda: _extract(data, kind, notes), limit)
    except FutureTimeout as e:
        notes.append(f"timeout:{limit}s")
        logger.warning("Extraction of %s timed out after %ss", filename or "<bytes>", limit)
        raise ExtractionFailure(EXTRACTION_FAILED_MESSAGE, notes) from e
    except ExtractionFailure:
        raise
    except Exception as e:
        notes.append(f"{kind.value}:error:{type(e).__name__}")
        logger.warning("Extraction of %s failed: %s", filename or "<bytes>", e)
        raise ExtractionFailure(EXTRACTION_FAILED_MESSAGE, notes) from e

    logger.info("Extracted %d chars from %s (%s)", len(text), filename or "<bytes>", final_kind.value)
    return ExtractionResult(text=text, source_kind=final_kind, filename_hint=filename, mime_hint=mime, notes=notes)
