"""
Text normalization for extracted contract text.

normalize() runs the cleanup steps below in a fixed order, enforces the
length safeguard and segments the result into paragraphs with exact
character spans. The cleanup is repeated until the text stops changing so a
second call on the output is a no-op.
"""
from __future__ import annotations

import logging
import math
import re
import unicodedata
from collections import Counter
from typing import List, Optional, Tuple

from errors import DocumentIllegible, ILLEGIBLE_MESSAGE
from offset_mapper import PAGE_BREAK
from schemas import NormalizedDocument, SourceKind
from settings import settings

log = logging.getLogger("contractlens.normalizer")

MAX_CLEANUP_ROUNDS = 4
HEADER_MAX_CHARS = 120          # longer lines are never treated as header/footer
HEADER_PAGE_SHARE = 0.5         # share of pages a line must repeat on

# ---------- Step 1: typographic characters ----------
_CHAR_MAP = str.maketrans({
    # quotes
    "“": '"', "”": '"', "„": '"', "‟": '"', "«": '"', "»": '"',
    "‘": "'", "’": "'", "‚": "'", "‛": "'", "′": "'", "″": '"',
    # dashes and minus
    "‐": "-", "‑": "-", "‒": "-", "–": "-", "—": "-", "―": "-", "−": "-",
    # spaces
    "\u00a0": " ", "\u2002": " ", "\u2003": " ", "\u2007": " ", "\u2009": " ", "\u200a": " ",
    "\u202f": " ", "\u3000": " ",
    # ligatures
    "ﬀ": "ff", "ﬁ": "fi", "ﬂ": "fl", "ﬃ": "ffi", "ﬄ": "ffl",
    "ﬅ": "st", "ﬆ": "st",
    "…": "...",
    # invisible
    "\u00ad": None, "\u200b": None, "\u200c": None, "\u200d": None, "\ufeff": None,
})


def canonicalize_characters(text: str) -> str:
    return text.translate(_CHAR_MAP)


# ---------- Step 2: line endings + de-hyphenation ----------
_LINE_ENDINGS_RE = re.compile(r"\r\n?")
# "pala-\nbra" -> "palabra"; both neighbours must be letters or digits
_HYPHEN_BREAK_RE = re.compile(r"(?<=[^\W_])-[ \t]*\n[ \t]*(?=[^\W_])")


def dehyphenate(text: str) -> str:
    text = _LINE_ENDINGS_RE.sub("\n", text)
    return _HYPHEN_BREAK_RE.sub("", text)


# ---------- Step 3: whitespace ----------
_INLINE_WS_RE = re.compile(r"[ \t\v]+")
_BREAK_EDGE_WS_RE = re.compile(r" *([\n\f]) *")


def collapse_whitespace(text: str) -> str:
    text = _INLINE_WS_RE.sub(" ", text)
    text = _BREAK_EDGE_WS_RE.sub(r"\1", text)
    return text.strip()


# ---------- Step 4: repeated headers / footers ----------
_BLANK_RUN_RE = re.compile(r"\n{4,}")  # 3+ blank lines
_EXTRA_BLANK_RE = re.compile(r"\n{3,}")
_PAGE_MARKER_RE = re.compile(
    r"^-?\s*(?:p[aá]g(?:ina)?\.?|page)\s*\d{1,4}(?:\s*(?:de|of|/)\s*\d{1,4})?\s*-?$",
    re.IGNORECASE,
)


def split_pages(text: str) -> List[List[str]]:
    """Heuristic pages: form feeds, 3+ blank lines, or a "Página N" marker line (dropped)."""
    pages: List[List[str]] = []
    for chunk in text.split(PAGE_BREAK):
        for block in _BLANK_RUN_RE.split(chunk):
            current: List[str] = []
            opened = len(pages)
            for line in block.split("\n"):
                if _PAGE_MARKER_RE.match(line.strip()):
                    pages.append(current)
                    current = []
                    continue
                current.append(line)
            # a trailing marker already closed the last page
            if current or len(pages) == opened:
                pages.append(current)
    return pages


def _header_key(line: str) -> Optional[str]:
    stripped = line.strip()
    if not stripped or len(stripped) > HEADER_MAX_CHARS:
        return None
    # compare the way step 5 would render the line
    return normalize_semantics(stripped)


def strip_repeated_headers_footers(text: str) -> str:
    pages = split_pages(text)
    page_count = len(pages)

    if page_count >= 2:
        threshold = max(2, math.floor(page_count * HEADER_PAGE_SHARE))
        keys = [[_header_key(l) for l in lines] for lines in pages]
        counts: Counter = Counter()
        for page_keys in keys:
            counts.update({k for k in page_keys if k})
        repeated = {k for k, n in counts.items() if n >= threshold}
        if repeated:
            log.debug("stripping %d repeated header/footer line(s) over %d pages", len(repeated), page_count)
            pages = [
                [l for l, k in zip(lines, page_keys) if k not in repeated]
                for lines, page_keys in zip(pages, keys)
            ]

    out = PAGE_BREAK.join("\n".join(lines).strip("\n") for lines in pages)
    return _EXTRA_BLANK_RE.sub("\n\n", out).strip()


# ---------- Step 5: light semantic normalization ----------
_NUMBER_WORDS = {
    "un": 1, "uno": 1, "una": 1, "dos": 2, "tres": 3, "cuatro": 4, "cinco": 5, "seis": 6,
    "siete": 7, "ocho": 8, "nueve": 9, "diez": 10, "once": 11, "doce": 12, "quince": 15,
    "veinte": 20, "treinta": 30, "cuarenta": 40, "sesenta": 60, "noventa": 90,
}
# "dos (2) meses" -> "2 meses" (unit word kept). The scan starts at the
# literal "(" and looks back for the spelled word.
_PAREN_NUMBER_RE = re.compile(
    r"\(\s*(\d{1,3})\s*\)\s*(?=(?:mes(?:es)?|d[ií]as?|a[nñ]os?|semanas?|horas?)\b)",
    re.IGNORECASE,
)
_WORD_BEFORE_RE = re.compile(r"(?<!\w)([^\W\d_]+)\s*$")
SPELLED_LOOKBACK = 40
_PERCENT_DECIMAL_RE = re.compile(r"(?<![\d.,])(\d{1,3}),(\d{1,2})\s*%")
_PERCENT_SPACE_RE = re.compile(r"(\d)\s+%")
_CURRENCY_SPACE_RE = re.compile(r"(\$|€|U\$[SD])[ ]+(?=\d)")


def _strip_accents(word: str) -> str:
    decomposed = unicodedata.normalize("NFD", word)
    return "".join(c for c in decomposed if unicodedata.category(c) != "Mn")


def collapse_spelled_numbers(text: str) -> str:
    out: List[str] = []
    pos = 0
    for m in _PAREN_NUMBER_RE.finditer(text):
        word = _WORD_BEFORE_RE.search(text, max(pos, m.start() - SPELLED_LOOKBACK), m.start())
        if not word:
            continue
        if _NUMBER_WORDS.get(_strip_accents(word.group(1)).lower()) != int(m.group(1)):
            continue
        out.append(text[pos:word.start(1)])
        out.append(f"{m.group(1)} ")
        pos = m.end()
    if not out:
        return text
    out.append(text[pos:])
    return "".join(out)


def normalize_semantics(text: str) -> str:
    if "(" in text:
        text = collapse_spelled_numbers(text)
    if "%" in text:
        text = _PERCENT_DECIMAL_RE.sub(r"\1.\2%", text)
        text = _PERCENT_SPACE_RE.sub(r"\1%", text)
    text = _CURRENCY_SPACE_RE.sub(r"\1", text)
    return text


def clean_text(raw: str) -> str:
    """Steps 1-5, repeated to a fixed point."""
    text = raw
    for _ in range(MAX_CLEANUP_ROUNDS):
        before = text
        text = canonicalize_characters(text)
        text = dehyphenate(text)
        text = collapse_whitespace(text)
        text = strip_repeated_headers_footers(text)
        text = normalize_semantics(text)
        if text == before:
            break
    return text


# ---------- Step 7: paragraphs ----------
_PARAGRAPH_BREAK_RE = re.compile(r"\n[ \t]*\n|\f")


def segment(text: str) -> Tuple[List[str], List[Tuple[int, int]]]:
    """Split on blank lines / page breaks; spans cover exactly the trimmed paragraph."""
    paragraphs: List[str] = []
    spans: List[Tuple[int, int]] = []
    pos = 0
    breaks = [(m.start(), m.end()) for m in _PARAGRAPH_BREAK_RE.finditer(text)]
    breaks.append((len(text), len(text)))
    for brk_start, brk_end in breaks:
        chunk = text[pos:brk_start]
        stripped = chunk.strip()
        if stripped:
            start = pos + (len(chunk) - len(chunk.lstrip()))
            spans.append((start, start + len(stripped)))
            paragraphs.append(stripped)
        pos = brk_end
    return paragraphs, spans


def _legible_chars(text: str) -> int:
    return sum(1 for ch in text if ch.isalnum())


# ---------- Public API ----------
def normalize(
    raw_text: Optional[str],
    source_kind: SourceKind = SourceKind.PLAIN,
    max_chars: Optional[int] = None,
) -> NormalizedDocument:
    """
    Clean raw extracted text and segment it into paragraphs.

    Args:
        raw_text: Text as returned by the extraction collaborator
        source_kind: How the text was obtained (recorded in notes)
        max_chars: Length safeguard; defaults to settings.CL_MAX_CHARS

    Returns:
        NormalizedDocument with paragraphs and exact paragraph spans

    Raises:
        DocumentIllegible: empty text or fewer legible characters than the threshold
    """
    notes = [f"source:{source_kind.value}"]
    if not raw_text or not raw_text.strip():
        raise DocumentIllegible(ILLEGIBLE_MESSAGE, length=0, notes=notes)

    clean = clean_text(raw_text)

    limit = max_chars if max_chars is not None else settings.CL_MAX_CHARS
    if len(clean) > limit:
        notes.append(f"truncated:{len(clean)}->{limit}")
        log.info("normalized text truncated from %d to %d chars", len(clean), limit)
        clean = clean[:limit].rstrip()

    if _legible_chars(clean) < settings.CL_MIN_LEGIBLE_CHARS:
        raise DocumentIllegible(ILLEGIBLE_MESSAGE, length=len(clean), notes=notes)

    paragraphs, spans = segment(clean)
    return NormalizedDocument(
        text=clean,
        paragraphs=paragraphs,
        paragraph_spans=spans,
        source_kind=source_kind,
        notes=notes,
    )
