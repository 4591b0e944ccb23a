"""
Offset mapping utilities: absolute character index -> paragraph / page / line.
"""

from bisect import bisect_right
from typing import List, Optional, Sequence, Tuple

from schemas import ParagraphLocation

PAGE_BREAK = "\f"


class ParagraphOffsetMapper:
    """Total locator from an absolute index to (paragraph_index, local_index)."""

    def __init__(self, spans: Sequence[Tuple[int, int]]):
        """
        Args:
            spans: Non-overlapping, strictly increasing half-open paragraph spans
        """
        self.spans: List[Tuple[int, int]] = [tuple(s) for s in spans]
        self._starts = [s for s, _ in self.spans]

    def __call__(self, abs_index: int) -> ParagraphLocation:
        return self.locate(abs_index)

    def locate(self, abs_index: int) -> ParagraphLocation:
        """
        Clamp any input into a valid location.

        - negative -> first paragraph, local 0
        - inside a span -> that paragraph
        - in a gap between spans -> preceding paragraph, local index clamped to its length
        - beyond the end -> last paragraph, local index clamped to its length
        """
        if not self.spans or abs_index < 0:
            return ParagraphLocation(paragraph_index=0, local_index=0)

        pos = bisect_right(self._starts, abs_index) - 1
        if pos < 0:
            # before the first paragraph (leading whitespace)
            return ParagraphLocation(paragraph_index=0, local_index=0)

        start, end = self.spans[pos]
        local = min(abs_index - start, max(0, end - start))
        return ParagraphLocation(paragraph_index=pos, local_index=max(0, local))


class PageLineMapper:
    """Maps character positions to page and line numbers in normalized text."""

    def __init__(self, text: str):
        """
        Initialize mapper for a document text with page breaks.

        Args:
            text: Document text with \\f as page separators
        """
        self.text = text
        self.page_boundaries = self._calculate_page_boundaries()
        self.line_boundaries = self._calculate_line_boundaries()

    def _calculate_page_boundaries(self) -> List[Tuple[int, int]]:
        boundaries = []
        char_pos = 0
        pages = self.text.split(PAGE_BREAK)
        for i, page_text in enumerate(pages):
            boundaries.append((char_pos, char_pos + len(page_text)))
            char_pos += len(page_text)
            if i < len(pages) - 1:
                char_pos += 1  # the \f itself
        return boundaries

    def _calculate_line_boundaries(self) -> List[List[Tuple[int, int]]]:
        page_lines = []
        for page_start, page_end in self.page_boundaries:
            lines = []
            pos = page_start
            for line_text in self.text[page_start:page_end].split("\n"):
                lines.append((pos, pos + len(line_text)))
                pos += len(line_text) + 1
            page_lines.append(lines)
        return page_lines

    def char_to_page_line(self, char_start: int, char_end: int) -> Tuple[Optional[int], Optional[int], Optional[int]]:
        """
        Convert character positions to page and line numbers.

        Returns:
            Tuple of (page_number, line_start, line_end) (1-based) or (None, None, None) if not found
        """
        page_num = None
        for i, (page_start, page_end) in enumerate(self.page_boundaries):
            if page_start <= char_start <= page_end:
                page_num = i + 1
                break

        if page_num is None:
            return None, None, None

        line_start = None
        line_end = None
        for j, (ls, le) in enumerate(self.line_boundaries[page_num - 1]):
            if line_start is None and ls <= char_start <= le:
                line_start = j + 1
            if ls <= char_end <= le:
                line_end = j + 1

        if line_start is not None and line_end is None:
            # span runs past the page: last line that starts before char_end
            for j, (ls, _) in enumerate(self.line_boundaries[page_num - 1]):
                if ls <= char_end:
                    line_end = j + 1

        return page_num, line_start, line_end

    def page_for(self, char_index: int) -> Optional[int]:
        page, _, _ = self.char_to_page_line(char_index, char_index)
        return page
