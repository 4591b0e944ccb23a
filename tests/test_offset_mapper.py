import pytest

from offset_mapper import PageLineMapper, ParagraphOffsetMapper
from schemas import NormalizedDocument

SPANS = [(0, 10), (12, 20), (25, 30)]


@pytest.mark.parametrize(
    "index, expected",
    [
        (-5, (0, 0)),
        (0, (0, 0)),
        (3, (0, 3)),
        (11, (0, 10)),     # gap -> previous paragraph, clamped
        (15, (1, 3)),
        (22, (1, 8)),
        (27, (2, 2)),
        (100, (2, 5)),     # past the end -> last paragraph, clamped
    ],
)
def test_paragraph_locations(index, expected):
    loc = ParagraphOffsetMapper(SPANS)(index)
    assert (loc.paragraph_index, loc.local_index) == expected


def test_mapper_is_total():
    mapper = ParagraphOffsetMapper(SPANS)
    for i in range(-10, 60):
        loc = mapper(i)
        start, end = SPANS[loc.paragraph_index]
        assert 0 <= loc.local_index <= end - start


def test_no_paragraphs_maps_to_origin():
    loc = ParagraphOffsetMapper([])(42)
    assert (loc.paragraph_index, loc.local_index) == (0, 0)


def test_normalized_document_delegates_to_mapper():
    doc = NormalizedDocument(text="x" * 30, paragraphs=["a", "b", "c"], paragraph_spans=SPANS)
    assert doc.map_offset(15).paragraph_index == 1


def test_page_and_line_numbers():
    mapper = PageLineMapper("uno\ndos\ftres\ncuatro")
    assert mapper.page_for(0) == 1
    assert mapper.page_for(5) == 1
    assert mapper.page_for(8) == 2
    assert mapper.page_for(18) == 2
    assert mapper.page_for(100) is None
    assert mapper.char_to_page_line(8, 15) == (2, 1, 2)
