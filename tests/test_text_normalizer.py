import pytest

from errors import DocumentIllegible
from schemas import SourceKind
from text_normalizer import clean_text, normalize, normalize_semantics, segment


RAW = "PRIMERA:  El “LOCADOR” entrega\r\nel inmueble.\n\nSEGUNDA:\tEl pago es mensual.  "


def test_normalize_cleans_quotes_line_endings_and_spacing():
    doc = normalize(RAW)
    assert doc.text == 'PRIMERA: El "LOCADOR" entrega\nel inmueble.\n\nSEGUNDA: El pago es mensual.'
    assert doc.paragraphs == ['PRIMERA: El "LOCADOR" entrega\nel inmueble.', "SEGUNDA: El pago es mensual."]
    assert doc.source_kind == SourceKind.PLAIN
    assert "source:plain" in doc.notes


def test_paragraph_spans_cover_exactly_each_paragraph():
    doc = normalize("  Primera cláusula del contrato.\n\n\n  Segunda cláusula: pago mensual.\fTercera página.\n")
    assert len(doc.paragraphs) == len(doc.paragraph_spans) == 3
    for (start, end), paragraph in zip(doc.paragraph_spans, doc.paragraphs):
        assert doc.text[start:end] == paragraph
    starts = [s for s, _ in doc.paragraph_spans]
    assert starts == sorted(starts)


def test_normalize_is_idempotent():
    raw = (
        "CONTRATO  DE LOCACIÓN\r\n\r\nEl loca-\ntario abona dos (2) meses de depósito – 10,5 % anual.\n"
        "Monto: $ 1000 pesos.\fHoja\n\nPágina 2"
    )
    first = normalize(raw)
    second = normalize(first.text)
    assert second.text == first.text
    assert second.paragraph_spans == first.paragraph_spans


def test_dehyphenation_joins_words_split_across_lines():
    assert clean_text("El loca-\ntario abona el canon.") == "El locatario abona el canon."


def test_spelled_numbers_with_digits_collapse_to_digits():
    text = clean_text("Se entrega un depósito de dos (2) meses de alquiler.")
    assert text == "Se entrega un depósito de 2 meses de alquiler."


def test_mismatched_spelled_number_is_left_alone():
    assert normalize_semantics("tres (2) meses") == "tres (2) meses"


@pytest.mark.parametrize("text", ["todos (2) meses", "5dos (2) meses", "dos (2) copias"])
def test_spelled_number_needs_a_whole_number_word_and_a_unit(text):
    assert normalize_semantics(text) == text


def test_several_spelled_numbers_collapse_in_one_pass():
    assert normalize_semantics("dos (2) meses y treinta (30) días") == "2 meses y 30 días"
    assert normalize_semantics("DOS (2) MESES") == "2 MESES"


def test_percent_and_currency_spacing():
    assert normalize_semantics("un 10,5 % anual y $ 1000") == "un 10.5% anual y $1000"


def test_repeated_headers_and_page_markers_are_stripped():
    raw = (
        "ACME S.A. - Contrato\nPrimera página con cláusulas del contrato.\nPágina 1\f"
        "ACME S.A. - Contrato\nSegunda página con más cláusulas.\nPágina 2\f"
        "ACME S.A. - Contrato\nTercera página final del acuerdo.\nPágina 3"
    )
    doc = normalize(raw)
    assert "ACME" not in doc.text
    assert "Página" not in doc.text
    assert doc.text.count("\f") == 2
    assert doc.paragraphs == [
        "Primera página con cláusulas del contrato.",
        "Segunda página con más cláusulas.",
        "Tercera página final del acuerdo.",
    ]


def test_single_page_keeps_its_first_line():
    doc = normalize("ACME S.A. - Contrato\nÚnica página con el texto completo.")
    assert doc.text.startswith("ACME S.A. - Contrato")


@pytest.mark.parametrize("raw", [None, "", "   \n\t  ", "... --- ,,, 12"])
def test_empty_or_illegible_text_raises(raw):
    with pytest.raises(DocumentIllegible):
        normalize(raw)


def test_length_safeguard_truncates_and_notes_it():
    doc = normalize("a" * 100 + " palabra final", max_chars=50)
    assert doc.text == "a" * 50
    assert "truncated:114->50" in doc.notes


def test_segment_without_breaks_is_one_paragraph():
    paragraphs, spans = segment("una sola línea")
    assert paragraphs == ["una sola línea"]
    assert spans == [(0, 14)]
