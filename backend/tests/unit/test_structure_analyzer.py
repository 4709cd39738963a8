"""Unit tests for the RegexStructureAnalyzer."""

import pytest

from docrag.application.services.structure_analyzer import RegexStructureAnalyzer


@pytest.fixture
def analyzer() -> RegexStructureAnalyzer:
    return RegexStructureAnalyzer()


# ── Sentences ──


def test_split_sentences_basic(analyzer):
    assert analyzer.split_sentences("First one. Second one! Third one?") == [
        "First one.",
        "Second one!",
        "Third one?",
    ]


def test_split_sentences_keeps_protected_abbreviations(analyzer):
    text = "Dr. Smith signed the contract. Mrs. Jones did not."
    assert analyzer.split_sentences(text) == [
        "Dr. Smith signed the contract.",
        "Mrs. Jones did not.",
    ]


def test_split_sentences_keeps_german_abbreviations(analyzer):
    text = "Wir nutzen z.B. Python. Das ist gut."
    assert analyzer.split_sentences(text) == ["Wir nutzen z.B. Python.", "Das ist gut."]


def test_split_sentences_does_not_break_after_numbers(analyzer):
    text = "Step 1. Open the file. Step 2. Save it."
    assert analyzer.split_sentences(text) == ["Step 1. Open the file.", "Step 2. Save it."]


def test_split_sentences_never_breaks_after_a_number(analyzer):
    # sentence-final numbers are indistinguishable from list markers
    text = "Revenue grew to 42. Costs fell."
    assert analyzer.split_sentences(text) == [text]


def test_split_sentences_groups_repeated_punctuation(analyzer):
    assert analyzer.split_sentences("Really?! Yes.") == ["Really?!", "Yes."]


def test_split_sentences_keeps_unterminated_tail(analyzer):
    assert analyzer.split_sentences("One. Two") == ["One.", "Two"]


def test_split_sentences_returns_source_text(analyzer):
    """Sentences are unmasked slices of the input."""
    text = "Prof. Miller wrote 3. editions. They sold well."
    for sentence in analyzer.split_sentences(text):
        assert sentence in text


@pytest.mark.parametrize("text", ["", "   ", "\n\n"])
def test_split_sentences_empty(analyzer, text):
    assert analyzer.split_sentences(text) == []


def test_custom_protected_abbreviations():
    analyzer = RegexStructureAnalyzer(protected_abbreviations=["approx."])
    assert analyzer.split_sentences("It costs approx. ten euros. Pay now.") == [
        "It costs approx. ten euros.",
        "Pay now.",
    ]


# ── Layout ──


_DOCUMENT = (
    "INTRODUCTION\n\n"
    "This is the first paragraph.\n\n"
    "1. Scope of the work\n"
    "The scope covers everything here."
)


def test_analyze_structure_detects_headings(analyzer):
    structure = analyzer.analyze_structure(_DOCUMENT)

    assert [h.text for h in structure.headings] == ["INTRODUCTION", "1. Scope of the work"]
    assert [h.level for h in structure.headings] == [1, 2]
    for heading in structure.headings:
        assert _DOCUMENT[heading.position :].startswith(heading.text)


def test_analyze_structure_detects_paragraphs_with_offsets(analyzer):
    structure = analyzer.analyze_structure(_DOCUMENT)

    assert len(structure.paragraphs) == 3
    assert structure.paragraphs[0].text == "INTRODUCTION"
    assert structure.paragraphs[2].text.startswith("1. Scope of the work\n")
    for paragraph in structure.paragraphs:
        assert _DOCUMENT[paragraph.start : paragraph.end] == paragraph.text


def test_analyze_structure_trims_paragraph_whitespace(analyzer):
    text = "  First block.  \n \n\n   Second block.\n"
    paragraphs = analyzer.analyze_structure(text).paragraphs

    assert [p.text for p in paragraphs] == ["First block.", "Second block."]
    assert text[paragraphs[1].start : paragraphs[1].end] == "Second block."


def test_analyze_structure_empty(analyzer):
    structure = analyzer.analyze_structure("")
    assert structure.headings == []
    assert structure.paragraphs == []


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("Summary", True),
        ("Payment Terms", True),
        ("TERMS AND CONDITIONS.", True),
        ("(a) first item", True),
        ("2) Second part", True),
        ("This sentence ends with a period.", False),
        ("lowercase start without punctuation", False),
        ("Long line " * 12, False),
    ],
)
def test_is_heading(line, expected):
    assert RegexStructureAnalyzer.is_heading(line.strip()) is expected
