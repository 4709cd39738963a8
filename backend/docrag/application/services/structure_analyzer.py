"""Regex-based sentence and layout detection.

Heading detection is a heuristic: no single rule is authoritative, and a
line only needs to satisfy one of them to become a heading candidate.
"""

import logging
import re
from collections.abc import Iterable

from docrag.application.interfaces.structure_analyzer import StructureAnalyzer
from docrag.domain.entities import DocumentStructure, Heading, Paragraph

logger = logging.getLogger(__name__)

DEFAULT_PROTECTED_ABBREVIATIONS: tuple[str, ...] = (
    "Dr.",
    "Mr.",
    "Mrs.",
    "Ms.",
    "Prof.",
    "z.B.",
    "u.a.",
    "etc.",
    "bzw.",
)

# Single private-use char, so masking keeps every offset intact
_MASK = "\ue000"

# Any number followed by a period reads as a list marker, so "grew to 42. Costs"
# stays one sentence
_NUMBERED_PERIOD = re.compile(r"(\d+)\.")
_SENTENCE_END = re.compile(r"[.!?]+(?:\s+|$)")
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_HEADING_NUMBERING = re.compile(r"^(\d+\.|\d+\)|\([a-z]\)|[A-Z]\.)")
_TRAILING_PUNCTUATION = re.compile(r"[.!?,;:]$")

_MAX_HEADING_LENGTH = 100


class RegexStructureAnalyzer(StructureAnalyzer):
    """Default boundary detector used by both chunking strategies."""

    def __init__(self, protected_abbreviations: Iterable[str] = DEFAULT_PROTECTED_ABBREVIATIONS):
        # Longest first so "Mrs." is masked before a shorter overlapping entry
        self._protected = sorted(set(protected_abbreviations), key=len, reverse=True)

    # ── Sentences ────────────────────────────────────────────────────

    def split_sentences(self, text: str) -> list[str]:
        """Split on ``[.!?]+`` followed by whitespace or end of text.

        Periods inside protected abbreviations and after numbers do not end
        a sentence.
        """
        if not text or not text.strip():
            return []

        masked = self._mask(text)
        sentences: list[str] = []
        last = 0

        for match in _SENTENCE_END.finditer(masked):
            sentence = text[last : match.end()].strip()
            if sentence:
                sentences.append(sentence)
            last = match.end()

        if last < len(text):
            remaining = text[last:].strip()
            if remaining:
                sentences.append(remaining)

        return sentences

    def _mask(self, text: str) -> str:
        for abbreviation in self._protected:
            text = text.replace(abbreviation, abbreviation.replace(".", _MASK))
        return _NUMBERED_PERIOD.sub(rf"\1{_MASK}", text)

    # ── Layout ───────────────────────────────────────────────────────

    def analyze_structure(self, text: str) -> DocumentStructure:
        structure = DocumentStructure()
        if not text or not text.strip():
            return structure

        structure.headings = self._detect_headings(text)
        structure.paragraphs = self._detect_paragraphs(text)

        logger.debug(
            "Document structure analyzed: headings=%d paragraphs=%d",
            len(structure.headings),
            len(structure.paragraphs),
        )
        return structure

    def _detect_headings(self, text: str) -> list[Heading]:
        headings: list[Heading] = []
        position = 0

        for line in text.split("\n"):
            trimmed = line.strip()
            if trimmed and self.is_heading(trimmed):
                headings.append(
                    Heading(
                        text=trimmed,
                        position=position,
                        level=1 if self._is_all_caps(trimmed) else 2,
                    )
                )
            position += len(line) + 1  # +1 for the newline

        return headings

    @classmethod
    def is_heading(cls, line: str) -> bool:
        """Whether a trimmed line looks like a heading."""
        short_title = (
            len(line) < _MAX_HEADING_LENGTH
            and line[0].isupper()
            and not _TRAILING_PUNCTUATION.search(line)
        )
        return short_title or cls._is_all_caps(line) or bool(_HEADING_NUMBERING.match(line))

    @staticmethod
    def _is_all_caps(line: str) -> bool:
        return line == line.upper() and any(ch.isalpha() for ch in line)

    @staticmethod
    def _detect_paragraphs(text: str) -> list[Paragraph]:
        paragraphs: list[Paragraph] = []
        block_start = 0

        for brk in _PARAGRAPH_BREAK.finditer(text):
            _append_paragraph(paragraphs, text, block_start, brk.start())
            block_start = brk.end()
        _append_paragraph(paragraphs, text, block_start, len(text))

        return paragraphs


def _append_paragraph(paragraphs: list[Paragraph], text: str, start: int, end: int) -> None:
    block = text[start:end]
    stripped = block.strip()
    if not stripped:
        return
    offset = start + len(block) - len(block.lstrip())
    paragraphs.append(Paragraph(text=stripped, start=offset, end=offset + len(stripped)))
