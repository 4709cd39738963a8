"""Domain entities describing the detected layout of a text."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Heading:
    """A line that looks like a heading."""

    text: str
    position: int  # offset of the line start in the source text
    level: int  # 1 = all caps, 2 = everything else


@dataclass(frozen=True)
class Paragraph:
    """A blank-line separated block with offsets of its trimmed text."""

    text: str
    start: int
    end: int


@dataclass
class DocumentStructure:
    headings: list[Heading] = field(default_factory=list)
    paragraphs: list[Paragraph] = field(default_factory=list)
