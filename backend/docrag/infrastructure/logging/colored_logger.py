"""Colored pipeline logger for document ingestion.

Every ingestion stage gets its own color so one document can be followed
through the terminal output:

    Yellow  — text extraction
    Blue    — chunking
    Magenta — embedding
    Cyan    — vector indexing
    Green   — completion
    Red     — errors
    Gray    — details and stats
"""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any


class _Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"
    GRAY = "\033[90m"


Stage = tuple[str, str, str]  # (label, color, icon)


class PipelineStage:
    """Ingestion stages with their colors and icons."""

    PIPELINE = ("PIPELINE", _Colors.WHITE, "⚙️")
    EXTRACT = ("EXTRACT", _Colors.YELLOW, "📄")
    CHUNK = ("CHUNK", _Colors.BLUE, "✂️")
    EMBED = ("EMBED", _Colors.MAGENTA, "🧮")
    INDEX = ("INDEX", _Colors.CYAN, "🗂️")
    COMPLETE = ("COMPLETE", _Colors.GREEN, "✅")
    ERROR = ("ERROR", _Colors.RED, "❌")


def _with_details(text: str, details: dict[str, Any], color: str = _Colors.GRAY) -> str:
    if not details:
        return text
    joined = " | ".join(f"{k}={v}" for k, v in details.items())
    return f"{text} {color}({joined}){_Colors.RESET}"


class PipelineLogger:
    """Color-coded logger for the ingestion pipeline.

    Usage:
        plog = PipelineLogger("DocumentProcessingService")
        plog.step_start(PipelineStage.EXTRACT, "Extracting report.pdf")
        plog.detail("pages=12")
        plog.step_complete(PipelineStage.EXTRACT, "Extracted 48 213 chars")
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)

    def step_start(self, stage: Stage, message: str, **kwargs: Any) -> None:
        label, color, icon = stage
        text = f"{color}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} {color}{message}{_Colors.RESET}"
        self._logger.info(_with_details(text, kwargs))

    def step_complete(self, stage: Stage, message: str, **kwargs: Any) -> None:
        label, color, icon = stage
        text = f"{color}{icon} [{label}]{_Colors.RESET} {_Colors.GREEN}✓ {message}{_Colors.RESET}"
        self._logger.info(_with_details(text, kwargs))

    def step_error(self, stage: Stage, message: str, error: BaseException | None = None) -> None:
        label, _, _ = stage
        text = f"{_Colors.RED}{_Colors.BOLD}❌ [{label}]{_Colors.RESET} {_Colors.RED}{message}{_Colors.RESET}"
        if error is not None:
            text += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        self._logger.error(text)

    def detail(self, message: str, **kwargs: Any) -> None:
        text = f"   {_Colors.GRAY}├─ {message}{_Colors.RESET}"
        self._logger.info(_with_details(text, kwargs, _Colors.DIM))

    def separator(self, title: str = "") -> None:
        line = f"{'─' * 10} {title} {'─' * max(50 - len(title), 0)}" if title else "─" * 60
        self._logger.info(f"{_Colors.GRAY}{line}{_Colors.RESET}")

    def stats(self, **kwargs: Any) -> None:
        parts = " | ".join(f"{k}: {v}" for k, v in kwargs.items())
        self._logger.info(f"   {_Colors.GRAY}📈 {parts}{_Colors.RESET}")

    @contextmanager
    def timed_step(self, stage: Stage, message: str, **kwargs: Any) -> Iterator[None]:
        """Log start and end of a block with its elapsed time.

        Usage:
            with plog.timed_step(PipelineStage.CHUNK, "Chunking document"):
                result = chunker.chunk(text)
        """
        self.step_start(stage, message, **kwargs)
        start = time.perf_counter()
        try:
            yield
        except BaseException as e:
            self.step_error(stage, f"{message} failed after {time.perf_counter() - start:.2f}s", error=e)
            raise
        self.step_complete(stage, f"{message} in {time.perf_counter() - start:.2f}s", **kwargs)
