"""Export options and observable export state."""

from dataclasses import dataclass
from enum import Enum


@dataclass
class ExportOptions:
    """Options accepted by both export formats."""

    document_title: str | None = None
    filename: str | None = None


class LoadingState(str, Enum):
    """Phase of the export state machine."""

    IDLE = "idle"
    GENERATING_PDF = "generating-pdf"
    GENERATING_HTML = "generating-html"
    ERROR = "error"


@dataclass(frozen=True)
class ExportError:
    """User-facing description of a failed export."""

    message: str
    type: str  # pdf | html | general


@dataclass(frozen=True)
class ExportState:
    """Immutable snapshot published to subscribers."""

    loading_state: LoadingState = LoadingState.IDLE
    error: ExportError | None = None

    @property
    def is_exporting(self) -> bool:
        return self.loading_state in (LoadingState.GENERATING_PDF, LoadingState.GENERATING_HTML)


@dataclass(frozen=True)
class ExportResult:
    """Outcome returned to the caller of an export."""

    success: bool
    error: ExportError | None = None


IDLE_STATE = ExportState()
