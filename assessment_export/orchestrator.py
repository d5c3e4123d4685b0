"""
Export orchestration.

ExportOrchestrator is the single entry point for callers. It runs one export
at a time, turns every failure into an ExportError, and publishes each state
change to subscribers as an immutable ExportState.
"""

import logging
from collections.abc import Callable
from typing import Any

from assessment_export.exceptions import AssessmentExportError
from assessment_export.models import (
    IDLE_STATE,
    ExportError,
    ExportOptions,
    ExportResult,
    ExportState,
    LoadingState,
)
from assessment_export.pdf.service import PdfExportService
from assessment_export.report.html import HtmlExportService

logger = logging.getLogger(__name__)

Listener = Callable[[], None]

FALLBACK_MESSAGES = {
    "pdf": "Failed to generate PDF",
    "html": "Failed to generate HTML file",
}
BUSY_MESSAGE = "An export is already in progress"


def classify_error(kind: str, raw: Any) -> ExportError:
    """
    Convert whatever an export raised into a user-facing ExportError.

    An exception with an empty message gets the fallback too, so the user
    never sees a blank error.

    Args:
        kind: "pdf" or "html"
        raw: The caught value; usually an exception, but anything is accepted

    Returns:
        ExportError carrying the exception message, or the fallback for kind

    Example:
        >>> classify_error("pdf", ValueError("bitmap too large"))
        ExportError(message='bitmap too large', type='pdf')
        >>> classify_error("html", None)
        ExportError(message='Failed to generate HTML file', type='html')
    """
    message = None
    if isinstance(raw, AssessmentExportError):
        message = raw.message
    elif isinstance(raw, BaseException):
        message = str(raw)

    if not message:
        message = FALLBACK_MESSAGES[kind]
    return ExportError(message=message, type=kind)


class ExternalStore:
    """
    Minimal observable store.

    Subscribers are plain callables invoked synchronously, in subscription
    order, after every state replacement. They read the new state through
    get_snapshot().
    """

    def __init__(self, initial: ExportState):
        self._state = initial
        # Insertion-ordered set of listeners
        self._listeners: dict[Listener, None] = {}

    def get_snapshot(self) -> ExportState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            Function that removes the listener; calling it twice is harmless.
            Subscribing the same listener again does not add a second entry.
        """
        self._listeners[listener] = None

        def unsubscribe() -> None:
            self._listeners.pop(listener, None)

        return unsubscribe

    def _set_state(self, state: ExportState) -> None:
        self._state = state
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                # A broken subscriber must not leave the store mid-transition
                logger.exception(f"State listener {listener!r} failed")


class ExportOrchestrator(ExternalStore):
    """
    Runs PDF and HTML exports and tracks their progress.

    Example:
        >>> orchestrator = ExportOrchestrator(pdf_service, html_service)
        >>> unsubscribe = orchestrator.subscribe(lambda: print(orchestrator.get_snapshot()))
        >>> result = await orchestrator.export_html(snapshot)
        >>> result.success
        True
    """

    def __init__(
        self, pdf_service: PdfExportService | None, html_service: HtmlExportService
    ):
        super().__init__(IDLE_STATE)
        self.pdf_service = pdf_service
        self.html_service = html_service

    async def export_pdf(
        self, container: Any, options: ExportOptions | None = None
    ) -> ExportResult:
        """Capture the rendered container and download it as a PDF."""
        return await self._run(
            "pdf",
            LoadingState.GENERATING_PDF,
            lambda: self.pdf_service.generate(container, options or ExportOptions()),
        )

    async def export_html(
        self, inventory: Any, options: ExportOptions | None = None
    ) -> ExportResult:
        """Render the inventory into a standalone HTML report and download it."""
        return await self._run(
            "html",
            LoadingState.GENERATING_HTML,
            lambda: self.html_service.generate(inventory, options or ExportOptions()),
        )

    def clear_error(self) -> None:
        self._set_state(IDLE_STATE)

    async def _run(self, kind: str, loading_state: LoadingState, job) -> ExportResult:
        if self.get_snapshot().is_exporting:
            logger.warning(f"Rejected {kind} export: {BUSY_MESSAGE.lower()}")
            return ExportResult(False, ExportError(BUSY_MESSAGE, "general"))

        self._set_state(ExportState(loading_state=loading_state))
        logger.debug(f"Export state -> {loading_state.value}")

        try:
            await job()
        except Exception as e:
            error = classify_error(kind, e)
            logger.debug(f"{kind} export failed: {e!r}")
            self._set_state(ExportState(loading_state=LoadingState.ERROR, error=error))
            return ExportResult(False, error)

        self._set_state(IDLE_STATE)
        logger.debug("Export state -> idle")
        return ExportResult(True)
