"""
Upload → analyze → display state for one browser session.

State changes are expressed as pure transitions:

    transition(state, event) -> (new_state, effects)

UploadController feeds events in, applies the returned state and runs the
effects (currently only RunAnalysis). Everything outside the controller reads
the session through `controller.session`, which is an immutable snapshot.
"""
import threading
from dataclasses import dataclass, replace
from typing import Callable, Optional

import image_encoder
from errors import AnalysisInProgressError, ScatIdentifierError
from result_formatter import format_analysis
from scat_content import DEFAULT_ANALYSIS, SCAT_PROMPT

GENERIC_ANALYSIS_ERROR = "Failed to analyze image. Please try again."
DEFAULT_LOAD_ERROR     = "Failed to load default image"
NO_IMAGE_ERROR         = "Please upload a photo first."
BUSY_ERROR             = "An analysis is already running. Please wait for it to finish."


@dataclass(frozen=True)
class UploadSession:
    image:         Optional[str] = None   # data URL
    analysis_text: str           = ""
    loading:       bool          = False
    error:         Optional[str] = None


# ── Events ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DefaultLoaded:
    image:         str
    analysis_text: str


@dataclass(frozen=True)
class ImageEncoded:
    image: str


@dataclass(frozen=True)
class AnalysisStarted:
    image: str


@dataclass(frozen=True)
class AnalysisSucceeded:
    analysis_text: str


@dataclass(frozen=True)
class AnalysisFailed:
    message: str


@dataclass(frozen=True)
class ImageRejected:
    """Validation, read or default-asset failure; no analysis is involved."""
    message: str


# ── Effects ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RunAnalysis:
    image: str


def transition(state: UploadSession, event) -> tuple[UploadSession, list]:
    """Pure state transition. Returns the new state and the effects to run."""
    if isinstance(event, DefaultLoaded):
        return replace(state, image=event.image, analysis_text=event.analysis_text,
                       loading=False, error=None), []

    if isinstance(event, ImageEncoded):
        # Upload and analysis are one user action: swapping the image starts the call
        return replace(state, image=event.image, loading=True, error=None), [RunAnalysis(event.image)]

    if isinstance(event, AnalysisStarted):
        return replace(state, loading=True, error=None), [RunAnalysis(event.image)]

    if isinstance(event, AnalysisSucceeded):
        return replace(state, analysis_text=event.analysis_text, loading=False, error=None), []

    if isinstance(event, AnalysisFailed):
        return replace(state, loading=False, error=event.message or GENERIC_ANALYSIS_ERROR), []

    if isinstance(event, ImageRejected):
        # `loading` belongs to the outstanding call, if any
        return replace(state, error=event.message), []

    raise TypeError(f"Unknown event: {event!r}")


class UploadController:
    """Owns the UploadSession of one browser session.

    analyze_fn(encoded_image, prompt, timeout=...) -> text is the AI client;
    it must raise on failure. error_hook(context, exc), when given, is called
    for every failure after it has been stored on the session.
    """

    def __init__(
        self,
        analyze_fn: Callable[..., str],
        default_image_path: str | None = None,
        default_analysis: str = DEFAULT_ANALYSIS,
        prompt: str = SCAT_PROMPT,
        timeout: float | None = None,
        error_hook: Callable[[str, Exception], None] | None = None,
    ):
        self.session            = UploadSession()
        self._analyze_fn        = analyze_fn
        self._default_image     = default_image_path
        self._default_analysis  = default_analysis
        self._default_encoded   = None
        self._prompt            = prompt
        self._timeout           = timeout
        self._error_hook        = error_hook
        self._lock              = threading.Lock()

    # ── Internals ─────────────────────────────────────────────────────────────

    def _dispatch(self, event) -> None:
        with self._lock:
            self.session, effects = transition(self.session, event)
        self._run_all(effects)

    def _begin(self, make_event: Callable[[UploadSession], object]) -> None:
        """Check for an outstanding call and apply the next event as one step."""
        with self._lock:
            if self.session.loading:
                raise AnalysisInProgressError(BUSY_ERROR)
            self.session, effects = transition(self.session, make_event(self.session))
        self._run_all(effects)

    def _run_all(self, effects: list) -> None:
        for effect in effects:
            if isinstance(effect, RunAnalysis):
                self._call_service(effect.image)
            else:
                raise TypeError(f"Unknown effect: {effect!r}")

    def _call_service(self, encoded_image: str) -> None:
        try:
            text = self._analyze_fn(encoded_image, self._prompt, timeout=self._timeout)
        except Exception as e:
            message = getattr(e, "message", None) or str(e) or GENERIC_ANALYSIS_ERROR
            self._record("analyze", e, AnalysisFailed(message))
            return
        self._dispatch(AnalysisSucceeded(text))

    def _record(self, context: str, exc: Exception, event) -> None:
        self._dispatch(event)
        if self._error_hook is not None:
            self._error_hook(context, exc)

    def _ensure_idle(self) -> None:
        if self.session.loading:
            raise AnalysisInProgressError(BUSY_ERROR)

    # ── Actions ───────────────────────────────────────────────────────────────

    def initialize(self) -> None:
        """Show the bundled sample image and analysis. Never calls the AI client."""
        try:
            if not self._default_image:
                raise FileNotFoundError("no default image configured")
            encoded = image_encoder.encode_asset(self._default_image)
        except (ScatIdentifierError, OSError) as e:
            self._record("initialize", e, ImageRejected(DEFAULT_LOAD_ERROR))
            return
        self._default_encoded = encoded
        self._dispatch(DefaultLoaded(encoded, self._default_analysis))

    def reject(self, context: str, exc: Exception) -> None:
        """Show a validation or read failure. An outstanding analysis is unaffected."""
        self._record(context, exc, ImageRejected(getattr(exc, "message", None) or str(exc)))

    def select_image(self, upload) -> None:
        """Validate and encode an uploaded file, then analyze it.

        Validation and read failures only set `error`; the current image and
        analysis stay as they were. If an analysis started while the file was
        being read, the upload is rejected and the session is left untouched.
        """
        self._ensure_idle()
        try:
            encoded = image_encoder.encode_upload(upload)
        except ScatIdentifierError as e:
            self.reject("select_image", e)
            return
        self._begin(lambda state: ImageEncoded(encoded))

    def analyze(self, encoded_image: str) -> None:
        self._begin(lambda state: AnalysisStarted(encoded_image))

    def reanalyze(self) -> None:
        """Run the analysis again on the stored image (no re-upload needed)."""
        self._begin(
            lambda state: AnalysisStarted(state.image) if state.image else ImageRejected(NO_IMAGE_ERROR)
        )

    # ── Views ─────────────────────────────────────────────────────────────────

    def held_bytes(self) -> int:
        """Size of the uploaded image this session keeps alive (0 for the shared default)."""
        image = self.session.image
        if not image or image is self._default_encoded:
            return 0
        return len(image)

    def blocks(self) -> list:
        return format_analysis(self.session.analysis_text)
