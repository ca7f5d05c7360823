"""
AI client dispatcher.
Selects the active backend based on the AI_PROVIDER environment variable
and delegates all calls to it.

Supported backends (ai_backends/<name>.py, each must expose call()):
  gemini_api  : Google Gemini via google-genai SDK (default)
  offline     : no network; returns the bundled sample analysis

To add a new backend:
  1. Create ai_backends/my_provider.py with a call() function matching the signature below.
  2. Set AI_PROVIDER=my_provider in .env.
"""
import os
import importlib

from dotenv import load_dotenv

from errors import AnalysisError

load_dotenv()

DEFAULT_PROVIDER = "gemini_api"


def call_ai(encoded_image: str, prompt: str, timeout: float | None = None) -> str:
    """Send an encoded image + prompt to the active AI backend and return its text.

    Args:
        encoded_image: data URL (data:<mime>;base64,...) of the image.
        prompt:        Instructional prompt sent alongside the image.
        timeout:       Request timeout in seconds; None falls back to ANALYSIS_TIMEOUT,
                       and to no explicit timeout when that is unset too.

    Returns:
        The model's free-text answer.

    Raises:
        AnalysisError on any failure. Exactly one attempt is made.
    """
    load_dotenv(override=True)  # re-read .env so changes apply without server restart
    if timeout is None:
        try:
            timeout = configured_timeout()
        except ValueError as e:
            raise AnalysisError(str(e))
    provider = os.environ.get("AI_PROVIDER", DEFAULT_PROVIDER)
    try:
        backend = importlib.import_module(f"ai_backends.{provider}")
    except ModuleNotFoundError:
        raise AnalysisError(
            f"AI backend '{provider}' not found. "
            f"Create ai_backends/{provider}.py or change AI_PROVIDER in .env."
        )
    return backend.call(encoded_image, prompt, timeout=timeout)


def configured_timeout() -> float | None:
    """ANALYSIS_TIMEOUT from the environment (seconds), or None when unset."""
    raw = os.environ.get("ANALYSIS_TIMEOUT", "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"ANALYSIS_TIMEOUT must be a number of seconds, got {raw!r}")
    return value if value > 0 else None
