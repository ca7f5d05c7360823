"""
AI backend: Google Gemini
Uses gemini-2.5-flash-lite (override with GEMINI_MODEL) with free-text output.
Requires GEMINI_API_KEY in environment.
"""
import os
import json

from google import genai
from google.genai import types

from errors import AnalysisError
from image_encoder import decode_data_url

DEFAULT_MODEL             = "gemini-2.5-flash-lite"
DEFAULT_MAX_OUTPUT_TOKENS = 4096


def _retry_hint(msg: str) -> str:
    """Pull the RetryInfo delay out of a RESOURCE_EXHAUSTED error body, if any."""
    try:
        data = json.loads(msg[msg.index("{"):])
    except ValueError:
        return ""
    details = data.get("error", {}).get("details", []) if isinstance(data, dict) else []
    for d in details:
        if d.get("@type", "").endswith("RetryInfo") and d.get("retryDelay"):
            return f" Retry after: {d['retryDelay']}."
    return ""


def _http_options(timeout: float | None):
    if timeout is None:
        return None
    # HttpOptions.timeout is in milliseconds
    return types.HttpOptions(timeout=int(timeout * 1000))


def call(encoded_image: str, prompt: str, timeout: float | None = None) -> str:
    """Send an image + prompt to Gemini and return the response text.

    Args:
        encoded_image: data URL of the image.
        prompt:        Text prompt to send alongside the image.
        timeout:       Optional request timeout in seconds.

    Returns:
        The model's text answer (never empty).
    """
    api_key = os.environ.get("GEMINI_API_KEY")
    if not api_key:
        raise AnalysisError(
            "GEMINI_API_KEY is not set. Copy .env.example to .env and add your key."
        )

    try:
        mime_type, image_bytes = decode_data_url(encoded_image)
    except ValueError as e:
        raise AnalysisError(f"The image could not be sent for analysis ({e}).")

    model      = os.environ.get("GEMINI_MODEL", DEFAULT_MODEL)
    max_tokens = int(os.environ.get("GEMINI_MAX_OUTPUT_TOKENS", DEFAULT_MAX_OUTPUT_TOKENS))

    client = genai.Client(api_key=api_key, http_options=_http_options(timeout))

    try:
        response = client.models.generate_content(
            model=model,
            contents=[
                types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                prompt,
            ],
            config=types.GenerateContentConfig(max_output_tokens=max_tokens),
        )
    except Exception as e:
        msg = str(e)
        if "429" in msg or "RESOURCE_EXHAUSTED" in msg:
            raise AnalysisError(
                f"Gemini API quota exceeded: free tier limit reached.{_retry_hint(msg)} "
                "Generate a new key at https://aistudio.google.com/apikey "
                "or wait and try again."
            ) from e
        raise AnalysisError(f"Failed to analyze image: {msg or type(e).__name__}") from e

    text = (getattr(response, "text", None) or "").strip()
    if not text:
        raise AnalysisError("The AI service returned an empty response. Please try again.")
    return text
