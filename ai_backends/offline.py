"""
AI backend: offline
Makes no network call and always returns the bundled sample analysis.
Useful for demos and for running the site without a GEMINI_API_KEY.
"""
from image_encoder import decode_data_url
from errors import AnalysisError
from scat_content import DEFAULT_ANALYSIS


def call(encoded_image: str, prompt: str, timeout: float | None = None) -> str:
    try:
        decode_data_url(encoded_image)
    except ValueError as e:
        raise AnalysisError(f"The image could not be sent for analysis ({e}).")
    return DEFAULT_ANALYSIS
