"""
Centralized site configuration.
Edit this file to change the page text and the bundled sample image.
"""
import os

_HERE = os.path.dirname(os.path.abspath(__file__))

SITE_CONFIG = {
    "title":    "Free Scat Identifier",
    "tagline": (
        "Upload a scat photo for educational wildlife identification "
        "and animal information"
    ),
    # Shown under the upload button and used as the <input accept> list
    "accepted_formats_note": "PNG, JPG, JPEG or WEBP (MAX. 20MB)",
    "accept":                "image/jpeg,image/png,image/jpg,image/webp",
    "results_heading":       "Scat Analysis Results",
}

# Sample photo shown at startup together with scat_content.DEFAULT_ANALYSIS
DEFAULT_IMAGE_PATH = os.path.join(_HERE, "static", "default-scat.jpg")

# Limits on in-memory browser sessions; the least recently used are dropped first.
# Sessions are only created by uploads and re-analysis requests, not by page views.
MAX_SESSIONS      = 200
MAX_SESSION_BYTES = 512 * 1024 * 1024  # encoded uploads held across all sessions
