"""
Image intake: MIME/size checks and data-URL encoding.

The encoded form is a `data:<mime>;base64,<payload>` string, used both as the
<img src> on the page and as the payload handed to the AI backend.
No image decoding or resizing is done here; bytes are passed through as-is.
"""
import base64
import functools
import os

from errors import ValidationError, ReadError

MAX_IMAGE_BYTES = 20 * 1024 * 1024  # 20 MiB

INVALID_TYPE_MESSAGE = "Please upload a valid image file"
OVERSIZED_MESSAGE    = "Image size should be less than 20MB"
READ_FAILED_MESSAGE  = "Failed to read the image file. Please try again."

# Extension → MIME type, used when the browser does not declare one
MIME_MAP = {
    "jpg":  "image/jpeg",
    "jpeg": "image/jpeg",
    "png":  "image/png",
    "webp": "image/webp",
}

_MIME_ALIASES = {"image/jpg": "image/jpeg"}
_UNDECLARED   = {"", "application/octet-stream"}


def _ext(filename: str) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def resolve_mime_type(filename: str | None, declared: str | None) -> str:
    """Return the MIME type to validate against.

    The declared type wins; the extension is only consulted when the client
    sent nothing useful (empty or application/octet-stream).
    """
    mime_type = (declared or "").split(";", 1)[0].strip().lower()
    if mime_type in _UNDECLARED:
        mime_type = MIME_MAP.get(_ext(filename or ""), mime_type)
    return _MIME_ALIASES.get(mime_type, mime_type)


def validate(mime_type: str, size: int | None) -> None:
    """Raise ValidationError if the type is not image/* or the size exceeds 20 MiB."""
    if not mime_type.startswith("image/"):
        raise ValidationError(INVALID_TYPE_MESSAGE)
    if size is not None and size > MAX_IMAGE_BYTES:
        raise ValidationError(OVERSIZED_MESSAGE)


def encode_bytes(data: bytes, mime_type: str) -> str:
    validate(mime_type, len(data))
    payload = base64.b64encode(data).decode("utf-8")
    return f"data:{mime_type};base64,{payload}"


def _declared_size(upload) -> int | None:
    length = getattr(upload, "content_length", None)
    return length or None


def encode_upload(upload) -> str:
    """Encode an uploaded file (werkzeug FileStorage or anything with
    filename / mimetype / stream).

    The declared type and length are checked before reading so an obviously
    bad file is rejected without pulling its bytes into memory.
    """
    mime_type = resolve_mime_type(upload.filename, upload.mimetype)
    validate(mime_type, _declared_size(upload))

    try:
        # Read one byte past the limit so oversized streams are caught
        # without reading them completely.
        data = upload.stream.read(MAX_IMAGE_BYTES + 1)
    except OSError as e:
        raise ReadError(READ_FAILED_MESSAGE) from e

    return encode_bytes(data, mime_type)


def encode_file(path: str) -> str:
    """Encode an image file on disk (the bundled default asset)."""
    mime_type = MIME_MAP.get(_ext(os.path.basename(path)), "application/octet-stream")
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise ReadError(READ_FAILED_MESSAGE) from e
    return encode_bytes(data, mime_type)


@functools.lru_cache(maxsize=8)
def encode_asset(path: str) -> str:
    """encode_file() for bundled assets, encoded once and shared by every session.

    Failures are not cached, so a missing asset is retried on the next call.
    """
    return encode_file(path)


def decode_data_url(encoded: str) -> tuple[str, bytes]:
    """Split a data URL back into (mime_type, raw bytes).

    Raises ValueError if the string is not a base64 data URL.
    """
    if not encoded or not encoded.startswith("data:") or "," not in encoded:
        raise ValueError("not a data URL")
    header, payload = encoded[len("data:"):].split(",", 1)
    parts = header.split(";")
    if "base64" not in parts[1:]:
        raise ValueError("data URL is not base64-encoded")
    mime_type = parts[0] or "application/octet-stream"
    return mime_type, base64.b64decode(payload, validate=True)
