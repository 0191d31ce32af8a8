"""Upload payload decoding and content-type verification.

The declared MIME type is never trusted on its own: the leading bytes of the
payload must carry the matching file signature.
"""

import base64
import binascii
import math
import re

from aidtrack.core.config import settings


ALLOWED_MIME_TYPES = {
    "application/pdf",
    "image/png",
    "image/jpeg",
    "image/gif",
    "image/webp",
}

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
SIGNATURES: list[tuple[str, tuple[bytes, ...]]] = [
    ("application/pdf", (b"%PDF",)),
    ("image/jpeg", (b"\xff\xd8\xff",)),
    ("image/png", (PNG_SIGNATURE,)),
    ("image/gif", (b"GIF87a", b"GIF89a")),
]

DATA_URL_RE = re.compile(r"^data:(?P<mime>[^;,]*)(?P<params>(;[^;,]*)*?);base64,(?P<payload>.*)$", re.DOTALL)


class DocumentValidationError(ValueError):
    """Upload rejected; the message is safe to return to the client."""


def normalize_mime(mime_type: str) -> str:
    """Lowercase and strip parameters: 'Image/PNG; charset=x' -> 'image/png'."""
    return mime_type.split(";", 1)[0].strip().lower()


def max_encoded_length(max_bytes: int) -> int:
    """Longest base64 text (padding included) that can decode to `max_bytes`."""
    return 4 * math.ceil(max_bytes / 3) + 4


def _size_error(max_bytes: int) -> DocumentValidationError:
    max_mb = max_bytes / (1024 * 1024)
    return DocumentValidationError(f"File size exceeds {max_mb:.0f} MB limit")


def decode_file_data(file_data: str, max_bytes: int | None = None) -> bytes:
    """
    Decode a data URL (data:<mime>;base64,<payload>) or bare base64 string.

    Payloads whose encoded length already exceeds the size limit are rejected
    before decoding.

    Raises:
        DocumentValidationError: oversized, malformed base64 or empty payload
    """
    max_bytes = settings.MAX_DOCUMENT_BYTES if max_bytes is None else max_bytes
    payload = file_data.strip()
    match = DATA_URL_RE.match(payload)
    if match:
        payload = match.group("payload")
    elif payload.startswith("data:"):
        raise DocumentValidationError("Only base64 data URLs are supported")

    payload = "".join(payload.split())
    if len(payload) > max_encoded_length(max_bytes):
        raise _size_error(max_bytes)
    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise DocumentValidationError("File data is not valid base64")

    if not content:
        raise DocumentValidationError("File is empty")
    return content


def detect_mime(content: bytes) -> str | None:
    """Return the MIME type implied by the file signature, or None if unrecognized."""
    if len(content) < 4:
        return None
    if len(content) >= 12 and content[:4] == b"RIFF" and content[8:12] == b"WEBP":
        return "image/webp"
    for mime, prefixes in SIGNATURES:
        if any(content.startswith(prefix) for prefix in prefixes):
            return mime
    return None


def validate_document(content: bytes, declared_mime: str, max_bytes: int | None = None) -> str:
    """
    Check size, allowlist and magic bytes.

    Returns:
        The normalized MIME type to store

    Raises:
        DocumentValidationError: with a descriptive, client-safe message
    """
    max_bytes = settings.MAX_DOCUMENT_BYTES if max_bytes is None else max_bytes
    if len(content) > max_bytes:
        raise _size_error(max_bytes)

    declared = normalize_mime(declared_mime)
    if declared not in ALLOWED_MIME_TYPES:
        raise DocumentValidationError(f"Content type '{declared}' not allowed")

    detected = detect_mime(content)
    if detected is None:
        raise DocumentValidationError(
            "Unable to verify file type: unrecognized format or corrupted file"
        )
    if detected != declared:
        raise DocumentValidationError(
            f"File content does not match declared type (declared: {declared}, detected: {detected})"
        )
    return declared
