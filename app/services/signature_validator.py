from app.exceptions import FileTooLargeError, MalformedImageError, UnsupportedFileTypeError

MAX_SIGNATURE_SIZE_BYTES = 5 * 1024 * 1024
ALLOWED_SIGNATURE_TYPES = {"image/png", "image/jpeg", "image/jpg"}

PNG_MAGIC = b"\x89PNG"
JPEG_MAGIC = b"\xff\xd8"


def validate_signature_file(
    data: bytes,
    mime_type: str | None,
    max_size_bytes: int = MAX_SIGNATURE_SIZE_BYTES,
) -> None:
    """Reject a signature upload that is too large, of the wrong type, or not an image.

    Checks run in a fixed order (size, declared type, magic bytes) so the
    reported error is deterministic when several checks would fail.
    """
    if len(data) > max_size_bytes:
        raise FileTooLargeError(len(data), max_size_bytes)

    if mime_type not in ALLOWED_SIGNATURE_TYPES:
        raise UnsupportedFileTypeError(mime_type or "unknown")

    header = data[:4]
    if not (header.startswith(PNG_MAGIC) or header.startswith(JPEG_MAGIC)):
        raise MalformedImageError()
