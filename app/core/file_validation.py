import re
from typing import List, Optional, Sequence, Tuple

from app.config import settings

INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
MAX_FILENAME_LENGTH = 255

IMAGE_MIME_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/webp"]

DOCUMENT_MIME_TYPES = IMAGE_MIME_TYPES + [
    "image/gif",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "application/haansofthwp",
    "application/x-hwp",
    "application/zip",
    "text/plain",
    "text/csv",
]


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {units[i]}"


class FileValidator:
    """Checks an upload before it reaches Storage"""

    @staticmethod
    def validate(
        filename: Optional[str],
        size: int,
        content_type: Optional[str],
        allowed_types: Optional[Sequence[str]] = None,
        max_size: Optional[int] = None
    ) -> Tuple[bool, List[str]]:
        """
        Validate name, size and MIME type of an upload.
        Returns (is_valid, list_of_errors)
        """
        errors = []
        max_size = max_size or settings.max_upload_bytes

        if size > max_size:
            errors.append(
                f"File is too large ({format_file_size(size)}). Maximum size is {format_file_size(max_size)}"
            )
        if size == 0:
            errors.append("File is empty")

        if not filename:
            errors.append("File name is required")
        else:
            if INVALID_FILENAME_CHARS.search(filename):
                errors.append("File name contains invalid characters")
            if len(filename) > MAX_FILENAME_LENGTH:
                errors.append(f"File name is too long (max {MAX_FILENAME_LENGTH} characters)")

        if allowed_types is not None and (content_type or "").lower() not in allowed_types:
            errors.append(f"Unsupported file type: {content_type or 'unknown'}")

        return len(errors) == 0, errors
