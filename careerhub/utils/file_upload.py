"""
File Upload Utility - Read question-bank uploads.

Supported formats:
- JSON (.json): a single question object, an array of questions,
  or an object with a "questions" array

Max file size: max_upload_bytes from settings (5MB by default)
"""

import json
from typing import Any, List

from fastapi import UploadFile

from careerhub.core.errors import ValidationError


ALLOWED_EXTENSIONS = {'.json'}


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


def read_upload(file: UploadFile, max_bytes: int) -> bytes:
    """
    Read an uploaded file, refusing anything over max_bytes.

    Raises:
        ValidationError on missing name, wrong type or oversize
    """
    if not file.filename:
        raise ValidationError("No filename provided", field="file")

    ext = get_file_extension(file.filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationError(f"Unsupported file type '{ext}'. Allowed: JSON", field="file")

    # Read one byte past the limit to detect oversize without loading more
    content = file.file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise ValidationError(
            f"File too large. Maximum size: {max_bytes // (1024 * 1024)}MB",
            field="file"
        )
    return content


def parse_questions_payload(content: bytes) -> List[Any]:
    """Decode a JSON upload into a list of raw question items."""
    for encoding in ['utf-8-sig', 'latin-1']:
        try:
            text = content.decode(encoding)
            break
        except UnicodeDecodeError:
            continue

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Malformed JSON: {e.msg} (line {e.lineno})", field="file")

    if isinstance(payload, dict) and isinstance(payload.get("questions"), list):
        return payload["questions"]
    if isinstance(payload, dict):
        return [payload]
    if isinstance(payload, list):
        return payload
    raise ValidationError("Expected a question object or an array of questions", field="file")
