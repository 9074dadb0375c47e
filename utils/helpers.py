# Shared utility functions for file names, MIME types and form values

import base64
import os
from typing import Optional


def get_file_extension(filename: str) -> str:
    """Extract file extension in lowercase."""
    return os.path.splitext(filename.lower())[1]


def get_mimetype_from_extension(ext: str) -> str:
    """Get MIME type based on file extension."""
    mime_map = {
        '.jpg': 'image/jpeg',
        '.jpeg': 'image/jpeg',
        '.png': 'image/png',
        '.webp': 'image/webp',
        '.gif': 'image/gif',
        '.bmp': 'image/bmp',
        '.tiff': 'image/tiff',
        '.tif': 'image/tiff',
        '.heic': 'image/heic',
        '.heif': 'image/heif',
        '.svg': 'image/svg+xml',
        '.pdf': 'application/pdf',
        '.zip': 'application/zip',
    }
    return mime_map.get(ext.lower(), 'application/octet-stream')


def parse_int(value) -> Optional[int]:
    """
    Parse a form value as an integer.
    Empty or non-numeric values give None.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def base_name(filename: str) -> str:
    """Everything before the first '.' of the file name."""
    return filename.split('.')[0]


def to_data_uri(data: bytes, mimetype: str) -> str:
    return f"data:{mimetype};base64,{base64.b64encode(data).decode('ascii')}"
