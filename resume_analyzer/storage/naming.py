"""Object path naming shared by the blob stores."""

import os
import re
import uuid

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(filename: str, default: str = "upload") -> str:
    name = os.path.basename(filename or "").strip()
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name or default


def object_path(filename: str) -> str:
    """Unique ``<hex>/<filename>`` path, so repeated uploads never collide."""
    return f"{uuid.uuid4().hex}/{safe_filename(filename)}"
