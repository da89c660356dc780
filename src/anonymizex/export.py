"""Export helpers: naming and saving an encoded result."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from urllib.parse import quote

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_FILENAME = "blurred-image.png"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(filename: str | None, default: str = DEFAULT_EXPORT_FILENAME) -> str:
    """Reduce ``filename`` to a safe basename ending in ``.png``."""
    if not filename:
        return default
    name = Path(filename.replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    if not name:
        return default
    stem = name.rsplit(".", 1)[0] if "." in name else name
    return f"{stem}.png"


def content_disposition(filename: str) -> str:
    """Build an ``attachment`` Content-Disposition header value."""
    return f"attachment; filename=\"{filename}\"; filename*=UTF-8''{quote(filename)}"


def export_image(data: bytes, filename: str | None, directory: str | Path) -> Path:
    """Write encoded image bytes to ``directory`` and return the written path."""
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / sanitize_filename(filename)
    target.write_bytes(data)
    logger.info("Exported %d bytes to %s", len(data), target)
    return target
