"""Writes generated code to a timestamped file."""

import logging
import re
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def output_filename(prefix: str, extension: str, now: datetime | None = None) -> str:
    """``GeneratedApiTests`` + ``java`` -> ``GeneratedApiTests_20240101_120000.java``."""
    stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    return f"{prefix}_{stamp}.{extension.lstrip('.')}"


def write_output(text: str, directory: Path, prefix: str, extension: str, now: datetime | None = None) -> Path:
    """Write ``text`` verbatim (create or truncate) and return the file path."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / output_filename(prefix, extension, now)
    path.write_text(text, encoding="utf-8")
    logger.debug("Wrote %d chars to %s", len(text), path)
    return path


def endpoint_file_prefix(prefix: str, method: str, path: str) -> str:
    """``GeneratedApiTests``, ``GET``, ``/pets/{petId}`` -> ``GeneratedApiTests_GET_pets_petId``."""
    slug = re.sub(r"[^A-Za-z0-9]+", "_", path).strip("_") or "root"
    return f"{prefix}_{method.upper()}_{slug}"
