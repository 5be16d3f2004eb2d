"""On-disk cover assets: naming, lookup and the existence + size check."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from coverscraper.errors import TargetDirectoryError
from coverscraper.logging_config import get_logger

logger = get_logger(__name__)

ALLOWED_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")
DEFAULT_EXTENSION = ".jpg"


def extension_for_url(url: str) -> str:
    """
    Picks the on-disk extension for a candidate URL.
    Example:
        "https://img.example/dune123.PNG?x=1" → ".png"
        "https://img.example/cover"           → ".jpg"
    """
    try:
        ext = os.path.splitext(urlparse(url).path)[1]
    except ValueError:
        logger.warning("Could not parse %s, using default %s", url, DEFAULT_EXTENSION)
        return DEFAULT_EXTENSION

    if ext and ext.lower() in ALLOWED_EXTENSIONS:
        return ext.lower()
    return DEFAULT_EXTENSION


def asset_path(target_dir: str | Path, entry_id: str, ext: str) -> Path:
    return Path(target_dir) / f"{entry_id}{ext}"


def _has_content(path: Path) -> bool:
    try:
        return path.is_file() and path.stat().st_size > 0
    except OSError:
        return False


def find_asset(target_dir: str | Path, entry_id: str) -> Optional[Path]:
    """Return the existing non-empty asset for the id, checking extensions in allow-list order."""
    for ext in ALLOWED_EXTENSIONS:
        path = asset_path(target_dir, entry_id, ext)
        if _has_content(path):
            return path
    return None


def purge_stale_assets(target_dir: str | Path, entry_id: str) -> list[Path]:
    # Zero-byte files are what an interrupted download leaves behind
    removed = []
    for ext in ALLOWED_EXTENSIONS:
        path = asset_path(target_dir, entry_id, ext)
        try:
            if path.is_file() and path.stat().st_size == 0:
                path.unlink()
                removed.append(path)
        except OSError as exc:
            logger.warning("Could not remove stale file %s: %s", path, exc)
    if removed:
        logger.info("Removed %d stale empty file(s) for id %s", len(removed), entry_id)
    return removed


def ensure_target_dir(target_dir: str | Path) -> Path:
    path = Path(target_dir)
    existed = path.is_dir()
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise TargetDirectoryError(f"Unable to create target directory: {exc}", path=str(path)) from exc

    if existed:
        logger.info("Directory already exists: %s", path)
    else:
        logger.info("Created directory: %s", path)
    return path
