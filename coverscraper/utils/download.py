"""Streaming image download with cleanup of partial files."""

from __future__ import annotations

import os
from pathlib import Path

import httpx

from coverscraper.browser import PRIMARY_IDENTITY
from coverscraper.errors import DownloadError
from coverscraper.logging_config import get_logger

logger = get_logger(__name__)

DOWNLOAD_HEADERS = {"User-Agent": PRIMARY_IDENTITY.user_agent}


def make_client(timeout: float = 30.0) -> httpx.AsyncClient:
    """Shared client for every download of a run."""
    return httpx.AsyncClient(
        headers=DOWNLOAD_HEADERS,
        follow_redirects=True,
        timeout=timeout,
    )


def _remove_partial(filepath: Path) -> None:
    try:
        if filepath.exists():
            os.remove(filepath)
    except OSError as exc:
        logger.warning("Could not remove partial file %s: %s", filepath, exc)


async def download_image(client: httpx.AsyncClient, url: str, filepath: str | Path) -> Path:
    """
    Streams `url` into `filepath`.

    The file is closed before this returns or raises. Any network, HTTP status
    or write error removes what was written and raises DownloadError, and so
    does an empty body, so no zero-byte file is ever left behind.
    """
    filepath = Path(filepath)
    written = 0
    try:
        async with client.stream("GET", url) as response:
            response.raise_for_status()
            with open(filepath, "wb") as f:
                async for chunk in response.aiter_bytes():
                    f.write(chunk)
                    written += len(chunk)
    except Exception as exc:
        _remove_partial(filepath)
        logger.warning("Error downloading %s to %s: %s", url, filepath, exc)
        raise DownloadError(f"Download failed: {exc}", url=url, path=str(filepath)) from exc
    except BaseException:
        # Cancellation / interrupts still must not leave a partial file
        _remove_partial(filepath)
        raise

    if written == 0:
        _remove_partial(filepath)
        raise DownloadError("Empty response body.", url=url, path=str(filepath))

    logger.debug("Wrote %d bytes to %s", written, filepath)
    return filepath
