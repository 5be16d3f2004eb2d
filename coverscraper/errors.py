"""Exception types raised by the cover scraper."""

from __future__ import annotations

from typing import Optional


class CoverScraperError(Exception):
    """Base class for every error the scraper raises on purpose."""

    default_message = "Cover scraper error."

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        url: Optional[str] = None,
        path: Optional[str] = None,
        entry_id: Optional[str] = None,
    ) -> None:
        self.message = message or self.default_message
        self.url = url
        self.path = path
        self.entry_id = entry_id
        super().__init__(self.message)

    def __str__(self) -> str:
        context_parts: list[str] = []
        if self.entry_id:
            context_parts.append(f"entry={self.entry_id}")
        if self.url:
            context_parts.append(f"url={self.url}")
        if self.path:
            context_parts.append(f"path={self.path}")
        context = ", ".join(context_parts)
        return f"{self.message} ({context})" if context else self.message


class CatalogError(CoverScraperError):
    """Raised when the catalog file cannot be read or holds bad records."""

    default_message = "Invalid catalog."


class TargetDirectoryError(CoverScraperError):
    """Raised when the cover directory cannot be created. Fatal for the run."""

    default_message = "Unable to create target directory."


class SessionStartError(CoverScraperError):
    """Raised when the headless browser cannot be launched. Fatal for the run."""

    default_message = "Unable to start browser session."


class DownloadError(CoverScraperError):
    """Raised when a candidate image cannot be fetched or written."""

    default_message = "Failed to download image."
