"""Run settings, with defaults overridable from COVERS_* environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

_FALSE_VALUES = {"0", "false", "no", "off"}


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in _FALSE_VALUES


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


@dataclass
class Settings:
    out_dir: str = "covers"
    headless: bool = True
    storage_state: str | None = None     # Playwright storage_state json loaded into every context

    nav_timeout_ms: int = 30000           # page.goto bound
    wait_timeout_ms: int = 5000           # wait_for_selector bound

    min_delay_ms: int = 3000              # politeness window between entries: [min, max)
    max_delay_ms: int = 5000

    min_image_size: int = 60              # smallest rendered width/height accepted from image search
    download_timeout_s: float = 30.0

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            out_dir=os.getenv("COVERS_OUT_DIR") or defaults.out_dir,
            headless=_as_bool(os.getenv("COVERS_HEADLESS"), defaults.headless),
            storage_state=os.getenv("COVERS_STORAGE_STATE") or None,
            nav_timeout_ms=_env_int("COVERS_NAV_TIMEOUT_MS", defaults.nav_timeout_ms),
            wait_timeout_ms=_env_int("COVERS_WAIT_TIMEOUT_MS", defaults.wait_timeout_ms),
            min_delay_ms=_env_int("COVERS_MIN_DELAY_MS", defaults.min_delay_ms),
            max_delay_ms=_env_int("COVERS_MAX_DELAY_MS", defaults.max_delay_ms),
            min_image_size=_env_int("COVERS_MIN_IMAGE_SIZE", defaults.min_image_size),
        )
