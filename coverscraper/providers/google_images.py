import re
from typing import Any, Dict, Iterable, List

from coverscraper.providers.base import CoverProvider, is_absolute

# Image URLs quoted anywhere in the raw page source
HTML_IMAGE_RE = re.compile(r'"(https?://[^"]+\.(?:jpg|jpeg|png|gif|webp))"', re.IGNORECASE)

# Attributes that may carry the real image URL on a result thumbnail
URL_ATTRS = ("src", "data-src", "data-iurl")

# Rendered size + URL attributes of every <img> on the page
COLLECT_IMAGES_JS = """
() => Array.from(document.querySelectorAll('img')).map(img => ({
    width: img.width,
    height: img.height,
    src: img.getAttribute('src'),
    'data-src': img.getAttribute('data-src'),
    'data-iurl': img.getAttribute('data-iurl'),
}))
"""


class GoogleImagesProvider(CoverProvider):
    name = "google"

    SEARCH_URL = "https://www.google.com/search?q={query}&tbm=isch"
    QUERY_SUFFIX = "book cover"
    READY_SELECTOR = "img"

    ENGINE_DOMAINS = ("google", "gstatic")   # The engine's own logos, sprites and proxies
    MIN_SIZE = 60

    def __init__(self, *args, min_size: int = MIN_SIZE, **kwargs):
        super().__init__(*args, **kwargs)
        self.min_size = min_size

    def is_engine_url(self, url: str) -> bool:
        return any(d in url for d in self.ENGINE_DOMAINS)

    def from_elements(self, images: Iterable[Dict[str, Any]]) -> List[str]:
        urls = []
        for img in images:
            # Skip tiny images and the engine's icons
            if (img.get("width") or 0) < self.min_size or (img.get("height") or 0) < self.min_size:
                continue
            src = img.get("src")
            if src and self.is_engine_url(src):
                continue
            for attr in URL_ATTRS:
                value = img.get(attr)
                if is_absolute(value) and not self.is_engine_url(value):
                    urls.append(value)
        return urls

    def from_html(self, html: str) -> List[str]:
        return [
            m.group(1) for m in HTML_IMAGE_RE.finditer(html or "")
            if not self.is_engine_url(m.group(1))
        ]

    async def extract(self, page) -> List[str]:
        images = await page.evaluate(COLLECT_IMAGES_JS)
        html = await page.content()
        return self.from_elements(images or []) + self.from_html(html)
