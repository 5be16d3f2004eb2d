from typing import List, Optional
from urllib.parse import quote_plus

from coverscraper.catalog import CatalogEntry
from coverscraper.providers.base import CoverProvider

BASE_URL = "https://openlibrary.org"

# Cover URLs end in -S/-M/-L.jpg; the large one is what we want on disk
SIZE_UPGRADES = (("-S.jpg", "-L.jpg"), ("-M.jpg", "-L.jpg"))


def upgrade_cover_url(url: str) -> str:
    for small, large in SIZE_UPGRADES:
        url = url.replace(small, large)
    return url


def absolutize(src: str) -> str:
    if src.startswith("//"):
        return f"https:{src}"
    if src.startswith("/"):
        return f"{BASE_URL}{src}"
    return src


class OpenLibraryProvider(CoverProvider):
    name = "openlibrary"

    SEARCH_URL = BASE_URL + "/search?q={query}&mode=everything"
    READY_SELECTOR = ".searchResultItem"
    COVER = ".cover"
    IMG = "img"

    def search_url(self, entry: CatalogEntry) -> str:
        # Catalog search takes words joined by '+'
        return self.SEARCH_URL.format(query=quote_plus(self.build_query(entry)))

    def normalize(self, src: Optional[str]) -> Optional[str]:
        if not src:
            return None
        url = absolutize(src.strip())
        if not url.startswith("http"):
            return None
        return upgrade_cover_url(url)

    async def extract(self, page) -> List[str]:
        cover = await page.query_selector(self.COVER)
        if not cover:
            return []
        img = await cover.query_selector(self.IMG)
        if not img:
            return []
        url = self.normalize(await img.get_attribute("src"))
        return [url] if url else []
