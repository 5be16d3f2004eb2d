from typing import List

from coverscraper.config import Settings
from coverscraper.providers.base import CoverProvider
from coverscraper.providers.bing_images import BingImagesProvider
from coverscraper.providers.google_images import GoogleImagesProvider
from coverscraper.providers.marketplace import MarketplaceProvider
from coverscraper.providers.openlibrary import OpenLibraryProvider


# Each pass tries its providers in list order; reordering is just editing these lists.
def primary_providers(settings: Settings) -> List[CoverProvider]:
    timeouts = dict(nav_timeout_ms=settings.nav_timeout_ms, wait_timeout_ms=settings.wait_timeout_ms)
    return [
        MarketplaceProvider(**timeouts),
        GoogleImagesProvider(min_size=settings.min_image_size, **timeouts),
    ]


def retry_providers(settings: Settings) -> List[CoverProvider]:
    timeouts = dict(nav_timeout_ms=settings.nav_timeout_ms, wait_timeout_ms=settings.wait_timeout_ms)
    return [
        BingImagesProvider(**timeouts),
        OpenLibraryProvider(**timeouts),
    ]
