from coverscraper.providers.base import FirstThumbnailProvider


class MarketplaceProvider(FirstThumbnailProvider):
    name = "amazon"

    SEARCH_URL = "https://www.amazon.com/s?k={query}"
    QUERY_SUFFIX = "book"
    READY_SELECTOR = ".s-result-item"     # Search result card
    THUMBNAIL = ".s-image"                # First listing's product image
