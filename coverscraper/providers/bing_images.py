from coverscraper.providers.base import FirstThumbnailProvider


class BingImagesProvider(FirstThumbnailProvider):
    name = "bing"

    SEARCH_URL = "https://www.bing.com/images/search?q={query}&form=HDRSC2&first=1"
    QUERY_SUFFIX = "book cover"
    READY_SELECTOR = ".mimg"              # Result grid thumbnails
    THUMBNAIL = ".mimg"
